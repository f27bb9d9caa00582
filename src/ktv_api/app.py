"""
Factory for the KTV back-office API service (REST).
Serves the dashboards under /api and the scheduled functions under /functions.

Uses JWT for authentication instead of server-side sessions.
"""

from __future__ import annotations

import os

from flask import Flask, jsonify
from flask_cors import CORS

from ktv_api.routes.api import api_bp
from ktv_api.routes.functions import functions_bp
from ktv_shared.config import load_config, read_bool, validate_required_env_vars
from ktv_shared.db import get_session, init_db, init_engine
from ktv_shared.error_handlers import register_error_handlers
from ktv_shared.jwt_middleware import init_jwt_middleware
from ktv_shared.logging_config import configure_logging, get_logger
from ktv_shared.models import Base
from ktv_shared.services.seed import load_seed_data

logger = get_logger(__name__)

DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:8080",
    "http://127.0.0.1:5173",
    "http://127.0.0.1:8080",
]


def create_app() -> Flask:
    # Validate all required environment variables (fail-fast)
    validate_required_env_vars(skip_in_debug=True)

    app = Flask(__name__)
    config = load_config("ktv-api")

    configure_logging(config.app_name, config.log_level)

    # Database
    init_engine(config)
    init_db(Base.metadata)

    if read_bool("LOAD_SEED_DATA", "false"):
        logger.info("[SEED] Loading seed data (only into empty tables)...")
        with get_session() as session:
            load_seed_data(session)
        logger.info("[SEED] Seed data loaded")

    # Basic Config
    app.config["SECRET_KEY"] = config.secret_key
    app.config["APP_NAME"] = "KTV API"
    app.config["VENUE_NAME"] = config.venue_name
    app.config["CURRENCY"] = config.currency
    app.config["STORAGE_BUCKET_PRODUCTS"] = config.storage_bucket_products
    app.config["SERVICE_KEY"] = config.service_key
    app.config["JWT_ACCESS_TOKEN_EXPIRES_HOURS"] = config.jwt_access_token_expires_hours
    app.config["JWT_REFRESH_TOKEN_EXPIRES_DAYS"] = config.jwt_refresh_token_expires_days
    app.config["REMINDER_LEAD_MINUTES"] = config.reminder_lead_minutes
    app.config["RECURRING_WINDOW_DAYS"] = config.recurring_window_days
    app.config["DEBUG_MODE"] = config.debug_mode
    app.config["DEBUG"] = config.flask_debug

    # Initialize JWT middleware
    init_jwt_middleware(app)

    app.register_blueprint(api_bp, url_prefix="/api")
    app.register_blueprint(functions_bp)

    # Error Handlers
    register_error_handlers(app)

    # CORS: dashboards from known origins, functions from anywhere
    allowed_origins = [
        origin.strip()
        for origin in os.getenv("CORS_ALLOWED_ORIGINS", "").split(",")
        if origin.strip()
    ]
    if config.debug_mode or not allowed_origins:
        allowed_origins = DEFAULT_ALLOWED_ORIGINS
    CORS(
        app,
        resources={
            r"/api/*": {"origins": allowed_origins, "supports_credentials": True},
            r"/functions/*": {
                "origins": "*",
                "allow_headers": ["authorization", "x-client-info", "apikey", "content-type"],
            },
        },
    )

    @app.route("/health")
    def health():
        return jsonify({"status": "ok", "service": "ktv-api"}), 200

    logger.info(f"{config.app_name} ready for {config.venue_name}")
    return app
