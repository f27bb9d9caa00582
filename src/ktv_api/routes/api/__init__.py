"""
KTV API - Modular Blueprint Structure

This package organizes the back-office API endpoints into logical sub-blueprints.
Each module handles a specific resource or domain.
"""

from flask import Blueprint

# Create main API blueprint
api_bp = Blueprint("api", __name__)

# Import and register sub-blueprints
from .approvals import approvals_bp
from .auth import auth_bp
from .bookings import bookings_bp
from .chat import chat_bp
from .employees import employees_bp
from .finance import finance_bp
from .floor import floor_bp
from .products import products_bp
from .purchase_orders import purchase_orders_bp
from .realtime import realtime_bp
from .recurring_bookings import recurring_bookings_bp
from .rooms import rooms_bp
from .shifts import shifts_bp
from .tax_settings import tax_settings_bp
from .transactions import transactions_bp

# Register sub-blueprints
api_bp.register_blueprint(auth_bp)
api_bp.register_blueprint(rooms_bp)
api_bp.register_blueprint(bookings_bp)
api_bp.register_blueprint(recurring_bookings_bp)
api_bp.register_blueprint(transactions_bp)
api_bp.register_blueprint(tax_settings_bp)
api_bp.register_blueprint(shifts_bp)
api_bp.register_blueprint(approvals_bp)
api_bp.register_blueprint(products_bp)
api_bp.register_blueprint(purchase_orders_bp)
api_bp.register_blueprint(employees_bp)
api_bp.register_blueprint(chat_bp)
api_bp.register_blueprint(floor_bp)
api_bp.register_blueprint(finance_bp)
api_bp.register_blueprint(realtime_bp)

__all__ = ["api_bp"]
