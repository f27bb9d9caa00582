"""
Maps domain, schema and database failures onto the JSON error envelope.
"""

from http import HTTPStatus

from flask import Flask, jsonify
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.exceptions import HTTPException

from ktv_shared.auth.service import AuthError
from ktv_shared.jwt_service import JWTError
from ktv_shared.logging_config import get_logger
from ktv_shared.serializers import error_response
from ktv_shared.validation import ValidationError

logger = get_logger(__name__)


def _pydantic_details(e: PydanticValidationError) -> list[dict]:
    return [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())),
            "message": err.get("msg"),
        }
        for err in e.errors()
    ]


def register_error_handlers(app: Flask) -> None:
    """Every failure renders as {"status": "error", "data": null, "error": message}."""

    @app.errorhandler(ValidationError)
    def handle_validation_error(e: ValidationError):
        # status comes from the subclass: 400, 403, 404 or 409
        logger.warning(f"Validation error ({int(e.status)}): {e}")
        return jsonify(error_response(str(e))), e.status

    @app.errorhandler(AuthError)
    def handle_auth_error(e: AuthError):
        logger.warning(f"Auth error ({int(e.status)}): {e}")
        return jsonify(error_response(str(e))), e.status

    @app.errorhandler(JWTError)
    def handle_jwt_error(e: JWTError):
        logger.warning(f"JWT error: {e.message}")
        return jsonify(error_response(e.message)), e.status

    @app.errorhandler(PydanticValidationError)
    def handle_pydantic_validation_error(e: PydanticValidationError):
        logger.warning(f"Request validation error: {e}")
        details = _pydantic_details(e)
        message = details[0]["message"] if details else "Invalid data"
        return jsonify(
            error_response(message, {"details": details})
        ), HTTPStatus.BAD_REQUEST

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(e: IntegrityError):
        logger.warning(f"Integrity error: {e.orig}")
        return jsonify(error_response("Conflicting data")), HTTPStatus.CONFLICT

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(e: SQLAlchemyError):
        logger.error(f"Database error: {e}", exc_info=True)
        return jsonify(error_response("Database error")), HTTPStatus.INTERNAL_SERVER_ERROR

    @app.errorhandler(HTTPException)
    def handle_http_exception(e: HTTPException):
        # unknown routes, wrong methods and unparseable JSON bodies
        logger.warning(f"HTTP exception {e.code}: {e.description}")
        return jsonify(error_response(e.description or str(e))), e.code

    @app.errorhandler(Exception)
    def handle_generic_exception(e: Exception):
        logger.error(f"Unhandled exception: {e}", exc_info=True)
        return jsonify(error_response("Internal server error")), HTTPStatus.INTERNAL_SERVER_ERROR
