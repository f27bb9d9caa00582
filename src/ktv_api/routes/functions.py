"""
Scheduled functions - HTTP triggers for cron jobs and the signup hook.

Each endpoint accepts POST (and OPTIONS for browser preflight), is open to any
origin and is authorized with the service key when one is configured.
"""

from __future__ import annotations

from functools import wraps
from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request

from ktv_shared.logging_config import get_logger
from ktv_shared.schemas import VerificationEmailRequest
from ktv_shared.security import verify_service_key
from ktv_shared.services.email_service import get_email_service
from ktv_shared.services.recurring_booking_service import generate_recurring_bookings
from ktv_shared.services.reminder_service import send_booking_reminders
from ktv_shared.services.room_status_service import update_room_status

functions_bp = Blueprint("functions", __name__, url_prefix="/functions")
logger = get_logger(__name__)


def _presented_key() -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip()
    return request.headers.get("apikey")


def scheduled_function(f):
    """
    Answer preflight requests, check the service key and turn failures into
    ``{"error": message}`` with status 500.
    """

    @wraps(f)
    def decorated_function(*args, **kwargs):
        if request.method == "OPTIONS":
            return "ok", HTTPStatus.OK

        expected = current_app.config.get("SERVICE_KEY")
        if expected:
            if not verify_service_key(_presented_key(), expected):
                logger.warning(f"Rejected call to {request.path}: invalid service key")
                return jsonify({"error": "Unauthorized"}), HTTPStatus.UNAUTHORIZED
        else:
            logger.warning(f"No service key configured; allowing call to {request.path}")

        try:
            return f(*args, **kwargs)
        except Exception as e:
            logger.error(f"Function {request.path} failed: {e}", exc_info=True)
            return jsonify({"error": str(e)}), HTTPStatus.INTERNAL_SERVER_ERROR

    return decorated_function


@functions_bp.route("/generate-recurring-bookings", methods=["POST", "OPTIONS"])
@scheduled_function
def generate_recurring():
    result = generate_recurring_bookings(window_days=current_app.config["RECURRING_WINDOW_DAYS"])
    return jsonify(result)


@functions_bp.route("/send-booking-reminders", methods=["POST", "OPTIONS"])
@scheduled_function
def booking_reminders():
    result = send_booking_reminders(lead_minutes=current_app.config["REMINDER_LEAD_MINUTES"])
    return jsonify(result)


@functions_bp.route("/update-room-status", methods=["POST", "OPTIONS"])
@scheduled_function
def room_status():
    return jsonify(update_room_status())


@functions_bp.route("/send-verification-email", methods=["POST", "OPTIONS"])
@scheduled_function
def verification_email():
    """Body: {"email": str, "full_name": str}"""
    data = VerificationEmailRequest(**(request.get_json(silent=True) or {}))
    result = get_email_service().send_welcome(
        data.email, data.full_name, current_app.config["VENUE_NAME"]
    )
    if not result.sent:
        raise RuntimeError(result.error or "Email not sent")
    logger.info(f"Welcome email sent to {data.email}")
    return jsonify({"success": True, "email": data.email})
