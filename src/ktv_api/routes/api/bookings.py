"""
Bookings API - reservations, the availability RPC, calendar and extensions.
"""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from ktv_api.decorators import floor_staff_required, login_required
from ktv_shared.datetime_utils import venue_today
from ktv_shared.jwt_middleware import get_user_id
from ktv_shared.logging_config import get_logger
from ktv_shared.schemas import (
    BookingRequest,
    BookingStatusRequest,
    BookingUpdateRequest,
    ExtendBookingRequest,
)
from ktv_shared.serializers import success_response
from ktv_shared.services import booking_service
from ktv_shared.validation import ValidationError

bookings_bp = Blueprint("bookings", __name__)
logger = get_logger(__name__)


@bookings_bp.get("/bookings")
@login_required
def list_bookings():
    """
    Query params:
        - date: YYYY-MM-DD
        - from / to: YYYY-MM-DD range
        - room_id: int
        - status: booking status
    """
    bookings = booking_service.list_bookings(
        booking_date=request.args.get("date"),
        date_from=request.args.get("from"),
        date_to=request.args.get("to"),
        room_id=request.args.get("room_id", type=int),
        status=request.args.get("status"),
    )
    return jsonify(success_response(bookings))


@bookings_bp.get("/bookings/upcoming")
@login_required
def upcoming_bookings():
    limit = request.args.get("limit", default=10, type=int)
    return jsonify(success_response(booking_service.upcoming_bookings(limit=limit)))


@bookings_bp.get("/bookings/calendar")
@login_required
def booking_calendar():
    today = venue_today()
    year = request.args.get("year", default=today.year, type=int)
    month = request.args.get("month", default=today.month, type=int)
    if not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12")
    return jsonify(success_response(booking_service.booking_calendar(year, month)))


@bookings_bp.post("/rpc/check-room-availability")
@login_required
def check_room_availability():
    """
    Body: {"room_id", "booking_date", "start_time", "end_time", "exclude_booking_id"?}

    Returns {"available": bool}.
    """
    payload = request.get_json(silent=True) or {}
    if not payload.get("room_id"):
        raise ValidationError("room_id is required")
    available = booking_service.check_room_availability(
        int(payload["room_id"]),
        payload.get("booking_date"),
        payload.get("start_time"),
        payload.get("end_time"),
        payload.get("exclude_booking_id"),
    )
    return jsonify(success_response({"available": available}))


@bookings_bp.get("/bookings/<int:booking_id>")
@login_required
def get_booking(booking_id: int):
    return jsonify(success_response(booking_service.get_booking(booking_id)))


@bookings_bp.post("/bookings")
@floor_staff_required
def create_booking():
    data = BookingRequest(**(request.get_json(silent=True) or {}))
    booking = booking_service.create_booking(data.model_dump(), created_by=get_user_id())
    return jsonify(success_response(booking)), HTTPStatus.CREATED


@bookings_bp.put("/bookings/<int:booking_id>")
@floor_staff_required
def update_booking(booking_id: int):
    data = BookingUpdateRequest(**(request.get_json(silent=True) or {}))
    booking = booking_service.update_booking(booking_id, data.model_dump(exclude_unset=True))
    return jsonify(success_response(booking))


@bookings_bp.put("/bookings/<int:booking_id>/status")
@floor_staff_required
def set_booking_status(booking_id: int):
    data = BookingStatusRequest(**(request.get_json(silent=True) or {}))
    return jsonify(success_response(booking_service.set_booking_status(booking_id, data.status)))


@bookings_bp.post("/bookings/<int:booking_id>/cancel")
@floor_staff_required
def cancel_booking(booking_id: int):
    return jsonify(success_response(booking_service.cancel_booking(booking_id)))


@bookings_bp.post("/bookings/<int:booking_id>/extend")
@floor_staff_required
def extend_booking(booking_id: int):
    """Body: {"hours": 1-12}"""
    data = ExtendBookingRequest(**(request.get_json(silent=True) or {}))
    return jsonify(success_response(booking_service.extend_booking(booking_id, data.hours)))
