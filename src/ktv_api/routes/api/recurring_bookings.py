"""
Recurring bookings API - weekly/monthly rules that the scheduler turns into bookings.
"""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from ktv_api.decorators import floor_staff_required, login_required
from ktv_shared.jwt_middleware import get_user_id
from ktv_shared.schemas import RecurringBookingRequest, RecurringBookingUpdateRequest
from ktv_shared.serializers import success_response
from ktv_shared.services import recurring_booking_service

recurring_bookings_bp = Blueprint("recurring_bookings", __name__)


@recurring_bookings_bp.get("/recurring-bookings")
@login_required
def list_rules():
    active_only = request.args.get("active", "false").lower() in {"1", "true", "yes"}
    return jsonify(
        success_response(recurring_booking_service.list_recurring_bookings(active_only=active_only))
    )


@recurring_bookings_bp.post("/recurring-bookings")
@floor_staff_required
def create_rule():
    data = RecurringBookingRequest(**(request.get_json(silent=True) or {}))
    rule = recurring_booking_service.create_recurring_booking(
        data.model_dump(), created_by=get_user_id()
    )
    return jsonify(success_response(rule)), HTTPStatus.CREATED


@recurring_bookings_bp.put("/recurring-bookings/<int:rule_id>")
@floor_staff_required
def update_rule(rule_id: int):
    data = RecurringBookingUpdateRequest(**(request.get_json(silent=True) or {}))
    rule = recurring_booking_service.update_recurring_booking(
        rule_id, data.model_dump(exclude_unset=True)
    )
    return jsonify(success_response(rule))


@recurring_bookings_bp.post("/recurring-bookings/<int:rule_id>/toggle")
@floor_staff_required
def toggle_rule(rule_id: int):
    """Body: {"is_active": bool}"""
    payload = request.get_json(silent=True) or {}
    rule = recurring_booking_service.set_recurring_booking_active(
        rule_id, bool(payload.get("is_active", False))
    )
    return jsonify(success_response(rule))


@recurring_bookings_bp.delete("/recurring-bookings/<int:rule_id>")
@floor_staff_required
def delete_rule(rule_id: int):
    recurring_booking_service.delete_recurring_booking(rule_id)
    return jsonify(success_response({"id": rule_id}))
