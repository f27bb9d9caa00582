"""
Shifts and cash drawer API for cashiers.
"""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from ktv_api.decorators import cashier_required, finance_required
from ktv_shared.auth.service import AuthService
from ktv_shared.jwt_middleware import get_user_id
from ktv_shared.schemas import (
    CashMovementRequest,
    CloseDrawerRequest,
    EndShiftRequest,
    OpenDrawerRequest,
    StartShiftRequest,
)
from ktv_shared.serializers import success_response
from ktv_shared.services import cash_drawer_service, shift_service

shifts_bp = Blueprint("shifts", __name__)


# ==================== SHIFTS ====================


@shifts_bp.get("/shifts/active")
@cashier_required
def active_shift():
    return jsonify(success_response(shift_service.active_shift(get_user_id())))


@shifts_bp.post("/shifts/start")
@cashier_required
def start_shift():
    data = StartShiftRequest(**(request.get_json(silent=True) or {}))
    shift = shift_service.start_shift(get_user_id(), data.opening_balance)
    return jsonify(success_response(shift)), HTTPStatus.CREATED


@shifts_bp.post("/shifts/end")
@cashier_required
def end_shift():
    data = EndShiftRequest(**(request.get_json(silent=True) or {}))
    return jsonify(
        success_response(shift_service.end_shift(get_user_id(), data.closing_balance, data.notes))
    )


@shifts_bp.get("/shifts")
@cashier_required
def shift_history():
    """Management and accountants may pass user_id; cashiers see their own shifts."""
    user_id = get_user_id()
    requested = request.args.get("user_id", type=int)
    if requested and AuthService.has_management_access(user_id):
        user_id = requested
    limit = request.args.get("limit", default=30, type=int)
    return jsonify(success_response(shift_service.shift_history(user_id, limit=limit)))


@shifts_bp.get("/shifts/all")
@finance_required
def all_shifts():
    limit = request.args.get("limit", default=30, type=int)
    return jsonify(success_response(shift_service.shift_history(None, limit=limit)))


@shifts_bp.get("/shifts/<int:shift_id>/report")
@cashier_required
def shift_report(shift_id: int):
    return jsonify(success_response(shift_service.shift_report(shift_id)))


# ==================== CASH DRAWER ====================


@shifts_bp.get("/cash-drawer")
@cashier_required
def current_drawer():
    return jsonify(success_response(cash_drawer_service.current_drawer(get_user_id())))


@shifts_bp.post("/cash-drawer/open")
@cashier_required
def open_drawer():
    data = OpenDrawerRequest(**(request.get_json(silent=True) or {}))
    drawer = cash_drawer_service.open_drawer(get_user_id(), data.opening_balance)
    return jsonify(success_response(drawer)), HTTPStatus.CREATED


@shifts_bp.post("/cash-drawer/movements")
@cashier_required
def cash_movement():
    data = CashMovementRequest(**(request.get_json(silent=True) or {}))
    drawer = cash_drawer_service.record_cash_movement(
        get_user_id(), data.type, data.amount, data.description
    )
    return jsonify(success_response(drawer)), HTTPStatus.CREATED


@shifts_bp.post("/cash-drawer/close")
@cashier_required
def close_drawer():
    data = CloseDrawerRequest(**(request.get_json(silent=True) or {}))
    return jsonify(success_response(cash_drawer_service.close_drawer(get_user_id(), data.actual_balance)))
