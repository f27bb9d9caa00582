"""
Rooms API - room CRUD, live sessions, waiter assignment and countdown timers.
"""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from ktv_api.decorators import floor_staff_required, login_required, management_required
from ktv_shared.jwt_middleware import get_user_id
from ktv_shared.logging_config import get_logger
from ktv_shared.schemas import AssignWaiterRequest, RoomRequest, RoomStatusRequest, RoomUpdateRequest
from ktv_shared.serializers import success_response
from ktv_shared.services import room_service

rooms_bp = Blueprint("rooms", __name__)
logger = get_logger(__name__)


@rooms_bp.get("/rooms")
@login_required
def list_rooms():
    """Query params: status (optional)."""
    return jsonify(success_response(room_service.list_rooms(request.args.get("status"))))


@rooms_bp.get("/rooms/mine")
@login_required
def my_rooms():
    """Rooms assigned to the current waiter."""
    return jsonify(success_response(room_service.rooms_for_waiter(get_user_id())))


@rooms_bp.get("/rooms/<int:room_id>")
@login_required
def get_room(room_id: int):
    return jsonify(success_response(room_service.get_room(room_id)))


@rooms_bp.post("/rooms")
@management_required
def create_room():
    data = RoomRequest(**(request.get_json(silent=True) or {}))
    room = room_service.create_room(data.model_dump())
    return jsonify(success_response(room)), HTTPStatus.CREATED


@rooms_bp.put("/rooms/<int:room_id>")
@management_required
def update_room(room_id: int):
    data = RoomUpdateRequest(**(request.get_json(silent=True) or {}))
    return jsonify(success_response(room_service.update_room(room_id, data.model_dump(exclude_unset=True))))


@rooms_bp.delete("/rooms/<int:room_id>")
@management_required
def delete_room(room_id: int):
    room_service.delete_room(room_id)
    return jsonify(success_response({"id": room_id}))


@rooms_bp.put("/rooms/<int:room_id>/status")
@floor_staff_required
def set_room_status(room_id: int):
    data = RoomStatusRequest(**(request.get_json(silent=True) or {}))
    return jsonify(success_response(room_service.set_room_status(room_id, data.status)))


@rooms_bp.post("/rooms/<int:room_id>/start-session")
@floor_staff_required
def start_session(room_id: int):
    return jsonify(success_response(room_service.start_session(room_id)))


@rooms_bp.put("/rooms/<int:room_id>/waiter")
@management_required
def assign_waiter(room_id: int):
    data = AssignWaiterRequest(**(request.get_json(silent=True) or {}))
    return jsonify(success_response(room_service.assign_waiter(room_id, data.waiter_id)))


@rooms_bp.get("/rooms/<int:room_id>/timer")
@login_required
def room_timer(room_id: int):
    return jsonify(success_response(room_service.room_timer(room_id)))


@rooms_bp.get("/rooms/<int:room_id>/history")
@login_required
def room_history(room_id: int):
    limit = request.args.get("limit", default=50, type=int)
    return jsonify(success_response(room_service.room_history(room_id, limit=limit)))
