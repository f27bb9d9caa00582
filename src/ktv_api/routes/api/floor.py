"""
Floor operations API - cleaning tasks and waiter F&B orders.
"""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from ktv_api.decorators import floor_staff_required, login_required
from ktv_shared.jwt_middleware import get_user_id
from ktv_shared.schemas import (
    CleaningTaskRequest,
    FBOrderRequest,
    FBOrderStatusRequest,
    TaskStatusRequest,
)
from ktv_shared.serializers import success_response
from ktv_shared.services import fb_order_service, task_service

floor_bp = Blueprint("floor", __name__)


# ==================== CLEANING TASKS ====================


@floor_bp.get("/tasks")
@login_required
def list_tasks():
    """Query params: status, assigned_to (use "me" for the current user)"""
    assigned_to = request.args.get("assigned_to")
    if assigned_to == "me":
        assignee = get_user_id()
    else:
        assignee = request.args.get("assigned_to", type=int)
    tasks = task_service.list_tasks(status=request.args.get("status"), assigned_to=assignee)
    return jsonify(success_response(tasks))


@floor_bp.get("/tasks/history")
@login_required
def task_history():
    user_id = request.args.get("user_id", default=get_user_id(), type=int)
    limit = request.args.get("limit", default=50, type=int)
    return jsonify(success_response(task_service.task_history(user_id, limit=limit)))


@floor_bp.post("/tasks")
@floor_staff_required
def create_task():
    data = CleaningTaskRequest(**(request.get_json(silent=True) or {}))
    task = task_service.create_task(data.model_dump(), assigned_by=get_user_id())
    return jsonify(success_response(task)), HTTPStatus.CREATED


@floor_bp.put("/tasks/<int:task_id>/status")
@floor_staff_required
def update_task_status(task_id: int):
    data = TaskStatusRequest(**(request.get_json(silent=True) or {}))
    return jsonify(success_response(task_service.update_task_status(task_id, data.status)))


# ==================== F&B ORDERS ====================


@floor_bp.get("/fb-orders")
@login_required
def open_orders():
    return jsonify(
        success_response(fb_order_service.list_open_orders(room_id=request.args.get("room_id", type=int)))
    )


@floor_bp.get("/rooms/<int:room_id>/fb-orders")
@login_required
def room_orders(room_id: int):
    return jsonify(success_response(fb_order_service.list_room_orders(room_id)))


@floor_bp.post("/fb-orders")
@floor_staff_required
def create_order():
    data = FBOrderRequest(**(request.get_json(silent=True) or {}))
    order = fb_order_service.create_order(
        data.room_id,
        [item.model_dump() for item in data.items],
        get_user_id(),
        notes=data.notes,
    )
    return jsonify(success_response(order)), HTTPStatus.CREATED


@floor_bp.put("/fb-orders/<int:order_id>/status")
@floor_staff_required
def update_order_status(order_id: int):
    data = FBOrderStatusRequest(**(request.get_json(silent=True) or {}))
    return jsonify(success_response(fb_order_service.update_order_status(order_id, data.status)))
