"""
Approval requests API - discounts and minimum charges raised by floor staff
and decided by management.
"""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from ktv_api.decorators import floor_staff_required, login_required, management_required
from ktv_shared.jwt_middleware import get_user_id
from ktv_shared.schemas import ApprovalCreateRequest
from ktv_shared.serializers import success_response
from ktv_shared.services import approval_service

approvals_bp = Blueprint("approvals", __name__)


@approvals_bp.get("/approvals")
@login_required
def list_approvals():
    """Query params: status (pending/approved/rejected), limit"""
    requests_ = approval_service.list_requests(
        status=request.args.get("status"),
        limit=request.args.get("limit", default=100, type=int),
    )
    return jsonify(success_response(requests_))


@approvals_bp.post("/approvals")
@floor_staff_required
def create_approval():
    data = ApprovalCreateRequest(**(request.get_json(silent=True) or {}))
    created = approval_service.create_request(get_user_id(), data.model_dump())
    return jsonify(success_response(created)), HTTPStatus.CREATED


@approvals_bp.post("/approvals/<int:request_id>/approve")
@management_required
def approve(request_id: int):
    return jsonify(success_response(approval_service.approve_request(request_id, get_user_id())))


@approvals_bp.post("/approvals/<int:request_id>/reject")
@management_required
def reject(request_id: int):
    return jsonify(success_response(approval_service.reject_request(request_id, get_user_id())))
