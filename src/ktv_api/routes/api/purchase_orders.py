"""Purchase orders API."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from ktv_api.decorators import finance_required, management_required
from ktv_shared.jwt_middleware import get_user_id
from ktv_shared.schemas import PurchaseOrderRequest
from ktv_shared.serializers import success_response
from ktv_shared.services import purchase_order_service

purchase_orders_bp = Blueprint("purchase_orders", __name__)


@purchase_orders_bp.get("/purchase-orders")
@finance_required
def list_orders():
    return jsonify(
        success_response(purchase_order_service.list_purchase_orders(status=request.args.get("status")))
    )


@purchase_orders_bp.get("/purchase-orders/<int:order_id>")
@finance_required
def get_order(order_id: int):
    return jsonify(success_response(purchase_order_service.get_purchase_order(order_id)))


@purchase_orders_bp.post("/purchase-orders")
@finance_required
def create_order():
    data = PurchaseOrderRequest(**(request.get_json(silent=True) or {}))
    order = purchase_order_service.create_purchase_order(data.model_dump(), requested_by=get_user_id())
    return jsonify(success_response(order)), HTTPStatus.CREATED


@purchase_orders_bp.post("/purchase-orders/<int:order_id>/approve")
@management_required
def approve_order(order_id: int):
    return jsonify(success_response(purchase_order_service.approve_purchase_order(order_id, get_user_id())))


@purchase_orders_bp.post("/purchase-orders/<int:order_id>/reject")
@management_required
def reject_order(order_id: int):
    return jsonify(success_response(purchase_order_service.reject_purchase_order(order_id, get_user_id())))


@purchase_orders_bp.post("/purchase-orders/<int:order_id>/complete")
@finance_required
def complete_order(order_id: int):
    """Goods received: adds every item to stock."""
    return jsonify(
        success_response(purchase_order_service.complete_purchase_order(order_id, get_user_id()))
    )
