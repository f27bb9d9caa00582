"""
Inventory API - categories, products, stock movements and product images.
"""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request

from ktv_api.decorators import login_required, management_required
from ktv_shared.jwt_middleware import get_user_id
from ktv_shared.logging_config import get_logger
from ktv_shared.schemas import (
    CategoryRequest,
    ProductRequest,
    ProductUpdateRequest,
    StockAdjustmentRequest,
)
from ktv_shared.serializers import error_response, success_response
from ktv_shared.services import inventory_service

products_bp = Blueprint("products", __name__)
logger = get_logger(__name__)


# ==================== CATEGORIES ====================


@products_bp.get("/categories")
@login_required
def list_categories():
    return jsonify(success_response(inventory_service.list_categories()))


@products_bp.post("/categories")
@management_required
def create_category():
    data = CategoryRequest(**(request.get_json(silent=True) or {}))
    return jsonify(success_response(inventory_service.create_category(data.model_dump()))), HTTPStatus.CREATED


@products_bp.put("/categories/<int:category_id>")
@management_required
def update_category(category_id: int):
    data = CategoryRequest(**(request.get_json(silent=True) or {}))
    return jsonify(success_response(inventory_service.update_category(category_id, data.model_dump())))


@products_bp.delete("/categories/<int:category_id>")
@management_required
def delete_category(category_id: int):
    inventory_service.delete_category(category_id)
    return jsonify(success_response({"id": category_id}))


# ==================== PRODUCTS ====================


@products_bp.get("/products")
@login_required
def list_products():
    """
    Query params:
        - active: true to hide inactive products
        - category_id: int
        - search: matches names and SKU
    """
    active_only = request.args.get("active", "false").lower() in {"1", "true", "yes"}
    products = inventory_service.list_products(
        active_only=active_only,
        category_id=request.args.get("category_id", type=int),
        search=request.args.get("search"),
    )
    return jsonify(success_response(products))


@products_bp.get("/products/low-stock")
@login_required
def low_stock():
    return jsonify(success_response(inventory_service.low_stock_products()))


@products_bp.get("/products/<int:product_id>")
@login_required
def get_product(product_id: int):
    return jsonify(success_response(inventory_service.get_product(product_id)))


@products_bp.post("/products")
@management_required
def create_product():
    data = ProductRequest(**(request.get_json(silent=True) or {}))
    product = inventory_service.create_product(data.model_dump(), user_id=get_user_id())
    return jsonify(success_response(product)), HTTPStatus.CREATED


@products_bp.put("/products/<int:product_id>")
@management_required
def update_product(product_id: int):
    data = ProductUpdateRequest(**(request.get_json(silent=True) or {}))
    return jsonify(
        success_response(inventory_service.update_product(product_id, data.model_dump(exclude_unset=True)))
    )


@products_bp.delete("/products/<int:product_id>")
@management_required
def deactivate_product(product_id: int):
    """Products keep their sales history, so they are deactivated rather than deleted."""
    return jsonify(success_response(inventory_service.deactivate_product(product_id)))


@products_bp.post("/products/<int:product_id>/stock")
@management_required
def adjust_stock(product_id: int):
    """Body: {"quantity": non-zero int, "movement_type": "adjustment" | "return", "notes"?}"""
    data = StockAdjustmentRequest(**(request.get_json(silent=True) or {}))
    product = inventory_service.adjust_stock(
        product_id,
        data.quantity,
        movement_type=data.movement_type,
        notes=data.notes,
        user_id=get_user_id(),
    )
    return jsonify(success_response(product))


@products_bp.get("/stock-movements")
@login_required
def stock_movements():
    movements = inventory_service.list_stock_movements(
        product_id=request.args.get("product_id", type=int),
        limit=request.args.get("limit", default=100, type=int),
    )
    return jsonify(success_response(movements))


@products_bp.post("/products/<int:product_id>/image")
@management_required
def upload_image(product_id: int):
    """
    Form data:
    - file: image file
    """
    file = request.files.get("file")
    if not file or not file.filename:
        return jsonify(error_response("Select an image file")), HTTPStatus.BAD_REQUEST

    product = inventory_service.upload_product_image(
        product_id,
        file.filename,
        file.read(),
        current_app.config["STORAGE_BUCKET_PRODUCTS"],
    )
    return jsonify(success_response(product)), HTTPStatus.CREATED
