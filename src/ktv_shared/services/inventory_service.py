"""Service for the bar/kitchen inventory: categories, products and stock movements."""

from __future__ import annotations

import mimetypes
import uuid
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from ktv_shared.constants import MovementType, RealtimeChannel
from ktv_shared.currency import to_decimal
from ktv_shared.db import get_session
from ktv_shared.logging_config import get_logger
from ktv_shared.models import Category, Product, StockMovement
from ktv_shared.serializers import serialize_category, serialize_product, serialize_stock_movement
from ktv_shared.supabase.realtime import INSERT, UPDATE, emit_change
from ktv_shared.supabase.storage import SupabaseStorage
from ktv_shared.validation import ConflictError, NotFoundError, ValidationError

logger = get_logger(__name__)


def load_product(session: Session, product_id: int) -> Product:
    product = session.get(Product, product_id)
    if product is None:
        raise NotFoundError(f"Product {product_id} not found")
    return product


def _emit_product(session: Session, product: Product, event: str = UPDATE) -> None:
    emit_change(
        session,
        RealtimeChannel.PRODUCTS,
        event,
        product.id,
        {"stock_quantity": product.stock_quantity, "is_active": product.is_active},
    )


def move_stock(
    session: Session,
    product: Product,
    quantity: int,
    movement_type: str,
    reference_id: int | None = None,
    reference_type: str | None = None,
    notes: str | None = None,
    user_id: int | None = None,
) -> StockMovement:
    """
    Apply a signed stock change and log it.

    ``quantity`` is positive for stock coming in and negative for stock going
    out. Stock can never drop below zero.
    """
    new_level = product.stock_quantity + quantity
    if new_level < 0:
        raise ConflictError(
            f"Insufficient stock for {product.name_en}: "
            f"{product.stock_quantity} available, {abs(quantity)} requested"
        )
    product.stock_quantity = new_level
    movement = StockMovement(
        product_id=product.id,
        movement_type=movement_type,
        quantity=quantity,
        reference_id=reference_id,
        reference_type=reference_type,
        notes=notes,
        created_by=user_id,
    )
    session.add(movement)
    _emit_product(session, product)
    if product.is_low_stock:
        logger.warning(
            f"Product {product.id} ({product.sku}) low on stock: "
            f"{product.stock_quantity} <= {product.min_stock_level}"
        )
    return movement


# ==================== CATEGORIES ====================


def list_categories() -> list[dict[str, Any]]:
    with get_session() as session:
        categories = session.execute(select(Category).order_by(Category.name_en)).scalars().all()
        return [serialize_category(c) for c in categories]


def create_category(data: dict[str, Any]) -> dict[str, Any]:
    with get_session() as session:
        category = Category(
            name_id=data["name_id"], name_en=data["name_en"], type=data.get("type") or "food"
        )
        session.add(category)
        session.flush()
        logger.info(f"Created category {category.id}: {category.name_en}")
        return serialize_category(category)


def update_category(category_id: int, data: dict[str, Any]) -> dict[str, Any]:
    with get_session() as session:
        category = session.get(Category, category_id)
        if category is None:
            raise NotFoundError("Category not found")
        for field in ("name_id", "name_en", "type"):
            if data.get(field) is not None:
                setattr(category, field, data[field])
        session.flush()
        return serialize_category(category)


def delete_category(category_id: int) -> None:
    with get_session() as session:
        category = session.get(Category, category_id)
        if category is None:
            raise NotFoundError("Category not found")
        in_use = session.execute(
            select(Product.id).where(Product.category_id == category_id).limit(1)
        ).scalar_one_or_none()
        if in_use is not None:
            raise ConflictError("Category still has products")
        session.delete(category)
        logger.info(f"Deleted category {category_id}")


# ==================== PRODUCTS ====================


def list_products(
    active_only: bool = False,
    category_id: int | None = None,
    search: str | None = None,
) -> list[dict[str, Any]]:
    with get_session() as session:
        stmt = select(Product).order_by(Product.name_en)
        if active_only:
            stmt = stmt.where(Product.is_active.is_(True))
        if category_id:
            stmt = stmt.where(Product.category_id == category_id)
        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(
                or_(
                    Product.name_en.ilike(pattern),
                    Product.name_id.ilike(pattern),
                    Product.sku.ilike(pattern),
                )
            )
        return [serialize_product(p) for p in session.execute(stmt).scalars().all()]


def get_product(product_id: int) -> dict[str, Any]:
    with get_session() as session:
        return serialize_product(load_product(session, product_id))


def create_product(data: dict[str, Any], user_id: int | None = None) -> dict[str, Any]:
    with get_session() as session:
        if session.get(Category, data["category_id"]) is None:
            raise ValidationError("Category not found")
        duplicate = session.execute(
            select(Product.id).where(Product.sku == data["sku"])
        ).scalar_one_or_none()
        if duplicate is not None:
            raise ConflictError(f"SKU {data['sku']} already exists")

        product = Product(
            name_id=data["name_id"],
            name_en=data["name_en"],
            description_id=data.get("description_id"),
            description_en=data.get("description_en"),
            sku=data["sku"],
            category_id=data["category_id"],
            price=to_decimal(data["price"]),
            cost=to_decimal(data["cost"]),
            stock_quantity=0,
            is_active=data.get("is_active", True),
        )
        if data.get("min_stock_level") is not None:
            product.min_stock_level = data["min_stock_level"]
        session.add(product)
        session.flush()

        opening_stock = int(data.get("stock_quantity") or 0)
        if opening_stock:
            move_stock(
                session,
                product,
                opening_stock,
                MovementType.ADJUSTMENT.value,
                notes="Opening stock",
                user_id=user_id,
            )
        _emit_product(session, product, INSERT)
        session.flush()

        logger.info(f"Created product {product.id}: {product.sku}")
        return serialize_product(product)


def update_product(product_id: int, data: dict[str, Any]) -> dict[str, Any]:
    """Update product details. Stock levels only change through movements."""
    with get_session() as session:
        product = load_product(session, product_id)
        if data.get("sku") and data["sku"] != product.sku:
            duplicate = session.execute(
                select(Product.id).where(Product.sku == data["sku"], Product.id != product_id)
            ).scalar_one_or_none()
            if duplicate is not None:
                raise ConflictError(f"SKU {data['sku']} already exists")
            product.sku = data["sku"]
        if data.get("category_id") is not None:
            if session.get(Category, data["category_id"]) is None:
                raise ValidationError("Category not found")
            product.category_id = data["category_id"]

        for field in (
            "name_id",
            "name_en",
            "description_id",
            "description_en",
            "min_stock_level",
            "is_active",
        ):
            if field in data and data[field] is not None:
                setattr(product, field, data[field])
        for field in ("price", "cost"):
            if data.get(field) is not None:
                setattr(product, field, to_decimal(data[field]))

        session.flush()
        session.refresh(product)
        _emit_product(session, product)
        logger.info(f"Updated product {product.id}")
        return serialize_product(product)


def deactivate_product(product_id: int) -> dict[str, Any]:
    return update_product(product_id, {"is_active": False})


def adjust_stock(
    product_id: int,
    quantity: int,
    movement_type: str = MovementType.ADJUSTMENT.value,
    notes: str | None = None,
    user_id: int | None = None,
) -> dict[str, Any]:
    """Manual stock correction (stock take) or customer return."""
    if movement_type not in (MovementType.ADJUSTMENT.value, MovementType.RETURN.value):
        raise ValidationError("Manual movements must be adjustments or returns")
    if quantity == 0:
        raise ValidationError("Quantity must not be zero")
    if movement_type == MovementType.RETURN.value and quantity < 0:
        raise ValidationError("Returns add stock; quantity must be positive")

    with get_session() as session:
        product = load_product(session, product_id)
        move_stock(
            session,
            product,
            quantity,
            movement_type,
            reference_type="manual",
            notes=notes,
            user_id=user_id,
        )
        session.flush()
        logger.info(f"Stock {movement_type} {quantity:+d} on product {product.id}")
        return serialize_product(product)


def low_stock_products() -> list[dict[str, Any]]:
    with get_session() as session:
        products = (
            session.execute(
                select(Product)
                .where(
                    Product.is_active.is_(True),
                    Product.stock_quantity <= Product.min_stock_level,
                )
                .order_by(Product.stock_quantity)
            )
            .scalars()
            .all()
        )
        return [serialize_product(p) for p in products]


def list_stock_movements(product_id: int | None = None, limit: int = 100) -> list[dict[str, Any]]:
    with get_session() as session:
        stmt = select(StockMovement).order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
        if product_id:
            stmt = stmt.where(StockMovement.product_id == product_id)
        movements = session.execute(stmt.limit(limit)).scalars().all()
        return [serialize_stock_movement(m) for m in movements]


def upload_product_image(
    product_id: int, filename: str, content: bytes, bucket: str
) -> dict[str, Any]:
    """Store an image in the Supabase bucket and point the product at it."""
    if not content:
        raise ValidationError("Image file is empty")
    content_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
    if not content_type.startswith("image/"):
        raise ValidationError("Only image files can be uploaded")

    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else "jpg"
    path = f"products/{product_id}/{uuid.uuid4().hex}.{extension}"

    with get_session() as session:
        product = load_product(session, product_id)
        SupabaseStorage.upload_bytes(bucket, path, content, content_type)
        product.image_url = SupabaseStorage.get_public_url(bucket, path)
        session.flush()
        _emit_product(session, product)
        logger.info(f"Uploaded image for product {product.id} to {bucket}/{path}")
        return serialize_product(product)
