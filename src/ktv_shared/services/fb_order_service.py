"""Food & beverage orders taken by waiters for occupied rooms."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from sqlalchemy import select

from ktv_shared.constants import (
    FB_ORDER_TRANSITIONS,
    FBOrderStatus,
    RealtimeChannel,
    RoomStatus,
)
from ktv_shared.currency import round_idr, to_decimal
from ktv_shared.db import get_session
from ktv_shared.logging_config import get_logger
from ktv_shared.models import FBOrder, FBOrderItem
from ktv_shared.serializers import serialize_fb_order
from ktv_shared.services.inventory_service import load_product
from ktv_shared.services.room_service import load_room
from ktv_shared.supabase.realtime import INSERT, UPDATE, emit_change
from ktv_shared.validation import ConflictError, NotFoundError, ValidationError

logger = get_logger(__name__)


def create_order(
    room_id: int,
    items: list[dict[str, Any]],
    waiter_id: int | None,
    notes: str | None = None,
) -> dict[str, Any]:
    """
    Take an order for a room. Stock is checked now and deducted when the room
    checks out.
    """
    if not items:
        raise ValidationError("Order needs at least one item")

    with get_session() as session:
        room = load_room(session, room_id)
        if room.status != RoomStatus.OCCUPIED.value:
            raise ConflictError("Orders can only be placed for occupied rooms")

        order = FBOrder(
            room_id=room.id,
            waiter_id=waiter_id,
            notes=notes,
            status=FBOrderStatus.PENDING.value,
        )
        total = Decimal("0")
        for item in items:
            quantity = int(item.get("quantity") or 0)
            if quantity < 1:
                raise ValidationError("Quantity must be at least 1")
            product = load_product(session, item["product_id"])
            if not product.is_active:
                raise ValidationError(f"{product.name_en} is not available")
            if quantity > product.stock_quantity:
                raise ConflictError(
                    f"Insufficient stock for {product.name_en}: "
                    f"{product.stock_quantity} available"
                )
            subtotal = round_idr(to_decimal(product.price) * quantity)
            order.items.append(
                FBOrderItem(
                    product_id=product.id,
                    quantity=quantity,
                    unit_price=product.price,
                    subtotal=subtotal,
                )
            )
            total += subtotal
        order.total_amount = total

        session.add(order)
        session.flush()
        emit_change(
            session,
            RealtimeChannel.FB_ORDERS,
            INSERT,
            order.id,
            {"room_id": room.id, "status": order.status, "total_amount": total},
        )
        logger.info(f"F&B order {order.id} for room {room.id}: {len(items)} lines, {total}")
        return serialize_fb_order(order)


def update_order_status(order_id: int, status: str) -> dict[str, Any]:
    with get_session() as session:
        order = session.get(FBOrder, order_id)
        if order is None:
            raise NotFoundError("Order not found")
        if status not in FB_ORDER_TRANSITIONS.get(order.status, set()):
            raise ConflictError(f"Cannot change order from {order.status} to {status}")
        order.status = status
        session.flush()
        emit_change(
            session, RealtimeChannel.FB_ORDERS, UPDATE, order.id, {"status": status}
        )
        logger.info(f"F&B order {order.id} -> {status}")
        return serialize_fb_order(order)


def list_open_orders(room_id: int | None = None) -> list[dict[str, Any]]:
    with get_session() as session:
        stmt = (
            select(FBOrder)
            .where(FBOrder.status.in_(FBOrderStatus.open_values()))
            .order_by(FBOrder.created_at, FBOrder.id)
        )
        if room_id:
            stmt = stmt.where(FBOrder.room_id == room_id)
        return [serialize_fb_order(o) for o in session.execute(stmt).scalars().all()]


def list_room_orders(room_id: int) -> list[dict[str, Any]]:
    with get_session() as session:
        orders = (
            session.execute(
                select(FBOrder).where(FBOrder.room_id == room_id).order_by(FBOrder.created_at.desc())
            )
            .scalars()
            .all()
        )
        return [serialize_fb_order(o) for o in orders]
