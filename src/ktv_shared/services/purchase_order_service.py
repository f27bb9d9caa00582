"""Purchase orders to suppliers; completing one receives the goods into stock."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ktv_shared.auth.service import AuthService
from ktv_shared.constants import MovementType, PurchaseStatus
from ktv_shared.currency import round_idr, to_decimal
from ktv_shared.datetime_utils import venue_now
from ktv_shared.db import get_session
from ktv_shared.logging_config import get_logger
from ktv_shared.models import PurchaseOrder, PurchaseOrderItem
from ktv_shared.serializers import serialize_purchase_order
from ktv_shared.services.inventory_service import load_product, move_stock
from ktv_shared.validation import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

logger = get_logger(__name__)


def generate_po_number(session: Session, day: date) -> str:
    """Next ``PO-YYYYMMDD-NNNN`` number for the day."""
    prefix = f"PO-{day:%Y%m%d}-"
    count = session.execute(
        select(func.count(PurchaseOrder.id)).where(PurchaseOrder.po_number.like(f"{prefix}%"))
    ).scalar_one()
    return f"{prefix}{count + 1:04d}"


def _load_order(session: Session, order_id: int) -> PurchaseOrder:
    order = session.get(PurchaseOrder, order_id)
    if order is None:
        raise NotFoundError("Purchase order not found")
    return order


def create_purchase_order(data: dict[str, Any], requested_by: int | None) -> dict[str, Any]:
    items = data.get("items") or []
    if not items:
        raise ValidationError("Purchase order needs at least one item")

    with get_session() as session:
        order = PurchaseOrder(
            po_number=generate_po_number(session, venue_now().date()),
            supplier_name=data["supplier_name"],
            notes=data.get("notes"),
            requested_by=requested_by,
            status=PurchaseStatus.PENDING.value,
        )
        total = Decimal("0")
        for item in items:
            quantity = int(item["quantity"])
            unit_cost = to_decimal(item["unit_cost"])
            if quantity <= 0:
                raise ValidationError("Quantity must be greater than zero")
            if unit_cost <= 0:
                raise ValidationError("Unit cost must be greater than zero")
            load_product(session, item["product_id"])
            subtotal = round_idr(unit_cost * quantity)
            order.items.append(
                PurchaseOrderItem(
                    product_id=item["product_id"],
                    quantity=quantity,
                    unit_cost=unit_cost,
                    subtotal=subtotal,
                )
            )
            total += subtotal
        order.total_amount = total

        session.add(order)
        session.flush()
        logger.info(f"Created purchase order {order.po_number} for {order.supplier_name}: {total}")
        return serialize_purchase_order(order)


def list_purchase_orders(status: str | None = None) -> list[dict[str, Any]]:
    with get_session() as session:
        stmt = select(PurchaseOrder).order_by(PurchaseOrder.created_at.desc(), PurchaseOrder.id.desc())
        if status:
            stmt = stmt.where(PurchaseOrder.status == status)
        return [serialize_purchase_order(o) for o in session.execute(stmt).scalars().all()]


def get_purchase_order(order_id: int) -> dict[str, Any]:
    with get_session() as session:
        return serialize_purchase_order(_load_order(session, order_id))


def _decide(order_id: int, user_id: int, status: str) -> dict[str, Any]:
    with get_session() as session:
        if not AuthService.has_management_access(user_id, session=session):
            raise PermissionDeniedError("Only owners and managers can decide purchase orders")
        order = _load_order(session, order_id)
        if order.status != PurchaseStatus.PENDING.value:
            raise ConflictError(f"Purchase order is already {order.status}")
        order.status = status
        order.approved_by = user_id
        order.approved_at = venue_now()
        session.flush()
        logger.info(f"Purchase order {order.po_number} {status} by user {user_id}")
        return serialize_purchase_order(order)


def approve_purchase_order(order_id: int, user_id: int) -> dict[str, Any]:
    return _decide(order_id, user_id, PurchaseStatus.APPROVED.value)


def reject_purchase_order(order_id: int, user_id: int) -> dict[str, Any]:
    return _decide(order_id, user_id, PurchaseStatus.REJECTED.value)


def complete_purchase_order(order_id: int, user_id: int | None = None) -> dict[str, Any]:
    """Receive an approved order: every line is added to stock as a purchase movement."""
    with get_session() as session:
        order = _load_order(session, order_id)
        if order.status != PurchaseStatus.APPROVED.value:
            raise ConflictError("Only approved purchase orders can be completed")

        for item in order.items:
            move_stock(
                session,
                load_product(session, item.product_id),
                item.quantity,
                MovementType.PURCHASE.value,
                reference_id=order.id,
                reference_type="purchase_order",
                notes=order.po_number,
                user_id=user_id,
            )
        order.status = PurchaseStatus.COMPLETED.value
        order.completed_at = venue_now()
        session.flush()
        logger.info(f"Completed purchase order {order.po_number}: {len(order.items)} lines received")
        return serialize_purchase_order(order)
