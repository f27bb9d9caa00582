"""
Cashier/POS transactions: room checkout, direct F&B sales, other income,
bill splitting and approval adjustments.
"""

from __future__ import annotations

import math
from collections import OrderedDict
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from ktv_shared.constants import (
    MAX_SPLIT_PARTS,
    MIN_SPLIT_PARTS,
    ApprovalRequestType,
    ApprovalStatus,
    FBOrderStatus,
    MovementType,
    PaymentMethod,
    RealtimeChannel,
    RoomStatus,
    TransactionType,
)
from ktv_shared.currency import calculate_total, round_idr, split_amount, to_decimal
from ktv_shared.datetime_utils import parse_date, venue_now
from ktv_shared.db import get_session
from ktv_shared.logging_config import get_logger
from ktv_shared.models import ApprovalRequest, FBOrder, SalesItem, Transaction
from ktv_shared.serializers import serialize_approval, serialize_fb_order, serialize_transaction
from ktv_shared.services.inventory_service import load_product, move_stock
from ktv_shared.services.room_service import load_room
from ktv_shared.services.tax_service import active_tax_rate, configured_service_charge_rate
from ktv_shared.supabase.realtime import INSERT, UPDATE, emit_change
from ktv_shared.validation import ConflictError, NotFoundError, ValidationError

logger = get_logger(__name__)


def _check_payment_method(payment_method: str) -> None:
    if payment_method not in {m.value for m in PaymentMethod}:
        raise ValidationError(f"Invalid payment method: {payment_method}")


def _emit_transaction(session: Session, tx: Transaction, event: str = INSERT) -> None:
    emit_change(
        session,
        RealtimeChannel.TRANSACTIONS,
        event,
        tx.id,
        {
            "transaction_type": tx.transaction_type,
            "payment_method": tx.payment_method,
            "amount": tx.effective_amount,
            "room_id": tx.room_id,
        },
    )


def load_transaction(session: Session, transaction_id: int) -> Transaction:
    tx = session.get(Transaction, transaction_id)
    if tx is None:
        raise NotFoundError("Transaction not found")
    return tx


def adjust_subtotal(
    gross: Decimal, approvals: list[ApprovalRequest]
) -> tuple[Decimal, Decimal]:
    """
    Apply approved adjustments to a gross subtotal.

    A minimum charge lifts the subtotal to at least its amount, then
    discounts are taken off (never below zero). Returns (adjusted, discount).
    """
    minimum = max(
        (
            to_decimal(a.amount)
            for a in approvals
            if a.request_type == ApprovalRequestType.MINIMUM_CHARGE.value
        ),
        default=Decimal("0"),
    )
    raised = max(gross, minimum)
    discount = sum(
        (
            to_decimal(a.amount)
            for a in approvals
            if a.request_type == ApprovalRequestType.DISCOUNT.value
        ),
        Decimal("0"),
    )
    discount = min(discount, raised)
    return round_idr(raised - discount), round_idr(discount)


def _apply_totals(tx: Transaction, approvals: list[ApprovalRequest]) -> None:
    adjusted, discount = adjust_subtotal(to_decimal(tx.subtotal), approvals)
    totals = calculate_total(adjusted, tx.tax_rate, tx.service_charge_rate)
    tx.discount_amount = discount
    tx.service_charge = totals["service_charge"]
    tx.tax_amount = totals["tax_amount"]
    tx.final_amount = totals["final_amount"]
    tx.amount = totals["final_amount"]


def _linked_approvals(session: Session, tx: Transaction) -> list[ApprovalRequest]:
    return list(
        session.execute(
            select(ApprovalRequest).where(
                ApprovalRequest.transaction_id == tx.id,
                ApprovalRequest.status == ApprovalStatus.APPROVED.value,
                ApprovalRequest.applied_at.is_not(None),
            )
        )
        .scalars()
        .all()
    )


# ==================== ROOM CHECKOUT ====================


def _room_bill(session: Session, room_id: int, now: datetime) -> dict[str, Any]:
    room = load_room(session, room_id)
    if room.status != RoomStatus.OCCUPIED.value or room.current_session_start is None:
        raise ConflictError("Room has no active session")

    elapsed = (now - room.current_session_start).total_seconds() / 3600
    hours = max(1, math.ceil(elapsed))
    room_cost = round_idr(hours * to_decimal(room.hourly_rate))

    orders = list(
        session.execute(
            select(FBOrder)
            .where(
                FBOrder.room_id == room.id,
                FBOrder.transaction_id.is_(None),
                FBOrder.status != FBOrderStatus.CANCELLED.value,
                FBOrder.created_at >= room.current_session_start,
            )
            .order_by(FBOrder.id)
        )
        .scalars()
        .all()
    )
    items_cost = round_idr(sum((to_decimal(o.total_amount) for o in orders), Decimal("0")))

    approvals = list(
        session.execute(
            select(ApprovalRequest)
            .where(
                ApprovalRequest.room_id == room.id,
                ApprovalRequest.status == ApprovalStatus.APPROVED.value,
                ApprovalRequest.applied_at.is_(None),
                ApprovalRequest.transaction_id.is_(None),
            )
            .order_by(ApprovalRequest.id)
        )
        .scalars()
        .all()
    )

    gross = room_cost + items_cost
    adjusted, discount = adjust_subtotal(gross, approvals)
    tax_rate = active_tax_rate(session)
    service_rate = configured_service_charge_rate()
    totals = calculate_total(adjusted, tax_rate, service_rate)

    return {
        "room": room,
        "orders": orders,
        "approvals": approvals,
        "hours": hours,
        "room_cost": room_cost,
        "items_cost": items_cost,
        "gross": gross,
        "discount": discount,
        "adjusted": adjusted,
        "tax_rate": tax_rate,
        "service_charge_rate": service_rate,
        "totals": totals,
    }


def _bill_summary(bill: dict[str, Any], now: datetime) -> dict[str, Any]:
    room = bill["room"]
    totals = bill["totals"]
    return {
        "room_id": room.id,
        "room_name": room.room_name,
        "session_start": room.current_session_start.isoformat(),
        "session_end": now.isoformat(),
        "duration_hours": bill["hours"],
        "hourly_rate": float(room.hourly_rate),
        "room_cost": float(bill["room_cost"]),
        "items_cost": float(bill["items_cost"]),
        "gross_subtotal": float(bill["gross"]),
        "discount_amount": float(bill["discount"]),
        "subtotal": float(totals["subtotal"]),
        "service_charge_rate": float(bill["service_charge_rate"]),
        "service_charge": float(totals["service_charge"]),
        "tax_rate": float(bill["tax_rate"]),
        "tax_amount": float(totals["tax_amount"]),
        "final_amount": float(totals["final_amount"]),
        "orders": [serialize_fb_order(o) for o in bill["orders"]],
        "approvals": [serialize_approval(a) for a in bill["approvals"]],
    }


def quote_checkout(room_id: int, now: datetime | None = None) -> dict[str, Any]:
    """The bill the room would pay if it checked out now. Nothing is written."""
    now = now or venue_now()
    with get_session() as session:
        return _bill_summary(_room_bill(session, room_id, now), now)


def checkout_room(
    room_id: int,
    payment_method: str,
    cashier_id: int | None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Close a room session: bill hours plus unbilled F&B orders, apply
    approved adjustments, record the payment and free the room.
    """
    _check_payment_method(payment_method)
    now = now or venue_now()

    with get_session() as session:
        bill = _room_bill(session, room_id, now)
        room = bill["room"]
        totals = bill["totals"]

        tx = Transaction(
            transaction_type=TransactionType.ROOM_RENTAL.value,
            payment_method=payment_method,
            amount=totals["final_amount"],
            subtotal=bill["gross"],
            discount_amount=bill["discount"],
            service_charge_rate=bill["service_charge_rate"],
            service_charge=totals["service_charge"],
            tax_rate=bill["tax_rate"],
            tax_amount=totals["tax_amount"],
            final_amount=totals["final_amount"],
            description=f"{room.room_name} - {bill['hours']} hours",
            room_id=room.id,
            cashier_id=cashier_id,
            session_start=room.current_session_start,
            session_end=now,
            duration_hours=Decimal(bill["hours"]),
            created_at=now,
        )
        session.add(tx)
        session.flush()

        for order in bill["orders"]:
            for item in order.items:
                tx.items.append(
                    SalesItem(
                        product_id=item.product_id,
                        quantity=item.quantity,
                        unit_price=item.unit_price,
                        subtotal=item.subtotal,
                    )
                )
                move_stock(
                    session,
                    item.product,
                    -item.quantity,
                    MovementType.SALE.value,
                    reference_id=tx.id,
                    reference_type="transaction",
                    user_id=cashier_id,
                )
            order.transaction_id = tx.id
            order.status = FBOrderStatus.SERVED.value
            emit_change(
                session, RealtimeChannel.FB_ORDERS, UPDATE, order.id, {"status": order.status}
            )

        for approval in bill["approvals"]:
            approval.transaction_id = tx.id
            approval.applied_at = now
            emit_change(
                session,
                RealtimeChannel.APPROVAL_REQUESTS,
                UPDATE,
                approval.id,
                {"status": approval.status, "transaction_id": tx.id},
            )

        room.status = RoomStatus.AVAILABLE.value
        room.current_session_start = None
        emit_change(session, RealtimeChannel.ROOMS, UPDATE, room.id, {"status": room.status})
        _emit_transaction(session, tx)
        session.flush()

        logger.info(
            f"Checked out room {room.id}: {bill['hours']}h, items {bill['items_cost']}, "
            f"discount {bill['discount']}, total {tx.final_amount} via {payment_method}"
        )
        return serialize_transaction(tx, include_items=True)


# ==================== DIRECT SALES ====================


def _merge_cart(items: list[dict[str, Any]]) -> OrderedDict[int, int]:
    merged: OrderedDict[int, int] = OrderedDict()
    for item in items:
        quantity = int(item.get("quantity") or 0)
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")
        merged[item["product_id"]] = merged.get(item["product_id"], 0) + quantity
    if not merged:
        raise ValidationError("Cart is empty")
    return merged


def sell_items(
    items: list[dict[str, Any]],
    payment_method: str,
    cashier_id: int | None,
    room_id: int | None = None,
) -> dict[str, Any]:
    """Sell food and drinks over the counter (or to a room) and take payment at once."""
    _check_payment_method(payment_method)
    cart = _merge_cart(items)

    with get_session() as session:
        room = load_room(session, room_id) if room_id else None

        lines = []
        for product_id, quantity in cart.items():
            product = load_product(session, product_id)
            if not product.is_active:
                raise ValidationError(f"{product.name_en} is not available")
            if quantity > product.stock_quantity:
                raise ConflictError(
                    f"Insufficient stock for {product.name_en}: "
                    f"{product.stock_quantity} available"
                )
            lines.append((product, quantity))

        subtotal = round_idr(
            sum((to_decimal(p.price) * q for p, q in lines), Decimal("0"))
        )
        tax_rate = active_tax_rate(session)
        service_rate = configured_service_charge_rate()
        totals = calculate_total(subtotal, tax_rate, service_rate)

        tx = Transaction(
            transaction_type=TransactionType.FOOD_BEVERAGE.value,
            payment_method=payment_method,
            amount=totals["final_amount"],
            subtotal=subtotal,
            service_charge_rate=service_rate,
            service_charge=totals["service_charge"],
            tax_rate=tax_rate,
            tax_amount=totals["tax_amount"],
            final_amount=totals["final_amount"],
            description=(
                f"F&B - {room.room_name}" if room else f"F&B - {len(lines)} item(s)"
            ),
            room_id=room.id if room else None,
            cashier_id=cashier_id,
        )
        session.add(tx)
        session.flush()

        for product, quantity in lines:
            tx.items.append(
                SalesItem(
                    product_id=product.id,
                    quantity=quantity,
                    unit_price=product.price,
                    subtotal=round_idr(to_decimal(product.price) * quantity),
                )
            )
            move_stock(
                session,
                product,
                -quantity,
                MovementType.SALE.value,
                reference_id=tx.id,
                reference_type="transaction",
                user_id=cashier_id,
            )
        _emit_transaction(session, tx)
        session.flush()

        logger.info(f"F&B sale {tx.id}: {len(lines)} lines, total {tx.final_amount}")
        return serialize_transaction(tx, include_items=True)


def record_transaction(
    amount: Any,
    payment_method: str,
    cashier_id: int | None,
    description: str | None = None,
    room_id: int | None = None,
) -> dict[str, Any]:
    """Record miscellaneous income that is not a room or F&B sale."""
    _check_payment_method(payment_method)
    value = round_idr(amount)
    if value <= 0:
        raise ValidationError("Amount must be greater than zero")

    with get_session() as session:
        if room_id:
            load_room(session, room_id)
        tx = Transaction(
            transaction_type=TransactionType.OTHER.value,
            payment_method=payment_method,
            amount=value,
            subtotal=value,
            final_amount=value,
            description=description,
            room_id=room_id,
            cashier_id=cashier_id,
        )
        session.add(tx)
        session.flush()
        _emit_transaction(session, tx)
        logger.info(f"Recorded other income {tx.id}: {value} via {payment_method}")
        return serialize_transaction(tx)


# ==================== QUERIES ====================


def get_transaction(transaction_id: int) -> dict[str, Any]:
    with get_session() as session:
        return serialize_transaction(load_transaction(session, transaction_id), include_items=True)


def list_transactions(
    date_from: date | str | None = None,
    date_to: date | str | None = None,
    room_id: int | None = None,
    transaction_type: str | None = None,
    payment_method: str | None = None,
    cashier_id: int | None = None,
    limit: int = 200,
) -> list[dict[str, Any]]:
    date_from = parse_date(date_from, "from")
    date_to = parse_date(date_to, "to")

    with get_session() as session:
        stmt = select(Transaction)
        if date_from:
            stmt = stmt.where(Transaction.created_at >= datetime.combine(date_from, datetime.min.time()))
        if date_to:
            stmt = stmt.where(Transaction.created_at <= datetime.combine(date_to, datetime.max.time()))
        if room_id:
            stmt = stmt.where(Transaction.room_id == room_id)
        if transaction_type:
            stmt = stmt.where(Transaction.transaction_type == transaction_type)
        if payment_method:
            stmt = stmt.where(Transaction.payment_method == payment_method)
        if cashier_id:
            stmt = stmt.where(Transaction.cashier_id == cashier_id)
        rows = (
            session.execute(stmt.order_by(Transaction.created_at.desc()).limit(limit))
            .scalars()
            .all()
        )
        return [serialize_transaction(t) for t in rows]


# ==================== ADJUSTMENTS ====================


def split_bill(
    total: Any,
    parts: int,
    mode: str = "equal",
    amounts: list[Any] | None = None,
) -> list[float]:
    """
    Split a bill between ``parts`` payers.

    Equal splits are whole rupiah with the remainder on the first share;
    custom splits must add up to the total exactly.
    """
    if parts < MIN_SPLIT_PARTS or parts > MAX_SPLIT_PARTS:
        raise ValidationError(f"Bill can be split {MIN_SPLIT_PARTS} to {MAX_SPLIT_PARTS} ways")

    total_value = round_idr(total)
    if total_value < 0:
        raise ValidationError("Total must not be negative")

    if mode == "equal":
        return [float(s) for s in split_amount(total_value, parts)]

    if mode != "custom":
        raise ValidationError(f"Invalid split mode: {mode}")
    if not amounts or len(amounts) != parts:
        raise ValidationError(f"Provide exactly {parts} amounts")
    shares = [round_idr(a) for a in amounts]
    if any(s < 0 for s in shares):
        raise ValidationError("Split amounts must not be negative")
    if sum(shares, Decimal("0")) != total_value:
        raise ValidationError("Split amounts must add up to the total")
    return [float(s) for s in shares]


def apply_approval_to_transaction(approval_id: int) -> bool:
    """
    Recalculate a paid transaction with an approved discount or minimum charge.

    Returns False when the approval is not approved, already applied, or not
    linked to a transaction.
    """
    with get_session() as session:
        approval = session.get(ApprovalRequest, approval_id)
        if approval is None:
            raise NotFoundError("Approval request not found")
        if (
            approval.status != ApprovalStatus.APPROVED.value
            or approval.applied_at is not None
            or approval.transaction_id is None
        ):
            logger.info(f"Approval {approval_id} cannot be applied (status {approval.status})")
            return False

        tx = load_transaction(session, approval.transaction_id)
        approval.applied_at = venue_now()
        session.flush()

        previous = tx.final_amount
        _apply_totals(tx, _linked_approvals(session, tx))
        _emit_transaction(session, tx, UPDATE)
        emit_change(
            session,
            RealtimeChannel.APPROVAL_REQUESTS,
            UPDATE,
            approval.id,
            {"status": approval.status, "transaction_id": tx.id},
        )
        logger.info(
            f"Applied approval {approval.id} to transaction {tx.id}: {previous} -> {tx.final_amount}"
        )
        return True
