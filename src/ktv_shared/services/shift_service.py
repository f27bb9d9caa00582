"""Cashier shifts and their sales reconciliation."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from ktv_shared.constants import PaymentMethod, RealtimeChannel, ShiftStatus
from ktv_shared.currency import round_idr, to_decimal
from ktv_shared.datetime_utils import venue_now
from ktv_shared.db import get_session
from ktv_shared.logging_config import get_logger
from ktv_shared.models import Shift, Transaction
from ktv_shared.serializers import serialize_shift, serialize_transaction
from ktv_shared.supabase.realtime import INSERT, UPDATE, emit_change
from ktv_shared.validation import ConflictError, NotFoundError, ValidationError

logger = get_logger(__name__)

_METHOD_FIELDS = {
    PaymentMethod.CASH.value: "total_cash",
    PaymentMethod.CARD.value: "total_card",
    PaymentMethod.TRANSFER.value: "total_transfer",
    PaymentMethod.EWALLET.value: "total_ewallet",
}


def _find_active(session: Session, user_id: int) -> Shift | None:
    return (
        session.execute(
            select(Shift)
            .where(Shift.user_id == user_id, Shift.status == ShiftStatus.ACTIVE.value)
            .order_by(Shift.start_time.desc())
        )
        .scalars()
        .first()
    )


def _shift_transactions(
    session: Session, shift: Shift, until: datetime | None = None
) -> list[Transaction]:
    stmt = select(Transaction).where(
        Transaction.cashier_id == shift.user_id,
        Transaction.created_at >= shift.start_time,
    )
    if until is not None:
        stmt = stmt.where(Transaction.created_at <= until)
    return list(session.execute(stmt.order_by(Transaction.created_at)).scalars().all())


def shift_totals(transactions: list[Transaction]) -> dict[str, Any]:
    """Sum a cashier's transactions per payment method."""
    totals: dict[str, Any] = {
        "total_transactions": len(transactions),
        "total_sales": Decimal("0"),
        "total_discount": Decimal("0"),
    }
    for field in _METHOD_FIELDS.values():
        totals[field] = Decimal("0")

    for tx in transactions:
        amount = to_decimal(tx.effective_amount)
        totals["total_sales"] += amount
        totals["total_discount"] += to_decimal(tx.discount_amount)
        field = _METHOD_FIELDS.get(tx.payment_method)
        if field:
            totals[field] += amount
    return totals


def _apply_totals(shift: Shift, totals: dict[str, Any]) -> None:
    for key, value in totals.items():
        setattr(shift, key, value)


def start_shift(user_id: int, opening_balance: Any) -> dict[str, Any]:
    opening = round_idr(opening_balance)
    if opening < 0:
        raise ValidationError("Opening balance must not be negative")

    with get_session() as session:
        if _find_active(session, user_id) is not None:
            raise ConflictError("You already have an active shift")
        shift = Shift(
            user_id=user_id,
            start_time=venue_now(),
            opening_balance=opening,
            status=ShiftStatus.ACTIVE.value,
        )
        session.add(shift)
        session.flush()
        emit_change(session, RealtimeChannel.SHIFTS, INSERT, shift.id, {"user_id": user_id})
        logger.info(f"User {user_id} started shift {shift.id} with opening balance {opening}")
        return serialize_shift(shift)


def active_shift(user_id: int) -> dict[str, Any] | None:
    """The user's active shift with totals computed up to now, or None."""
    with get_session() as session:
        shift = _find_active(session, user_id)
        if shift is None:
            return None
        return serialize_shift(shift, shift_totals(_shift_transactions(session, shift)))


def end_shift(user_id: int, closing_balance: Any, notes: str | None = None) -> dict[str, Any]:
    """
    Close the active shift.

    Totals are frozen from the cashier's transactions and the cash
    difference is closing - (opening + cash taken).
    """
    closing = round_idr(closing_balance)
    if closing < 0:
        raise ValidationError("Closing balance must not be negative")

    with get_session() as session:
        shift = _find_active(session, user_id)
        if shift is None:
            raise NotFoundError("No active shift")

        now = venue_now()
        _apply_totals(shift, shift_totals(_shift_transactions(session, shift, until=now)))
        shift.end_time = now
        shift.closing_balance = closing
        shift.cash_difference = closing - (
            to_decimal(shift.opening_balance) + to_decimal(shift.total_cash)
        )
        shift.status = ShiftStatus.CLOSED.value
        shift.notes = notes
        session.flush()

        emit_change(
            session,
            RealtimeChannel.SHIFTS,
            UPDATE,
            shift.id,
            {"status": shift.status, "cash_difference": shift.cash_difference},
        )
        if shift.cash_difference:
            logger.warning(
                f"Shift {shift.id} closed with cash difference {shift.cash_difference}"
            )
        else:
            logger.info(f"Shift {shift.id} closed, cash balanced")
        return serialize_shift(shift)


def shift_history(user_id: int | None = None, limit: int = 30) -> list[dict[str, Any]]:
    with get_session() as session:
        stmt = select(Shift).order_by(Shift.start_time.desc())
        if user_id:
            stmt = stmt.where(Shift.user_id == user_id)
        return [serialize_shift(s) for s in session.execute(stmt.limit(limit)).scalars().all()]


def shift_report(shift_id: int) -> dict[str, Any]:
    """A shift with the transactions it covers."""
    with get_session() as session:
        shift = session.get(Shift, shift_id)
        if shift is None:
            raise NotFoundError("Shift not found")
        transactions = _shift_transactions(session, shift, until=shift.end_time)
        if shift.status == ShiftStatus.ACTIVE.value:
            _apply_totals(shift, shift_totals(transactions))
        return {
            "shift": serialize_shift(shift),
            "transactions": [serialize_transaction(t) for t in transactions],
        }
