"""
Dashboard aggregates for the owner, manager and accountant views.

Revenue always counts what the customer paid: ``final_amount`` when set,
otherwise ``amount``.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ktv_shared.constants import ApprovalStatus, BookingStatus, PaymentMethod, RoomStatus, ShiftStatus
from ktv_shared.currency import to_decimal
from ktv_shared.datetime_utils import parse_date, venue_today
from ktv_shared.db import get_session
from ktv_shared.logging_config import get_logger
from ktv_shared.models import (
    ApprovalRequest,
    Booking,
    Expense,
    Product,
    Room,
    SalesItem,
    Shift,
    Transaction,
)
from ktv_shared.serializers import serialize_product, serialize_transaction

logger = get_logger(__name__)


def _day_bounds(start: date, end: date | None = None) -> tuple[datetime, datetime]:
    return datetime.combine(start, time.min), datetime.combine(end or start, time.max)


def _transactions_between(session: Session, start: date, end: date) -> list[Transaction]:
    low, high = _day_bounds(start, end)
    return list(
        session.execute(
            select(Transaction)
            .where(Transaction.created_at >= low, Transaction.created_at <= high)
            .order_by(Transaction.created_at)
        )
        .scalars()
        .all()
    )


def _revenue(transactions: list[Transaction]) -> Decimal:
    return sum((to_decimal(t.effective_amount) for t in transactions), Decimal("0"))


def daily_revenue(day: date | str | None = None) -> dict[str, Any]:
    day = parse_date(day) or venue_today()
    with get_session() as session:
        transactions = _transactions_between(session, day, day)
        total = _revenue(transactions)
        count = len(transactions)

        by_method = {m.value: Decimal("0") for m in PaymentMethod}
        by_room: dict[int, dict[str, Any]] = {}
        for tx in transactions:
            amount = to_decimal(tx.effective_amount)
            by_method[tx.payment_method] = by_method.get(tx.payment_method, Decimal("0")) + amount
            if tx.room_id is not None:
                entry = by_room.setdefault(
                    tx.room_id,
                    {
                        "room_id": tx.room_id,
                        "room_name": tx.room.room_name if tx.room else None,
                        "revenue": Decimal("0"),
                        "transactions": 0,
                    },
                )
                entry["revenue"] += amount
                entry["transactions"] += 1

        ranking = sorted(by_room.values(), key=lambda r: r["revenue"], reverse=True)
        return {
            "date": day.isoformat(),
            "total_revenue": float(total),
            "transaction_count": count,
            "average_transaction": float(total / count) if count else 0.0,
            "by_payment_method": {k: float(v) for k, v in by_method.items()},
            "room_ranking": [{**r, "revenue": float(r["revenue"])} for r in ranking],
        }


def revenue_by_day(days: int = 7, today: date | None = None) -> list[dict[str, Any]]:
    """Revenue per day for the last ``days`` days, oldest first, zero-filled."""
    days = max(1, min(days, 366))
    today = today or venue_today()
    start = today - timedelta(days=days - 1)
    with get_session() as session:
        totals: dict[date, Decimal] = defaultdict(Decimal)
        counts: dict[date, int] = defaultdict(int)
        for tx in _transactions_between(session, start, today):
            day = tx.created_at.date()
            totals[day] += to_decimal(tx.effective_amount)
            counts[day] += 1

    return [
        {
            "date": (start + timedelta(days=i)).isoformat(),
            "revenue": float(totals[start + timedelta(days=i)]),
            "transactions": counts[start + timedelta(days=i)],
        }
        for i in range(days)
    ]


def best_sellers(limit: int = 10, date_from: date | str | None = None) -> list[dict[str, Any]]:
    date_from = parse_date(date_from, "from")
    with get_session() as session:
        quantity = func.sum(SalesItem.quantity).label("quantity")
        stmt = (
            select(
                Product.id,
                Product.name_en,
                Product.name_id,
                quantity,
                func.sum(SalesItem.subtotal).label("revenue"),
            )
            .join(Product, Product.id == SalesItem.product_id)
            .group_by(Product.id, Product.name_en, Product.name_id)
            .order_by(quantity.desc())
            .limit(limit)
        )
        if date_from:
            stmt = stmt.where(SalesItem.created_at >= datetime.combine(date_from, time.min))
        return [
            {
                "product_id": row.id,
                "name_en": row.name_en,
                "name_id": row.name_id,
                "quantity": int(row.quantity or 0),
                "revenue": float(row.revenue or 0),
            }
            for row in session.execute(stmt).all()
        ]


def financial_summary(
    date_from: date | str | None = None, date_to: date | str | None = None
) -> dict[str, Any]:
    """Revenue, expenses and profit for a period (default: this month so far)."""
    today = venue_today()
    date_to = parse_date(date_to, "to") or today
    date_from = parse_date(date_from, "from") or date_to.replace(day=1)

    with get_session() as session:
        transactions = _transactions_between(session, date_from, date_to)
        revenue = _revenue(transactions)
        expenses = session.execute(
            select(func.coalesce(func.sum(Expense.amount), 0)).where(
                Expense.expense_date >= date_from, Expense.expense_date <= date_to
            )
        ).scalar_one()
        expenses = to_decimal(expenses)

        low_stock = (
            session.execute(
                select(Product)
                .where(Product.is_active.is_(True), Product.stock_quantity <= Product.min_stock_level)
                .order_by(Product.stock_quantity)
            )
            .scalars()
            .all()
        )
        recent = sorted(transactions, key=lambda t: t.created_at, reverse=True)[:10]

        return {
            "date_from": date_from.isoformat(),
            "date_to": date_to.isoformat(),
            "revenue": float(revenue),
            "expenses": float(expenses),
            "profit": float(revenue - expenses),
            "transaction_count": len(transactions),
            "low_stock": [serialize_product(p) for p in low_stock],
            "recent_transactions": [serialize_transaction(t) for t in recent],
        }


def manager_overview(today: date | None = None) -> dict[str, Any]:
    today = today or venue_today()
    with get_session() as session:
        rooms = {s.value: 0 for s in RoomStatus}
        for status, count in session.execute(
            select(Room.status, func.count(Room.id)).group_by(Room.status)
        ).all():
            rooms[status] = count

        todays_bookings = session.execute(
            select(func.count(Booking.id)).where(
                Booking.booking_date == today,
                Booking.status.in_(BookingStatus.active_values()),
            )
        ).scalar_one()
        pending_approvals = session.execute(
            select(func.count(ApprovalRequest.id)).where(
                ApprovalRequest.status == ApprovalStatus.PENDING.value
            )
        ).scalar_one()
        low_stock = session.execute(
            select(func.count(Product.id)).where(
                Product.is_active.is_(True), Product.stock_quantity <= Product.min_stock_level
            )
        ).scalar_one()
        active_shifts = session.execute(
            select(func.count(Shift.id)).where(Shift.status == ShiftStatus.ACTIVE.value)
        ).scalar_one()
        revenue = _revenue(_transactions_between(session, today, today))

    return {
        "date": today.isoformat(),
        "rooms": rooms,
        "todays_bookings": todays_bookings,
        "pending_approvals": pending_approvals,
        "low_stock_count": low_stock,
        "active_shifts": active_shifts,
        "todays_revenue": float(revenue),
    }
