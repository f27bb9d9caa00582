"""Operating expenses recorded by the accountant."""

from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy import select

from ktv_shared.currency import round_idr
from ktv_shared.datetime_utils import parse_date
from ktv_shared.db import get_session
from ktv_shared.logging_config import get_logger
from ktv_shared.models import Expense
from ktv_shared.serializers import serialize_expense
from ktv_shared.validation import NotFoundError, ValidationError

logger = get_logger(__name__)


def _load(session, expense_id: int) -> Expense:
    expense = session.get(Expense, expense_id)
    if expense is None:
        raise NotFoundError("Expense not found")
    return expense


def list_expenses(
    date_from: date | str | None = None, date_to: date | str | None = None
) -> list[dict[str, Any]]:
    date_from = parse_date(date_from, "from")
    date_to = parse_date(date_to, "to")
    with get_session() as session:
        stmt = select(Expense).order_by(Expense.expense_date.desc(), Expense.id.desc())
        if date_from:
            stmt = stmt.where(Expense.expense_date >= date_from)
        if date_to:
            stmt = stmt.where(Expense.expense_date <= date_to)
        return [serialize_expense(e) for e in session.execute(stmt).scalars().all()]


def create_expense(data: dict[str, Any], recorded_by: int | None) -> dict[str, Any]:
    amount = round_idr(data["amount"])
    if amount <= 0:
        raise ValidationError("Amount must be greater than zero")
    expense_date = parse_date(data.get("expense_date"), "expense_date")
    if expense_date is None:
        raise ValidationError("Expense date is required")

    with get_session() as session:
        expense = Expense(
            amount=amount,
            category=data["category"],
            description=data.get("description"),
            expense_date=expense_date,
            receipt_url=data.get("receipt_url"),
            recorded_by=recorded_by,
        )
        session.add(expense)
        session.flush()
        logger.info(f"Recorded expense {expense.id}: {expense.category} {amount}")
        return serialize_expense(expense)


def update_expense(expense_id: int, data: dict[str, Any]) -> dict[str, Any]:
    with get_session() as session:
        expense = _load(session, expense_id)
        if data.get("amount") is not None:
            amount = round_idr(data["amount"])
            if amount <= 0:
                raise ValidationError("Amount must be greater than zero")
            expense.amount = amount
        if data.get("expense_date") is not None:
            expense.expense_date = parse_date(data["expense_date"], "expense_date")
        for field in ("category", "description", "receipt_url"):
            if field in data and data[field] is not None:
                setattr(expense, field, data[field])
        session.flush()
        return serialize_expense(expense)


def delete_expense(expense_id: int) -> None:
    with get_session() as session:
        session.delete(_load(session, expense_id))
        logger.info(f"Deleted expense {expense_id}")
