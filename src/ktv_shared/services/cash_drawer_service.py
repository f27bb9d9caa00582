"""Cash drawer open/close and petty cash movements."""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from ktv_shared.constants import CashMovementType, DrawerStatus
from ktv_shared.currency import round_idr, to_decimal
from ktv_shared.datetime_utils import venue_now
from ktv_shared.db import get_session
from ktv_shared.logging_config import get_logger
from ktv_shared.models import CashDrawer, CashDrawerTransaction
from ktv_shared.serializers import serialize_cash_drawer
from ktv_shared.validation import ConflictError, NotFoundError, ValidationError

logger = get_logger(__name__)


def _open_drawer_for(session: Session, user_id: int) -> CashDrawer | None:
    return (
        session.execute(
            select(CashDrawer)
            .where(CashDrawer.user_id == user_id, CashDrawer.status == DrawerStatus.OPEN.value)
            .order_by(CashDrawer.opened_at.desc())
        )
        .scalars()
        .first()
    )


def _require_open(session: Session, user_id: int) -> CashDrawer:
    drawer = _open_drawer_for(session, user_id)
    if drawer is None:
        raise NotFoundError("No open cash drawer")
    return drawer


def current_drawer(user_id: int) -> dict[str, Any] | None:
    with get_session() as session:
        drawer = _open_drawer_for(session, user_id)
        return serialize_cash_drawer(drawer, include_movements=True) if drawer else None


def open_drawer(user_id: int, opening_balance: Any) -> dict[str, Any]:
    opening = round_idr(opening_balance)
    if opening < 0:
        raise ValidationError("Opening balance must not be negative")

    with get_session() as session:
        if _open_drawer_for(session, user_id) is not None:
            raise ConflictError("Cash drawer is already open")
        drawer = CashDrawer(
            user_id=user_id,
            opening_balance=opening,
            current_balance=opening,
            status=DrawerStatus.OPEN.value,
            opened_at=venue_now(),
        )
        session.add(drawer)
        session.flush()
        logger.info(f"User {user_id} opened cash drawer {drawer.id} with {opening}")
        return serialize_cash_drawer(drawer, include_movements=True)


def record_cash_movement(
    user_id: int, movement_type: str, amount: Any, description: str
) -> dict[str, Any]:
    value = round_idr(amount)
    if value <= 0:
        raise ValidationError("Amount must be greater than zero")
    if not description or not description.strip():
        raise ValidationError("Description is required")
    if movement_type not in (CashMovementType.IN.value, CashMovementType.OUT.value):
        raise ValidationError(f"Invalid movement type: {movement_type}")

    with get_session() as session:
        drawer = _require_open(session, user_id)
        balance = to_decimal(drawer.current_balance)

        if movement_type == CashMovementType.OUT.value:
            if value > balance:
                raise ValidationError("Insufficient cash in drawer")
            drawer.current_balance = balance - value
            drawer.total_cash_out = to_decimal(drawer.total_cash_out) + value
        else:
            drawer.current_balance = balance + value
            drawer.total_cash_in = to_decimal(drawer.total_cash_in) + value

        drawer.movements.append(
            CashDrawerTransaction(
                type=movement_type, amount=value, description=description.strip()
            )
        )
        session.flush()
        logger.info(
            f"Cash {movement_type} {value} on drawer {drawer.id}, balance {drawer.current_balance}"
        )
        return serialize_cash_drawer(drawer, include_movements=True)


def close_drawer(user_id: int, actual_balance: Any) -> dict[str, Any]:
    actual = round_idr(actual_balance)
    if actual < 0:
        raise ValidationError("Closing balance must not be negative")

    with get_session() as session:
        drawer = _require_open(session, user_id)
        drawer.closing_balance = actual
        drawer.cash_difference = actual - to_decimal(drawer.current_balance)
        drawer.closed_at = venue_now()
        drawer.status = DrawerStatus.CLOSED.value
        session.flush()
        logger.info(
            f"Closed cash drawer {drawer.id}: expected {drawer.current_balance}, "
            f"counted {actual}, difference {drawer.cash_difference}"
        )
        return serialize_cash_drawer(drawer, include_movements=True)
