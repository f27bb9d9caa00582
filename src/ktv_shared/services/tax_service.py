"""Tax settings (PPN) used when totalling a bill."""

from __future__ import annotations

import os
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from ktv_shared.currency import DEFAULT_TAX_RATE, calculate_total, to_decimal
from ktv_shared.db import get_session
from ktv_shared.logging_config import get_logger
from ktv_shared.models import TaxSetting
from ktv_shared.serializers import serialize_tax_setting
from ktv_shared.validation import NotFoundError

logger = get_logger(__name__)


def _configured_default() -> Decimal:
    return to_decimal(os.getenv("DEFAULT_TAX_RATE") or DEFAULT_TAX_RATE)


def configured_service_charge_rate() -> Decimal:
    return to_decimal(os.getenv("SERVICE_CHARGE_RATE") or 0)


def active_tax_rate(session: Session) -> Decimal:
    """Rate of the first active tax setting, or the configured default."""
    setting = (
        session.execute(
            select(TaxSetting).where(TaxSetting.is_active.is_(True)).order_by(TaxSetting.id)
        )
        .scalars()
        .first()
    )
    if setting is None:
        return _configured_default()
    return to_decimal(setting.rate)


def get_active_tax_rate() -> Decimal:
    with get_session() as session:
        return active_tax_rate(session)


def calculate_transaction_total(
    subtotal: Any,
    tax_rate: Any | None = None,
    service_charge_rate: Any | None = None,
) -> dict[str, Decimal]:
    """Totals for a bill; unset rates fall back to the active tax setting and config."""
    if tax_rate is None:
        tax_rate = get_active_tax_rate()
    if service_charge_rate is None:
        service_charge_rate = configured_service_charge_rate()
    return calculate_total(subtotal, tax_rate, service_charge_rate)


def list_tax_settings() -> list[dict[str, Any]]:
    with get_session() as session:
        settings = session.execute(select(TaxSetting).order_by(TaxSetting.id)).scalars().all()
        return [serialize_tax_setting(s) for s in settings]


def create_tax_setting(data: dict[str, Any]) -> dict[str, Any]:
    with get_session() as session:
        setting = TaxSetting(
            name=data["name"],
            rate=to_decimal(data["rate"]),
            tax_type=data.get("tax_type") or "ppn",
            applies_to=data.get("applies_to"),
            is_active=data.get("is_active", True),
        )
        session.add(setting)
        session.flush()
        logger.info(f"Created tax setting {setting.id}: {setting.name} {setting.rate}%")
        return serialize_tax_setting(setting)


def update_tax_setting(setting_id: int, data: dict[str, Any]) -> dict[str, Any]:
    with get_session() as session:
        setting = session.get(TaxSetting, setting_id)
        if setting is None:
            raise NotFoundError("Tax setting not found")
        for field in ("name", "tax_type", "applies_to", "is_active"):
            if field in data and data[field] is not None:
                setattr(setting, field, data[field])
        if data.get("rate") is not None:
            setting.rate = to_decimal(data["rate"])
        session.flush()
        logger.info(f"Updated tax setting {setting.id}")
        return serialize_tax_setting(setting)
