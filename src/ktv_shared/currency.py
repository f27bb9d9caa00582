"""
Money helpers for Indonesian Rupiah.

All amounts are whole rupiah; rounding is half-up like the receipts printed
at the front desk.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

DEFAULT_TAX_RATE = Decimal("11")


def to_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return Decimal("0")


def round_idr(value: Any) -> Decimal:
    return to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def format_idr(amount: Any) -> str:
    """
    Format an amount as 'IDR 1.234.567'.

    Non-numeric input renders as 'IDR 0'.
    """
    try:
        number = float(amount)
    except (TypeError, ValueError):
        return "IDR 0"
    if math.isnan(number) or math.isinf(number):
        return "IDR 0"
    rounded = int(round_idr(number))
    sign = "-" if rounded < 0 else ""
    grouped = f"{abs(rounded):,}".replace(",", ".")
    return f"IDR {sign}{grouped}"


def calculate_ppn(subtotal: Any, tax_rate: Any = DEFAULT_TAX_RATE) -> Decimal:
    """PPN (value added tax) on an amount."""
    return round_idr(to_decimal(subtotal) * to_decimal(tax_rate) / 100)


def calculate_service_charge(subtotal: Any, service_charge_rate: Any = 0) -> Decimal:
    return round_idr(to_decimal(subtotal) * to_decimal(service_charge_rate) / 100)


def calculate_total(
    subtotal: Any,
    tax_rate: Any = DEFAULT_TAX_RATE,
    service_charge_rate: Any = 0,
) -> dict[str, Decimal]:
    """
    Break a subtotal down into service charge, tax and final amount.

    Tax is charged on the subtotal plus service charge.
    """
    base = round_idr(subtotal)
    service_charge = calculate_service_charge(base, service_charge_rate)
    taxable = base + service_charge
    tax_amount = calculate_ppn(taxable, tax_rate)
    return {
        "subtotal": base,
        "service_charge": service_charge,
        "taxable_amount": taxable,
        "tax_amount": tax_amount,
        "final_amount": taxable + tax_amount,
    }


def split_amount(total: Any, parts: int) -> list[Decimal]:
    """Equal split in whole rupiah; the remainder goes to the first share."""
    whole = int(round_idr(total))
    share, remainder = divmod(whole, parts)
    shares = [Decimal(share)] * parts
    shares[0] += remainder
    return shares
