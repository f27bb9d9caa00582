from decimal import Decimal
from types import SimpleNamespace

import pytest

from ktv_shared.currency import calculate_total, format_idr, split_amount
from ktv_shared.services.approval_service import compute_request_amount
from ktv_shared.services.transaction_service import adjust_subtotal, split_bill
from ktv_shared.validation import ValidationError


def test_format_idr_groups_thousands_with_dots():
    assert format_idr(1234567) == "IDR 1.234.567"
    assert format_idr(0) == "IDR 0"
    assert format_idr(1500.5) == "IDR 1.501"


def test_format_idr_non_numeric_is_zero():
    assert format_idr("abc") == "IDR 0"
    assert format_idr(None) == "IDR 0"
    assert format_idr(float("nan")) == "IDR 0"


def test_calculate_total_without_service_charge():
    totals = calculate_total(100000, 11, 0)
    assert totals["service_charge"] == 0
    assert totals["tax_amount"] == Decimal("11000")
    assert totals["final_amount"] == Decimal("111000")


def test_tax_is_charged_on_service_charge_too():
    totals = calculate_total(100000, 11, 10)
    assert totals["service_charge"] == Decimal("10000")
    assert totals["taxable_amount"] == Decimal("110000")
    assert totals["tax_amount"] == Decimal("12100")
    assert totals["final_amount"] == Decimal("122100")


def test_equal_split_puts_remainder_on_first_share():
    assert split_amount(100001, 3) == [Decimal("33335"), Decimal("33333"), Decimal("33333")]
    assert split_bill(90000, 3) == [30000.0, 30000.0, 30000.0]


def test_custom_split_must_add_up():
    assert split_bill(100000, 2, "custom", [60000, 40000]) == [60000.0, 40000.0]
    with pytest.raises(ValidationError):
        split_bill(100000, 2, "custom", [60000, 30000])
    with pytest.raises(ValidationError):
        split_bill(100000, 3, "custom", [50000, 50000])


def test_split_parts_are_bounded():
    with pytest.raises(ValidationError):
        split_bill(100000, 1)


def _approval(kind, amount):
    return SimpleNamespace(request_type=kind, amount=Decimal(amount))


def test_minimum_charge_raises_subtotal_before_discount():
    approvals = [_approval("minimum_charge", 300000), _approval("discount", 50000)]
    assert adjust_subtotal(Decimal("150000"), approvals) == (Decimal("250000"), Decimal("50000"))


def test_discount_never_takes_subtotal_below_zero():
    approvals = [_approval("discount", 50000)]
    assert adjust_subtotal(Decimal("10000"), approvals) == (Decimal("0"), Decimal("10000"))


def test_percentage_requests_apply_to_current_amount():
    amount, pct = compute_request_amount("percentage", percentage=10, current_amount=250000)
    assert amount == Decimal("25000")
    assert pct == Decimal("10")


def test_request_amount_must_be_positive():
    with pytest.raises(ValidationError):
        compute_request_amount("percentage", percentage=10, current_amount=0)
    with pytest.raises(ValidationError):
        compute_request_amount("percentage", percentage=150, current_amount=1000)
