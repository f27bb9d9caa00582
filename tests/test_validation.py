import pytest
from pydantic import ValidationError as PydanticValidationError

from ktv_shared.datetime_utils import add_hours, format_remaining, parse_time, sunday_based_weekday
from ktv_shared.schemas import (
    ApprovalCreateRequest,
    EmployeeRequest,
    ProductRequest,
    RegisterRequest,
)
from ktv_shared.services.chat_service import parse_mentions
from ktv_shared.validation import ValidationError, validate_password, validate_phone


@pytest.mark.parametrize("password", ["short1A", "alllowercase1", "ALLUPPERCASE1", "NoDigitsHere"])
def test_weak_passwords_are_rejected(password):
    with pytest.raises(ValidationError):
        validate_password(password)


def test_strong_password_passes():
    validate_password("Secret123")


@pytest.mark.parametrize("phone", ["081234567890", "+6281234567890", "6281234567890"])
def test_indonesian_phone_numbers(phone):
    validate_phone(phone)


@pytest.mark.parametrize("phone", ["12345", "0812", "+1 555 123 4567"])
def test_bad_phone_numbers(phone):
    with pytest.raises(ValidationError):
        validate_phone(phone)


def test_register_requires_matching_passwords():
    with pytest.raises(PydanticValidationError):
        RegisterRequest(
            email="a@example.com",
            password="Secret123",
            confirm_password="Secret124",
            full_name="Ani",
        )


def test_register_normalizes_and_accepts_valid_input():
    data = RegisterRequest(
        email="ani@example.com",
        password="Secret123",
        confirm_password="Secret123",
        full_name="Ani Wijaya",
        phone="081234567890",
    )
    assert data.full_name == "Ani Wijaya"


def test_product_price_and_cost_must_be_positive():
    with pytest.raises(PydanticValidationError):
        ProductRequest(name_id="Teh", name_en="Tea", sku="T1", category_id=1, price=0, cost=1)
    product = ProductRequest(name_id="Teh", name_en="Tea", sku="T1", category_id=1, price=5, cost=1)
    assert product.min_stock_level == 10


def test_employee_division_is_uppercased_and_checked():
    assert EmployeeRequest(name="Budi", division="kasir").division == "KASIR"
    with pytest.raises(ValidationError):
        EmployeeRequest(name="Budi", division="CHEF")


def test_percentage_approval_needs_current_amount():
    with pytest.raises(PydanticValidationError):
        ApprovalCreateRequest(
            request_type="discount", amount_type="percentage", percentage=10, reason="VIP"
        )


def test_weekday_is_sunday_based():
    from datetime import date

    assert sunday_based_weekday(date(2024, 6, 2)) == 0  # Sunday
    assert sunday_based_weekday(date(2024, 6, 8)) == 6  # Saturday


def test_time_helpers():
    from datetime import time, timedelta

    assert add_hours(time(22, 0), 1) == time(23, 0)
    assert add_hours(time(23, 0), 2) is None
    assert format_remaining(timedelta(hours=2, minutes=15, seconds=30)) == "2h 15m"
    assert format_remaining(timedelta(minutes=-5)) == "0h 0m"
    assert parse_time("") is None
    with pytest.raises(ValidationError):
        parse_time("25:99")


def test_mentions_are_parsed_once_in_order():
    is_all, names = parse_mentions("@all tolong cek room 3 @budi @ani @budi")
    assert is_all is True
    assert names == ["budi", "ani"]
