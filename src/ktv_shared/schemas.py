"""
Pydantic schemas for request validation.
"""

from __future__ import annotations

from datetime import date, time
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from ktv_shared.constants import (
    CHAT_MESSAGE_MAX_LENGTH,
    DEFAULT_MIN_STOCK_LEVEL,
    MAX_BOOKING_EXTENSION_HOURS,
    MAX_SPLIT_PARTS,
    MIN_SPLIT_PARTS,
    ApprovalRequestType,
    BookingStatus,
    CashMovementType,
    FBOrderStatus,
    PaymentMethod,
    RecurringFrequency,
    Roles,
    RoomStatus,
    TaskPriority,
    TaskStatus,
)
from ktv_shared.validation import validate_division, validate_password, validate_phone


class RequestModel(BaseModel):
    model_config = ConfigDict(
        use_enum_values=True, validate_default=True, str_strip_whitespace=True
    )


def _check_phone(v: str | None) -> str | None:
    if v:
        validate_phone(v)
    return v or None


# ==================== AUTH ====================


class LoginRequest(RequestModel):
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@]+@[^@]+\.[^@]+$")
    password: str = Field(..., min_length=6, max_length=100)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class RegisterRequest(RequestModel):
    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., max_length=100)
    confirm_password: str
    full_name: str = Field(..., min_length=2, max_length=100)
    phone: str | None = None

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        validate_password(v)
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone_format(cls, v: str | None) -> str | None:
        return _check_phone(v)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class RefreshRequest(RequestModel):
    refresh_token: str | None = None


class SwitchRoleRequest(RequestModel):
    role: Roles


class AssignRoleRequest(RequestModel):
    user_id: int
    role: Roles


# ==================== ROOMS & BOOKINGS ====================


class RoomRequest(RequestModel):
    room_number: str = Field(..., min_length=1, max_length=20)
    room_name: str = Field(..., min_length=1, max_length=100)
    room_type: str = Field(default="standard", max_length=50)
    capacity: int = Field(..., gt=0)
    hourly_rate: float = Field(..., gt=0)
    status: RoomStatus = RoomStatus.AVAILABLE
    notes: str | None = None


class RoomUpdateRequest(RequestModel):
    room_number: str | None = Field(None, min_length=1, max_length=20)
    room_name: str | None = Field(None, min_length=1, max_length=100)
    room_type: str | None = Field(None, max_length=50)
    capacity: int | None = Field(None, gt=0)
    hourly_rate: float | None = Field(None, gt=0)
    notes: str | None = None


class RoomStatusRequest(RequestModel):
    status: RoomStatus


class AssignWaiterRequest(RequestModel):
    waiter_id: int | None = None


class BookingRequest(RequestModel):
    room_id: int
    customer_name: str = Field(..., min_length=1, max_length=100)
    customer_phone: str | None = None
    customer_email: EmailStr | None = None
    booking_date: date
    start_time: time
    end_time: time
    deposit_amount: float = Field(default=0, ge=0)
    status: BookingStatus = BookingStatus.PENDING
    notes: str | None = Field(None, max_length=500)

    @field_validator("customer_phone")
    @classmethod
    def validate_phone_format(cls, v: str | None) -> str | None:
        return _check_phone(v)


class BookingUpdateRequest(RequestModel):
    room_id: int | None = None
    customer_name: str | None = Field(None, min_length=1, max_length=100)
    customer_phone: str | None = None
    customer_email: EmailStr | None = None
    booking_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    deposit_amount: float | None = Field(None, ge=0)
    status: BookingStatus | None = None
    notes: str | None = Field(None, max_length=500)

    @field_validator("customer_phone")
    @classmethod
    def validate_phone_format(cls, v: str | None) -> str | None:
        return _check_phone(v)


class BookingStatusRequest(RequestModel):
    status: BookingStatus


class ExtendBookingRequest(RequestModel):
    hours: int = Field(..., ge=1, le=MAX_BOOKING_EXTENSION_HOURS)


class RecurringBookingRequest(RequestModel):
    room_id: int
    customer_name: str = Field(..., min_length=1, max_length=100)
    customer_phone: str | None = None
    customer_email: EmailStr | None = None
    frequency: RecurringFrequency
    day_of_week: int | None = Field(None, ge=0, le=6)
    day_of_month: int | None = Field(None, ge=1, le=31)
    start_time: time
    end_time: time
    hourly_rate: float | None = Field(None, gt=0)
    deposit_amount: float = Field(default=0, ge=0)
    start_date: date
    end_date: date | None = None
    notes: str | None = Field(None, max_length=500)
    is_active: bool = True

    @field_validator("customer_phone")
    @classmethod
    def validate_phone_format(cls, v: str | None) -> str | None:
        return _check_phone(v)

    @model_validator(mode="after")
    def check_rule(self):
        if self.frequency == RecurringFrequency.WEEKLY.value and self.day_of_week is None:
            raise ValueError("day_of_week is required for weekly bookings")
        if self.frequency == RecurringFrequency.MONTHLY.value and self.day_of_month is None:
            raise ValueError("day_of_month is required for monthly bookings")
        if self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class RecurringBookingUpdateRequest(RequestModel):
    customer_name: str | None = Field(None, min_length=1, max_length=100)
    customer_phone: str | None = None
    customer_email: EmailStr | None = None
    day_of_week: int | None = Field(None, ge=0, le=6)
    day_of_month: int | None = Field(None, ge=1, le=31)
    start_time: time | None = None
    end_time: time | None = None
    hourly_rate: float | None = Field(None, gt=0)
    deposit_amount: float | None = Field(None, ge=0)
    end_date: date | None = None
    notes: str | None = Field(None, max_length=500)
    is_active: bool | None = None


# ==================== POS ====================


class CartItem(RequestModel):
    product_id: int
    quantity: int = Field(..., ge=1)


class CheckoutRequest(RequestModel):
    payment_method: PaymentMethod


class SellItemsRequest(RequestModel):
    room_id: int | None = None
    payment_method: PaymentMethod = PaymentMethod.CASH
    items: list[CartItem] = Field(..., min_length=1)


class RecordTransactionRequest(RequestModel):
    amount: float = Field(..., gt=0)
    payment_method: PaymentMethod
    description: str | None = Field(None, max_length=500)
    room_id: int | None = None


class TotalsRequest(RequestModel):
    subtotal: float = Field(..., ge=0)
    tax_rate: float | None = Field(None, ge=0, le=100)
    service_charge_rate: float = Field(default=0, ge=0, le=100)


class SplitBillRequest(RequestModel):
    total: float = Field(..., ge=0)
    parts: int = Field(..., ge=MIN_SPLIT_PARTS, le=MAX_SPLIT_PARTS)
    mode: Literal["equal", "custom"] = "equal"
    amounts: list[float] | None = None


class TaxSettingRequest(RequestModel):
    name: str = Field(..., min_length=1, max_length=100)
    rate: float = Field(..., ge=0, le=100)
    tax_type: str = Field(default="ppn", max_length=30)
    applies_to: list[str] | None = None
    is_active: bool = True


class TaxSettingUpdateRequest(RequestModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    rate: float | None = Field(None, ge=0, le=100)
    tax_type: str | None = Field(None, max_length=30)
    applies_to: list[str] | None = None
    is_active: bool | None = None


# ==================== CASH HANDLING ====================


class StartShiftRequest(RequestModel):
    opening_balance: float = Field(..., ge=0)


class EndShiftRequest(RequestModel):
    closing_balance: float = Field(..., ge=0)
    notes: str | None = Field(None, max_length=500)


class OpenDrawerRequest(RequestModel):
    opening_balance: float = Field(..., ge=0)


class CashMovementRequest(RequestModel):
    type: CashMovementType
    amount: float = Field(..., gt=0)
    description: str = Field(..., min_length=1, max_length=500)


class CloseDrawerRequest(RequestModel):
    actual_balance: float = Field(..., ge=0)


class ApprovalCreateRequest(RequestModel):
    request_type: ApprovalRequestType
    room_id: int | None = None
    transaction_id: int | None = None
    amount_type: Literal["fixed", "percentage"] = "fixed"
    amount: float | None = Field(None, gt=0)
    percentage: float | None = Field(None, gt=0, le=100)
    current_amount: float | None = Field(None, ge=0)
    reason: str = Field(..., min_length=1, max_length=500)

    @model_validator(mode="after")
    def check_amount(self):
        if self.amount_type == "fixed" and self.amount is None:
            raise ValueError("amount is required")
        if self.amount_type == "percentage" and (
            self.percentage is None or self.current_amount is None
        ):
            raise ValueError("percentage and current_amount are required")
        return self


# ==================== INVENTORY ====================


class CategoryRequest(RequestModel):
    name_id: str = Field(..., min_length=1, max_length=100)
    name_en: str = Field(..., min_length=1, max_length=100)
    type: str = Field(default="food", max_length=30)


class ProductRequest(RequestModel):
    name_id: str = Field(..., min_length=1, max_length=200)
    name_en: str = Field(..., min_length=1, max_length=200)
    description_id: str | None = None
    description_en: str | None = None
    sku: str = Field(..., min_length=1, max_length=50)
    category_id: int
    price: float = Field(..., gt=0)
    cost: float = Field(..., gt=0)
    stock_quantity: int = Field(default=0, ge=0)
    min_stock_level: int = Field(default=DEFAULT_MIN_STOCK_LEVEL, ge=0)
    is_active: bool = True


class ProductUpdateRequest(RequestModel):
    name_id: str | None = Field(None, min_length=1, max_length=200)
    name_en: str | None = Field(None, min_length=1, max_length=200)
    description_id: str | None = None
    description_en: str | None = None
    sku: str | None = Field(None, min_length=1, max_length=50)
    category_id: int | None = None
    price: float | None = Field(None, gt=0)
    cost: float | None = Field(None, gt=0)
    min_stock_level: int | None = Field(None, ge=0)
    is_active: bool | None = None


class StockAdjustmentRequest(RequestModel):
    quantity: int
    movement_type: Literal["adjustment", "return"] = "adjustment"
    notes: str | None = Field(None, max_length=500)

    @field_validator("quantity")
    @classmethod
    def non_zero(cls, v: int) -> int:
        if v == 0:
            raise ValueError("quantity must not be zero")
        return v


class PurchaseOrderItemRequest(RequestModel):
    product_id: int
    quantity: int = Field(..., gt=0)
    unit_cost: float = Field(..., gt=0)


class PurchaseOrderRequest(RequestModel):
    supplier_name: str = Field(..., min_length=1, max_length=200)
    notes: str | None = Field(None, max_length=500)
    items: list[PurchaseOrderItemRequest] = Field(..., min_length=1)


# ==================== STAFF ====================


class EmployeeRequest(RequestModel):
    name: str = Field(..., min_length=1, max_length=100)
    division: str = Field(..., min_length=1, max_length=50)
    phone: str | None = None
    employee_id: str | None = Field(None, min_length=1, max_length=50)
    user_id: int | None = None

    @field_validator("division")
    @classmethod
    def validate_division_value(cls, v: str) -> str:
        v = v.upper()
        validate_division(v)
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone_format(cls, v: str | None) -> str | None:
        return _check_phone(v)


class EmployeeUpdateRequest(RequestModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    division: str | None = Field(None, min_length=1, max_length=50)
    phone: str | None = None
    user_id: int | None = None

    @field_validator("division")
    @classmethod
    def validate_division_value(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.upper()
        validate_division(v)
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone_format(cls, v: str | None) -> str | None:
        return _check_phone(v)


class ChatMessageRequest(RequestModel):
    content: str = Field(..., min_length=1, max_length=CHAT_MESSAGE_MAX_LENGTH)


class CleaningTaskRequest(RequestModel):
    room_id: int
    assigned_to: int | None = None
    priority: TaskPriority = TaskPriority.NORMAL
    notes: str | None = Field(None, max_length=500)


class TaskStatusRequest(RequestModel):
    status: TaskStatus


class FBOrderRequest(RequestModel):
    room_id: int
    items: list[CartItem] = Field(..., min_length=1)
    notes: str | None = Field(None, max_length=500)


class FBOrderStatusRequest(RequestModel):
    status: FBOrderStatus


class ExpenseRequest(RequestModel):
    amount: float = Field(..., gt=0)
    category: str = Field(..., min_length=1, max_length=50)
    description: str | None = Field(None, max_length=500)
    expense_date: date
    receipt_url: str | None = Field(None, max_length=500)


class ExpenseUpdateRequest(RequestModel):
    amount: float | None = Field(None, gt=0)
    category: str | None = Field(None, min_length=1, max_length=50)
    description: str | None = Field(None, max_length=500)
    expense_date: date | None = None
    receipt_url: str | None = Field(None, max_length=500)


class VerificationEmailRequest(RequestModel):
    email: EmailStr
    full_name: str | None = None
