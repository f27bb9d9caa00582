"""
SQLAlchemy ORM models shared by the KTV services.
"""

from __future__ import annotations

import json
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator

from .constants import (
    DEFAULT_MIN_STOCK_LEVEL,
    ApprovalStatus,
    BookingStatus,
    DrawerStatus,
    FBOrderStatus,
    PurchaseStatus,
    RoomStatus,
    ShiftStatus,
    TaskPriority,
    TaskStatus,
)
from .datetime_utils import venue_now
from .security import hash_credentials, verify_credentials


class JSONBType(TypeDecorator):
    """
    JSONB on PostgreSQL, JSON-serialized TEXT elsewhere.

    Lets the test-suite run on SQLite while Supabase keeps native JSONB.
    """

    impl = Text
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(Text())

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if dialect.name == "postgresql":
            return value
        return json.dumps(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if dialect.name == "postgresql":
            return value
        if isinstance(value, str):
            return json.loads(value)
        return value

    @property
    def python_type(self):
        return object


JSONB_TYPE = JSONBType()

MONEY = Numeric(14, 2)


def _in_values(column: str, values) -> str:
    quoted = ", ".join(f"'{v.value}'" for v in values)
    return f"{column} IN ({quoted})"


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


# ==================== STAFF ====================


class Profile(Base):
    """A login account. Staff records without a login live in Employee."""

    __tablename__ = "profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    auth_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_sign_in_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=venue_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=venue_now, onupdate=venue_now, nullable=False
    )

    roles: Mapped[list[UserRole]] = relationship(
        "UserRole", back_populates="user", cascade="all, delete-orphan"
    )

    def set_password(self, password: str) -> None:
        self.auth_hash = hash_credentials(self.email, password)

    def verify_password(self, password: str) -> bool:
        return verify_credentials(self.email, password, self.auth_hash)

    @property
    def role_names(self) -> list[str]:
        return [r.role for r in self.roles]


class UserRole(Base):
    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[str] = mapped_column(String(32), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=venue_now, nullable=False)

    user: Mapped[Profile] = relationship("Profile", back_populates="roles")


class Employee(Base):
    """Roster entry for a staff member (payroll / division), optionally linked to a login."""

    __tablename__ = "employees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employee_id: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    division: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    user_id: Mapped[int | None] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=venue_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=venue_now, onupdate=venue_now, nullable=False
    )

    user: Mapped[Profile | None] = relationship("Profile")


# ==================== ROOMS & BOOKINGS ====================


class Room(Base):
    __tablename__ = "rooms"
    __table_args__ = (
        CheckConstraint("capacity > 0", name="chk_rooms_capacity_positive"),
        CheckConstraint("hourly_rate >= 0", name="chk_rooms_rate_positive"),
        CheckConstraint(_in_values("status", RoomStatus), name="chk_rooms_status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    room_number: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    room_name: Mapped[str] = mapped_column(String(100), nullable=False)
    room_type: Mapped[str] = mapped_column(String(50), nullable=False, default="standard")
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    hourly_rate: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RoomStatus.AVAILABLE.value
    )
    current_session_start: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    waiter_id: Mapped[int | None] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=venue_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=venue_now, onupdate=venue_now, nullable=False
    )

    waiter: Mapped[Profile | None] = relationship("Profile")

    @property
    def label(self) -> str:
        return f"{self.room_name} ({self.room_number})"


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_room_date", "room_id", "booking_date"),
        CheckConstraint(_in_values("status", BookingStatus), name="chk_bookings_status"),
        CheckConstraint("deposit_amount >= 0", name="chk_bookings_deposit_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    room_id: Mapped[int] = mapped_column(ForeignKey("rooms.id"), nullable=False)
    customer_name: Mapped[str] = mapped_column(String(100), nullable=False)
    customer_phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    customer_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    booking_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    duration_hours: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)
    deposit_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=BookingStatus.PENDING.value
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    recurring_booking_id: Mapped[int | None] = mapped_column(
        ForeignKey("recurring_bookings.id", ondelete="SET NULL"), nullable=True
    )
    created_by: Mapped[int | None] = mapped_column(ForeignKey("profiles.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=venue_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=venue_now, onupdate=venue_now, nullable=False
    )

    room: Mapped[Room] = relationship("Room")


class RecurringBooking(Base):
    __tablename__ = "recurring_bookings"
    __table_args__ = (
        CheckConstraint(
            "day_of_week IS NULL OR (day_of_week >= 0 AND day_of_week <= 6)",
            name="chk_recurring_day_of_week_range",
        ),
        CheckConstraint(
            "day_of_month IS NULL OR (day_of_month >= 1 AND day_of_month <= 31)",
            name="chk_recurring_day_of_month_range",
        ),
        CheckConstraint("frequency IN ('weekly', 'monthly')", name="chk_recurring_frequency"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    room_id: Mapped[int] = mapped_column(ForeignKey("rooms.id"), nullable=False)
    customer_name: Mapped[str] = mapped_column(String(100), nullable=False)
    customer_phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    customer_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    frequency: Mapped[str] = mapped_column(String(10), nullable=False)
    day_of_week: Mapped[int | None] = mapped_column(Integer, nullable=True)
    day_of_month: Mapped[int | None] = mapped_column(Integer, nullable=True)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    duration_hours: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)
    hourly_rate: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    deposit_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_by: Mapped[int | None] = mapped_column(ForeignKey("profiles.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=venue_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=venue_now, onupdate=venue_now, nullable=False
    )

    room: Mapped[Room] = relationship("Room")


class BookingReminder(Base):
    __tablename__ = "booking_reminders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    booking_id: Mapped[int] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    email_sent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    email_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    sent_at: Mapped[datetime] = mapped_column(DateTime, default=venue_now, nullable=False)


# ==================== POS ====================


class TaxSetting(Base):
    __tablename__ = "tax_settings"
    __table_args__ = (
        CheckConstraint("rate >= 0 AND rate <= 100", name="chk_tax_settings_rate_range"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=11)
    tax_type: Mapped[str] = mapped_column(String(30), nullable=False, default="ppn")
    applies_to: Mapped[list[str] | None] = mapped_column(JSONB_TYPE, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=venue_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=venue_now, onupdate=venue_now, nullable=False
    )


class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_created_at", "created_at"),
        Index("ix_transactions_cashier_created", "cashier_id", "created_at"),
        CheckConstraint("amount >= 0", name="chk_transactions_amount_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    transaction_type: Mapped[str] = mapped_column(String(20), nullable=False)
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    subtotal: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    discount_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)
    service_charge_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=0)
    service_charge: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)
    tax_rate: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    tax_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)
    final_amount: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    room_id: Mapped[int | None] = mapped_column(ForeignKey("rooms.id"), nullable=True)
    cashier_id: Mapped[int | None] = mapped_column(ForeignKey("profiles.id"), nullable=True)
    session_start: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    session_end: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    duration_hours: Mapped[Decimal | None] = mapped_column(Numeric(6, 2), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=venue_now, nullable=False)

    room: Mapped[Room | None] = relationship("Room")
    cashier: Mapped[Profile | None] = relationship("Profile")
    items: Mapped[list[SalesItem]] = relationship(
        "SalesItem", back_populates="transaction", cascade="all, delete-orphan"
    )

    @property
    def effective_amount(self) -> Decimal:
        """What the customer actually paid."""
        return self.final_amount if self.final_amount is not None else self.amount


class SalesItem(Base):
    __tablename__ = "sales_items"
    __table_args__ = (CheckConstraint("quantity > 0", name="chk_sales_items_quantity_positive"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    transaction_id: Mapped[int] = mapped_column(
        ForeignKey("transactions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=venue_now, nullable=False)

    transaction: Mapped[Transaction] = relationship("Transaction", back_populates="items")
    product: Mapped[Product] = relationship("Product")


# ==================== INVENTORY ====================


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name_id: Mapped[str] = mapped_column(String(100), nullable=False)
    name_en: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[str] = mapped_column(String(30), nullable=False, default="food")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=venue_now, nullable=False)


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="chk_products_stock_non_negative"),
        CheckConstraint("min_stock_level >= 0", name="chk_products_min_stock_non_negative"),
        CheckConstraint("price >= 0", name="chk_products_price_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name_id: Mapped[str] = mapped_column(String(200), nullable=False)
    name_en: Mapped[str] = mapped_column(String(200), nullable=False)
    description_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    description_en: Mapped[str | None] = mapped_column(Text, nullable=True)
    sku: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    category_id: Mapped[int | None] = mapped_column(ForeignKey("categories.id"), nullable=True)
    price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    cost: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)
    stock_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    min_stock_level: Mapped[int] = mapped_column(
        Integer, nullable=False, default=DEFAULT_MIN_STOCK_LEVEL
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=venue_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=venue_now, onupdate=venue_now, nullable=False
    )

    category: Mapped[Category | None] = relationship("Category")

    @property
    def is_low_stock(self) -> bool:
        return self.stock_quantity <= self.min_stock_level


class StockMovement(Base):
    __tablename__ = "stock_movements"
    __table_args__ = (Index("ix_stock_movements_product_created", "product_id", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), nullable=False)
    movement_type: Mapped[str] = mapped_column(String(20), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    reference_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    reference_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[int | None] = mapped_column(ForeignKey("profiles.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=venue_now, nullable=False)

    product: Mapped[Product] = relationship("Product")


class PurchaseOrder(Base):
    __tablename__ = "purchase_orders"
    __table_args__ = (
        CheckConstraint(_in_values("status", PurchaseStatus), name="chk_purchase_orders_status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    po_number: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    supplier_name: Mapped[str] = mapped_column(String(200), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PurchaseStatus.PENDING.value
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    requested_by: Mapped[int | None] = mapped_column(ForeignKey("profiles.id"), nullable=True)
    approved_by: Mapped[int | None] = mapped_column(ForeignKey("profiles.id"), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=venue_now, nullable=False)

    items: Mapped[list[PurchaseOrderItem]] = relationship(
        "PurchaseOrderItem", back_populates="purchase_order", cascade="all, delete-orphan"
    )


class PurchaseOrderItem(Base):
    __tablename__ = "purchase_order_items"
    __table_args__ = (CheckConstraint("quantity > 0", name="chk_po_items_quantity_positive"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    purchase_order_id: Mapped[int] = mapped_column(
        ForeignKey("purchase_orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_cost: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(MONEY, nullable=False)

    purchase_order: Mapped[PurchaseOrder] = relationship("PurchaseOrder", back_populates="items")
    product: Mapped[Product] = relationship("Product")


# ==================== CASH HANDLING ====================


class Shift(Base):
    __tablename__ = "shifts"
    __table_args__ = (
        Index("ix_shifts_user_status", "user_id", "status"),
        CheckConstraint(_in_values("status", ShiftStatus), name="chk_shifts_status"),
        CheckConstraint("opening_balance >= 0", name="chk_shifts_opening_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("profiles.id"), nullable=False)
    start_time: Mapped[datetime] = mapped_column(DateTime, default=venue_now, nullable=False)
    end_time: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    opening_balance: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)
    closing_balance: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    status: Mapped[str] = mapped_column(
        String(10), nullable=False, default=ShiftStatus.ACTIVE.value
    )
    total_transactions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_sales: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)
    total_cash: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)
    total_card: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)
    total_transfer: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)
    total_ewallet: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)
    total_discount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)
    cash_difference: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    user: Mapped[Profile] = relationship("Profile")


class CashDrawer(Base):
    __tablename__ = "cash_drawers"
    __table_args__ = (
        CheckConstraint(_in_values("status", DrawerStatus), name="chk_cash_drawers_status"),
        CheckConstraint("current_balance >= 0", name="chk_cash_drawers_balance_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("profiles.id"), nullable=False, index=True)
    opening_balance: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)
    current_balance: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)
    total_cash_in: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)
    total_cash_out: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        String(10), nullable=False, default=DrawerStatus.OPEN.value
    )
    opened_at: Mapped[datetime] = mapped_column(DateTime, default=venue_now, nullable=False)
    closed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    closing_balance: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    cash_difference: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)

    movements: Mapped[list[CashDrawerTransaction]] = relationship(
        "CashDrawerTransaction",
        back_populates="drawer",
        cascade="all, delete-orphan",
        order_by="CashDrawerTransaction.id",
    )


class CashDrawerTransaction(Base):
    __tablename__ = "cash_drawer_transactions"
    __table_args__ = (
        CheckConstraint("type IN ('in', 'out')", name="chk_cash_drawer_tx_type"),
        CheckConstraint("amount > 0", name="chk_cash_drawer_tx_amount_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    drawer_id: Mapped[int] = mapped_column(
        ForeignKey("cash_drawers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(String(5), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=venue_now, nullable=False)

    drawer: Mapped[CashDrawer] = relationship("CashDrawer", back_populates="movements")


class ApprovalRequest(Base):
    __tablename__ = "approval_requests"
    __table_args__ = (
        Index("ix_approval_requests_status", "status"),
        CheckConstraint(_in_values("status", ApprovalStatus), name="chk_approval_status"),
        CheckConstraint("amount > 0", name="chk_approval_amount_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    request_type: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    percentage: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    requested_by: Mapped[int] = mapped_column(ForeignKey("profiles.id"), nullable=False)
    room_id: Mapped[int | None] = mapped_column(ForeignKey("rooms.id"), nullable=True)
    transaction_id: Mapped[int | None] = mapped_column(
        ForeignKey("transactions.id"), nullable=True
    )
    status: Mapped[str] = mapped_column(
        String(10), nullable=False, default=ApprovalStatus.PENDING.value
    )
    approved_by: Mapped[int | None] = mapped_column(ForeignKey("profiles.id"), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    applied_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=venue_now, nullable=False)

    requester: Mapped[Profile] = relationship("Profile", foreign_keys=[requested_by])
    approver: Mapped[Profile | None] = relationship("Profile", foreign_keys=[approved_by])
    room: Mapped[Room | None] = relationship("Room")


class Expense(Base):
    __tablename__ = "expenses"
    __table_args__ = (CheckConstraint("amount > 0", name="chk_expenses_amount_positive"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    expense_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    receipt_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    recorded_by: Mapped[int | None] = mapped_column(ForeignKey("profiles.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=venue_now, nullable=False)


# ==================== FLOOR OPERATIONS ====================


class FBOrder(Base):
    """Food & beverage order taken by a waiter for an occupied room."""

    __tablename__ = "fb_orders"
    __table_args__ = (
        Index("ix_fb_orders_room_status", "room_id", "status"),
        CheckConstraint(_in_values("status", FBOrderStatus), name="chk_fb_orders_status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    room_id: Mapped[int] = mapped_column(ForeignKey("rooms.id"), nullable=False)
    waiter_id: Mapped[int | None] = mapped_column(ForeignKey("profiles.id"), nullable=True)
    total_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=FBOrderStatus.PENDING.value
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    transaction_id: Mapped[int | None] = mapped_column(
        ForeignKey("transactions.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=venue_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=venue_now, onupdate=venue_now, nullable=False
    )

    room: Mapped[Room] = relationship("Room")
    waiter: Mapped[Profile | None] = relationship("Profile")
    items: Mapped[list[FBOrderItem]] = relationship(
        "FBOrderItem", back_populates="order", cascade="all, delete-orphan"
    )


class FBOrderItem(Base):
    __tablename__ = "fb_order_items"
    __table_args__ = (CheckConstraint("quantity > 0", name="chk_fb_items_quantity_positive"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("fb_orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(MONEY, nullable=False)

    order: Mapped[FBOrder] = relationship("FBOrder", back_populates="items")
    product: Mapped[Product] = relationship("Product")


class CleaningTask(Base):
    __tablename__ = "cleaning_tasks"
    __table_args__ = (
        CheckConstraint(_in_values("status", TaskStatus), name="chk_cleaning_tasks_status"),
        CheckConstraint(_in_values("priority", TaskPriority), name="chk_cleaning_tasks_priority"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    room_id: Mapped[int] = mapped_column(ForeignKey("rooms.id"), nullable=False)
    assigned_to: Mapped[int | None] = mapped_column(ForeignKey("profiles.id"), nullable=True)
    assigned_by: Mapped[int | None] = mapped_column(ForeignKey("profiles.id"), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TaskStatus.PENDING.value
    )
    priority: Mapped[str] = mapped_column(
        String(10), nullable=False, default=TaskPriority.NORMAL.value
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=venue_now, nullable=False)

    room: Mapped[Room] = relationship("Room")
    assignee: Mapped[Profile | None] = relationship("Profile", foreign_keys=[assigned_to])


# ==================== CHAT ====================


class ChatChannel(Base):
    __tablename__ = "chat_channels"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=venue_now, nullable=False)


class ChatChannelMember(Base):
    __tablename__ = "chat_channel_members"
    __table_args__ = (
        UniqueConstraint("channel_id", "user_id", name="uq_chat_members_channel_user"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    channel_id: Mapped[int] = mapped_column(
        ForeignKey("chat_channels.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    joined_at: Mapped[datetime] = mapped_column(DateTime, default=venue_now, nullable=False)
    last_read_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    # unread counts compare message ids; timestamps only have second precision
    last_read_message_id: Mapped[int | None] = mapped_column(Integer, nullable=True)


class ChatMessage(Base):
    __tablename__ = "chat_messages"
    __table_args__ = (Index("ix_chat_messages_channel_created", "channel_id", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    channel_id: Mapped[int] = mapped_column(
        ForeignKey("chat_channels.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(ForeignKey("profiles.id"), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_all_mention: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    mentions: Mapped[list[str] | None] = mapped_column(JSONB_TYPE, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=venue_now, nullable=False)

    author: Mapped[Profile] = relationship("Profile")


# ==================== REALTIME ====================


class RealtimeEvent(Base):
    """
    Row-change events persisted for dashboards that poll the change feed.
    """

    __tablename__ = "realtime_events"
    __table_args__ = (
        Index("ix_realtime_event_channel", "channel"),
        Index("ix_realtime_event_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    channel: Mapped[str] = mapped_column(String(50), nullable=False)
    event_type: Mapped[str] = mapped_column(String(20), nullable=False)
    record_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    payload: Mapped[dict[str, Any] | None] = mapped_column(JSONB_TYPE, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=venue_now, nullable=False)
