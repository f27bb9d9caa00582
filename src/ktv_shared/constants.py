"""
Application constants and enums.
"""

from enum import Enum


class RoomStatus(str, Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"
    RESERVED = "reserved"
    CLEANING = "cleaning"


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

    @classmethod
    def active_values(cls) -> tuple[str, ...]:
        """Statuses that hold a room for their time slot."""
        return (cls.PENDING.value, cls.CONFIRMED.value)


class RecurringFrequency(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    EWALLET = "ewallet"
    TRANSFER = "transfer"


class TransactionType(str, Enum):
    ROOM_RENTAL = "room_rental"
    FOOD_BEVERAGE = "food_beverage"
    OTHER = "other"


class Roles(str, Enum):
    OWNER = "owner"
    MANAGER = "manager"
    CASHIER = "cashier"
    WAITER = "waiter"
    WAITRESS = "waitress"
    ACCOUNTANT = "accountant"

    @classmethod
    def all_values(cls) -> set:
        return {member.value for member in cls}


# Highest first; picks the dashboard a multi-role user lands on
ROLE_PRIORITY = (
    Roles.OWNER.value,
    Roles.MANAGER.value,
    Roles.ACCOUNTANT.value,
    Roles.CASHIER.value,
    Roles.WAITER.value,
    Roles.WAITRESS.value,
)


class ApprovalRequestType(str, Enum):
    DISCOUNT = "discount"
    MINIMUM_CHARGE = "minimum_charge"


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PurchaseStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


class MovementType(str, Enum):
    PURCHASE = "purchase"
    SALE = "sale"
    ADJUSTMENT = "adjustment"
    RETURN = "return"


class ShiftStatus(str, Enum):
    ACTIVE = "active"
    CLOSED = "closed"


class DrawerStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class CashMovementType(str, Enum):
    IN = "in"
    OUT = "out"


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class FBOrderStatus(str, Enum):
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    SERVED = "served"
    CANCELLED = "cancelled"

    @classmethod
    def open_values(cls) -> tuple[str, ...]:
        return (cls.PENDING.value, cls.PREPARING.value, cls.READY.value)


FB_ORDER_TRANSITIONS: dict[str, set[str]] = {
    FBOrderStatus.PENDING.value: {FBOrderStatus.PREPARING.value, FBOrderStatus.CANCELLED.value},
    FBOrderStatus.PREPARING.value: {FBOrderStatus.READY.value, FBOrderStatus.CANCELLED.value},
    FBOrderStatus.READY.value: {FBOrderStatus.SERVED.value},
    FBOrderStatus.SERVED.value: set(),
    FBOrderStatus.CANCELLED.value: set(),
}


# Employee divisions as printed on the staff roster
DIVISIONS = (
    "MANAGER",
    "ACCOUNTING",
    "KAPTEN",
    "KASIR",
    "WAITERS",
    "OB",
    "DJ",
    "SECURTY",
    "SOUNDMEN",
    "BAR",
)


class RealtimeChannel(str, Enum):
    ROOMS = "rooms"
    BOOKINGS = "bookings"
    TRANSACTIONS = "transactions"
    APPROVAL_REQUESTS = "approval_requests"
    PRODUCTS = "products"
    CHAT_MESSAGES = "chat_messages"
    FB_ORDERS = "fb_orders"
    CLEANING_TASKS = "cleaning_tasks"
    SHIFTS = "shifts"


PHONE_PATTERN = r"^(\+?62|0)[0-9]{9,13}$"

GENERAL_CHANNEL_NAME = "General"
CHAT_HISTORY_LIMIT = 100
CHAT_MESSAGE_MAX_LENGTH = 2000

MAX_BOOKING_EXTENSION_HOURS = 12
MIN_SPLIT_PARTS = 2
MAX_SPLIT_PARTS = 10

DEFAULT_MIN_STOCK_LEVEL = 10
REALTIME_EVENT_TTL_HOURS = 24
AUTO_GENERATED_NOTE = "(Auto-generated from recurring booking)"
