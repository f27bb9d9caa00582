"""
Serializers for consistent API responses.
"""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from ktv_shared.models import (
    ApprovalRequest,
    Booking,
    CashDrawer,
    CashDrawerTransaction,
    Category,
    ChatMessage,
    CleaningTask,
    Employee,
    Expense,
    FBOrder,
    Product,
    PurchaseOrder,
    RecurringBooking,
    Room,
    Shift,
    StockMovement,
    TaxSetting,
    Transaction,
)


def _money(value: Decimal | float | None) -> float | None:
    if value is None:
        return None
    return float(value)


def _iso(value: datetime | date | time | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, time):
        return value.strftime("%H:%M")
    return value.isoformat()


def serialize_employee(employee: Employee) -> dict[str, Any]:
    return {
        "id": employee.id,
        "employee_id": employee.employee_id,
        "name": employee.name,
        "division": employee.division,
        "phone": employee.phone,
        "user_id": employee.user_id,
        "created_at": _iso(employee.created_at),
    }


def serialize_room(room: Room) -> dict[str, Any]:
    return {
        "id": room.id,
        "room_number": room.room_number,
        "room_name": room.room_name,
        "room_type": room.room_type,
        "capacity": room.capacity,
        "hourly_rate": _money(room.hourly_rate),
        "status": room.status,
        "current_session_start": _iso(room.current_session_start),
        "notes": room.notes,
        "waiter_id": room.waiter_id,
        "waiter_name": room.waiter.full_name if room.waiter else None,
    }


def serialize_booking(booking: Booking) -> dict[str, Any]:
    return {
        "id": booking.id,
        "room_id": booking.room_id,
        "room_name": booking.room.room_name if booking.room else None,
        "room_number": booking.room.room_number if booking.room else None,
        "customer_name": booking.customer_name,
        "customer_phone": booking.customer_phone,
        "customer_email": booking.customer_email,
        "booking_date": _iso(booking.booking_date),
        "start_time": _iso(booking.start_time),
        "end_time": _iso(booking.end_time),
        "duration_hours": _money(booking.duration_hours),
        "total_amount": _money(booking.total_amount),
        "deposit_amount": _money(booking.deposit_amount),
        "status": booking.status,
        "notes": booking.notes,
        "recurring_booking_id": booking.recurring_booking_id,
        "created_by": booking.created_by,
        "created_at": _iso(booking.created_at),
    }


def serialize_recurring_booking(rule: RecurringBooking) -> dict[str, Any]:
    return {
        "id": rule.id,
        "room_id": rule.room_id,
        "room_name": rule.room.room_name if rule.room else None,
        "customer_name": rule.customer_name,
        "customer_phone": rule.customer_phone,
        "customer_email": rule.customer_email,
        "frequency": rule.frequency,
        "day_of_week": rule.day_of_week,
        "day_of_month": rule.day_of_month,
        "start_time": _iso(rule.start_time),
        "end_time": _iso(rule.end_time),
        "duration_hours": _money(rule.duration_hours),
        "hourly_rate": _money(rule.hourly_rate),
        "deposit_amount": _money(rule.deposit_amount),
        "start_date": _iso(rule.start_date),
        "end_date": _iso(rule.end_date),
        "notes": rule.notes,
        "is_active": rule.is_active,
    }


def serialize_transaction(tx: Transaction, include_items: bool = False) -> dict[str, Any]:
    data = {
        "id": tx.id,
        "transaction_type": tx.transaction_type,
        "payment_method": tx.payment_method,
        "amount": _money(tx.amount),
        "subtotal": _money(tx.subtotal),
        "discount_amount": _money(tx.discount_amount),
        "service_charge_rate": _money(tx.service_charge_rate),
        "service_charge": _money(tx.service_charge),
        "tax_rate": _money(tx.tax_rate),
        "tax_amount": _money(tx.tax_amount),
        "final_amount": _money(tx.final_amount),
        "description": tx.description,
        "room_id": tx.room_id,
        "room_name": tx.room.room_name if tx.room else None,
        "cashier_id": tx.cashier_id,
        "cashier_name": tx.cashier.full_name if tx.cashier else None,
        "session_start": _iso(tx.session_start),
        "session_end": _iso(tx.session_end),
        "duration_hours": _money(tx.duration_hours),
        "created_at": _iso(tx.created_at),
    }
    if include_items:
        data["items"] = [
            {
                "product_id": item.product_id,
                "product_name": item.product.name_en if item.product else None,
                "quantity": item.quantity,
                "unit_price": _money(item.unit_price),
                "subtotal": _money(item.subtotal),
            }
            for item in tx.items
        ]
    return data


def serialize_tax_setting(setting: TaxSetting) -> dict[str, Any]:
    return {
        "id": setting.id,
        "name": setting.name,
        "rate": _money(setting.rate),
        "tax_type": setting.tax_type,
        "applies_to": setting.applies_to or [],
        "is_active": setting.is_active,
    }


def serialize_category(category: Category) -> dict[str, Any]:
    return {
        "id": category.id,
        "name_id": category.name_id,
        "name_en": category.name_en,
        "type": category.type,
    }


def serialize_product(product: Product) -> dict[str, Any]:
    return {
        "id": product.id,
        "name_id": product.name_id,
        "name_en": product.name_en,
        "description_id": product.description_id,
        "description_en": product.description_en,
        "sku": product.sku,
        "category_id": product.category_id,
        "category_name": product.category.name_en if product.category else None,
        "price": _money(product.price),
        "cost": _money(product.cost),
        "stock_quantity": product.stock_quantity,
        "min_stock_level": product.min_stock_level,
        "is_low_stock": product.is_low_stock,
        "is_active": product.is_active,
        "image_url": product.image_url,
    }


def serialize_stock_movement(movement: StockMovement) -> dict[str, Any]:
    return {
        "id": movement.id,
        "product_id": movement.product_id,
        "product_name": movement.product.name_en if movement.product else None,
        "movement_type": movement.movement_type,
        "quantity": movement.quantity,
        "reference_id": movement.reference_id,
        "reference_type": movement.reference_type,
        "notes": movement.notes,
        "created_by": movement.created_by,
        "created_at": _iso(movement.created_at),
    }


def serialize_purchase_order(order: PurchaseOrder) -> dict[str, Any]:
    return {
        "id": order.id,
        "po_number": order.po_number,
        "supplier_name": order.supplier_name,
        "total_amount": _money(order.total_amount),
        "status": order.status,
        "notes": order.notes,
        "requested_by": order.requested_by,
        "approved_by": order.approved_by,
        "approved_at": _iso(order.approved_at),
        "completed_at": _iso(order.completed_at),
        "created_at": _iso(order.created_at),
        "items": [
            {
                "id": item.id,
                "product_id": item.product_id,
                "product_name": item.product.name_en if item.product else None,
                "quantity": item.quantity,
                "unit_cost": _money(item.unit_cost),
                "subtotal": _money(item.subtotal),
            }
            for item in order.items
        ],
    }


def serialize_shift(shift: Shift, live_totals: dict[str, Any] | None = None) -> dict[str, Any]:
    """``live_totals`` replaces the stored totals of a shift that is still open."""
    data = {
        "id": shift.id,
        "user_id": shift.user_id,
        "user_name": shift.user.full_name if shift.user else None,
        "start_time": _iso(shift.start_time),
        "end_time": _iso(shift.end_time),
        "opening_balance": _money(shift.opening_balance),
        "closing_balance": _money(shift.closing_balance),
        "status": shift.status,
        "total_transactions": shift.total_transactions,
        "total_sales": _money(shift.total_sales),
        "total_cash": _money(shift.total_cash),
        "total_card": _money(shift.total_card),
        "total_transfer": _money(shift.total_transfer),
        "total_ewallet": _money(shift.total_ewallet),
        "total_discount": _money(shift.total_discount),
        "cash_difference": _money(shift.cash_difference),
        "notes": shift.notes,
    }
    for key, value in (live_totals or {}).items():
        data[key] = value if key == "total_transactions" else _money(value)
    return data


def serialize_cash_movement(movement: CashDrawerTransaction) -> dict[str, Any]:
    return {
        "id": movement.id,
        "type": movement.type,
        "amount": _money(movement.amount),
        "description": movement.description,
        "created_at": _iso(movement.created_at),
    }


def serialize_cash_drawer(drawer: CashDrawer, include_movements: bool = False) -> dict[str, Any]:
    data = {
        "id": drawer.id,
        "user_id": drawer.user_id,
        "opening_balance": _money(drawer.opening_balance),
        "current_balance": _money(drawer.current_balance),
        "total_cash_in": _money(drawer.total_cash_in),
        "total_cash_out": _money(drawer.total_cash_out),
        "status": drawer.status,
        "opened_at": _iso(drawer.opened_at),
        "closed_at": _iso(drawer.closed_at),
        "closing_balance": _money(drawer.closing_balance),
        "cash_difference": _money(drawer.cash_difference),
    }
    if include_movements:
        data["movements"] = [serialize_cash_movement(m) for m in drawer.movements]
    return data


def serialize_approval(request: ApprovalRequest) -> dict[str, Any]:
    return {
        "id": request.id,
        "request_type": request.request_type,
        "amount": _money(request.amount),
        "percentage": _money(request.percentage),
        "reason": request.reason,
        "requested_by": request.requested_by,
        "requester_name": request.requester.full_name if request.requester else None,
        "room_id": request.room_id,
        "room_name": request.room.room_name if request.room else None,
        "transaction_id": request.transaction_id,
        "status": request.status,
        "approved_by": request.approved_by,
        "approver_name": request.approver.full_name if request.approver else None,
        "approved_at": _iso(request.approved_at),
        "applied_at": _iso(request.applied_at),
        "created_at": _iso(request.created_at),
    }


def serialize_expense(expense: Expense) -> dict[str, Any]:
    return {
        "id": expense.id,
        "amount": _money(expense.amount),
        "category": expense.category,
        "description": expense.description,
        "expense_date": _iso(expense.expense_date),
        "receipt_url": expense.receipt_url,
        "recorded_by": expense.recorded_by,
    }


def serialize_fb_order(order: FBOrder) -> dict[str, Any]:
    return {
        "id": order.id,
        "room_id": order.room_id,
        "room_name": order.room.room_name if order.room else None,
        "room_number": order.room.room_number if order.room else None,
        "waiter_id": order.waiter_id,
        "waiter_name": order.waiter.full_name if order.waiter else None,
        "total_amount": _money(order.total_amount),
        "status": order.status,
        "notes": order.notes,
        "transaction_id": order.transaction_id,
        "created_at": _iso(order.created_at),
        "items": [
            {
                "product_id": item.product_id,
                "product_name": item.product.name_en if item.product else None,
                "quantity": item.quantity,
                "unit_price": _money(item.unit_price),
                "subtotal": _money(item.subtotal),
            }
            for item in order.items
        ],
    }


def serialize_cleaning_task(task: CleaningTask) -> dict[str, Any]:
    return {
        "id": task.id,
        "room_id": task.room_id,
        "room_name": task.room.room_name if task.room else None,
        "room_number": task.room.room_number if task.room else None,
        "assigned_to": task.assigned_to,
        "assignee_name": task.assignee.full_name if task.assignee else None,
        "assigned_by": task.assigned_by,
        "status": task.status,
        "priority": task.priority,
        "notes": task.notes,
        "started_at": _iso(task.started_at),
        "completed_at": _iso(task.completed_at),
        "created_at": _iso(task.created_at),
    }


def serialize_chat_message(message: ChatMessage) -> dict[str, Any]:
    return {
        "id": message.id,
        "channel_id": message.channel_id,
        "user_id": message.user_id,
        "author_name": message.author.full_name if message.author else None,
        "content": message.content,
        "is_all_mention": message.is_all_mention,
        "mentions": message.mentions or [],
        "created_at": _iso(message.created_at),
    }


def success_response(data: Any, message: str | None = None) -> dict[str, Any]:
    """Create a standardized success response."""
    response = {"status": "success", "data": data, "error": None}
    if message:
        response["message"] = message
    return response


def error_response(error: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    """Create a standardized error response."""
    response = {"status": "error", "data": None, "error": error}
    if details:
        response["details"] = details
    return response
