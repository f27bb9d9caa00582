"""Service for managing karaoke rooms and their live sessions."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from ktv_shared.constants import BookingStatus, RealtimeChannel, Roles, RoomStatus
from ktv_shared.currency import to_decimal
from ktv_shared.datetime_utils import format_remaining, venue_now
from ktv_shared.db import get_session
from ktv_shared.logging_config import get_logger
from ktv_shared.models import Booking, Room, Transaction, UserRole
from ktv_shared.serializers import serialize_booking, serialize_room, serialize_transaction
from ktv_shared.supabase.realtime import DELETE, INSERT, UPDATE, emit_change
from ktv_shared.validation import ConflictError, NotFoundError, ValidationError

logger = get_logger(__name__)


def load_room(session: Session, room_id: int) -> Room:
    room = session.get(Room, room_id)
    if room is None:
        raise NotFoundError("Room not found")
    return room


def _emit_room(session: Session, room: Room, event: str = UPDATE) -> None:
    emit_change(
        session,
        RealtimeChannel.ROOMS,
        event,
        room.id,
        {"status": room.status, "current_session_start": room.current_session_start},
    )


def list_rooms(status: str | None = None) -> list[dict[str, Any]]:
    with get_session() as session:
        stmt = select(Room).order_by(Room.room_number)
        if status:
            stmt = stmt.where(Room.status == status)
        rooms = session.execute(stmt).scalars().all()
        return [serialize_room(room) for room in rooms]


def get_room(room_id: int) -> dict[str, Any]:
    with get_session() as session:
        return serialize_room(load_room(session, room_id))


def create_room(data: dict[str, Any]) -> dict[str, Any]:
    with get_session() as session:
        duplicate = session.execute(
            select(Room.id).where(Room.room_number == data["room_number"])
        ).scalar_one_or_none()
        if duplicate is not None:
            raise ConflictError(f"Room number {data['room_number']} already exists")

        room = Room(
            room_number=data["room_number"],
            room_name=data["room_name"],
            room_type=data.get("room_type") or "standard",
            capacity=data["capacity"],
            hourly_rate=to_decimal(data["hourly_rate"]),
            status=data.get("status") or RoomStatus.AVAILABLE.value,
            notes=data.get("notes"),
        )
        session.add(room)
        session.flush()
        _emit_room(session, room, INSERT)

        logger.info(f"Created room {room.id}: {room.label}")
        return serialize_room(room)


def update_room(room_id: int, data: dict[str, Any]) -> dict[str, Any]:
    with get_session() as session:
        room = load_room(session, room_id)

        if "room_number" in data and data["room_number"] != room.room_number:
            duplicate = session.execute(
                select(Room.id).where(Room.room_number == data["room_number"], Room.id != room_id)
            ).scalar_one_or_none()
            if duplicate is not None:
                raise ConflictError(f"Room number {data['room_number']} already exists")
            room.room_number = data["room_number"]

        for field in ("room_name", "room_type", "capacity", "notes"):
            if field in data and data[field] is not None:
                setattr(room, field, data[field])
        if data.get("hourly_rate") is not None:
            room.hourly_rate = to_decimal(data["hourly_rate"])

        session.flush()
        _emit_room(session, room)
        logger.info(f"Updated room {room.id}")
        return serialize_room(room)


def delete_room(room_id: int) -> None:
    with get_session() as session:
        room = load_room(session, room_id)
        if room.status == RoomStatus.OCCUPIED.value:
            raise ConflictError("Cannot delete a room with an active session")
        has_bookings = session.execute(
            select(Booking.id).where(Booking.room_id == room_id).limit(1)
        ).scalar_one_or_none()
        if has_bookings is not None:
            raise ConflictError("Room has bookings; set it to maintenance instead")
        emit_change(session, RealtimeChannel.ROOMS, DELETE, room.id)
        session.delete(room)
        logger.info(f"Deleted room {room_id}")


def set_room_status(room_id: int, status: str) -> dict[str, Any]:
    """
    Change a room's status by hand.

    Leaving ``occupied`` this way ends the session without billing it, so
    the checkout flow should be used for paying customers.
    """
    if status not in {s.value for s in RoomStatus}:
        raise ValidationError(f"Invalid room status: {status}")

    with get_session() as session:
        room = load_room(session, room_id)
        previous = room.status
        room.status = status
        if status == RoomStatus.OCCUPIED.value and room.current_session_start is None:
            room.current_session_start = venue_now()
        elif status != RoomStatus.OCCUPIED.value:
            room.current_session_start = None

        session.flush()
        _emit_room(session, room)
        logger.info(f"Room {room.id} status {previous} -> {status}")
        return serialize_room(room)


def start_session(room_id: int, started_at: datetime | None = None) -> dict[str, Any]:
    with get_session() as session:
        room = load_room(session, room_id)
        if room.status == RoomStatus.OCCUPIED.value:
            raise ConflictError("Room already has an active session")
        if room.status == RoomStatus.MAINTENANCE.value:
            raise ConflictError("Room is under maintenance")

        room.status = RoomStatus.OCCUPIED.value
        room.current_session_start = started_at or venue_now()
        session.flush()
        _emit_room(session, room)

        logger.info(f"Started session in room {room.id} at {room.current_session_start}")
        return serialize_room(room)


def assign_waiter(room_id: int, waiter_id: int | None) -> dict[str, Any]:
    with get_session() as session:
        room = load_room(session, room_id)
        if waiter_id is not None:
            is_floor_staff = session.execute(
                select(UserRole.id).where(
                    UserRole.user_id == waiter_id,
                    UserRole.role.in_([Roles.WAITER.value, Roles.WAITRESS.value]),
                ).limit(1)
            ).scalar_one_or_none()
            if is_floor_staff is None:
                raise ValidationError("Assigned user is not a waiter or waitress")

        room.waiter_id = waiter_id
        session.flush()
        _emit_room(session, room)
        logger.info(f"Room {room.id} waiter set to {waiter_id}")
        return serialize_room(room)


def rooms_for_waiter(waiter_id: int) -> list[dict[str, Any]]:
    with get_session() as session:
        rooms = (
            session.execute(
                select(Room).where(Room.waiter_id == waiter_id).order_by(Room.room_number)
            )
            .scalars()
            .all()
        )
        return [serialize_room(room) for room in rooms]


def room_timer(room_id: int, now: datetime | None = None) -> dict[str, Any]:
    """
    Countdown for the room card: time left in the next active booking.

    Only occupied and reserved rooms show a timer.
    """
    now = now or venue_now()
    with get_session() as session:
        room = load_room(session, room_id)
        result: dict[str, Any] = {
            "room_id": room.id,
            "booking_id": None,
            "end_time": None,
            "time_remaining": None,
            "minutes_remaining": None,
        }
        if room.status not in (RoomStatus.OCCUPIED.value, RoomStatus.RESERVED.value):
            return result

        booking = (
            session.execute(
                select(Booking)
                .where(
                    Booking.room_id == room_id,
                    Booking.status.in_(BookingStatus.active_values()),
                    Booking.booking_date >= now.date(),
                )
                .order_by(Booking.booking_date, Booking.start_time)
                .limit(1)
            )
            .scalars()
            .first()
        )
        if booking is None:
            return result

        end_at = datetime.combine(booking.booking_date, booking.end_time)
        remaining = end_at - now
        result["booking_id"] = booking.id
        result["end_time"] = end_at.isoformat()
        if remaining.total_seconds() > 0:
            result["time_remaining"] = format_remaining(remaining)
            result["minutes_remaining"] = int(remaining.total_seconds() // 60)
        return result


def room_history(room_id: int, limit: int = 50) -> dict[str, Any]:
    with get_session() as session:
        room = load_room(session, room_id)
        bookings = (
            session.execute(
                select(Booking)
                .where(Booking.room_id == room_id)
                .order_by(Booking.booking_date.desc(), Booking.start_time.desc())
                .limit(limit)
            )
            .scalars()
            .all()
        )
        transactions = (
            session.execute(
                select(Transaction)
                .where(Transaction.room_id == room_id)
                .order_by(Transaction.created_at.desc())
                .limit(limit)
            )
            .scalars()
            .all()
        )
        return {
            "room": serialize_room(room),
            "bookings": [serialize_booking(b) for b in bookings],
            "transactions": [serialize_transaction(t) for t in transactions],
        }
