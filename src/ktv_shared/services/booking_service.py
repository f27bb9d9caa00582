"""
Room bookings: availability checks, create/update, extensions and calendar views.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from ktv_shared.constants import MAX_BOOKING_EXTENSION_HOURS, BookingStatus, RealtimeChannel
from ktv_shared.currency import round_idr, to_decimal
from ktv_shared.datetime_utils import add_hours, hours_between, parse_date, parse_time, venue_now
from ktv_shared.db import get_session
from ktv_shared.logging_config import get_logger
from ktv_shared.models import Booking
from ktv_shared.serializers import serialize_booking
from ktv_shared.services.room_service import load_room
from ktv_shared.supabase.realtime import INSERT, UPDATE, emit_change
from ktv_shared.validation import ConflictError, NotFoundError, ValidationError

logger = get_logger(__name__)


def room_is_available(
    session: Session,
    room_id: int,
    booking_date: date,
    start_time: time,
    end_time: time,
    exclude_booking_id: int | None = None,
) -> bool:
    """
    True when no pending/confirmed booking of the room overlaps the slot.

    Two slots overlap when each starts before the other ends, so
    back-to-back bookings (one ends at 20:00, the next starts at 20:00) are fine.
    """
    stmt = select(Booking.id).where(
        Booking.room_id == room_id,
        Booking.booking_date == booking_date,
        Booking.status.in_(BookingStatus.active_values()),
        Booking.start_time < end_time,
        Booking.end_time > start_time,
    )
    if exclude_booking_id is not None:
        stmt = stmt.where(Booking.id != exclude_booking_id)
    return session.execute(stmt.limit(1)).scalar_one_or_none() is None


def check_room_availability(
    room_id: int,
    booking_date: date | str,
    start_time: time | str,
    end_time: time | str,
    exclude_booking_id: int | None = None,
) -> bool:
    booking_date = parse_date(booking_date, "booking_date")
    start_time = parse_time(start_time, "start_time")
    end_time = parse_time(end_time, "end_time")
    if booking_date is None or start_time is None or end_time is None:
        raise ValidationError("booking_date, start_time and end_time are required")

    with get_session() as session:
        return room_is_available(
            session, room_id, booking_date, start_time, end_time, exclude_booking_id
        )


def _slot_hours(start_time: time, end_time: time) -> Decimal:
    if end_time <= start_time:
        raise ValidationError("End time must be after start time")
    return Decimal(str(round(hours_between(start_time, end_time), 2)))


def load_booking(session: Session, booking_id: int) -> Booking:
    booking = session.get(Booking, booking_id)
    if booking is None:
        raise NotFoundError("Booking not found")
    return booking


def _emit_booking(session: Session, booking: Booking, event: str = UPDATE) -> None:
    emit_change(
        session,
        RealtimeChannel.BOOKINGS,
        event,
        booking.id,
        {
            "room_id": booking.room_id,
            "booking_date": booking.booking_date,
            "status": booking.status,
        },
    )


def create_booking(data: dict[str, Any], created_by: int | None = None) -> dict[str, Any]:
    """
    Book a room for a time slot on one day.

    Duration and total are derived from the slot and the room's hourly rate.
    """
    booking_date = parse_date(data.get("booking_date"), "booking_date")
    start_time = parse_time(data.get("start_time"), "start_time")
    end_time = parse_time(data.get("end_time"), "end_time")
    if booking_date is None or start_time is None or end_time is None:
        raise ValidationError("booking_date, start_time and end_time are required")
    duration = _slot_hours(start_time, end_time)

    with get_session() as session:
        room = load_room(session, data["room_id"])
        if not room_is_available(session, room.id, booking_date, start_time, end_time):
            raise ConflictError("Room not available for the selected time")

        booking = Booking(
            room_id=room.id,
            customer_name=data["customer_name"],
            customer_phone=data.get("customer_phone"),
            customer_email=data.get("customer_email"),
            booking_date=booking_date,
            start_time=start_time,
            end_time=end_time,
            duration_hours=duration,
            total_amount=round_idr(duration * to_decimal(room.hourly_rate)),
            deposit_amount=round_idr(data.get("deposit_amount") or 0),
            status=data.get("status") or BookingStatus.PENDING.value,
            notes=data.get("notes"),
            created_by=created_by,
        )
        session.add(booking)
        session.flush()
        _emit_booking(session, booking, INSERT)

        logger.info(
            f"Created booking {booking.id} for room {room.id} on {booking_date} "
            f"{start_time:%H:%M}-{end_time:%H:%M}"
        )
        return serialize_booking(booking)


def update_booking(booking_id: int, data: dict[str, Any]) -> dict[str, Any]:
    with get_session() as session:
        booking = load_booking(session, booking_id)

        room_id = data.get("room_id") or booking.room_id
        booking_date = parse_date(data.get("booking_date"), "booking_date") or booking.booking_date
        start_time = parse_time(data.get("start_time"), "start_time") or booking.start_time
        end_time = parse_time(data.get("end_time"), "end_time") or booking.end_time
        duration = _slot_hours(start_time, end_time)

        room = load_room(session, room_id)
        slot_changed = (
            room_id != booking.room_id
            or booking_date != booking.booking_date
            or start_time != booking.start_time
            or end_time != booking.end_time
        )
        status = data.get("status") or booking.status
        if (
            slot_changed
            and status in BookingStatus.active_values()
            and not room_is_available(
                session, room.id, booking_date, start_time, end_time, exclude_booking_id=booking.id
            )
        ):
            raise ConflictError("Room not available for the selected time")

        booking.room_id = room.id
        booking.booking_date = booking_date
        booking.start_time = start_time
        booking.end_time = end_time
        booking.duration_hours = duration
        booking.total_amount = round_idr(duration * to_decimal(room.hourly_rate))
        booking.status = status
        for field in ("customer_name", "customer_phone", "customer_email", "notes"):
            if field in data:
                setattr(booking, field, data[field])
        if data.get("deposit_amount") is not None:
            booking.deposit_amount = round_idr(data["deposit_amount"])

        session.flush()
        session.refresh(booking)
        _emit_booking(session, booking)
        logger.info(f"Updated booking {booking.id}")
        return serialize_booking(booking)


def set_booking_status(booking_id: int, status: str) -> dict[str, Any]:
    if status not in {s.value for s in BookingStatus}:
        raise ValidationError(f"Invalid booking status: {status}")

    with get_session() as session:
        booking = load_booking(session, booking_id)
        if (
            status in BookingStatus.active_values()
            and booking.status not in BookingStatus.active_values()
            and not room_is_available(
                session,
                booking.room_id,
                booking.booking_date,
                booking.start_time,
                booking.end_time,
                exclude_booking_id=booking.id,
            )
        ):
            raise ConflictError("Room not available for the selected time")

        previous = booking.status
        booking.status = status
        session.flush()
        _emit_booking(session, booking)
        logger.info(f"Booking {booking.id} status {previous} -> {status}")
        return serialize_booking(booking)


def cancel_booking(booking_id: int) -> dict[str, Any]:
    return set_booking_status(booking_id, BookingStatus.CANCELLED.value)


def extend_booking(booking_id: int, hours: int) -> dict[str, Any]:
    """
    Add whole hours to the end of a booking, charged at the room's current rate.
    """
    if not isinstance(hours, int) or hours < 1 or hours > MAX_BOOKING_EXTENSION_HOURS:
        raise ValidationError(
            f"Extension must be between 1 and {MAX_BOOKING_EXTENSION_HOURS} hours"
        )

    with get_session() as session:
        booking = load_booking(session, booking_id)
        if booking.status not in BookingStatus.active_values():
            raise ConflictError("Only pending or confirmed bookings can be extended")

        new_end = add_hours(booking.end_time, hours)
        if new_end is None:
            raise ValidationError("Extension cannot run past midnight")

        if not room_is_available(
            session,
            booking.room_id,
            booking.booking_date,
            booking.end_time,
            new_end,
            exclude_booking_id=booking.id,
        ):
            raise ConflictError("Room not available for the extended time")

        room = load_room(session, booking.room_id)
        old_end = booking.end_time
        booking.end_time = new_end
        booking.duration_hours = to_decimal(booking.duration_hours) + hours
        booking.total_amount = round_idr(
            to_decimal(booking.total_amount) + hours * to_decimal(room.hourly_rate)
        )
        session.flush()
        _emit_booking(session, booking)

        logger.info(
            f"Extended booking {booking.id} by {hours}h ({old_end:%H:%M} -> {new_end:%H:%M})"
        )
        return serialize_booking(booking)


def get_booking(booking_id: int) -> dict[str, Any]:
    with get_session() as session:
        return serialize_booking(load_booking(session, booking_id))


def list_bookings(
    booking_date: date | str | None = None,
    date_from: date | str | None = None,
    date_to: date | str | None = None,
    room_id: int | None = None,
    status: str | None = None,
) -> list[dict[str, Any]]:
    booking_date = parse_date(booking_date, "date")
    date_from = parse_date(date_from, "from")
    date_to = parse_date(date_to, "to")

    with get_session() as session:
        stmt = select(Booking)
        if booking_date:
            stmt = stmt.where(Booking.booking_date == booking_date)
        if date_from:
            stmt = stmt.where(Booking.booking_date >= date_from)
        if date_to:
            stmt = stmt.where(Booking.booking_date <= date_to)
        if room_id:
            stmt = stmt.where(Booking.room_id == room_id)
        if status:
            stmt = stmt.where(Booking.status == status)
        bookings = (
            session.execute(stmt.order_by(Booking.booking_date, Booking.start_time))
            .scalars()
            .all()
        )
        return [serialize_booking(b) for b in bookings]


def booking_calendar(year: int, month: int) -> dict[str, list[dict[str, Any]]]:
    """Bookings of one month keyed by ISO date, for the calendar view."""
    if month < 1 or month > 12:
        raise ValidationError("Invalid month")
    first = date(year, month, 1)
    last = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)

    with get_session() as session:
        bookings = (
            session.execute(
                select(Booking)
                .where(Booking.booking_date >= first, Booking.booking_date < last)
                .order_by(Booking.booking_date, Booking.start_time)
            )
            .scalars()
            .all()
        )
        days: dict[str, list[dict[str, Any]]] = defaultdict(list)
        for booking in bookings:
            days[booking.booking_date.isoformat()].append(serialize_booking(booking))
        return dict(days)


def upcoming_bookings(limit: int = 10, now: datetime | None = None) -> list[dict[str, Any]]:
    now = now or venue_now()
    with get_session() as session:
        bookings = (
            session.execute(
                select(Booking)
                .where(
                    Booking.booking_date >= now.date(),
                    Booking.status.in_(BookingStatus.active_values()),
                )
                .order_by(Booking.booking_date, Booking.start_time)
            )
            .scalars()
            .all()
        )
        result = []
        for booking in bookings:
            if datetime.combine(booking.booking_date, booking.end_time) <= now:
                continue
            result.append(serialize_booking(booking))
            if len(result) >= limit:
                break
        return result
