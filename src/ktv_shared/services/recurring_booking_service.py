"""
Recurring bookings: standing weekly or monthly reservations, and the job that
turns them into concrete bookings for the coming week.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from ktv_shared.constants import (
    AUTO_GENERATED_NOTE,
    BookingStatus,
    RealtimeChannel,
    RecurringFrequency,
)
from ktv_shared.currency import round_idr, to_decimal
from ktv_shared.datetime_utils import (
    hours_between,
    parse_date,
    parse_time,
    sunday_based_weekday,
    venue_today,
)
from ktv_shared.db import get_session
from ktv_shared.logging_config import JobLogger, get_logger
from ktv_shared.models import Booking, RecurringBooking
from ktv_shared.serializers import serialize_recurring_booking
from ktv_shared.services.booking_service import room_is_available
from ktv_shared.services.room_service import load_room
from ktv_shared.supabase.realtime import INSERT, emit_change
from ktv_shared.validation import NotFoundError, ValidationError

logger = get_logger(__name__)


def _load_rule(session: Session, rule_id: int) -> RecurringBooking:
    rule = session.get(RecurringBooking, rule_id)
    if rule is None:
        raise NotFoundError("Recurring booking not found")
    return rule


def _check_rule_fields(rule: RecurringBooking) -> None:
    if rule.frequency == RecurringFrequency.WEEKLY.value:
        if rule.day_of_week is None or not 0 <= rule.day_of_week <= 6:
            raise ValidationError("Weekly bookings need a day_of_week between 0 (Sunday) and 6")
    elif rule.frequency == RecurringFrequency.MONTHLY.value:
        if rule.day_of_month is None or not 1 <= rule.day_of_month <= 31:
            raise ValidationError("Monthly bookings need a day_of_month between 1 and 31")
    else:
        raise ValidationError(f"Invalid frequency: {rule.frequency}")

    if rule.end_time <= rule.start_time:
        raise ValidationError("End time must be after start time")
    if rule.end_date is not None and rule.end_date < rule.start_date:
        raise ValidationError("End date must not be before start date")


def create_recurring_booking(data: dict[str, Any], created_by: int | None = None) -> dict[str, Any]:
    start_time = parse_time(data.get("start_time"), "start_time")
    end_time = parse_time(data.get("end_time"), "end_time")
    start_date = parse_date(data.get("start_date"), "start_date")
    if start_time is None or end_time is None or start_date is None:
        raise ValidationError("start_time, end_time and start_date are required")

    with get_session() as session:
        room = load_room(session, data["room_id"])
        rule = RecurringBooking(
            room_id=room.id,
            customer_name=data["customer_name"],
            customer_phone=data.get("customer_phone"),
            customer_email=data.get("customer_email"),
            frequency=data["frequency"],
            day_of_week=data.get("day_of_week"),
            day_of_month=data.get("day_of_month"),
            start_time=start_time,
            end_time=end_time,
            hourly_rate=to_decimal(data.get("hourly_rate") or room.hourly_rate),
            deposit_amount=round_idr(data.get("deposit_amount") or 0),
            start_date=start_date,
            end_date=parse_date(data.get("end_date"), "end_date"),
            notes=data.get("notes"),
            is_active=data.get("is_active", True),
            created_by=created_by,
        )
        _check_rule_fields(rule)
        rule.duration_hours = to_decimal(round(hours_between(start_time, end_time), 2))
        session.add(rule)
        session.flush()

        logger.info(
            f"Created {rule.frequency} recurring booking {rule.id} for room {room.id} "
            f"({rule.customer_name})"
        )
        return serialize_recurring_booking(rule)


def update_recurring_booking(rule_id: int, data: dict[str, Any]) -> dict[str, Any]:
    with get_session() as session:
        rule = _load_rule(session, rule_id)
        for field in (
            "customer_name",
            "customer_phone",
            "customer_email",
            "day_of_week",
            "day_of_month",
            "notes",
            "is_active",
        ):
            if field in data:
                setattr(rule, field, data[field])
        if data.get("start_time"):
            rule.start_time = parse_time(data["start_time"], "start_time")
        if data.get("end_time"):
            rule.end_time = parse_time(data["end_time"], "end_time")
        if "end_date" in data:
            rule.end_date = parse_date(data["end_date"], "end_date")
        if data.get("hourly_rate") is not None:
            rule.hourly_rate = to_decimal(data["hourly_rate"])
        if data.get("deposit_amount") is not None:
            rule.deposit_amount = round_idr(data["deposit_amount"])

        _check_rule_fields(rule)
        rule.duration_hours = to_decimal(round(hours_between(rule.start_time, rule.end_time), 2))
        session.flush()
        logger.info(f"Updated recurring booking {rule.id}")
        return serialize_recurring_booking(rule)


def set_recurring_booking_active(rule_id: int, is_active: bool) -> dict[str, Any]:
    with get_session() as session:
        rule = _load_rule(session, rule_id)
        rule.is_active = is_active
        session.flush()
        logger.info(f"Recurring booking {rule.id} active={is_active}")
        return serialize_recurring_booking(rule)


def delete_recurring_booking(rule_id: int) -> None:
    with get_session() as session:
        rule = _load_rule(session, rule_id)
        session.delete(rule)
        logger.info(f"Deleted recurring booking {rule_id}")


def list_recurring_bookings(active_only: bool = False) -> list[dict[str, Any]]:
    with get_session() as session:
        stmt = select(RecurringBooking).order_by(RecurringBooking.start_date, RecurringBooking.id)
        if active_only:
            stmt = stmt.where(RecurringBooking.is_active.is_(True))
        return [serialize_recurring_booking(r) for r in session.execute(stmt).scalars().all()]


def rule_matches(rule: RecurringBooking, day: date) -> bool:
    """Whether the rule asks for a booking on ``day``."""
    if day < rule.start_date:
        return False
    if rule.end_date is not None and day > rule.end_date:
        return False
    if rule.frequency == RecurringFrequency.WEEKLY.value:
        return sunday_based_weekday(day) == rule.day_of_week
    if rule.frequency == RecurringFrequency.MONTHLY.value:
        return day.day == rule.day_of_month
    return False


def _booking_exists(session: Session, rule: RecurringBooking, day: date) -> bool:
    return (
        session.execute(
            select(Booking.id)
            .where(
                Booking.room_id == rule.room_id,
                Booking.booking_date == day,
                Booking.start_time == rule.start_time,
            )
            .limit(1)
        ).scalar_one_or_none()
        is not None
    )


def _materialize(session: Session, rule: RecurringBooking, day: date) -> Booking:
    duration = to_decimal(rule.duration_hours)
    booking = Booking(
        room_id=rule.room_id,
        customer_name=rule.customer_name,
        customer_phone=rule.customer_phone,
        customer_email=rule.customer_email,
        booking_date=day,
        start_time=rule.start_time,
        end_time=rule.end_time,
        duration_hours=duration,
        total_amount=round_idr(duration * to_decimal(rule.hourly_rate)),
        deposit_amount=rule.deposit_amount or 0,
        status=BookingStatus.CONFIRMED.value,
        notes=f"{rule.notes or ''} {AUTO_GENERATED_NOTE}".strip(),
        recurring_booking_id=rule.id,
        created_by=rule.created_by,
    )
    session.add(booking)
    session.flush()
    emit_change(
        session,
        RealtimeChannel.BOOKINGS,
        INSERT,
        booking.id,
        {"room_id": booking.room_id, "booking_date": day, "status": booking.status},
    )
    return booking


def generate_recurring_bookings(today: date | None = None, window_days: int = 7) -> dict[str, Any]:
    """
    Create concrete bookings for every active rule over the next ``window_days`` days.

    Each date is handled in its own transaction; a failure on one rule is
    counted in ``errors`` and the run carries on with the next.
    """
    today = today or venue_today()
    horizon = today + timedelta(days=window_days)
    log = JobLogger(logger, {"job": "generate-recurring-bookings"})

    with get_session() as session:
        rules = (
            session.execute(
                select(RecurringBooking)
                .where(
                    RecurringBooking.is_active.is_(True),
                    RecurringBooking.start_date <= horizon,
                    or_(RecurringBooking.end_date.is_(None), RecurringBooking.end_date >= today),
                )
                .order_by(RecurringBooking.id)
            )
            .scalars()
            .all()
        )
        rule_ids = [rule.id for rule in rules]

    log.info(f"Found {len(rule_ids)} active recurring bookings")

    created = skipped = errors = 0
    for rule_id in rule_ids:
        try:
            for offset in range(window_days):
                day = today + timedelta(days=offset)
                with get_session() as session:
                    rule = _load_rule(session, rule_id)
                    if not rule_matches(rule, day):
                        continue

                    if _booking_exists(session, rule, day):
                        log.info(f"Booking already exists for rule {rule.id} on {day}")
                        skipped += 1
                        continue

                    if not room_is_available(
                        session, rule.room_id, day, rule.start_time, rule.end_time
                    ):
                        log.info(f"Room {rule.room_id} not available on {day} for rule {rule.id}")
                        skipped += 1
                        continue

                    booking = _materialize(session, rule, day)
                    log.info(f"Created booking {booking.id} from rule {rule.id} for {day}")
                    created += 1
        except Exception as exc:
            log.error(f"Error processing recurring booking {rule_id}: {exc}", exc_info=True)
            errors += 1

    summary = {"success": True, "created": created, "skipped": skipped, "errors": errors}
    log.info(f"Recurring booking generation complete: {summary}")
    return summary
