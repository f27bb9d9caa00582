"""
Booking reminder emails, sent shortly before a booking starts.
"""

from __future__ import annotations

from datetime import datetime, time, timedelta
from typing import Any

from sqlalchemy import select

from ktv_shared.constants import BookingStatus
from ktv_shared.datetime_utils import venue_now
from ktv_shared.db import get_session
from ktv_shared.logging_config import JobLogger, get_logger
from ktv_shared.models import Booking, BookingReminder
from ktv_shared.services.email_service import get_email_service

logger = get_logger(__name__)


def _reminder_window(now: datetime, lead_minutes: int) -> tuple[time, time]:
    # start times are whole minutes; a run at 20:00:30 still covers 20:00
    now = now.replace(second=0, microsecond=0)
    window_end = now + timedelta(minutes=lead_minutes)
    if window_end.date() != now.date():
        return now.time(), time.max
    return now.time(), window_end.time()


def send_booking_reminders(now: datetime | None = None, lead_minutes: int = 15) -> dict[str, Any]:
    """
    Email customers whose booking starts within ``lead_minutes``.

    A booking gets at most one reminder: the outcome (sent or failed) is
    recorded in booking_reminders and checked before sending.
    """
    now = now or venue_now()
    start, end = _reminder_window(now, lead_minutes)
    log = JobLogger(logger, {"job": "send-booking-reminders"})

    with get_session() as session:
        bookings = (
            session.execute(
                select(Booking)
                .where(
                    Booking.booking_date == now.date(),
                    Booking.status.in_(
                        [BookingStatus.CONFIRMED.value, BookingStatus.PENDING.value]
                    ),
                    Booking.start_time >= start,
                    Booking.start_time <= end,
                )
                .order_by(Booking.start_time)
            )
            .scalars()
            .all()
        )
        reminded = set(
            session.execute(
                select(BookingReminder.booking_id).where(
                    BookingReminder.booking_id.in_([b.id for b in bookings])
                )
            )
            .scalars()
            .all()
        )
        candidates = [
            {
                "id": b.id,
                "email": b.customer_email,
                "customer_name": b.customer_name,
                "room_name": b.room.room_name if b.room else "your room",
                "room_number": b.room.room_number if b.room else "-",
                "booking_date": b.booking_date.isoformat(),
                "start_time": b.start_time.strftime("%H:%M"),
                "end_time": b.end_time.strftime("%H:%M"),
                "already_sent": b.id in reminded,
            }
            for b in bookings
        ]

    log.info(f"Found {len(candidates)} upcoming bookings between {start:%H:%M} and {end:%H:%M}")

    email_service = get_email_service()
    sent = skipped = errors = 0
    for booking in candidates:
        if booking["already_sent"]:
            log.info(f"Reminder already sent for booking {booking['id']}")
            skipped += 1
            continue
        if not booking["email"]:
            log.info(f"No email for booking {booking['id']}")
            skipped += 1
            continue

        try:
            result = email_service.send_booking_reminder(
                to_email=booking["email"],
                customer_name=booking["customer_name"],
                room_name=booking["room_name"],
                room_number=booking["room_number"],
                booking_date=booking["booking_date"],
                start_time=booking["start_time"],
                end_time=booking["end_time"],
                lead_minutes=lead_minutes,
            )
            with get_session() as session:
                session.add(
                    BookingReminder(
                        booking_id=booking["id"],
                        email_sent=result.sent,
                        email_error=result.error,
                    )
                )
        except Exception as exc:
            log.error(f"Error processing reminder for booking {booking['id']}: {exc}", exc_info=True)
            errors += 1
            continue

        if result.sent:
            log.info(f"Reminder sent for booking {booking['id']} to {booking['email']}")
            sent += 1
        else:
            log.warning(f"Reminder for booking {booking['id']} failed: {result.error}")
            errors += 1

    summary = {
        "success": True,
        "sent": sent,
        "skipped": skipped,
        "errors": errors,
        "total": len(candidates),
    }
    log.info(f"Booking reminders complete: {summary}")
    return summary
