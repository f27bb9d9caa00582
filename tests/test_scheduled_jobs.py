from datetime import date, datetime, time

from sqlalchemy import select

from ktv_shared.db import get_session
from ktv_shared.models import Booking, BookingReminder, RealtimeEvent
from ktv_shared.services import booking_service, recurring_booking_service, room_service
from ktv_shared.services.recurring_booking_service import (
    create_recurring_booking,
    generate_recurring_bookings,
)
from ktv_shared.services.reminder_service import send_booking_reminders
from ktv_shared.services.room_status_service import update_room_status

MONDAY = date(2030, 5, 13)
FRIDAY = date(2030, 5, 17)


def _weekly_rule(room, **extra):
    data = {
        "room_id": room["id"],
        "customer_name": "Komunitas Jazz",
        "frequency": "weekly",
        "day_of_week": 5,
        "start_time": "19:00",
        "end_time": "22:00",
        "start_date": MONDAY,
        "notes": "Friday jam",
    }
    data.update(extra)
    return create_recurring_booking(data)


def test_weekly_rule_creates_one_booking_in_window(room):
    _weekly_rule(room)
    result = generate_recurring_bookings(today=MONDAY)
    assert result == {"success": True, "created": 1, "skipped": 0, "errors": 0}

    bookings = booking_service.list_bookings(booking_date=FRIDAY)
    assert len(bookings) == 1
    assert bookings[0]["status"] == "confirmed"
    assert bookings[0]["total_amount"] == 300000
    assert bookings[0]["notes"] == "Friday jam (Auto-generated from recurring booking)"


def test_generation_is_idempotent(room):
    _weekly_rule(room)
    generate_recurring_bookings(today=MONDAY)
    again = generate_recurring_bookings(today=MONDAY)
    assert again["created"] == 0
    assert again["skipped"] == 1


def test_taken_slot_is_skipped(room):
    _weekly_rule(room)
    booking_service.create_booking(
        {
            "room_id": room["id"],
            "customer_name": "Walk-in",
            "booking_date": FRIDAY,
            "start_time": "20:00",
            "end_time": "21:00",
        }
    )
    result = generate_recurring_bookings(today=MONDAY)
    assert result["created"] == 0
    assert result["skipped"] == 1


def test_monthly_rule_and_end_date(room):
    _weekly_rule(room, frequency="monthly", day_of_week=None, day_of_month=15)
    _weekly_rule(room, start_time="10:00", end_time="12:00", end_date=date(2030, 5, 14))
    result = generate_recurring_bookings(today=MONDAY)
    assert result["created"] == 1
    assert booking_service.list_bookings(booking_date=date(2030, 5, 15))


def _tonight(room, email="sari@example.com", start="19:00", end="21:00"):
    return booking_service.create_booking(
        {
            "room_id": room["id"],
            "customer_name": "Sari",
            "customer_email": email,
            "booking_date": FRIDAY,
            "start_time": start,
            "end_time": end,
            "status": "confirmed",
        }
    )


def test_reminder_is_sent_once(room, mailer):
    _tonight(room)
    now = datetime.combine(FRIDAY, time(18, 50))

    first = send_booking_reminders(now=now, lead_minutes=15)
    assert first["sent"] == 1
    assert mailer.outbox[0]["subject"] == "Booking Reminder - Ruby in 15 minutes"

    second = send_booking_reminders(now=now, lead_minutes=15)
    assert second["sent"] == 0
    assert second["skipped"] == 1
    assert len(mailer.outbox) == 1


def test_reminder_outside_window_or_without_email(room, mailer):
    _tonight(room, email=None)
    _tonight(room, start="21:00", end="22:00")
    result = send_booking_reminders(now=datetime.combine(FRIDAY, time(18, 50)), lead_minutes=15)
    assert result["sent"] == 0
    assert result["skipped"] == 1
    assert mailer.outbox == []


def test_failed_reminder_is_recorded(room, mailer):
    mailer.fail = True
    booking = _tonight(room)
    result = send_booking_reminders(now=datetime.combine(FRIDAY, time(18, 55)), lead_minutes=15)
    assert result["errors"] == 1

    with get_session() as session:
        reminder = session.execute(
            select(BookingReminder).where(BookingReminder.booking_id == booking["id"])
        ).scalar_one()
        assert reminder.email_sent is False
        assert reminder.email_error == "SMTP unavailable"


def test_expired_booking_frees_occupied_room(room):
    booking = _tonight(room)
    room_service.start_session(room["id"], started_at=datetime.combine(FRIDAY, time(19, 0)))

    result = update_room_status(now=datetime.combine(FRIDAY, time(21, 30)))
    assert result["expired_bookings"] == 1
    assert result["rooms_updated"] == 1

    assert booking_service.get_booking(booking["id"])["status"] == "completed"
    refreshed = room_service.get_room(room["id"])
    assert refreshed["status"] == "available"
    assert refreshed["current_session_start"] is None


def test_room_with_later_booking_stays_occupied(room):
    _tonight(room)
    _tonight(room, start="22:00", end="23:00")
    room_service.start_session(room["id"], started_at=datetime.combine(FRIDAY, time(19, 0)))

    result = update_room_status(now=datetime.combine(FRIDAY, time(21, 30)))
    assert result["expired_bookings"] == 1
    assert result["rooms_updated"] == 0
    assert room_service.get_room(room["id"])["status"] == "occupied"


def test_nothing_expired(room):
    _tonight(room)
    result = update_room_status(now=datetime.combine(FRIDAY, time(20, 0)))
    assert result == {"message": "No expired bookings found", "checked": 1}


def test_every_write_lands_in_the_change_feed(room):
    _tonight(room)
    with get_session() as session:
        channels = session.execute(select(RealtimeEvent.channel)).scalars().all()
    assert "rooms" in channels
    assert "bookings" in channels
    with get_session() as session:
        assert session.execute(select(Booking)).scalars().first() is not None


def test_failing_rule_does_not_stop_the_others(room, monkeypatch):
    broken = _weekly_rule(room, customer_name="Broken Rule")
    _weekly_rule(room, start_time="14:00", end_time="16:00")

    real_materialize = recurring_booking_service._materialize

    def materialize(session, rule, day):
        if rule.id == broken["id"]:
            raise RuntimeError("insert failed")
        return real_materialize(session, rule, day)

    monkeypatch.setattr(recurring_booking_service, "_materialize", materialize)

    result = generate_recurring_bookings(today=MONDAY)
    assert result == {"success": True, "created": 1, "skipped": 0, "errors": 1}
    assert [b["start_time"] for b in booking_service.list_bookings(booking_date=FRIDAY)] == ["14:00"]


def test_reminder_run_late_in_the_minute_still_sends(room, mailer):
    _tonight(room, start="20:00", end="21:00")
    result = send_booking_reminders(now=datetime(2030, 5, 17, 20, 0, 30), lead_minutes=15)
    assert result["total"] == 1
    assert result["sent"] == 1


def test_reminder_html_escapes_customer_input(room, mailer):
    booking_service.create_booking(
        {
            "room_id": room["id"],
            "customer_name": "<b>Sari</b>",
            "customer_email": "sari@example.com",
            "booking_date": FRIDAY,
            "start_time": "19:00",
            "end_time": "21:00",
            "status": "confirmed",
        }
    )
    send_booking_reminders(now=datetime.combine(FRIDAY, time(18, 50)), lead_minutes=15)

    message = mailer.outbox[0]
    assert "&lt;b&gt;Sari&lt;/b&gt;" in message["html"]
    assert "<b>Sari</b>" not in message["html"]
    assert "Hi <b>Sari</b>," in message["body"]
