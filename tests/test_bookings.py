from datetime import date, datetime, time, timedelta

import pytest

from ktv_shared.services import booking_service, room_service
from ktv_shared.validation import ConflictError, ValidationError

DAY = date(2030, 5, 17)


def _book(room, start, end, **extra):
    data = {
        "room_id": room["id"],
        "customer_name": "Sari",
        "booking_date": DAY,
        "start_time": start,
        "end_time": end,
    }
    data.update(extra)
    return booking_service.create_booking(data)


def test_total_is_duration_times_hourly_rate(room):
    booking = _book(room, "19:00", "21:30")
    assert booking["duration_hours"] == 2.5
    assert booking["total_amount"] == 250000
    assert booking["status"] == "pending"


def test_overlapping_slot_is_refused(room):
    _book(room, "19:00", "21:00")
    with pytest.raises(ConflictError):
        _book(room, "20:00", "22:00")


def test_back_to_back_slots_are_allowed(room):
    _book(room, "19:00", "21:00")
    second = _book(room, "21:00", "23:00")
    assert second["start_time"] == "21:00"


def test_cancelled_bookings_free_the_slot(room):
    first = _book(room, "19:00", "21:00")
    booking_service.cancel_booking(first["id"])
    assert booking_service.check_room_availability(room["id"], DAY, "19:00", "21:00")


def test_availability_excludes_the_booking_being_edited(room):
    first = _book(room, "19:00", "21:00")
    assert not booking_service.check_room_availability(room["id"], DAY, "20:00", "21:00")
    assert booking_service.check_room_availability(
        room["id"], DAY, "20:00", "21:00", exclude_booking_id=first["id"]
    )


def test_end_must_be_after_start(room):
    with pytest.raises(ValidationError):
        _book(room, "21:00", "19:00")


def test_extension_adds_hours_at_room_rate(room):
    booking = _book(room, "19:00", "21:00")
    extended = booking_service.extend_booking(booking["id"], 2)
    assert extended["end_time"] == "23:00"
    assert extended["duration_hours"] == 4
    assert extended["total_amount"] == 400000


def test_extension_checks_the_following_booking(room):
    booking = _book(room, "19:00", "21:00")
    _book(room, "22:00", "23:00")
    with pytest.raises(ConflictError):
        booking_service.extend_booking(booking["id"], 2)


def test_extension_limits(room):
    booking = _book(room, "19:00", "21:00")
    with pytest.raises(ValidationError):
        booking_service.extend_booking(booking["id"], 13)
    with pytest.raises(ValidationError):
        booking_service.extend_booking(booking["id"], 4)  # would pass midnight


def test_calendar_groups_bookings_by_day(room):
    _book(room, "19:00", "21:00")
    _book(room, "14:00", "16:00")
    calendar = booking_service.booking_calendar(DAY.year, DAY.month)
    day_entries = calendar[DAY.isoformat()]
    assert [b["start_time"] for b in day_entries] == ["14:00", "19:00"]


def test_room_timer_counts_down_to_booking_end(room):
    today = date.today()
    booking_service.create_booking(
        {
            "room_id": room["id"],
            "customer_name": "Sari",
            "booking_date": today,
            "start_time": "00:00",
            "end_time": "23:59",
            "status": "confirmed",
        }
    )
    room_service.start_session(room["id"])
    now = datetime.combine(today, time(21, 44))
    timer = room_service.room_timer(room["id"], now=now)
    assert timer["time_remaining"] == "2h 15m"


def test_room_session_cannot_start_twice(room):
    room_service.start_session(room["id"], started_at=datetime.now() - timedelta(hours=1))
    with pytest.raises(ConflictError):
        room_service.start_session(room["id"])
