"""Expire finished bookings and release the rooms they held."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import select

from ktv_shared.constants import BookingStatus, RealtimeChannel, RoomStatus
from ktv_shared.datetime_utils import venue_now
from ktv_shared.db import get_session
from ktv_shared.logging_config import JobLogger, get_logger
from ktv_shared.models import Booking, Room
from ktv_shared.supabase.realtime import UPDATE, emit_change, purge_expired

logger = get_logger(__name__)


def update_room_status(now: datetime | None = None) -> dict[str, Any]:
    """
    Mark bookings whose end has passed as completed and free their rooms.

    A room is released only when it is occupied and has no other active
    booking from today onward. Old realtime events are purged on the way.
    """
    now = now or venue_now()
    log = JobLogger(logger, {"job": "update-room-status"})

    with get_session() as session:
        candidates = (
            session.execute(
                select(Booking).where(
                    Booking.status.in_(BookingStatus.active_values()),
                    Booking.booking_date <= now.date(),
                )
            )
            .scalars()
            .all()
        )
        expired = [
            b for b in candidates if datetime.combine(b.booking_date, b.end_time) < now
        ]

        purge_expired(session, now)

        if not expired:
            log.info(f"No expired bookings among {len(candidates)} checked")
            return {"message": "No expired bookings found", "checked": len(candidates)}

        for booking in expired:
            booking.status = BookingStatus.COMPLETED.value
            emit_change(
                session,
                RealtimeChannel.BOOKINGS,
                UPDATE,
                booking.id,
                {"room_id": booking.room_id, "status": booking.status},
            )
        session.flush()

        rooms_updated = 0
        for room_id in sorted({b.room_id for b in expired}):
            still_booked = session.execute(
                select(Booking.id)
                .where(
                    Booking.room_id == room_id,
                    Booking.status.in_(BookingStatus.active_values()),
                    Booking.booking_date >= now.date(),
                )
                .limit(1)
            ).scalar_one_or_none()
            if still_booked is not None:
                continue

            room = session.get(Room, room_id)
            if room is None or room.status != RoomStatus.OCCUPIED.value:
                continue

            room.status = RoomStatus.AVAILABLE.value
            room.current_session_start = None
            emit_change(
                session, RealtimeChannel.ROOMS, UPDATE, room.id, {"status": room.status}
            )
            rooms_updated += 1
            log.info(f"Released room {room.id} after its bookings ended")

        message = f"Updated {len(expired)} bookings and {rooms_updated} rooms"
        log.info(message)
        return {
            "success": True,
            "message": message,
            "expired_bookings": len(expired),
            "rooms_updated": rooms_updated,
        }
