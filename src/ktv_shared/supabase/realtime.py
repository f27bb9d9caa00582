"""
Realtime change feed.

Every service write records a row-change event on a named channel in the
``realtime_events`` table. Dashboards poll ``read_events`` with the last id
they saw, which mirrors the postgres_changes subscriptions the dashboards
use on Supabase Realtime.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from ktv_shared.constants import REALTIME_EVENT_TTL_HOURS, RealtimeChannel
from ktv_shared.datetime_utils import venue_now
from ktv_shared.logging_config import get_logger
from ktv_shared.models import RealtimeEvent

logger = get_logger(__name__)

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"


class RealtimeManager:
    """
    Persists change events in PostgreSQL so clients can consume them by polling.
    """

    @staticmethod
    def _serialize_value(value: Any) -> Any:
        if isinstance(value, (datetime, date, time)):
            return value.isoformat()
        if isinstance(value, Decimal):
            return float(value)
        if isinstance(value, (set, tuple)):
            return [RealtimeManager._serialize_value(v) for v in value]
        if isinstance(value, list):
            return [RealtimeManager._serialize_value(v) for v in value]
        if isinstance(value, dict):
            return {k: RealtimeManager._serialize_value(v) for k, v in value.items()}
        return value

    @classmethod
    def emit_change(
        cls,
        session: Session,
        channel: RealtimeChannel | str,
        event_type: str,
        record_id: int | None = None,
        payload: dict[str, Any] | None = None,
    ) -> None:
        """
        Record a change event inside the caller's transaction.

        The event is committed (or rolled back) together with the write it
        describes.
        """
        channel_name = channel.value if isinstance(channel, RealtimeChannel) else channel
        session.add(
            RealtimeEvent(
                channel=channel_name,
                event_type=event_type,
                record_id=record_id,
                payload=cls._serialize_value(payload) if payload else None,
            )
        )
        logger.debug(f"Queued realtime event {event_type} on '{channel_name}' ({record_id})")

    @classmethod
    def read_events(
        cls,
        session: Session,
        after_id: int = 0,
        channels: list[str] | None = None,
        count: int | None = None,
    ) -> tuple[int, list[dict[str, Any]]]:
        """
        Return events newer than ``after_id`` and the cursor to use next time.
        """
        limit = max(1, min(count or 100, 500))
        stmt = select(RealtimeEvent).where(RealtimeEvent.id > after_id)
        if channels:
            stmt = stmt.where(RealtimeEvent.channel.in_(channels))
        rows = session.execute(stmt.order_by(RealtimeEvent.id).limit(limit)).scalars().all()

        if not rows:
            return after_id, []

        events = [
            {
                "id": row.id,
                "channel": row.channel,
                "type": row.event_type,
                "record_id": row.record_id,
                "timestamp": row.created_at.isoformat() if row.created_at else None,
                "payload": row.payload or {},
            }
            for row in rows
        ]
        return rows[-1].id, events

    @classmethod
    def purge_expired(cls, session: Session, now: datetime | None = None) -> int:
        """Delete events older than the retention window; returns how many went."""
        cutoff = (now or venue_now()) - timedelta(hours=REALTIME_EVENT_TTL_HOURS)
        result = session.execute(delete(RealtimeEvent).where(RealtimeEvent.created_at < cutoff))
        removed = result.rowcount or 0
        if removed:
            logger.info(f"Purged {removed} realtime events older than {cutoff.isoformat()}")
        return removed


emit_change = RealtimeManager.emit_change
read_events = RealtimeManager.read_events
purge_expired = RealtimeManager.purge_expired
