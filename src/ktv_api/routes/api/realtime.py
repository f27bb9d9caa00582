"""
Realtime API - polling endpoint over the change feed.
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from ktv_api.decorators import login_required
from ktv_shared.constants import RealtimeChannel
from ktv_shared.db import get_session
from ktv_shared.serializers import success_response
from ktv_shared.supabase.realtime import read_events
from ktv_shared.validation import ValidationError

realtime_bp = Blueprint("realtime", __name__)

_CHANNELS = {c.value for c in RealtimeChannel}


@realtime_bp.get("/realtime/events")
@login_required
def poll_events():
    """
    Query params:
        - after: last event id the client has seen (default 0)
        - channel: repeatable or comma separated channel names
        - count: max events to return (1-500)
    """
    channels: list[str] = []
    for value in request.args.getlist("channel"):
        channels.extend(name.strip() for name in value.split(",") if name.strip())
    unknown = sorted(set(channels) - _CHANNELS)
    if unknown:
        raise ValidationError(f"Unknown channel: {', '.join(unknown)}")

    with get_session() as session:
        cursor, events = read_events(
            session,
            after_id=request.args.get("after", default=0, type=int),
            channels=channels or None,
            count=request.args.get("count", type=int),
        )
    return jsonify(success_response({"cursor": cursor, "events": events}))
