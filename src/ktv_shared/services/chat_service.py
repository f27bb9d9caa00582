"""Team chat on the shared General channel."""

from __future__ import annotations

import re
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ktv_shared.auth.service import AuthService
from ktv_shared.constants import (
    CHAT_HISTORY_LIMIT,
    CHAT_MESSAGE_MAX_LENGTH,
    GENERAL_CHANNEL_NAME,
    RealtimeChannel,
)
from ktv_shared.datetime_utils import venue_now
from ktv_shared.db import get_session
from ktv_shared.logging_config import get_logger
from ktv_shared.models import ChatChannel, ChatChannelMember, ChatMessage
from ktv_shared.serializers import serialize_chat_message
from ktv_shared.supabase.realtime import INSERT, emit_change
from ktv_shared.validation import PermissionDeniedError, ValidationError

logger = get_logger(__name__)

MENTION_PATTERN = re.compile(r"@(\w+)")
ALL_MENTION = "all"


def parse_mentions(content: str) -> tuple[bool, list[str]]:
    """Return (mentions everyone, individual @names in order of appearance)."""
    names: list[str] = []
    is_all = False
    for token in MENTION_PATTERN.findall(content):
        if token.lower() == ALL_MENTION:
            is_all = True
        elif token not in names:
            names.append(token)
    return is_all, names


def get_or_create_general(session: Session) -> ChatChannel:
    channel = session.execute(
        select(ChatChannel).where(ChatChannel.name == GENERAL_CHANNEL_NAME)
    ).scalar_one_or_none()
    if channel is None:
        channel = ChatChannel(name=GENERAL_CHANNEL_NAME, description="All staff")
        session.add(channel)
        session.flush()
        logger.info("Created General chat channel")
    return channel


def _membership(session: Session, channel: ChatChannel, user_id: int) -> ChatChannelMember:
    member = session.execute(
        select(ChatChannelMember).where(
            ChatChannelMember.channel_id == channel.id, ChatChannelMember.user_id == user_id
        )
    ).scalar_one_or_none()
    if member is None:
        member = ChatChannelMember(channel_id=channel.id, user_id=user_id)
        session.add(member)
        session.flush()
    return member


def join_general(user_id: int) -> dict[str, Any]:
    """Idempotently add the user to General."""
    with get_session() as session:
        channel = get_or_create_general(session)
        member = _membership(session, channel, user_id)
        return {
            "channel_id": channel.id,
            "channel_name": channel.name,
            "can_mention_all": AuthService.can_use_all_mention(user_id, session=session),
            "joined_at": member.joined_at.isoformat(),
        }


def list_messages(limit: int = CHAT_HISTORY_LIMIT) -> list[dict[str, Any]]:
    """The latest messages, oldest first."""
    with get_session() as session:
        channel = get_or_create_general(session)
        rows = (
            session.execute(
                select(ChatMessage)
                .where(ChatMessage.channel_id == channel.id)
                .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
                .limit(min(limit, CHAT_HISTORY_LIMIT))
            )
            .scalars()
            .all()
        )
        return [serialize_chat_message(m) for m in reversed(rows)]


def send_message(user_id: int, content: str) -> dict[str, Any]:
    content = (content or "").strip()
    if not content:
        raise ValidationError("Message cannot be empty")
    if len(content) > CHAT_MESSAGE_MAX_LENGTH:
        raise ValidationError(f"Message must be at most {CHAT_MESSAGE_MAX_LENGTH} characters")

    is_all, mentions = parse_mentions(content)

    with get_session() as session:
        if is_all and not AuthService.can_use_all_mention(user_id, session=session):
            raise PermissionDeniedError("Only owners and managers can mention @all")

        channel = get_or_create_general(session)
        member = _membership(session, channel, user_id)
        message = ChatMessage(
            channel_id=channel.id,
            user_id=user_id,
            content=content,
            is_all_mention=is_all,
            mentions=mentions or None,
        )
        session.add(message)
        session.flush()
        member.last_read_at = message.created_at
        member.last_read_message_id = message.id

        emit_change(
            session,
            RealtimeChannel.CHAT_MESSAGES,
            INSERT,
            message.id,
            {"channel_id": channel.id, "user_id": user_id, "is_all_mention": is_all},
        )
        logger.debug(f"User {user_id} posted message {message.id}")
        return serialize_chat_message(message)


def mark_read(user_id: int) -> None:
    with get_session() as session:
        channel = get_or_create_general(session)
        member = _membership(session, channel, user_id)
        member.last_read_at = venue_now()
        member.last_read_message_id = session.execute(
            select(func.max(ChatMessage.id)).where(ChatMessage.channel_id == channel.id)
        ).scalar_one()


def unread_count(user_id: int) -> int:
    """Messages from other people since the user last read the channel."""
    with get_session() as session:
        channel = get_or_create_general(session)
        member = _membership(session, channel, user_id)
        stmt = select(func.count(ChatMessage.id)).where(
            ChatMessage.channel_id == channel.id, ChatMessage.user_id != user_id
        )
        if member.last_read_message_id is not None:
            stmt = stmt.where(ChatMessage.id > member.last_read_message_id)
        return session.execute(stmt).scalar_one()
