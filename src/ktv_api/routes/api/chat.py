"""Team chat API (General channel)."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from ktv_api.decorators import login_required
from ktv_shared.constants import CHAT_HISTORY_LIMIT
from ktv_shared.jwt_middleware import get_user_id
from ktv_shared.schemas import ChatMessageRequest
from ktv_shared.serializers import success_response
from ktv_shared.services import chat_service

chat_bp = Blueprint("chat", __name__)


@chat_bp.post("/chat/join")
@login_required
def join():
    return jsonify(success_response(chat_service.join_general(get_user_id())))


@chat_bp.get("/chat/messages")
@login_required
def messages():
    limit = request.args.get("limit", default=CHAT_HISTORY_LIMIT, type=int)
    return jsonify(success_response(chat_service.list_messages(limit=min(limit, CHAT_HISTORY_LIMIT))))


@chat_bp.post("/chat/messages")
@login_required
def send():
    data = ChatMessageRequest(**(request.get_json(silent=True) or {}))
    return jsonify(success_response(chat_service.send_message(get_user_id(), data.content))), HTTPStatus.CREATED


@chat_bp.post("/chat/read")
@login_required
def mark_read():
    chat_service.mark_read(get_user_id())
    return jsonify(success_response({"unread": 0}))


@chat_bp.get("/chat/unread")
@login_required
def unread():
    return jsonify(success_response({"unread": chat_service.unread_count(get_user_id())}))
