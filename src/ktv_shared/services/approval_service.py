"""Discount and minimum-charge approval requests."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from sqlalchemy import select

from ktv_shared.auth.service import AuthService
from ktv_shared.constants import ApprovalRequestType, ApprovalStatus, RealtimeChannel
from ktv_shared.currency import round_idr, to_decimal
from ktv_shared.datetime_utils import venue_now
from ktv_shared.db import get_session
from ktv_shared.logging_config import get_logger
from ktv_shared.models import ApprovalRequest, Transaction
from ktv_shared.serializers import serialize_approval
from ktv_shared.services.room_service import load_room
from ktv_shared.supabase.realtime import INSERT, UPDATE, emit_change
from ktv_shared.validation import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

logger = get_logger(__name__)


def compute_request_amount(
    amount_type: str,
    amount: Any = None,
    percentage: Any = None,
    current_amount: Any = None,
) -> tuple[Decimal, Decimal | None]:
    """Resolve the requested amount; percentages apply to the current bill."""
    if amount_type == "percentage":
        pct = to_decimal(percentage)
        if pct <= 0 or pct > 100:
            raise ValidationError("Percentage must be between 0 and 100")
        value = round_idr(to_decimal(current_amount) * pct / 100)
    elif amount_type == "fixed":
        pct = None
        value = round_idr(amount)
    else:
        raise ValidationError(f"Invalid amount type: {amount_type}")

    if value <= 0:
        raise ValidationError("Approval amount must be greater than zero")
    return value, pct


def create_request(requested_by: int, data: dict[str, Any]) -> dict[str, Any]:
    request_type = data.get("request_type")
    if request_type not in {t.value for t in ApprovalRequestType}:
        raise ValidationError(f"Invalid request type: {request_type}")
    reason = (data.get("reason") or "").strip()
    if not reason:
        raise ValidationError("Reason is required")

    amount, percentage = compute_request_amount(
        data.get("amount_type") or "fixed",
        data.get("amount"),
        data.get("percentage"),
        data.get("current_amount"),
    )

    with get_session() as session:
        if data.get("room_id"):
            load_room(session, data["room_id"])
        if data.get("transaction_id") and session.get(Transaction, data["transaction_id"]) is None:
            raise NotFoundError("Transaction not found")

        request = ApprovalRequest(
            request_type=request_type,
            amount=amount,
            percentage=percentage,
            reason=reason,
            requested_by=requested_by,
            room_id=data.get("room_id"),
            transaction_id=data.get("transaction_id"),
            status=ApprovalStatus.PENDING.value,
        )
        session.add(request)
        session.flush()
        emit_change(
            session,
            RealtimeChannel.APPROVAL_REQUESTS,
            INSERT,
            request.id,
            {"request_type": request_type, "amount": amount, "status": request.status},
        )
        logger.info(
            f"Approval request {request.id} ({request_type} {amount}) by user {requested_by}"
        )
        return serialize_approval(request)


def list_requests(status: str | None = None, limit: int = 100) -> list[dict[str, Any]]:
    with get_session() as session:
        stmt = select(ApprovalRequest).order_by(
            ApprovalRequest.created_at.desc(), ApprovalRequest.id.desc()
        )
        if status:
            stmt = stmt.where(ApprovalRequest.status == status)
        return [serialize_approval(r) for r in session.execute(stmt.limit(limit)).scalars().all()]


def _decide(request_id: int, approver_id: int, status: str) -> dict[str, Any]:
    with get_session() as session:
        if not AuthService.has_management_access(approver_id, session=session):
            raise PermissionDeniedError("Only owners and managers can decide approvals")

        request = session.get(ApprovalRequest, request_id)
        if request is None:
            raise NotFoundError("Approval request not found")
        if request.status != ApprovalStatus.PENDING.value:
            raise ConflictError(f"Request is already {request.status}")

        request.status = status
        request.approved_by = approver_id
        request.approved_at = venue_now()
        session.flush()
        emit_change(
            session,
            RealtimeChannel.APPROVAL_REQUESTS,
            UPDATE,
            request.id,
            {"status": status, "approved_by": approver_id},
        )
        logger.info(f"Approval request {request.id} {status} by user {approver_id}")
        return serialize_approval(request)


def approve_request(request_id: int, approver_id: int) -> dict[str, Any]:
    return _decide(request_id, approver_id, ApprovalStatus.APPROVED.value)


def reject_request(request_id: int, approver_id: int) -> dict[str, Any]:
    return _decide(request_id, approver_id, ApprovalStatus.REJECTED.value)
