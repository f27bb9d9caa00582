"""Room cleaning tasks handed to floor staff."""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from ktv_shared.constants import RealtimeChannel, Roles, TaskPriority, TaskStatus
from ktv_shared.datetime_utils import venue_now
from ktv_shared.db import get_session
from ktv_shared.logging_config import get_logger
from ktv_shared.models import CleaningTask, UserRole
from ktv_shared.serializers import serialize_cleaning_task
from ktv_shared.services.room_service import load_room
from ktv_shared.supabase.realtime import INSERT, UPDATE, emit_change
from ktv_shared.validation import NotFoundError, ValidationError

logger = get_logger(__name__)


def _check_assignee(session: Session, user_id: int) -> None:
    holds = session.execute(
        select(UserRole.id).where(
            UserRole.user_id == user_id,
            UserRole.role.in_([Roles.WAITER.value, Roles.WAITRESS.value]),
        )
    ).first()
    if holds is None:
        raise ValidationError("Tasks can only be assigned to waiters or waitresses")


def _emit(session: Session, task: CleaningTask, event: str) -> None:
    emit_change(
        session,
        RealtimeChannel.CLEANING_TASKS,
        event,
        task.id,
        {"room_id": task.room_id, "status": task.status, "assigned_to": task.assigned_to},
    )


def create_task(data: dict[str, Any], assigned_by: int | None) -> dict[str, Any]:
    priority = data.get("priority") or TaskPriority.NORMAL.value
    if priority not in {p.value for p in TaskPriority}:
        raise ValidationError(f"Invalid priority: {priority}")

    with get_session() as session:
        load_room(session, data["room_id"])
        if data.get("assigned_to"):
            _check_assignee(session, data["assigned_to"])
        task = CleaningTask(
            room_id=data["room_id"],
            assigned_to=data.get("assigned_to"),
            assigned_by=assigned_by,
            priority=priority,
            notes=data.get("notes"),
            status=TaskStatus.PENDING.value,
        )
        session.add(task)
        session.flush()
        _emit(session, task, INSERT)
        logger.info(f"Cleaning task {task.id} for room {task.room_id} ({priority})")
        return serialize_cleaning_task(task)


def update_task_status(task_id: int, status: str) -> dict[str, Any]:
    if status not in {s.value for s in TaskStatus}:
        raise ValidationError(f"Invalid task status: {status}")

    with get_session() as session:
        task = session.get(CleaningTask, task_id)
        if task is None:
            raise NotFoundError("Task not found")
        task.status = status
        if status == TaskStatus.IN_PROGRESS.value:
            task.started_at = venue_now()
        elif status == TaskStatus.COMPLETED.value:
            task.completed_at = venue_now()
        session.flush()
        _emit(session, task, UPDATE)
        logger.info(f"Cleaning task {task.id} -> {status}")
        return serialize_cleaning_task(task)


def list_tasks(status: str | None = None, assigned_to: int | None = None) -> list[dict[str, Any]]:
    with get_session() as session:
        stmt = select(CleaningTask).order_by(CleaningTask.created_at.desc(), CleaningTask.id.desc())
        if status:
            stmt = stmt.where(CleaningTask.status == status)
        if assigned_to:
            stmt = stmt.where(CleaningTask.assigned_to == assigned_to)
        return [serialize_cleaning_task(t) for t in session.execute(stmt).scalars().all()]


def task_history(user_id: int, limit: int = 50) -> list[dict[str, Any]]:
    """Completed tasks of one waiter, newest first."""
    with get_session() as session:
        tasks = (
            session.execute(
                select(CleaningTask)
                .where(
                    CleaningTask.assigned_to == user_id,
                    CleaningTask.status == TaskStatus.COMPLETED.value,
                )
                .order_by(CleaningTask.completed_at.desc())
                .limit(limit)
            )
            .scalars()
            .all()
        )
        return [serialize_cleaning_task(t) for t in tasks]
