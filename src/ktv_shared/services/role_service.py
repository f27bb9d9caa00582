"""User role assignments managed by owners and managers."""

from __future__ import annotations

from typing import Any

from sqlalchemy import select

from ktv_shared.db import get_session
from ktv_shared.logging_config import get_logger
from ktv_shared.models import Profile, UserRole
from ktv_shared.validation import ConflictError, NotFoundError, validate_role

logger = get_logger(__name__)


def list_users_with_roles() -> list[dict[str, Any]]:
    """Every profile with the roles it holds, grouped per user."""
    with get_session() as session:
        profiles = session.execute(select(Profile).order_by(Profile.full_name)).scalars().all()
        return [
            {
                "user_id": p.id,
                "email": p.email,
                "full_name": p.full_name,
                "is_active": p.is_active,
                "roles": sorted(
                    ({"id": r.id, "role": r.role} for r in p.roles), key=lambda r: r["role"]
                ),
            }
            for p in profiles
        ]


def assign_role(user_id: int, role: str) -> dict[str, Any]:
    validate_role(role)
    with get_session() as session:
        if session.get(Profile, user_id) is None:
            raise NotFoundError("User not found")
        existing = session.execute(
            select(UserRole.id).where(UserRole.user_id == user_id, UserRole.role == role)
        ).scalar_one_or_none()
        if existing is not None:
            raise ConflictError(f"User already has role {role}")
        user_role = UserRole(user_id=user_id, role=role)
        session.add(user_role)
        session.flush()
        logger.info(f"Assigned role {role} to user {user_id}")
        return {"id": user_role.id, "user_id": user_id, "role": role}


def remove_role(user_role_id: int) -> None:
    with get_session() as session:
        user_role = session.get(UserRole, user_role_id)
        if user_role is None:
            raise NotFoundError("Role assignment not found")
        logger.info(f"Removed role {user_role.role} from user {user_role.user_id}")
        session.delete(user_role)
