"""Centralized authentication and permission helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from http import HTTPStatus

from sqlalchemy import select
from sqlalchemy.orm import Session

from ktv_shared.constants import ROLE_PRIORITY, Roles
from ktv_shared.datetime_utils import venue_now
from ktv_shared.db import get_session
from ktv_shared.logging_config import get_logger
from ktv_shared.models import Profile, UserRole
from ktv_shared.security import normalize_identifier
from ktv_shared.validation import ConflictError, validate_email, validate_password, validate_phone

logger = get_logger(__name__)


class AuthError(Exception):
    """Raised when an authentication or authorization error occurs."""

    def __init__(self, message: str, status: HTTPStatus = HTTPStatus.UNAUTHORIZED) -> None:
        super().__init__(message)
        self.status = status


@dataclass
class UserData:
    """Plain copy of a profile that outlives the database session."""

    id: int
    email: str
    full_name: str
    phone: str | None
    roles: list[str] = field(default_factory=list)

    @property
    def primary_role(self) -> str | None:
        return pick_primary_role(self.roles)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "phone": self.phone,
            "roles": self.roles,
            "primary_role": self.primary_role,
        }


def pick_primary_role(roles: list[str]) -> str | None:
    for role in ROLE_PRIORITY:
        if role in roles:
            return role
    return None


def _to_user_data(profile: Profile) -> UserData:
    return UserData(
        id=profile.id,
        email=profile.email,
        full_name=profile.full_name,
        phone=profile.phone,
        roles=profile.role_names,
    )


def _roles_of(session: Session, user_id: int) -> set[str]:
    return set(
        session.execute(select(UserRole.role).where(UserRole.user_id == user_id)).scalars().all()
    )


class AuthService:
    """Authenticates staff logins and answers role questions."""

    @staticmethod
    def register(
        email: str,
        password: str,
        full_name: str,
        phone: str | None = None,
        roles: list[str] | None = None,
    ) -> UserData:
        """
        Create a login. New accounts have no role until management assigns one,
        unless ``roles`` is given (seed data, tests).
        """
        email = normalize_identifier(email)
        validate_email(email)
        validate_password(password)
        validate_phone(phone)

        with get_session() as session:
            existing = session.execute(
                select(Profile.id).where(Profile.email == email)
            ).scalar_one_or_none()
            if existing is not None:
                logger.warning(f"Registration attempt with existing email: {email}")
                raise ConflictError("Email is already registered")

            profile = Profile(email=email, full_name=full_name.strip(), phone=phone or None)
            profile.set_password(password)
            for role in roles or []:
                profile.roles.append(UserRole(role=role))
            session.add(profile)
            session.flush()

            logger.info(f"Registered profile {profile.id} ({email})")
            return _to_user_data(profile)

    @staticmethod
    def authenticate(email: str, password: str) -> UserData:
        email = normalize_identifier(email)
        with get_session() as session:
            profile = session.execute(
                select(Profile).where(Profile.email == email, Profile.is_active.is_(True))
            ).scalar_one_or_none()
            if profile is None or not profile.verify_password(password):
                raise AuthError("Invalid email or password", status=HTTPStatus.UNAUTHORIZED)

            profile.last_sign_in_at = venue_now()
            return _to_user_data(profile)

    @staticmethod
    def get_user(user_id: int) -> UserData:
        with get_session() as session:
            profile = session.get(Profile, user_id)
            if profile is None or not profile.is_active:
                raise AuthError("User not found", status=HTTPStatus.UNAUTHORIZED)
            return _to_user_data(profile)

    @staticmethod
    def has_management_access(user_id: int, session: Session | None = None) -> bool:
        """Owners and managers."""
        management = {Roles.OWNER.value, Roles.MANAGER.value}
        if session is not None:
            return bool(_roles_of(session, user_id) & management)
        with get_session() as new_session:
            return bool(_roles_of(new_session, user_id) & management)

    @staticmethod
    def can_use_all_mention(user_id: int, session: Session | None = None) -> bool:
        return AuthService.has_management_access(user_id, session=session)
