"""
Input validation utilities and the domain exceptions raised by the services.
"""

from __future__ import annotations

import re
from http import HTTPStatus

from ktv_shared.constants import DIVISIONS, PHONE_PATTERN


class ValidationError(Exception):
    """Raised when validation fails."""

    status = HTTPStatus.BAD_REQUEST


class NotFoundError(ValidationError):
    """Raised when a referenced record does not exist."""

    status = HTTPStatus.NOT_FOUND


class ConflictError(ValidationError):
    """Raised when a write clashes with existing data (double booking, duplicates)."""

    status = HTTPStatus.CONFLICT


class PermissionDeniedError(ValidationError):
    """Raised when the caller lacks the role needed for an action."""

    status = HTTPStatus.FORBIDDEN


def validate_password(password: str) -> None:
    """
    Validate password strength for new accounts.

    Requirements:
    - 8 to 100 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one number
    """
    if not password:
        raise ValidationError("Password is required")

    if len(password) < 8:
        raise ValidationError("Password must be at least 8 characters")

    if len(password) > 100:
        raise ValidationError("Password must be at most 100 characters")

    if not re.search(r"[A-Z]", password):
        raise ValidationError("Password must contain at least one uppercase letter")

    if not re.search(r"[a-z]", password):
        raise ValidationError("Password must contain at least one lowercase letter")

    if not re.search(r"[0-9]", password):
        raise ValidationError("Password must contain at least one number")


def validate_email(email: str) -> None:
    """Validate email format."""
    if not email:
        raise ValidationError("Email is required")

    if len(email) > 255:
        raise ValidationError("Email must be at most 255 characters")

    pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
    if not re.match(pattern, email):
        raise ValidationError("Invalid email format")


def validate_phone(phone: str | None) -> None:
    """Indonesian phone numbers: 0 / 62 / +62 prefix followed by 9-13 digits."""
    if not phone:
        return
    if not re.match(PHONE_PATTERN, phone):
        raise ValidationError("Invalid phone number format")


def validate_division(division: str) -> None:
    if division not in DIVISIONS:
        raise ValidationError(f"Invalid division: {division}")


def validate_role(role: str) -> None:
    """Validate role against the fixed set of venue roles."""
    from ktv_shared.constants import Roles

    if role not in Roles.all_values():
        allowed = ", ".join(sorted(Roles.all_values()))
        raise ValidationError(f"Invalid role: {role}. Allowed: {allowed}")
