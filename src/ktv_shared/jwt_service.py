"""
Staff login tokens.

Access tokens carry every role the user holds plus the dashboard they are
working in, so route decorators never need a database round trip. Refresh
tokens only carry the user id.
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from flask import Request, current_app

JWT_ALGORITHM = "HS256"
ACCESS = "access"
REFRESH = "refresh"


class JWTError(Exception):
    """Base exception for token problems; always rendered as 401."""

    def __init__(self, message: str, status: int = 401):
        self.message = message
        self.status = status
        super().__init__(message)


class TokenExpiredError(JWTError):
    def __init__(self):
        super().__init__("Token expired")


class InvalidTokenError(JWTError):
    def __init__(self, message: str = "Invalid token"):
        super().__init__(message)


def _setting(key: str, default: Any) -> Any:
    """Flask config when inside an app, environment otherwise (CLI jobs)."""
    try:
        value = current_app.config.get(key)
    except RuntimeError:
        value = None
    return value if value else os.getenv(key, default)


def get_jwt_secret() -> str:
    secret = _setting("SECRET_KEY", os.getenv("JWT_SECRET_KEY"))
    if not secret:
        raise RuntimeError("SECRET_KEY must be configured to sign staff tokens")
    return secret


def _encode(user_id: int, token_type: str, lifetime: timedelta, **claims: Any) -> str:
    issued = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "user_id": user_id,
        "type": token_type,
        "iat": issued,
        "exp": issued + lifetime,
        **claims,
    }
    return jwt.encode(payload, get_jwt_secret(), algorithm=JWT_ALGORITHM)


def create_access_token(
    user_id: int,
    full_name: str,
    email: str,
    roles: list[str],
    active_role: str | None = None,
    expires_hours: int | None = None,
) -> str:
    """
    Sign an access token for a staff member.

    ``active_role`` is the dashboard picked at login or through switch-role;
    permission checks still look at the full ``roles`` list.
    """
    hours = expires_hours or int(_setting("JWT_ACCESS_TOKEN_EXPIRES_HOURS", 12))
    return _encode(
        user_id,
        ACCESS,
        timedelta(hours=hours),
        full_name=full_name,
        email=email,
        roles=list(roles),
        active_role=active_role,
    )


def create_refresh_token(user_id: int, expires_days: int | None = None) -> str:
    days = expires_days or int(_setting("JWT_REFRESH_TOKEN_EXPIRES_DAYS", 7))
    return _encode(user_id, REFRESH, timedelta(days=days))


def decode_token(token: str, verify_type: str | None = None) -> dict[str, Any]:
    """
    Verify signature and expiry, optionally the token type.

    Raises:
        TokenExpiredError: the token is past its ``exp``
        InvalidTokenError: bad signature, malformed token or wrong type
    """
    try:
        payload = jwt.decode(token, get_jwt_secret(), algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError()
    except jwt.InvalidTokenError as e:
        raise InvalidTokenError(str(e))

    if verify_type and payload.get("type") != verify_type:
        raise InvalidTokenError(f"Expected {verify_type} token")
    return payload


def extract_token_from_request(request: Request) -> str | None:
    """Bearer header first, then the ``access_token`` cookie set by the dashboards."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return request.cookies.get("access_token")
