"""
Request-level token loading.

Every request gets ``g.current_user``: the access token claims, or None for
anonymous callers and bad tokens. Route decorators decide what to do with it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from flask import g, request

from ktv_shared.jwt_service import ACCESS, JWTError, decode_token, extract_token_from_request
from ktv_shared.logging_config import get_logger

if TYPE_CHECKING:
    from flask import Flask

logger = get_logger(__name__)


def init_jwt_middleware(app: Flask) -> None:
    @app.before_request
    def load_jwt_user():
        g.current_user = None

        token = extract_token_from_request(request)
        if not token:
            return
        try:
            g.current_user = decode_token(token, verify_type=ACCESS)
        except JWTError as e:
            # anonymous from here on; login_required answers 401
            logger.info(f"Ignoring token on {request.method} {request.path}: {e.message}")


def get_current_user() -> dict[str, Any] | None:
    """Claims of the caller, None when anonymous."""
    return getattr(g, "current_user", None)


def get_user_id() -> int | None:
    user = get_current_user()
    return user.get("user_id") if user else None
