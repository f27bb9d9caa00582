"""Decorators for route protection using the JWT loaded by the middleware."""

from __future__ import annotations

from functools import wraps
from http import HTTPStatus

from flask import jsonify

from ktv_shared.constants import Roles
from ktv_shared.jwt_middleware import get_current_user
from ktv_shared.serializers import error_response


def _has_any_role(user: dict, roles: tuple[str, ...]) -> bool:
    """
    Check the roles carried in the token.

    A user with several roles is allowed when any of them matches.
    """
    held = user.get("roles") or []
    return any(role in held for role in roles)


def login_required(f):
    """Decorator to require JWT authentication for a route."""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = get_current_user()
        if not user or not user.get("user_id"):
            return jsonify(error_response("Authentication required")), HTTPStatus.UNAUTHORIZED
        return f(*args, **kwargs)

    return decorated_function


def roles_required(*roles: str):
    """Decorator factory: the user must hold at least one of ``roles``."""
    allowed = tuple(r.value if isinstance(r, Roles) else r for r in roles)

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = get_current_user()
            if not user or not user.get("user_id"):
                return jsonify(error_response("Authentication required")), HTTPStatus.UNAUTHORIZED
            if not _has_any_role(user, allowed):
                return jsonify(error_response("Insufficient permissions")), HTTPStatus.FORBIDDEN
            return f(*args, **kwargs)

        return decorated_function

    return decorator


management_required = roles_required(Roles.OWNER, Roles.MANAGER)

cashier_required = roles_required(Roles.OWNER, Roles.MANAGER, Roles.CASHIER)

floor_staff_required = roles_required(
    Roles.OWNER, Roles.MANAGER, Roles.CASHIER, Roles.WAITER, Roles.WAITRESS
)

finance_required = roles_required(Roles.OWNER, Roles.MANAGER, Roles.ACCOUNTANT)
