"""
Auth API - JWT-based authentication endpoints.

Handles registration, login, token refresh, current user info and switching
the active role dashboard.
"""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request

from ktv_api.decorators import login_required
from ktv_shared.auth.service import AuthError, AuthService, UserData
from ktv_shared.jwt_middleware import get_current_user, get_user_id
from ktv_shared.jwt_service import REFRESH, create_access_token, create_refresh_token, decode_token
from ktv_shared.logging_config import get_logger
from ktv_shared.schemas import LoginRequest, RefreshRequest, RegisterRequest, SwitchRoleRequest
from ktv_shared.serializers import success_response
from ktv_shared.services.email_service import get_email_service

auth_bp = Blueprint("auth", __name__)
logger = get_logger(__name__)


def _token_pair(user: UserData, active_role: str | None = None) -> dict:
    active = active_role or user.primary_role
    return {
        "access_token": create_access_token(
            user.id, user.full_name, user.email, user.roles, active_role=active
        ),
        "refresh_token": create_refresh_token(user.id),
        "token_type": "Bearer",
        "user": {**user.as_dict(), "active_role": active},
    }


@auth_bp.post("/auth/register")
def register():
    """
    Create a staff login. The account has no role until management assigns one.
    """
    data = RegisterRequest(**(request.get_json(silent=True) or {}))
    user = AuthService.register(data.email, data.password, data.full_name, data.phone)

    result = get_email_service().send_welcome(
        user.email, user.full_name, current_app.config["VENUE_NAME"]
    )
    if not result.sent:
        logger.warning(f"Welcome email to {user.email} not sent: {result.error}")

    return jsonify(success_response(user.as_dict())), HTTPStatus.CREATED


@auth_bp.post("/auth/login")
def login():
    """
    Body: {"email": str, "password": str}

    Returns access and refresh tokens plus the user with all roles.
    """
    data = LoginRequest(**(request.get_json(silent=True) or {}))
    user = AuthService.authenticate(data.email, data.password)
    logger.info(f"User {user.id} logged in as {user.primary_role}")
    return jsonify(success_response(_token_pair(user)))


@auth_bp.post("/auth/refresh")
def refresh():
    data = RefreshRequest(**(request.get_json(silent=True) or {}))
    token = data.refresh_token or request.cookies.get("refresh_token")
    if not token:
        raise AuthError("Refresh token required")
    payload = decode_token(token, verify_type=REFRESH)
    user = AuthService.get_user(int(payload["user_id"]))
    return jsonify(success_response(_token_pair(user)))


@auth_bp.get("/auth/me")
@login_required
def me():
    user = AuthService.get_user(get_user_id())
    claims = get_current_user()
    return jsonify(
        success_response({**user.as_dict(), "active_role": claims.get("active_role")})
    )


@auth_bp.post("/auth/switch-role")
@login_required
def switch_role():
    data = SwitchRoleRequest(**(request.get_json(silent=True) or {}))
    user = AuthService.get_user(get_user_id())
    if data.role not in user.roles:
        raise AuthError(f"You do not have the {data.role} role", status=HTTPStatus.FORBIDDEN)
    logger.info(f"User {user.id} switched to {data.role}")
    return jsonify(success_response(_token_pair(user, active_role=data.role)))
