"""Authentication utilities for the KTV services."""

from .service import AuthError, AuthService, UserData

__all__ = ["AuthError", "AuthService", "UserData"]
