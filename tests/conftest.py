"""Shared fixtures: a Flask app on in-memory SQLite, users with roles and a fake mailer."""

from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-the-ktv-suite")
os.environ.setdefault("PASSWORD_HASH_SALT", "test-password-salt-for-the-ktv-suite")
os.environ.setdefault("DEBUG_MODE", "true")
os.environ.setdefault("VENUE_NAME", "Test KTV")
os.environ.setdefault("DEFAULT_TAX_RATE", "11")
os.environ.setdefault("SERVICE_CHARGE_RATE", "0")
os.environ.pop("FUNCTIONS_SERVICE_KEY", None)
os.environ.pop("SUPABASE_SERVICE_ROLE_KEY", None)

from itertools import count

import pytest

from ktv_api.app import create_app
from ktv_shared.auth.service import AuthService
from ktv_shared.db import dispose_engine
from ktv_shared.jwt_service import create_access_token
from ktv_shared.services import email_service
from ktv_shared.services.email_service import EmailResult, EmailService

PASSWORD = "Secret123"
_emails = count(1)


class FakeEmailService(EmailService):
    """Renders the real templates but keeps the messages in memory."""

    def __init__(self, fail: bool = False):
        super().__init__()
        self.fail = fail
        self.outbox: list[dict] = []

    def send_email(self, to_email, subject, body_text, body_html=None):
        if self.fail:
            return EmailResult(False, "SMTP unavailable")
        self.outbox.append(
            {"to": to_email, "subject": subject, "body": body_text, "html": body_html}
        )
        return EmailResult(True)


@pytest.fixture
def app():
    dispose_engine()
    application = create_app()
    application.config["TESTING"] = True
    yield application
    dispose_engine()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def mailer(monkeypatch):
    fake = FakeEmailService()
    monkeypatch.setattr(email_service, "_email_service", fake)
    return fake


@pytest.fixture
def make_user(app):
    def _make(*roles: str, full_name: str | None = None):
        n = next(_emails)
        return AuthService.register(
            f"user{n}@example.com",
            PASSWORD,
            full_name or f"User {n}",
            roles=list(roles),
        )

    return _make


@pytest.fixture
def auth_headers(make_user):
    """Create a user holding ``roles`` and return (user, headers) for requests."""

    def _headers(*roles: str):
        user = make_user(*roles)
        token = create_access_token(
            user.id, user.full_name, user.email, user.roles, active_role=user.primary_role
        )
        return user, {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def room(app):
    from ktv_shared.services.room_service import create_room

    return create_room(
        {
            "room_number": "101",
            "room_name": "Ruby",
            "room_type": "standard",
            "capacity": 6,
            "hourly_rate": 100000,
        }
    )


@pytest.fixture
def product(app):
    from ktv_shared.services.inventory_service import create_category, create_product

    category = create_category({"name_id": "Minuman", "name_en": "Drinks", "type": "beverage"})
    return create_product(
        {
            "name_id": "Teh Botol",
            "name_en": "Bottled Tea",
            "sku": "DRK-001",
            "category_id": category["id"],
            "price": 15000,
            "cost": 8000,
            "stock_quantity": 20,
            "min_stock_level": 5,
        }
    )
