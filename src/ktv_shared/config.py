"""
Environment-driven settings shared by the API process and the job runner.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class AppConfig:
    app_name: str
    venue_name: str
    currency: str
    secret_key: str
    log_level: str
    # Postgres connection, ignored when DATABASE_URL is set
    pg_host: str
    pg_port: int
    pg_user: str
    pg_password: str
    pg_database: str
    pg_sslmode: str
    # Supabase project used for storage and the functions key
    supabase_url: str
    supabase_service_role_key: str
    storage_bucket_products: str
    # Scheduled jobs
    reminder_lead_minutes: int
    recurring_window_days: int
    # Token lifetimes
    jwt_access_token_expires_hours: int
    jwt_refresh_token_expires_days: int
    debug_mode: bool
    flask_debug: bool

    @property
    def sqlalchemy_uri(self) -> str:
        """psycopg2 URI for the venue database; Supabase requires sslmode."""
        uri = (
            f"postgresql+psycopg2://{self.pg_user}:{self.pg_password}"
            f"@{self.pg_host}:{self.pg_port}/{self.pg_database}"
        )
        if self.pg_sslmode:
            uri += f"?sslmode={self.pg_sslmode}"
        return uri

    @property
    def service_key(self) -> str:
        """Key that scheduled function callers must present."""
        return os.getenv("FUNCTIONS_SERVICE_KEY") or self.supabase_service_role_key


def env_str(name: str, default: str | None = None) -> str:
    value = os.getenv(name, default)
    if value is None:
        raise RuntimeError(f"Environment variable {name} is required")
    return value


def env_int(name: str, default: int) -> int:
    return int(env_str(name, str(default)))


def read_bool(name: str, default: str = "false") -> bool:
    return env_str(name, default).strip().lower() in TRUTHY


# Values shipped in .env.example; refusing them keeps demo secrets out of production
_EXAMPLE_VALUES = {
    "SECRET_KEY": {"change-me", "ktv-secret-change-me", "your-secret-key-here"},
    "PASSWORD_HASH_SALT": {"change-me", "ktv-salt-change-me"},
}

_TOKEN_LIFETIME_BOUNDS = {
    "JWT_ACCESS_TOKEN_EXPIRES_HOURS": (1, 168),
    "JWT_REFRESH_TOKEN_EXPIRES_DAYS": (1, 90),
}


def _check_lifetime(name: str, low: int, high: int) -> str | None:
    raw = os.getenv(name)
    if not raw:
        return None
    if not raw.strip().isdigit():
        return f"{name} must be a whole number, got {raw!r}"
    if not low <= int(raw) <= high:
        return f"{name} must be between {low} and {high}"
    return None


def validate_required_env_vars(skip_in_debug: bool = False) -> None:
    """
    Fail at startup when secrets or the database location are missing.

    With ``skip_in_debug`` a local run with DEBUG_MODE=true starts on the
    built-in defaults.
    """
    if skip_in_debug and read_bool("DEBUG_MODE"):
        return

    problems: list[str] = []
    for name, examples in _EXAMPLE_VALUES.items():
        value = os.getenv(name, "")
        if not value or value in examples:
            problems.append(f"{name} needs a real random value (secrets.token_urlsafe(32))")

    if not os.getenv("DATABASE_URL"):
        missing = [
            name
            for name in ("POSTGRES_HOST", "POSTGRES_USER", "POSTGRES_PASSWORD", "POSTGRES_DB")
            if not os.getenv(name)
        ]
        if missing:
            problems.append(f"DATABASE_URL or {', '.join(missing)} must be set")

    for name, (low, high) in _TOKEN_LIFETIME_BOUNDS.items():
        problem = _check_lifetime(name, low, high)
        if problem:
            problems.append(problem)

    if problems:
        raise RuntimeError("Invalid configuration:\n" + "\n".join(f"  - {p}" for p in problems))


def load_config(app_name: str) -> AppConfig:
    """Read settings from the environment; ``app_name`` tags the log lines."""
    return AppConfig(
        app_name=app_name,
        venue_name=env_str("VENUE_NAME", "Platinum High KTV"),
        currency=env_str("CURRENCY", "IDR"),
        secret_key=env_str("SECRET_KEY", "ktv-secret-change-me"),
        log_level=env_str("LOG_LEVEL", "INFO"),
        pg_host=env_str("POSTGRES_HOST", "localhost"),
        pg_port=env_int("POSTGRES_PORT", 5432),
        pg_user=env_str("POSTGRES_USER", "postgres"),
        pg_password=env_str("POSTGRES_PASSWORD", "postgres"),
        pg_database=env_str("POSTGRES_DB", "postgres"),
        pg_sslmode=env_str("POSTGRES_SSLMODE", "require"),
        supabase_url=env_str("SUPABASE_URL", ""),
        supabase_service_role_key=env_str("SUPABASE_SERVICE_ROLE_KEY", ""),
        storage_bucket_products=env_str("STORAGE_BUCKET_PRODUCTS", "product-images"),
        reminder_lead_minutes=env_int("REMINDER_LEAD_MINUTES", 15),
        recurring_window_days=env_int("RECURRING_WINDOW_DAYS", 7),
        jwt_access_token_expires_hours=env_int("JWT_ACCESS_TOKEN_EXPIRES_HOURS", 12),
        jwt_refresh_token_expires_days=env_int("JWT_REFRESH_TOKEN_EXPIRES_DAYS", 7),
        debug_mode=read_bool("DEBUG_MODE"),
        flask_debug=read_bool("FLASK_DEBUG"),
    )
