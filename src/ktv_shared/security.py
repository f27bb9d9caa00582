"""
Credential hashing and shared-secret comparison.

Staff passwords are stored as a salted SHA-256 of ``email:password``; the
salt comes from PASSWORD_HASH_SALT so a leaked table alone is not enough.
"""

from __future__ import annotations

import hashlib
import os
import secrets


def normalize_identifier(value: str | None) -> str:
    """Lowercased, trimmed form of an email used for lookups and hashing."""
    return (value or "").strip().lower()


def password_salt() -> str:
    salt = os.getenv("PASSWORD_HASH_SALT")
    if not salt:
        raise RuntimeError("PASSWORD_HASH_SALT is not set; staff passwords cannot be hashed")
    return salt


def hash_credentials(email: str | None, password: str | None) -> str:
    material = ":".join((normalize_identifier(email), (password or "").strip(), password_salt()))
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


def verify_credentials(email: str | None, password: str | None, stored_hash: str | None) -> bool:
    if not stored_hash:
        return False
    return secrets.compare_digest(hash_credentials(email, password), stored_hash)


def verify_service_key(candidate: str | None, expected: str | None) -> bool:
    """Constant-time check of the key presented by scheduled function callers."""
    if not candidate or not expected:
        return False
    return secrets.compare_digest(candidate, expected)
