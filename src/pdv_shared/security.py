"""
Security helpers for hashing local credentials.

Only used when Supabase Auth is not configured (local runs, tests, seeds).
"""

from __future__ import annotations

import hashlib
import os
import secrets


def normalize_identifier(value: str | None) -> str:
    """Normalize identifiers such as usernames or emails before hashing."""
    if not value:
        return ""
    return value.strip().lower()


def _get_salt() -> str:
    salt = os.getenv("PASSWORD_HASH_SALT")
    if salt:
        return salt
    raise RuntimeError(
        "PASSWORD_HASH_SALT environment variable not set. "
        "Please set this environment variable in production."
    )


def _hash_payload(payload: str) -> str:
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def hash_credentials(username: str | None, password: str | None) -> str:
    """
    Hash a username/password pair. Only the hash is stored; the raw values are discarded.
    """
    normalized_user = normalize_identifier(username)
    password = (password or "").strip()
    payload = f"{normalized_user}:{password}:{_get_salt()}"
    return _hash_payload(payload)


def verify_credentials(username: str | None, password: str | None, stored_hash: str | None) -> bool:
    """
    Compare a candidate username/password pair against the stored hash.
    """
    if not stored_hash:
        return False
    candidate = hash_credentials(username, password)
    return secrets.compare_digest(candidate, stored_hash)
