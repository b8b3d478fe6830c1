"""Security utilities for auth."""

from __future__ import annotations

import hashlib
import secrets

import bcrypt

from token_auth.exceptions import TokenGeneration


def new_raw_secret(byte_len: int) -> str:
    """Return ``byte_len`` random bytes from the OS CSPRNG, URL-safe base64 encoded."""
    try:
        return secrets.token_urlsafe(byte_len)
    except (OSError, NotImplementedError) as exc:
        raise TokenGeneration(detail=f"entropy source failure: {exc}") from exc


def digest(raw: str) -> str:
    """One-way SHA-256 lookup key for a raw refresh secret (hex encoded)."""
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def new_token_id() -> str:
    return secrets.token_hex(16)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=12))
    return hashed.decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False
