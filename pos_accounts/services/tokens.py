"""Opaque tokens for e-mail verification."""

import secrets
from datetime import datetime, timedelta

TOKEN_BYTES = 32
DEFAULT_LIFETIME = 3600


def generate_token() -> str:
    """Generate an unguessable, URL-safe token."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def token_expiry(now: datetime, lifetime: int = DEFAULT_LIFETIME) -> datetime:
    """Absolute expiry for a token issued at ``now``."""
    return now + timedelta(seconds=lifetime)
