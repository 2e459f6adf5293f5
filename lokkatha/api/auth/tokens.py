"""JWT session token generation and verification."""

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from ..config import JWT_ALGORITHM, JWT_SECRET, SESSION_MAX_AGE_DAYS


def create_access_token(claims: dict[str, Any], expires_delta: timedelta | None = None) -> str:
    """Create a signed session token.

    Args:
        claims: Claims to embed (``sub`` plus any custom session fields)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    if expires_delta is None:
        expires_delta = timedelta(days=SESSION_MAX_AGE_DAYS)

    now = datetime.now(timezone.utc)
    payload = {
        **claims,
        "exp": now + expires_delta,
        "iat": now,
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> dict | None:
    """Verify a session token and return its claims.

    Args:
        token: The JWT token string to verify

    Returns:
        Decoded payload dict if valid, None if invalid/expired
    """
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None
