"""
JWT session token management.

Every token carries a unique ``jti``. The token is only honoured while a
matching, unrevoked row exists in ``session_tokens``, which is what makes
logout effective before expiry.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from typing import Any

import jwt

from appdedupe.clock import utcnow
from appdedupe.config import get_settings


def create_access_token(user_id: int, email: str, role: str) -> tuple[str, str, datetime]:
    """
    Create a signed access token.

    Args:
        user_id: The user's database ID.
        email: The user's email (informational claim).
        role: The user's role at issue time (informational claim).

    Returns:
        Tuple of (encoded token, token id, expiry).
    """
    settings = get_settings()
    now = utcnow()
    token_id = str(uuid.uuid4())
    expires_at = now + timedelta(minutes=settings.jwt_access_token_expire_minutes)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "jti": token_id,
        "iat": now,
        "exp": expires_at,
        "iss": settings.jwt_issuer,
        "type": "access",
    }
    token = jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return token, token_id, expires_at


def verify_token(token: str) -> dict[str, Any]:
    """
    Verify and decode an access token.

    Returns:
        Decoded payload dictionary.

    Raises:
        jwt.InvalidTokenError: If the token is invalid, expired, or of the wrong type.
    """
    settings = get_settings()
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
        )
    except jwt.ExpiredSignatureError:
        msg = "Token has expired"
        raise jwt.InvalidTokenError(msg) from None

    if payload.get("type") != "access":
        msg = f"Expected token type 'access', got '{payload.get('type')}'"
        raise jwt.InvalidTokenError(msg)
    if not payload.get("jti") or not payload.get("sub"):
        msg = "Token is missing required claims"
        raise jwt.InvalidTokenError(msg)

    return payload
