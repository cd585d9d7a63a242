"""
Account business logic.

Handles user creation, credential checks, session token bookkeeping and the
self-healing admin role. Functions flush; the router owns the commit.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select

from appdedupe.auth.jwt import create_access_token
from appdedupe.auth.password import (
    PasswordStrengthError,
    check_needs_rehash,
    hash_password,
    validate_password_strength,
    verify_password,
)
from appdedupe.auth.policy import AdminPolicy, normalize_email
from appdedupe.clock import as_utc, utcnow
from appdedupe.db.models import SessionToken, User
from appdedupe.errors import AuthError, ConflictError, ValidationError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


# ---------------------------------------------------------------------------
# User queries
# ---------------------------------------------------------------------------


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    """Fetch a user by ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Fetch a user by email (trimmed, case-insensitive)."""
    result = await db.execute(select(User).where(func.lower(User.email) == normalize_email(email)))
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Registration / login
# ---------------------------------------------------------------------------


async def register_user(
    db: AsyncSession,
    name: str,
    email: str,
    password: str,
    policy: AdminPolicy,
) -> User:
    """
    Register a new user with name + email + password.

    Raises:
        ValidationError: If the password is too weak.
        ConflictError: If the email is already registered.
    """
    try:
        validate_password_strength(password)
    except PasswordStrengthError as e:
        raise ValidationError(str(e), errors=[{"field": "password", "message": str(e)}]) from e

    email = normalize_email(email)
    if await get_user_by_email(db, email) is not None:
        msg = "User already exists"
        raise ConflictError(msg)

    user = User(
        name=name.strip(),
        email=email,
        password_hash=hash_password(password),
        role=policy.expected_role(email, "user"),
    )
    db.add(user)
    await db.flush()
    logger.info("user_created", user_id=user.id, email=email, role=user.role)
    return user


async def authenticate_user(
    db: AsyncSession,
    email: str,
    password: str,
    policy: AdminPolicy,
) -> User:
    """
    Authenticate a user with email + password.

    Raises:
        AuthError: If the credentials are invalid.
    """
    user = await get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        logger.info("login_failed", email=normalize_email(email))
        msg = "Invalid credentials"
        raise AuthError(msg)

    if check_needs_rehash(user.password_hash):
        user.password_hash = hash_password(password)
        logger.info("password_rehashed", user_id=user.id)

    await ensure_admin_role(db, user, policy)
    await db.flush()
    return user


async def ensure_admin_role(db: AsyncSession, user: User, policy: AdminPolicy) -> bool:
    """Promote an allow-listed user whose stored role drifted. Returns True if changed."""
    expected = policy.expected_role(user.email, user.role)
    if expected == user.role:
        return False
    user.role = expected
    await db.flush()
    logger.warning("admin_role_restored", user_id=user.id, email=user.email)
    return True


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------


async def issue_session(db: AsyncSession, user: User) -> tuple[str, datetime]:
    """Sign a new token and add it to the user's valid-token set."""
    token, token_id, expires_at = create_access_token(user.id, user.email, user.role)
    db.add(
        SessionToken(
            id=token_id,
            user_id=user.id,
            issued_at=utcnow(),
            expires_at=expires_at,
        )
    )
    await db.flush()
    return token, expires_at


async def get_active_session(db: AsyncSession, token_id: str, user_id: int) -> SessionToken | None:
    """Return the session row if it belongs to the user, is unrevoked and unexpired."""
    result = await db.execute(
        select(SessionToken).where(
            SessionToken.id == token_id,
            SessionToken.user_id == user_id,
            SessionToken.revoked_at.is_(None),
        )
    )
    session = result.scalar_one_or_none()
    if session is None or as_utc(session.expires_at) <= utcnow():
        return None
    return session


async def revoke_session(db: AsyncSession, token_id: str) -> bool:
    """Remove a token from the valid set. Returns True if it was active."""
    result = await db.execute(select(SessionToken).where(SessionToken.id == token_id))
    session = result.scalar_one_or_none()
    if session is None or session.revoked_at is not None:
        return False
    session.revoked_at = utcnow()
    await db.flush()
    return True
