"""FastAPI authentication dependencies."""

from __future__ import annotations

from dataclasses import dataclass

import jwt
from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from appdedupe.auth.jwt import verify_token
from appdedupe.auth.policy import AdminPolicy, get_admin_policy
from appdedupe.auth.service import get_active_session, get_user_by_id
from appdedupe.database import get_session
from appdedupe.db.models import User
from appdedupe.errors import AuthError, AuthorizationError

_bearer = HTTPBearer(auto_error=False)


@dataclass
class Principal:
    """The authenticated caller and the token id it presented."""

    user: User
    token_id: str


async def get_principal(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> Principal:
    """
    Verify the bearer token and resolve it to a live user.

    The token must decode, and its ``jti`` must still be in the user's
    valid-token set. Raises 401 otherwise.
    """
    if credentials is None:
        msg = "Please authenticate"
        raise AuthError(msg)
    try:
        payload = verify_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        raise AuthError(str(e)) from e

    user_id = int(payload["sub"])
    if await get_active_session(db, payload["jti"], user_id) is None:
        msg = "Session is no longer valid"
        raise AuthError(msg)

    user = await get_user_by_id(db, user_id)
    if user is None:
        msg = "User not found"
        raise AuthError(msg)
    return Principal(user=user, token_id=payload["jti"])


async def get_current_user(principal: Principal = Depends(get_principal)) -> User:
    return principal.user


async def require_admin(
    user: User = Depends(get_current_user),
    policy: AdminPolicy = Depends(get_admin_policy),
) -> User:
    """Allow only principals on the admin allow-list. Raises 403 otherwise."""
    if not policy.is_admin(user.email):
        msg = "Access denied. Admin only."
        raise AuthorizationError(msg)
    return user
