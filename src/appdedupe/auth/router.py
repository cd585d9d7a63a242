"""Account router: all /api/v1/users/* endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from appdedupe.auth.dependencies import Principal, get_current_user, get_principal
from appdedupe.auth.policy import AdminPolicy, get_admin_policy
from appdedupe.auth.schemas import (
    AuthResponse,
    LoginRequest,
    PersonalStatsResponse,
    RegisterRequest,
    UserResponse,
)
from appdedupe.auth.service import (
    authenticate_user,
    ensure_admin_role,
    issue_session,
    register_user,
    revoke_session,
)
from appdedupe.database import get_session
from appdedupe.db.models import User
from appdedupe.schemas import MessageResponse
from appdedupe.stats.service import personal_stats

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


async def _auth_response(db: AsyncSession, user: User) -> AuthResponse:
    token, expires_at = await issue_session(db, user)
    await db.commit()
    return AuthResponse(
        user=UserResponse.model_validate(user),
        token=token,
        expires_at=expires_at,
    )


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_session),
    policy: AdminPolicy = Depends(get_admin_policy),
) -> AuthResponse:
    """Create an account and issue its first token."""
    user = await register_user(db, body.name, body.email, body.password, policy)
    return await _auth_response(db, user)


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_session),
    policy: AdminPolicy = Depends(get_admin_policy),
) -> AuthResponse:
    """Exchange email + password for a token."""
    user = await authenticate_user(db, body.email, body.password, policy)
    logger.info("user_logged_in", user_id=user.id)
    return await _auth_response(db, user)


@router.get("/me", response_model=UserResponse)
async def me(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    policy: AdminPolicy = Depends(get_admin_policy),
) -> UserResponse:
    """Resolve the caller, re-asserting the admin role for allow-listed emails."""
    if await ensure_admin_role(db, user, policy):
        await db.commit()
    return UserResponse.model_validate(user)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Revoke the token used for this request."""
    await revoke_session(db, principal.token_id)
    await db.commit()
    logger.info("user_logged_out", user_id=principal.user.id)
    return MessageResponse(message="Logged out successfully")


@router.get("/me/stats", response_model=PersonalStatsResponse)
async def my_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> PersonalStatsResponse:
    """The caller's XP, level, streak and confirmation count."""
    return PersonalStatsResponse.model_validate(await personal_stats(db, user))
