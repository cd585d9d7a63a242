"""App-name endpoints under /api/v1/apps."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from appdedupe.apps.confirmation import confirm_app
from appdedupe.apps.queries import list_app_views
from appdedupe.apps.schemas import AppCreateRequest, AppResponse, ConfirmResponse, ScoreResponse
from appdedupe.apps.service import create_app, update_app
from appdedupe.auth.dependencies import get_current_user
from appdedupe.database import get_session
from appdedupe.db.models import User

router = APIRouter(prefix="/api/v1/apps", tags=["Apps"])


@router.get("", response_model=list[AppResponse])
async def list_apps(
    confirmed: bool | None = Query(None),
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> list[dict]:
    """All app names, optionally filtered by ``confirmed``."""
    return await list_app_views(db, confirmed)


@router.get("/confirmed", response_model=list[AppResponse])
async def list_confirmed(
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> list[dict]:
    return await list_app_views(db, True)


@router.get("/unconfirmed", response_model=list[AppResponse])
async def list_unconfirmed(
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> list[dict]:
    return await list_app_views(db, False)


@router.post("", response_model=AppResponse, status_code=201)
async def add_app(
    body: AppCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict:
    return await create_app(db, body.name, user, body.cluster, body.canonical_name)


@router.patch("/{app_id}", response_model=AppResponse)
async def edit_app(
    app_id: int,
    changes: dict[str, Any] = Body(...),
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict:
    """Edit ``name``, ``cluster`` or ``notes``. Any other key is rejected."""
    return await update_app(db, app_id, changes)


@router.patch("/{app_id}/confirm", response_model=ConfirmResponse)
async def confirm(
    app_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ConfirmResponse:
    """Confirm an app name and score the caller."""
    outcome = await confirm_app(db, app_id, user.id)
    return ConfirmResponse(
        app=AppResponse.model_validate(outcome.app),
        user=ScoreResponse(xp=outcome.score.xp, level=outcome.score.level, streak=outcome.score.streak),
        cluster=outcome.cluster,
    )
