"""Leaderboard and dashboard stats endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from appdedupe.auth.dependencies import get_current_user
from appdedupe.database import get_session
from appdedupe.db.models import User
from appdedupe.stats.schemas import DashboardStatsResponse, LeaderboardEntry
from appdedupe.stats.service import dashboard_stats, leaderboard

router = APIRouter(prefix="/api/v1", tags=["Stats"])


@router.get("/leaderboard", response_model=list[LeaderboardEntry])
async def get_leaderboard(
    limit: int | None = Query(None, ge=1, le=500),
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> list[dict]:
    """Users ranked by confirmed app names, highest first."""
    return await leaderboard(db, limit)


@router.get("/stats", response_model=DashboardStatsResponse)
async def get_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict:
    """Team totals, the caller's score and the team achievement list."""
    return await dashboard_stats(db, user)
