"""Team and personal statistics, recent activity and the leaderboard.

All numbers are read-side projections over ``users`` and ``app_names``,
recomputed on every request.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import case, func, select

from appdedupe.clock import as_utc, local_day, utcnow
from appdedupe.config import get_settings
from appdedupe.db.models import AppName, Cluster, User, UserAchievement
from appdedupe.gamification.achievements import ACHIEVEMENT_NAMES, TeamCounts, evaluate_team_achievements
from appdedupe.gamification.levels import compute_level, level_progress

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

UNKNOWN_USER = "Unknown User"


# ---------------------------------------------------------------------------
# Team numbers
# ---------------------------------------------------------------------------


async def team_counts(db: AsyncSession, now: datetime | None = None) -> TeamCounts:
    """Global app, cluster and user counts."""
    now = now or utcnow()
    window = timedelta(days=get_settings().active_user_window_days)

    total_apps, confirmed_apps = (
        await db.execute(
            select(
                func.count(AppName.id),
                func.coalesce(func.sum(case((AppName.confirmed.is_(True), 1), else_=0)), 0),
            )
        )
    ).one()
    total_clusters = (await db.execute(select(func.count(Cluster.id)))).scalar_one()
    total_users, active_users = (
        await db.execute(
            select(
                func.count(User.id),
                func.coalesce(func.sum(case((User.last_activity >= now - window, 1), else_=0)), 0),
            )
        )
    ).one()

    return TeamCounts(
        total_apps=int(total_apps),
        confirmed_apps=int(confirmed_apps),
        unconfirmed_apps=int(total_apps) - int(confirmed_apps),
        total_clusters=int(total_clusters),
        total_users=int(total_users),
        active_users=int(active_users),
    )


async def recent_activity(db: AsyncSession, limit: int | None = None) -> list[dict[str, Any]]:
    """The most recently updated confirmed app names, newest first."""
    limit = limit or get_settings().recent_activity_limit
    result = await db.execute(
        select(AppName.name, AppName.updated_at, AppName.confirmed_by_id, User.name)
        .outerjoin(User, AppName.confirmed_by_id == User.id)
        .where(AppName.confirmed.is_(True))
        .order_by(AppName.updated_at.desc(), AppName.id.desc())
        .limit(limit)
    )
    return [
        {
            "user_id": user_id,
            "user_name": user_name or UNKNOWN_USER,
            "action": "confirmed",
            "timestamp": as_utc(updated_at),
            "details": f'"{name}"',
        }
        for name, updated_at, user_id, user_name in result.all()
    ]


# ---------------------------------------------------------------------------
# Leaderboard
# ---------------------------------------------------------------------------


async def leaderboard(db: AsyncSession, limit: int | None = None) -> list[dict[str, Any]]:
    """
    Users ranked by number of confirmed app names.

    Users with no confirmations are left out. Equal counts are ordered by
    user id so the ranking is stable between calls.
    """
    confirmations = func.count(AppName.id).label("count")
    stmt = (
        select(User.id, User.name, User.email, User.xp, confirmations)
        .join(AppName, AppName.confirmed_by_id == User.id)
        .where(AppName.confirmed.is_(True))
        .group_by(User.id, User.name, User.email, User.xp)
        .having(func.count(AppName.id) > 0)
        .order_by(confirmations.desc(), User.id.asc())
    )
    if limit is not None:
        stmt = stmt.limit(limit)

    result = await db.execute(stmt)
    return [
        {
            "user_id": user_id,
            "name": name,
            "email": email,
            "count": int(count),
            "xp": xp,
            "level": compute_level(xp),
        }
        for user_id, name, email, xp, count in result.all()
    ]


# ---------------------------------------------------------------------------
# Personal numbers
# ---------------------------------------------------------------------------


async def personal_stats(db: AsyncSession, user: User, now: datetime | None = None) -> dict[str, Any]:
    """The user's score fields, confirmation count and recorded achievements."""
    confirmed = (
        await db.execute(
            select(func.count(AppName.id)).where(
                AppName.confirmed_by_id == user.id,
                AppName.confirmed.is_(True),
            )
        )
    ).scalar_one()
    result = await db.execute(
        select(UserAchievement.achievement_id, UserAchievement.unlocked_at)
        .where(UserAchievement.user_id == user.id)
        .order_by(UserAchievement.unlocked_at, UserAchievement.id)
    )
    progress = level_progress(user.xp)
    return {
        "xp": user.xp,
        "level": progress["level"],
        "streak": user.streak,
        "daily_confirmations": _daily_confirmations(user, now or utcnow()),
        "personal_confirmed_apps": int(confirmed),
        "xp_into_level": progress["xp_into_level"],
        "next_level_xp": progress["next_level_xp"],
        "achievements": [
            {"id": a_id, "name": ACHIEVEMENT_NAMES.get(a_id, a_id), "unlocked_at": as_utc(unlocked_at)}
            for a_id, unlocked_at in result.all()
        ],
    }


def _daily_confirmations(user: User, now: datetime) -> int:
    """Stored daily counter, or 0 once the day it belongs to has passed."""
    tz = get_settings().timezone
    if user.last_daily_reset != local_day(now, tz):
        return 0
    return user.daily_confirmations


def _streak_for_display(user: User, now: datetime) -> int:
    """The streak, shown only while the user has confirmed something today."""
    if user.last_activity is None:
        return 0
    tz = get_settings().timezone
    return user.streak if local_day(user.last_activity, tz) == local_day(now, tz) else 0


async def dashboard_stats(db: AsyncSession, user: User, now: datetime | None = None) -> dict[str, Any]:
    """Team counts, the caller's score, achievements and the activity feed."""
    now = now or utcnow()
    counts = await team_counts(db, now)
    return {
        "total_apps": counts.total_apps,
        "confirmed_apps": counts.confirmed_apps,
        "unconfirmed_apps": counts.unconfirmed_apps,
        "total_clusters": counts.total_clusters,
        "pending_reviews": counts.unconfirmed_apps,
        "streak": _streak_for_display(user, now),
        "xp": user.xp,
        "level": compute_level(user.xp),
        "team_stats": {
            "total_confirmed": counts.confirmed_apps,
            "total_users": counts.total_users,
            "active_users": counts.active_users,
            "average_confirmations": counts.average_confirmations,
            "completion_rate": counts.completion_rate,
            "team_achievements": evaluate_team_achievements(counts, now),
            "recent_activity": await recent_activity(db),
        },
    }
