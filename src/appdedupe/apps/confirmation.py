"""
App-name confirmation.

An app name moves from unconfirmed to confirmed exactly once. The first
confirmation stamps the confirmer, scores the confirming user and records any
team achievements the user has not seen yet; all of it commits together.
Confirming an already confirmed app is a no-op that reports the user's
current score.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from appdedupe.apps.queries import get_app_view
from appdedupe.clock import start_of_local_day, utcnow
from appdedupe.config import get_settings
from appdedupe.db.models import AppName, User, UserAchievement
from appdedupe.errors import NotFoundError, StorageError
from appdedupe.gamification.achievements import unlocked_achievement_ids
from appdedupe.gamification.scoring import ConfirmationEvent, ScoreState, ScoringRule, get_scoring_rule
from appdedupe.stats.service import team_counts

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


@dataclass
class ConfirmationOutcome:
    app: dict
    score: ScoreState
    newly_confirmed: bool

    @property
    def cluster(self) -> dict | None:
        return self.app["cluster"]


def score_state(user: User) -> ScoreState:
    return ScoreState(
        xp=user.xp,
        level=user.level,
        streak=user.streak,
        last_activity=user.last_activity,
        daily_confirmations=user.daily_confirmations,
        last_daily_reset=user.last_daily_reset,
    )


def _write_score(user: User, state: ScoreState) -> None:
    user.xp = state.xp
    user.level = state.level
    user.streak = state.streak
    user.last_activity = state.last_activity
    user.daily_confirmations = state.daily_confirmations
    user.last_daily_reset = state.last_daily_reset


async def count_confirmations_since(db: AsyncSession, user_id: int, since: datetime) -> int:
    """Apps confirmed by the user at or after ``since``."""
    result = await db.execute(
        select(func.count(AppName.id)).where(
            AppName.confirmed_by_id == user_id,
            AppName.confirmed_at >= since,
        )
    )
    return int(result.scalar_one())


async def _record_achievements(db: AsyncSession, user_id: int, now: datetime) -> list[str]:
    """Store team achievements unlocked right now that the user has no record of."""
    counts = await team_counts(db, now)
    unlocked = unlocked_achievement_ids(counts)
    if not unlocked:
        return []
    result = await db.execute(
        select(UserAchievement.achievement_id).where(UserAchievement.user_id == user_id)
    )
    seen = set(result.scalars().all())
    new_ids = [a for a in unlocked if a not in seen]
    db.add_all(UserAchievement(user_id=user_id, achievement_id=a, unlocked_at=now) for a in new_ids)
    return new_ids


async def confirm_app(
    db: AsyncSession,
    app_id: int,
    user_id: int,
    now: datetime | None = None,
    rule: ScoringRule | None = None,
) -> ConfirmationOutcome:
    """
    Confirm an app name on behalf of a user.

    Raises:
        NotFoundError: If the app or the user does not exist.
        StorageError: If persisting fails; nothing is applied in that case.
    """
    settings = get_settings()
    now = now or utcnow()
    rule = rule or get_scoring_rule(settings.scoring_rule)

    try:
        app = (
            await db.execute(select(AppName).where(AppName.id == app_id).with_for_update())
        ).scalar_one_or_none()
        if app is None:
            msg = "App not found"
            raise NotFoundError(msg)

        user = (
            await db.execute(select(User).where(User.id == user_id).with_for_update())
        ).scalar_one_or_none()
        if user is None:
            msg = "User not found"
            raise NotFoundError(msg)

        newly_confirmed = not app.confirmed
        if newly_confirmed:
            app.confirmed = True
            app.confirmed_by_id = user.id
            app.confirmed_at = now
            await db.flush()

            today = await count_confirmations_since(db, user.id, start_of_local_day(now, settings.timezone))
            state = rule.apply(
                score_state(user),
                ConfirmationEvent(at=now, today_confirmations=today, tz=settings.timezone),
            )
            _write_score(user, state)
            new_achievements = await _record_achievements(db, user.id, now)
        # Ends the transaction and releases the row locks in both branches.
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("confirm_failed", app_id=app_id, user_id=user_id, error=str(e), exc_info=e)
        msg = "Failed to confirm app"
        raise StorageError(msg) from e

    if newly_confirmed:
        logger.info(
            "app_confirmed",
            app_id=app_id,
            user_id=user_id,
            xp=user.xp,
            streak=user.streak,
            today=today,
            rule=rule.name,
            achievements=new_achievements,
        )
    else:
        logger.info("app_already_confirmed", app_id=app_id, user_id=user_id)

    return ConfirmationOutcome(
        app=await get_app_view(db, app_id),
        score=score_state(user),
        newly_confirmed=newly_confirmed,
    )
