"""Scoring strategies applied to a user's score state on each confirmation.

A rule is a pure function ``(ScoreState, ConfirmationEvent) -> ScoreState`` so it
can be tested without a database. The confirmation service reads the user row,
builds the event from a fresh count of today's confirmations, applies the
configured rule and writes the result back.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from typing import Protocol

from appdedupe.clock import local_day
from appdedupe.gamification.levels import compute_level


@dataclass(frozen=True)
class ScoreState:
    """Gamification fields of a user row."""

    xp: int = 0
    level: int = 1
    streak: int = 0
    last_activity: datetime | None = None
    daily_confirmations: int = 0
    last_daily_reset: date | None = None


@dataclass(frozen=True)
class ConfirmationEvent:
    """One first-time confirmation by the user.

    ``today_confirmations`` includes the confirmation being scored.
    """

    at: datetime
    today_confirmations: int
    tz: str = "UTC"

    @property
    def day(self) -> date:
        return local_day(self.at, self.tz)

    @property
    def first_of_day(self) -> bool:
        return self.today_confirmations == 1


class ScoringRule(Protocol):
    """Strategy interface for XP / streak updates."""

    name: str

    def apply(self, state: ScoreState, event: ConfirmationEvent) -> ScoreState: ...


def _first_of_day(state: ScoreState, event: ConfirmationEvent) -> bool:
    """First confirmation of the local day.

    Both the confirmation count and the stored daily counter must agree, since
    re-ingestion deletes the app rows the count is taken from.
    """
    already_counted = state.last_daily_reset == event.day and state.daily_confirmations > 0
    return event.first_of_day and not already_counted


def _roll_daily_counter(state: ScoreState, event: ConfirmationEvent) -> ScoreState:
    """Reset the daily counter on a new calendar day, then count this confirmation."""
    daily = state.daily_confirmations
    reset_day = state.last_daily_reset
    if reset_day != event.day:
        daily = 0
        reset_day = event.day
    return replace(state, daily_confirmations=daily + 1, last_daily_reset=reset_day)


class StreakBonusRule:
    """+50 XP per confirmation; the first confirmation of a day extends the streak
    and, once the streak is longer than one day, earns ``streak * 10`` bonus XP.
    """

    name = "streak_bonus"

    def __init__(self, base_xp: int = 50, bonus_per_day: int = 10) -> None:
        self.base_xp = base_xp
        self.bonus_per_day = bonus_per_day

    def apply(self, state: ScoreState, event: ConfirmationEvent) -> ScoreState:
        first = _first_of_day(state, event)
        state = _roll_daily_counter(state, event)
        xp = state.xp + self.base_xp
        streak = state.streak
        if first:
            streak += 1
            if streak > 1:
                xp += streak * self.bonus_per_day
        return replace(
            state,
            xp=xp,
            level=compute_level(xp),
            streak=streak,
            last_activity=event.at,
        )


class FlatRule:
    """+100 XP per confirmation, no bonus.

    The first confirmation of a day continues the streak when the previous
    activity was yesterday and restarts it at 1 otherwise; later confirmations
    on the same day leave it alone.
    """

    name = "flat"

    def __init__(self, xp_per_confirmation: int = 100) -> None:
        self.xp_per_confirmation = xp_per_confirmation

    def apply(self, state: ScoreState, event: ConfirmationEvent) -> ScoreState:
        first = _first_of_day(state, event)
        state = _roll_daily_counter(state, event)
        xp = state.xp + self.xp_per_confirmation
        streak = state.streak
        if first:
            previous = local_day(state.last_activity, event.tz) if state.last_activity else None
            if previous is not None and previous == event.day - timedelta(days=1):
                streak += 1
            else:
                streak = 1
        return replace(
            state,
            xp=xp,
            level=compute_level(xp),
            streak=streak,
            last_activity=event.at,
        )


_RULES: dict[str, type] = {
    StreakBonusRule.name: StreakBonusRule,
    FlatRule.name: FlatRule,
}


def get_scoring_rule(name: str) -> ScoringRule:
    """Instantiate a scoring rule by its configured name."""
    try:
        return _RULES[name]()
    except KeyError:
        msg = f"Unknown scoring rule: {name}"
        raise ValueError(msg) from None
