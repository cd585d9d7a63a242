"""Team achievement catalog and evaluator.

Achievements are recomputed from team-wide counts on every stats request.
Nothing here is persisted; per-user unlock records live in ``user_achievements``
and are written by the confirmation service.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable


@dataclass(frozen=True)
class TeamCounts:
    """Team-wide aggregate numbers the evaluator works from."""

    total_apps: int = 0
    confirmed_apps: int = 0
    unconfirmed_apps: int = 0
    total_clusters: int = 0
    total_users: int = 0
    active_users: int = 0

    @property
    def completion_rate(self) -> float:
        return self.confirmed_apps / self.total_apps if self.total_apps > 0 else 0.0

    @property
    def average_confirmations(self) -> float:
        return self.confirmed_apps / self.total_users if self.total_users > 0 else 0.0


# id, name, description, icon, unlock predicate, progress, total
ACHIEVEMENT_DEFINITIONS: list[dict[str, Any]] = [
    {
        "id": "first_100",
        "name": "First 100",
        "description": "Team confirms 100 app names",
        "icon": "🎯",
        "unlocked": lambda c: c.confirmed_apps >= 100,
        "progress": lambda c: c.confirmed_apps,
        "total": lambda c: 100,
    },
    {
        "id": "halfway_there",
        "name": "Halfway There",
        "description": "Team confirms 50% of all apps",
        "icon": "🏆",
        "unlocked": lambda c: c.completion_rate >= 0.5,
        "progress": lambda c: round(c.completion_rate * 100),
        "total": lambda c: 50,
    },
    {
        "id": "team_effort",
        "name": "Team Effort",
        "description": "10 team members contribute",
        "icon": "👥",
        "unlocked": lambda c: c.active_users >= 10,
        "progress": lambda c: c.active_users,
        "total": lambda c: 10,
    },
    {
        "id": "cluster_masters",
        "name": "Cluster Masters",
        "description": "Complete 20 clusters",
        "icon": "🔍",
        "unlocked": lambda c: c.total_clusters >= 20,
        "progress": lambda c: c.total_clusters,
        "total": lambda c: 20,
    },
    {
        # No per-day burst tracking exists, so this one never unlocks.
        "id": "speed_demons",
        "name": "Speed Demons",
        "description": "Confirm 50 apps in one day",
        "icon": "⚡",
        "unlocked": lambda c: False,
        "progress": lambda c: 0,
        "total": lambda c: 50,
    },
    {
        "id": "perfection",
        "name": "Perfection",
        "description": "Complete all app confirmations",
        "icon": "🌟",
        "unlocked": lambda c: c.unconfirmed_apps == 0,
        "progress": lambda c: c.confirmed_apps,
        "total": lambda c: c.total_apps,
    },
]

ACHIEVEMENT_NAMES: dict[str, str] = {d["id"]: d["name"] for d in ACHIEVEMENT_DEFINITIONS}


def evaluate_team_achievements(counts: TeamCounts, now: datetime) -> list[dict[str, Any]]:
    """Map team counts to the ordered badge list."""
    results = []
    for definition in ACHIEVEMENT_DEFINITIONS:
        predicate: Callable[[TeamCounts], bool] = definition["unlocked"]
        unlocked = bool(predicate(counts))
        results.append({
            "id": definition["id"],
            "name": definition["name"],
            "description": definition["description"],
            "icon": definition["icon"],
            "unlocked": unlocked,
            "progress": definition["progress"](counts),
            "total": definition["total"](counts),
            "unlocked_at": now if unlocked else None,
            "unlocked_by": "Team" if unlocked else None,
        })
    return results


def unlocked_achievement_ids(counts: TeamCounts) -> list[str]:
    """Ids of the achievements currently unlocked, in catalog order."""
    return [d["id"] for d in ACHIEVEMENT_DEFINITIONS if d["unlocked"](counts)]
