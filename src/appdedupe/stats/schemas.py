"""Response schemas for the leaderboard and dashboard stats."""

from __future__ import annotations

from datetime import datetime

from appdedupe.schemas import CamelModel


class LeaderboardEntry(CamelModel):
    user_id: int
    name: str
    email: str
    count: int
    xp: int
    level: int


class ActivityItem(CamelModel):
    user_id: int | None = None
    user_name: str
    action: str
    timestamp: datetime
    details: str


class TeamAchievement(CamelModel):
    id: str
    name: str
    description: str
    icon: str
    unlocked: bool
    progress: int
    total: int
    unlocked_at: datetime | None = None
    unlocked_by: str | None = None


class TeamStats(CamelModel):
    total_confirmed: int
    total_users: int
    active_users: int
    average_confirmations: float
    completion_rate: float
    team_achievements: list[TeamAchievement]
    recent_activity: list[ActivityItem]


class DashboardStatsResponse(CamelModel):
    total_apps: int
    confirmed_apps: int
    unconfirmed_apps: int
    total_clusters: int
    pending_reviews: int
    streak: int
    xp: int
    level: int
    team_stats: TeamStats
