"""Dashboard stats, team achievements and the activity feed."""

from datetime import date, datetime, timezone

from httpx import AsyncClient

from appdedupe.db.models import User
from appdedupe.stats.service import personal_stats
from tests.conftest import app_id, make_cluster


async def confirm(client: AsyncClient, headers: dict, db, name: str) -> dict:
    response = await client.patch(f"/api/v1/apps/{await app_id(db, name)}/confirm", headers=headers)
    assert response.status_code == 200
    return response.json()


class TestDashboardStats:
    async def test_empty_store(self, client: AsyncClient, reviewer: dict):
        response = await client.get("/api/v1/stats", headers=reviewer["headers"])
        assert response.status_code == 200
        data = response.json()
        assert data["totalApps"] == 0
        assert data["totalClusters"] == 0
        assert data["streak"] == 0
        team = data["teamStats"]
        assert team["completionRate"] == 0
        assert team["totalUsers"] == 1
        assert team["activeUsers"] == 0
        assert team["recentActivity"] == []

    async def test_team_numbers(self, client: AsyncClient, reviewer: dict, second_reviewer: dict, db_session):
        await make_cluster(db_session, "Office", ["Excel", "Word", "Outlook", "Teams"])
        await make_cluster(db_session, "Empty", [])
        await confirm(client, reviewer["headers"], db_session, "Excel")
        await confirm(client, reviewer["headers"], db_session, "Word")

        data = (await client.get("/api/v1/stats", headers=reviewer["headers"])).json()
        assert data["totalApps"] == 4
        assert data["confirmedApps"] == 2
        assert data["unconfirmedApps"] == 2
        assert data["pendingReviews"] == 2
        assert data["totalClusters"] == 2
        assert data["xp"] == 100
        assert data["level"] == 2
        assert data["streak"] == 1

        team = data["teamStats"]
        assert team["totalConfirmed"] == 2
        assert team["totalUsers"] == 2
        assert team["activeUsers"] == 1
        assert team["averageConfirmations"] == 1
        assert team["completionRate"] == 0.5

    async def test_streak_hidden_for_other_user(self, client: AsyncClient, reviewer: dict, second_reviewer: dict, db_session):
        await make_cluster(db_session, "Office", ["Excel"])
        await confirm(client, reviewer["headers"], db_session, "Excel")
        data = (await client.get("/api/v1/stats", headers=second_reviewer["headers"])).json()
        assert data["streak"] == 0
        assert data["xp"] == 0

    async def test_team_achievements(self, client: AsyncClient, reviewer: dict, db_session):
        await make_cluster(db_session, "Office", ["Excel", "Word"])
        await confirm(client, reviewer["headers"], db_session, "Excel")
        await confirm(client, reviewer["headers"], db_session, "Word")

        achievements = (await client.get("/api/v1/stats", headers=reviewer["headers"])).json()["teamStats"][
            "teamAchievements"
        ]
        assert [a["id"] for a in achievements] == [
            "first_100", "halfway_there", "team_effort", "cluster_masters", "speed_demons", "perfection",
        ]
        by_id = {a["id"]: a for a in achievements}
        assert by_id["perfection"]["unlocked"] is True
        assert by_id["perfection"]["unlockedBy"] == "Team"
        assert by_id["perfection"]["unlockedAt"] is not None
        assert by_id["halfway_there"]["unlocked"] is True
        assert by_id["first_100"]["unlocked"] is False
        assert by_id["first_100"]["progress"] == 2
        assert by_id["speed_demons"]["unlocked"] is False

    async def test_recent_activity_newest_first(self, client: AsyncClient, reviewer: dict, second_reviewer: dict, db_session):
        await make_cluster(db_session, "Office", ["Excel", "Word"])
        await confirm(client, reviewer["headers"], db_session, "Excel")
        await confirm(client, second_reviewer["headers"], db_session, "Word")

        activity = (await client.get("/api/v1/stats", headers=reviewer["headers"])).json()["teamStats"][
            "recentActivity"
        ]
        assert [a["details"] for a in activity] == ['"Word"', '"Excel"']
        assert activity[0]["userName"] == "John Doe"
        assert activity[0]["action"] == "confirmed"
        assert activity[1]["userId"] == reviewer["user"]["id"]

    async def test_requires_auth(self, client: AsyncClient, engine):
        assert (await client.get("/api/v1/stats")).status_code == 401


class TestPersonalStatsAfterConfirming:
    async def test_counts_and_achievements(self, client: AsyncClient, reviewer: dict, db_session):
        await make_cluster(db_session, "Office", ["Excel", "Word"])
        await confirm(client, reviewer["headers"], db_session, "Excel")
        await confirm(client, reviewer["headers"], db_session, "Word")

        data = (await client.get("/api/v1/users/me/stats", headers=reviewer["headers"])).json()
        assert data["xp"] == 100
        assert data["level"] == 2
        assert data["streak"] == 1
        assert data["dailyConfirmations"] == 2
        assert data["personalConfirmedApps"] == 2
        assert data["xpIntoLevel"] == 0
        assert data["nextLevelXp"] == 400
        assert [a["id"] for a in data["achievements"]] == ["halfway_there", "perfection"]
        assert data["achievements"][1]["name"] == "Perfection"


class TestPersonalStatsClock:
    async def _user(self, db) -> User:
        user = User(
            name="Jane",
            email="jane@example.com",
            password_hash="x",
            role="user",
            daily_confirmations=2,
            last_daily_reset=date(2026, 3, 2),
        )
        db.add(user)
        await db.commit()
        return user

    async def test_counter_for_the_given_day(self, db_session):
        user = await self._user(db_session)
        stats = await personal_stats(db_session, user, now=datetime(2026, 3, 2, 18, 0, tzinfo=timezone.utc))
        assert stats["daily_confirmations"] == 2

    async def test_counter_from_an_earlier_day_reads_zero(self, db_session):
        user = await self._user(db_session)
        stats = await personal_stats(db_session, user, now=datetime(2026, 3, 3, 9, 0, tzinfo=timezone.utc))
        assert stats["daily_confirmations"] == 0
