"""Health endpoint tests."""

from httpx import AsyncClient


async def test_health(client: AsyncClient) -> None:
    """GET /health returns 200 with healthy status."""
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


async def test_readiness_without_redis_is_degraded(client: AsyncClient) -> None:
    """The database answers; Redis was never initialised, which is not fatal."""
    response = await client.get("/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "degraded"
    assert data["checks"]["database"] == "ok"
    assert data["checks"]["redis"].startswith("error")


async def test_readiness_with_redis(client: AsyncClient, monkeypatch) -> None:
    async def ok() -> str:
        return "ok"

    monkeypatch.setattr("appdedupe.health.router.ping_redis", ok)
    response = await client.get("/ready")
    assert response.status_code == 200
    assert response.json()["status"] == "ready"


async def test_version(client: AsyncClient) -> None:
    """GET /version returns version, environment and the scoring rule."""
    response = await client.get("/version")
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "app-dedupe"
    assert data["version"] == "0.1.0"
    assert "environment" in data
    assert data["scoringRule"] == "streak_bonus"
