"""Middleware tests: request ID, rate limiting, CORS, error handling."""

from typing import Any

from httpx import AsyncClient


class FakePipeline:
    def __init__(self, counters: dict[str, int]) -> None:
        self.counters = counters
        self.ops: list[Any] = []

    def incr(self, key: str) -> None:
        self.ops.append(("incr", key))

    def expire(self, key: str, seconds: int) -> None:
        self.ops.append(("expire", key))

    async def execute(self) -> list[Any]:
        results: list[Any] = []
        for op, key in self.ops:
            if op == "incr":
                self.counters[key] = self.counters.get(key, 0) + 1
                results.append(self.counters[key])
            else:
                results.append(True)
        return results


class FakeRedis:
    def __init__(self) -> None:
        self.counters: dict[str, int] = {}

    def pipeline(self) -> FakePipeline:
        return FakePipeline(self.counters)


async def test_request_id_generated(client: AsyncClient) -> None:
    """Request ID is auto-generated when not provided."""
    response = await client.get("/health")
    assert "x-request-id" in response.headers
    assert len(response.headers["x-request-id"]) == 36  # UUID format


async def test_request_id_preserved(client: AsyncClient) -> None:
    """Custom request ID is echoed back in response."""
    response = await client.get("/health", headers={"X-Request-Id": "test-abc-123"})
    assert response.headers["x-request-id"] == "test-abc-123"


async def test_no_rate_limit_without_redis(client: AsyncClient) -> None:
    for _ in range(110):
        response = await client.get("/api/v1/apps")
    assert response.status_code == 401
    assert "x-ratelimit-limit" not in response.headers


async def test_rate_limit_blocks_excess(client: AsyncClient, monkeypatch) -> None:
    """101st request in a window returns 429 with Retry-After header."""
    fake = FakeRedis()
    monkeypatch.setattr("appdedupe.middleware.rate_limit.get_redis", lambda: fake)

    response = await client.get("/api/v1/apps")
    assert response.headers["x-ratelimit-limit"] == "100"
    assert response.headers["x-ratelimit-remaining"] == "99"

    for _ in range(99):
        await client.get("/api/v1/apps")
    response = await client.get("/api/v1/apps")
    assert response.status_code == 429
    assert "retry-after" in response.headers
    assert "detail" in response.json()


async def test_health_exempt_from_rate_limit(client: AsyncClient, monkeypatch) -> None:
    fake = FakeRedis()
    monkeypatch.setattr("appdedupe.middleware.rate_limit.get_redis", lambda: fake)
    for _ in range(150):
        response = await client.get("/health")
        assert response.status_code == 200
    assert fake.counters == {}


async def test_cors_preflight(client: AsyncClient) -> None:
    """CORS preflight returns access-control-allow-origin for configured origin."""
    response = await client.options(
        "/api/v1/apps",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "PATCH",
        },
    )
    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"


async def test_404_returns_json(client: AsyncClient) -> None:
    """Unknown paths return 404 with JSON body."""
    response = await client.get("/nonexistent-path")
    assert response.status_code == 404
    assert response.headers["content-type"] == "application/json"
    assert response.json()["detail"] == "Not Found"


async def test_malformed_body_is_400(client: AsyncClient, engine) -> None:
    response = await client.post(
        "/api/v1/users/login",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Validation error"
