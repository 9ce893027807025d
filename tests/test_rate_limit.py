"""Tests for the fixed-window rate limiter."""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from hospitalrun.core.rate_limit import RateLimiter
from hospitalrun.middleware.rate_limit import RateLimitMiddleware, exempt_paths


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_rate_limiter_fixed_window():
    """Test counting within a window and reset after it expires."""
    clock = FakeClock()
    limiter = RateLimiter(limit=3, window=60, clock=clock)

    results = [limiter.check_rate_limit("10.0.0.1") for _ in range(4)]
    assert [r.allowed for r in results] == [True, True, True, False]
    assert [r.remaining for r in results] == [2, 1, 0, 0]

    # Window does not slide with rejected requests
    clock.now += 59
    assert not limiter.check_rate_limit("10.0.0.1").allowed
    assert limiter.retry_after(limiter.check_rate_limit("10.0.0.1")) == 1

    clock.now += 1
    assert limiter.check_rate_limit("10.0.0.1").allowed


def test_rate_limiter_keys_are_independent():
    """Test that each client address has its own budget."""
    limiter = RateLimiter(limit=1, window=60, clock=FakeClock())

    assert limiter.check_rate_limit("10.0.0.1").allowed
    assert not limiter.check_rate_limit("10.0.0.1").allowed
    assert limiter.check_rate_limit("10.0.0.2").allowed


def test_rate_limiter_reset():
    """Test forgetting all counters."""
    limiter = RateLimiter(limit=1, window=60, clock=FakeClock())
    limiter.check_rate_limit("10.0.0.1")

    limiter.reset()

    assert limiter.check_rate_limit("10.0.0.1").allowed


def _app(limiter: RateLimiter, enabled: bool = True) -> FastAPI:
    app = FastAPI()
    app.add_middleware(
        RateLimitMiddleware,
        limiter=limiter,
        enabled=enabled,
        exempt=exempt_paths("/api/v1"),
    )

    @app.get("/items")
    async def items() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/v1/health")
    async def health() -> dict[str, str]:
        return {"status": "healthy"}

    @app.get("/api/v1/appointments/patient/{patient_id}")
    async def patient_appointments(patient_id: str) -> dict[str, str]:
        return {"patient_id": patient_id}

    @app.get("/api/v1/ping")
    async def ping() -> dict[str, str]:
        return {"message": "pong"}

    return app


@pytest.mark.asyncio
async def test_middleware_rejects_over_limit():
    """Test 429 response with rate limit headers."""
    limiter = RateLimiter(limit=2, window=60, clock=FakeClock())
    transport = ASGITransport(app=_app(limiter))

    async with AsyncClient(transport=transport, base_url="http://test") as client:
        first = await client.get("/items")
        assert first.status_code == 200
        assert first.headers["X-RateLimit-Limit"] == "2"
        assert first.headers["X-RateLimit-Remaining"] == "1"

        assert (await client.get("/items")).status_code == 200

        rejected = await client.get("/items")
        assert rejected.status_code == 429
        assert rejected.json()["error"] == "RateLimitException"
        assert rejected.headers["Retry-After"] == "60"

        # Health checks are never limited
        assert (await client.get("/api/v1/health")).status_code == 200


@pytest.mark.asyncio
async def test_middleware_disabled():
    """Test that a disabled middleware lets every request through."""
    limiter = RateLimiter(limit=1, window=60, clock=FakeClock())
    transport = ASGITransport(app=_app(limiter, enabled=False))

    async with AsyncClient(transport=transport, base_url="http://test") as client:
        for _ in range(3):
            assert (await client.get("/items")).status_code == 200


@pytest.mark.asyncio
async def test_exemption_matches_exact_paths_only():
    """Test that a route merely ending in an exempt name is still limited."""
    limiter = RateLimiter(limit=1, window=60, clock=FakeClock())
    transport = ASGITransport(app=_app(limiter))

    async with AsyncClient(transport=transport, base_url="http://test") as client:
        assert (await client.get("/api/v1/appointments/patient/ping")).status_code == 200

        rejected = await client.get("/api/v1/appointments/patient/ping")
        assert rejected.status_code == 429
        assert rejected.headers["X-RateLimit-Limit"] == "1"
        assert rejected.headers["X-RateLimit-Remaining"] == "0"
        assert rejected.json()["message"] == "Too many requests, please try again later"

        rejected = await client.get("/api/v1/appointments/patient/health")
        assert rejected.status_code == 429

        # The real ping route stays open
        pong = await client.get("/api/v1/ping")
        assert pong.status_code == 200
        assert "X-RateLimit-Limit" not in pong.headers


def test_exempt_paths_follow_api_prefix():
    """Test exempt paths are built from the configured prefix."""
    assert exempt_paths("/v2") == {"/v2/health", "/v2/health/detailed", "/v2/ping", "/metrics"}


def test_expired_windows_are_pruned():
    """Test that idle clients do not accumulate in the limiter."""
    clock = FakeClock()
    limiter = RateLimiter(limit=5, window=10, clock=clock, cleanup_interval=30)

    for i in range(100):
        limiter.check_rate_limit(f"10.0.0.{i}")
    assert len(limiter) == 100

    # Windows have expired but the next sweep is not due yet
    clock.now += 20
    limiter.check_rate_limit("10.0.1.1")
    assert len(limiter) == 101

    clock.now += 10
    limiter.check_rate_limit("10.0.1.2")
    assert len(limiter) == 1

    # Live windows survive a sweep with their counts intact
    clock.now += 25
    for _ in range(5):
        assert limiter.check_rate_limit("10.0.1.3").allowed
    assert len(limiter) == 2

    clock.now += 5
    limiter.check_rate_limit("10.0.1.4")
    assert len(limiter) == 2
    assert not limiter.check_rate_limit("10.0.1.3").allowed
