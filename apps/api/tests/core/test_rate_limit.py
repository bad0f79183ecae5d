"""
Tests for endpoint rate limiting.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from starlette.requests import Request

from app.core import rate_limit as rate_limit_module
from app.core import redis as redis_module
from app.core.rate_limit import (
    RateLimitExceeded,
    check_rate_limit,
    client_ip_key,
    rate_limit,
    reset_memory_store,
)


def make_request(path: str = "/send-code", client_ip: str = "10.0.0.1", headers=None) -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": path,
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": (client_ip, 50000),
        "query_string": b"",
        "server": ("testserver", 80),
        "scheme": "http",
    }
    return Request(scope)


@pytest.fixture(autouse=True)
def memory_backend():
    """Run against the in-process window."""
    reset_memory_store()
    with patch.object(redis_module, "redis_client", None):
        yield
    reset_memory_store()


class TestCheckRateLimit:
    @pytest.mark.asyncio
    async def test_allows_up_to_limit(self):
        results = [await check_rate_limit("k", limit=3, window_seconds=60) for _ in range(4)]
        assert results == [True, True, True, False]

    @pytest.mark.asyncio
    async def test_keys_are_independent(self):
        assert await check_rate_limit("a", limit=1, window_seconds=60) is True
        assert await check_rate_limit("b", limit=1, window_seconds=60) is True
        assert await check_rate_limit("a", limit=1, window_seconds=60) is False

    @pytest.mark.asyncio
    async def test_window_slides(self):
        with patch.object(rate_limit_module.time, "time", return_value=1000.0):
            assert await check_rate_limit("k", limit=1, window_seconds=60) is True
            assert await check_rate_limit("k", limit=1, window_seconds=60) is False
        with patch.object(rate_limit_module.time, "time", return_value=1061.0):
            assert await check_rate_limit("k", limit=1, window_seconds=60) is True

    @pytest.mark.asyncio
    async def test_uses_redis_when_available(self):
        pipe = MagicMock()
        pipe.execute = AsyncMock(return_value=[0, 5, 1, True])
        client = MagicMock()
        client.pipeline.return_value = pipe

        with patch.object(redis_module, "redis_client", client):
            assert await check_rate_limit("k", limit=5, window_seconds=60) is False

        pipe.zcard.assert_called_once_with("k")

    @pytest.mark.asyncio
    async def test_falls_back_when_redis_fails(self):
        client = MagicMock()
        client.pipeline.side_effect = ConnectionError("redis down")

        with patch.object(redis_module, "redis_client", client):
            assert await check_rate_limit("k", limit=1, window_seconds=60) is True


class TestClientIpKey:
    def test_uses_client_address(self):
        assert client_ip_key(make_request()) == "rate_limit:10.0.0.1:/send-code"

    def test_prefers_forwarded_header(self):
        request = make_request(headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})
        assert client_ip_key(request) == "rate_limit:203.0.113.7:/send-code"


class TestRateLimitDecorator:
    @pytest.mark.asyncio
    async def test_raises_429_when_exceeded(self):
        @rate_limit(limit=2, window_seconds=900)
        async def endpoint(request: Request):
            return "ok"

        request = make_request()
        assert await endpoint(request=request) == "ok"
        assert await endpoint(request=request) == "ok"

        with pytest.raises(RateLimitExceeded) as exc_info:
            await endpoint(request=request)

        assert exc_info.value.status_code == 429
        assert exc_info.value.detail["error"] == "TOO_MANY_REQUESTS"
        assert exc_info.value.headers["Retry-After"] == "900"

    @pytest.mark.asyncio
    async def test_without_request_passes_through(self):
        @rate_limit(limit=1, window_seconds=60)
        async def endpoint(value: int):
            return value

        assert await endpoint(value=1) == 1
        assert await endpoint(value=2) == 2
