"""
Fixtures for verification tests.
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.modules.verification.store import InMemoryVerificationStore


class FakeClock:
    """Controllable clock returning timezone-aware datetimes."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 15, 9, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class SequenceCodes:
    """Code generator returning the given codes in order, then repeating the last."""

    def __init__(self, *codes: str):
        self.codes = list(codes)
        self.calls = 0

    def __call__(self) -> str:
        code = self.codes[min(self.calls, len(self.codes) - 1)]
        self.calls += 1
        return code


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def codes():
    return SequenceCodes("123456")


@pytest.fixture
def store(clock, codes):
    """In-memory store with default windows: 10 min code, 60 s cooldown, 30 min verified."""
    return InMemoryVerificationStore(clock=clock, code_generator=codes)


@pytest.fixture
def mock_redis():
    """Mock Redis client whose scripts are registered in request, confirm, consume order."""
    redis = MagicMock()
    request_script = AsyncMock(name="request_script")
    confirm_script = AsyncMock(name="confirm_script")
    consume_script = AsyncMock(name="consume_script")
    redis.register_script = MagicMock(side_effect=[request_script, confirm_script, consume_script])
    redis.hmget = AsyncMock(return_value=[None, None])
    redis.scripts = {
        "request": request_script,
        "confirm": confirm_script,
        "consume": consume_script,
    }
    return redis
