"""
Tests for the verification service: email side effect and store selection.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.core.config import settings
from app.modules.verification import service
from app.modules.verification.errors import CodeRateLimitedError
from app.modules.verification.jobs import purge_expired_verifications
from app.modules.verification.redis_store import RedisVerificationStore
from app.modules.verification.store import InMemoryVerificationStore


@pytest.fixture(autouse=True)
def reset_store():
    """Isolate the process-wide store between tests."""
    service.set_verification_store(None)
    yield
    service.set_verification_store(None)


class TestRequestCode:
    @pytest.mark.asyncio
    async def test_emails_the_code(self, store):
        with patch(
            "app.modules.verification.service.send_verification_code",
            new_callable=AsyncMock,
            return_value=True,
        ) as mock_send:
            issued = await service.request_code(store, "A@x.com")

        mock_send.assert_awaited_once_with(
            to_email="a@x.com", code="123456", expires_minutes=10
        )
        assert issued.code == "123456"

    @pytest.mark.asyncio
    async def test_email_failure_keeps_code(self, store):
        """A send failure is logged, the code stays valid."""
        with patch(
            "app.modules.verification.service.send_verification_code",
            new_callable=AsyncMock,
            side_effect=RuntimeError("provider down"),
        ):
            issued = await service.request_code(store, "a@x.com")

        assert issued.address == "a@x.com"
        verified = await service.confirm_code(store, "a@x.com", "123456")
        assert verified.address == "a@x.com"

    @pytest.mark.asyncio
    async def test_unsent_email_keeps_code(self, store):
        with patch(
            "app.modules.verification.service.send_verification_code",
            new_callable=AsyncMock,
            return_value=False,
        ):
            await service.request_code(store, "a@x.com")

        assert store.get_record("a@x.com") is not None

    @pytest.mark.asyncio
    async def test_rate_limited_sends_nothing(self, store):
        with patch(
            "app.modules.verification.service.send_verification_code",
            new_callable=AsyncMock,
            return_value=True,
        ) as mock_send:
            await service.request_code(store, "a@x.com")
            with pytest.raises(CodeRateLimitedError):
                await service.request_code(store, "a@x.com")

        assert mock_send.await_count == 1


class TestFullFlow:
    @pytest.mark.asyncio
    async def test_verify_then_consume(self, store):
        with patch(
            "app.modules.verification.service.send_verification_code",
            new_callable=AsyncMock,
            return_value=True,
        ):
            await service.request_code(store, "a@x.com")

        await service.confirm_code(store, "a@x.com", "123456")
        assert await service.check_verified(store, "a@x.com") is True
        assert await service.consume_verification(store, "a@x.com") is True
        assert await service.check_verified(store, "a@x.com") is False


class TestBuildStore:
    def test_memory_backend(self):
        with patch.object(settings, "verification_backend", "memory"):
            store = service.build_store(MagicMock())
        assert isinstance(store, InMemoryVerificationStore)

    def test_redis_backend(self):
        with patch.object(settings, "verification_backend", "redis"):
            store = service.build_store(MagicMock())
        assert isinstance(store, RedisVerificationStore)

    def test_redis_backend_without_client_falls_back(self):
        with patch.object(settings, "verification_backend", "redis"):
            store = service.build_store(None)
        assert isinstance(store, InMemoryVerificationStore)

    def test_uses_configured_windows(self):
        with (
            patch.object(settings, "verification_backend", "memory"),
            patch.object(settings, "otp_cooldown_seconds", 30),
        ):
            store = service.build_store()
        assert store.cooldown.total_seconds() == 30


class TestProcessStore:
    def test_lazily_created(self):
        store = service.get_verification_store()
        assert service.get_verification_store() is store

    def test_init_replaces_store(self):
        first = service.get_verification_store()
        with patch.object(settings, "verification_backend", "memory"):
            second = service.init_verification_store()
        assert second is not first
        assert service.get_verification_store() is second


class TestPurgeJob:
    @pytest.mark.asyncio
    async def test_reports_removed_count(self, store, clock):
        service.set_verification_store(store)
        await store.request_code("a@x.com")
        clock.advance(601)

        result = await purge_expired_verifications()

        assert result == {"removed": 1}
        assert len(store) == 0
