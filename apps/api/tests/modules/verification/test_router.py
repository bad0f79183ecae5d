"""
HTTP tests for the verification endpoints.

The router is mounted on a bare app with the store overridden, so status
codes, error bodies and headers are checked as a client sees them.
"""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core import redis as redis_module
from app.core.rate_limit import reset_memory_store
from app.modules.verification.router import router
from app.modules.verification.service import get_verification_store

EMAIL = "jane@acme.io"


@pytest.fixture
def client(store):
    app = FastAPI()
    app.include_router(router, prefix="/verification")
    app.dependency_overrides[get_verification_store] = lambda: store

    reset_memory_store()
    with (
        patch.object(redis_module, "redis_client", None),
        patch(
            "app.modules.verification.service.send_verification_code",
            new_callable=AsyncMock,
            return_value=True,
        ),
        TestClient(app) as client,
    ):
        yield client
    reset_memory_store()


class TestSendCode:
    def test_issues_code(self, client):
        response = client.post("/verification/send-code", json={"email": EMAIL})

        assert response.status_code == 200
        body = response.json()
        assert body["issued"] is True
        assert body["email"] == EMAIL
        assert body["expires_in_seconds"] == 600
        assert "code" not in body

    def test_cooldown_returns_429_with_retry_after(self, client, clock):
        client.post("/verification/send-code", json={"email": EMAIL})
        clock.advance(10)

        response = client.post("/verification/send-code", json={"email": EMAIL.upper()})

        assert response.status_code == 429
        detail = response.json()["detail"]
        assert detail["error"] == "RATE_LIMITED"
        assert detail["retry_after_seconds"] == 50
        assert response.headers["Retry-After"] == "50"

    def test_rejects_malformed_email(self, client):
        response = client.post("/verification/send-code", json={"email": "not-an-email"})
        assert response.status_code == 422


class TestVerifyCode:
    def test_wrong_code_reports_mismatch(self, client):
        client.post("/verification/send-code", json={"email": EMAIL})

        response = client.post(
            "/verification/verify-code", json={"email": EMAIL, "code": "000000"}
        )

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["reason"] == "MISMATCH"
        assert detail["error"] == "CODE_MISMATCH"

    def test_unknown_address_reports_not_found(self, client):
        response = client.post(
            "/verification/verify-code", json={"email": "nobody@acme.io", "code": "123456"}
        )

        assert response.status_code == 400
        assert response.json()["detail"]["reason"] == "NOT_FOUND"

    def test_expired_code(self, client, clock):
        client.post("/verification/send-code", json={"email": EMAIL})
        clock.advance(601)

        response = client.post(
            "/verification/verify-code", json={"email": EMAIL, "code": "123456"}
        )

        assert response.status_code == 400
        assert response.json()["detail"]["reason"] == "EXPIRED"

    def test_verify_then_check(self, client):
        client.post("/verification/send-code", json={"email": EMAIL})

        verified = client.post(
            "/verification/verify-code", json={"email": EMAIL, "code": "123456"}
        )
        check = client.post("/verification/check", json={"email": EMAIL})

        assert verified.status_code == 200
        assert verified.json()["verified"] is True
        assert check.json() == {"email": EMAIL, "verified": True}

    def test_code_is_single_use(self, client):
        client.post("/verification/send-code", json={"email": EMAIL})
        client.post("/verification/verify-code", json={"email": EMAIL, "code": "123456"})

        again = client.post(
            "/verification/verify-code", json={"email": EMAIL, "code": "123456"}
        )

        assert again.status_code == 400
        assert again.json()["detail"]["reason"] == "NOT_FOUND"
