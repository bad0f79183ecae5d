"""
HTTP tests for the public submission endpoint.

The verification and applications routers share one overridden store, so
an applicant verifies and submits through the same client.
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core import redis as redis_module
from app.core.config import settings
from app.core.database import get_db
from app.core.rate_limit import reset_memory_store
from app.modules.applications.router import router
from app.modules.applications.storage import get_document_storage
from app.modules.verification.router import router as verification_router
from app.modules.verification.service import get_verification_store

@pytest.fixture
def deps(owner, persist):
    """Patch the owner lookup, repository writes and confirmation email."""
    with (
        patch("app.modules.applications.service.UserRepository") as mock_users,
        patch("app.modules.applications.service.repository") as mock_repo,
        patch(
            "app.modules.applications.service.send_application_received",
            new_callable=AsyncMock,
            return_value=True,
        ),
    ):
        mock_users.get_by_id = AsyncMock(return_value=owner)
        mock_repo.exists_recent_by_email = AsyncMock(return_value=False)
        mock_repo.create = AsyncMock(side_effect=persist)
        yield MagicMock(users=mock_users, repo=mock_repo)


@pytest.fixture
def client(mock_db, store, storage, deps):
    app = FastAPI()
    app.include_router(verification_router, prefix="/verification")
    app.include_router(router, prefix="/applications")
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_verification_store] = lambda: store
    app.dependency_overrides[get_document_storage] = lambda: storage

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


def verify(client, email: str) -> None:
    client.post("/verification/send-code", json={"email": email})
    response = client.post("/verification/verify-code", json={"email": email, "code": "123456"})
    assert response.status_code == 200


def submit(client, owner_id, payload: dict | str, document: bytes | None = None):
    data = payload if isinstance(payload, str) else json.dumps(payload)
    files = {"document": ("cv.pdf", document, "application/pdf")} if document else None
    return client.post(f"/applications/forms/{owner_id}", data={"data": data}, files=files)


class TestSubmitEndpoint:
    def test_malformed_json(self, client, owner, mock_db):
        response = submit(client, owner.id, "{not json")

        assert response.status_code == 422
        assert response.json()["detail"]["error"] == "VALIDATION_ERROR"
        mock_db.commit.assert_not_awaited()

    def test_invalid_fields(self, client, owner, make_payload):
        response = submit(client, owner.id, make_payload(phone="12345", declaration_agreed=False))

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["error"] == "VALIDATION_ERROR"
        assert detail["errors"]

    def test_unverified_email(self, client, owner, make_payload, deps):
        response = submit(client, owner.id, make_payload())

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "EMAIL_NOT_VERIFIED"
        deps.repo.create.assert_not_awaited()

    def test_verified_submission(self, client, owner, make_payload, storage, pdf_document):
        verify(client, "a@x.com")

        response = submit(client, owner.id, make_payload(), document=pdf_document.content)

        assert response.status_code == 201
        body = response.json()
        assert body["reference"].startswith("RND")
        assert body["has_document"] is True
        assert len(list(storage.base_dir.iterdir())) == 1

    def test_verification_used_up(self, client, owner, make_payload):
        verify(client, "a@x.com")

        first = submit(client, owner.id, make_payload())
        second = submit(client, owner.id, make_payload())

        assert first.status_code == 201
        assert second.status_code == 400
        assert second.json()["detail"]["error"] == "EMAIL_NOT_VERIFIED"

    def test_oversized_document_keeps_verification(
        self, client, owner, make_payload, pdf_document
    ):
        verify(client, "a@x.com")

        with patch.object(settings, "max_document_bytes", 64):
            response = submit(
                client, owner.id, make_payload(), document=pdf_document.content + b"\0" * 200
            )

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "DOCUMENT_TOO_LARGE"
        assert submit(client, owner.id, make_payload()).status_code == 201

    def test_unknown_form(self, client, make_payload, deps):
        deps.users.get_by_id.return_value = None

        response = submit(client, uuid4(), make_payload())

        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "FORM_NOT_FOUND"
