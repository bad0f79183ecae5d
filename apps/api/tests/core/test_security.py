"""
Tests for password hashing, tokens and the owner dependency.
"""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest
from fastapi import HTTPException
from jose import jwt

from app.core.auth import owner_from_token
from app.core.config import settings
from app.core.security import (
    ALGORITHM,
    create_access_token,
    decode_token,
    hash_password,
    verify_password,
)


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = hash_password("s3cret-pass")

        assert hashed != "s3cret-pass"
        assert verify_password("s3cret-pass", hashed) is True
        assert verify_password("wrong-pass", hashed) is False

    def test_malformed_hash(self):
        assert verify_password("s3cret-pass", "not-a-bcrypt-hash") is False


class TestTokens:
    def test_roundtrip(self):
        token = create_access_token("user-1", additional_claims={"email": "hr@acme.example"})

        payload = decode_token(token)

        assert payload["sub"] == "user-1"
        assert payload["type"] == "access"
        assert payload["email"] == "hr@acme.example"

    def test_expired_token(self):
        token = create_access_token("user-1", expires_delta=timedelta(seconds=-1))
        assert decode_token(token) is None

    def test_wrong_signature(self):
        token = jwt.encode({"sub": "user-1"}, "another-key", algorithm=ALGORITHM)
        assert decode_token(token) is None


class TestOwnerFromToken:
    def test_valid_token(self):
        owner_id = uuid4()
        token = create_access_token(
            str(owner_id),
            additional_claims={"email": "hr@acme.example", "username": "acme-hr"},
        )

        owner = owner_from_token(token)

        assert owner.id == owner_id
        assert owner.email == "hr@acme.example"
        assert owner.username == "acme-hr"

    def test_invalid_token(self):
        with pytest.raises(HTTPException) as exc_info:
            owner_from_token("garbage")

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail["error"] == "INVALID_TOKEN"

    def test_wrong_token_type(self):
        token = create_access_token(str(uuid4()), additional_claims={"type": "refresh"})

        with pytest.raises(HTTPException) as exc_info:
            owner_from_token(token)

        assert exc_info.value.detail["error"] == "INVALID_TOKEN_TYPE"

    def test_missing_subject(self):
        token = jwt.encode(
            {"type": "access", "exp": datetime.now(UTC) + timedelta(minutes=5)},
            settings.secret_key,
            algorithm=ALGORITHM,
        )

        with pytest.raises(HTTPException) as exc_info:
            owner_from_token(token)

        assert exc_info.value.detail["error"] == "INVALID_TOKEN_CLAIMS"

    def test_subject_not_a_uuid(self):
        token = create_access_token("not-a-uuid")

        with pytest.raises(HTTPException) as exc_info:
            owner_from_token(token)

        assert exc_info.value.detail["error"] == "INVALID_TOKEN_CLAIMS"
