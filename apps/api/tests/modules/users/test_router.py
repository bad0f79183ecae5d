"""
Tests for the current-user dependency shared by every owner endpoint.
"""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from app.core.auth import CurrentOwner
from app.core.database import get_db
from app.core.security import create_access_token
from app.modules.applications.router import router as applications_router
from app.modules.users.repository import UserRepository
from app.modules.users.router import get_current_user


def identity(user) -> CurrentOwner:
    return CurrentOwner(id=user.id, email=user.email, username=user.username)


class TestGetCurrentUser:
    @pytest.mark.asyncio
    async def test_active_account(self, mock_db, user):
        with patch.object(UserRepository, "get_by_id", new_callable=AsyncMock, return_value=user):
            assert await get_current_user(identity(user), mock_db) is user

    @pytest.mark.asyncio
    async def test_inactive_account(self, mock_db, user):
        user.is_active = False

        with patch.object(UserRepository, "get_by_id", new_callable=AsyncMock, return_value=user):
            with pytest.raises(HTTPException) as exc_info:
                await get_current_user(identity(user), mock_db)

        assert exc_info.value.status_code == 403
        assert exc_info.value.detail["error"] == "ACCOUNT_INACTIVE"

    @pytest.mark.asyncio
    async def test_deleted_account(self, mock_db, user):
        with patch.object(UserRepository, "get_by_id", new_callable=AsyncMock, return_value=None):
            with pytest.raises(HTTPException) as exc_info:
                await get_current_user(identity(user), mock_db)

        assert exc_info.value.status_code == 401


class TestOwnerEndpoints:
    def test_inactive_owner_cannot_list_applications(self, mock_db, user):
        user.is_active = False
        app = FastAPI()
        app.include_router(applications_router, prefix="/applications")
        app.dependency_overrides[get_db] = lambda: mock_db
        token = create_access_token(str(user.id), additional_claims={"email": user.email})

        with patch.object(UserRepository, "get_by_id", new_callable=AsyncMock, return_value=user):
            response = TestClient(app).get(
                "/applications", headers={"Authorization": f"Bearer {token}"}
            )

        assert response.status_code == 403
        assert response.json()["detail"]["error"] == "ACCOUNT_INACTIVE"
