"""
Fixtures for users tests.
"""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from app.core.security import hash_password
from app.modules.users.models import User

CURRENT_PASSWORD = "old-password-1"


@pytest.fixture
def mock_db():
    """Mock async database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def current_password():
    return CURRENT_PASSWORD


@pytest.fixture
def user():
    """Sample active form owner."""
    user = MagicMock(spec=User)
    user.id = uuid4()
    user.email = "hr@acme.example"
    user.username = "acme-hr"
    user.full_name = "Acme HR"
    user.organization_name = "Acme"
    user.is_active = True
    user.password_hash = hash_password(CURRENT_PASSWORD)
    return user
