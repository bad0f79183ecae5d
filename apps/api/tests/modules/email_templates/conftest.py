"""
Fixtures for email template tests.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from app.modules.applications.models import Application, ApplicationStatus
from app.modules.email_templates.models import EmailTemplate, TemplateCategory
from app.modules.users.models import User


@pytest.fixture
def mock_db():
    """Mock async database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def owner():
    user = MagicMock(spec=User)
    user.id = uuid4()
    user.email = "hr@acme.example"
    user.username = "acme-hr"
    user.full_name = "Acme HR"
    user.display_name = "Acme Labs"
    return user


@pytest.fixture
def template(owner):
    template = MagicMock(spec=EmailTemplate)
    template.id = uuid4()
    template.owner_id = owner.id
    template.name = "Shortlist notice"
    template.subject = "Update for {{applicationId}}"
    template.body = "<p>Dear {{applicantName}}, you are shortlisted by {{organizationName}}.</p>"
    template.variables = [{"name": "applicantName", "description": "Full name of the applicant"}]
    template.category = TemplateCategory.SHORTLIST
    template.total_sent = 0
    template.last_used_at = None
    return template


def _application(name: str, email: str, reference: str):
    application = MagicMock(spec=Application)
    application.id = uuid4()
    application.name = name
    application.email = email
    application.phone = "9876543210"
    application.reference = reference
    application.status = ApplicationStatus.SHORTLISTED
    application.submitted_at = datetime(2026, 3, 2, 10, 30, tzinfo=UTC)
    application.email_history = []
    return application


@pytest.fixture
def applications():
    """Three applications in send order."""
    return [
        _application("ASHA RAO", "asha@x.com", "RND1000000000000001"),
        _application("BEN <B> COLE", "ben@x.com", "RND1000000000000002"),
        _application("CARA DIAZ", "cara@x.com", "RND1000000000000003"),
    ]
