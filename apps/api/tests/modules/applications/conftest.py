"""
Fixtures for applications tests.
"""

from datetime import UTC, date, datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from app.modules.applications.schemas import ApplicationCreate
from app.modules.applications.service import UploadedDocument
from app.modules.applications.storage import DocumentStorage
from app.modules.users.models import User
from app.modules.verification.store import InMemoryVerificationStore

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<<>>\nendobj\ntrailer\n<<>>\n%%EOF\n"


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
def owner():
    """Sample form owner with an open form."""
    user = MagicMock(spec=User)
    user.id = uuid4()
    user.email = "hr@acme.example"
    user.username = "acme-hr"
    user.full_name = "Acme HR"
    user.organization_name = "Acme"
    user.display_name = "Acme"
    user.is_active = True
    user.form_title = "Research Associate"
    user.form_description = None
    user.form_is_active = True
    user.accepting_applications = True
    user.form_open = True
    return user


@pytest.fixture
def store():
    return InMemoryVerificationStore(code_generator=lambda: "123456")


@pytest.fixture
def storage(tmp_path):
    return DocumentStorage(tmp_path / "documents")


@pytest.fixture
def pdf_document():
    return UploadedDocument(content=PDF_BYTES, filename="cv.pdf", content_type="application/pdf")


def _payload(**overrides) -> dict:
    today = date.today()
    payload = {
        "name": "Jane Doe",
        "address": "12 Lake Road, Pune",
        "phone": "9876543210",
        "email": "a@x.com",
        "category": "GENERAL",
        "dob": date(today.year - 30, 1, 15).isoformat(),
        "gender": "Female",
        "education": [
            {
                "institute": "City College",
                "exam_passed": "Bachelors (B.Sc/B.Tech/B.E/BCA)",
                "name_of_examination": "B.Sc Chemistry",
                "year_of_passing": "2016",
                "marks_percentage": "78",
            }
        ],
        "experience": [
            {
                "company_name": "Acme Labs",
                "start_date": "2017-06-01",
                "is_currently_working": True,
            }
        ],
        "qualifying_degree": "B.Sc/B.Tech/B.E/BCA",
        "degree_specialization": "Chemistry",
        "declaration_agreed": True,
        "application_date": today.isoformat(),
        "application_place": "Pune",
        "name_declaration": "Jane Doe",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_payload():
    """Factory for a valid submission payload as the form sends it."""
    return _payload


@pytest.fixture
def application_data():
    return ApplicationCreate.model_validate(_payload())


async def _persist(db, application):
    application.id = uuid4()
    application.submitted_at = datetime.now(UTC)
    return application


@pytest.fixture
def persist():
    """Stand-in for repository.create: assigns what the database would."""
    return _persist
