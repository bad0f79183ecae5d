"""
Applications Models

Job applications submitted through an owner's public form.
"""

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSON, UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.modules.shared import BaseModel


class ApplicationStatus(str, enum.Enum):
    """Review status of an application."""

    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    SHORTLISTED = "shortlisted"
    INTERVIEW_SCHEDULED = "interview_scheduled"
    APPROVED = "approved"
    REJECTED = "rejected"


class ApplicationPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ApplicantCategory(str, enum.Enum):
    GENERAL = "GENERAL"
    OBC = "OBC"
    SC = "SC"
    ST = "ST"
    PWD = "PwD"
    EWS = "EWS"


class Gender(str, enum.Enum):
    MALE = "Male"
    FEMALE = "Female"


class QualifyingDegree(str, enum.Enum):
    BACHELORS = "B.Sc/B.Tech/B.E/BCA"
    MASTERS = "M.Sc/M.Tech/M.E/MA/MCA"
    OTHERS = "Others"


class Application(BaseModel):
    """
    A job application.

    Belongs to the form owner whose form received it. The applicant's email
    is stored normalized (lowercase, trimmed) and is the join key with the
    email verification flow.
    """

    __tablename__ = "applications"

    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Public reference, e.g. RND1718000000000042
    reference: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)

    # Personal information
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    phone: Mapped[str] = mapped_column(String(10), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[ApplicantCategory] = mapped_column(
        Enum(ApplicantCategory, name="applicant_category"), nullable=False
    )
    dob: Mapped[date] = mapped_column(Date, nullable=False)
    gender: Mapped[Gender] = mapped_column(Enum(Gender, name="gender"), nullable=False)
    professional_exam: Mapped[str | None] = mapped_column(String(200), nullable=True)
    professional_exam_validity: Mapped[date | None] = mapped_column(Date, nullable=True)

    # [{institute, exam_passed, exam_passed_other, name_of_examination, year_of_passing, marks_percentage}]
    education: Mapped[list] = mapped_column(JSON, nullable=False)
    # [{company_name, start_date, end_date, is_currently_working, salary}]
    experience: Mapped[list] = mapped_column(JSON, nullable=False)

    qualifying_degree: Mapped[QualifyingDegree] = mapped_column(
        Enum(QualifyingDegree, name="qualifying_degree"), nullable=False
    )
    qualifying_degree_other: Mapped[str | None] = mapped_column(String(200), nullable=True)
    degree_specialization: Mapped[str] = mapped_column(String(200), nullable=False)
    publication_details: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Declaration
    declaration_agreed: Mapped[bool] = mapped_column(Boolean, nullable=False)
    application_date: Mapped[date] = mapped_column(Date, nullable=False)
    application_place: Mapped[str] = mapped_column(String(100), nullable=False)
    name_declaration: Mapped[str] = mapped_column(String(100), nullable=False)

    # Uploaded document (PDF)
    document_filename: Mapped[str | None] = mapped_column(String(255), nullable=True)
    document_original_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    document_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    document_mime_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    document_uploaded_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Review
    status: Mapped[ApplicationStatus] = mapped_column(
        Enum(ApplicationStatus, name="application_status"),
        nullable=False,
        default=ApplicationStatus.SUBMITTED,
    )
    priority: Mapped[ApplicationPriority] = mapped_column(
        Enum(ApplicationPriority, name="application_priority"),
        nullable=False,
        default=ApplicationPriority.MEDIUM,
    )
    rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    interview_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # [{template_id, subject, status, sent_at, message_id, error}]
    email_history: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_applications_owner_status", "owner_id", "status"),
        Index("ix_applications_owner_email", "owner_id", "email"),
        Index("ix_applications_submitted_at", "submitted_at"),
    )

    def __repr__(self) -> str:
        return f"<Application(reference={self.reference}, email={self.email})>"

    @property
    def has_document(self) -> bool:
        return bool(self.document_filename)
