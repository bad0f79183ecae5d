"""
Applications Schemas

Pydantic schemas for request validation and response serialization.
"""

from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from app.modules.applications.models import (
    ApplicantCategory,
    ApplicationPriority,
    ApplicationStatus,
    Gender,
    QualifyingDegree,
)

MIN_AGE = 18
MAX_AGE = 65
MIN_PASSING_YEAR = 1970

ExamPassed = Literal[
    "10th Class",
    "12th Class",
    "Bachelors (B.Sc/B.Tech/B.E/BCA)",
    "Masters (M.Sc/M.Tech/M.E/MCA/MA)",
    "Others",
]


def age_on(dob: date, today: date) -> int:
    """Age in whole years on a given day."""
    years = today.year - dob.year
    if (today.month, today.day) < (dob.month, dob.day):
        years -= 1
    return years


class EducationEntry(BaseModel):
    """One educational qualification."""

    institute: str = Field(..., min_length=1, max_length=200)
    exam_passed: ExamPassed
    exam_passed_other: str | None = Field(None, max_length=100)
    name_of_examination: str = Field(..., min_length=1, max_length=100)
    year_of_passing: str = Field(..., pattern=r"^[0-9]{4}$")
    marks_percentage: str = Field(..., min_length=1, max_length=10)

    @model_validator(mode="after")
    def validate_entry(self) -> "EducationEntry":
        year = int(self.year_of_passing)
        if year < MIN_PASSING_YEAR or year > date.today().year + 1:
            raise ValueError("Year of passing must be between 1970 and next year")
        if self.exam_passed == "Others" and not (self.exam_passed_other or "").strip():
            raise ValueError("exam_passed_other is required when exam_passed is Others")
        return self


class ExperienceEntry(BaseModel):
    """One employment record."""

    company_name: str | None = Field(None, max_length=200)
    start_date: date | None = None
    end_date: date | None = None
    is_currently_working: bool = False
    salary: str | None = Field(None, max_length=50)

    @model_validator(mode="after")
    def clear_end_date(self) -> "ExperienceEntry":
        if self.is_currently_working:
            self.end_date = None
        return self


class ApplicationCreate(BaseModel):
    """
    Application data submitted through a public form.

    Sent as the ``data`` JSON field of the multipart submission; the
    document travels as a separate file part.
    """

    name: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-zA-Z\s.]+$")
    address: str = Field(..., min_length=1, max_length=500)
    phone: str = Field(..., pattern=r"^[0-9]{10}$")
    email: EmailStr
    category: ApplicantCategory
    dob: date
    gender: Gender
    professional_exam: str | None = Field(None, max_length=200)
    professional_exam_validity: date | None = None

    education: list[EducationEntry] = Field(..., min_length=1)
    experience: list[ExperienceEntry] = Field(..., min_length=1)

    qualifying_degree: QualifyingDegree
    qualifying_degree_other: str | None = Field(None, max_length=200)
    degree_specialization: str = Field(..., min_length=1, max_length=200)
    publication_details: str | None = Field(None, max_length=5000)

    declaration_agreed: bool
    application_date: date
    application_place: str = Field(..., min_length=1, max_length=100)
    name_declaration: str = Field(..., min_length=1, max_length=100)

    @field_validator("name", "address", "application_place", "name_declaration", mode="before")
    @classmethod
    def strip_text(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("dob")
    @classmethod
    def validate_age(cls, v: date) -> date:
        age = age_on(v, date.today())
        if age < MIN_AGE or age > MAX_AGE:
            raise ValueError("Age must be between 18 and 65 years")
        return v

    @field_validator("declaration_agreed")
    @classmethod
    def validate_declaration(cls, v: bool) -> bool:
        if v is not True:
            raise ValueError("You must agree to the declaration to proceed")
        return v

    @model_validator(mode="after")
    def validate_degree(self) -> "ApplicationCreate":
        if self.qualifying_degree == QualifyingDegree.OTHERS and not (
            self.qualifying_degree_other or ""
        ).strip():
            raise ValueError("qualifying_degree_other is required when qualifying_degree is Others")
        return self


class SubmissionResponse(BaseModel):
    """Response after a successful submission."""

    id: UUID
    reference: str
    status: ApplicationStatus
    submitted_at: datetime
    has_document: bool
    message: str = "Application submitted successfully."


class PublicFormResponse(BaseModel):
    """Public configuration of an owner's form."""

    owner_id: UUID
    title: str
    description: str | None = None
    organization_name: str | None = None
    is_active: bool
    accepting_applications: bool


class DocumentInfo(BaseModel):
    filename: str
    original_name: str | None = None
    size: int | None = None
    mime_type: str | None = None
    uploaded_at: datetime | None = None


class ApplicationSummary(BaseModel):
    """Row in the owner's application list."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    reference: str
    name: str
    email: str
    phone: str
    category: ApplicantCategory
    status: ApplicationStatus
    priority: ApplicationPriority
    rating: int | None = None
    has_document: bool
    submitted_at: datetime


class ApplicationDetail(ApplicationSummary):
    """Full application as seen by its owner."""

    address: str
    dob: date
    gender: Gender
    professional_exam: str | None = None
    professional_exam_validity: date | None = None
    education: list[dict]
    experience: list[dict]
    qualifying_degree: QualifyingDegree
    qualifying_degree_other: str | None = None
    degree_specialization: str
    publication_details: str | None = None
    declaration_agreed: bool
    application_date: date
    application_place: str
    name_declaration: str
    document: DocumentInfo | None = None
    remarks: str | None = None
    interview_at: datetime | None = None
    reviewed_at: datetime | None = None
    email_history: list[dict] = Field(default_factory=list)
    updated_at: datetime


class ApplicationListResponse(BaseModel):
    items: list[ApplicationSummary]
    total: int
    page: int
    page_size: int
    pages: int


class ApplicationStats(BaseModel):
    """Application counts for an owner."""

    total: int
    by_status: dict[str, int]
    with_documents: int
    last_7_days: int


class ApplicationReviewUpdate(BaseModel):
    """Request body for PATCH /applications/{id}/review. Omitted fields are unchanged."""

    status: ApplicationStatus | None = None
    priority: ApplicationPriority | None = None
    rating: int | None = Field(None, ge=1, le=5)
    remarks: str | None = Field(None, max_length=2000)
    interview_at: datetime | None = None


SortField = Literal["submitted_at", "name", "status", "rating", "priority"]
