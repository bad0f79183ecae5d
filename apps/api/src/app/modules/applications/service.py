"""
Applications Service Layer

Business logic for job applications.

This module implements:
1. Submission Flow (public):
   - Validate the form is open, the document, and duplicate submissions
   - Consume the applicant's email verification (single use)
   - Stage the document, persist the application, commit
   - Send a confirmation email

2. Owner Operations:
   - List, filter and paginate applications
   - Status counts
   - Review updates (status, priority, rating, remarks, interview time)
   - Document download and application deletion

Storage and database are not transactional together: any failure after a
document is staged and before the commit deletes the staged file.
"""

import logging
import math
import secrets
import time
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.email import send_application_received
from app.modules.applications import repository
from app.modules.applications.models import Application, ApplicationStatus
from app.modules.applications.schemas import (
    ApplicationCreate,
    ApplicationDetail,
    ApplicationListResponse,
    ApplicationReviewUpdate,
    ApplicationStats,
    ApplicationSummary,
    DocumentInfo,
    PublicFormResponse,
    SubmissionResponse,
)
from app.modules.applications.storage import DocumentStorage, StoredDocument
from app.modules.users.models import User
from app.modules.users.repository import UserRepository
from app.modules.verification.store import VerificationStore

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
PDF_MAGIC = b"%PDF-"


class ApplicationServiceError(Exception):
    """Base exception for application service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class FormNotFoundError(ApplicationServiceError):
    """Raised when the owner of a public form does not exist."""

    def __init__(self):
        super().__init__(
            message="Application form not found.",
            error_code="FORM_NOT_FOUND",
            status_code=404,
        )


class FormClosedError(ApplicationServiceError):
    """Raised when a form is inactive or not accepting applications."""

    def __init__(self):
        super().__init__(
            message="This form is not accepting applications at the moment.",
            error_code="FORM_CLOSED",
            status_code=403,
        )


class InvalidDocumentError(ApplicationServiceError):
    """Raised when the uploaded document is not a PDF."""

    def __init__(self, message: str = "Only PDF files are allowed."):
        super().__init__(message=message, error_code="INVALID_DOCUMENT")


class DocumentTooLargeError(ApplicationServiceError):
    """Raised when the uploaded document exceeds the size limit."""

    def __init__(self, max_bytes: int):
        max_mb = max_bytes / (1024 * 1024)
        super().__init__(
            message=f"File size must be less than {max_mb:g}MB.",
            error_code="DOCUMENT_TOO_LARGE",
        )


class DuplicateApplicationError(ApplicationServiceError):
    """Raised when the same email applied to the same form recently."""

    def __init__(self, hours: int):
        super().__init__(
            message=f"An application with this email was already submitted in the last {hours} hours.",
            error_code="DUPLICATE_APPLICATION",
            status_code=409,
        )


class VerificationRequiredError(ApplicationServiceError):
    """Raised when the applicant's email is not currently verified."""

    def __init__(self):
        super().__init__(
            message="Please verify your email address before submitting the application.",
            error_code="EMAIL_NOT_VERIFIED",
        )


class ApplicationNotFoundError(ApplicationServiceError):
    """Raised when an application is not found for the owner."""

    def __init__(self, application_id: UUID | None = None):
        message = (
            f"Application {application_id} not found" if application_id else "Application not found"
        )
        super().__init__(
            message=message,
            error_code="APPLICATION_NOT_FOUND",
            status_code=404,
        )


class DocumentNotFoundError(ApplicationServiceError):
    """Raised when an application has no stored document."""

    def __init__(self):
        super().__init__(
            message="No document found for this application.",
            error_code="DOCUMENT_NOT_FOUND",
            status_code=404,
        )


@dataclass(frozen=True)
class UploadedDocument:
    """A document received with a submission, not yet stored."""

    content: bytes
    filename: str
    content_type: str | None


def generate_reference() -> str:
    """Public application reference: RND + epoch millis + 3 random digits."""
    return f"RND{int(time.time() * 1000)}{secrets.randbelow(1000):03d}"


def validate_document(document: UploadedDocument, max_bytes: int) -> None:
    """
    Check an uploaded document is a PDF within the size limit.

    Raises:
        InvalidDocumentError: If the file is empty or not a PDF
        DocumentTooLargeError: If the file exceeds max_bytes
    """
    if len(document.content) > max_bytes:
        raise DocumentTooLargeError(max_bytes)
    if not document.content:
        raise InvalidDocumentError("The uploaded file is empty.")
    if document.content_type not in (PDF_MIME_TYPE, None) or not document.content.startswith(
        PDF_MAGIC
    ):
        raise InvalidDocumentError()


async def _load_open_form(db: AsyncSession, owner_id: UUID) -> User:
    owner = await UserRepository.get_by_id(db, owner_id)
    if owner is None or not owner.is_active:
        raise FormNotFoundError()
    if not owner.form_open:
        raise FormClosedError()
    return owner


async def _discard_staged(storage: DocumentStorage, staged: StoredDocument) -> None:
    try:
        await storage.delete(staged.filename)
    except Exception as e:
        logger.error(f"Failed to delete staged document {staged.filename}: {e}")


async def get_public_form(db: AsyncSession, owner_id: UUID) -> PublicFormResponse:
    """
    Public configuration of an owner's form.

    Raises:
        FormNotFoundError: If the owner does not exist or is inactive
    """
    owner = await UserRepository.get_by_id(db, owner_id)
    if owner is None or not owner.is_active:
        raise FormNotFoundError()

    return PublicFormResponse(
        owner_id=owner.id,
        title=owner.form_title,
        description=owner.form_description,
        organization_name=owner.organization_name,
        is_active=owner.form_is_active,
        accepting_applications=owner.accepting_applications,
    )


async def submit_application(
    db: AsyncSession,
    store: VerificationStore,
    storage: DocumentStorage,
    owner_id: UUID,
    data: ApplicationCreate,
    document: UploadedDocument | None = None,
    ip_address: str | None = None,
) -> SubmissionResponse:
    """
    Submit an application to an owner's form.

    Read-only checks run first so a rejected submission never uses up the
    applicant's verification. The verification is consumed before anything
    is written; once consumed it is not restored, even if persisting fails.

    Args:
        db: Database session
        store: Verification store
        storage: Document storage
        owner_id: Owner of the form
        data: Validated application data (email already normalized)
        document: Optional PDF document
        ip_address: Client IP, stored for auditing

    Returns:
        SubmissionResponse with the public reference

    Raises:
        FormNotFoundError, FormClosedError: Form unavailable
        InvalidDocumentError, DocumentTooLargeError: Bad document
        DuplicateApplicationError: Same email applied within the window
        VerificationRequiredError: Email not verified
    """
    owner = await _load_open_form(db, owner_id)

    if document is not None:
        validate_document(document, settings.max_document_bytes)

    since = datetime.now(UTC) - timedelta(hours=settings.duplicate_window_hours)
    if await repository.exists_recent_by_email(db, owner.id, data.email, since):
        logger.warning(f"Duplicate application attempt: email={data.email}, owner={owner.id}")
        raise DuplicateApplicationError(settings.duplicate_window_hours)

    if not await store.consume_verification(data.email):
        logger.warning(f"Submission without verified email: {data.email}")
        raise VerificationRequiredError()

    staged: StoredDocument | None = None
    try:
        if document is not None:
            staged = await storage.save(
                document.content, document.filename, document.content_type or PDF_MIME_TYPE
            )

        application = Application(
            owner_id=owner.id,
            reference=generate_reference(),
            name=data.name.upper(),
            address=data.address,
            phone=data.phone,
            email=data.email,
            category=data.category,
            dob=data.dob,
            gender=data.gender,
            professional_exam=data.professional_exam,
            professional_exam_validity=data.professional_exam_validity,
            education=[entry.model_dump(mode="json") for entry in data.education],
            experience=[entry.model_dump(mode="json") for entry in data.experience],
            qualifying_degree=data.qualifying_degree,
            qualifying_degree_other=data.qualifying_degree_other,
            degree_specialization=data.degree_specialization,
            publication_details=data.publication_details,
            declaration_agreed=data.declaration_agreed,
            application_date=data.application_date,
            application_place=data.application_place,
            name_declaration=data.name_declaration.upper(),
            ip_address=ip_address,
            status=ApplicationStatus.SUBMITTED,
            email_history=[],
        )
        if staged is not None:
            application.document_filename = staged.filename
            application.document_original_name = staged.original_name
            application.document_size = staged.size
            application.document_mime_type = staged.mime_type
            application.document_uploaded_at = datetime.now(UTC)

        application = await repository.create(db, application)
        await db.commit()
    except Exception:
        await db.rollback()
        if staged is not None:
            await _discard_staged(storage, staged)
        raise

    logger.info(f"Application {application.reference} submitted to owner {owner.id}")

    try:
        sent = await send_application_received(
            to_email=application.email,
            applicant_name=application.name,
            reference=application.reference,
            form_title=owner.form_title,
            submitted_at=application.submitted_at,
            has_document=application.has_document,
        )
        if not sent:
            logger.error(f"Failed to send confirmation email for {application.reference}")
    except Exception as e:
        logger.error(f"Exception sending confirmation email for {application.reference}: {e}")

    return SubmissionResponse(
        id=application.id,
        reference=application.reference,
        status=application.status,
        submitted_at=application.submitted_at,
        has_document=application.has_document,
    )


async def get_application(db: AsyncSession, owner_id: UUID, application_id: UUID) -> Application:
    """
    Get an owner's application.

    Raises:
        ApplicationNotFoundError: If missing or owned by someone else
    """
    application = await repository.get_for_owner(db, owner_id, application_id)
    if application is None:
        raise ApplicationNotFoundError(application_id)
    return application


def to_detail(application: Application) -> ApplicationDetail:
    """Build the owner-facing view of an application."""
    detail = ApplicationDetail.model_validate(application, from_attributes=True)
    if application.has_document:
        detail.document = DocumentInfo(
            filename=application.document_filename,
            original_name=application.document_original_name,
            size=application.document_size,
            mime_type=application.document_mime_type,
            uploaded_at=application.document_uploaded_at,
        )
    return detail


async def list_applications(
    db: AsyncSession,
    owner_id: UUID,
    *,
    status: ApplicationStatus | None = None,
    priority: str | None = None,
    search: str | None = None,
    sort_by: str = "submitted_at",
    sort_desc: bool = True,
    page: int = 1,
    page_size: int = 20,
) -> ApplicationListResponse:
    """List an owner's applications, one page at a time."""
    items, total = await repository.list_for_owner(
        db,
        owner_id,
        status=status,
        priority=priority,
        search=search,
        sort_by=sort_by,
        sort_desc=sort_desc,
        offset=(page - 1) * page_size,
        limit=page_size,
    )
    return ApplicationListResponse(
        items=[ApplicationSummary.model_validate(item) for item in items],
        total=total,
        page=page,
        page_size=page_size,
        pages=math.ceil(total / page_size) if total else 0,
    )


async def get_stats(db: AsyncSession, owner_id: UUID) -> ApplicationStats:
    """Application counts for an owner's dashboard."""
    by_status = await repository.count_by_status(db, owner_id)
    for status in ApplicationStatus:
        by_status.setdefault(status.value, 0)

    week_ago = datetime.now(UTC) - timedelta(days=7)
    return ApplicationStats(
        total=sum(by_status.values()),
        by_status=by_status,
        with_documents=await repository.count_with_documents(db, owner_id),
        last_7_days=await repository.count_since(db, owner_id, week_ago),
    )


async def review_application(
    db: AsyncSession,
    owner_id: UUID,
    application_id: UUID,
    update: ApplicationReviewUpdate,
) -> Application:
    """
    Apply an owner's review changes.

    Raises:
        ApplicationNotFoundError: If missing or owned by someone else
    """
    application = await get_application(db, owner_id, application_id)

    changes = update.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(application, field, value)
    if changes:
        application.reviewed_at = datetime.now(UTC)

    await db.commit()
    await db.refresh(application)

    logger.info(f"Application {application.reference} reviewed: {sorted(changes)}")
    return application


async def get_document(
    db: AsyncSession,
    storage: DocumentStorage,
    owner_id: UUID,
    application_id: UUID,
) -> tuple[Path, str, str]:
    """
    Locate an application's document.

    Returns:
        Tuple of (path on disk, download filename, mime type)

    Raises:
        ApplicationNotFoundError: If the application is not the owner's
        DocumentNotFoundError: If there is no document or the file is gone
    """
    application = await get_application(db, owner_id, application_id)
    if not application.has_document:
        raise DocumentNotFoundError()
    if not await storage.exists(application.document_filename):
        logger.error(f"Document file missing for application {application.reference}")
        raise DocumentNotFoundError()

    return (
        storage.path_for(application.document_filename),
        application.document_original_name or application.document_filename,
        application.document_mime_type or PDF_MIME_TYPE,
    )


async def delete_application(
    db: AsyncSession,
    storage: DocumentStorage,
    owner_id: UUID,
    application_id: UUID,
) -> None:
    """
    Delete an application, then its document.

    The record is committed away first; a leftover file is logged rather
    than failing the request.

    Raises:
        ApplicationNotFoundError: If missing or owned by someone else
    """
    application = await get_application(db, owner_id, application_id)
    filename = application.document_filename
    reference = application.reference

    await repository.delete(db, application)
    await db.commit()
    logger.info(f"Deleted application {reference}")

    if filename:
        try:
            await storage.delete(filename)
        except Exception as e:
            logger.error(f"Failed to delete document {filename} for {reference}: {e}")
