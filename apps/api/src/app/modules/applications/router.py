"""
Applications Router

Endpoints:
Public (no authentication):
- GET /applications/forms/{owner_id} - Public form configuration
- POST /applications/forms/{owner_id} - Submit an application (multipart)

Form owner (bearer token, active account):
- GET /applications - List, filter and paginate applications
- GET /applications/stats - Status counts
- GET /applications/{id} - Application detail
- PATCH /applications/{id}/review - Update status, priority, rating, remarks
- GET /applications/{id}/document - Download the uploaded document
- DELETE /applications/{id} - Delete an application and its document

Security:
- Submissions require a verified email, consumed on use
- Submissions are rate limited per client IP
- Owners only ever see their own applications
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile, status
from fastapi.responses import FileResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.rate_limit import rate_limit
from app.modules.applications import service
from app.modules.applications.models import ApplicationPriority, ApplicationStatus
from app.modules.applications.schemas import (
    ApplicationCreate,
    ApplicationDetail,
    ApplicationListResponse,
    ApplicationReviewUpdate,
    ApplicationStats,
    PublicFormResponse,
    SortField,
    SubmissionResponse,
)
from app.modules.applications.service import ApplicationServiceError, UploadedDocument
from app.modules.applications.storage import DocumentStorage, get_document_storage
from app.modules.users.models import User
from app.modules.users.router import get_current_user
from app.modules.verification.service import get_verification_store
from app.modules.verification.store import VerificationStore

logger = logging.getLogger(__name__)

router = APIRouter()

SUBMIT_RATE_LIMIT = 5
SUBMIT_RATE_WINDOW_SECONDS = 60 * 60


def _service_error(e: ApplicationServiceError) -> HTTPException:
    return HTTPException(
        status_code=e.status_code,
        detail={"error": e.error_code, "message": e.message},
    )


def _internal_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred. Please try again later.",
        },
    )


def _client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


@router.get("/forms/{owner_id}", response_model=PublicFormResponse)
async def get_public_form(
    owner_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> PublicFormResponse:
    """Return the public configuration of an owner's form."""
    try:
        return await service.get_public_form(db, owner_id)
    except ApplicationServiceError as e:
        raise _service_error(e) from e


@router.post(
    "/forms/{owner_id}",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Application",
    responses={
        400: {
            "description": "Email not verified, or invalid document",
            "content": {
                "application/json": {
                    "example": {
                        "detail": {
                            "error": "EMAIL_NOT_VERIFIED",
                            "message": "Please verify your email address before submitting the application.",
                        }
                    }
                }
            },
        },
        409: {"description": "Same email applied to this form recently"},
    },
)
@rate_limit(limit=SUBMIT_RATE_LIMIT, window_seconds=SUBMIT_RATE_WINDOW_SECONDS)
async def submit_application(
    request: Request,
    owner_id: UUID,
    data: str = Form(..., description="Application data as JSON"),
    document: UploadFile | None = File(None, description="PDF document, at most 5MB"),
    db: AsyncSession = Depends(get_db),
    store: VerificationStore = Depends(get_verification_store),
    storage: DocumentStorage = Depends(get_document_storage),
) -> SubmissionResponse:
    """
    Submit an application.

    The applicant's email must have been verified through
    /verification/verify-code; the verification is used up by this call.
    """
    try:
        payload = ApplicationCreate.model_validate_json(data)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "error": "VALIDATION_ERROR",
                "message": "Invalid application data.",
                "errors": e.errors(include_url=False, include_context=False),
            },
        ) from e

    uploaded = None
    if document is not None and document.filename:
        uploaded = UploadedDocument(
            content=await document.read(settings.max_document_bytes + 1),
            filename=document.filename,
            content_type=document.content_type,
        )

    try:
        return await service.submit_application(
            db,
            store,
            storage,
            owner_id,
            payload,
            document=uploaded,
            ip_address=_client_ip(request),
        )
    except ApplicationServiceError as e:
        raise _service_error(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error submitting application: {e}")
        raise _internal_error() from e


@router.get("", response_model=ApplicationListResponse)
async def list_applications(
    status_filter: ApplicationStatus | None = Query(None, alias="status"),
    priority: ApplicationPriority | None = None,
    search: str | None = Query(None, max_length=100),
    sort_by: SortField = "submitted_at",
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    owner: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApplicationListResponse:
    """List the current owner's applications."""
    return await service.list_applications(
        db,
        owner.id,
        status=status_filter,
        priority=priority,
        search=search,
        sort_by=sort_by,
        sort_desc=sort_order == "desc",
        page=page,
        page_size=page_size,
    )


@router.get("/stats", response_model=ApplicationStats)
async def get_stats(
    owner: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApplicationStats:
    """Application counts for the current owner."""
    return await service.get_stats(db, owner.id)


@router.get("/{application_id}", response_model=ApplicationDetail)
async def get_application(
    application_id: UUID,
    owner: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApplicationDetail:
    try:
        application = await service.get_application(db, owner.id, application_id)
    except ApplicationServiceError as e:
        raise _service_error(e) from e
    return service.to_detail(application)


@router.patch("/{application_id}/review", response_model=ApplicationDetail)
async def review_application(
    application_id: UUID,
    update: ApplicationReviewUpdate,
    owner: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApplicationDetail:
    """Update status, priority, rating, remarks or interview time."""
    try:
        application = await service.review_application(db, owner.id, application_id, update)
    except ApplicationServiceError as e:
        raise _service_error(e) from e
    return service.to_detail(application)


@router.get("/{application_id}/document")
async def download_document(
    application_id: UUID,
    owner: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: DocumentStorage = Depends(get_document_storage),
) -> FileResponse:
    """Download the application's document."""
    try:
        path, filename, mime_type = await service.get_document(
            db, storage, owner.id, application_id
        )
    except ApplicationServiceError as e:
        raise _service_error(e) from e
    return FileResponse(path, media_type=mime_type, filename=filename)


@router.delete("/{application_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_application(
    application_id: UUID,
    owner: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: DocumentStorage = Depends(get_document_storage),
) -> None:
    """Delete an application and its stored document."""
    try:
        await service.delete_application(db, storage, owner.id, application_id)
    except ApplicationServiceError as e:
        raise _service_error(e) from e
