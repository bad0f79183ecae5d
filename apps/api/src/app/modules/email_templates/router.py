"""
Email Router

Template management and bulk email for form owners.

Endpoints:
- POST /email/templates - Create a template
- GET /email/templates - List templates
- GET /email/templates/{id} - Get a template
- PUT /email/templates/{id} - Update a template
- DELETE /email/templates/{id} - Deactivate a template
- POST /email/templates/{id}/duplicate - Copy a template as a draft
- POST /email/templates/{id}/preview - Render with sample data
- POST /email/send-bulk - Send a template to selected applications
- GET /email/history - Email attempts across the owner's applications
- GET /email/template-variables - Variables available to every template
- GET /email/categories - Template categories
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.modules.email_templates import service
from app.modules.email_templates.models import TemplateCategory
from app.modules.email_templates.schemas import (
    BulkSendRequest,
    BulkSendResponse,
    CategoriesResponse,
    EmailHistoryResponse,
    PreviewRequest,
    PreviewResponse,
    TemplateCreate,
    TemplateDuplicateRequest,
    TemplateListResponse,
    TemplateResponse,
    TemplateUpdate,
    TemplateVariablesResponse,
)
from app.modules.email_templates.service import TemplateServiceError
from app.modules.users.models import User
from app.modules.users.router import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


def _service_error(e: TemplateServiceError) -> HTTPException:
    return HTTPException(
        status_code=e.status_code,
        detail={"error": e.error_code, "message": e.message},
    )


@router.post("/templates", response_model=TemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_template(
    data: TemplateCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TemplateResponse:
    try:
        template = await service.create_template(db, user.id, data)
    except TemplateServiceError as e:
        raise _service_error(e) from e
    return TemplateResponse.model_validate(template)


@router.get("/templates", response_model=TemplateListResponse)
async def list_templates(
    category: TemplateCategory | None = None,
    include_drafts: bool = True,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TemplateListResponse:
    return await service.list_templates(
        db,
        user.id,
        category=category,
        include_drafts=include_drafts,
        page=page,
        page_size=page_size,
    )


@router.get("/templates/{template_id}", response_model=TemplateResponse)
async def get_template(
    template_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TemplateResponse:
    try:
        template = await service.get_template(db, user.id, template_id)
    except TemplateServiceError as e:
        raise _service_error(e) from e
    return TemplateResponse.model_validate(template)


@router.put("/templates/{template_id}", response_model=TemplateResponse)
async def update_template(
    template_id: UUID,
    data: TemplateUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TemplateResponse:
    try:
        template = await service.update_template(db, user.id, template_id, data)
    except TemplateServiceError as e:
        raise _service_error(e) from e
    return TemplateResponse.model_validate(template)


@router.delete("/templates/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_template(
    template_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> None:
    try:
        await service.delete_template(db, user.id, template_id)
    except TemplateServiceError as e:
        raise _service_error(e) from e


@router.post(
    "/templates/{template_id}/duplicate",
    response_model=TemplateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def duplicate_template(
    template_id: UUID,
    data: TemplateDuplicateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TemplateResponse:
    try:
        template = await service.duplicate_template(db, user.id, template_id, data.new_name)
    except TemplateServiceError as e:
        raise _service_error(e) from e
    return TemplateResponse.model_validate(template)


@router.post("/templates/{template_id}/preview", response_model=PreviewResponse)
async def preview_template(
    template_id: UUID,
    data: PreviewRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> PreviewResponse:
    """Render a template with sample applicant data."""
    try:
        return await service.preview_template(db, user, template_id, data.sample_data)
    except TemplateServiceError as e:
        raise _service_error(e) from e


@router.post("/send-bulk", response_model=BulkSendResponse)
async def send_bulk(
    data: BulkSendRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> BulkSendResponse:
    """
    Send a template to selected applications.

    Messages go out one at a time with a short pause between them. A failed
    recipient is reported in the results and does not stop the batch.
    """
    try:
        return await service.send_bulk(db, user, data)
    except TemplateServiceError as e:
        raise _service_error(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error in bulk send: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "INTERNAL_ERROR",
                "message": "An unexpected error occurred. Please try again later.",
            },
        ) from e


@router.get("/history", response_model=EmailHistoryResponse)
async def get_email_history(
    application_id: UUID | None = None,
    template_id: UUID | None = None,
    status_filter: str | None = Query(None, alias="status", pattern="^(sent|failed)$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> EmailHistoryResponse:
    """Email attempts across the current owner's applications, newest first."""
    return await service.get_email_history(
        db,
        user.id,
        application_id=application_id,
        template_id=template_id,
        status=status_filter,
        page=page,
        page_size=page_size,
    )


@router.get("/template-variables", response_model=TemplateVariablesResponse)
async def get_template_variables(
    user: User = Depends(get_current_user),
) -> TemplateVariablesResponse:
    return service.template_variables()


@router.get("/categories", response_model=CategoriesResponse)
async def get_categories(
    user: User = Depends(get_current_user),
) -> CategoriesResponse:
    return service.template_categories()
