"""
Email Templates Service Layer

Template management and bulk sending for form owners.

Bulk sending renders the template once per selected application, hands the
batch to dispatch_bulk, then records every attempt in the application's
email history and updates the template's usage stats.
"""

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.email import deliver_email
from app.modules.applications import repository as application_repository
from app.modules.applications.models import Application
from app.modules.email_templates.dispatch import OutgoingMessage, SendFunc, dispatch_bulk
from app.modules.email_templates.models import EmailTemplate, TemplateCategory
from app.modules.email_templates.rendering import (
    DEFAULT_VARIABLES,
    STANDARD_VARIABLES,
    USAGE_EXAMPLE,
    clock_variables,
    render,
    syntax_for,
)
from app.modules.email_templates.repository import EmailTemplateRepository
from app.modules.email_templates.schemas import (
    AvailableVariable,
    BulkSendItem,
    BulkSendRequest,
    BulkSendResponse,
    BulkSendSummary,
    CategoriesResponse,
    CategoryInfo,
    EmailHistoryEntry,
    EmailHistoryResponse,
    PreviewResponse,
    TemplateCreate,
    TemplateListResponse,
    TemplateResponse,
    TemplateUpdate,
    TemplateVariablesResponse,
    VariableInfo,
    VariableUsage,
)
from app.modules.users.models import User

logger = logging.getLogger(__name__)


class TemplateServiceError(Exception):
    """Base exception for template service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class TemplateNotFoundError(TemplateServiceError):
    def __init__(self):
        super().__init__(
            message="Template not found",
            error_code="TEMPLATE_NOT_FOUND",
            status_code=404,
        )


class DuplicateTemplateNameError(TemplateServiceError):
    def __init__(self, name: str):
        super().__init__(
            message=f"A template named '{name}' already exists",
            error_code="TEMPLATE_NAME_EXISTS",
            status_code=409,
        )


class NoApplicationsFoundError(TemplateServiceError):
    def __init__(self):
        super().__init__(
            message="No valid applications found",
            error_code="NO_APPLICATIONS_FOUND",
        )


def applicant_variables(application: Application, owner: User) -> dict[str, str]:
    """Standard variables available to every template."""
    return {
        "applicantName": application.name,
        "applicationId": application.reference,
        "email": application.email,
        "phone": application.phone,
        "submissionDate": application.submitted_at.strftime("%d %b %Y"),
        "status": application.status.value,
        "organizationName": owner.display_name,
        "senderName": owner.full_name or owner.username,
        "senderEmail": owner.email,
    }


def sample_variables(owner: User) -> dict[str, str]:
    """Stand-in applicant values used by previews."""
    return {
        "applicantName": "JOHN DOE",
        "applicationId": "RND1234567890123",
        "email": "john.doe@example.com",
        "phone": "9876543210",
        "submissionDate": datetime.now(UTC).strftime("%d %b %Y"),
        "status": "submitted",
        "organizationName": owner.display_name,
        "senderName": owner.full_name or owner.username,
        "senderEmail": owner.email,
    }


async def get_template(db: AsyncSession, owner_id: UUID, template_id: UUID) -> EmailTemplate:
    template = await EmailTemplateRepository.get_active(db, owner_id, template_id)
    if template is None:
        raise TemplateNotFoundError()
    return template


async def create_template(db: AsyncSession, owner_id: UUID, data: TemplateCreate) -> EmailTemplate:
    """
    Create a template.

    Raises:
        DuplicateTemplateNameError: If an active template has the same name
    """
    name = data.name.strip()
    if await EmailTemplateRepository.name_taken(db, owner_id, name):
        raise DuplicateTemplateNameError(name)

    variables = [v.model_dump() for v in data.variables] or [dict(v) for v in DEFAULT_VARIABLES]
    template = await EmailTemplateRepository.create(
        db,
        EmailTemplate(
            owner_id=owner_id,
            name=name,
            subject=data.subject,
            body=data.body,
            variables=variables,
            category=data.category,
            is_draft=data.is_draft,
        ),
    )
    await db.commit()

    logger.info(f"Template created: {template.id} ({template.name}) by {owner_id}")
    return template


async def list_templates(
    db: AsyncSession,
    owner_id: UUID,
    *,
    category: TemplateCategory | None = None,
    include_drafts: bool = True,
    page: int = 1,
    page_size: int = 20,
) -> TemplateListResponse:
    templates, total = await EmailTemplateRepository.list_active(
        db,
        owner_id,
        category=category,
        include_drafts=include_drafts,
        offset=(page - 1) * page_size,
        limit=page_size,
    )
    return TemplateListResponse(
        items=[TemplateResponse.model_validate(t) for t in templates],
        total=total,
        page=page,
        page_size=page_size,
        category_counts=await EmailTemplateRepository.count_by_category(db, owner_id),
    )


async def update_template(
    db: AsyncSession, owner_id: UUID, template_id: UUID, data: TemplateUpdate
) -> EmailTemplate:
    """
    Update a template.

    Raises:
        TemplateNotFoundError, DuplicateTemplateNameError
    """
    template = await get_template(db, owner_id, template_id)
    changes = data.model_dump(exclude_unset=True)

    if changes.get("name") is not None:
        changes["name"] = changes["name"].strip()
        if changes["name"] != template.name and await EmailTemplateRepository.name_taken(
            db, owner_id, changes["name"], exclude_id=template.id
        ):
            raise DuplicateTemplateNameError(changes["name"])

    for field, value in changes.items():
        if value is not None:
            setattr(template, field, value)

    await db.commit()
    await db.refresh(template)
    return template


async def delete_template(db: AsyncSession, owner_id: UUID, template_id: UUID) -> None:
    """Soft-delete a template."""
    template = await get_template(db, owner_id, template_id)
    template.is_active = False
    await db.commit()
    logger.info(f"Template deactivated: {template.id}")


async def duplicate_template(
    db: AsyncSession, owner_id: UUID, template_id: UUID, new_name: str | None = None
) -> EmailTemplate:
    """
    Copy a template as a draft.

    Raises:
        TemplateNotFoundError, DuplicateTemplateNameError
    """
    original = await get_template(db, owner_id, template_id)
    name = (new_name or f"{original.name} (Copy)").strip()
    if await EmailTemplateRepository.name_taken(db, owner_id, name):
        raise DuplicateTemplateNameError(name)

    template = await EmailTemplateRepository.create(
        db,
        EmailTemplate(
            owner_id=owner_id,
            name=name,
            subject=original.subject,
            body=original.body,
            variables=list(original.variables or []),
            category=original.category,
            is_draft=True,
        ),
    )
    await db.commit()
    return template


async def preview_template(
    db: AsyncSession, owner: User, template_id: UUID, sample_data: dict[str, str]
) -> PreviewResponse:
    """Render a template with sample applicant values."""
    template = await get_template(db, owner.id, template_id)

    now = datetime.now(UTC)
    variables = {**clock_variables(now), **sample_variables(owner), **sample_data}
    rendered = render(template.subject, template.body, variables, now)

    return PreviewResponse(
        subject=rendered.subject,
        body=rendered.body,
        variables=variables,
        available_variables=[
            AvailableVariable(
                name=v["name"], description=v.get("description"), syntax=syntax_for(v["name"])
            )
            for v in template.variables or []
        ],
    )


def _deliver(message: OutgoingMessage) -> Awaitable[str]:
    return deliver_email(message.to, message.subject, message.html, reply_to=message.reply_to)


async def send_bulk(
    db: AsyncSession,
    owner: User,
    request: BulkSendRequest,
    send: SendFunc = _deliver,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> BulkSendResponse:
    """
    Send a template to selected applications.

    Every attempt, sent or failed, is appended to the application's email
    history. Usage stats count successful sends only.

    Raises:
        TemplateNotFoundError: If the template is missing or deleted
        NoApplicationsFoundError: If none of the ids belong to the owner
    """
    template = await get_template(db, owner.id, request.template_id)
    applications = await application_repository.get_many_for_owner(
        db, owner.id, request.application_ids
    )
    if not applications:
        raise NoApplicationsFoundError()

    now = datetime.now(UTC)
    by_key: dict[str, Application] = {}
    messages = []
    for application in applications:
        variables = {**applicant_variables(application, owner), **request.custom_variables}
        rendered = render(template.subject, template.body, variables, now)
        key = str(application.id)
        by_key[key] = application
        messages.append(
            OutgoingMessage(
                key=key,
                to=application.email,
                subject=rendered.subject,
                html=rendered.body,
                reply_to=owner.email,
            )
        )

    subjects = {m.key: m.subject for m in messages}
    result = await dispatch_bulk(
        messages, send, delay_seconds=settings.bulk_email_delay_seconds, sleep=sleep
    )

    results = []
    for outcome in result.outcomes:
        application = by_key[outcome.key]
        application_repository.append_email_history(
            application,
            {
                "template_id": str(template.id),
                "template_name": template.name,
                "subject": subjects[outcome.key],
                "status": outcome.status,
                "message_id": outcome.message_id,
                "error": outcome.error,
                "sent_at": outcome.attempted_at.isoformat(),
                "sent_by": str(owner.id),
            },
        )
        results.append(
            BulkSendItem(
                application_id=application.id,
                reference=application.reference,
                email=application.email,
                name=application.name,
                status=outcome.status,
                message_id=outcome.message_id,
                error=outcome.error,
                attempted_at=outcome.attempted_at,
            )
        )

    if result.sent:
        template.total_sent += result.sent
        template.last_used_at = datetime.now(UTC)
    await db.commit()

    logger.info(
        f"Bulk send with template {template.id}: {result.sent}/{result.total} sent by {owner.id}"
    )

    return BulkSendResponse(
        message=f"Bulk email sending completed. {result.sent} sent, {result.failed} failed.",
        summary=BulkSendSummary(**result.summary()),
        results=results,
        template_id=template.id,
        template_name=template.name,
    )


async def get_email_history(
    db: AsyncSession,
    owner_id: UUID,
    *,
    application_id: UUID | None = None,
    template_id: UUID | None = None,
    status: str | None = None,
    page: int = 1,
    page_size: int = 20,
) -> EmailHistoryResponse:
    """
    Email attempts across the owner's applications, newest first.

    Filters narrow by application, by template and by attempt status.
    """
    applications = await application_repository.list_with_email_history(
        db, owner_id, application_id
    )

    entries = []
    for application in applications:
        for record in application.email_history or []:
            if template_id is not None and record.get("template_id") != str(template_id):
                continue
            if status is not None and record.get("status") != status:
                continue
            entries.append(
                EmailHistoryEntry(
                    application_id=application.id,
                    reference=application.reference,
                    name=application.name,
                    email=application.email,
                    template_id=record.get("template_id"),
                    template_name=record.get("template_name"),
                    subject=record.get("subject"),
                    status=record["status"],
                    message_id=record.get("message_id"),
                    error=record.get("error"),
                    sent_at=record["sent_at"],
                )
            )

    entries.sort(key=lambda e: e.sent_at, reverse=True)
    total = len(entries)
    start = (page - 1) * page_size
    return EmailHistoryResponse(
        items=entries[start : start + page_size],
        total=total,
        page=page,
        page_size=page_size,
        pages=math.ceil(total / page_size) if total else 0,
    )


def template_variables() -> TemplateVariablesResponse:
    """Variables every bulk send fills in, with examples."""
    return TemplateVariablesResponse(
        variables=[VariableInfo(**v, syntax=syntax_for(v["name"])) for v in STANDARD_VARIABLES],
        usage=VariableUsage(syntax=syntax_for("variableName"), example=USAGE_EXAMPLE),
    )


CATEGORY_DETAILS = {
    TemplateCategory.GENERAL: ("General", "General purpose templates"),
    TemplateCategory.APPROVAL: ("Approval", "Templates for approved applications"),
    TemplateCategory.REJECTION: ("Rejection", "Templates for rejected applications"),
    TemplateCategory.SHORTLIST: ("Shortlisted", "Templates for shortlisted candidates"),
    TemplateCategory.INTERVIEW: ("Interview", "Templates for interview scheduling"),
    TemplateCategory.FOLLOW_UP: ("Follow-up", "Templates for follow-up communications"),
}


def template_categories() -> CategoriesResponse:
    return CategoriesResponse(
        categories=[
            CategoryInfo(value=category, label=label, description=description)
            for category, (label, description) in CATEGORY_DETAILS.items()
        ]
    )
