"""Email template schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.modules.email_templates.models import TemplateCategory


class TemplateVariable(BaseModel):
    name: str = Field(..., min_length=1, max_length=50, pattern=r"^\w+$")
    description: str | None = Field(None, max_length=200)
    default_value: str = ""


class TemplateCreate(BaseModel):
    """Request body for POST /email/templates."""

    name: str = Field(..., min_length=1, max_length=100)
    subject: str = Field(..., min_length=1, max_length=200)
    body: str = Field(..., min_length=1, max_length=10000)
    variables: list[TemplateVariable] = Field(default_factory=list)
    category: TemplateCategory = TemplateCategory.GENERAL
    is_draft: bool = False


class TemplateUpdate(BaseModel):
    """Request body for PUT /email/templates/{id}. Omitted fields are unchanged."""

    name: str | None = Field(None, min_length=1, max_length=100)
    subject: str | None = Field(None, min_length=1, max_length=200)
    body: str | None = Field(None, min_length=1, max_length=10000)
    variables: list[TemplateVariable] | None = None
    category: TemplateCategory | None = None
    is_draft: bool | None = None


class TemplateDuplicateRequest(BaseModel):
    new_name: str | None = Field(None, min_length=1, max_length=100)


class TemplateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    subject: str
    body: str
    variables: list[TemplateVariable]
    category: TemplateCategory
    is_draft: bool
    total_sent: int
    last_used_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class TemplateListResponse(BaseModel):
    items: list[TemplateResponse]
    total: int
    page: int
    page_size: int
    category_counts: dict[str, int]


class PreviewRequest(BaseModel):
    sample_data: dict[str, str] = Field(default_factory=dict)


class AvailableVariable(BaseModel):
    name: str
    description: str | None = None
    syntax: str


class PreviewResponse(BaseModel):
    subject: str
    body: str
    variables: dict[str, str]
    available_variables: list[AvailableVariable]


class BulkSendRequest(BaseModel):
    """Request body for POST /email/send-bulk."""

    template_id: UUID
    application_ids: list[UUID] = Field(..., min_length=1, max_length=500)
    custom_variables: dict[str, str] = Field(default_factory=dict)


class BulkSendItem(BaseModel):
    application_id: UUID
    reference: str
    email: str
    name: str
    status: str
    message_id: str | None = None
    error: str | None = None
    attempted_at: datetime


class BulkSendSummary(BaseModel):
    total: int
    sent: int
    failed: int


class BulkSendResponse(BaseModel):
    message: str
    summary: BulkSendSummary
    results: list[BulkSendItem]
    template_id: UUID
    template_name: str


class EmailHistoryEntry(BaseModel):
    """One recorded email attempt to an applicant."""

    application_id: UUID
    reference: str
    name: str
    email: str
    template_id: UUID | None = None
    template_name: str | None = None
    subject: str | None = None
    status: str
    message_id: str | None = None
    error: str | None = None
    sent_at: datetime


class EmailHistoryResponse(BaseModel):
    items: list[EmailHistoryEntry]
    total: int
    page: int
    page_size: int
    pages: int


class VariableInfo(BaseModel):
    name: str
    description: str
    example: str
    syntax: str


class VariableUsage(BaseModel):
    syntax: str
    example: str


class TemplateVariablesResponse(BaseModel):
    """Variables every bulk send fills in."""

    variables: list[VariableInfo]
    usage: VariableUsage


class CategoryInfo(BaseModel):
    value: TemplateCategory
    label: str
    description: str


class CategoriesResponse(BaseModel):
    categories: list[CategoryInfo]
