"""
Email Template Models

Reusable email templates owned by a form owner, used for bulk messages to
applicants. Deleting a template deactivates it; sent history keeps its id.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import JSON, UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.modules.shared import BaseModel


class TemplateCategory(str, enum.Enum):
    APPROVAL = "approval"
    REJECTION = "rejection"
    SHORTLIST = "shortlist"
    INTERVIEW = "interview"
    FOLLOW_UP = "follow_up"
    GENERAL = "general"


class EmailTemplate(BaseModel):
    """
    Email template with ``{{variable}}`` placeholders in subject and body.

    Names are unique per owner among active templates.
    """

    __tablename__ = "email_templates"

    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    subject: Mapped[str] = mapped_column(String(200), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)

    # [{name, description, default_value}]
    variables: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    category: Mapped[TemplateCategory] = mapped_column(
        Enum(TemplateCategory, name="template_category"),
        nullable=False,
        default=TemplateCategory.GENERAL,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_draft: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Usage statistics
    total_sent: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index(
            "uq_email_templates_owner_active_name",
            "owner_id",
            "name",
            unique=True,
            postgresql_where=text("is_active"),
        ),
        Index("ix_email_templates_owner_category", "owner_id", "category"),
    )

    def __repr__(self) -> str:
        return f"<EmailTemplate(id={self.id}, name={self.name})>"
