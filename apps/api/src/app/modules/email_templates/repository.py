"""
Email Template Repository

Database operations for email templates. Only active templates are visible;
deleted templates stay in the table with is_active = false.
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.email_templates.models import EmailTemplate, TemplateCategory


class EmailTemplateRepository:
    """Repository for email template database operations."""

    @staticmethod
    async def create(db: AsyncSession, template: EmailTemplate) -> EmailTemplate:
        db.add(template)
        await db.flush()
        await db.refresh(template)
        return template

    @staticmethod
    async def get_active(db: AsyncSession, owner_id: UUID, template_id: UUID) -> EmailTemplate | None:
        """Get one of the owner's active templates."""
        result = await db.execute(
            select(EmailTemplate).where(
                EmailTemplate.id == template_id,
                EmailTemplate.owner_id == owner_id,
                EmailTemplate.is_active.is_(True),
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def name_taken(
        db: AsyncSession, owner_id: UUID, name: str, exclude_id: UUID | None = None
    ) -> bool:
        """Whether an active template of the owner already uses the name."""
        query = select(EmailTemplate.id).where(
            EmailTemplate.owner_id == owner_id,
            EmailTemplate.name == name,
            EmailTemplate.is_active.is_(True),
        )
        if exclude_id is not None:
            query = query.where(EmailTemplate.id != exclude_id)
        result = await db.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def list_active(
        db: AsyncSession,
        owner_id: UUID,
        *,
        category: TemplateCategory | None = None,
        include_drafts: bool = True,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[EmailTemplate], int]:
        """
        List the owner's active templates, most recently updated first.

        Returns:
            Tuple of (page of templates, total matching count)
        """
        filters = [EmailTemplate.owner_id == owner_id, EmailTemplate.is_active.is_(True)]
        if category is not None:
            filters.append(EmailTemplate.category == category)
        if not include_drafts:
            filters.append(EmailTemplate.is_draft.is_(False))

        total = await db.scalar(select(func.count()).select_from(EmailTemplate).where(*filters))
        result = await db.execute(
            select(EmailTemplate)
            .where(*filters)
            .order_by(EmailTemplate.updated_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    @staticmethod
    async def count_by_category(db: AsyncSession, owner_id: UUID) -> dict[str, int]:
        result = await db.execute(
            select(EmailTemplate.category, func.count())
            .where(EmailTemplate.owner_id == owner_id, EmailTemplate.is_active.is_(True))
            .group_by(EmailTemplate.category)
        )
        return {category.value: count for category, count in result.all()}
