"""
Applications Repository

Database operations for job applications. Writes only flush; the service
decides when to commit so it can sequence commits against file storage.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Application, ApplicationStatus

SORT_COLUMNS = {
    "submitted_at": Application.submitted_at,
    "name": Application.name,
    "status": Application.status,
    "rating": Application.rating,
    "priority": Application.priority,
}


async def create(db: AsyncSession, application: Application) -> Application:
    """Add a new application and flush it to obtain defaults."""
    db.add(application)
    await db.flush()
    await db.refresh(application)
    return application


async def get_by_id(db: AsyncSession, id: UUID) -> Application | None:
    """Get application by ID."""
    return await db.get(Application, id)


async def get_for_owner(db: AsyncSession, owner_id: UUID, id: UUID) -> Application | None:
    """Get an application only if it belongs to the owner."""
    result = await db.execute(
        select(Application).where(Application.id == id, Application.owner_id == owner_id)
    )
    return result.scalar_one_or_none()


async def get_many_for_owner(
    db: AsyncSession, owner_id: UUID, ids: list[UUID]
) -> list[Application]:
    """Get the owner's applications among the given IDs, in submission order."""
    if not ids:
        return []
    result = await db.execute(
        select(Application)
        .where(Application.owner_id == owner_id, Application.id.in_(ids))
        .order_by(Application.submitted_at)
    )
    return list(result.scalars().all())


async def exists_recent_by_email(
    db: AsyncSession, owner_id: UUID, email: str, since: datetime
) -> bool:
    """Whether the email already applied to this owner's form since the given time."""
    result = await db.execute(
        select(Application.id)
        .where(
            Application.owner_id == owner_id,
            Application.email == email,
            Application.submitted_at >= since,
        )
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def list_for_owner(
    db: AsyncSession,
    owner_id: UUID,
    *,
    status: ApplicationStatus | None = None,
    priority: str | None = None,
    search: str | None = None,
    sort_by: str = "submitted_at",
    sort_desc: bool = True,
    offset: int = 0,
    limit: int = 20,
) -> tuple[list[Application], int]:
    """
    List an owner's applications with filters and pagination.

    Returns:
        Tuple of (page of applications, total matching count)
    """
    filters = [Application.owner_id == owner_id]
    if status is not None:
        filters.append(Application.status == status)
    if priority is not None:
        filters.append(Application.priority == priority)
    if search:
        pattern = f"%{search.strip()}%"
        filters.append(
            or_(
                Application.name.ilike(pattern),
                Application.email.ilike(pattern),
                Application.reference.ilike(pattern),
                Application.phone.ilike(pattern),
            )
        )

    total = await db.scalar(select(func.count()).select_from(Application).where(*filters))

    column = SORT_COLUMNS.get(sort_by, Application.submitted_at)
    order = column.desc() if sort_desc else column.asc()

    result = await db.execute(
        select(Application).where(*filters).order_by(order).offset(offset).limit(limit)
    )
    return list(result.scalars().all()), total or 0


async def count_by_status(db: AsyncSession, owner_id: UUID) -> dict[str, int]:
    """Count an owner's applications grouped by status."""
    result = await db.execute(
        select(Application.status, func.count())
        .where(Application.owner_id == owner_id)
        .group_by(Application.status)
    )
    return {status.value: count for status, count in result.all()}


async def count_with_documents(db: AsyncSession, owner_id: UUID) -> int:
    total = await db.scalar(
        select(func.count())
        .select_from(Application)
        .where(Application.owner_id == owner_id, Application.document_filename.is_not(None))
    )
    return total or 0


async def count_since(db: AsyncSession, owner_id: UUID, since: datetime) -> int:
    total = await db.scalar(
        select(func.count())
        .select_from(Application)
        .where(Application.owner_id == owner_id, Application.submitted_at >= since)
    )
    return total or 0


async def list_with_email_history(
    db: AsyncSession, owner_id: UUID, application_id: UUID | None = None
) -> list[Application]:
    """Get the owner's applications that have at least one email attempt recorded."""
    filters = [
        Application.owner_id == owner_id,
        func.json_array_length(Application.email_history) > 0,
    ]
    if application_id is not None:
        filters.append(Application.id == application_id)
    result = await db.execute(select(Application).where(*filters))
    return list(result.scalars().all())


def append_email_history(application: Application, entry: dict) -> None:
    """Append an email attempt to the application's history."""
    # Reassign so the JSON column is marked dirty
    application.email_history = [*(application.email_history or []), entry]


async def delete(db: AsyncSession, application: Application) -> None:
    """Delete an application."""
    await db.delete(application)
    await db.flush()
