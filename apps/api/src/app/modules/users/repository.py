"""
User Repository

Database operations for form owner accounts.
"""

import logging
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.users.models import User

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        email: str,
        username: str,
        password_hash: str,
        full_name: str | None = None,
        organization_name: str | None = None,
    ) -> User:
        """
        Create a new user record.

        Args:
            db: Database session
            email: User's email address (unique, lowercased by the caller)
            username: User's username (unique)
            password_hash: Hashed password
            full_name: Display name (optional)
            organization_name: Organization shown on the public form (optional)

        Returns:
            Created User instance
        """
        user = User(
            email=email,
            username=username,
            password_hash=password_hash,
            full_name=full_name,
            organization_name=organization_name,
        )

        db.add(user)
        await db.flush()
        await db.refresh(user)

        logger.info(f"Created user: {user.id} - {user.email}")
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: str | UUID) -> User | None:
        """Get a user by ID."""
        if isinstance(user_id, str):
            try:
                user_id = UUID(user_id)
            except ValueError:
                return None
        return await db.get(User, user_id)

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> User | None:
        """Get a user by email address."""
        result = await db.execute(select(User).where(User.email == email.strip().lower()))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_email_or_username(
        db: AsyncSession, email: str, username: str
    ) -> User | None:
        """
        Find a user whose email or username collides with the given values.

        Used to reject duplicate registrations.
        """
        result = await db.execute(
            select(User).where(
                or_(User.email == email.strip().lower(), User.username == username)
            )
        )
        return result.scalars().first()

    @staticmethod
    async def get_by_username(db: AsyncSession, username: str) -> User | None:
        result = await db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    @staticmethod
    async def update_form_config(
        db: AsyncSession,
        user: User,
        *,
        form_title: str | None = None,
        form_description: str | None = None,
        form_is_active: bool | None = None,
        accepting_applications: bool | None = None,
    ) -> User:
        """Update the owner's form configuration. None leaves a field unchanged."""
        if form_title is not None:
            user.form_title = form_title
        if form_description is not None:
            user.form_description = form_description
        if form_is_active is not None:
            user.form_is_active = form_is_active
        if accepting_applications is not None:
            user.accepting_applications = accepting_applications

        await db.commit()
        await db.refresh(user)
        return user

    @staticmethod
    async def update_profile(
        db: AsyncSession,
        user: User,
        *,
        username: str | None = None,
        full_name: str | None = None,
        organization_name: str | None = None,
    ) -> User:
        """Update profile fields. None leaves a field unchanged."""
        if username is not None:
            user.username = username
        if full_name is not None:
            user.full_name = full_name
        if organization_name is not None:
            user.organization_name = organization_name

        await db.commit()
        await db.refresh(user)
        return user

    @staticmethod
    async def update_password(db: AsyncSession, user: User, password_hash: str) -> None:
        user.password_hash = password_hash
        await db.commit()
