"""
Users Service Layer

Profile and password changes for form owners.
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import hash_password, verify_password
from app.modules.users.models import User
from app.modules.users.repository import UserRepository
from app.modules.users.schemas import PasswordChange, ProfileUpdate

logger = logging.getLogger(__name__)


class UserServiceError(Exception):
    """Base exception for user service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class UsernameTakenError(UserServiceError):
    def __init__(self, username: str):
        super().__init__(
            message=f"The username '{username}' is already taken.",
            error_code="USERNAME_TAKEN",
            status_code=409,
        )


class InvalidCurrentPasswordError(UserServiceError):
    def __init__(self):
        super().__init__(
            message="Current password is incorrect.",
            error_code="INVALID_CURRENT_PASSWORD",
        )


async def update_profile(db: AsyncSession, user: User, data: ProfileUpdate) -> User:
    """
    Update the owner's name, organization or username.

    Raises:
        UsernameTakenError: If another account already uses the new username
    """
    changes = data.model_dump(exclude_unset=True)

    username = changes.get("username")
    if username is not None and username != user.username:
        if await UserRepository.get_by_username(db, username) is not None:
            raise UsernameTakenError(username)

    try:
        user = await UserRepository.update_profile(db, user, **changes)
    except IntegrityError as e:
        await db.rollback()
        if username is None:
            raise
        raise UsernameTakenError(username) from e

    logger.info(f"Profile updated for user {user.id}")
    return user


async def change_password(db: AsyncSession, user: User, data: PasswordChange) -> None:
    """
    Replace the owner's password after checking the current one.

    Raises:
        InvalidCurrentPasswordError: If current_password does not match
    """
    if not verify_password(data.current_password, user.password_hash):
        logger.warning(f"Password change with wrong current password for user {user.id}")
        raise InvalidCurrentPasswordError()

    await UserRepository.update_password(db, user, hash_password(data.new_password))
    logger.info(f"Password changed for user {user.id}")
