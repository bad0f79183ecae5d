"""
Users Router

Profile and form configuration for the authenticated form owner.

Endpoints:
- GET /users/me - Current owner's profile and public form link
- PUT /users/me - Update name, organization or username
- PUT /users/me/password - Change password
- PUT /users/me/form-config - Update the public form configuration
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentOwner, get_current_owner
from app.core.config import settings
from app.core.database import get_db
from app.modules.users import service
from app.modules.users.models import User
from app.modules.users.repository import UserRepository
from app.modules.users.schemas import FormConfigUpdate, PasswordChange, ProfileUpdate, UserProfile
from app.modules.users.service import UserServiceError

logger = logging.getLogger(__name__)

router = APIRouter()


def form_url(user_id) -> str:
    """Public URL of an owner's application form."""
    return f"{settings.frontend_url.rstrip('/')}/form/{user_id}"


async def get_current_user(
    owner: CurrentOwner = Depends(get_current_owner),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Load the authenticated owner's account.

    Raises:
        HTTPException 401: If the account no longer exists
        HTTPException 403: If the account is deactivated
    """
    user = await UserRepository.get_by_id(db, owner.id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "USER_NOT_FOUND", "message": "Account not found."},
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "ACCOUNT_INACTIVE", "message": "Your account has been deactivated."},
        )
    return user


def _service_error(e: UserServiceError) -> HTTPException:
    return HTTPException(
        status_code=e.status_code,
        detail={"error": e.error_code, "message": e.message},
    )


def _profile(user: User) -> UserProfile:
    profile = UserProfile.model_validate(user)
    profile.form_url = form_url(user.id)
    return profile


@router.get("/me", response_model=UserProfile)
async def get_me(user: User = Depends(get_current_user)) -> UserProfile:
    """Return the current owner's profile."""
    return _profile(user)


@router.put("/me/form-config", response_model=UserProfile)
async def update_form_config(
    data: FormConfigUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserProfile:
    """Update the current owner's public form configuration."""
    user = await UserRepository.update_form_config(db, user, **data.model_dump(exclude_unset=True))
    logger.info(f"Form config updated for user {user.id}")
    return _profile(user)


@router.put("/me", response_model=UserProfile)
async def update_me(
    data: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserProfile:
    """Update the current owner's profile."""
    try:
        user = await service.update_profile(db, user, data)
    except UserServiceError as e:
        raise _service_error(e) from e
    return _profile(user)


@router.put("/me/password", status_code=status.HTTP_204_NO_CONTENT)
async def change_password(
    data: PasswordChange,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> None:
    """
    Change the current owner's password.

    Raises:
        HTTPException 400: Current password is incorrect
    """
    try:
        await service.change_password(db, user, data)
    except UserServiceError as e:
        raise _service_error(e) from e
