"""Authentication router."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import create_access_token, hash_password, verify_password
from app.modules.auth.schemas import LoginRequest, LoginResponse, RegisterRequest, UserResponse
from app.modules.users.models import User
from app.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

router = APIRouter()


def _user_response(user: User) -> UserResponse:
    return UserResponse(
        id=str(user.id),
        email=user.email,
        username=user.username,
        full_name=user.full_name,
        organization_name=user.organization_name,
        is_active=user.is_active,
        created_at=user.created_at.isoformat(),
    )


def _login_response(user: User) -> LoginResponse:
    access_token = create_access_token(
        subject=str(user.id),
        additional_claims={"email": user.email, "username": user.username},
    )
    return LoginResponse(access_token=access_token, token_type="bearer", user=_user_response(user))


@router.post("/register", response_model=LoginResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """
    Register a form owner and return an access token.

    Raises:
        HTTPException 409: Email or username already taken
    """
    email = data.email.strip().lower()

    existing = await UserRepository.get_by_email_or_username(db, email, data.username)
    if existing:
        logger.warning(f"Registration rejected, email or username taken: {email}")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "error": "USER_EXISTS",
                "message": "A user with this email or username already exists.",
            },
        )

    try:
        user = await UserRepository.create(
            db,
            email=email,
            username=data.username,
            password_hash=hash_password(data.password),
            full_name=data.full_name,
            organization_name=data.organization_name,
        )
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.warning(f"Registration race on unique fields for {email}")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "error": "USER_EXISTS",
                "message": "A user with this email or username already exists.",
            },
        ) from e

    logger.info(f"User registered: {user.email}")
    return _login_response(user)


@router.post("/login", response_model=LoginResponse)
async def login(
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """
    Authenticate a form owner and return a JWT access token.

    Raises:
        HTTPException 401: Invalid credentials
        HTTPException 403: Account inactive
    """
    user = await UserRepository.get_by_email(db, credentials.email)

    if not user or not verify_password(credentials.password, user.password_hash):
        logger.warning(f"Failed login for: {credentials.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "INVALID_CREDENTIALS",
                "message": "Invalid email or password.",
            },
        )

    if not user.is_active:
        logger.warning(f"Login attempt for inactive account: {credentials.email}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "ACCOUNT_INACTIVE",
                "message": "Your account has been deactivated.",
            },
        )

    logger.info(f"User logged in: {user.email}")
    return _login_response(user)
