"""
Authentication Dependencies

Validates the bearer token on form-owner endpoints and attaches the
owner's identity to the request. Tokens are issued by the auth module's
login endpoint using the helpers in security.py.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.security import decode_token

logger = logging.getLogger(__name__)

security = HTTPBearer(
    auto_error=True,
    description="JWT Bearer token for form owners",
)


@dataclass
class CurrentOwner:
    """
    Identity of an authenticated form owner, taken from JWT claims.

    Attributes:
        id: Owner's user id
        email: Owner's email address
        username: Owner's username
    """

    id: UUID
    email: str
    username: str

    def __str__(self) -> str:
        return f"CurrentOwner(id={self.id}, email={self.email})"


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def owner_from_token(token: str) -> CurrentOwner:
    """
    Decode a bearer token into a CurrentOwner.

    Raises:
        HTTPException 401: If the token is invalid, expired, not an access
            token, or missing required claims
    """
    payload = decode_token(token)
    if payload is None:
        logger.warning("Invalid or expired JWT token")
        raise _unauthorized("INVALID_TOKEN", "Invalid or expired authentication token.")

    if payload.get("type", "access") != "access":
        logger.warning(f"Invalid token type: {payload.get('type')}")
        raise _unauthorized("INVALID_TOKEN_TYPE", "This endpoint requires an access token.")

    try:
        return CurrentOwner(
            id=UUID(payload["sub"]),
            email=payload.get("email", ""),
            username=payload.get("username", ""),
        )
    except (ValueError, KeyError, TypeError) as e:
        logger.warning(f"Invalid token claims: {e}")
        raise _unauthorized(
            "INVALID_TOKEN_CLAIMS", "Token contains invalid or missing claims."
        ) from e


async def get_current_owner(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentOwner:
    """
    FastAPI dependency returning the token's owner identity.

    Endpoints use users.router.get_current_user, which also loads the
    account and rejects deactivated owners.
    """
    owner = owner_from_token(credentials.credentials)
    logger.debug(f"Authenticated owner: {owner.id}")
    return owner


__all__ = ["CurrentOwner", "get_current_owner", "owner_from_token"]
