"""
Authentication module for TaskGenius.
Resolves the caller from the bearer token on each request.
"""
import logging
from typing import Optional
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..utils.security import CredentialService

# Configure logging
logger = logging.getLogger(__name__)

# Security scheme
security = HTTPBearer(
    scheme_name="Bearer Token",
    description="JWT Bearer token issued by /auth/login or /auth/register",
    auto_error=False,
)


class CurrentUser:
    """Represents the current authenticated user."""

    def __init__(self, user_id: int, email: str):
        self.user_id = user_id
        self.email = email

    def __str__(self):
        return f"User(id={self.user_id}, email={self.email})"

    def __repr__(self):
        return self.__str__()


def get_credential_service(request: Request) -> CredentialService:
    return request.app.state.credentials


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    credential_service: CredentialService = Depends(get_credential_service),
) -> CurrentUser:
    """
    Dependency to get current authenticated user.

    The user id always comes from the verified token claims.

    Raises:
        HTTPException: If the token is missing, invalid or expired
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    claims = credential_service.decode_token(credentials.credentials)
    if claims is None:
        logger.warning("Token verification failed")
        raise _unauthorized("Invalid or expired token")

    current_user = CurrentUser(user_id=claims.user_id, email=claims.email)
    logger.debug(f"Authenticated user: {current_user}")
    return current_user
