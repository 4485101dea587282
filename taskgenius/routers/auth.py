import logging
from fastapi import APIRouter, Depends, status

from ..core.auth import get_credential_service
from ..core.dependencies import get_users_service
from ..models.user import User
from ..schemas.user import AuthResponse, LoginRequest, RegisterRequest
from ..services.users import UsersService
from ..utils.security import CredentialService

logger = logging.getLogger(__name__)

router = APIRouter()


def _auth_response(user: User, credentials: CredentialService) -> AuthResponse:
    issued = credentials.issue_token(user.id, user.email)
    return AuthResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        created_at=user.created_at,
        token=issued.token,
        expiration=issued.expires_at,
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    user_in: RegisterRequest,
    users: UsersService = Depends(get_users_service),
    credentials: CredentialService = Depends(get_credential_service),
):
    """Register a new user and return a bearer token"""
    user = users.create(user_in.name, user_in.email, user_in.password)
    return _auth_response(user, credentials)


@router.post("/login", response_model=AuthResponse)
def login(
    login_in: LoginRequest,
    users: UsersService = Depends(get_users_service),
    credentials: CredentialService = Depends(get_credential_service),
):
    """Exchange email and password for a bearer token"""
    user = users.authenticate(login_in.email, login_in.password)
    logger.info(f"User {user.id} logged in")
    return _auth_response(user, credentials)
