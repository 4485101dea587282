from fastapi import APIRouter, Depends, status

from ..core.auth import CurrentUser, get_current_user
from ..core.dependencies import get_users_service
from ..schemas.user import UserOut, UserUpdate
from ..services.users import UsersService

router = APIRouter()


@router.get("/me", response_model=UserOut)
def get_me(
    current_user: CurrentUser = Depends(get_current_user),
    users: UsersService = Depends(get_users_service),
):
    """Get the caller's profile"""
    return users.get_by_id(current_user.user_id)


@router.put("/me", response_model=UserOut)
def update_me(
    user_update: UserUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    users: UsersService = Depends(get_users_service),
):
    """Update the caller's name, email or password"""
    return users.update(
        current_user.user_id,
        name=user_update.name,
        email=user_update.email,
        password=user_update.password,
    )


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
def delete_me(
    current_user: CurrentUser = Depends(get_current_user),
    users: UsersService = Depends(get_users_service),
):
    """Delete the caller together with all of their tasks"""
    users.delete(current_user.user_id)
