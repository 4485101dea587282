"""
FastAPI dependencies that build services from application state.
"""
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from .auth import get_credential_service
from .config import Settings
from .database import get_db
from ..services.genius import GeniusService
from ..services.tasks import TasksService
from ..services.users import UsersService
from ..utils.security import CredentialService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_users_service(
    db: Session = Depends(get_db),
    credentials: CredentialService = Depends(get_credential_service),
) -> UsersService:
    return UsersService(db, credentials)


def get_tasks_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> TasksService:
    return TasksService(db, quota=settings.task_quota)


def get_genius_service(request: Request) -> GeniusService:
    return request.app.state.genius
