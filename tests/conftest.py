# tests/conftest.py

from __future__ import annotations

from collections.abc import Iterator

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from taskgenius.core.config import Settings
from taskgenius.core.database import create_db_engine, create_session_factory, init_db
from taskgenius.main import create_app
from taskgenius.models.user import User
from taskgenius.services.genius import GeniusService
from taskgenius.services.tasks import TasksService
from taskgenius.services.users import UsersService
from taskgenius.utils.security import CredentialService

from .fakes import FakeGemini


@pytest.fixture()
def settings() -> Settings:
    """Isolated settings: in-memory database, fake Gemini host, small quota for API tests."""
    return Settings(
        database_url="sqlite:///:memory:",
        secret_key="test-secret",
        jwt_issuer="taskgenius-tests",
        jwt_audience="taskgenius-test-clients",
        gemini_base_url="https://gemini.test/v1beta/models/",
        gemini_model="gemini-test:generateContent",
        gemini_api_key="sk-test-key-123",
        gemini_timeout_seconds=5,
    )


@pytest.fixture()
def db(settings: Settings) -> Iterator[Session]:
    engine = create_db_engine(settings.database_url)
    assert init_db(engine)
    session = create_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def credentials(settings: Settings) -> CredentialService:
    return CredentialService(settings)


@pytest.fixture()
def users(db: Session, credentials: CredentialService) -> UsersService:
    return UsersService(db, credentials)


@pytest.fixture()
def tasks(db: Session, settings: Settings) -> TasksService:
    return TasksService(db, quota=settings.task_quota)


@pytest.fixture()
def make_user(db: Session):
    """Insert a user row directly, skipping bcrypt for speed."""
    counter = {"n": 0}

    def _make(name: str = "user") -> User:
        counter["n"] += 1
        user = User(name=name, email=f"{name}{counter['n']}@example.com", password_hash="unused")
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture()
def gemini() -> FakeGemini:
    return FakeGemini()


@pytest.fixture()
def genius(settings: Settings, gemini: FakeGemini) -> GeniusService:
    client = httpx.AsyncClient(transport=httpx.MockTransport(gemini.handler))
    return GeniusService(settings, client=client)


@pytest.fixture()
def client(settings: Settings, gemini: FakeGemini) -> Iterator[TestClient]:
    api_settings = settings.model_copy(update={"task_quota": 3})
    genius_service = GeniusService(
        api_settings,
        client=httpx.AsyncClient(transport=httpx.MockTransport(gemini.handler)),
    )
    app = create_app(api_settings, genius_service=genius_service)
    with TestClient(app) as test_client:
        yield test_client


def register(client: TestClient, name: str, email: str, password: str = "s3cret!") -> dict:
    response = client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": password},
    )
    assert response.status_code == 201, response.text
    return response.json()


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
