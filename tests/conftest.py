"""
Shared test fixtures.

Provides:
- SQLite in-memory database built from the ORM models
- In-memory Redis stand-in (key/value, exists, locks)
- Mock OpenRouter client (bypasses the LLM API)
- FastAPI TestClient with dependency overrides and an auth helper
"""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from src.db.interfaces.postgresql import PostgreSQLDatabase
from src.dependencies import get_database, get_openrouter_client, get_redis
from src.main import app
from src.repositories.users import UsersRepository
from src.services.openrouter.client import OpenRouterClient
from tests.fakes import DEFAULT_MODEL, FakeRedis, make_result


@pytest.fixture
def database():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    db = PostgreSQLDatabase(database_url="sqlite://", engine=engine)
    db.create_tables()
    yield db
    db.teardown()


@pytest.fixture
def db_session(database):
    with database.get_session() as session:
        yield session


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def fake_llm():
    llm = MagicMock(spec=OpenRouterClient)
    llm.default_model = DEFAULT_MODEL
    llm.generate_flashcards.return_value = make_result()
    llm.health_check.return_value = {"status": "healthy", "message": "LLM endpoint reachable", "model_count": 3}
    return llm


@pytest.fixture
def user(db_session):
    # Service tests never verify the password
    return UsersRepository(db_session).create_with_profile(
        email="learner@example.com", password_hash="not-a-real-hash", display_name="Learner"
    )


@pytest.fixture
def other_user(db_session):
    return UsersRepository(db_session).create_with_profile(
        email="someone-else@example.com", password_hash="not-a-real-hash"
    )


@pytest.fixture
def client(database, fake_redis, fake_llm):
    app.dependency_overrides[get_database] = lambda: database
    app.dependency_overrides[get_redis] = lambda: fake_redis
    app.dependency_overrides[get_openrouter_client] = lambda: fake_llm
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def signup(client):
    """Register an account through the API and return its auth headers."""

    def _signup(email: str = "learner@example.com", password: str = "password123", display_name=None):
        payload = {"email": email, "password": password}
        if display_name is not None:
            payload["displayName"] = display_name
        response = client.post("/api/v1/auth/signup", json=payload)
        assert response.status_code == 201, response.text
        body = response.json()
        return {"Authorization": f"Bearer {body['session']['accessToken']}"}, body

    return _signup


@pytest.fixture
def auth_headers(signup):
    headers, _ = signup()
    return headers
