"""Shared test fixtures and configuration for the test suite."""

import sys
from pathlib import Path
from typing import AsyncGenerator, Dict, Generator

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

# Add the parent directory to the path for imports
sys.path.append(str(Path(__file__).parent.parent))

from taskhub.config import Settings
from taskhub.main import create_app
from taskhub.models.user import Identity, Role
from taskhub.security.tokens import TokenVerifier
from taskhub.services.task_service import TaskService
from taskhub.store.group import StoreGroup, create_store_group

TEST_SECRET = "test-secret-key-that-is-long-enough-for-hs256"

SEED_TIMESTAMP = "2024-01-01T00:00:00.000000+00:00"


async def seed_user(store: StoreGroup, user_id: int, role: str = "user") -> None:
    """Insert a user row with a fixed id."""
    await store.conn.execute(
        """
        INSERT INTO users (id, email, password, name, role, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        (user_id, f"user{user_id}@example.com", "unused", f"User {user_id}", role,
         SEED_TIMESTAMP, SEED_TIMESTAMP),
    )
    await store.conn.commit()


async def seed_project(store: StoreGroup, project_id: int, owner_id: int) -> None:
    """Insert a project row with a fixed id."""
    await store.conn.execute(
        """
        INSERT INTO projects (id, name, description, owner_id, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (project_id, f"Project {project_id}", None, owner_id, SEED_TIMESTAMP, SEED_TIMESTAMP),
    )
    await store.conn.commit()


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Create test settings backed by a temporary database."""
    return Settings(
        jwt_secret=TEST_SECRET,
        database_path=tmp_path / "taskhub.db",
        environment="test",
        log_level="DEBUG",
    )


@pytest.fixture
def verifier(test_settings) -> TokenVerifier:
    return TokenVerifier(test_settings)


@pytest_asyncio.fixture
async def store(test_settings) -> AsyncGenerator[StoreGroup, None]:
    """Open a fresh database with users 3 and 7 and projects 5 and 6."""
    group = await create_store_group(test_settings.database_path)
    await seed_user(group, 3)
    await seed_user(group, 7)
    await seed_project(group, 5, owner_id=7)
    await seed_project(group, 6, owner_id=3)
    yield group
    await group.close()


@pytest.fixture
def task_service(store) -> TaskService:
    """Create a task service over the seeded store."""
    return TaskService(store.task_store)


@pytest.fixture
def identity() -> Identity:
    return Identity(id=7, role=Role.USER)


@pytest.fixture
def client(test_settings) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app."""
    app = create_app(test_settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def registered_user(client) -> Dict:
    """Register a user through the API and return the auth response body."""
    response = client.post(
        "/api/auth/register",
        json={"email": "alice@example.com", "password": "secret123", "name": "Alice"},
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def auth_headers(registered_user) -> Dict[str, str]:
    return {"Authorization": f"Bearer {registered_user['token']}"}


@pytest.fixture
def project_id(client, auth_headers) -> int:
    """Create a project through the API and return its id."""
    response = client.post("/api/projects", json={"name": "Website"}, headers=auth_headers)
    assert response.status_code == 201
    return response.json()["project"]["id"]


# Test data fixtures
@pytest.fixture
def sample_task_data(project_id) -> Dict:
    """Sample task payload for the API."""
    return {"title": "Fix bug", "description": "Login page crashes", "projectId": project_id}
