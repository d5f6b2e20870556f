import os
import sys
from functools import lru_cache
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATA_DIR", str(ROOT / ".tmp" / "data"))
os.environ.setdefault("UPLOADS_DIR", str(ROOT / ".tmp" / "uploads"))

from tracker.api import deps
from tracker.db.repository import Repository
from tracker.db.store import InMemoryStore
from tracker.main import app
from tracker.models import Project, User, UserRole
from tracker.services import auth as auth_service
from tracker.services import projects as project_service
from tracker.services.security import hash_password

TEST_PASSWORD = "Secret123!"


@lru_cache
def _password_hash() -> str:
    return hash_password(TEST_PASSWORD)


@pytest.fixture(scope="function")
def repo(tmp_path):
    return Repository(InMemoryStore(), tmp_path / "uploads")


@pytest.fixture(scope="function")
def client(repo):
    app.dependency_overrides[deps.get_repository] = lambda: repo
    yield TestClient(app)
    app.dependency_overrides.pop(deps.get_repository, None)


@pytest.fixture
def make_user(repo):
    def _make(role: UserRole = UserRole.developer, email: str | None = None) -> User:
        count = len(repo.load(User))
        user = User(
            email=email or f"{role.value}{count}@example.com",
            password_hash=_password_hash(),
            role=role,
        )
        return repo.add(user)

    return _make


@pytest.fixture
def auth_headers(repo):
    def _headers(user: User) -> dict[str, str]:
        token = auth_service.create_session(repo, user)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def admin(make_user) -> User:
    return make_user(UserRole.admin)


@pytest.fixture
def manager(make_user) -> User:
    return make_user(UserRole.project_manager)


@pytest.fixture
def developer(make_user) -> User:
    return make_user(UserRole.developer)


@pytest.fixture
def viewer(make_user) -> User:
    return make_user(UserRole.viewer)


@pytest.fixture
def project(repo, manager) -> Project:
    return project_service.create_project(repo, manager, name="Alpha", key="alp")
