"""Pytest configuration and fixtures for the portal tests.

Every test gets its own in-memory SQLite database, an in-memory project view
cache and a fake billing provider.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import portal.models  # noqa: F401  registers tables
from portal.api import deps
from portal.billing.normalize import normalize_client, normalize_project, to_remote_payload
from portal.core.errors import RemoteNotFoundError, RemoteUnavailableError
from portal.core.security import create_access_token, get_password_hash
from portal.db.session import get_db
from portal.main import app
from portal.models.project import Project
from portal.models.user import User, UserRole
from portal.services.cache import MemoryStore, ProjectViewCache

# One hash for every fixture user keeps bcrypt out of the hot path
PASSWORD = "s3cret-password"
PASSWORD_HASH = get_password_hash(PASSWORD)


class FakeBillingClient:
    """In-memory stand-in for BillingClient that records every call."""

    def __init__(self, projects: Optional[Dict[str, Dict[str, Any]]] = None):
        self.projects = projects or {}
        self.clients = []
        self.unavailable = False
        self.fetches = []
        self.updates = []

    def _check(self):
        if self.unavailable:
            raise RemoteUnavailableError("Billing provider unreachable: connection refused")

    def get_project(self, remote_id: str):
        self.fetches.append(remote_id)
        self._check()
        if remote_id not in self.projects:
            raise RemoteNotFoundError(f"Billing provider has no project {remote_id}")
        return normalize_project(self.projects[remote_id])

    def update_project(self, remote_id: str, fields: Dict[str, Any]):
        self.updates.append((remote_id, dict(fields)))
        self._check()
        if remote_id not in self.projects:
            raise RemoteNotFoundError(f"Billing provider has no project {remote_id}")
        self.projects[remote_id].update(to_remote_payload(fields)["project"])
        return normalize_project(self.projects[remote_id])

    def list_projects(self):
        self._check()
        return [normalize_project(raw) for raw in self.projects.values()]

    def list_clients(self):
        self._check()
        return [normalize_client(raw) for raw in self.clients]


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def billing() -> FakeBillingClient:
    return FakeBillingClient(
        projects={
            "9001": {
                "id": 9001,
                "title": "Website Redesign",
                "description": "New marketing site",
                "complete": False,
                "active": True,
                "due_date": "2025-03-01",
                "budget": 500000,
                "fixed_price": "4500.00",
                "client_id": 77,
            },
        }
    )


@pytest.fixture
def cache() -> ProjectViewCache:
    return ProjectViewCache(MemoryStore())


def make_user(db: Session, username: str, role: UserRole, billing_client_id: str = None) -> User:
    user = User(
        username=username,
        email=username,
        password=PASSWORD_HASH,
        role=role,
        billing_client_id=billing_client_id,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin(db) -> User:
    return make_user(db, "admin@example.com", UserRole.ADMIN)


@pytest.fixture
def customer(db) -> User:
    return make_user(db, "customer@example.com", UserRole.CUSTOMER, billing_client_id="77")


@pytest.fixture
def other_customer(db) -> User:
    return make_user(db, "other@example.com", UserRole.CUSTOMER)


@pytest.fixture
def local_project(db, customer) -> Project:
    project = Project(title="Mobile App", description="iOS and Android", progress=25, client_id=customer.id)
    db.add(project)
    db.commit()
    db.refresh(project)
    return project


@pytest.fixture
def client(db, billing, cache):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[deps.get_billing_client] = lambda: billing
    app.dependency_overrides[deps.get_view_cache] = lambda: cache
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.username)}"}
