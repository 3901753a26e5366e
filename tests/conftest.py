"""
Test configuration and fixtures.

Provides:
- Fresh in-memory SQLite database per test
- Organizations and users of every role
- JWT session cookies for authenticated tests
- HTTPX AsyncClient with proper headers
"""
import os
import uuid
from dataclasses import dataclass
from typing import AsyncGenerator, Callable, Generator

# Must be set before the app (and its settings) are imported
os.environ["TESTING"] = "1"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["PASSWORD_HASH_ITERATIONS"] = "1000"
os.environ["GEMINI_API_KEY"] = ""
os.environ["STORAGE_BACKEND"] = "local"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session, sessionmaker

from gensheet.core.deps import COOKIE_NAME, CSRF_HEADER, CSRF_HEADER_VALUE, get_db
from gensheet.core.security import create_session_token, hash_password
from gensheet.db.base import Base
from gensheet.db.enums import Role
from gensheet.db.models import Checkpoint, Checksheet, Organization, User
from gensheet.db.session import build_engine
from gensheet.main import app
from gensheet.schemas.auth import UserSession


TEST_PASSWORD = "correct-horse-battery"


@pytest.fixture(scope="session")
def password() -> str:
    """Plain-text password of every fixture user."""
    return TEST_PASSWORD


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """A session on a brand-new in-memory database."""
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()

    yield session

    session.close()
    engine.dispose()


@pytest.fixture(scope="function")
def test_org(db: Session) -> Organization:
    org = Organization(name="Test Organization", slug=f"test-org-{uuid.uuid4().hex[:8]}")
    db.add(org)
    db.commit()
    return org


@pytest.fixture(scope="function")
def other_org(db: Session) -> Organization:
    org = Organization(name="Other Organization", slug=f"other-org-{uuid.uuid4().hex[:8]}")
    db.add(org)
    db.commit()
    return org


@pytest.fixture(scope="function")
def make_user(db: Session) -> Callable[..., User]:
    """Factory: make_user(Role.SUPERVISOR, org) -> User."""

    def _make(role: Role, org: Organization | None, name: str | None = None) -> User:
        user = User(
            email=f"{role.value.lower()}-{uuid.uuid4().hex[:8]}@gensheet.io",
            name=name or f"{role.value.title()} User",
            password_hash=hash_password(TEST_PASSWORD),
            role=role.value,
            organization_id=org.id if org else None,
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture(scope="function")
def admin(make_user, test_org) -> User:
    return make_user(Role.ADMIN, test_org)


@pytest.fixture(scope="function")
def supervisor(make_user, test_org) -> User:
    return make_user(Role.SUPERVISOR, test_org)


@pytest.fixture(scope="function")
def inspector(make_user, test_org) -> User:
    return make_user(Role.INSPECTOR, test_org)


@pytest.fixture(scope="function")
def viewer(make_user, test_org) -> User:
    return make_user(Role.VIEWER, test_org)


@pytest.fixture(scope="function")
def outsider(make_user, other_org) -> User:
    """An inspector in another organization."""
    return make_user(Role.INSPECTOR, other_org, name="Outsider")


def _session_for(user: User) -> UserSession:
    return UserSession(
        user_id=user.id,
        org_id=user.organization_id,
        role=Role(user.role),
        email=user.email,
        name=user.name,
    )


@pytest.fixture(scope="function")
def session_for() -> Callable[[User], UserSession]:
    """Build the UserSession a request by `user` would carry."""
    return _session_for


@pytest.fixture(scope="function")
def make_checksheet(db: Session) -> Callable[..., Checksheet]:
    """
    Factory: make_checksheet(creator, checkpoints=[{...}], **fields) -> Checksheet.

    Checkpoint dicts take Checkpoint column names; orders follow list position.
    """

    def _make(creator: User, checkpoints: list[dict] | None = None, **fields) -> Checksheet:
        fields.setdefault("title", "Forklift Daily Check")
        fields.setdefault("organization_id", creator.organization_id)
        checksheet = Checksheet(
            creator_id=creator.id,
            tags=fields.pop("tags", []),
            checkpoints=[
                Checkpoint(order=order, **{"config": {}, **cp})
                for order, cp in enumerate(checkpoints or [])
            ],
            **fields,
        )
        db.add(checksheet)
        db.commit()
        return checksheet

    return _make


# =============================================================================
# Auth Fixtures
# =============================================================================

@dataclass
class TestAuth:
    """Test authentication context."""
    user: User
    token: str
    cookie_name: str = COOKIE_NAME


def auth_for(user: User) -> TestAuth:
    token = create_session_token(
        user_id=user.id,
        org_id=user.organization_id,
        role=user.role,
        token_version=user.token_version,
    )
    return TestAuth(user=user, token=token)


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def client_factory(db: Session) -> AsyncGenerator[Callable[..., AsyncClient], None]:
    """
    Factory for AsyncClients sharing the test database.

    client_factory(user) sends that user's session cookie; client_factory()
    is unauthenticated. Every client sends the CSRF header unless csrf=False.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    clients: list[AsyncClient] = []

    def _make(user: User | None = None, csrf: bool = True) -> AsyncClient:
        cookies = {}
        if user is not None:
            auth = auth_for(user)
            cookies[auth.cookie_name] = auth.token
        headers = {CSRF_HEADER: CSRF_HEADER_VALUE} if csrf else {}
        c = AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            cookies=cookies,
            headers=headers,
        )
        clients.append(c)
        return c

    yield _make

    for c in clients:
        await c.aclose()
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client(client_factory) -> AsyncClient:
    """Unauthenticated client for public endpoints."""
    return client_factory()


@pytest.fixture(scope="function")
def admin_client(client_factory, admin) -> AsyncClient:
    return client_factory(admin)


@pytest.fixture(scope="function")
def supervisor_client(client_factory, supervisor) -> AsyncClient:
    return client_factory(supervisor)


@pytest.fixture(scope="function")
def inspector_client(client_factory, inspector) -> AsyncClient:
    return client_factory(inspector)


@pytest.fixture(scope="function")
def viewer_client(client_factory, viewer) -> AsyncClient:
    return client_factory(viewer)


@pytest.fixture(scope="function")
def outsider_client(client_factory, outsider) -> AsyncClient:
    return client_factory(outsider)
