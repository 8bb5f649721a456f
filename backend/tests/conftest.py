# tests/conftest.py — Shared test fixtures
import os
import uuid
from typing import Optional

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from jose import jwt
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# Use SQLite for tests
TEST_DB_URL = "sqlite+aiosqlite:///./test.db"
os.environ["DATABASE_URL"] = TEST_DB_URL
os.environ["IDENTITY_JWT_SECRET"] = "test-identity-secret-for-unit-tests-only-32"
os.environ["ENVIRONMENT"] = "test"

import auth
from models import Base, User
from database import get_db_session
from main import app


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    engine = create_async_engine(TEST_DB_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine):
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(db_engine):
    """HTTP test client with overridden DB dependency; one session per request"""
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def _make_user(db_session, external_id: str, email: str, name: str) -> User:
    user = User(
        id=str(uuid.uuid4()),
        external_id=external_id,
        email=email,
        name=name,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def test_user(db_session):
    """A synced user"""
    return await _make_user(db_session, "idp|alice", "alice@trackline.dev", "Alice")


@pytest_asyncio.fixture
async def other_user(db_session):
    """A second synced user with no workspaces"""
    return await _make_user(db_session, "idp|bob", "bob@trackline.dev", "Bob")


@pytest_asyncio.fixture
async def workspace(client, test_user):
    """Workspace 'acme' owned by test_user"""
    return await create_workspace(client, test_user)


@pytest_asyncio.fixture
async def statuses(client, workspace):
    resp = await client.get(f"/api/v1/workspaces/{workspace['id']}/statuses")
    return resp.json()


def get_identity_headers(subject: str, email: str = "", name: str = "", picture: Optional[str] = None) -> dict:
    """Headers carrying a provider-signed token for an arbitrary subject"""
    claims = {"sub": subject, "email": email, "name": name}
    if picture:
        claims["picture"] = picture
    token = jwt.encode(claims, auth.SECRET_KEY, algorithm=auth.ALGORITHM)
    return {"Authorization": f"Bearer {token}"}


def get_auth_headers(user: User) -> dict:
    """Generate auth headers for a user"""
    return get_identity_headers(user.external_id, user.email, user.name)


async def create_workspace(client: AsyncClient, user: User, name: str = "Acme", identifier: str = "acme") -> dict:
    resp = await client.post(
        "/api/v1/workspaces",
        json={"name": name, "description": "Test workspace", "identifier": identifier},
        headers=get_auth_headers(user),
    )
    assert resp.status_code == 200, resp.text
    return resp.json()


async def create_issue(client: AsyncClient, user: User, workspace_id: str, status_id: str, **fields) -> dict:
    body = {"title": "Sample issue", "status_id": status_id, "priority": "medium"}
    body.update(fields)
    resp = await client.post(
        f"/api/v1/workspaces/{workspace_id}/issues",
        json=body,
        headers=get_auth_headers(user),
    )
    assert resp.status_code == 200, resp.text
    return resp.json()
