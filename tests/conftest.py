# tests/conftest.py - Shared test fixtures
import os
from datetime import timedelta

import jwt
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# Use SQLite for tests
TEST_DB_URL = "sqlite+aiosqlite:///./test_taskboard.db"
os.environ["DATABASE_URL"] = TEST_DB_URL
os.environ["JWT_SECRET"] = "test-secret-key-for-unit-tests-only-min-32-chars"
os.environ["RATE_LIMIT"] = "10000/minute"

from taskboard.core import config
from taskboard.core.config import AccessSettings
from taskboard.core.database.base import Base, utcnow
from taskboard.core.database.engine import enable_sqlite_foreign_keys, get_db, import_models
from taskboard.features.access.dependencies import get_access_settings
from taskboard.features.access.roles import Role
from taskboard.features.organizations.models import Organization
from taskboard.features.tasks.models import Task
from taskboard.features.users.models import User
from taskboard.main import app

import_models()


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    engine = create_async_engine(TEST_DB_URL, echo=False)
    enable_sqlite_foreign_keys(engine)
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
    """HTTP test client with overridden DB dependency"""
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def strict_scope(client):
    """Run the app with STRICT_ORGANIZATION_SCOPE semantics"""
    app.dependency_overrides[get_access_settings] = lambda: AccessSettings(strict_organization_scope=True)
    yield
    app.dependency_overrides.pop(get_access_settings, None)


async def _add(db_session, instance):
    db_session.add(instance)
    await db_session.commit()
    await db_session.refresh(instance)
    return instance


@pytest_asyncio.fixture
async def hq(db_session):
    """Root organization"""
    return await _add(db_session, Organization(name="HQ"))


@pytest_asyncio.fixture
async def downtown(db_session, hq):
    return await _add(db_session, Organization(name="Downtown", parent_id=hq.id))


@pytest_asyncio.fixture
async def uptown(db_session, hq):
    return await _add(db_session, Organization(name="Uptown", parent_id=hq.id))


@pytest_asyncio.fixture
async def elsewhere(db_session):
    """Unrelated root organization"""
    return await _add(db_session, Organization(name="Elsewhere"))


async def make_user(db_session, email: str, role: Role, organization: Organization | None) -> User:
    user = User(
        email=email,
        first_name=email.split("@")[0].title(),
        last_name="Test",
        role=role,
        organization_id=organization.id if organization else None,
    )
    await _add(db_session, user)
    # Reload so the organization relationship is populated
    await db_session.refresh(user, attribute_names=["organization"])
    return user


@pytest_asyncio.fixture
async def owner(db_session, hq):
    return await make_user(db_session, "owner@example.com", Role.OWNER, hq)


@pytest_asyncio.fixture
async def hq_admin(db_session, hq):
    return await make_user(db_session, "admin@example.com", Role.ADMIN, hq)


@pytest_asyncio.fixture
async def downtown_admin(db_session, downtown):
    return await make_user(db_session, "downtown.admin@example.com", Role.ADMIN, downtown)


@pytest_asyncio.fixture
async def downtown_viewer(db_session, downtown):
    return await make_user(db_session, "downtown.viewer@example.com", Role.VIEWER, downtown)


@pytest_asyncio.fixture
async def uptown_viewer(db_session, uptown):
    return await make_user(db_session, "uptown.viewer@example.com", Role.VIEWER, uptown)


@pytest_asyncio.fixture
async def elsewhere_viewer(db_session, elsewhere):
    return await make_user(db_session, "elsewhere.viewer@example.com", Role.VIEWER, elsewhere)


@pytest_asyncio.fixture
async def orphan(db_session):
    """User without a home organization"""
    return await make_user(db_session, "orphan@example.com", Role.ADMIN, None)


async def make_task(db_session, title: str, organization: Organization, creator: User, **fields) -> Task:
    return await _add(db_session, Task(
        title=title,
        organization_id=organization.id,
        created_by_id=creator.id,
        **fields,
    ))


def get_auth_headers(user: User) -> dict:
    """Generate auth headers for a user"""
    token = jwt.encode(
        {"sub": user.id, "email": user.email, "exp": utcnow() + timedelta(minutes=15)},
        config.JWT_SECRET,
        algorithm=config.JWT_ALGORITHM,
    )
    return {"Authorization": f"Bearer {token}"}
