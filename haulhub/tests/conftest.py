"""
Centralized Test Configuration.

Each test gets its own in-memory SQLite database, an in-process Redis stand-in
and an HTTP client wired to the app through dependency overrides.
"""

import pytest
from types import SimpleNamespace
from httpx import AsyncClient, ASGITransport
from sqlalchemy.pool import StaticPool

from haulhub.app.main import app
from haulhub.app.db.session import get_db, Base, build_engine, build_session_factory
from haulhub.app.core.security import get_password_hash
import haulhub.app.core.redis_client as redis_client_module
from haulhub.app.models.enums import AccountStatus, UserRole
from haulhub.app.models.manufacturer import Manufacturer
from haulhub.app.models.user import User
from haulhub.tests.helpers import (
    TEST_PASSWORD, actor_for, auth_headers, create_driver, create_order, create_truck, create_truck_owner
)

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self._closed = False

    async def ping(self):
        if self._closed:
            return False
        return True

    async def get(self, key):
        if self._closed:
            return None
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self._closed:
            return False
        self.store[key] = value
        return True

    async def delete(self, key):
        if self._closed:
            return 0
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def exists(self, key):
        if self._closed:
            return 0
        return 1 if key in self.store else 0

    async def aclose(self):
        self._closed = True
        self.store = {}


@pytest.fixture
async def engine():
    """Fresh database per test."""
    test_engine = build_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def mock_redis():
    return MockRedis()


@pytest.fixture(autouse=True)
def apply_overrides(session_factory, mock_redis, monkeypatch):
    """Point the app at the test database and the in-process Redis."""
    monkeypatch.setattr(redis_client_module, "redis_client", mock_redis)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield
    app.dependency_overrides = {}


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_session(session_factory):
    """Session for fixture data creation and direct service calls."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_user(session_factory):
    """Factory creating users directly in the database."""
    async def _make_user(username, roles, account_status=AccountStatus.APPROVED, email=None, **extra):
        async with session_factory() as session:
            user = User(
                username=username,
                email=email or f"{username}@example.com",
                hashed_password=get_password_hash(TEST_PASSWORD),
                roles=[UserRole(role).value for role in roles],
                account_status=account_status,
                **extra
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user

    return _make_user


@pytest.fixture
async def super_admin(make_user):
    return await make_user("root_admin", [UserRole.SUPER_ADMIN], is_superuser=True)


@pytest.fixture
async def fleet(session_factory, make_user):
    """
    A truck owner with driver D1 (AVAILABLE), truck T1 (ACTIVE) and order
    ORD-1 (PENDING) assigned to them.
    """
    owner_user = await make_user("owner_one", [UserRole.TRUCK_OWNER])
    truck_owner = await create_truck_owner(session_factory, owner_user)
    driver = await create_driver(session_factory, truck_owner.id, name="D1")
    truck = await create_truck(session_factory, truck_owner.id, truck_no="TN01AB1234")
    await create_order(session_factory, "ORD-1", truck_owner_id=truck_owner.id)

    return SimpleNamespace(
        user=owner_user,
        truck_owner=truck_owner,
        driver=driver,
        truck=truck,
        order_id="ORD-1",
        headers=auth_headers(owner_user),
        actor=actor_for(owner_user),
    )


@pytest.fixture
async def manufacturer(session_factory, make_user):
    user = await make_user("maker_one", [UserRole.MANUFACTURER], company_name="Acme Cement")
    async with session_factory() as session:
        profile = Manufacturer(user_id=user.id, company_name="Acme Cement")
        session.add(profile)
        await session.commit()
        await session.refresh(profile)
    return SimpleNamespace(user=user, profile=profile, headers=auth_headers(user))
