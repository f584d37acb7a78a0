"""
Pytest configuration and fixtures for testing.
"""
import os

# Settings are read at import time, so the environment must be set first
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("EVENT_CACHE_TTL_SECONDS", "0")

import pytest
import pytest_asyncio
from typing import AsyncGenerator
from datetime import date, timedelta
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from eventdesk.main import app
from eventdesk.db.session import Base, get_session, enable_sqlite_foreign_keys
from eventdesk.core.security import hash_password, create_user_token
from eventdesk.db.models.user import User, RoleEnum
from eventdesk.db.models.event import Event, EventCustomField


TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", os.environ["DATABASE_URL"])

# Create test engine
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    poolclass=NullPool,  # Disable connection pooling for tests
    echo=False,
)
if TEST_DATABASE_URL.startswith("sqlite"):
    enable_sqlite_foreign_keys(test_engine)

# Create test session factory
TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh database for each test and hand out one session on it.
    """
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    # Drop tables after test for complete isolation
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an async HTTP client for testing API endpoints.
    Overrides the database session dependency.
    """
    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def make_user(
    session: AsyncSession,
    email: str,
    role: RoleEnum = RoleEnum.REGULAR,
    password: str = "Test123!@#",
    first_name: str = "Test",
    last_name: str = "User",
    is_active: bool = True,
) -> User:
    user = User(
        email=email,
        hashed_password=hash_password(password) if password else None,
        first_name=first_name,
        last_name=last_name,
        role=role,
        is_active=is_active,
    )
    session.add(user)
    await session.commit()
    return user


@pytest.fixture
def user_factory(db_session: AsyncSession):
    """Create extra users: ``await user_factory("x@example.com", role=RoleEnum.MANAGER)``."""
    async def factory(email: str, **kwargs) -> User:
        return await make_user(db_session, email, **kwargs)
    return factory


@pytest_asyncio.fixture
async def manager(db_session: AsyncSession) -> User:
    """Create a MANAGER account."""
    return await make_user(db_session, "manager@example.com", RoleEnum.MANAGER, first_name="Mia", last_name="Manager")


@pytest_asyncio.fixture
async def regular_user(db_session: AsyncSession) -> User:
    """Create a REGULAR account."""
    return await make_user(db_session, "alice@example.com", first_name="Alice", last_name="Attendee")


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    return await make_user(db_session, "bob@example.com", first_name="Bob", last_name="Builder")


@pytest.fixture
def manager_token(manager: User) -> str:
    return create_user_token(manager)


@pytest.fixture
def user_token(regular_user: User) -> str:
    return create_user_token(regular_user)


@pytest.fixture
def other_token(other_user: User) -> str:
    return create_user_token(other_user)


@pytest.fixture
def future_date() -> date:
    return date.today() + timedelta(days=7)


@pytest_asyncio.fixture
async def test_event(db_session: AsyncSession, manager: User, future_date: date) -> Event:
    """An active event next week with a required text field, a multiselect and a toggle."""
    event = Event(
        label="Community Picnic",
        description="Food and games in the park",
        start_date=future_date,
        location="Central Park",
        max_capacity=50,
        created_by=manager.id,
    )
    event.custom_fields = [
        EventCustomField(label="Dietary needs", control_type="text", is_required=True, order=0),
        EventCustomField(
            label="Activities", control_type="multiselect", options=["Football", "Frisbee", "Chess"], order=1
        ),
        EventCustomField(label="Bringing a guest", control_type="toggle", options=["Yes", "No"], order=2),
    ]
    db_session.add(event)
    await db_session.commit()
    return event


@pytest.fixture
def field_ids(test_event: Event) -> dict:
    """Custom field ids of ``test_event`` keyed by label."""
    return {f.label: str(f.id) for f in test_event.custom_fields}


@pytest.fixture(autouse=True)
def mock_password_hashing(monkeypatch):
    """
    Replace bcrypt with a fast deterministic context.
    This fixture is autouse, so it applies to all tests automatically.
    """
    class MockPasswordContext:
        """Mock password context that doesn't require bcrypt."""
        def hash(self, password: str) -> str:
            """Mock hash that just prefixes the password."""
            return f"$2b$12$mockedhash{password}"

        def verify(self, plain: str, hashed: str) -> bool:
            """Mock verify that checks if hash matches expected format."""
            expected_hash = f"$2b$12$mockedhash{plain}"
            return hashed == expected_hash

    # Patch the pwd_context in security module
    from eventdesk.core import security
    monkeypatch.setattr(security, "pwd_context", MockPasswordContext())
