"""Shared test fixtures.

Tests run against a throwaway SQLite file database (aiosqlite), so no
database server is needed. The API client overrides get_db and
get_storage_backend, and the SNS publisher is replaced with an AsyncMock
so tests can read the issued verification token. The StatsD client is a
MagicMock so no test sends UDP packets.
"""

from collections.abc import AsyncGenerator
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from catalog_api.core.config import settings
from catalog_api.core.security import hash_password
from catalog_api.models import Base, User
from catalog_api.repositories.user_repository import UserRepository
from catalog_api.storage.local import LocalStorageBackend

API = settings.api_prefix

# Test-only credentials
OWNER_USERNAME = "owner@example.com"
OWNER_PASSWORD = "owner-password-1"  # nosec B105
OTHER_USERNAME = "other@example.com"
OTHER_PASSWORD = "other-password-1"  # nosec B105
UNVERIFIED_USERNAME = "pending@example.com"
UNVERIFIED_PASSWORD = "pending-password-1"  # nosec B105


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch: pytest.MonkeyPatch) -> None:
    """Use the minimum bcrypt cost so password hashing stays fast."""
    monkeypatch.setattr(settings, "bcrypt_rounds", 4)


@pytest.fixture(autouse=True)
def statsd(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    """Replace the StatsD client singleton with a mock."""
    mock = MagicMock()
    monkeypatch.setattr("catalog_api.core.metrics._statsd", mock)
    return mock


@pytest_asyncio.fixture
async def db_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh SQLite database with every table."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'catalog_test.db'}", echo=False
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def storage(tmp_path: Path) -> LocalStorageBackend:
    """Local storage backend rooted in the test's temp directory."""
    return LocalStorageBackend(tmp_path / "uploads")


@pytest.fixture
def publisher(monkeypatch: pytest.MonkeyPatch) -> AsyncMock:
    """Replace the SNS publisher used by the registration endpoint."""
    mock = AsyncMock()
    monkeypatch.setattr(
        "catalog_api.api.v1.users.publish_verification_message", mock
    )
    return mock


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    storage: LocalStorageBackend,
    publisher: AsyncMock,  # noqa: ARG001 - keeps SNS out of API tests
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client with no credentials attached.

    Authenticated calls pass ``auth=(username, password)`` per request.
    """
    from catalog_api.core.database import get_db
    from catalog_api.main import app
    from catalog_api.storage.factory import get_storage_backend

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage_backend] = lambda: storage

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _create_user(
    db: AsyncSession, username: str, password: str, *, verified: bool
) -> User:
    user = await UserRepository.create(
        db,
        username=username,
        password_hash=hash_password(password),
        first_name="Test",
        last_name="User",
    )
    if verified:
        await UserRepository.mark_verified(db, username)
        await db.refresh(user)
    await db.commit()
    return user


@pytest_asyncio.fixture
async def owner(db_session: AsyncSession) -> User:
    """Verified user who creates products in API tests."""
    return await _create_user(
        db_session, OWNER_USERNAME, OWNER_PASSWORD, verified=True
    )


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    """Second verified user, never the owner of anything."""
    return await _create_user(
        db_session, OTHER_USERNAME, OTHER_PASSWORD, verified=True
    )


@pytest_asyncio.fixture
async def unverified_user(db_session: AsyncSession) -> User:
    """Registered user whose email was never verified."""
    return await _create_user(
        db_session, UNVERIFIED_USERNAME, UNVERIFIED_PASSWORD, verified=False
    )


@pytest.fixture
def owner_auth(owner: User) -> tuple[str, str]:
    return (owner.username, OWNER_PASSWORD)


@pytest.fixture
def other_auth(other_user: User) -> tuple[str, str]:
    return (other_user.username, OTHER_PASSWORD)


@pytest.fixture
def unverified_auth(unverified_user: User) -> tuple[str, str]:
    return (unverified_user.username, UNVERIFIED_PASSWORD)


def product_payload(**overrides: object) -> dict[str, object]:
    """Valid product body; keyword arguments replace single fields."""
    payload: dict[str, object] = {
        "name": "Desk Lamp",
        "description": "Adjustable LED desk lamp",
        "sku": "LAMP-001",
        "manufacturer": "Acme",
        "quantity": 10,
    }
    payload.update(overrides)
    return payload


@pytest_asyncio.fixture
async def product(client: AsyncClient, owner_auth: tuple[str, str]) -> dict:
    """Product created through the API by ``owner``."""
    response = await client.post(
        f"{API}/product", json=product_payload(), auth=owner_auth
    )
    assert response.status_code == 201
    return response.json()
