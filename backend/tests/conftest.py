import socket
import uuid
from collections.abc import AsyncGenerator, Iterator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from cryptography.fernet import Fernet
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from campus_erp.core.config import Settings, settings
from campus_erp.core.rate_limiting import limiter
from campus_erp.models.base import Base
from campus_erp.models.user import Role


def build_test_database_url(s: Settings) -> str:
    """URL of the separate test database; credentials and host are unchanged."""
    return (
        f"postgresql+asyncpg://{s.database_user}:{s.database_password}"
        f"@{s.database_host}:{s.database_port}/{s.database_name}_test"
    )


# Use separate test database
TEST_DATABASE_URL = build_test_database_url(settings)

# Test user / session IDs (consistent across tests for predictable auth)
TEST_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
TEST_SESSION_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")

# Security: This is a test-only secret. Production uses a real secret from env.
TEST_AUTH_SECRET = "test-secret-key-that-is-at-least-32-characters-long"  # nosec B105  # gitleaks:allow


def _is_postgres_available() -> bool:
    """Check if PostgreSQL is accepting connections.

    Returns:
        True if PostgreSQL is reachable on the configured host/port.
    """
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.settimeout(1)
        result = sock.connect_ex((settings.database_host, settings.database_port))
        sock.close()
        return result == 0
    except OSError:
        return False


# Check once at module load time
_POSTGRES_AVAILABLE = _is_postgres_available()


def skip_if_no_postgres() -> None:
    """Skip test if PostgreSQL is not available.

    Called by fixtures that require database connection.
    """
    if not _POSTGRES_AVAILABLE:
        pytest.skip(
            f"PostgreSQL not available on {settings.database_host}:"
            f"{settings.database_port}. Start database with: docker compose up -d"
        )


# =============================================================================
# Global test isolation
# =============================================================================


@pytest.fixture(autouse=True)
def disable_rate_limiting() -> Iterator[None]:
    """Turn the shared slowapi limiter off so request counts don't leak
    between tests. Rate limit tests re-enable it explicitly."""
    original = limiter.enabled
    limiter.enabled = False
    yield
    limiter.enabled = original
    limiter.reset()


@pytest.fixture
def file_token_key(monkeypatch: pytest.MonkeyPatch) -> str:
    """Configure a fresh Fernet key for path tokens."""
    key = Fernet.generate_key().decode()
    monkeypatch.setattr(settings, "file_token_key", SecretStr(key))
    return key


@pytest.fixture
def uploads_root(tmp_path, monkeypatch: pytest.MonkeyPatch):
    """Point UPLOADS_DIR at a temporary directory."""
    root = tmp_path / "uploads"
    root.mkdir()
    monkeypatch.setattr(settings, "uploads_dir", str(root))
    return root


# =============================================================================
# Database fixtures (PostgreSQL)
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create test database engine.

    Skips test if PostgreSQL is not available (e.g., Docker not running).
    """
    skip_if_no_postgres()

    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


# =============================================================================
# API fixtures (no database: get_db and the session lookup are overridden)
# =============================================================================


@pytest.fixture
def mock_db() -> AsyncMock:
    """Stand-in AsyncSession for endpoint tests that patch repositories."""
    return AsyncMock(spec=AsyncSession)


@pytest.fixture
def principal_holder() -> dict:
    """Mutable slot for the principal returned by the session lookup.

    Tests set ``principal_holder["principal"]`` (or use ``login_as``).
    """
    return {"principal": None}


@pytest.fixture
def login_as(principal_holder):
    """Return a callable that makes subsequent requests authenticated."""
    from campus_erp.api.deps import SessionPrincipal

    def _login_as(role: Role = Role.STUDENT) -> SessionPrincipal:
        principal = SessionPrincipal(
            user_id=TEST_USER_ID,
            role=role,
            session_id=TEST_SESSION_ID,
        )
        principal_holder["principal"] = principal
        return principal

    return _login_as


@pytest.fixture
def app(mock_db, principal_holder):
    """Application with get_db and session lookup overridden."""
    from campus_erp.api.deps import get_session_principal
    from campus_erp.core.database import get_db
    from campus_erp.main import create_app

    application = create_app()

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield mock_db

    async def override_get_session_principal():
        return principal_holder["principal"]

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_session_principal] = (
        override_get_session_principal
    )
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for API tests."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
