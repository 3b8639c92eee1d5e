"""Shared test fixtures."""

import os

# Settings require a JWT secret; set it before anything imports config.settings.
os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

from collections.abc import AsyncGenerator, Callable  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from src.main import app  # noqa: E402
from src.sb_common.database import get_db_session  # noqa: E402
from src.sb_gateway.auth.jwt_handler import create_access_token  # noqa: E402
from tests.unit.fakes import FakeSession  # noqa: E402


@pytest.fixture
def db_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
async def client(db_session: FakeSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI endpoints without a database."""

    async def _override_db() -> AsyncGenerator[FakeSession, None]:
        yield db_session

    app.dependency_overrides[get_db_session] = _override_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def auth_header() -> Callable[..., dict[str, str]]:
    """Build a Bearer header for a user id and role."""

    def _make(user_id: str = "listener-1", role: str = "listener") -> dict[str, str]:
        token = create_access_token(user_id, role=role)
        return {"Authorization": f"Bearer {token}"}

    return _make
