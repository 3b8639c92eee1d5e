"""Integration-test fixtures (requires a migrated PostgreSQL).

Pre-condition: alembic upgrade head, then run with SB_INTEGRATION=1.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool remains valid across the entire test session.
"""

import os

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.main import app


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if os.environ.get("SB_INTEGRATION") == "1":
        return
    skip = pytest.mark.skip(reason="set SB_INTEGRATION=1 to run against PostgreSQL")
    for item in items:
        if "integration" in item.nodeid:
            item.add_marker(skip)


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client — keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
