"""Pytest configuration and fixtures for backend tests."""

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from app.api.export import get_job_broker
from app.core.database import get_db
from app.core.queue import JobBroker
from app.main import app


@pytest.fixture
def mock_sync_session() -> MagicMock:
    """Create a mock sync Session.

    Stores used by the API run against this through ``AsyncSession.run_sync``.
    """
    session = MagicMock()
    session.get.return_value = None
    session.scalar.return_value = 0
    return session


@pytest.fixture
def mock_db_session(mock_sync_session: MagicMock) -> MagicMock:
    """Create a mock database session.

    Returns a mock AsyncSession that can be used in place of a real database.
    ``run_sync`` calls its function with ``mock_sync_session``.
    """
    session = MagicMock()
    session.add = MagicMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.run_sync = AsyncMock(
        side_effect=lambda fn, *args, **kwargs: fn(mock_sync_session, *args, **kwargs)
    )
    return session


@pytest.fixture
def mock_broker() -> MagicMock:
    """Create a mock job broker.

    Returns a mock that can be used to verify job submission.
    """
    broker = MagicMock(spec=JobBroker)
    broker.submit.side_effect = lambda func, payload, job_id: job_id
    return broker


@pytest.fixture
async def client_with_mock_db(
    mock_db_session: MagicMock,
    mock_broker: MagicMock,
) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client with mocked database and queue.

    This allows testing API endpoints without a real database or Redis connection.
    """

    async def override_get_db():
        yield mock_db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_job_broker] = lambda: mock_broker

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    # Clean up overrides
    app.dependency_overrides.clear()


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client without database mocking.

    Use this for endpoints that don't require database access.
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
