"""Integration test fixtures for the BYC assessment API.

Provides an async HTTP client against the real application, backed by a
temporary SQLite database and the synthetic capture device.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from byc.api.app import create_app
from byc.core.config import Settings
from byc.services.interview import manager
from byc.services.storage import database


@pytest.fixture
def app():
    """Create a fresh FastAPI application instance."""
    return create_app()


@pytest.fixture
def settings(tmp_path, monkeypatch):
    """Synthetic capture without countdown, recordings under tmp_path."""
    test_settings = Settings(
        capture_provider="synthetic",
        recordings_dir=str(tmp_path / "recordings"),
        countdown_seconds=0,
    )
    monkeypatch.setattr(manager, "get_settings", lambda: test_settings)
    return test_settings


@pytest.fixture(autouse=True)
async def _reset_session():
    """Ensure no interview session leaks between tests."""
    manager._active_session = None
    manager._last_route = None
    yield
    await manager.end_session()
    manager._last_route = None


@pytest.fixture
async def async_client(app, db_engine, settings):
    """AsyncClient backed by the test engine.

    Injects the test engine into the database module so that all routes
    use the same SQLite database with tables already created.
    """
    database._engine = db_engine
    database._session_factory = None
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    database.reset_engine()
