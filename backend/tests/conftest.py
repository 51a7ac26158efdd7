"""Pytest configuration and fixtures."""

import pytest
from unittest.mock import AsyncMock
from httpx import AsyncClient, ASGITransport

from app.main import app
from app.dependencies import get_settings, get_upstream_client
from app.services.config import Settings
from app.services.upstream import UpstreamClient


@pytest.fixture
def upstream():
    """Mocked upstream client; set get_json.return_value / side_effect per test."""
    return AsyncMock(spec=UpstreamClient)


async def _client_with(settings: Settings, upstream):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_upstream_client] = lambda: upstream

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def client(upstream):
    """Test client with an API key configured."""
    async for ac in _client_with(Settings(api_key="test-key"), upstream):
        yield ac


@pytest.fixture
async def unconfigured_client(upstream):
    """Test client without an API key."""
    async for ac in _client_with(Settings(api_key=""), upstream):
        yield ac
