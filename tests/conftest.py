"""
Pytest fixtures for the fake API server, the client and notifications.

Each test gets a fresh in-memory server and a client mounted on it through
httpx's ASGITransport, so no network is involved.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport

from eventspark.core.config import Settings
from eventspark.infrastructure.api_client import TicketingApiClient
from eventspark.infrastructure.token_store import TokenStore
from eventspark.services.interfaces import CollectingNotifier

from fake_api import FakeTicketingServer


@pytest.fixture
def server() -> FakeTicketingServer:
    return FakeTicketingServer()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        API_URL="http://test",
        REQUEST_TIMEOUT=5.0,
        REFRESH_INTERVAL_SECONDS=30.0,
        TOKEN_PATH=tmp_path / "token",
    )


@pytest.fixture
def token_store(settings: Settings) -> TokenStore:
    """Token store already holding a session token."""
    store = TokenStore(settings.TOKEN_PATH)
    store.save("test-token")
    return store


@pytest_asyncio.fixture
async def api(server, settings, token_store) -> AsyncGenerator[TicketingApiClient, None]:
    client = TicketingApiClient(settings, token_store, transport=ASGITransport(app=server.app))
    yield client
    await client.aclose()


@pytest.fixture
def notifier() -> CollectingNotifier:
    return CollectingNotifier()
