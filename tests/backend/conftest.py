"""
Backend-specific test fixtures and configuration.

These fixtures extend the global fixtures with service instances backed by
the mock databases and mocked reference API clients.
"""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "backend"))


# =============================================================================
# Database Override Fixtures
# =============================================================================

@pytest.fixture
def mock_get_mongo_client(mock_async_mongo_client):
    """
    Override get_mongo_client with the mock client.

    Usage in tests:
        with patch("vendorvault.app.get_mongo_client", mock_get_mongo_client):
            ...
    """
    async def _mock():
        return mock_async_mongo_client
    return _mock


# =============================================================================
# Service Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def card_repository(mock_vault_db, fake_clock):
    """CardRepository on the mock vault database with a deterministic clock."""
    from vendorvault.services.card_repository import CardRepository
    yield CardRepository(mock_vault_db, clock=fake_clock)


@pytest.fixture
def reset_outbox() -> list:
    """Collects (email, token) pairs handed to the reset delivery callback."""
    return []


@pytest_asyncio.fixture
async def auth_service(mock_auth_db, reset_outbox):
    """AuthService on the mock auth database, delivering resets to reset_outbox."""
    from vendorvault.services.auth_service import AuthService

    async def deliver(email: str, token: str) -> None:
        reset_outbox.append((email, token))

    yield AuthService(mock_auth_db, deliver_reset=deliver)


# =============================================================================
# Reference API Fixtures
# =============================================================================

@pytest.fixture
def mock_reference_api():
    """Create a fully mocked PokemonReferenceAPI client."""
    api = MagicMock()
    api.get_pokemon_names = AsyncMock()
    api.get_set_names = AsyncMock()
    api.search_cards = AsyncMock()
    api.close = AsyncMock()
    return api


@pytest.fixture
def mock_transport_client():
    """
    Factory for an httpx.AsyncClient answering from a handler.

    Usage:
        def handler(request): return httpx.Response(200, json={...})
        api = PokemonReferenceAPI(client=mock_transport_client(handler))
    """
    def _make(handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make
