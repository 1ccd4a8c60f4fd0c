"""
Global test fixtures for VendorVault.

This module provides shared fixtures for all tests including:
- Mock MongoDB (mongomock-motor)
- Signed-in and anonymous user contexts
- Card form factories
- A deterministic clock for date_added
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import pytest_asyncio

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))


# =============================================================================
# MongoDB Fixtures (mongomock-motor)
# =============================================================================

@pytest_asyncio.fixture
async def mock_async_mongo_client():
    """
    Create an async mock MongoDB client using mongomock-motor.

    This provides an in-memory MongoDB that behaves like the real thing
    for testing purposes.
    """
    try:
        from mongomock_motor import AsyncMongoMockClient
        client = AsyncMongoMockClient()
        yield client
        client.close()
    except ImportError:
        pytest.skip("mongomock-motor not installed")


@pytest_asyncio.fixture
async def mock_auth_db(mock_async_mongo_client):
    """Provide mock auth_db database."""
    db = mock_async_mongo_client["auth_db"]
    # Create indexes like the real app
    await db.users.create_index("email", unique=True)
    await db.revoked_tokens.create_index("jti", unique=True)
    yield db


@pytest_asyncio.fixture
async def mock_vault_db(mock_async_mongo_client):
    """Provide mock vault_db database."""
    db = mock_async_mongo_client["vault_db"]
    await db.cards.create_index([("user_id", 1), ("dateAdded", -1)])
    await db.cards.create_index([("user_id", 1), ("pokemonNameKey", 1)])
    yield db


# =============================================================================
# User Fixtures
# =============================================================================

@pytest.fixture
def test_user_data() -> dict:
    """Basic test user data for registration."""
    return {
        "email": "vendor@cardshop.com",
        "password": "SecurePassword123!",
        "password_confirm": "SecurePassword123!",
    }


@pytest.fixture
def user_context():
    """A signed-in session."""
    from vendorvault.models.user import UserContext
    return UserContext(user_id="507f1f77bcf86cd799439011", email="vendor@cardshop.com")


@pytest.fixture
def other_user_context():
    """A second signed-in session, for isolation checks."""
    from vendorvault.models.user import UserContext
    return UserContext(user_id="507f1f77bcf86cd799439099", email="rival@cardshop.com")


@pytest.fixture
def anonymous_context():
    """A signed-out session."""
    from vendorvault.models.user import UserContext
    return UserContext.anonymous()


# =============================================================================
# Card Fixtures
# =============================================================================

@pytest.fixture
def card_form():
    """
    Factory for card forms with sensible defaults.

    Usage:
        def test_something(card_form):
            form = card_form(pokemon_name="Pikachu", acquisition_price="3.50")
    """
    from vendorvault.schemas.card import CardFormInput

    def _make(**overrides) -> CardFormInput:
        data = {
            "card_name": "Charizard",
            "pokemon_name": "Charizard",
            "set_name": "Base",
            "set_number": "4",
            "condition": "Near Mint",
            "language": "English",
            "item_type": "Raw",
            "acquisition_price": "12.50",
        }
        data.update(overrides)
        return CardFormInput(**data)

    return _make


class FakeClock:
    """Clock that advances one second per reading."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current


@pytest.fixture
def fake_clock() -> FakeClock:
    """Deterministic, millisecond-aligned clock starting 2025-07-20T12:00:00Z."""
    return FakeClock(datetime(2025, 7, 20, 12, 0, 0, tzinfo=timezone.utc))


# =============================================================================
# Settings Fixtures
# =============================================================================

@pytest.fixture
def fresh_settings():
    """
    Clear the cached settings before and after a test.

    Use together with monkeypatch.setenv to test environment overrides.
    """
    from vendorvault.config import get_settings
    get_settings.cache_clear()
    yield get_settings
    get_settings.cache_clear()
