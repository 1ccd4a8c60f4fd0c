"""
Integration test fixtures.

These tests require actual network access to the public reference APIs.
Mark with @pytest.mark.integration to skip in normal test runs.
"""
import os
import socket

import pytest


@pytest.fixture
def live_pokeapi_url():
    """Get base URL for live PokeAPI tests."""
    return os.getenv("POKEAPI_URL", "https://pokeapi.co/api/v2")


@pytest.fixture
def live_pokemontcg_url():
    """Get base URL for live Pokémon TCG API tests."""
    return os.getenv("POKEMONTCG_URL", "https://api.pokemontcg.io/v2")


@pytest.fixture
def skip_if_no_network():
    """Skip test if no network access."""
    for host in ("pokeapi.co", "api.pokemontcg.io"):
        try:
            socket.create_connection((host, 443), timeout=5).close()
        except OSError:
            pytest.skip(f"No network access to {host}")
