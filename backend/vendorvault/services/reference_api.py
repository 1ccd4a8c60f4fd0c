"""
Reference data API client for pre-filling card forms.

This client wraps two public REST APIs:
- PokeAPI: Pokémon species names (https://pokeapi.co/api/v2)
- Pokémon TCG API: set names and card search (https://api.pokemontcg.io/v2)

Neither requires authentication; the TCG API accepts an optional key for
higher rate limits. Errors are raised to the caller, with malformed responses
raised as ValueError; the best-effort policy lives in ReferenceDataService.
"""
from typing import Any, Optional

import httpx

from vendorvault.config import get_settings
from vendorvault.schemas.reference import CardLookup


class PokemonReferenceAPI:
    """
    Async client for PokeAPI and the Pokémon TCG API.
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        """
        Initialize the reference API client.

        Args:
            client: Optional preconfigured HTTP client (tests inject a mock transport)
        """
        self.settings = get_settings()
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client with connection pooling."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.settings.http_timeout_seconds,
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _tcg_headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.settings.pokemontcg_api_key:
            headers["X-Api-Key"] = self.settings.pokemontcg_api_key
        return headers

    # ==================== PokeAPI: Species ====================

    async def get_pokemon_names(self, limit: int = 10000) -> list[str]:
        """
        Fetch every Pokémon species name.

        Args:
            limit: Page size; the default covers the whole list in one request

        Returns:
            Capitalized names, e.g. ["Bulbasaur", "Ivysaur", ...]
        """
        client = await self._get_client()

        response = await client.get(
            f"{self.settings.pokeapi_url}/pokemon",
            params={"limit": limit},
        )
        response.raise_for_status()

        return [name.capitalize() for name in _names(response.json(), "results")]

    # ==================== TCG API: Sets ====================

    async def get_set_names(self) -> list[str]:
        """
        Fetch every expansion set name.

        Returns:
            Set names in API order, e.g. ["Base", "Jungle", ...]
        """
        client = await self._get_client()

        response = await client.get(
            f"{self.settings.pokemontcg_url}/sets",
            headers=self._tcg_headers(),
        )
        response.raise_for_status()

        return _names(response.json(), "data")

    # ==================== TCG API: Cards ====================

    async def search_cards(
        self,
        card_name: str = "",
        pokemon_name: str = "",
        set_name: str = "",
    ) -> Optional[CardLookup]:
        """
        Find the best matching card for the given names.

        Args:
            card_name: Card name as printed
            pokemon_name: Pokémon species name
            set_name: Expansion set name

        Returns:
            CardLookup for the first match, or None if nothing matched
        """
        query = build_card_query(card_name, pokemon_name, set_name)
        if not query:
            return None

        client = await self._get_client()

        response = await client.get(
            f"{self.settings.pokemontcg_url}/cards",
            params={"q": query, "pageSize": 1},
            headers=self._tcg_headers(),
        )
        response.raise_for_status()

        cards = _entries(response.json(), "data")
        if not cards:
            return None
        return parse_card_lookup(cards[0])


def _entries(payload: Any, key: str) -> list[dict[str, Any]]:
    """
    The list of objects under `key` in a JSON response.

    Raises:
        ValueError: If the response is not shaped like a list of objects
    """
    if not isinstance(payload, dict):
        raise ValueError(f"Expected a JSON object, got {type(payload).__name__}")
    entries = payload.get(key, [])
    if not isinstance(entries, list) or not all(isinstance(e, dict) for e in entries):
        raise ValueError(f"Expected a list of objects under {key!r}")
    return entries


def _names(payload: Any, key: str) -> list[str]:
    names = [entry.get("name") for entry in _entries(payload, key)]
    if not all(isinstance(name, str) for name in names):
        raise ValueError(f"Missing or non-text name under {key!r}")
    return names


def build_card_query(card_name: str, pokemon_name: str, set_name: str) -> str:
    """
    Build a TCG API search query from the non-blank inputs.

        >>> build_card_query("Charizard", "", "Base")
        'name:"Charizard" set.name:"Base"'
    """
    terms = []
    for field, value in (
        ("name", card_name),
        ("name", pokemon_name),
        ("set.name", set_name),
    ):
        value = (value or "").strip().replace('"', "")
        if value:
            terms.append(f'{field}:"{value}"')
    return " ".join(terms)


def parse_card_lookup(card: dict[str, Any]) -> Optional[CardLookup]:
    """Extract number and image URLs from a TCG API card object."""
    number = card.get("number")
    if not number:
        return None
    images = card.get("images")
    if not isinstance(images, dict):
        images = {}
    small, large = images.get("small"), images.get("large")
    return CardLookup(
        number=str(number),
        small_image_url=small if isinstance(small, str) else None,
        large_image_url=large if isinstance(large, str) else None,
    )
