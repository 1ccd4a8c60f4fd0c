"""
Best-effort reference data for card forms.

Provides:
- Species and set name lists, fetched once and cached for the session
- Case-insensitive suggestions for autocompletion
- Debounced card lookups that fill in set number and image URL

A failed or empty lookup only leaves a field unfilled; it never fails the
form operation around it.
"""
import logging
from typing import Callable, Optional

import httpx

from vendorvault.config import get_settings
from vendorvault.core.debounce import Debouncer
from vendorvault.schemas.card import CardFormInput
from vendorvault.schemas.reference import CardLookup
from vendorvault.services.reference_api import PokemonReferenceAPI

logger = logging.getLogger(__name__)

# Upper bound on suggestions handed to an autocomplete list
MAX_SUGGESTIONS = 20


class ReferenceDataService:
    """Cached, failure-tolerant access to the reference APIs."""

    def __init__(
        self,
        api: Optional[PokemonReferenceAPI] = None,
        debounce_seconds: Optional[float] = None,
    ):
        """Initialize with an API client and the lookup debounce delay."""
        if debounce_seconds is None:
            debounce_seconds = get_settings().lookup_debounce_seconds
        self.api = api or PokemonReferenceAPI()
        self._pokemon_names: list[str] = []
        self._set_names: list[str] = []
        self._debouncer = Debouncer(debounce_seconds)

    async def close(self) -> None:
        self._debouncer.cancel()
        await self.api.close()

    # ==================== Name Lists ====================

    async def get_pokemon_names(self) -> list[str]:
        """Species names; an empty list if the API is unavailable."""
        if not self._pokemon_names:
            try:
                self._pokemon_names = await self.api.get_pokemon_names()
            except (httpx.HTTPError, ValueError, KeyError) as e:
                logger.warning(f"Pokémon name list unavailable: {e}")
                return []
        return list(self._pokemon_names)

    async def get_set_names(self) -> list[str]:
        """Set names; an empty list if the API is unavailable."""
        if not self._set_names:
            try:
                self._set_names = await self.api.get_set_names()
            except (httpx.HTTPError, ValueError, KeyError) as e:
                logger.warning(f"Set name list unavailable: {e}")
                return []
        return list(self._set_names)

    async def suggest_pokemon_names(self, text: str) -> list[str]:
        return filter_names(await self.get_pokemon_names(), text)

    async def suggest_set_names(self, text: str) -> list[str]:
        return filter_names(await self.get_set_names(), text)

    # ==================== Card Lookup ====================

    async def lookup_card(
        self,
        card_name: str = "",
        pokemon_name: str = "",
        set_name: str = "",
    ) -> Optional[CardLookup]:
        """First matching card, or None when nothing matched or the API failed."""
        if not any((v or "").strip() for v in (card_name, pokemon_name, set_name)):
            return None
        try:
            return await self.api.search_cards(card_name, pokemon_name, set_name)
        except (httpx.HTTPError, ValueError, KeyError) as e:
            logger.warning(f"Card lookup failed for {pokemon_name!r} in {set_name!r}: {e}")
            return None

    async def enrich(self, form: CardFormInput) -> CardFormInput:
        """
        Fill in set number and image URL from a card lookup.

        Fields the user already filled in are kept. Returns a copy; the form
        is returned unchanged if the lookup finds nothing.
        """
        lookup = await self.lookup_card(form.card_name, form.pokemon_name, form.set_name)
        if lookup is None:
            return form

        update = {}
        if not form.set_number.strip():
            update["set_number"] = lookup.number
        if not form.card_image_url and lookup.image_url:
            update["card_image_url"] = lookup.image_url
        return form.model_copy(update=update)

    def schedule_lookup(
        self,
        callback: Callable[[Optional[CardLookup]], None],
        card_name: str = "",
        pokemon_name: str = "",
        set_name: str = "",
    ) -> None:
        """
        Debounced lookup for forms being edited.

        Each call supersedes the previous one; only the last call in a burst
        reaches the API and its callback.
        """
        self._debouncer.schedule(
            lambda: self.lookup_card(card_name, pokemon_name, set_name),
            callback,
        )

    async def wait_for_lookup(self) -> None:
        """Wait until the pending debounced lookup (if any) has delivered."""
        await self._debouncer.wait()


def filter_names(names: list[str], text: str, limit: int = MAX_SUGGESTIONS) -> list[str]:
    """Names containing `text`, case-insensitively; blank text suggests nothing."""
    needle = (text or "").strip().casefold()
    if not needle:
        return []
    return [name for name in names if needle in name.casefold()][:limit]
