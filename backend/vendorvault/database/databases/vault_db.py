"""
Vault database configuration.
Stores catalogued cards and per-user cost aggregates.

Structure:
- cards: One document per catalogued card, owned by user_id (flat layout)
- user_totals: One aggregate document per user, keyed by user id
"""

DB_NAME = "vault_db"


class Collections:
    """Collection names in vault_db."""
    CARDS = "cards"
    USER_TOTALS = "user_totals"

    # Index definitions for each collection
    INDEXES = {
        "cards": [
            {"keys": [("user_id", 1), ("dateAdded", -1)]},
            {"keys": [("user_id", 1), ("pokemonNameKey", 1)]},
        ],
    }


class CardFields:
    """Stored field names of a card document."""
    USER_ID = "user_id"
    ACQUISITION_PRICE = "acquisitionPrice"
    CARD_NAME = "cardName"
    CONDITION = "Condition"
    DATE_ADDED = "dateAdded"
    ITEM_TYPE = "itemType"
    LANGUAGE = "Language"
    POKEMON_NAME = "pokemonName"
    POKEMON_NAME_KEY = "pokemonNameKey"
    SET_NAME = "setName"
    SET_NUMBER = "setNumber"
    IS_COMPLETE = "isComplete"
    CARD_IMAGE_URL = "cardImageURL"


class TotalsFields:
    """Stored field names of a user aggregate document."""
    TOTAL_CARD_COST = "Total Card Cost"
    TOTAL_REVENUE = "Total Revenue"
    COST = "Cost"
