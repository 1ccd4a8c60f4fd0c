"""
Card model for the vault database, plus the derivation rules every stored
card obeys.
"""
import math
import re
import unicodedata
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from vendorvault.core.exceptions import ValidationError
from vendorvault.database.databases.vault_db import CardFields

# Highest private-use code point; closes a prefix range query
SEARCH_SENTINEL = "\uf8ff"

# Largest set number a BSON int64 can hold
MAX_SET_NUMBER = 2**63 - 1
_MAX_SET_NUMBER_DIGITS = len(str(MAX_SET_NUMBER))

_NON_DIGITS = re.compile(r"\D")


class Condition(str, Enum):
    """Physical card condition grades."""
    GEM_MINT = "Gem Mint"
    NEAR_MINT = "Near Mint"
    LIGHTLY_PLAYED = "Lightly Played"
    MODERATELY_PLAYED = "Moderately Played"
    HEAVILY_PLAYED = "Heavily Played"
    DAMAGED = "Damaged"


class ItemType(str, Enum):
    """Kind of inventory item."""
    SEALED = "Sealed"
    SLABS = "Slabs"
    RAW = "Raw"
    OTHER = "Other"


DEFAULT_LANGUAGE = "English"

# Seed list for the language picker; any other value is accepted too
LANGUAGES = (
    "Chinese (Simplified)",
    "Chinese (Traditional)",
    "Dutch",
    "English",
    "French",
    "German",
    "Indonesian",
    "Italian",
    "Japanese",
    "Korean",
    "Polish",
    "Portuguese",
    "Russian",
    "Spanish",
    "Thai",
)


def _significant_digits(raw: Optional[str]) -> str:
    """ASCII digits of `raw` without leading zeros."""
    # \D keeps any Unicode decimal digit, so map each one to its ASCII form
    digits = "".join(str(unicodedata.decimal(ch)) for ch in _NON_DIGITS.sub("", raw or ""))
    return digits.lstrip("0")


def extract_set_number(raw: Optional[str]) -> int:
    """
    Extract the stored set number from the string as entered.

    Non-digit characters are discarded; no digits at all yields 0.

    Raises:
        ValidationError: If the number does not fit the store's int64

        >>> extract_set_number("SWSH045")
        45
        >>> extract_set_number("promo")
        0
    """
    digits = _significant_digits(raw)
    if not digits:
        return 0
    if len(digits) > _MAX_SET_NUMBER_DIGITS or int(digits) > MAX_SET_NUMBER:
        raise ValidationError(
            f"Set number is too large ({len(digits)} digits)",
            {"set_number": "too large"},
        )
    return int(digits)


def parse_acquisition_price(raw: Optional[str]) -> float:
    """
    Parse an entered price as a non-negative finite decimal.

    Raises:
        ValidationError: If the value is blank, not a number, infinite or negative
    """
    text = (raw or "").strip()
    if not text:
        raise ValidationError(
            "Acquisition price is required",
            {"acquisition_price": "required"},
        )

    try:
        value = Decimal(text)
    except InvalidOperation:
        raise ValidationError(
            f"Acquisition price is not a number: {text!r}",
            {"acquisition_price": "not a number"},
        )

    # Decimal accepts magnitudes a float cannot hold, e.g. 1e400
    if not value.is_finite() or not math.isfinite(float(value)):
        raise ValidationError(
            f"Acquisition price must be finite: {text!r}",
            {"acquisition_price": "not finite"},
        )
    if value < 0:
        raise ValidationError(
            f"Acquisition price must not be negative: {text!r}",
            {"acquisition_price": "negative"},
        )

    return float(value)


def compute_is_complete(
    card_name: str,
    pokemon_name: str,
    set_name: str,
    set_number: str,
    condition: str,
    language: str,
    item_type: str,
) -> bool:
    """
    A card is complete when every descriptive field is filled in and the
    set number is a positive integer.

    Price and date are not part of the rule; the type always carries them.
    """
    fields = (card_name, pokemon_name, set_name, set_number, condition, language, item_type)
    if any(not (value or "").strip() for value in fields):
        return False
    return bool(_significant_digits(set_number))


def search_key(pokemon_name: str) -> str:
    """Case-folded key the prefix search runs against."""
    return (pokemon_name or "").strip().casefold()


def utc_now_millis() -> datetime:
    """Current UTC time truncated to the store's millisecond resolution."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond - now.microsecond % 1000)


class CardRecord(BaseModel):
    """
    One catalogued physical item, as stored in vault_db.cards.
    """
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = Field(None, description="MongoDB ObjectId as string, None until persisted")
    card_name: str = Field("", description="Card name as printed")
    pokemon_name: str = Field("", description="Pokémon species name")
    set_name: str = Field("", description="Expansion set name")
    set_number: int = Field(0, ge=0, le=MAX_SET_NUMBER, description="Collector number, digits only")
    condition: str = Field("", description="One of the Condition values, or blank")
    language: str = Field("", description="Card language")
    item_type: str = Field("", description="One of the ItemType values, or blank")
    acquisition_price: float = Field(..., ge=0, description="What the vendor paid")
    date_added: datetime = Field(..., description="Creation timestamp (UTC), never updated")
    card_image_url: Optional[str] = Field(None, description="Image from the reference API")

    @computed_field
    @property
    def is_complete(self) -> bool:
        """Derived completeness flag; never stored independently of the fields."""
        return compute_is_complete(
            self.card_name,
            self.pokemon_name,
            self.set_name,
            str(self.set_number),
            self.condition,
            self.language,
            self.item_type,
        )

    def to_document(self, user_id: str) -> dict[str, Any]:
        """Convert to a MongoDB document (without _id)."""
        doc = {
            CardFields.USER_ID: user_id,
            CardFields.ACQUISITION_PRICE: self.acquisition_price,
            CardFields.CARD_NAME: self.card_name,
            CardFields.CONDITION: self.condition,
            CardFields.DATE_ADDED: self.date_added,
            CardFields.ITEM_TYPE: self.item_type,
            CardFields.LANGUAGE: self.language,
            CardFields.POKEMON_NAME: self.pokemon_name,
            CardFields.POKEMON_NAME_KEY: search_key(self.pokemon_name),
            CardFields.SET_NAME: self.set_name,
            CardFields.SET_NUMBER: self.set_number,
            CardFields.IS_COMPLETE: self.is_complete,
        }
        if self.card_image_url:
            doc[CardFields.CARD_IMAGE_URL] = self.card_image_url
        return doc

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "CardRecord":
        """Convert a MongoDB document to a CardRecord."""
        date_added = doc[CardFields.DATE_ADDED]
        # The driver hands back naive UTC datetimes
        if date_added.tzinfo is None:
            date_added = date_added.replace(tzinfo=timezone.utc)

        return cls(
            id=str(doc["_id"]),
            card_name=doc.get(CardFields.CARD_NAME, ""),
            pokemon_name=doc.get(CardFields.POKEMON_NAME, ""),
            set_name=doc.get(CardFields.SET_NAME, ""),
            set_number=doc.get(CardFields.SET_NUMBER, 0),
            condition=doc.get(CardFields.CONDITION, ""),
            language=doc.get(CardFields.LANGUAGE, ""),
            item_type=doc.get(CardFields.ITEM_TYPE, ""),
            acquisition_price=doc[CardFields.ACQUISITION_PRICE],
            date_added=date_added,
            card_image_url=doc.get(CardFields.CARD_IMAGE_URL),
        )
