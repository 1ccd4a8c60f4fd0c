"""
Card form and summary schemas.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from vendorvault.models.card import CardRecord, Condition, DEFAULT_LANGUAGE


class CardFormInput(BaseModel):
    """Card form as entered by the user; every field is raw text."""
    card_name: str = Field("", description="Card name as printed")
    pokemon_name: str = Field("", description="Pokémon species name (required)")
    set_name: str = Field("", description="Expansion set name (required)")
    set_number: str = Field("", description="Collector number as entered, e.g. '4/102'")
    condition: str = Field(Condition.GEM_MINT.value, description="Condition grade")
    language: str = Field(DEFAULT_LANGUAGE, description="Card language")
    item_type: str = Field("", description="Sealed, Slabs, Raw or Other")
    acquisition_price: str = Field("", description="Price paid, as entered (required)")
    card_image_url: Optional[str] = Field(None, description="Optional card image URL")


class CardEdit(CardFormInput):
    """
    Card form for editing a stored card.

    `date_added` is carried along for display only; updates always keep the
    stored creation timestamp.
    """
    id: Optional[str] = Field(None, description="ID of the card being edited")
    date_added: Optional[datetime] = Field(None, description="Ignored on update")

    @classmethod
    def from_record(cls, record: CardRecord) -> "CardEdit":
        """Pre-fill an edit form from a stored card."""
        return cls(
            id=record.id,
            date_added=record.date_added,
            card_name=record.card_name,
            pokemon_name=record.pokemon_name,
            set_name=record.set_name,
            set_number=str(record.set_number) if record.set_number else "",
            condition=record.condition,
            language=record.language,
            item_type=record.item_type,
            acquisition_price=str(record.acquisition_price),
            card_image_url=record.card_image_url,
        )


class InventorySummary(BaseModel):
    """Rudimentary financial summary of a user's inventory."""
    total_cards: int = Field(0, description="Number of catalogued cards")
    complete_cards: int = Field(0, description="Cards with every descriptive field filled in")
    incomplete_cards: int = Field(0, description="Cards still missing details")
    total_card_cost: float = Field(0.0, description="Running acquisition cost aggregate")
    total_revenue: float = Field(0.0, description="Running revenue aggregate")
    cost: float = Field(0.0, description="Running cost aggregate")
    cost_by_item_type: dict[str, float] = Field(
        default_factory=dict,
        description="Acquisition cost of current cards per item type"
    )
    count_by_condition: dict[str, int] = Field(
        default_factory=dict,
        description="Number of current cards per condition"
    )
