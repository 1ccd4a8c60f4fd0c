"""
Reference data schemas (Pokémon TCG API lookups).
"""
from typing import Optional

from pydantic import BaseModel, Field


class CardLookup(BaseModel):
    """Best match for a card search, used to pre-fill the form."""
    number: str = Field(..., description="Collector number within the set")
    small_image_url: Optional[str] = Field(None, description="Small card image")
    large_image_url: Optional[str] = Field(None, description="High resolution card image")

    @property
    def image_url(self) -> Optional[str]:
        return self.small_image_url or self.large_image_url
