"""
Pydantic models for database documents and data structures.
"""
from vendorvault.models.user import User, UserStatus, UserContext
from vendorvault.models.card import (
    CardRecord,
    Condition,
    ItemType,
    LANGUAGES,
    DEFAULT_LANGUAGE,
)

__all__ = [
    "User",
    "UserStatus",
    "UserContext",
    "CardRecord",
    "Condition",
    "ItemType",
    "LANGUAGES",
    "DEFAULT_LANGUAGE",
]
