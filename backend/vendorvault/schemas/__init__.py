"""
Request and response schemas exposed to the presentation layer.
"""
from vendorvault.schemas.auth import RegisterRequest, LoginRequest, AuthSession
from vendorvault.schemas.card import CardFormInput, CardEdit, InventorySummary
from vendorvault.schemas.reference import CardLookup

__all__ = [
    # Auth
    "RegisterRequest",
    "LoginRequest",
    "AuthSession",
    # Card
    "CardFormInput",
    "CardEdit",
    "InventorySummary",
    # Reference
    "CardLookup",
]
