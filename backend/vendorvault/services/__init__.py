"""
Service layer for business logic.
"""
from vendorvault.services.auth_service import AuthService
from vendorvault.services.card_repository import CardRepository
from vendorvault.services.reference_api import PokemonReferenceAPI
from vendorvault.services.reference_service import ReferenceDataService

__all__ = [
    "AuthService",
    "CardRepository",
    "PokemonReferenceAPI",
    "ReferenceDataService",
]
