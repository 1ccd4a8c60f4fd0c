"""
VendorVault - card inventory backend for trading card vendors.

Wires the document store, identity provider and reference data services
into a single `Vault` the presentation layer talks to.

Usage:
    async with open_vault() as vault:
        session = await vault.auth.sign_in(LoginRequest(email=..., password=...))
        ctx = await vault.auth.resolve_context(session.access_token)
        card = await vault.cards.create_card(ctx, CardFormInput(...))
"""
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from vendorvault.core.logging import setup_logging
from vendorvault.database.connections import close_connections, get_mongo_client
from vendorvault.database.databases import auth_db, vault_db
from vendorvault.database.indexes import create_indexes
from vendorvault.services.auth_service import AuthService, ResetDelivery
from vendorvault.services.card_repository import CardRepository
from vendorvault.services.reference_service import ReferenceDataService

logger = logging.getLogger(__name__)


@dataclass
class Vault:
    """Services exposed to the presentation layer."""
    auth: AuthService
    cards: CardRepository
    reference: ReferenceDataService

    @classmethod
    def from_client(
        cls,
        client: AsyncIOMotorClient,
        reference: Optional[ReferenceDataService] = None,
        deliver_reset: Optional[ResetDelivery] = None,
    ) -> "Vault":
        return cls(
            auth=AuthService(client[auth_db.DB_NAME], deliver_reset=deliver_reset),
            cards=CardRepository(client[vault_db.DB_NAME]),
            reference=reference or ReferenceDataService(),
        )


async def initialize_database(client: AsyncIOMotorClient) -> None:
    """Create the indexes the services rely on."""
    await create_indexes(client)


@asynccontextmanager
async def open_vault(
    client: Optional[AsyncIOMotorClient] = None,
    reference: Optional[ReferenceDataService] = None,
    deliver_reset: Optional[ResetDelivery] = None,
    configure_logging: bool = True,
) -> AsyncIterator[Vault]:
    """
    Application lifespan.

    Startup:
    - Configure logging
    - Initialize database connection
    - Create indexes

    Shutdown:
    - Close reference API client
    - Close database connections (only the shared client this opened)
    """
    if configure_logging:
        setup_logging()

    logger.info("Starting up VendorVault...")
    owns_client = client is None
    if owns_client:
        client = await get_mongo_client()

    try:
        await initialize_database(client)
        logger.info("Database indexes created")
    except PyMongoError as e:
        logger.warning(f"Database initialization warning: {e}")

    vault = Vault.from_client(client, reference=reference, deliver_reset=deliver_reset)
    try:
        yield vault
    finally:
        logger.info("Shutting down VendorVault...")
        await vault.reference.close()
        if owns_client:
            await close_connections()
            logger.info("Database connections closed")
