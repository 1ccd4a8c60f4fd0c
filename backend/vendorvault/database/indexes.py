"""
Index management.
Ensures the collections are indexed for the queries the services run.
"""
import logging

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from vendorvault.database.databases import auth_db, vault_db

logger = logging.getLogger(__name__)


async def create_indexes(client: AsyncIOMotorClient) -> None:
    """Create necessary indexes for all databases."""

    # Auth DB indexes
    auth = client[auth_db.DB_NAME]
    await auth[auth_db.Collections.USERS].create_index("email", unique=True)
    await auth[auth_db.Collections.REVOKED_TOKENS].create_index("jti", unique=True)
    # Revocations only matter until the token itself expires
    await auth[auth_db.Collections.REVOKED_TOKENS].create_index(
        "expires_at", expireAfterSeconds=0
    )

    # Vault DB indexes
    vault = client[vault_db.DB_NAME]
    for collection_name, indexes in vault_db.Collections.INDEXES.items():
        collection = vault[collection_name]
        for index_def in indexes:
            keys = index_def["keys"]
            kwargs = {k: v for k, v in index_def.items() if k != "keys"}
            try:
                await collection.create_index(keys, **kwargs)
            except PyMongoError as e:
                # Index might already exist with different options
                logger.warning(f"Index on {collection_name} {keys} not created: {e}")
