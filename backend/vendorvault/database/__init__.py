"""
Database module - MongoDB connections and database definitions.
"""
from vendorvault.database.connections import (
    get_mongo_client,
    close_connections,
    get_database,
)
from vendorvault.database.databases import auth_db, vault_db

__all__ = [
    "get_mongo_client",
    "close_connections",
    "get_database",
    "auth_db",
    "vault_db",
]
