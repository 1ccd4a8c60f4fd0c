"""
Database definitions and collection constants.
"""
from vendorvault.database.databases import auth_db, vault_db

__all__ = ["auth_db", "vault_db"]
