"""
Auth database configuration.
Stores user identity, revoked sessions and password reset state.
"""

DB_NAME = "auth_db"


class Collections:
    """Collection names in auth_db."""
    USERS = "users"
    REVOKED_TOKENS = "revoked_tokens"
