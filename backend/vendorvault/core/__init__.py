"""
Core module - Errors, logging, security and async helpers.
"""
from vendorvault.core.exceptions import (
    VaultError,
    ValidationError,
    StoreError,
    NotFoundError,
    AuthError,
)
from vendorvault.core.logging import setup_logging
from vendorvault.core.security import (
    hash_password,
    verify_password,
    create_access_token,
    decode_token,
)

__all__ = [
    "VaultError",
    "ValidationError",
    "StoreError",
    "NotFoundError",
    "AuthError",
    "setup_logging",
    "hash_password",
    "verify_password",
    "create_access_token",
    "decode_token",
]
