"""
Error taxonomy shared by the repository and services.

Every error is raised to the caller; nothing here is fatal to the process.
"""
from typing import Optional


class VaultError(Exception):
    """Base exception for VendorVault errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(VaultError):
    """Malformed or missing input, detected before any store call."""

    def __init__(self, message: str, errors: Optional[dict[str, str]] = None):
        super().__init__(message)
        self.errors = errors or {}


class StoreError(VaultError):
    """The document store rejected or failed to complete an operation."""


class NotFoundError(VaultError):
    """The referenced record does not exist in the store."""


class AuthError(VaultError):
    """No valid authenticated identity for an operation that requires one."""
