"""
Storage error taxonomy.

Validation and missing-bucket errors are raised to the caller. Backend
failures are wrapped with context; best-effort operations (delete,
existence checks, provisioning, cleanup) downgrade them to booleans or
aggregate results instead of raising.
"""
from typing import Optional


class StorageError(Exception):
    """Base class for all storage layer errors."""


class ConfigurationError(StorageError):
    """Gateway used before successful initialization, or bad config."""


class ValidationError(StorageError):
    """Required context for a path scheme is missing."""


class NotFoundError(StorageError):
    """Target bucket does not exist."""

    def __init__(self, bucket: str, message: Optional[str] = None):
        self.bucket = bucket
        super().__init__(message or f'Storage bucket "{bucket}" not found.')


class BackendError(StorageError):
    """Failure surfaced by the object-storage client."""
