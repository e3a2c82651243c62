"""
Storage Services Package

Provides the EntryStore interface and its two implementations:
local storage for guest mode and Google Sheets for accounts.
"""

from subtrack.services.storage.interface import (
    AuthenticationError,
    ConnectionError,
    DuplicateError,
    EntryStoreInterface,
    NotAuthenticatedError,
    NotFoundError,
    ParseError,
    ServiceError,
    StorageError,
)
from subtrack.services.storage.local_storage import (
    GUEST_COLLECTION_KEY,
    GUEST_MODE_KEY,
    InMemoryMedium,
    JsonFileMedium,
    KeyValueMedium,
    LocalEntryStore,
    default_seed,
    is_valid_profile_id,
    new_profile_id,
    profile_medium,
)
from subtrack.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsEntryStore,
)

__all__ = [
    # Interfaces
    "EntryStoreInterface",
    "KeyValueMedium",
    # Exceptions
    "AuthenticationError",
    "ConnectionError",
    "DuplicateError",
    "NotAuthenticatedError",
    "NotFoundError",
    "ParseError",
    "ServiceError",
    "StorageError",
    # Local implementation
    "GUEST_COLLECTION_KEY",
    "GUEST_MODE_KEY",
    "InMemoryMedium",
    "JsonFileMedium",
    "LocalEntryStore",
    "default_seed",
    "is_valid_profile_id",
    "new_profile_id",
    "profile_medium",
    # Google Sheets implementation
    "GoogleSheetsClient",
    "GoogleSheetsEntryStore",
]
