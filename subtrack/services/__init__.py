"""Services package."""

from subtrack.services.auth import (
    AuthServiceInterface,
    GoogleSheetsAuthService,
)
from subtrack.services.storage import (
    AuthenticationError,
    ConnectionError,
    DuplicateError,
    EntryStoreInterface,
    GoogleSheetsClient,
    GoogleSheetsEntryStore,
    LocalEntryStore,
    NotAuthenticatedError,
    NotFoundError,
    ParseError,
    ServiceError,
    StorageError,
)

__all__ = [
    # Auth services
    "AuthServiceInterface",
    "GoogleSheetsAuthService",
    # Storage services
    "AuthenticationError",
    "ConnectionError",
    "DuplicateError",
    "EntryStoreInterface",
    "GoogleSheetsClient",
    "GoogleSheetsEntryStore",
    "LocalEntryStore",
    "NotAuthenticatedError",
    "NotFoundError",
    "ParseError",
    "ServiceError",
    "StorageError",
]
