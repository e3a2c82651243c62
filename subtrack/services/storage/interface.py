"""
Abstract Storage Interface

DESIGN DECISION: Callers depend on one EntryStore capability
(list / insert / update / delete) whatever medium backs it.
This allows us to:
1. Route guest sessions to local storage and accounts to the remote sheet
2. Use in-memory storage for testing
3. Swap Google Sheets for a real database later

The session is passed into every call. A store never decides on its
own whose data it is reading.
"""

from abc import ABC, abstractmethod

from subtrack.models.entry import Entry, EntryChanges, EntryDraft
from subtrack.models.session import Session


class EntryStoreInterface(ABC):
    """
    Abstract interface for subscription entry storage.

    Any storage implementation (local file, Google Sheets, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def list_entries(self, session: Session) -> list[Entry]:
        """
        List every entry owned by the session's identity.

        Raises:
            ServiceError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def insert_entry(self, session: Session, draft: EntryDraft) -> Entry:
        """
        Create an entry.

        The store assigns id, owner and both timestamps.

        Returns:
            The stored entry
        """
        pass

    @abstractmethod
    async def update_entry(
        self,
        session: Session,
        entry_id: str,
        changes: EntryChanges,
    ) -> None:
        """
        Apply a partial update and refresh updated_at.

        Raises:
            NotFoundError: If entry_id is not in the session's collection
        """
        pass

    @abstractmethod
    async def delete_entry(self, session: Session, entry_id: str) -> None:
        """
        Delete an entry immediately (no soft delete).

        Raises:
            NotFoundError: If entry_id is not in the session's collection
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ParseError(StorageError):
    """Stored payload could not be read back as entries."""
    pass


class ServiceError(StorageError):
    """A store or auth call failed. Shown to users as a generic message."""
    pass


class NotFoundError(ServiceError):
    """Entity not found in the caller's collection."""
    pass


class DuplicateError(ServiceError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(ServiceError):
    """Could not connect to storage backend."""
    pass


class AuthenticationError(ServiceError):
    """Credentials were rejected."""
    pass


class NotAuthenticatedError(ServiceError):
    """The session has no identity to scope the call to."""
    pass
