"""
Local Storage Implementation (guest mode)

Guest data never leaves this machine. It lives in a small key-value
medium with two keys, mirroring what a browser's localStorage would hold:

- "guestMode":          "true" while guest mode is active
- "guestSubscriptions": the JSON-serialized entry list

DESIGN DECISION: A corrupted collection is NOT an error for the user.
Reads fall back to the default seed and log a warning, but the stored
value is left as it is; only the next explicit write replaces it.
"""

import json
import os
import random
import re
import string
import tempfile
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Optional
from uuid import uuid4

import structlog
from pydantic import TypeAdapter, ValidationError

from subtrack.models.entry import (
    GUEST_OWNER_ID,
    Entry,
    EntryCategory,
    EntryChanges,
    EntryDraft,
    utcnow,
)
from subtrack.models.session import Session
from subtrack.services.storage.interface import (
    EntryStoreInterface,
    NotFoundError,
    ParseError,
    ServiceError,
)


GUEST_MODE_KEY = "guestMode"
GUEST_COLLECTION_KEY = "guestSubscriptions"

_ENTRY_LIST = TypeAdapter(list[Entry])
_ID_ALPHABET = string.ascii_lowercase + string.digits

logger = structlog.get_logger(__name__)


# =============================================================================
# KEY-VALUE MEDIUM
# =============================================================================

class KeyValueMedium(ABC):
    """String key to string value storage, like a browser's localStorage."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        pass


class InMemoryMedium(KeyValueMedium):
    """Dict-backed medium. Lives as long as the object does."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class JsonFileMedium(KeyValueMedium):
    """
    One JSON object file per user profile.

    Every write rewrites the whole file through a temporary file,
    so a crash mid-write leaves the previous version in place.
    """

    def __init__(self, path: Path):
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning("local_medium_unreadable", path=str(self._path), error=str(e))
            return {}

        if not isinstance(data, dict):
            logger.warning("local_medium_unreadable", path=str(self._path), error="not an object")
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _save(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self._path.parent, prefix=".subtrack-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
            os.replace(tmp_path, self._path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)


_PROFILE_ID = re.compile(r"[A-Za-z0-9_-]{8,64}")


def new_profile_id() -> str:
    return uuid4().hex


def is_valid_profile_id(profile_id: Optional[str]) -> bool:
    return bool(profile_id) and _PROFILE_ID.fullmatch(profile_id) is not None


def profile_medium(directory: Path, profile_id: str) -> JsonFileMedium:
    """
    The medium of one browser profile.

    Each profile id maps to its own file under directory, so guest
    flags and guest data never leak between browsers.

    Raises:
        ValueError: If profile_id could escape the directory
    """
    if not is_valid_profile_id(profile_id):
        raise ValueError(f"Invalid profile id: {profile_id!r}")
    return JsonFileMedium(Path(directory).expanduser() / f"{profile_id}.json")


# =============================================================================
# DEFAULT SEED
# =============================================================================

_SEED_TIMESTAMP = datetime(2024, 1, 1, tzinfo=timezone.utc)

_SEED_ROWS = [
    ("guest-1", "Netflix", "1490", 15, EntryCategory.ENTERTAINMENT, "プレミアムプラン"),
    ("guest-2", "Spotify", "980", 3, EntryCategory.ENTERTAINMENT, "音楽ストリーミング"),
    ("guest-3", "Adobe Creative Cloud", "6552", 25, EntryCategory.BUSINESS, "年額プランを月額換算"),
    ("guest-4", "GitHub Pro", "500", 10, EntryCategory.BUSINESS, "開発者向けプラン"),
    ("guest-5", "Notion Pro", "800", 20, EntryCategory.BUSINESS, "チームプラン"),
]


def default_seed() -> list[Entry]:
    """The example collection a new guest starts with (fresh copies)."""
    return [
        Entry(
            id=entry_id,
            owner_id=GUEST_OWNER_ID,
            name=name,
            monthly_amount=Decimal(amount),
            billing_day=billing_day,
            category=category,
            memo=memo,
            created_at=_SEED_TIMESTAMP,
            updated_at=_SEED_TIMESTAMP,
        )
        for entry_id, name, amount, billing_day, category, memo in _SEED_ROWS
    ]


def serialize_collection(entries: list[Entry]) -> str:
    return _ENTRY_LIST.dump_json(entries).decode("utf-8")


def parse_collection(raw: str) -> list[Entry]:
    """
    Parse a stored collection.

    Raises:
        ParseError: If raw is not a JSON list of valid entries
    """
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise ParseError(f"Stored collection is not JSON: {e}") from e

    if not isinstance(data, list):
        raise ParseError("Stored collection is not a list")

    try:
        return _ENTRY_LIST.validate_python(data)
    except ValidationError as e:
        raise ParseError(f"Stored collection has invalid entries: {e.error_count()} errors") from e


# =============================================================================
# LOCAL ENTRY STORE
# =============================================================================

class LocalEntryStore(EntryStoreInterface):
    """
    Guest-mode entry store over a local key-value medium.

    With no medium (a non-interactive context) the store behaves as if
    guest mode is off, reads return the seed and writes are dropped.
    """

    def __init__(self, medium: Optional[KeyValueMedium] = None):
        self._medium = medium

    @property
    def has_medium(self) -> bool:
        return self._medium is not None

    # ---- guest-mode flag -------------------------------------------------

    def is_guest_mode(self) -> bool:
        if self._medium is None:
            return False
        return self._medium.get_item(GUEST_MODE_KEY) == "true"

    def enter_guest_mode(self) -> None:
        """Set the flag. The collection is seeded lazily on first read."""
        if self._medium is None:
            raise ServiceError("Local storage is not available")
        self._medium.set_item(GUEST_MODE_KEY, "true")

    def exit_guest_mode(self) -> None:
        """Clear the flag AND the guest collection. Guest data is gone."""
        if self._medium is None:
            return
        self._medium.remove_item(GUEST_MODE_KEY)
        self._medium.remove_item(GUEST_COLLECTION_KEY)

    # ---- collection --------------------------------------------------------

    def read_collection(self) -> list[Entry]:
        if self._medium is None:
            return default_seed()

        raw = self._medium.get_item(GUEST_COLLECTION_KEY)
        if raw is None:
            seed = default_seed()
            self.write_collection(seed)
            return seed

        try:
            return parse_collection(raw)
        except ParseError as e:
            logger.warning("guest_collection_unreadable", error=str(e), fallback="default_seed")
            return default_seed()

    def write_collection(self, entries: list[Entry]) -> None:
        """Overwrite the stored collection (last write wins)."""
        if self._medium is None:
            return
        self._medium.set_item(GUEST_COLLECTION_KEY, serialize_collection(entries))

    @staticmethod
    def generate_local_id() -> str:
        """
        Millisecond timestamp plus a random suffix.

        Collisions are improbable, not impossible.
        """
        suffix = "".join(random.choices(_ID_ALPHABET, k=9))
        return f"guest-{time.time_ns() // 1_000_000}-{suffix}"

    # ---- EntryStoreInterface -------------------------------------------------

    def _require_guest(self, session: Session) -> None:
        if not session.is_guest:
            raise ServiceError("Local store only serves guest sessions")

    async def list_entries(self, session: Session) -> list[Entry]:
        self._require_guest(session)
        return self.read_collection()

    async def insert_entry(self, session: Session, draft: EntryDraft) -> Entry:
        self._require_guest(session)
        entries = self.read_collection()
        entry = Entry.from_draft(
            draft,
            entry_id=self.generate_local_id(),
            owner_id=GUEST_OWNER_ID,
        )
        entries.append(entry)
        self.write_collection(entries)
        return entry

    async def update_entry(
        self,
        session: Session,
        entry_id: str,
        changes: EntryChanges,
    ) -> None:
        self._require_guest(session)
        entries = self.read_collection()
        for idx, entry in enumerate(entries):
            if entry.id == entry_id:
                entries[idx] = entry.with_changes(changes, now=utcnow())
                self.write_collection(entries)
                return

        raise NotFoundError(f"Entry not found: {entry_id}")

    async def delete_entry(self, session: Session, entry_id: str) -> None:
        self._require_guest(session)
        entries = self.read_collection()
        remaining = [entry for entry in entries if entry.id != entry_id]
        if len(remaining) == len(entries):
            raise NotFoundError(f"Entry not found: {entry_id}")
        self.write_collection(remaining)
