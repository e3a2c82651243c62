"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the remote backend for accounts because:
1. Users can look at (and export) their own data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions (last write wins, which is all a single user needs)
- Limited query capabilities (we filter by owner in Python)

Every row carries its owner_id; a caller only ever sees and touches
rows that belong to the identity of its session.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import uuid4

import gspread
import structlog
from google.oauth2.service_account import Credentials

from subtrack.config import get_settings
from subtrack.models.entry import (
    Entry,
    EntryCategory,
    EntryChanges,
    EntryDraft,
    utcnow,
)
from subtrack.models.session import Identity, Session
from subtrack.services.storage.interface import (
    ConnectionError,
    EntryStoreInterface,
    NotAuthenticatedError,
    NotFoundError,
    ServiceError,
)


# Column mappings for Subscriptions sheet
ENTRY_COLUMNS = [
    "id",
    "owner_id",
    "created_at",
    "updated_at",
    "name",
    "monthly_amount",
    "billing_day",
    "category",
    "memo",
]

# Column mappings for Users sheet
USER_COLUMNS = [
    "user_id",
    "email",
    "password_hash",
    "created_at",
]

logger = structlog.get_logger(__name__)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and worksheet creation.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(self, title: str, columns: list[str]) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_subscriptions_sheet(self) -> gspread.Worksheet:
        """Get or create the Subscriptions worksheet."""
        return self._get_or_create_sheet(
            self._settings.subscriptions_sheet_name, ENTRY_COLUMNS
        )

    def get_users_sheet(self) -> gspread.Worksheet:
        """Get or create the Users worksheet."""
        return self._get_or_create_sheet(
            self._settings.users_sheet_name, USER_COLUMNS
        )


def _require_identity(session: Session) -> Identity:
    if not session.is_authenticated:
        raise NotAuthenticatedError("Remote store requires a signed-in session")
    return session.identity


class GoogleSheetsEntryStore(EntryStoreInterface):
    """
    Google Sheets implementation of entry storage.

    Entries are stored as rows in a worksheet with one entry per row.
    The store plays the server role: it assigns ids and timestamps.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _entry_to_row(self, entry: Entry) -> list:
        """Convert an Entry to a spreadsheet row."""
        return [
            entry.id,
            entry.owner_id,
            entry.created_at.isoformat(),
            entry.updated_at.isoformat(),
            entry.name,
            str(entry.monthly_amount),
            str(entry.billing_day),
            entry.category.value,
            entry.memo or "",
        ]

    def _row_to_entry(self, row: list) -> Entry:
        """Convert a spreadsheet row to an Entry."""
        # Handle missing columns gracefully
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return Entry(
            id=safe_get(0),
            owner_id=safe_get(1),
            created_at=datetime.fromisoformat(safe_get(2)),
            updated_at=datetime.fromisoformat(safe_get(3)),
            name=safe_get(4),
            monthly_amount=Decimal(safe_get(5)),
            billing_day=int(safe_get(6)),
            category=EntryCategory(safe_get(7)),
            memo=safe_get(8) or None,
        )

    def _find_row(self, all_rows: list[list], entry_id: str, owner_id: str) -> Optional[int]:
        """1-based sheet row index of an owned entry, or None."""
        for idx, row in enumerate(all_rows[1:], start=2):  # Row 1 is header
            if len(row) > 1 and row[0] == entry_id and row[1] == owner_id:
                return idx
        return None

    async def list_entries(self, session: Session) -> list[Entry]:
        """List the caller's entries, newest first."""
        identity = _require_identity(session)
        try:
            sheet = self._client.get_subscriptions_sheet()
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except ServiceError:
            raise
        except Exception as e:
            raise ServiceError(f"Failed to list entries: {e}")

        entries = []
        for row in all_rows:
            if len(row) < 2 or row[1] != identity.id:
                continue

            try:
                entries.append(self._row_to_entry(row))
            except (ValueError, ArithmeticError) as e:
                logger.warning("malformed_entry_row", entry_id=row[0], error=str(e))

        entries.sort(key=lambda e: e.created_at, reverse=True)
        return entries

    async def insert_entry(self, session: Session, draft: EntryDraft) -> Entry:
        """Append a new entry row."""
        identity = _require_identity(session)
        entry = Entry.from_draft(
            draft,
            entry_id=str(uuid4()),
            owner_id=identity.id,
        )
        try:
            sheet = self._client.get_subscriptions_sheet()
            sheet.append_row(self._entry_to_row(entry), value_input_option="RAW")
        except ServiceError:
            raise
        except Exception as e:
            raise ServiceError(f"Failed to save entry: {e}")
        return entry

    async def update_entry(
        self,
        session: Session,
        entry_id: str,
        changes: EntryChanges,
    ) -> None:
        """Rewrite an owned row with the changes applied."""
        identity = _require_identity(session)
        try:
            sheet = self._client.get_subscriptions_sheet()
            all_rows = sheet.get_all_values()

            idx = self._find_row(all_rows, entry_id, identity.id)
            if idx is None:
                raise NotFoundError(f"Entry not found: {entry_id}")

            current = self._row_to_entry(all_rows[idx - 1])
            updated = current.with_changes(changes, now=utcnow())
            sheet.update(
                range_name=f"A{idx}",
                values=[self._entry_to_row(updated)],
                value_input_option="RAW",
            )
        except ServiceError:
            raise
        except Exception as e:
            raise ServiceError(f"Failed to update entry: {e}")

    async def delete_entry(self, session: Session, entry_id: str) -> None:
        """Delete an owned row."""
        identity = _require_identity(session)
        try:
            sheet = self._client.get_subscriptions_sheet()
            all_rows = sheet.get_all_values()

            idx = self._find_row(all_rows, entry_id, identity.id)
            if idx is None:
                raise NotFoundError(f"Entry not found: {entry_id}")

            sheet.delete_rows(idx)
        except ServiceError:
            raise
        except Exception as e:
            raise ServiceError(f"Failed to delete entry: {e}")
