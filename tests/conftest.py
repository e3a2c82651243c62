"""
Pytest fixtures for SubTrack testing.

Provides:
- In-memory local medium and guest store
- Fake gspread worksheets standing in for the remote sheet
- Sample entries and sessions
"""

import asyncio
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from subtrack.models.entry import Entry, EntryCategory
from subtrack.models.session import Identity, Session
from subtrack.services.storage import InMemoryMedium, LocalEntryStore
from subtrack.services.storage.google_sheets import ENTRY_COLUMNS, USER_COLUMNS


def run(coro):
    """Drive one coroutine to completion from a sync test."""
    return asyncio.run(coro)


# =============================================================================
# FAKE GOOGLE SHEETS
# =============================================================================

class FakeWorksheet:
    """The subset of gspread.Worksheet the stores use, backed by a list of rows."""

    def __init__(self, header: list[str], rows=None):
        self.rows: list[list[str]] = [list(header)] + [list(r) for r in rows or []]
        self.fail_with: Exception | None = None

    def _check(self):
        if self.fail_with is not None:
            raise self.fail_with

    def get_all_values(self):
        self._check()
        return [list(r) for r in self.rows]

    def append_row(self, values, value_input_option="RAW"):
        self._check()
        self.rows.append([str(v) for v in values])

    def update(self, range_name=None, values=None, value_input_option="RAW"):
        self._check()
        # Only whole-row writes anchored in column A are used
        idx = int(range_name.lstrip("A"))
        self.rows[idx - 1] = [str(v) for v in values[0]]

    def delete_rows(self, index):
        self._check()
        del self.rows[index - 1]


class FakeSheetsClient:
    """Stands in for GoogleSheetsClient; no network, no credentials."""

    def __init__(self):
        self.subscriptions = FakeWorksheet(ENTRY_COLUMNS)
        self.users = FakeWorksheet(USER_COLUMNS)

    def get_subscriptions_sheet(self):
        return self.subscriptions

    def get_users_sheet(self):
        return self.users


@pytest.fixture
def sheets_client():
    return FakeSheetsClient()


# =============================================================================
# LOCAL STORAGE
# =============================================================================

@pytest.fixture
def medium():
    return InMemoryMedium()


@pytest.fixture
def local_store(medium):
    return LocalEntryStore(medium)


# =============================================================================
# SESSIONS AND ENTRIES
# =============================================================================

@pytest.fixture
def guest_session():
    return Session.guest()


@pytest.fixture
def alice():
    return Identity(id="user-alice", email="alice@example.com")


@pytest.fixture
def alice_session(alice):
    return Session.authenticated(alice)


def make_entry(
    entry_id="e-1",
    name="Netflix",
    amount="1490",
    billing_day=15,
    category=EntryCategory.ENTERTAINMENT,
    owner_id="guest",
    created_at=None,
    memo=None,
) -> Entry:
    created_at = created_at or datetime(2024, 1, 1, tzinfo=timezone.utc)
    return Entry(
        id=entry_id,
        owner_id=owner_id,
        name=name,
        monthly_amount=Decimal(amount),
        billing_day=billing_day,
        category=category,
        memo=memo,
        created_at=created_at,
        updated_at=created_at,
    )


@pytest.fixture
def sample_entries():
    return [
        make_entry("e-1", "Netflix", "1490", 15, EntryCategory.ENTERTAINMENT),
        make_entry("e-2", "Spotify", "980", 3, EntryCategory.ENTERTAINMENT),
        make_entry("e-3", "GitHub Pro", "500", 10, EntryCategory.BUSINESS),
        make_entry("e-4", "Gym", "7000", 15, EntryCategory.HEALTH_FITNESS),
    ]
