"""
Tests for the Google Sheets entry store.

The worksheet is faked; rows are plain lists of strings, as gspread returns them.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from subtrack.models.entry import EntryCategory, EntryChanges, EntryDraft
from subtrack.models.session import Identity, Session
from subtrack.services.storage import (
    GoogleSheetsEntryStore,
    NotAuthenticatedError,
    NotFoundError,
    ServiceError,
)

from conftest import make_entry, run


@pytest.fixture
def store(sheets_client):
    return GoogleSheetsEntryStore(sheets_client)


def _draft(name="Netflix", amount="1490", day=15):
    return EntryDraft(
        name=name,
        monthly_amount=Decimal(amount),
        billing_day=day,
        category=EntryCategory.ENTERTAINMENT,
        memo="プレミアムプラン",
    )


class TestRowMapping:
    def test_entry_row_round_trip(self, store):
        entry = make_entry(memo="メモ", owner_id="user-alice")
        assert store._row_to_entry(store._entry_to_row(entry)) == entry

    def test_empty_memo_reads_back_as_none(self, store):
        entry = make_entry(owner_id="user-alice")
        row = store._entry_to_row(entry)
        assert row[8] == ""
        assert store._row_to_entry(row).memo is None


class TestGoogleSheetsEntryStore:
    def test_insert_assigns_id_owner_and_timestamps(self, store, sheets_client, alice_session):
        entry = run(store.insert_entry(alice_session, _draft()))

        assert entry.owner_id == "user-alice"
        assert entry.id
        assert entry.created_at == entry.updated_at
        assert sheets_client.subscriptions.rows[1][0] == entry.id

    def test_list_only_returns_own_rows(self, store, alice_session):
        bob = Session.authenticated(Identity(id="user-bob", email="bob@example.com"))
        run(store.insert_entry(alice_session, _draft("Netflix")))
        run(store.insert_entry(bob, _draft("Hulu")))

        assert [e.name for e in run(store.list_entries(alice_session))] == ["Netflix"]
        assert [e.name for e in run(store.list_entries(bob))] == ["Hulu"]

    def test_list_newest_first(self, store, sheets_client, alice_session):
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for offset, name in enumerate(["Old", "Middle", "New"]):
            entry = make_entry(f"e-{offset}", name, owner_id="user-alice",
                               created_at=base + timedelta(days=offset))
            sheets_client.subscriptions.append_row(store._entry_to_row(entry))

        assert [e.name for e in run(store.list_entries(alice_session))] == ["New", "Middle", "Old"]

    def test_malformed_rows_are_skipped(self, store, sheets_client, alice_session):
        sheets_client.subscriptions.append_row(["bad", "user-alice", "not-a-date"])
        run(store.insert_entry(alice_session, _draft()))

        assert len(run(store.list_entries(alice_session))) == 1

    def test_update_own_entry(self, store, alice_session):
        entry = run(store.insert_entry(alice_session, _draft()))

        run(store.update_entry(alice_session, entry.id, EntryChanges(billing_day=20)))

        [updated] = run(store.list_entries(alice_session))
        assert updated.billing_day == 20
        assert updated.memo == "プレミアムプラン"
        assert updated.created_at == entry.created_at
        assert updated.updated_at >= entry.updated_at

    def test_update_someone_elses_entry_is_not_found(self, store, alice_session):
        bob = Session.authenticated(Identity(id="user-bob", email="bob@example.com"))
        entry = run(store.insert_entry(bob, _draft()))

        with pytest.raises(NotFoundError):
            run(store.update_entry(alice_session, entry.id, EntryChanges(name="mine now")))

    def test_delete(self, store, sheets_client, alice_session):
        keep = run(store.insert_entry(alice_session, _draft("Keep")))
        drop = run(store.insert_entry(alice_session, _draft("Drop")))

        run(store.delete_entry(alice_session, drop.id))

        assert [e.id for e in run(store.list_entries(alice_session))] == [keep.id]
        assert len(sheets_client.subscriptions.rows) == 2

    def test_delete_unknown(self, store, alice_session):
        with pytest.raises(NotFoundError):
            run(store.delete_entry(alice_session, "missing"))

    def test_requires_authenticated_session(self, store, guest_session):
        with pytest.raises(NotAuthenticatedError):
            run(store.list_entries(guest_session))
        with pytest.raises(NotAuthenticatedError):
            run(store.insert_entry(Session.unknown(), _draft()))

    def test_backend_failure_is_service_error(self, store, sheets_client, alice_session):
        sheets_client.subscriptions.fail_with = RuntimeError("quota exceeded")

        with pytest.raises(ServiceError, match="quota exceeded"):
            run(store.list_entries(alice_session))
        with pytest.raises(ServiceError):
            run(store.insert_entry(alice_session, _draft()))
