"""
Tests for SubTrack models

Test strategy:
1. Unit tests for individual components (models, validators)
2. Integration tests for flows (with fake local and remote stores)
3. No real API calls in tests
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from subtrack.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from subtrack.models.entry import (
    Entry,
    EntryCategory,
    EntryChanges,
    EntryDraft,
    EntryForm,
    FeedbackSubmission,
    FeedbackType,
    PricingPeriod,
    ValidationIssue,
    ValidationResult,
)
from subtrack.models.session import GUEST_IDENTITY, Identity, Session, SessionMode

from conftest import make_entry


class TestEntryModels:
    """Tests for entry-related Pydantic models."""

    def test_draft_strips_whitespace(self):
        """Test that whitespace is stripped from the service name."""
        draft = EntryDraft(
            name="  Netflix  ",
            monthly_amount=Decimal("1490"),
            billing_day=15,
            category=EntryCategory.ENTERTAINMENT,
        )
        assert draft.name == "Netflix"

    def test_draft_rejects_negative_amount(self):
        with pytest.raises(ValueError):
            EntryDraft(
                name="Test",
                monthly_amount=Decimal("-1"),
                billing_day=1,
                category=EntryCategory.OTHER,
            )

    @pytest.mark.parametrize("day", [0, 32])
    def test_draft_rejects_billing_day_out_of_range(self, day):
        with pytest.raises(ValueError):
            EntryDraft(
                name="Test",
                monthly_amount=Decimal("100"),
                billing_day=day,
                category=EntryCategory.OTHER,
            )

    def test_zero_amount_is_allowed(self):
        """Free plans are legitimate entries."""
        entry = make_entry(amount="0")
        assert entry.monthly_amount == Decimal("0")

    def test_from_draft_sets_equal_timestamps(self):
        draft = EntryDraft(
            name="Spotify",
            monthly_amount=Decimal("980"),
            billing_day=3,
            category=EntryCategory.ENTERTAINMENT,
        )
        entry = Entry.from_draft(draft, entry_id="x-1", owner_id="user-1")
        assert entry.created_at == entry.updated_at
        assert entry.owner_id == "user-1"
        assert entry.created_at.tzinfo is not None

    def test_updated_at_cannot_precede_created_at(self):
        """Test that updated_at cannot be before created_at."""
        created = datetime(2024, 5, 1, tzinfo=timezone.utc)
        with pytest.raises(ValueError, match="updated_at cannot be before created_at"):
            Entry(
                id="e-1",
                owner_id="guest",
                name="Test",
                monthly_amount=Decimal("1"),
                billing_day=1,
                category=EntryCategory.OTHER,
                created_at=created,
                updated_at=created - timedelta(days=1),
            )

    def test_with_changes_applies_only_set_fields(self):
        entry = make_entry(memo="keep me")
        updated = entry.with_changes(EntryChanges(monthly_amount=Decimal("1980")))

        assert updated.monthly_amount == Decimal("1980")
        assert updated.name == entry.name
        assert updated.memo == "keep me"
        assert updated.id == entry.id
        assert updated.created_at == entry.created_at
        assert updated.updated_at >= entry.updated_at

    def test_with_changes_never_moves_updated_at_behind_created_at(self):
        entry = make_entry()
        stale_clock = entry.created_at - timedelta(days=30)
        updated = entry.with_changes(EntryChanges(name="Netflix 4K"), now=stale_clock)
        assert updated.updated_at == entry.created_at

    def test_with_changes_revalidates(self):
        entry = make_entry()
        changes = EntryChanges.model_construct(billing_day=40, _fields_set={"billing_day"})
        with pytest.raises(ValueError):
            entry.with_changes(changes)

    def test_entry_changes_applied_fields(self):
        changes = EntryChanges(name="Hulu", memo=None)
        assert changes.applied_fields() == {"name": "Hulu", "memo": None}


class TestEntryForm:
    """Tests for the raw entry form model."""

    def test_yearly_form_normalizes_to_monthly(self):
        form = EntryForm(
            name="Netflix",
            pricing_period=PricingPeriod.YEARLY,
            amount=Decimal("17880"),
            billing_day=15,
            category=EntryCategory.ENTERTAINMENT,
        )
        assert form.to_draft().monthly_amount == Decimal("1490")

    def test_monthly_form_keeps_amount(self):
        form = EntryForm(
            name="Spotify",
            amount=Decimal("980"),
            billing_day=3,
            category=EntryCategory.ENTERTAINMENT,
            memo="",
        )
        draft = form.to_draft()
        assert draft.monthly_amount == Decimal("980")
        assert draft.memo is None


class TestSessionModels:
    """Tests for Session and Identity."""

    def test_unknown_session(self):
        session = Session.unknown()
        assert session.mode == SessionMode.UNKNOWN
        assert session.identity is None
        assert not session.is_guest
        assert not session.is_authenticated

    def test_guest_session_uses_guest_identity(self):
        session = Session.guest()
        assert session.is_guest
        assert session.identity == GUEST_IDENTITY
        assert session.identity.is_guest

    def test_authenticated_session(self):
        identity = Identity(id="user-1", email="a@example.com")
        session = Session.authenticated(identity)
        assert session.is_authenticated
        assert not session.identity.is_guest

    def test_session_is_immutable(self):
        session = Session.guest()
        with pytest.raises(ValueError):
            session.mode = SessionMode.AUTHENTICATED


class TestFeedbackSubmission:
    """Tests for the feedback form model."""

    def test_valid_feedback(self):
        feedback = FeedbackSubmission(
            feedback_type=FeedbackType.FEATURE_REQUEST,
            title="カテゴリの追加",
            description="旅行カテゴリが欲しいです",
        )
        assert feedback.email is None

    def test_title_length_limit(self):
        with pytest.raises(ValueError):
            FeedbackSubmission(
                feedback_type=FeedbackType.OTHER,
                title="x" * 101,
                description="d",
            )

    def test_email_must_look_like_an_address(self):
        with pytest.raises(ValueError):
            FeedbackSubmission(
                feedback_type=FeedbackType.OTHER,
                title="t",
                description="d",
                email="not-an-email",
            )


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        event = AuditEvent(
            event_type=AuditEventType.ENTRY_CREATED,
            description="Entry created",
        )
        assert event.event_type == AuditEventType.ENTRY_CREATED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.ENTRY_DELETED,
            description="Entry deleted",
            session_mode="guest",
            details={"name": "Netflix"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "entry_deleted"
        assert log_dict["session_mode"] == "guest"
        assert log_dict["details"]["name"] == "Netflix"

    def test_builder_entry_created(self):
        correlation_id = uuid4()
        event = AuditEventBuilder.entry_created(
            entry_id="e-1",
            name="Netflix",
            session_mode="guest",
            correlation_id=correlation_id,
        )
        assert event.event_type == AuditEventType.ENTRY_CREATED
        assert event.entity_id == "e-1"
        assert event.correlation_id == correlation_id
        assert event.is_user_action is True

    def test_builder_delete_cancelled_is_debug(self):
        event = AuditEventBuilder.delete_cancelled("e-1")
        assert event.event_type == AuditEventType.DELETE_CANCELLED
        assert event.severity == AuditSeverity.DEBUG

    def test_builder_service_error(self):
        event = AuditEventBuilder.service_error("list_entries", "timeout", session_mode="authenticated")
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "timeout"
        assert event.is_user_action is False


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        result = ValidationResult(
            is_valid=False,
            issues=[
                ValidationIssue(
                    field="name",
                    issue_type="missing",
                    message="サービス名を入力してください",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            is_valid=True,
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="unusual",
                    message="高額です",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0


class TestEntryCategories:
    """Tests for the category enum."""

    def test_all_categories_exist(self):
        expected = [
            "エンターテイメント", "ビジネス", "ヘルス・フィットネス",
            "教育", "ユーティリティ", "その他",
        ]
        assert [c.value for c in EntryCategory] == expected

    def test_unknown_category_rejected(self):
        with pytest.raises(ValueError):
            EntryCategory("旅行")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
