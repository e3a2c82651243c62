"""Tests for the audit logger."""

from subtrack.audit import AuditLogger, create_correlation_id
from subtrack.models.audit import AuditEventBuilder

from conftest import run


class TestAuditLogger:
    def test_log_returns_true_and_keeps_history(self):
        logger = AuditLogger()
        event = AuditEventBuilder.entry_deleted("guest-1", "guest", create_correlation_id())

        assert run(logger.log(event)) is True
        assert logger.history == [event]

    def test_history_is_bounded(self):
        logger = AuditLogger(history_size=3)
        for idx in range(5):
            run(logger.log(AuditEventBuilder.delete_cancelled(f"e-{idx}")))

        assert [e.entity_id for e in logger.history] == ["e-2", "e-3", "e-4"]

    def test_correlation_ids_are_unique(self):
        assert create_correlation_id() != create_correlation_id()
