"""
Data Models Package

This package contains all Pydantic models used in SubTrack.
All data flowing through the system must conform to these schemas.
"""

from subtrack.models.entry import (
    GUEST_OWNER_ID,
    DashboardSummary,
    DaySchedule,
    Entry,
    EntryCategory,
    EntryChanges,
    EntryDraft,
    EntryForm,
    FeedbackSubmission,
    FeedbackType,
    PricingPeriod,
    Reminder,
    ValidationIssue,
    ValidationResult,
    utcnow,
)
from subtrack.models.session import (
    GUEST_IDENTITY,
    Identity,
    Session,
    SessionMode,
)
from subtrack.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Entry models
    "GUEST_OWNER_ID",
    "DashboardSummary",
    "DaySchedule",
    "Entry",
    "EntryCategory",
    "EntryChanges",
    "EntryDraft",
    "EntryForm",
    "FeedbackSubmission",
    "FeedbackType",
    "PricingPeriod",
    "Reminder",
    "ValidationIssue",
    "ValidationResult",
    "utcnow",
    # Session models
    "GUEST_IDENTITY",
    "Identity",
    "Session",
    "SessionMode",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
