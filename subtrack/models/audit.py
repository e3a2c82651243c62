"""
Audit Models for SubTrack

Every user-visible action is logged as a structured event.
This provides:
1. Traceability of edits and deletions (which are irreversible)
2. Debugging information when the remote store misbehaves
3. A record of feedback submissions, which are not delivered anywhere else
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from subtrack.models.entry import utcnow


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Entry lifecycle
    ENTRY_CREATED = "entry_created"
    ENTRY_UPDATED = "entry_updated"
    ENTRY_DELETED = "entry_deleted"
    DELETE_CANCELLED = "delete_cancelled"
    VALIDATION_FAILED = "validation_failed"

    # Session
    GUEST_MODE_ENTERED = "guest_mode_entered"
    GUEST_MODE_EXITED = "guest_mode_exited"
    USER_SIGNED_IN = "user_signed_in"
    USER_SIGNED_UP = "user_signed_up"
    USER_SIGNED_OUT = "user_signed_out"
    AUTHENTICATION_FAILED = "authentication_failed"

    # Misc
    FEEDBACK_SUBMITTED = "feedback_submitted"
    SERVICE_ERROR = "service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'entry', 'session', 'feedback')"
    )
    entity_id: Optional[str] = None

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate events of one user action"
    )

    # Which store the action went to
    session_mode: Optional[str] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "session_mode": self.session_mode,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.entry_created(entry_id, name, "guest", correlation_id)
    """

    @staticmethod
    def entry_created(
        entry_id: str,
        name: str,
        session_mode: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_CREATED,
            entity_type="entry",
            entity_id=entry_id,
            correlation_id=correlation_id,
            session_mode=session_mode,
            description=f"Entry created: {name}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def entry_updated(
        entry_id: str,
        fields: list[str],
        session_mode: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_UPDATED,
            entity_type="entry",
            entity_id=entry_id,
            correlation_id=correlation_id,
            session_mode=session_mode,
            description=f"Entry updated ({len(fields)} fields)",
            details={"fields": fields},
            is_user_action=True,
        )

    @staticmethod
    def entry_deleted(
        entry_id: str,
        session_mode: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_DELETED,
            entity_type="entry",
            entity_id=entry_id,
            correlation_id=correlation_id,
            session_mode=session_mode,
            description="Entry deleted",
            is_user_action=True,
        )

    @staticmethod
    def delete_cancelled(
        entry_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DELETE_CANCELLED,
            severity=AuditSeverity.DEBUG,
            entity_type="entry",
            entity_id=entry_id,
            correlation_id=correlation_id,
            description="User declined delete confirmation",
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        form: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="form",
            entity_id=form,
            correlation_id=correlation_id,
            description=f"{form} form rejected with {len(issues)} issues",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def session_changed(
        event_type: AuditEventType,
        identity_id: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            entity_type="session",
            entity_id=identity_id,
            correlation_id=correlation_id,
            description=event_type.value.replace("_", " ").capitalize(),
            is_user_action=True,
        )

    @staticmethod
    def authentication_failed(
        email: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AUTHENTICATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="session",
            correlation_id=correlation_id,
            description="Sign-in or sign-up rejected",
            details={"email": email},
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def feedback_submitted(
        feedback_type: str,
        title: str,
        description: str,
        email: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FEEDBACK_SUBMITTED,
            entity_type="feedback",
            correlation_id=correlation_id,
            description=f"Feedback received: {title}",
            details={
                "feedback_type": feedback_type,
                "title": title,
                "description": description,
                "reply_to": email,
            },
            is_user_action=True,
        )

    @staticmethod
    def service_error(
        operation: str,
        error_message: str,
        session_mode: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            session_mode=session_mode,
            description=f"Store call failed: {operation}",
            details={"operation": operation},
            error_message=error_message,
        )
