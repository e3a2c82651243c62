"""
Core Data Models for SubTrack

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce the entry invariants at runtime
2. Provide clear validation error messages for the forms
3. Be serializable for both local JSON storage and the remote sheet

DESIGN DECISION: Every amount is stored as a MONTHLY figure.
Yearly prices are divided by 12 before an Entry is ever created,
so the aggregates never need to know how a price was entered.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


GUEST_OWNER_ID = "guest"


def utcnow() -> datetime:
    """Timezone-aware current time, used for every entry timestamp."""
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class EntryCategory(str, Enum):
    """
    Supported subscription categories.

    The values are the labels shown in the category selector.
    Declaration order is also the display order of the dashboard.
    """
    ENTERTAINMENT = "エンターテイメント"
    BUSINESS = "ビジネス"
    HEALTH_FITNESS = "ヘルス・フィットネス"
    EDUCATION = "教育"
    UTILITY = "ユーティリティ"
    OTHER = "その他"


class PricingPeriod(str, Enum):
    """How the user entered the price on the form."""
    MONTHLY = "monthly"
    YEARLY = "yearly"


class FeedbackType(str, Enum):
    """Feedback form categories."""
    BUG_REPORT = "バグ報告"
    FEATURE_REQUEST = "新機能の要望"
    UI_UX = "UI/UXの改善"
    PERFORMANCE = "パフォーマンスの改善"
    OTHER = "その他"


# =============================================================================
# CORE ENTRY MODEL
# =============================================================================

class EntryDraft(BaseModel):
    """
    A normalized entry as produced by the entry form.

    Carries no id, owner or timestamps: the store assigns those.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Service name (e.g. Netflix)"
    )
    monthly_amount: Decimal = Field(
        ...,
        ge=0,
        description="Monthly-equivalent cost"
    )
    billing_day: int = Field(
        ...,
        ge=1,
        le=31,
        description="Day of month the service bills on"
    )
    category: EntryCategory
    memo: Optional[str] = Field(
        default=None,
        max_length=1000,
    )


class EntryChanges(BaseModel):
    """
    Partial update payload.

    Only the fields that were explicitly set are applied,
    so an edit form can send just what changed.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    monthly_amount: Optional[Decimal] = Field(default=None, ge=0)
    billing_day: Optional[int] = Field(default=None, ge=1, le=31)
    category: Optional[EntryCategory] = None
    memo: Optional[str] = Field(default=None, max_length=1000)

    def applied_fields(self) -> dict:
        return self.model_dump(exclude_unset=True)


class Entry(BaseModel):
    """
    A tracked subscription.

    Belongs to exactly one collection: the remote collection of one
    account, or the local guest collection (owner_id == "guest").
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    # Identity
    id: str = Field(
        ...,
        min_length=1,
        description="Opaque unique identifier"
    )
    owner_id: str = Field(
        ...,
        min_length=1,
        description="Owning account id, or the guest sentinel"
    )

    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
    )
    monthly_amount: Decimal = Field(
        ...,
        ge=0,
        description="Monthly-equivalent cost (never rounded at storage time)"
    )
    billing_day: int = Field(
        ...,
        ge=1,
        le=31,
        description="Day of month; 29-31 are accepted year-round"
    )
    category: EntryCategory
    memo: Optional[str] = Field(
        default=None,
        max_length=1000,
    )

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode='after')
    def validate_timestamps(self) -> 'Entry':
        if self.updated_at < self.created_at:
            raise ValueError("updated_at cannot be before created_at")
        return self

    @classmethod
    def from_draft(
        cls,
        draft: EntryDraft,
        entry_id: str,
        owner_id: str,
        now: Optional[datetime] = None,
    ) -> 'Entry':
        """Create a new entry; created_at and updated_at start out equal."""
        now = now or utcnow()
        return cls(
            id=entry_id,
            owner_id=owner_id,
            created_at=now,
            updated_at=now,
            **draft.model_dump(),
        )

    def with_changes(self, changes: EntryChanges, now: Optional[datetime] = None) -> 'Entry':
        """
        Return a re-validated copy with the changes applied.

        updated_at is refreshed; it never moves behind created_at.
        """
        now = now or utcnow()
        data = self.model_dump()
        data.update(changes.applied_fields())
        data["updated_at"] = max(now, self.created_at)
        return Entry.model_validate(data)


# =============================================================================
# FORM MODELS
# =============================================================================

class EntryForm(BaseModel):
    """
    Raw input of the entry form.

    The amount is whatever the user typed for the selected period.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=200)
    pricing_period: PricingPeriod = PricingPeriod.MONTHLY
    amount: Decimal = Field(..., ge=0)
    billing_day: int = Field(..., ge=1, le=31)
    category: EntryCategory
    memo: Optional[str] = Field(default=None, max_length=1000)

    def to_draft(self) -> EntryDraft:
        """Normalize to a monthly figure."""
        from subtrack.billing.calculator import to_monthly_amount

        return EntryDraft(
            name=self.name,
            monthly_amount=to_monthly_amount(self.amount, self.pricing_period),
            billing_day=self.billing_day,
            category=self.category,
            memo=self.memo or None,
        )


class FeedbackSubmission(BaseModel):
    """Feedback sent from the dashboard footer form."""
    model_config = ConfigDict(str_strip_whitespace=True)

    feedback_type: FeedbackType
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=500)
    email: Optional[str] = Field(
        default=None,
        max_length=254,
        pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$",
        description="Only needed when the user wants a reply"
    )


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found on a form."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'mismatch')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """Outcome of validating one form submission."""

    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")


# =============================================================================
# DERIVED VIEW MODELS
# =============================================================================

class Reminder(BaseModel):
    """An entry that bills today or tomorrow."""

    entry: Entry
    billing_date: date
    is_today: bool


class DaySchedule(BaseModel):
    """All entries billing on one day of the month."""

    day: int = Field(..., ge=1, le=31)
    entries: list[Entry] = Field(default_factory=list)
    count: int = Field(..., ge=0)
    amount: Decimal = Field(..., ge=0)


class DashboardSummary(BaseModel):
    """Everything the dashboard view shows."""

    total: Decimal
    count: int
    average: Decimal
    by_category: dict[EntryCategory, Decimal] = Field(default_factory=dict)
    schedule: list[DaySchedule] = Field(default_factory=list)
