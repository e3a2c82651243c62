"""Form validation package."""

from subtrack.validation.validator import (
    AuthFormValidator,
    EntryFormValidator,
    ValidationError,
    get_user_friendly_summary,
    issues_from_pydantic,
    validate_feedback,
)

__all__ = [
    "AuthFormValidator",
    "EntryFormValidator",
    "ValidationError",
    "get_user_friendly_summary",
    "issues_from_pydantic",
    "validate_feedback",
]
