"""
Form Validation

DESIGN DECISION: Forms are validated before any store call is made.
A rejected form is never partially saved, and the caller keeps the
user's input so it can be corrected and resubmitted.

Messages are written for the person filling in the form, in the
same language as the form labels.

IMPORTANT: Validation NEVER silently fixes input.
It reports issues and the form is shown again.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from subtrack.config import get_settings
from subtrack.models.entry import (
    EntryCategory,
    EntryForm,
    FeedbackSubmission,
    PricingPeriod,
    ValidationIssue,
    ValidationResult,
)


# bcrypt only accepts passwords up to this many UTF-8 bytes
MAX_PASSWORD_BYTES = 72


class ValidationError(Exception):
    """A form was rejected. Carries the issues to show inline."""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        super().__init__("; ".join(issue.message for issue in issues))


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def issues_from_pydantic(error: PydanticValidationError) -> list[ValidationIssue]:
    """Map pydantic errors onto form issues (field = first location part)."""
    issues = []
    for err in error.errors():
        loc = err.get("loc") or ("form",)
        issues.append(ValidationIssue(
            field=str(loc[0]),
            issue_type=err.get("type", "invalid_value"),
            message=err.get("msg", "入力内容を確認してください"),
        ))
    return issues


class EntryFormValidator:
    """
    Validates the subscription entry form.

    Accepts raw form values (strings from inputs, or already-typed
    values) and produces an EntryForm.
    """

    def _check_fields(self, data: dict[str, Any]) -> list[ValidationIssue]:
        issues = []

        if _blank(data.get("name")):
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="サービス名を入力してください",
            ))

        period = data.get("pricing_period", PricingPeriod.MONTHLY)
        try:
            PricingPeriod(period)
        except ValueError:
            issues.append(ValidationIssue(
                field="pricing_period",
                issue_type="invalid_value",
                message="料金タイプは月額か年額を選択してください",
            ))

        amount = data.get("amount")
        if _blank(amount):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="料金を入力してください",
            ))
        else:
            try:
                parsed = Decimal(str(amount).strip())
            except InvalidOperation:
                parsed = None
            if parsed is None or not parsed.is_finite():
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_format",
                    message="料金は数値で入力してください",
                ))
            elif parsed < 0:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_value",
                    message="料金は0以上で入力してください",
                ))

        billing_day = data.get("billing_day")
        if _blank(billing_day):
            issues.append(ValidationIssue(
                field="billing_day",
                issue_type="missing",
                message="請求日を選択してください",
            ))
        else:
            try:
                day = int(str(billing_day).strip())
            except ValueError:
                day = None
            if day is None or not 1 <= day <= 31:
                issues.append(ValidationIssue(
                    field="billing_day",
                    issue_type="invalid_value",
                    message="請求日は1日から31日の間で選択してください",
                ))

        category = data.get("category")
        if _blank(category):
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="カテゴリを選択してください",
            ))
        else:
            try:
                EntryCategory(category)
            except ValueError:
                issues.append(ValidationIssue(
                    field="category",
                    issue_type="invalid_value",
                    message=f"不明なカテゴリです: {category}",
                ))

        return issues

    def validate(self, data: dict[str, Any]) -> tuple[Optional[EntryForm], ValidationResult]:
        """
        Validate raw form values.

        Returns:
            (form, result) - form is None when the result is invalid
        """
        issues = self._check_fields(data)
        if issues:
            return None, ValidationResult(is_valid=False, issues=issues)

        try:
            form = EntryForm(
                name=data["name"],
                pricing_period=data.get("pricing_period", PricingPeriod.MONTHLY),
                amount=Decimal(str(data["amount"]).strip()),
                billing_day=int(str(data["billing_day"]).strip()),
                category=data["category"],
                memo=data.get("memo") or None,
            )
        except PydanticValidationError as e:
            return None, ValidationResult(is_valid=False, issues=issues_from_pydantic(e))

        return form, ValidationResult(is_valid=True)


class AuthFormValidator:
    """Validates the login and registration forms."""

    def __init__(self, min_password_length: Optional[int] = None):
        self._min_length = min_password_length or get_settings().app.min_password_length

    def validate_sign_in(self, email: str, password: str) -> ValidationResult:
        issues = []
        if _blank(email):
            issues.append(ValidationIssue(
                field="email",
                issue_type="missing",
                message="メールアドレスを入力してください",
            ))
        if not password:
            issues.append(ValidationIssue(
                field="password",
                issue_type="missing",
                message="パスワードを入力してください",
            ))
        return ValidationResult(is_valid=not issues, issues=issues)

    def validate_registration(
        self,
        email: str,
        password: str,
        confirm_password: str,
    ) -> ValidationResult:
        """
        Check the registration form.

        Mismatch is reported before length. Length is checked in characters
        for the minimum and in UTF-8 bytes for the maximum.
        """
        result = self.validate_sign_in(email, password)
        issues = list(result.issues)
        if any(issue.field == "password" for issue in issues):
            return ValidationResult(is_valid=False, issues=issues)

        if password != confirm_password:
            issues.append(ValidationIssue(
                field="confirm_password",
                issue_type="mismatch",
                message="パスワードが一致しません",
            ))
        elif len(password) < self._min_length:
            issues.append(ValidationIssue(
                field="password",
                issue_type="too_short",
                message=f"パスワードは{self._min_length}文字以上で入力してください",
            ))
        elif len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            issues.append(ValidationIssue(
                field="password",
                issue_type="too_long",
                message=f"パスワードは{MAX_PASSWORD_BYTES}バイト以内で入力してください",
            ))

        return ValidationResult(is_valid=not issues, issues=issues)


def validate_feedback(data: dict[str, Any]) -> FeedbackSubmission:
    """
    Build a FeedbackSubmission from raw form values.

    Raises:
        ValidationError: If any field is missing or too long
    """
    cleaned = {key: value for key, value in data.items() if not _blank(value)}
    try:
        return FeedbackSubmission(**cleaned)
    except PydanticValidationError as e:
        raise ValidationError(issues_from_pydantic(e))


def get_user_friendly_summary(result: ValidationResult) -> str:
    """One message listing every issue, for a banner above the form."""
    if result.is_valid:
        return ""
    lines = ["入力内容を確認してください:"]
    for issue in result.issues:
        lines.append(f"   • {issue.message}")
    return "\n".join(lines)
