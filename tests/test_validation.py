"""Tests for form validation."""

from decimal import Decimal

import pytest

from subtrack.models.entry import EntryCategory, FeedbackType, PricingPeriod
from subtrack.validation import (
    AuthFormValidator,
    EntryFormValidator,
    ValidationError,
    get_user_friendly_summary,
    validate_feedback,
)


def _form(**overrides):
    data = {
        "name": "Netflix",
        "pricing_period": "monthly",
        "amount": "1490",
        "billing_day": "15",
        "category": "エンターテイメント",
        "memo": "",
    }
    data.update(overrides)
    return data


class TestEntryFormValidator:
    """Tests for the entry form."""

    def setup_method(self):
        self.validator = EntryFormValidator()

    def test_valid_form(self):
        form, result = self.validator.validate(_form())
        assert result.is_valid
        assert form.amount == Decimal("1490")
        assert form.billing_day == 15
        assert form.category == EntryCategory.ENTERTAINMENT
        assert form.memo is None

    def test_yearly(self):
        form, _ = self.validator.validate(_form(pricing_period="yearly", amount="17880"))
        assert form.pricing_period == PricingPeriod.YEARLY
        assert form.to_draft().monthly_amount == Decimal("1490")

    def test_period_defaults_to_monthly(self):
        data = _form()
        del data["pricing_period"]
        form, _ = self.validator.validate(data)
        assert form.pricing_period == PricingPeriod.MONTHLY

    @pytest.mark.parametrize("field", ["name", "amount", "billing_day", "category"])
    def test_missing_required_field(self, field):
        form, result = self.validator.validate(_form(**{field: ""}))
        assert form is None
        assert [i.field for i in result.issues] == [field]
        assert result.issues[0].issue_type == "missing"

    def test_non_numeric_amount(self):
        _, result = self.validator.validate(_form(amount="abc"))
        assert result.issues[0].issue_type == "invalid_format"

    def test_infinite_amount(self):
        _, result = self.validator.validate(_form(amount="Infinity"))
        assert result.issues[0].field == "amount"

    def test_negative_amount(self):
        _, result = self.validator.validate(_form(amount="-1"))
        assert result.issues[0].message == "料金は0以上で入力してください"

    def test_zero_amount_ok(self):
        form, result = self.validator.validate(_form(amount="0"))
        assert result.is_valid

    @pytest.mark.parametrize("day", ["0", "32", "x"])
    def test_bad_billing_day(self, day):
        _, result = self.validator.validate(_form(billing_day=day))
        assert result.issues[0].field == "billing_day"

    def test_unknown_category(self):
        _, result = self.validator.validate(_form(category="旅行"))
        assert result.issues[0].field == "category"

    def test_unknown_period(self):
        _, result = self.validator.validate(_form(pricing_period="weekly"))
        assert result.issues[0].field == "pricing_period"

    def test_every_issue_reported_at_once(self):
        _, result = self.validator.validate({"name": " ", "amount": "x"})
        assert {i.field for i in result.issues} == {"name", "amount", "billing_day", "category"}

    def test_summary(self):
        _, result = self.validator.validate(_form(name=""))
        summary = get_user_friendly_summary(result)
        assert "サービス名を入力してください" in summary


class TestAuthFormValidator:
    def setup_method(self):
        self.validator = AuthFormValidator(min_password_length=6)

    def test_sign_in_requires_both(self):
        result = self.validator.validate_sign_in("", "")
        assert {i.field for i in result.issues} == {"email", "password"}

    def test_registration_ok(self):
        assert self.validator.validate_registration("a@example.com", "secret1", "secret1").is_valid

    def test_mismatch(self):
        result = self.validator.validate_registration("a@example.com", "secret1", "secret2")
        assert result.issues[0].message == "パスワードが一致しません"

    def test_too_short(self):
        result = self.validator.validate_registration("a@example.com", "abc", "abc")
        assert result.issues[0].message == "パスワードは6文字以上で入力してください"

    def test_mismatch_reported_before_length(self):
        result = self.validator.validate_registration("a@example.com", "abc", "abd")
        assert [i.issue_type for i in result.issues] == ["mismatch"]

    def test_too_long_in_bytes(self):
        # 30 characters, but 90 UTF-8 bytes
        password = "パスワード" * 6
        result = self.validator.validate_registration("a@example.com", password, password)
        assert not result.is_valid
        assert [(i.field, i.issue_type) for i in result.issues] == [("password", "too_long")]
        assert result.issues[0].message == "パスワードは72バイト以内で入力してください"

    def test_exactly_72_bytes_is_accepted(self):
        password = "a" * 72
        assert self.validator.validate_registration("a@example.com", password, password).is_valid


class TestFeedbackValidation:
    def test_valid(self):
        feedback = validate_feedback({
            "feedback_type": FeedbackType.BUG_REPORT.value,
            "title": "グラフが表示されない",
            "description": "カテゴリが一つのとき",
            "email": "",
        })
        assert feedback.email is None

    def test_missing_title(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_feedback({
                "feedback_type": FeedbackType.OTHER.value,
                "title": "",
                "description": "d",
            })
        assert exc_info.value.issues[0].field == "title"
