"""Billing calculations and dashboard aggregates."""

from subtrack.billing.calculator import (
    billing_date_in_month,
    is_due_soon,
    monthly_preview,
    resolve_next_billing_date,
    to_monthly_amount,
    upcoming_reminders,
)
from subtrack.billing.aggregator import (
    average_per_entry,
    schedule_by_day,
    spend_by_category,
    summarize_entries,
    total_monthly_spend,
)

__all__ = [
    "billing_date_in_month",
    "is_due_soon",
    "monthly_preview",
    "resolve_next_billing_date",
    "to_monthly_amount",
    "upcoming_reminders",
    "average_per_entry",
    "schedule_by_day",
    "spend_by_category",
    "summarize_entries",
    "total_monthly_spend",
]
