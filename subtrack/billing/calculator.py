"""
Billing Calculator

Pure functions over billing days. No storage, no clock: every
function takes the reference date it should reason about.

DESIGN DECISION: Billing days 29-31 are accepted in every month.
When the target month is shorter, the billing date is clamped to
its last day (31 in April bills on the 30th, 30 in February bills
on the 28th or 29th). Rolling over into the next month instead
would make a "31" subscription skip short months entirely.
"""

import calendar
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional, Union

from subtrack.models.entry import Entry, PricingPeriod, Reminder


MONTHS_PER_YEAR = 12

DateLike = Union[date, datetime]


def to_monthly_amount(raw_amount: Decimal, pricing_period: PricingPeriod) -> Decimal:
    """
    Normalize a price to its monthly equivalent.

    Yearly prices are divided by 12. No rounding is applied here;
    the UI rounds only for display.
    """
    amount = Decimal(str(raw_amount)) if not isinstance(raw_amount, Decimal) else raw_amount
    if PricingPeriod(pricing_period) == PricingPeriod.YEARLY:
        return amount / MONTHS_PER_YEAR
    return amount


def monthly_preview(raw_amount: str, pricing_period: PricingPeriod) -> Optional[Decimal]:
    """Monthly equivalent of a yearly price still being typed, or None."""
    if PricingPeriod(pricing_period) != PricingPeriod.YEARLY:
        return None
    try:
        amount = Decimal(str(raw_amount).strip())
    except InvalidOperation:
        return None
    if not amount.is_finite() or amount < 0:
        return None
    return to_monthly_amount(amount, PricingPeriod.YEARLY)


def _as_date(value: DateLike) -> date:
    """Drop the time of day; comparisons are calendar-day based."""
    if isinstance(value, datetime):
        return value.date()
    return value


def billing_date_in_month(billing_day: int, year: int, month: int) -> date:
    """The billing date for a given month, clamped to the month's last day."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(billing_day, last_day))


def add_months(year: int, month: int, months: int) -> tuple[int, int]:
    month_index = month - 1 + months
    return year + month_index // 12, month_index % 12 + 1


def resolve_next_billing_date(billing_day: int, reference_date: DateLike) -> date:
    """
    Resolve the next date this billing day falls on.

    The candidate is the billing day in the reference month. If that
    is strictly before the reference date it moves one calendar month
    forward, keeping the same day (clamped).
    """
    if not 1 <= billing_day <= 31:
        raise ValueError(f"billing_day must be in 1..31, got {billing_day}")

    reference = _as_date(reference_date)
    candidate = billing_date_in_month(billing_day, reference.year, reference.month)

    if candidate < reference:
        year, month = add_months(reference.year, reference.month, 1)
        candidate = billing_date_in_month(billing_day, year, month)

    return candidate


def is_due_soon(billing_day: int, reference_date: DateLike) -> bool:
    """True if the next billing date is the reference date or the day after."""
    reference = _as_date(reference_date)
    next_date = resolve_next_billing_date(billing_day, reference)
    return next_date in (reference, reference + timedelta(days=1))


def upcoming_reminders(entries: Iterable[Entry], reference_date: DateLike) -> list[Reminder]:
    """
    Entries billing today or tomorrow, soonest first.

    Ties are broken by name so the reminder panel is stable.
    """
    reference = _as_date(reference_date)
    reminders = []
    for entry in entries:
        if not is_due_soon(entry.billing_day, reference):
            continue
        billing_date = resolve_next_billing_date(entry.billing_day, reference)
        reminders.append(Reminder(
            entry=entry,
            billing_date=billing_date,
            is_today=billing_date == reference,
        ))

    reminders.sort(key=lambda r: (r.billing_date, r.entry.name, r.entry.id))
    return reminders
