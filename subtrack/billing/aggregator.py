"""
Aggregator

Deterministic aggregates over an entry collection, used by the dashboard.

GUARANTEES:
- Pure: the input is never modified
- Order-independent: shuffling the input gives the same result
- Sparse: categories and days without entries are absent, never zero
"""

from collections import defaultdict
from decimal import Decimal
from typing import Iterable

from subtrack.models.entry import (
    DashboardSummary,
    DaySchedule,
    Entry,
    EntryCategory,
)


_CATEGORY_ORDER = {category: index for index, category in enumerate(EntryCategory)}


def _sorted_entries(entries: Iterable[Entry]) -> list[Entry]:
    # Summation order is fixed so Decimal rounding cannot depend on input order
    return sorted(entries, key=lambda e: (e.name, e.id))


def total_monthly_spend(entries: Iterable[Entry]) -> Decimal:
    """Sum of monthly amounts; 0 for an empty collection."""
    return sum((e.monthly_amount for e in _sorted_entries(entries)), Decimal("0"))


def spend_by_category(entries: Iterable[Entry]) -> dict[EntryCategory, Decimal]:
    """
    Monthly spend per category.

    Keys follow the category declaration order.
    """
    totals: dict[EntryCategory, Decimal] = defaultdict(lambda: Decimal("0"))
    for entry in _sorted_entries(entries):
        totals[entry.category] += entry.monthly_amount

    return {
        category: totals[category]
        for category in sorted(totals, key=_CATEGORY_ORDER.__getitem__)
    }


def average_per_entry(entries: Iterable[Entry]) -> Decimal:
    """Average monthly amount, or 0 when there are no entries."""
    entries = list(entries)
    if not entries:
        return Decimal("0")
    return total_monthly_spend(entries) / len(entries)


def schedule_by_day(entries: Iterable[Entry]) -> list[DaySchedule]:
    """Billing schedule for the month, one item per day that has entries."""
    by_day: dict[int, list[Entry]] = defaultdict(list)
    for entry in _sorted_entries(entries):
        by_day[entry.billing_day].append(entry)

    return [
        DaySchedule(
            day=day,
            entries=day_entries,
            count=len(day_entries),
            amount=sum((e.monthly_amount for e in day_entries), Decimal("0")),
        )
        for day, day_entries in sorted(by_day.items())
    ]


def summarize_entries(entries: Iterable[Entry]) -> DashboardSummary:
    """All dashboard aggregates in one pass over a materialized list."""
    entries = list(entries)
    return DashboardSummary(
        total=total_monthly_spend(entries),
        count=len(entries),
        average=average_per_entry(entries),
        by_category=spend_by_category(entries),
        schedule=schedule_by_day(entries),
    )
