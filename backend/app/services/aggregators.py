"""Pure reductions from store records to reported numbers.

Nothing here talks to the store; every function takes rows that were already
filtered to a window and returns a scalar, a breakdown or a daily series.
"""
from collections.abc import Callable, Iterable, Sequence
from datetime import date
from typing import Any

from app.models.customer import ONE_TIME_FREQUENCY
from app.schemas.analytics import BreakdownEntry, TimeSeriesPoint
from app.schemas.records import CustomerRecord
from app.services.date_windows import utc_day


def money(value: float | None) -> float:
    return float(value or 0)


def line_items_total(customer: CustomerRecord) -> float:
    return sum(money(item.price) for item in customer.line_items or [])


def is_recurring(customer: CustomerRecord) -> bool:
    return customer.service_frequency != ONE_TIME_FREQUENCY


def count_rows(rows: Sequence[Any]) -> int:
    return len(rows)


def total_revenue(customers: Iterable[CustomerRecord]) -> float:
    # Line items govern revenue; sale_value can drift from them after edits.
    return sum(line_items_total(c) for c in customers)


def recurring_revenue(customers: Iterable[CustomerRecord]) -> float:
    return sum(money(c.sale_value) for c in customers if is_recurring(c))


def conversion_rate(lead_count: int, customer_count: int) -> float:
    if not lead_count:
        return 0.0
    return round(customer_count * 100 / lead_count, 1)


def percentage_change(current: float, previous: float) -> float:
    """Period-over-period change in percent; 0 when there is nothing to compare against."""
    if not previous:
        return 0.0
    return (current - previous) / previous * 100


def breakdown(rows: Iterable[Any], field: str) -> list[BreakdownEntry]:
    counts: dict[str, int] = {}
    for row in rows:
        label = getattr(row, field, None)
        if label is None or label == "":
            continue
        counts[label] = counts.get(label, 0) + 1

    total = sum(counts.values())
    entries = [
        BreakdownEntry(label=label, count=count, percentage=round(count / total * 100, 2))
        for label, count in counts.items()
    ]
    # sort() is stable, so equal counts keep first-seen order.
    entries.sort(key=lambda e: e.count, reverse=True)
    return entries


def recurring_breakdown(customers: Iterable[CustomerRecord], field: str) -> list[BreakdownEntry]:
    return breakdown((c for c in customers if is_recurring(c)), field)


def _group_by_day(rows: Iterable[Any], value_of: Callable[[Any], float], time_field: str) -> dict[date, float]:
    totals: dict[date, float] = {}
    for row in rows:
        stamp = getattr(row, time_field, None)
        if stamp is None:
            continue
        day = utc_day(stamp)
        totals[day] = totals.get(day, 0) + value_of(row)
    return totals


def daily_series(
    rows: Iterable[Any],
    value_of: Callable[[Any], float] = lambda _row: 1,
    time_field: str = "created_at",
) -> list[TimeSeriesPoint]:
    """Sum ``value_of`` per UTC day. Sparse: days without rows are left out."""
    totals = _group_by_day(rows, value_of, time_field)
    return [TimeSeriesPoint(date=day.isoformat(), value=value) for day, value in sorted(totals.items())]


def daily_conversion_series(leads: Iterable[Any], customers: Iterable[Any]) -> list[TimeSeriesPoint]:
    """Per-day conversion rate over every day that has leads or customers.

    Unlike :func:`daily_series` this one is zero-filled: a day with leads but
    no customers reports 0, and so does a day with customers but no leads.
    """
    lead_counts = _group_by_day(leads, lambda _row: 1, "created_at")
    customer_counts = _group_by_day(customers, lambda _row: 1, "created_at")
    days = sorted(set(lead_counts) | set(customer_counts))
    return [
        TimeSeriesPoint(
            date=day.isoformat(),
            value=conversion_rate(int(lead_counts.get(day, 0)), int(customer_counts.get(day, 0))),
        )
        for day in days
    ]
