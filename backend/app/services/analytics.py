import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from typing import Any

from app.models.customer import CustomerStatus
from app.schemas.analytics import (
    CustomRange,
    DateRange,
    DateWindow,
    MetricReport,
    MetricResult,
    MetricShape,
    MetricType,
    TimeSeriesPoint,
)
from app.services.aggregators import (
    breakdown,
    conversion_rate,
    daily_conversion_series,
    daily_series,
    is_recurring,
    line_items_total,
    money,
    percentage_change,
    recurring_breakdown,
    recurring_revenue,
    total_revenue,
)
from app.services.date_windows import previous_window, resolve_window
from app.services.store import RowStore, Table

logger = logging.getLogger(__name__)


class UnsupportedMetric(ValueError):
    pass


@dataclass(frozen=True)
class RowSource:
    table: Table
    filters: tuple[tuple[str, Any], ...] = ()
    time_field: str = "created_at"


@dataclass(frozen=True)
class MetricDefinition:
    shape: MetricShape
    sources: tuple[RowSource, ...]
    # Called with one argument per source: a row count when count_only, else the rows.
    reduce: Callable[..., Any]
    # Same arguments as reduce but always rows; None when the metric has no chart.
    daily: Callable[..., list[TimeSeriesPoint]] | None = None
    count_only: bool = False


LEADS = RowSource(Table.leads)
CUSTOMERS = RowSource(Table.customers)
# Lost customers are counted when they turned inactive, not when they were created.
LOST_CUSTOMERS = RowSource(Table.customers, (("status", CustomerStatus.inactive.value),), "inactive_at")


def _identity(count: int) -> int:
    return count


METRICS: dict[MetricType, MetricDefinition] = {
    MetricType.new_leads: MetricDefinition(
        shape=MetricShape.scalar,
        sources=(LEADS,),
        reduce=_identity,
        daily=daily_series,
        count_only=True,
    ),
    MetricType.new_customers: MetricDefinition(
        shape=MetricShape.scalar,
        sources=(CUSTOMERS,),
        reduce=_identity,
        daily=daily_series,
        count_only=True,
    ),
    MetricType.total_revenue: MetricDefinition(
        shape=MetricShape.scalar,
        sources=(CUSTOMERS,),
        reduce=total_revenue,
        daily=lambda customers: daily_series(customers, line_items_total),
    ),
    MetricType.recurring_revenue: MetricDefinition(
        shape=MetricShape.scalar,
        sources=(CUSTOMERS,),
        reduce=recurring_revenue,
        daily=lambda customers: daily_series(
            [c for c in customers if is_recurring(c)], lambda c: money(c.sale_value)
        ),
    ),
    MetricType.conversion_rate: MetricDefinition(
        shape=MetricShape.scalar,
        sources=(LEADS, CUSTOMERS),
        reduce=conversion_rate,
        daily=daily_conversion_series,
        count_only=True,
    ),
    MetricType.customers_lost: MetricDefinition(
        shape=MetricShape.scalar,
        sources=(LOST_CUSTOMERS,),
        reduce=_identity,
        daily=lambda customers: daily_series(customers, time_field="inactive_at"),
        count_only=True,
    ),
    MetricType.leads_by_source: MetricDefinition(
        shape=MetricShape.breakdown,
        sources=(LEADS,),
        reduce=lambda leads: breakdown(leads, "lead_source"),
    ),
    MetricType.customers_by_type: MetricDefinition(
        shape=MetricShape.breakdown,
        sources=(CUSTOMERS,),
        reduce=lambda customers: breakdown(customers, "service_type"),
    ),
    MetricType.customers_by_frequency: MetricDefinition(
        shape=MetricShape.breakdown,
        sources=(CUSTOMERS,),
        reduce=lambda customers: recurring_breakdown(customers, "service_frequency"),
    ),
}


def get_definition(metric_type: MetricType | str) -> tuple[MetricType, MetricDefinition]:
    try:
        metric_type = MetricType(metric_type)
    except ValueError as exc:
        raise UnsupportedMetric(f"Unknown metric: {metric_type}") from exc
    return metric_type, METRICS[metric_type]


async def _load(store: RowStore, sources: tuple[RowSource, ...], owner_id: str, window: DateWindow, counts: bool):
    # Sources are independent reads; issue them together.
    reads = []
    for source in sources:
        read = store.count_rows if counts else store.fetch_rows
        reads.append(
            read(
                source.table,
                owner_id,
                window=window,
                filters=dict(source.filters) or None,
                time_field=source.time_field,
            )
        )
    return await asyncio.gather(*reads)


async def _evaluate(store: RowStore, definition: MetricDefinition, owner_id: str, window: DateWindow):
    loaded = await _load(store, definition.sources, owner_id, window, counts=definition.count_only)
    return definition.reduce(*loaded)


async def _history(store: RowStore, definition: MetricDefinition, owner_id: str, window: DateWindow):
    rows = await _load(store, definition.sources, owner_id, window, counts=False)
    return definition.daily(*rows)


async def compute_metric(
    store: RowStore,
    metric_type: MetricType | str,
    owner_id: str,
    range_token: DateRange | str,
    custom: CustomRange | None = None,
    now: datetime | None = None,
) -> MetricResult:
    metric_type, definition = get_definition(metric_type)
    window = resolve_window(range_token, now or datetime.now(timezone.utc), custom)
    value = await _evaluate(store, definition, owner_id, window)

    if definition.shape == MetricShape.breakdown:
        return MetricResult(metric_type=metric_type, shape=definition.shape, window=window, breakdown=value)
    return MetricResult(metric_type=metric_type, shape=definition.shape, window=window, value=value)


async def compute_history(
    store: RowStore,
    metric_type: MetricType | str,
    owner_id: str,
    range_token: DateRange | str,
    custom: CustomRange | None = None,
    now: datetime | None = None,
) -> list[TimeSeriesPoint]:
    metric_type, definition = get_definition(metric_type)
    if definition.daily is None:
        raise UnsupportedMetric(f"{metric_type.value} has no daily history")
    window = resolve_window(range_token, now or datetime.now(timezone.utc), custom)
    return await _history(store, definition, owner_id, window)


async def build_metric_report(
    store: RowStore,
    metric_type: MetricType | str,
    owner_id: str,
    range_token: DateRange | str,
    custom: CustomRange | None = None,
    now: datetime | None = None,
) -> MetricReport:
    """Current value, previous-period comparison and chart data for one metric.

    Breakdown metrics carry no comparison; ``all_time`` has no previous period.
    Either every read succeeds and a full report is returned, or the first
    failure propagates.
    """
    metric_type, definition = get_definition(metric_type)
    now = now or datetime.now(timezone.utc)

    window = resolve_window(range_token, now, custom)
    range_token = DateRange(range_token)
    is_scalar = definition.shape == MetricShape.scalar
    prev_window = previous_window(range_token, now, custom) if is_scalar else None

    async def no_value():
        return None

    current, previous, history = await asyncio.gather(
        _evaluate(store, definition, owner_id, window),
        _evaluate(store, definition, owner_id, prev_window) if prev_window else no_value(),
        _history(store, definition, owner_id, window) if definition.daily else no_value(),
    )
    logger.debug("Metric %s for %s over %s..%s", metric_type.value, owner_id, window.start, window.end)

    report = MetricReport(
        metric_type=metric_type,
        range=range_token,
        shape=definition.shape,
        window=window,
        previous_window=prev_window,
        history=history or [],
    )
    if is_scalar:
        report.value = current
        if prev_window is not None:
            report.previous_value = previous
            report.change_pct = percentage_change(current, previous)
    else:
        report.breakdown = current
        report.total = sum(entry.count for entry in current)
    return report
