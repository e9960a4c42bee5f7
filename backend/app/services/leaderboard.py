import asyncio
from datetime import datetime, timezone
import logging

from sqlalchemy.orm import Session

from app.models.personal_best import PersonalBest, PersonalBestMetric
from app.schemas.analytics import Achievement, DateRange, MonthlyStats, MonthStats
from app.services.aggregators import conversion_rate, money
from app.services.date_windows import resolve_window
from app.services.store import RowStore, Table

logger = logging.getLogger(__name__)


def _current_by_metric(stats: MonthStats) -> dict[str, float]:
    return {
        PersonalBestMetric.monthly_revenue.value: stats.total_revenue,
        PersonalBestMetric.monthly_leads.value: float(stats.total_leads),
        PersonalBestMetric.monthly_conversion.value: stats.conversion_rate,
    }


async def current_month_stats(store: RowStore, owner_id: str, now: datetime | None = None) -> MonthStats:
    # Monthly sales are booked at sale value, unlike total_revenue which sums line items.
    window = resolve_window(DateRange.this_month, now or datetime.now(timezone.utc))
    lead_count, customers = await asyncio.gather(
        store.count_rows(Table.leads, owner_id, window=window),
        store.fetch_rows(Table.customers, owner_id, window=window),
    )
    return MonthStats(
        total_revenue=sum(money(c.sale_value) for c in customers),
        total_leads=lead_count,
        conversion_rate=conversion_rate(lead_count, len(customers)),
    )


async def fetch_monthly_stats(store: RowStore, owner_id: str, now: datetime | None = None) -> MonthlyStats:
    current, best_rows = await asyncio.gather(
        current_month_stats(store, owner_id, now),
        store.fetch_rows(Table.personal_bests, owner_id),
    )

    bests = {metric.value: 0.0 for metric in PersonalBestMetric}
    for row in best_rows:
        bests[row.metric_type] = row.value

    achievements = [
        Achievement(metric_type=metric, current=value, best=bests[metric], is_record=value >= bests[metric])
        for metric, value in _current_by_metric(current).items()
    ]
    return MonthlyStats(current=current, bests=bests, achievements=achievements)


def record_personal_bests(db: Session, owner_id: str, stats: MonthStats, achieved_at: datetime) -> list[str]:
    """Store every monthly figure that beats the owner's best; returns the metrics updated."""
    existing = {row.metric_type: row for row in db.query(PersonalBest).filter(PersonalBest.user_id == owner_id)}
    updated: list[str] = []

    for metric, value in _current_by_metric(stats).items():
        row = existing.get(metric)
        if row is None:
            if value <= 0:
                continue
            db.add(PersonalBest(user_id=owner_id, metric_type=metric, value=value, achieved_at=achieved_at))
        elif value > row.value:
            row.value = value
            row.achieved_at = achieved_at
        else:
            continue
        updated.append(metric)

    db.commit()
    if updated:
        logger.info("New personal bests for %s: %s", owner_id, ", ".join(updated))
    return updated
