from fastapi import APIRouter, Depends, Query

from app.core.deps import get_current_owner_id, get_custom_range, get_store
from app.schemas.analytics import CustomRange, DateRange, MetricReport, MetricType, MonthlyStats, TimeSeriesPoint
from app.services.analytics import build_metric_report, compute_history
from app.services.leaderboard import fetch_monthly_stats
from app.services.store import RowStore
from app.workers.tasks import refresh_personal_bests

router = APIRouter(prefix="/analytics", tags=["analytics"])


def _custom_or_none(range_token: DateRange, custom: CustomRange) -> CustomRange | None:
    return custom if range_token == DateRange.custom else None


@router.get("/metrics/{metric_type}", response_model=MetricReport)
async def metric_report(
    metric_type: MetricType,
    range_token: DateRange = Query(default=DateRange.this_month, alias="range"),
    custom: CustomRange = Depends(get_custom_range),
    owner_id: str = Depends(get_current_owner_id),
    store: RowStore = Depends(get_store),
):
    return await build_metric_report(store, metric_type, owner_id, range_token, _custom_or_none(range_token, custom))


@router.get("/history/{metric_type}", response_model=list[TimeSeriesPoint])
async def metric_history(
    metric_type: MetricType,
    range_token: DateRange = Query(default=DateRange.this_month, alias="range"),
    custom: CustomRange = Depends(get_custom_range),
    owner_id: str = Depends(get_current_owner_id),
    store: RowStore = Depends(get_store),
):
    return await compute_history(store, metric_type, owner_id, range_token, _custom_or_none(range_token, custom))


@router.get("/leaderboard", response_model=MonthlyStats)
async def leaderboard(
    owner_id: str = Depends(get_current_owner_id),
    store: RowStore = Depends(get_store),
):
    return await fetch_monthly_stats(store, owner_id)


@router.post("/leaderboard/refresh", status_code=202)
def refresh_leaderboard(owner_id: str = Depends(get_current_owner_id)):
    refresh_personal_bests.delay(owner_id)
    return {"status": "queued", "owner_id": owner_id}
