from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from app.core.deps import get_current_owner_id, get_custom_range, get_store
from app.schemas.analytics import CustomRange, DateRange, MetricType
from app.services.analytics import build_metric_report
from app.services.reports import history_csv, report_pdf
from app.services.store import RowStore

router = APIRouter(prefix="/reports", tags=["reports"])


async def _report(metric_type, range_token, custom, owner_id, store):
    custom = custom if range_token == DateRange.custom else None
    return await build_metric_report(store, metric_type, owner_id, range_token, custom)


@router.get("/{metric_type}.csv")
async def export_metric_csv(
    metric_type: MetricType,
    range_token: DateRange = Query(default=DateRange.this_month, alias="range"),
    custom: CustomRange = Depends(get_custom_range),
    owner_id: str = Depends(get_current_owner_id),
    store: RowStore = Depends(get_store),
):
    report = await _report(metric_type, range_token, custom, owner_id, store)
    return Response(
        content=history_csv(report),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={metric_type.value}.csv"},
    )


@router.get("/{metric_type}.pdf")
async def export_metric_pdf(
    metric_type: MetricType,
    range_token: DateRange = Query(default=DateRange.this_month, alias="range"),
    custom: CustomRange = Depends(get_custom_range),
    owner_id: str = Depends(get_current_owner_id),
    store: RowStore = Depends(get_store),
):
    report = await _report(metric_type, range_token, custom, owner_id, store)
    return Response(
        content=report_pdf(report),
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={metric_type.value}.pdf"},
    )
