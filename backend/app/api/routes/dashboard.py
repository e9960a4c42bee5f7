from fastapi import APIRouter, Depends

from app.core.deps import get_current_owner_id, get_store
from app.schemas.dashboard import DashboardSummary
from app.services.dashboard import build_dashboard_summary
from app.services.store import RowStore

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/summary", response_model=DashboardSummary)
async def dashboard_summary(
    owner_id: str = Depends(get_current_owner_id),
    store: RowStore = Depends(get_store),
):
    return await build_dashboard_summary(store, owner_id)
