from fastapi import APIRouter

from app.api.routes import analytics, dashboard, reports

api_router = APIRouter()
api_router.include_router(analytics.router)
api_router.include_router(dashboard.router)
api_router.include_router(reports.router)
