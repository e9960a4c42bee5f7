import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from app.api.api import api_router
from app.core.config import get_settings
from app.core.logging import configure_logging
from app.core.middleware import RequestIDMiddleware, SecurityHeadersMiddleware
from app.core.rate_limit import limiter
from app.services.analytics import UnsupportedMetric
from app.services.date_windows import InvalidDateRange
from app.services.store import StoreError

settings = get_settings()
configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    docs_url="/docs" if settings.ENABLE_API_DOCS else None,
    redoc_url="/redoc" if settings.ENABLE_API_DOCS else None,
    openapi_url="/openapi.json" if settings.ENABLE_API_DOCS else None,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(RequestIDMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "x-request-id"],
)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    # One generic message; the client shows "failed to load" and nothing partial.
    logger.error("Upstream read failed for %s: %s", request.url.path, exc)
    return JSONResponse(status_code=502, content={"detail": "Failed to load metrics"})


@app.exception_handler(InvalidDateRange)
async def invalid_range_handler(request: Request, exc: InvalidDateRange):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(UnsupportedMetric)
async def unsupported_metric_handler(request: Request, exc: UnsupportedMetric):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.get("/health")
@limiter.limit("60/minute")
def health(request: Request):
    return {"status": "ok"}


@app.get(settings.API_V1_STR, include_in_schema=False)
def api_v1_root():
    return {
        "base": settings.API_V1_STR,
        "endpoints": [
            "/analytics/metrics/{metric_type}",
            "/analytics/history/{metric_type}",
            "/analytics/leaderboard",
            "/dashboard/summary",
            "/reports/{metric_type}.csv",
            "/reports/{metric_type}.pdf",
        ],
    }


app.include_router(api_router, prefix=settings.API_V1_STR)
