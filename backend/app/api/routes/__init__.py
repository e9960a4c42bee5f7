from app.api.routes import analytics, dashboard, reports

__all__ = [
    "analytics",
    "dashboard",
    "reports",
]
