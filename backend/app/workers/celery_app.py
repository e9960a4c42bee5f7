from celery import Celery

from app.core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "service_crm",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["app.workers.tasks"],
)
celery_app.conf.timezone = "UTC"
