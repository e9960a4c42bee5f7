import asyncio
from datetime import datetime, timezone

from app.core.database import SessionLocal
from app.services.leaderboard import current_month_stats, record_personal_bests
from app.services.store import SqlRowStore
from app.workers.celery_app import celery_app


@celery_app.task
def refresh_personal_bests(owner_id: str) -> dict:
    now = datetime.now(timezone.utc)
    stats = asyncio.run(current_month_stats(SqlRowStore(SessionLocal), owner_id, now))

    db = SessionLocal()
    try:
        updated = record_personal_bests(db, owner_id, stats, now.replace(tzinfo=None))
        return {"owner_id": owner_id, "updated": updated}
    finally:
        db.close()
