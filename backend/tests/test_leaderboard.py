"""
Monthly stats, personal bests and the background refresh task.
"""
from datetime import datetime, timezone
from unittest.mock import patch

from app.models.personal_best import PersonalBest
from app.schemas.analytics import MonthStats
from app.services.leaderboard import current_month_stats, fetch_monthly_stats, record_personal_bests
from app.workers.tasks import refresh_personal_bests
from tests.conftest import OTHER_OWNER_ID, OWNER_ID

NOW = datetime(2024, 3, 15, 14, 30, tzinfo=timezone.utc)
IN_MONTH = datetime(2024, 3, 4, 9, 0)
LAST_MONTH = datetime(2024, 2, 20, 9, 0)


def _bests(db, owner_id=OWNER_ID):
    rows = db.query(PersonalBest).filter(PersonalBest.user_id == owner_id).all()
    return {row.metric_type: row.value for row in rows}


class TestCurrentMonthStats:
    async def test_sums_sale_value_for_this_month(self, store, make_lead, make_customer):
        for _ in range(4):
            make_lead(IN_MONTH)
        make_lead(LAST_MONTH)
        make_customer(IN_MONTH, sale_value=200, line_items=[{"price": 999}])
        make_customer(LAST_MONTH, sale_value=50)
        make_customer(IN_MONTH, sale_value=75, owner_id=OTHER_OWNER_ID)

        stats = await current_month_stats(store, OWNER_ID, NOW)

        assert stats == MonthStats(total_revenue=200, total_leads=4, conversion_rate=25.0)

    async def test_empty_month(self, store):
        stats = await current_month_stats(store, OWNER_ID, NOW)
        assert stats == MonthStats(total_revenue=0, total_leads=0, conversion_rate=0)


class TestFetchMonthlyStats:
    async def test_missing_bests_default_to_zero(self, store, make_lead):
        make_lead(IN_MONTH)

        result = await fetch_monthly_stats(store, OWNER_ID, NOW)

        assert result.bests == {"monthly_revenue": 0, "monthly_leads": 0, "monthly_conversion": 0}
        leads = next(a for a in result.achievements if a.metric_type == "monthly_leads")
        assert leads.current == 1
        assert leads.is_record

    async def test_compares_against_stored_bests(self, store, make_lead, make_customer, make_personal_best):
        make_lead(IN_MONTH)
        make_lead(IN_MONTH)
        make_customer(IN_MONTH, sale_value=300)
        make_personal_best("monthly_revenue", 500)
        make_personal_best("monthly_leads", 2)
        make_personal_best("monthly_revenue", 10, owner_id=OTHER_OWNER_ID)

        result = await fetch_monthly_stats(store, OWNER_ID, NOW)

        by_metric = {a.metric_type: a for a in result.achievements}
        assert result.bests["monthly_revenue"] == 500
        assert not by_metric["monthly_revenue"].is_record
        # Matching the best counts as a record.
        assert by_metric["monthly_leads"].is_record
        assert by_metric["monthly_conversion"].current == 50.0


class TestRecordPersonalBests:
    def test_inserts_first_bests_and_skips_zeros(self, db):
        stats = MonthStats(total_revenue=1200, total_leads=0, conversion_rate=0)

        updated = record_personal_bests(db, OWNER_ID, stats, datetime(2024, 3, 15))

        assert updated == ["monthly_revenue"]
        assert _bests(db) == {"monthly_revenue": 1200}

    def test_updates_only_beaten_bests(self, db, make_personal_best):
        make_personal_best("monthly_revenue", 1500)
        make_personal_best("monthly_leads", 8)
        stats = MonthStats(total_revenue=1200, total_leads=9, conversion_rate=12.5)

        updated = record_personal_bests(db, OWNER_ID, stats, datetime(2024, 3, 15))

        assert sorted(updated) == ["monthly_conversion", "monthly_leads"]
        assert _bests(db) == {"monthly_revenue": 1500, "monthly_leads": 9, "monthly_conversion": 12.5}

    def test_nothing_beaten(self, db, make_personal_best):
        make_personal_best("monthly_leads", 8)
        stats = MonthStats(total_revenue=0, total_leads=8, conversion_rate=0)
        assert record_personal_bests(db, OWNER_ID, stats, datetime(2024, 3, 15)) == []


class TestRefreshTask:
    def test_task_records_current_month(self, session_factory, make_lead, make_customer, db):
        now = datetime.utcnow()
        make_lead(now)
        make_lead(now)
        make_customer(now, sale_value=90)

        with patch("app.workers.tasks.SessionLocal", session_factory):
            result = refresh_personal_bests(OWNER_ID)

        assert result["owner_id"] == OWNER_ID
        assert sorted(result["updated"]) == ["monthly_conversion", "monthly_leads", "monthly_revenue"]
        db.expire_all()
        assert _bests(db) == {"monthly_revenue": 90, "monthly_leads": 2, "monthly_conversion": 50.0}
