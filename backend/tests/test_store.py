"""
Row store reads: owner scoping, equality filters, half-open windows and error wrapping.
"""
from datetime import date, datetime

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from app.core.database import build_engine
from app.schemas.analytics import DateWindow
from app.schemas.records import CustomerRecord, LeadRecord
from app.services.store import SqlRowStore, StoreError, Table
from tests.conftest import OTHER_OWNER_ID, OWNER_ID

MARCH_15 = DateWindow(start=date(2024, 3, 15), end=date(2024, 3, 16))


class TestFetchRows:
    async def test_returns_typed_records_for_owner_only(self, store, make_lead):
        make_lead(datetime(2024, 3, 15, 9, 0), lead_source="web")
        make_lead(datetime(2024, 3, 15, 9, 0), owner_id=OTHER_OWNER_ID)

        rows = await store.fetch_rows(Table.leads, OWNER_ID)

        assert len(rows) == 1
        assert isinstance(rows[0], LeadRecord)
        assert rows[0].lead_source == "web"
        assert rows[0].user_id == OWNER_ID

    async def test_window_is_half_open(self, store, make_lead):
        make_lead(datetime(2024, 3, 15, 0, 0), lead_source="first instant")
        make_lead(datetime(2024, 3, 15, 23, 59, 59), lead_source="last second")
        make_lead(datetime(2024, 3, 16, 0, 0), lead_source="next midnight")
        make_lead(datetime(2024, 3, 14, 23, 59, 59), lead_source="day before")

        rows = await store.fetch_rows(Table.leads, OWNER_ID, window=MARCH_15)

        assert [r.lead_source for r in rows] == ["first instant", "last second"]

    async def test_unbounded_window_returns_everything(self, store, make_lead):
        make_lead(datetime(2019, 1, 1))
        make_lead(datetime(2024, 3, 15))
        assert len(await store.fetch_rows(Table.leads, OWNER_ID, window=DateWindow())) == 2

    async def test_unbounded_window_skips_unstamped_rows(self, store, make_customer):
        make_customer(datetime(2023, 6, 1), status="inactive", inactive_at=None)
        make_customer(datetime(2023, 6, 1), status="inactive", inactive_at=datetime(2024, 3, 2))

        count = await store.count_rows(
            Table.customers, OWNER_ID, window=DateWindow(), filters={"status": "inactive"}, time_field="inactive_at"
        )

        assert count == 1
        assert await store.count_rows(Table.customers, OWNER_ID, filters={"status": "inactive"}) == 2

    async def test_equality_filters(self, store, make_customer):
        make_customer(datetime(2024, 3, 15), status="inactive", inactive_at=datetime(2024, 3, 15, 10, 0))
        make_customer(datetime(2024, 3, 15), status="active")

        rows = await store.fetch_rows(Table.customers, OWNER_ID, filters={"status": "inactive"})

        assert len(rows) == 1
        assert isinstance(rows[0], CustomerRecord)
        assert rows[0].status == "inactive"

    async def test_window_on_other_time_field(self, store, make_customer):
        # Created long before the window but went inactive inside it.
        make_customer(datetime(2023, 6, 1), status="inactive", inactive_at=datetime(2024, 3, 15, 10, 0))
        make_customer(datetime(2024, 3, 15, 10, 0), status="active")

        rows = await store.fetch_rows(Table.customers, OWNER_ID, window=MARCH_15, time_field="inactive_at")

        assert len(rows) == 1
        assert rows[0].created_at == datetime(2023, 6, 1)

    async def test_line_items_round_trip_as_models(self, store, make_customer):
        make_customer(datetime(2024, 3, 15), line_items=[{"description": "Lawn", "price": 40}])
        (row,) = await store.fetch_rows(Table.customers, OWNER_ID)
        assert row.line_items[0].price == 40
        assert row.line_items[0].description == "Lawn"

    async def test_accepts_table_name_strings(self, store, make_lead):
        make_lead(datetime(2024, 3, 15))
        assert len(await store.fetch_rows("leads", OWNER_ID)) == 1


class TestCountRows:
    async def test_counts_within_window(self, store, make_lead):
        for hour in (1, 5, 23):
            make_lead(datetime(2024, 3, 15, hour, 0))
        make_lead(datetime(2024, 3, 16, 0, 0))
        make_lead(datetime(2024, 3, 15, 12, 0), owner_id=OTHER_OWNER_ID)

        assert await store.count_rows(Table.leads, OWNER_ID, window=MARCH_15) == 3

    async def test_empty_count_is_zero(self, store):
        assert await store.count_rows(Table.customers, OWNER_ID) == 0

    def test_sync_count_matches_fetch(self, store, make_customer):
        make_customer(datetime(2024, 3, 15), archived=True)
        make_customer(datetime(2024, 3, 15))
        filters = {"archived": False}
        assert store.count_rows_sync(Table.customers, OWNER_ID, filters=filters) == len(
            store.fetch_rows_sync(Table.customers, OWNER_ID, filters=filters)
        )


class TestStoreErrors:
    @pytest.fixture
    def broken_store(self, tmp_path):
        # Schema never created, so every query fails with "no such table".
        engine = build_engine(f"sqlite:///{tmp_path / 'empty.db'}")
        yield SqlRowStore(sessionmaker(bind=engine))
        engine.dispose()

    async def test_fetch_failure_wraps_driver_error(self, broken_store):
        with pytest.raises(StoreError) as exc_info:
            await broken_store.fetch_rows(Table.leads, OWNER_ID)
        assert isinstance(exc_info.value.__cause__, OperationalError)

    async def test_count_failure_wraps_driver_error(self, broken_store):
        with pytest.raises(StoreError, match="count customers"):
            await broken_store.count_rows(Table.customers, OWNER_ID)

    def test_failure_is_logged(self, broken_store, caplog):
        with pytest.raises(StoreError):
            broken_store.fetch_rows_sync(Table.tasks, OWNER_ID)
        assert "Store read on tasks failed" in caplog.text
