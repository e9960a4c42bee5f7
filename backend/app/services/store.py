"""Read access to the hosted tables, one query per call.

Callers ask for an owner's rows with optional equality filters and an optional
window on a timestamp column; the store returns typed records. There is no
caching and no retry: a failed read surfaces as :class:`StoreError`.
"""
import enum
import logging
from typing import Any, Protocol

from pydantic import BaseModel
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, sessionmaker
from starlette.concurrency import run_in_threadpool

from app.core.database import SessionLocal
from app.models import Customer, Goal, Lead, PersonalBest, Task
from app.schemas.analytics import DateWindow
from app.schemas.records import CustomerRecord, GoalRecord, LeadRecord, PersonalBestRecord, TaskRecord
from app.services.date_windows import window_bounds

logger = logging.getLogger(__name__)


class Table(str, enum.Enum):
    leads = "leads"
    customers = "customers"
    tasks = "tasks"
    goals = "goals"
    personal_bests = "personal_bests"


TABLES: dict[Table, tuple[type, type[BaseModel]]] = {
    Table.leads: (Lead, LeadRecord),
    Table.customers: (Customer, CustomerRecord),
    Table.tasks: (Task, TaskRecord),
    Table.goals: (Goal, GoalRecord),
    Table.personal_bests: (PersonalBest, PersonalBestRecord),
}


class StoreError(RuntimeError):
    """The backing store could not answer a read."""


class RowStore(Protocol):
    async def fetch_rows(
        self,
        table: Table,
        owner_id: str,
        window: DateWindow | None = None,
        filters: dict[str, Any] | None = None,
        time_field: str = "created_at",
    ) -> list[Any]: ...

    async def count_rows(
        self,
        table: Table,
        owner_id: str,
        window: DateWindow | None = None,
        filters: dict[str, Any] | None = None,
        time_field: str = "created_at",
    ) -> int: ...


class SqlRowStore:
    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self._session_factory = session_factory

    def _query(
        self,
        db: Session,
        table: Table,
        owner_id: str,
        window: DateWindow | None,
        filters: dict[str, Any] | None,
        time_field: str,
    ) -> Query:
        model, _ = TABLES[table]
        query = db.query(model).filter(model.user_id == owner_id)
        for column, value in (filters or {}).items():
            query = query.filter(getattr(model, column) == value)

        if window is not None:
            start, end = window_bounds(window)
            column = getattr(model, time_field)
            # Rows never stamped on this column belong to no window, not even an unbounded one.
            query = query.filter(column.isnot(None))
            if start is not None:
                query = query.filter(column >= start)
            if end is not None:
                query = query.filter(column < end)
        return query

    def _run(self, table: Table, action: str, fn):
        db = self._session_factory()
        try:
            return fn(db)
        except SQLAlchemyError as exc:
            logger.exception("Store %s on %s failed", action, table.value)
            raise StoreError(f"Failed to {action} {table.value}") from exc
        finally:
            db.close()

    def fetch_rows_sync(
        self,
        table: Table,
        owner_id: str,
        window: DateWindow | None = None,
        filters: dict[str, Any] | None = None,
        time_field: str = "created_at",
    ) -> list[Any]:
        model, record = TABLES[table]

        def fetch(db: Session) -> list[Any]:
            rows = self._query(db, table, owner_id, window, filters, time_field).order_by(model.id).all()
            return [record.model_validate(row) for row in rows]

        return self._run(table, "read", fetch)

    def count_rows_sync(
        self,
        table: Table,
        owner_id: str,
        window: DateWindow | None = None,
        filters: dict[str, Any] | None = None,
        time_field: str = "created_at",
    ) -> int:
        model, _ = TABLES[table]

        def count(db: Session) -> int:
            query = self._query(db, table, owner_id, window, filters, time_field)
            return query.with_entities(func.count(model.id)).scalar() or 0

        return self._run(table, "count", count)

    async def fetch_rows(self, table, owner_id, window=None, filters=None, time_field="created_at"):
        return await run_in_threadpool(self.fetch_rows_sync, Table(table), owner_id, window, filters, time_field)

    async def count_rows(self, table, owner_id, window=None, filters=None, time_field="created_at"):
        return await run_in_threadpool(self.count_rows_sync, Table(table), owner_id, window, filters, time_field)

