import asyncio
from datetime import datetime, time, timezone
import math

from app.models.goal import GoalStatus
from app.models.task import TaskStatus
from app.schemas.dashboard import DashboardSummary, GoalProgress
from app.schemas.records import GoalRecord
from app.services.aggregators import money
from app.services.date_windows import as_utc
from app.services.store import RowStore, Table

SECONDS_PER_DAY = 86400


def goal_progress(goal: GoalRecord, now: datetime) -> GoalProgress:
    progress = 0
    if goal.target_value:
        progress = min(100, round(goal.current_value / goal.target_value * 100))

    days_left = None
    if goal.due_date is not None:
        due = datetime.combine(goal.due_date, time.min, tzinfo=timezone.utc)
        days_left = math.ceil((due - as_utc(now)).total_seconds() / SECONDS_PER_DAY)

    return GoalProgress(
        id=goal.id,
        title=goal.title,
        metric_type=goal.metric_type,
        current_value=goal.current_value,
        target_value=goal.target_value,
        progress=progress,
        due_date=goal.due_date,
        days_left=days_left,
    )


async def build_dashboard_summary(store: RowStore, owner_id: str, now: datetime | None = None) -> DashboardSummary:
    now = as_utc(now or datetime.now(timezone.utc))
    today = now.date()

    leads, customer_count, tasks, goals = await asyncio.gather(
        store.fetch_rows(Table.leads, owner_id, filters={"archived": False}),
        store.count_rows(Table.customers, owner_id, filters={"archived": False}),
        store.fetch_rows(Table.tasks, owner_id),
        store.fetch_rows(Table.goals, owner_id, filters={"status": GoalStatus.in_progress.value}),
    )

    follow_ups = [lead.follow_up_date for lead in leads if lead.follow_up_date is not None]
    open_due = [t.due_date for t in tasks if t.status != TaskStatus.done.value and t.due_date is not None]
    goals = sorted(goals, key=lambda g: (g.due_date is None, g.due_date))

    return DashboardSummary(
        total_leads=len(leads),
        total_customers=customer_count,
        pipeline_value=sum(money(lead.projected_value) for lead in leads),
        overdue_follow_ups=sum(1 for d in follow_ups if d < today),
        due_today_follow_ups=sum(1 for d in follow_ups if d == today),
        overdue_tasks=sum(1 for d in open_due if d < today),
        due_today_tasks=sum(1 for d in open_due if d == today),
        goals=[goal_progress(goal, now) for goal in goals],
    )
