from datetime import date

from pydantic import BaseModel


class GoalProgress(BaseModel):
    id: int
    title: str
    metric_type: str | None
    current_value: float
    target_value: float
    progress: int
    due_date: date | None
    days_left: int | None


class DashboardSummary(BaseModel):
    total_leads: int
    total_customers: int
    pipeline_value: float
    overdue_follow_ups: int
    due_today_follow_ups: int
    overdue_tasks: int
    due_today_tasks: int
    goals: list[GoalProgress]
