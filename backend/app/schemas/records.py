"""Typed views of store rows as the aggregators see them.

Everything nullable upstream stays nullable here; aggregators decide how a
missing value contributes (zero for money, excluded for categories).
"""
from datetime import date, datetime

from pydantic import BaseModel


class LeadRecord(BaseModel):
    id: int
    user_id: str
    created_at: datetime
    lead_source: str | None = None
    priority: str | None = None
    status: str | None = None
    projected_value: float | None = None
    follow_up_date: date | None = None
    archived: bool = False

    class Config:
        from_attributes = True


class LineItem(BaseModel):
    price: float | None = None

    class Config:
        extra = "allow"


class CustomerRecord(BaseModel):
    id: int
    user_id: str
    created_at: datetime
    service_type: str | None = None
    service_frequency: str | None = None
    sale_value: float | None = None
    line_items: list[LineItem] | None = None
    status: str | None = None
    inactive_at: datetime | None = None
    archived: bool = False

    class Config:
        from_attributes = True


class TaskRecord(BaseModel):
    id: int
    user_id: str
    name: str = ""
    due_date: date | None = None
    status: str | None = None
    priority: str | None = None

    class Config:
        from_attributes = True


class GoalRecord(BaseModel):
    id: int
    user_id: str
    title: str
    metric_type: str | None = None
    current_value: float = 0.0
    target_value: float = 0.0
    due_date: date | None = None
    status: str | None = None

    class Config:
        from_attributes = True


class PersonalBestRecord(BaseModel):
    id: int
    user_id: str
    metric_type: str
    value: float
    achieved_at: datetime

    class Config:
        from_attributes = True
