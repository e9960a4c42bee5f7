from datetime import date
import enum

from pydantic import BaseModel


class MetricType(str, enum.Enum):
    total_revenue = "total_revenue"
    recurring_revenue = "recurring_revenue"
    conversion_rate = "conversion_rate"
    new_leads = "new_leads"
    leads_by_source = "leads_by_source"
    new_customers = "new_customers"
    customers_by_type = "customers_by_type"
    customers_by_frequency = "customers_by_frequency"
    customers_lost = "customers_lost"


class DateRange(str, enum.Enum):
    today = "today"
    yesterday = "yesterday"
    this_week = "this_week"
    last_week = "last_week"
    last_30_days = "last_30_days"
    this_month = "this_month"
    last_month = "last_month"
    this_year = "this_year"
    last_12_months = "last_12_months"
    all_time = "all_time"
    custom = "custom"


class MetricShape(str, enum.Enum):
    scalar = "scalar"
    breakdown = "breakdown"


class CustomRange(BaseModel):
    # Both bounds are inclusive calendar days as picked in the UI.
    start: date | None = None
    end: date | None = None


class DateWindow(BaseModel):
    """Half-open [start, end) window of UTC calendar days; None means unbounded."""

    start: date | None = None
    end: date | None = None

    class Config:
        frozen = True

    @property
    def is_unbounded(self) -> bool:
        return self.start is None and self.end is None


class BreakdownEntry(BaseModel):
    label: str
    count: int
    percentage: float


class TimeSeriesPoint(BaseModel):
    # ISO 8601 calendar day.
    date: str
    value: float


class MetricResult(BaseModel):
    metric_type: MetricType
    shape: MetricShape
    window: DateWindow
    value: float | None = None
    breakdown: list[BreakdownEntry] | None = None


class MetricReport(BaseModel):
    metric_type: MetricType
    range: DateRange
    shape: MetricShape
    window: DateWindow
    previous_window: DateWindow | None = None
    value: float | None = None
    previous_value: float | None = None
    change_pct: float | None = None
    breakdown: list[BreakdownEntry] | None = None
    total: int | None = None
    history: list[TimeSeriesPoint] = []


class MonthStats(BaseModel):
    total_revenue: float
    total_leads: int
    conversion_rate: float


class Achievement(BaseModel):
    metric_type: str
    current: float
    best: float
    is_record: bool


class MonthlyStats(BaseModel):
    current: MonthStats
    bests: dict[str, float]
    achievements: list[Achievement]
