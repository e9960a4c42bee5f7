from datetime import datetime
import enum

from sqlalchemy import DateTime, Float, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class PersonalBestMetric(str, enum.Enum):
    monthly_revenue = "monthly_revenue"
    monthly_leads = "monthly_leads"
    monthly_conversion = "monthly_conversion"


class PersonalBest(Base):
    __tablename__ = "personal_bests"
    __table_args__ = (UniqueConstraint("user_id", "metric_type", name="uq_personal_best_user_metric"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    metric_type: Mapped[str] = mapped_column(String(40), nullable=False)
    value: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    achieved_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
