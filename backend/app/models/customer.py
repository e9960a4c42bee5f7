from datetime import datetime
import enum

from sqlalchemy import JSON, Boolean, DateTime, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base

ONE_TIME_FREQUENCY = "One-Time"


class CustomerStatus(str, enum.Enum):
    active = "active"
    inactive = "inactive"


class Customer(Base):
    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    service_type: Mapped[str | None] = mapped_column(String(80))
    service_frequency: Mapped[str | None] = mapped_column(String(40))
    sale_value: Mapped[float | None] = mapped_column(Float)
    # [{"description": ..., "price": ...}, ...]; revenue is the sum of prices, not sale_value.
    line_items: Mapped[list | None] = mapped_column(JSON)
    status: Mapped[str] = mapped_column(String(20), default=CustomerStatus.active.value, nullable=False)
    inactive_at: Mapped[datetime | None] = mapped_column(DateTime, index=True)
    archived: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True, nullable=False)
