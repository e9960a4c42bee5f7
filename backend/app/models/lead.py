from datetime import date, datetime
import enum

from sqlalchemy import Boolean, Date, DateTime, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class LeadStatus(str, enum.Enum):
    new = "new"
    contacted = "contacted"
    qualified = "qualified"
    proposal = "proposal"
    won = "won"
    lost = "lost"


class Lead(Base):
    __tablename__ = "leads"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    lead_source: Mapped[str | None] = mapped_column(String(60))
    priority: Mapped[str | None] = mapped_column(String(20))
    # Pipeline stage; kept as free text because stages are user-configurable on the kanban board.
    status: Mapped[str] = mapped_column(String(40), default=LeadStatus.new.value, nullable=False)
    projected_value: Mapped[float | None] = mapped_column(Float)
    follow_up_date: Mapped[date | None] = mapped_column(Date, index=True)
    archived: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True, nullable=False)
