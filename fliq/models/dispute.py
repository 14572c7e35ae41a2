from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from fliq.db.session import Base

class Dispute(Base):
    __tablename__ = "disputes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    booking_id: Mapped[str] = mapped_column(String(36), index=True)
    raised_by: Mapped[str] = mapped_column(String(36), index=True)
    reason: Mapped[str] = mapped_column(String(1000), default="")

    status: Mapped[str] = mapped_column(String(20), default="OPEN", index=True)  # OPEN, RESOLVED
    resolution_note: Mapped[str] = mapped_column(String(1000), default="")
    resolved_by: Mapped[str] = mapped_column(String(36), nullable=True)
    resolved_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
