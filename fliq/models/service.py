import json
from sqlalchemy import String, DateTime, Boolean, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from fliq.db.session import Base

class Service(Base):
    __tablename__ = "services"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    provider_id: Mapped[str] = mapped_column(String(36), index=True)
    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[str] = mapped_column(Text, default="")

    # At least one tier is set for an active service
    price_hour: Mapped[int | None] = mapped_column(Integer, nullable=True)
    price_day: Mapped[int | None] = mapped_column(Integer, nullable=True)
    price_week: Mapped[int | None] = mapped_column(Integer, nullable=True)
    min_booking_hours: Mapped[int] = mapped_column(Integer, default=1)
    extras_json: Mapped[str] = mapped_column(Text, default="[]")  # [{"name": ..., "price": ...}]

    active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    @property
    def extras(self) -> list[dict]:
        try:
            return json.loads(self.extras_json or "[]")
        except (json.JSONDecodeError, TypeError):
            return []
