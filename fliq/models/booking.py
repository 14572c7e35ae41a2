from sqlalchemy import String, Integer, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from fliq.db.session import Base

class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    client_id: Mapped[str] = mapped_column(String(36), index=True)
    provider_id: Mapped[str] = mapped_column(String(36), index=True)
    service_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    category: Mapped[str] = mapped_column(String(30), default="")  # copied from provider at creation

    status: Mapped[str] = mapped_column(String(20), default="REQUESTED", index=True)  # REQUESTED, ACCEPTED, IN_SERVICE, COMPLETED, CANCELLED

    requested_start: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    requested_end: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    duration: Mapped[int] = mapped_column(Integer, default=1)
    duration_unit: Mapped[str] = mapped_column(String(10), default="hours")  # hours, days, weeks
    location: Mapped[str] = mapped_column(String(300), default="")
    notes: Mapped[str] = mapped_column(Text, default="")
    payment_method: Mapped[str] = mapped_column(String(10), default="wallet")  # wallet, card

    estimated_amount: Mapped[int] = mapped_column(Integer, default=0)  # total charged to the client
    platform_fee: Mapped[int] = mapped_column(Integer, default=0)
    provider_payout: Mapped[int] = mapped_column(Integer, default=0)  # estimated_amount - platform_fee
    final_amount: Mapped[int | None] = mapped_column(Integer, nullable=True)  # set on completion

    version: Mapped[int] = mapped_column(Integer, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
