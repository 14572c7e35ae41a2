import json
from sqlalchemy import String, DateTime, Boolean, Integer, Float, Text
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from fliq.db.session import Base

class Provider(Base):
    __tablename__ = "providers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), unique=True, index=True)
    category: Mapped[str] = mapped_column(String(30), index=True)  # companion, security, bodyguard, assistant
    bio: Mapped[str] = mapped_column(Text, default="")
    base_price: Mapped[int] = mapped_column(Integer, default=0)  # hourly, whole Naira
    rating: Mapped[float] = mapped_column(Float, default=0)

    # Verification: documents attached -> pending; reviewed_at set -> verified or rejected
    documents_json: Mapped[str] = mapped_column(Text, default="[]")
    verified: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_by: Mapped[str] = mapped_column(String(36), nullable=True)
    rejection_reason: Mapped[str] = mapped_column(String(500), nullable=True)

    paystack_subaccount_code: Mapped[str] = mapped_column(String(60), nullable=True)

    version: Mapped[int] = mapped_column(Integer, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    @property
    def documents(self) -> list[str]:
        try:
            return [d for d in json.loads(self.documents_json or "[]") if d]
        except (json.JSONDecodeError, TypeError):
            return []
