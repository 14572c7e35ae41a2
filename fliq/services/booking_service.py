import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from fliq.core.config import settings
from fliq.models.booking import Booking
from fliq.models.provider import Provider
from fliq.models.user import User
from fliq.services.audit_service import log_activity
from fliq.services.email_service import queue_email

logger = logging.getLogger(__name__)

REQUESTED = "REQUESTED"
ACCEPTED = "ACCEPTED"
IN_SERVICE = "IN_SERVICE"
COMPLETED = "COMPLETED"
CANCELLED = "CANCELLED"

TERMINAL = {COMPLETED, CANCELLED}
ALLOWED_TRANSITIONS = {
    REQUESTED: {ACCEPTED, CANCELLED},
    ACCEPTED: {IN_SERVICE, CANCELLED},
    IN_SERVICE: {COMPLETED},
}


class TransitionError(ValueError):
    pass


class StaleVersionError(TransitionError):
    pass


@dataclass(frozen=True)
class NewBooking:
    """Everything the wizard hands to the store; pricing is copied, never re-read."""
    client_id: str
    provider_id: str
    service_id: str | None
    category: str
    requested_start: datetime
    requested_end: datetime
    duration: int
    duration_unit: str
    location: str
    notes: str
    payment_method: str
    estimated_amount: int
    platform_fee: int
    provider_payout: int


class BookingStore:
    """Persistence adapter for the booking wizard."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, record: NewBooking) -> Booking:
        booking = Booking(
            id=str(uuid.uuid4()),
            client_id=record.client_id,
            provider_id=record.provider_id,
            service_id=record.service_id,
            category=record.category,
            status=REQUESTED,
            requested_start=record.requested_start,
            requested_end=record.requested_end,
            duration=record.duration,
            duration_unit=record.duration_unit,
            location=record.location,
            notes=record.notes,
            payment_method=record.payment_method,
            estimated_amount=record.estimated_amount,
            platform_fee=record.platform_fee,
            provider_payout=record.provider_payout,
        )
        self.db.add(booking)
        log_activity(self.db, record.client_id, "booking_requested", "booking", booking.id,
                     {"provider_id": record.provider_id, "estimated_amount": record.estimated_amount})
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(booking)
        return booking

    def get(self, booking_id: str) -> Booking | None:
        return self.db.get(Booking, booking_id)


def notify_provider_of_request(db: Session, booking: Booking) -> None:
    provider = db.get(Provider, booking.provider_id)
    user = db.get(User, provider.user_id) if provider else None
    if not user:
        return
    queue_email(
        db, user.email, "New booking request on fliQ",
        f"You have a new booking request.\n"
        f"Start: {booking.requested_start.isoformat()}\nEnd: {booking.requested_end.isoformat()}\n"
        f"Location: {booking.location}\nYour payout: {settings.CURRENCY} {booking.provider_payout:,}",
        booking.id,
    )


def transition_booking(db: Session, booking: Booking, to_status: str, actor_user_id: str,
                       final_amount: int | None = None, expected_version: int | None = None,
                       reason: str = "") -> Booking:
    if booking.status in TERMINAL:
        raise TransitionError(f"booking is {booking.status} and can no longer change")
    if to_status not in ALLOWED_TRANSITIONS.get(booking.status, set()):
        raise TransitionError(f"cannot move booking from {booking.status} to {to_status}")
    if expected_version is not None and expected_version != booking.version:
        raise StaleVersionError("booking was modified by someone else; reload and retry")

    from_status = booking.status
    booking.status = to_status
    if to_status == COMPLETED:
        booking.final_amount = booking.estimated_amount if final_amount is None else int(final_amount)
    booking.version = (booking.version or 0) + 1
    booking.updated_at = datetime.now(timezone.utc)
    details = {"from": from_status, "to": to_status}
    if reason:
        details["reason"] = reason
    if booking.final_amount is not None:
        details["final_amount"] = booking.final_amount
    log_activity(db, actor_user_id, f"booking_{to_status.lower()}", "booking", booking.id, details)
    db.commit()
    db.refresh(booking)
    logger.info("booking %s %s -> %s by %s", booking.id, from_status, to_status, actor_user_id)
    return booking


def list_bookings_for_client(db: Session, client_id: str) -> list[Booking]:
    return db.query(Booking).filter(Booking.client_id == client_id).order_by(Booking.created_at.desc()).all()


def list_bookings_for_provider(db: Session, provider_id: str) -> list[Booking]:
    return db.query(Booking).filter(Booking.provider_id == provider_id).order_by(Booking.created_at.desc()).all()


def booking_out(b: Booking) -> dict:
    return {
        "id": b.id,
        "clientId": b.client_id,
        "providerId": b.provider_id,
        "serviceId": b.service_id,
        "category": b.category,
        "status": b.status,
        "requestedStart": b.requested_start.isoformat() if b.requested_start else None,
        "requestedEnd": b.requested_end.isoformat() if b.requested_end else None,
        "duration": b.duration,
        "durationUnit": b.duration_unit,
        "location": b.location,
        "notes": b.notes,
        "paymentMethod": b.payment_method,
        "estimatedAmount": b.estimated_amount,
        "platformFee": b.platform_fee,
        "providerPayout": b.provider_payout,
        "finalAmount": b.final_amount,
        "version": b.version,
        "createdAt": b.created_at.isoformat() if b.created_at else None,
    }
