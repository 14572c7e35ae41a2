import uuid
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from fliq.models.booking import Booking
from fliq.models.dispute import Dispute
from fliq.models.provider import Provider
from fliq.services.audit_service import log_activity

OPEN = "OPEN"
RESOLVED = "RESOLVED"


class DisputeError(ValueError):
    pass


def is_party(db: Session, booking: Booking, user_id: str) -> bool:
    if booking.client_id == user_id:
        return True
    provider = db.get(Provider, booking.provider_id)
    return bool(provider and provider.user_id == user_id)


def raise_dispute(db: Session, booking: Booking, user_id: str, reason: str) -> Dispute:
    reason = (reason or "").strip()
    if not reason:
        raise DisputeError("reason is required")
    d = Dispute(id=str(uuid.uuid4()), booking_id=booking.id, raised_by=user_id, reason=reason, status=OPEN)
    db.add(d)
    log_activity(db, user_id, "dispute_opened", "dispute", d.id, {"booking_id": booking.id})
    db.commit()
    db.refresh(d)
    return d


def resolve_dispute(db: Session, dispute: Dispute, admin_id: str, note: str = "") -> Dispute:
    if dispute.status == RESOLVED:
        raise DisputeError("dispute already resolved")
    dispute.status = RESOLVED
    dispute.resolution_note = (note or "").strip()
    dispute.resolved_by = admin_id
    dispute.resolved_at = datetime.now(timezone.utc)
    log_activity(db, admin_id, "dispute_resolved", "dispute", dispute.id, {"note": dispute.resolution_note})
    db.commit()
    db.refresh(dispute)
    return dispute


def dispute_out(d: Dispute) -> dict:
    return {
        "id": d.id,
        "bookingId": d.booking_id,
        "raisedBy": d.raised_by,
        "reason": d.reason,
        "status": d.status,
        "resolutionNote": d.resolution_note,
        "resolvedAt": d.resolved_at.isoformat() if d.resolved_at else None,
        "createdAt": d.created_at.isoformat() if d.created_at else None,
    }
