from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from fliq.db.session import get_db
from fliq.api.deps import get_session_context, require_roles
from fliq.api.v1.routes.public import load_pricing
from fliq.core.session_context import SessionContext, SessionError, NotAuthenticated
from fliq.models.booking import Booking
from fliq.models.user import User
from fliq.schemas.booking import BookingCreate, BookingTransitionIn, DisputeCreate
from fliq.services.booking_service import (
    BookingStore, CANCELLED, TransitionError,
    transition_booking, notify_provider_of_request, list_bookings_for_client, booking_out,
)
from fliq.services.booking_wizard import (
    BookingTarget, BookingWizard, BookingValidationError, BookingSubmissionError,
)
from fliq.services.dispute_service import DisputeError, is_party, raise_dispute, dispute_out

router = APIRouter(tags=["bookings"])


@router.post("/bookings")
def create_booking(body: BookingCreate, db: Session = Depends(get_db),
                   session: SessionContext = Depends(get_session_context)):
    """Run the booking wizard server side: schedule -> review -> payment -> submit."""
    provider, service = load_pricing(db, body.providerId, body.serviceId)
    try:
        wizard = BookingWizard(session, BookingTarget.for_provider(provider, service), BookingStore(db))
        wizard.update(
            date=body.date,
            start_time=body.startTime,
            duration=body.duration,
            duration_unit=body.durationUnit,
            location=body.location,
            notes=body.notes,
        )
        wizard.advance()
        wizard.advance()
        wizard.select_payment_method(body.paymentMethod)
        booking = wizard.submit()
    except NotAuthenticated:
        raise HTTPException(status_code=401, detail="Not authenticated")
    except SessionError:
        raise HTTPException(status_code=403, detail="Only clients can book")
    except BookingValidationError as e:
        raise HTTPException(status_code=400, detail=e.errors)
    except BookingSubmissionError as e:
        raise HTTPException(status_code=502, detail=str(e))
    notify_provider_of_request(db, booking)
    return booking_out(booking)


@router.get("/bookings")
def my_bookings(db: Session = Depends(get_db), me: User = Depends(require_roles("client"))):
    return {"items": [booking_out(b) for b in list_bookings_for_client(db, me.id)]}


def _own_booking(db: Session, booking_id: str, me: User) -> Booking:
    b = db.get(Booking, booking_id)
    if not b:
        raise HTTPException(status_code=404, detail="Not found")
    if not is_party(db, b, me.id) and me.role != "admin":
        raise HTTPException(status_code=403, detail="Forbidden")
    return b


@router.get("/bookings/{booking_id}")
def get_booking(booking_id: str, db: Session = Depends(get_db),
                me: User = Depends(require_roles("client", "provider", "admin"))):
    return booking_out(_own_booking(db, booking_id, me))


@router.post("/bookings/{booking_id}/cancel")
def cancel_booking(booking_id: str, body: BookingTransitionIn, db: Session = Depends(get_db),
                   me: User = Depends(require_roles("client"))):
    b = _own_booking(db, booking_id, me)
    try:
        b = transition_booking(db, b, CANCELLED, me.id, expected_version=body.expectedVersion, reason=body.reason)
    except TransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return booking_out(b)


@router.post("/bookings/{booking_id}/disputes")
def open_dispute(booking_id: str, body: DisputeCreate, db: Session = Depends(get_db),
                 me: User = Depends(require_roles("client", "provider"))):
    b = _own_booking(db, booking_id, me)
    try:
        d = raise_dispute(db, b, me.id, body.reason)
    except DisputeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return dispute_out(d)
