from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from fliq.db.session import get_db
from fliq.api.deps import require_roles
from fliq.models.booking import Booking
from fliq.models.provider import Provider
from fliq.models.service import Service
from fliq.models.user import User
from fliq.schemas.booking import BookingTransitionIn
from fliq.schemas.catalog import OnboardingIn, ServicesCreate, ServiceUpdate
from fliq.services.booking_service import (
    ACCEPTED, CANCELLED, IN_SERVICE, COMPLETED, TransitionError,
    transition_booking, list_bookings_for_provider, booking_out,
)
from fliq.services.catalog_service import (
    ServiceValidationError, provider_for_user, onboard_provider, provider_out,
    create_services, update_service, toggle_service, service_out,
)

router = APIRouter(tags=["provider"])

# provider-side booking actions -> target status
_ACTIONS = {"accept": ACCEPTED, "decline": CANCELLED, "start": IN_SERVICE, "complete": COMPLETED}


def _my_provider(db: Session, me: User) -> Provider:
    p = provider_for_user(db, me.id)
    if not p:
        raise HTTPException(status_code=404, detail="Complete onboarding first")
    return p


@router.post("/provider/onboarding")
def onboarding(body: OnboardingIn, db: Session = Depends(get_db), me: User = Depends(require_roles("provider"))):
    try:
        p = onboard_provider(db, me, body.category, body.bio, body.basePrice, body.documents, body.avatarUrl)
    except ServiceValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return provider_out(p, me)


@router.get("/provider/me")
def my_profile(db: Session = Depends(get_db), me: User = Depends(require_roles("provider"))):
    p = _my_provider(db, me)
    services = db.query(Service).filter(Service.provider_id == p.id).order_by(Service.created_at.asc()).all()
    return provider_out(p, me, services)


@router.get("/provider/services")
def my_services(db: Session = Depends(get_db), me: User = Depends(require_roles("provider"))):
    p = _my_provider(db, me)
    items = db.query(Service).filter(Service.provider_id == p.id).order_by(Service.created_at.asc()).all()
    return {"items": [service_out(s) for s in items]}


@router.post("/provider/services")
def add_services(body: ServicesCreate, db: Session = Depends(get_db), me: User = Depends(require_roles("provider"))):
    p = _my_provider(db, me)
    try:
        created = create_services(db, p, [s.model_dump() for s in body.services])
    except ServiceValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"items": [service_out(s) for s in created]}


def _my_service(db: Session, service_id: str, me: User) -> Service:
    p = _my_provider(db, me)
    s = db.get(Service, service_id)
    if not s or s.provider_id != p.id:
        raise HTTPException(status_code=404, detail="Service not found")
    return s


@router.patch("/provider/services/{service_id}")
def edit_service(service_id: str, body: ServiceUpdate, db: Session = Depends(get_db),
                 me: User = Depends(require_roles("provider"))):
    s = _my_service(db, service_id, me)
    try:
        s = update_service(db, s, body.model_dump(exclude_unset=True))
    except ServiceValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return service_out(s)


@router.post("/provider/services/{service_id}/toggle")
def toggle(service_id: str, db: Session = Depends(get_db), me: User = Depends(require_roles("provider"))):
    s = _my_service(db, service_id, me)
    try:
        s = toggle_service(db, s)
    except ServiceValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return service_out(s)


@router.get("/provider/bookings")
def incoming_bookings(db: Session = Depends(get_db), me: User = Depends(require_roles("provider"))):
    p = _my_provider(db, me)
    return {"items": [booking_out(b) for b in list_bookings_for_provider(db, p.id)]}


@router.post("/provider/bookings/{booking_id}/{action}")
def act_on_booking(booking_id: str, action: str, body: BookingTransitionIn,
                   db: Session = Depends(get_db), me: User = Depends(require_roles("provider"))):
    if action not in _ACTIONS:
        raise HTTPException(status_code=404, detail="Unknown action")
    p = _my_provider(db, me)
    b = db.get(Booking, booking_id)
    if not b or b.provider_id != p.id:
        raise HTTPException(status_code=404, detail="Not found")
    try:
        b = transition_booking(db, b, _ACTIONS[action], me.id, final_amount=body.finalAmount,
                               expected_version=body.expectedVersion, reason=body.reason)
    except TransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return booking_out(b)
