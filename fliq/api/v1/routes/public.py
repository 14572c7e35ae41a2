from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from fliq.db.session import get_db
from fliq.models.provider import Provider
from fliq.models.service import Service
from fliq.models.user import User
from fliq.schemas.booking import QuoteRequest, QuoteOut
from fliq.services.catalog_service import search_providers, provider_out, active_services, list_cities, CATEGORIES
from fliq.services.pricing_service import Pricing, calculate_costs, selectable_units

router = APIRouter(tags=["public"])


@router.get("/public/categories")
def get_categories():
    return {"items": list(CATEGORIES)}


@router.get("/public/cities")
def get_cities(db: Session = Depends(get_db)):
    return {"items": list_cities(db)}


@router.get("/public/providers")
def list_providers(q: str | None = None, category: str | None = None, city: str | None = None,
                   limit: int = 20, db: Session = Depends(get_db)):
    rows = search_providers(db, q=q, category=category, city=city, limit=limit)
    return {"items": [provider_out(p, u, active_services(db, p.id)) for p, u in rows]}


@router.get("/public/providers/{provider_id}")
def get_provider(provider_id: str, db: Session = Depends(get_db)):
    p = db.get(Provider, provider_id)
    u = db.get(User, p.user_id) if p else None
    if not p or not u or not u.is_active:
        raise HTTPException(status_code=404, detail="Provider not found")
    return provider_out(p, u, active_services(db, p.id))


def load_pricing(db: Session, provider_id: str, service_id: str | None) -> tuple[Provider, Service | None]:
    provider = db.get(Provider, provider_id)
    if not provider:
        raise HTTPException(status_code=404, detail="Provider not found")
    service = None
    if service_id:
        service = db.get(Service, service_id)
        if not service or service.provider_id != provider.id or not service.active:
            raise HTTPException(status_code=404, detail="Service not found")
    return provider, service


@router.post("/public/quote", response_model=QuoteOut)
def quote(body: QuoteRequest, db: Session = Depends(get_db)):
    """Cost breakdown for the booking form; called on every field change."""
    provider, service = load_pricing(db, body.providerId, body.serviceId)
    pricing = Pricing.from_service(service) if service else Pricing.from_hourly_rate(provider.base_price)
    costs = calculate_costs(body.duration, body.durationUnit, pricing)
    return QuoteOut(
        baseAmount=costs.base_amount,
        platformFee=costs.platform_fee,
        totalAmount=costs.total_amount,
        durationUnits=selectable_units(pricing),
        minBookingHours=service.min_booking_hours if service else 1,
    )
