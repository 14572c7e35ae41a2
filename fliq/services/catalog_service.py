import json
import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import func
from sqlalchemy.orm import Session

from fliq.models.provider import Provider
from fliq.models.service import Service
from fliq.models.user import User
from fliq.services.audit_service import log_activity
from fliq.services.pricing_service import Pricing, has_price_tier, selectable_units
from fliq.services.verification_service import status_of, status_out

logger = logging.getLogger(__name__)

CATEGORIES = ("companion", "security", "bodyguard", "assistant")


class ServiceValidationError(ValueError):
    pass


# -------------------------
# Provider onboarding
# -------------------------
def provider_for_user(db: Session, user_id: str) -> Provider | None:
    return db.query(Provider).filter(Provider.user_id == user_id).first()


def onboard_provider(db: Session, user: User, category: str, bio: str, base_price: int,
                     documents: list[str], avatar_url: str | None = None) -> Provider:
    """Create or update the provider profile of `user`.

    Attaching documents (re)starts verification: the provider goes back to
    pending review and any earlier decision is cleared.
    """
    if category not in CATEGORIES:
        raise ServiceValidationError(f"category must be one of {', '.join(CATEGORIES)}")
    if base_price is None or base_price < 0:
        raise ServiceValidationError("base price must be zero or more")

    p = provider_for_user(db, user.id)
    if not p:
        p = Provider(id=str(uuid.uuid4()), user_id=user.id, version=1)
        db.add(p)
    p.category = category
    p.bio = bio or ""
    p.base_price = int(base_price)
    if avatar_url:
        user.avatar_url = avatar_url

    docs = [d.strip() for d in documents or [] if d and d.strip()]
    if docs:
        p.documents_json = json.dumps(docs)
        p.submitted_at = datetime.now(timezone.utc)
        p.verified = False
        p.reviewed_at = None
        p.reviewed_by = None
        p.rejection_reason = None
    p.version = (p.version or 0) + 1
    log_activity(db, user.id, "provider_onboarded" if not docs else "verification_submitted", "provider", p.id,
                 {"category": category, "documents": len(docs)})
    db.commit()
    db.refresh(p)
    return p


# -------------------------
# Services
# -------------------------
def _clean_extras(extras) -> list[dict]:
    out = []
    for e in extras or []:
        name = (e.get("name") or "").strip()
        price = e.get("price")
        if not name:
            raise ServiceValidationError("extra name is required")
        if price is None or price < 0:
            raise ServiceValidationError(f"extra {name!r} needs a price of zero or more")
        out.append({"name": name, "price": int(price)})
    return out


def _validate_service(title: str, price_hour, price_day, price_week, min_booking_hours: int, active: bool):
    if not (title or "").strip():
        raise ServiceValidationError("title is required")
    for p in (price_hour, price_day, price_week):
        if p is not None and p < 0:
            raise ServiceValidationError("prices must be zero or more")
    if active and not has_price_tier(price_hour, price_day, price_week):
        raise ServiceValidationError("set at least one of hourly, daily or weekly price")
    if min_booking_hours is None or min_booking_hours < 1:
        raise ServiceValidationError("minimum booking must be at least 1 hour")


def create_services(db: Session, provider: Provider, items: list[dict]) -> list[Service]:
    if not items:
        raise ServiceValidationError("add at least one service")
    created = []
    for item in items:
        _validate_service(item.get("title"), item.get("price_hour"), item.get("price_day"), item.get("price_week"),
                          item.get("min_booking_hours", 1), item.get("active", True))
        s = Service(
            id=str(uuid.uuid4()),
            provider_id=provider.id,
            title=item["title"].strip(),
            description=item.get("description") or "",
            price_hour=item.get("price_hour") or None,
            price_day=item.get("price_day") or None,
            price_week=item.get("price_week") or None,
            min_booking_hours=item.get("min_booking_hours", 1),
            extras_json=json.dumps(_clean_extras(item.get("extras"))),
            active=item.get("active", True),
        )
        db.add(s)
        created.append(s)
    log_activity(db, provider.user_id, "services_created", "provider", provider.id, {"count": len(created)})
    db.commit()
    for s in created:
        db.refresh(s)
    return created


def update_service(db: Session, service: Service, changes: dict) -> Service:
    merged = {
        "title": changes.get("title", service.title),
        "price_hour": changes.get("price_hour", service.price_hour),
        "price_day": changes.get("price_day", service.price_day),
        "price_week": changes.get("price_week", service.price_week),
        "min_booking_hours": changes.get("min_booking_hours", service.min_booking_hours),
        "active": changes.get("active", service.active),
    }
    _validate_service(**merged)
    service.title = merged["title"].strip()
    service.price_hour = merged["price_hour"] or None
    service.price_day = merged["price_day"] or None
    service.price_week = merged["price_week"] or None
    service.min_booking_hours = merged["min_booking_hours"]
    service.active = merged["active"]
    if "description" in changes:
        service.description = changes["description"] or ""
    if "extras" in changes:
        service.extras_json = json.dumps(_clean_extras(changes["extras"]))
    db.commit()
    db.refresh(service)
    return service


def toggle_service(db: Session, service: Service) -> Service:
    if not service.active and not has_price_tier(service.price_hour, service.price_day, service.price_week):
        raise ServiceValidationError("set a price before activating this service")
    service.active = not service.active
    db.commit()
    db.refresh(service)
    return service


def service_out(s: Service) -> dict:
    pricing = Pricing.from_service(s)
    return {
        "id": s.id,
        "providerId": s.provider_id,
        "title": s.title,
        "description": s.description,
        "priceHour": s.price_hour,
        "priceDay": s.price_day,
        "priceWeek": s.price_week,
        "minBookingHours": s.min_booking_hours,
        "extras": s.extras,
        "active": s.active,
        "durationUnits": selectable_units(pricing),
    }


# -------------------------
# Discovery
# -------------------------
def provider_out(p: Provider, u: User, services: list[Service] | None = None) -> dict:
    out = {
        "id": p.id,
        "userId": u.id,
        "name": u.name,
        "city": u.city,
        "avatarUrl": u.avatar_url,
        "category": p.category,
        "bio": p.bio,
        "rating": p.rating,
        "basePrice": p.base_price,
        "verified": bool(p.verified),
        "verification": status_out(status_of(p)),
        "version": p.version,
    }
    if services is not None:
        out["services"] = [service_out(s) for s in services]
    return out


def search_providers(db: Session, q: str | None = None, category: str | None = None,
                     city: str | None = None, verified_only: bool = True, limit: int = 20) -> list[tuple[Provider, User]]:
    query = db.query(Provider, User).join(User, User.id == Provider.user_id).filter(User.is_active == True)
    if verified_only:
        query = query.filter(Provider.verified == True)
    if category:
        query = query.filter(Provider.category == category)
    if city:
        query = query.filter(func.lower(User.city) == city.strip().lower())
    if q:
        ql = f"%{q.lower()}%"
        query = query.filter(func.lower(User.name).like(ql) | func.lower(Provider.category).like(ql) | func.lower(User.city).like(ql))
    return query.order_by(Provider.rating.desc(), User.name.asc()).limit(min(limit, 100)).all()


def active_services(db: Session, provider_id: str) -> list[Service]:
    return db.query(Service).filter(Service.provider_id == provider_id, Service.active == True).all()


def list_cities(db: Session) -> list[str]:
    """Distinct provider cities; an empty list if the lookup fails."""
    try:
        rows = (
            db.query(User.city)
            .filter(User.role == "provider", User.city != "")
            .distinct()
            .order_by(User.city.asc())
            .all()
        )
    except Exception:
        logger.warning("cities lookup failed", exc_info=True)
        db.rollback()
        return []
    return [r[0] for r in rows]
