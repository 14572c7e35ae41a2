from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from sqlalchemy import func

from fliq.db.session import get_db
from fliq.api.deps import require_roles, get_session_context
from fliq.core.session_context import SessionContext, SessionError, NotAuthenticated
from fliq.models.user import User
from fliq.models.booking import Booking
from fliq.models.dispute import Dispute
from fliq.models.provider import Provider
from fliq.schemas.admin import VerificationDecision, VerificationRejection, DisputeResolution, DashboardStats
from fliq.services import verification_service
from fliq.services.audit_service import log_activity, list_activity
from fliq.services.booking_service import booking_out
from fliq.services.catalog_service import provider_out
from fliq.services.dispute_service import DisputeError, OPEN, resolve_dispute, dispute_out

router = APIRouter(tags=["admin"])


@router.get("/admin/users")
def list_users(role: str | None = None, q: str | None = None, limit: int = 50, offset: int = 0,
               db: Session = Depends(get_db),
               me: User = Depends(require_roles("admin"))):
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)
    if q:
        ql = f"%{q.lower()}%"
        query = query.filter(func.lower(User.email).like(ql) | func.lower(User.name).like(ql))
    total = query.count()
    users = query.order_by(User.created_at.desc()).limit(min(limit, 200)).offset(max(offset, 0)).all()
    return {
        "total": total,
        "items": [{"id": u.id, "email": u.email, "name": u.name, "role": u.role, "city": u.city,
                   "isActive": u.is_active, "createdAt": u.created_at.isoformat()} for u in users]
    }


@router.patch("/admin/users/{user_id}")
def update_user(user_id: str, isActive: bool,
                db: Session = Depends(get_db),
                me: User = Depends(require_roles("admin"))):
    u = db.get(User, user_id)
    if not u:
        raise HTTPException(status_code=404, detail="not found")
    u.is_active = bool(isActive)
    log_activity(db, me.id, "user_updated", "user", u.id, {"isActive": u.is_active})
    db.commit()
    return {"ok": True}


@router.get("/admin/bookings")
def recent_bookings(status: str | None = None, limit: int = 50,
                    db: Session = Depends(get_db), me: User = Depends(require_roles("admin"))):
    q = db.query(Booking)
    if status:
        q = q.filter(Booking.status == status)
    items = q.order_by(Booking.created_at.desc()).limit(min(limit, 200)).all()
    return {"items": [booking_out(b) for b in items]}


@router.get("/admin/disputes")
def list_disputes(status: str | None = None, db: Session = Depends(get_db), me: User = Depends(require_roles("admin"))):
    q = db.query(Dispute)
    if status:
        q = q.filter(Dispute.status == status)
    return {"items": [dispute_out(d) for d in q.order_by(Dispute.created_at.desc()).all()]}


@router.post("/admin/disputes/{dispute_id}/resolve")
def resolve(dispute_id: str, body: DisputeResolution, db: Session = Depends(get_db),
            me: User = Depends(require_roles("admin"))):
    d = db.get(Dispute, dispute_id)
    if not d:
        raise HTTPException(status_code=404, detail="not found")
    try:
        d = resolve_dispute(db, d, me.id, body.note)
    except DisputeError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return dispute_out(d)


@router.get("/admin/stats", response_model=DashboardStats)
def stats(db: Session = Depends(get_db), me: User = Depends(require_roles("admin"))):
    revenue = db.query(func.coalesce(func.sum(Booking.final_amount), 0)).scalar()
    return DashboardStats(
        totalUsers=db.query(User).count(),
        totalProviders=db.query(User).filter(User.role == "provider").count(),
        totalBookings=db.query(Booking).count(),
        totalRevenue=int(revenue or 0),
        pendingDisputes=db.query(Dispute).filter(Dispute.status == OPEN).count(),
        pendingVerifications=len(verification_service.pending_queue(db)),
    )


@router.get("/admin/activity")
def activity(entityType: str | None = None, entityId: str | None = None, limit: int = 100,
             db: Session = Depends(get_db), me: User = Depends(require_roles("admin"))):
    return {"items": [{"id": a.id, "actorUserId": a.actor_user_id, "action": a.action, "entityType": a.entity_type,
                       "entityId": a.entity_id, "details": a.details_json, "createdAt": a.created_at.isoformat()}
                      for a in list_activity(db, entityType, entityId, limit)]}


# -------------------------
# ADMIN: PROVIDER VERIFICATION
# -------------------------
@router.get("/admin/verifications")
def verification_queue(db: Session = Depends(get_db), me: User = Depends(require_roles("admin"))):
    items = []
    for p in verification_service.pending_queue(db):
        u = db.get(User, p.user_id)
        if u:
            items.append(provider_out(p, u))
    return {"items": items}


def _review_response(db: Session, p: Provider) -> dict:
    return provider_out(p, db.get(User, p.user_id))


@router.post("/admin/verifications/{provider_id}/approve")
def approve_provider(provider_id: str, body: VerificationDecision | None = None, db: Session = Depends(get_db),
                     session: SessionContext = Depends(get_session_context)):
    try:
        p = verification_service.approve(db, session, provider_id, body.expectedVersion if body else None)
    except NotAuthenticated:
        raise HTTPException(status_code=401, detail="Not authenticated")
    except SessionError:
        raise HTTPException(status_code=403, detail="Forbidden")
    except LookupError:
        raise HTTPException(status_code=404, detail="Provider not found")
    except verification_service.StaleProviderError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _review_response(db, p)


@router.post("/admin/verifications/{provider_id}/reject")
def reject_provider(provider_id: str, body: VerificationRejection, db: Session = Depends(get_db),
                    session: SessionContext = Depends(get_session_context)):
    try:
        p = verification_service.reject(db, session, provider_id, body.reason, body.expectedVersion)
    except NotAuthenticated:
        raise HTTPException(status_code=401, detail="Not authenticated")
    except SessionError:
        raise HTTPException(status_code=403, detail="Forbidden")
    except LookupError:
        raise HTTPException(status_code=404, detail="Provider not found")
    except verification_service.StaleProviderError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except verification_service.VerificationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _review_response(db, p)
