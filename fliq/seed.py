import json
import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import ProgrammingError, OperationalError

from fliq.db.session import SessionLocal
from fliq.core.security import hash_password
from fliq.models.user import User
from fliq.models.provider import Provider
from fliq.models.service import Service

logger = logging.getLogger(__name__)


def ensure_user(db: Session, email: str, password: str, role: str, name: str, city: str = "") -> User:
    u = db.query(User).filter(User.email == email).first()
    if u:
        return u
    u = User(
        id=str(uuid.uuid4()),
        email=email,
        name=name,
        role=role,
        city=city,
        password_hash=hash_password(password),
        is_active=True,
    )
    db.add(u)
    db.commit()
    return u


def ensure_demo_provider(db: Session, user: User) -> Provider:
    p = db.query(Provider).filter(Provider.user_id == user.id).first()
    if p:
        return p
    now = datetime.now(timezone.utc)
    p = Provider(
        id=str(uuid.uuid4()),
        user_id=user.id,
        category="security",
        bio="Licensed close-protection officer.",
        base_price=5000,
        documents_json=json.dumps(["/media/verification_documents/demo/licence.pdf"]),
        submitted_at=now,
        verified=True,
        reviewed_at=now,
        reviewed_by="seed",
    )
    db.add(p)
    db.add(Service(
        id=str(uuid.uuid4()),
        provider_id=p.id,
        title="Event security",
        description="Discreet security for private events.",
        price_hour=5000,
        price_day=40000,
        min_booking_hours=2,
        extras_json=json.dumps([{"name": "Armoured vehicle", "price": 25000}]),
        active=True,
    ))
    db.commit()
    return p


def run(db=None):
    if db is None:
        db = SessionLocal()
    try:
        # If migrations haven't been applied yet, seeding must not crash the API.
        try:
            db.execute(text("SELECT 1 FROM users LIMIT 1"))
        except (ProgrammingError, OperationalError):
            db.rollback()
            logger.warning("users table not found yet. Skipping seeding (run alembic upgrade head).")
            return

        ensure_user(db, "admin@fliq.ng", "admin12345", "admin", "Admin")
        provider_user = ensure_user(db, "provider@fliq.ng", "provider12345", "provider", "Demo Provider", city="Lagos")
        ensure_user(db, "client@fliq.ng", "client12345", "client", "Demo Client", city="Lagos")
        ensure_demo_provider(db, provider_user)
    finally:
        db.close()


if __name__ == "__main__":
    from fliq.core.logging import configure_logging
    configure_logging()
    run()
