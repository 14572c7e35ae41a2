from sqlalchemy.orm import Session
from sqlalchemy.exc import ProgrammingError, OperationalError
from fliq.db.session import SessionLocal
from fliq.services.email_service import process_pending_emails


def process_email_queue(limit: int = 50, db: Session | None = None) -> dict:
    """Process queued/failed emails (retry send). Run periodically via Celery beat."""
    own = db is None
    db = db or SessionLocal()
    try:
        try:
            return process_pending_emails(db, limit=limit)
        except (ProgrammingError, OperationalError):
            # DB not migrated yet; don't crash the worker.
            db.rollback()
            return {"skipped": True, "reason": "missing_tables"}
    finally:
        if own:
            db.close()
