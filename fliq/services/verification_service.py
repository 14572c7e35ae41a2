"""Provider verification review.

A provider's verification is one of:

    Unsubmitted                         no documents attached
    Pending(documents)                  documents attached, not reviewed yet
    Verified(reviewed_at, reviewed_by)
    Rejected(reviewed_at, reviewed_by, reason)

`status_of` derives the variant from the provider row. Admins move a provider
out of Pending with `approve` / `reject`; both write an activity-log entry.
Updates are last-writer-wins unless the caller passes `expected_version`.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Union

from sqlalchemy.orm import Session

from fliq.core.session_context import SessionContext
from fliq.models.provider import Provider
from fliq.models.user import User
from fliq.services.audit_service import log_activity
from fliq.services.email_service import queue_email

logger = logging.getLogger(__name__)


class VerificationError(ValueError):
    pass


class StaleProviderError(VerificationError):
    pass


@dataclass(frozen=True)
class Unsubmitted:
    label = "unsubmitted"


@dataclass(frozen=True)
class Pending:
    documents: tuple[str, ...]
    submitted_at: datetime | None = None
    label = "pending"


@dataclass(frozen=True)
class Verified:
    reviewed_at: datetime
    reviewed_by: str
    label = "verified"


@dataclass(frozen=True)
class Rejected:
    reviewed_at: datetime
    reviewed_by: str
    reason: str
    label = "rejected"


VerificationStatus = Union[Unsubmitted, Pending, Verified, Rejected]


def status_of(provider: Provider) -> VerificationStatus:
    if provider.reviewed_at is not None:
        if provider.verified:
            return Verified(reviewed_at=provider.reviewed_at, reviewed_by=provider.reviewed_by or "")
        return Rejected(reviewed_at=provider.reviewed_at, reviewed_by=provider.reviewed_by or "",
                        reason=provider.rejection_reason or "")
    docs = provider.documents
    if not docs:
        return Unsubmitted()
    return Pending(documents=tuple(docs), submitted_at=provider.submitted_at)


def status_out(status: VerificationStatus) -> dict:
    out = {"status": status.label}
    if isinstance(status, Pending):
        out["documents"] = list(status.documents)
        out["submittedAt"] = status.submitted_at.isoformat() if status.submitted_at else None
    elif isinstance(status, (Verified, Rejected)):
        out["reviewedAt"] = status.reviewed_at.isoformat()
        out["reviewedBy"] = status.reviewed_by
        if isinstance(status, Rejected):
            out["reason"] = status.reason
    return out


def pending_queue(db: Session) -> list[Provider]:
    """Providers with documents that nobody has reviewed yet, oldest submission first."""
    rows = (
        db.query(Provider)
        .filter(Provider.reviewed_at.is_(None))
        .order_by(Provider.submitted_at.asc())
        .all()
    )
    return [p for p in rows if isinstance(status_of(p), Pending)]


def _review(db: Session, session: SessionContext, provider_id: str, approved: bool, reason: str,
            expected_version: int | None) -> Provider:
    admin = session.require_role("admin")
    provider = db.get(Provider, provider_id)
    if not provider:
        raise LookupError("provider not found")
    if expected_version is not None and expected_version != provider.version:
        raise StaleProviderError("provider was modified by someone else; reload and retry")

    now = datetime.now(timezone.utc)
    provider.verified = approved
    provider.reviewed_at = now
    provider.reviewed_by = admin.id
    provider.rejection_reason = None if approved else reason
    provider.version = (provider.version or 0) + 1

    action = "verification_approved" if approved else "verification_rejected"
    details = {"documents": provider.documents}
    if not approved:
        details["reason"] = reason
    log_activity(db, admin.id, action, "provider", provider.id, details)
    db.commit()
    db.refresh(provider)
    logger.info("%s provider %s by %s", action, provider.id, admin.id)

    user = db.get(User, provider.user_id)
    if user:
        if approved:
            body = "Your fliQ provider account has been verified. Clients can now book you."
        else:
            body = f"Your fliQ verification was not approved.\nReason: {reason}\nYou can upload new documents and resubmit."
        queue_email(db, user.email, "fliQ verification update", body, provider.id)
    return provider


def approve(db: Session, session: SessionContext, provider_id: str, expected_version: int | None = None) -> Provider:
    return _review(db, session, provider_id, True, "", expected_version)


def reject(db: Session, session: SessionContext, provider_id: str, reason: str,
           expected_version: int | None = None) -> Provider:
    reason = (reason or "").strip()
    if not reason:
        raise VerificationError("rejection reason is required")
    return _review(db, session, provider_id, False, reason, expected_version)
