import json
import uuid
from datetime import datetime, timezone

import pytest

from fliq.core.session_context import CurrentUser, PermissionDenied, SessionContext
from fliq.models.activity_log import ActivityLog
from fliq.models.provider import Provider
from fliq.models.user import User
from fliq.services import verification_service
from fliq.services.verification_service import (
    Pending,
    Rejected,
    StaleProviderError,
    Unsubmitted,
    Verified,
    VerificationError,
    status_of,
    status_out,
)


class NoDatabase:
    """Fails on any use; proves a call never reached storage."""

    def __getattr__(self, name):
        raise AssertionError(f"database touched: {name}")


def admin_session(admin_id="admin-1"):
    return SessionContext().authenticate(CurrentUser(id=admin_id, email=f"{admin_id}@fliq.test", role="admin"))


def make_provider(db, documents=("/media/verification_documents/p/id.pdf",)) -> Provider:
    user = User(id=str(uuid.uuid4()), email=f"{uuid.uuid4().hex}@fliq.test", name="Kemi", role="provider",
                password_hash="x")
    p = Provider(id=str(uuid.uuid4()), user_id=user.id, category="companion",
                 documents_json=json.dumps(list(documents)),
                 submitted_at=datetime.now(timezone.utc) if documents else None)
    db.add_all([user, p])
    db.commit()
    return p


def test_reject_without_reason_never_reaches_storage():
    with pytest.raises(VerificationError):
        verification_service.reject(NoDatabase(), admin_session(), "prov-1", "")
    with pytest.raises(VerificationError):
        verification_service.reject(NoDatabase(), admin_session(), "prov-1", "   ")


def test_status_variants():
    p = Provider(id="p", user_id="u", category="security", documents_json="[]")
    assert isinstance(status_of(p), Unsubmitted)
    p.documents_json = json.dumps(["/media/a.pdf"])
    assert status_of(p) == Pending(documents=("/media/a.pdf",))
    now = datetime.now(timezone.utc)
    p.reviewed_at, p.reviewed_by, p.verified = now, "admin-1", True
    assert status_of(p) == Verified(reviewed_at=now, reviewed_by="admin-1")
    p.verified, p.rejection_reason = False, "blurry ID"
    status = status_of(p)
    assert isinstance(status, Rejected)
    assert status_out(status)["reason"] == "blurry ID"
    assert status_out(status)["status"] == "rejected"


def test_approve_marks_verified_and_logs(db):
    p = make_provider(db)
    assert [x.id for x in verification_service.pending_queue(db)] == [p.id]

    result = verification_service.approve(db, admin_session(), p.id)
    assert result.verified is True
    assert result.reviewed_by == "admin-1"
    assert result.version == 2
    assert verification_service.pending_queue(db) == []

    log = db.query(ActivityLog).filter(ActivityLog.entity_id == p.id).one()
    assert log.action == "verification_approved"
    assert log.actor_user_id == "admin-1"


def test_reject_records_reason(db):
    p = make_provider(db)
    result = verification_service.reject(db, admin_session(), p.id, " documents expired ")
    assert result.verified is False
    assert result.rejection_reason == "documents expired"
    log = db.query(ActivityLog).filter(ActivityLog.entity_id == p.id).one()
    assert log.action == "verification_rejected"
    assert json.loads(log.details_json)["reason"] == "documents expired"


def test_only_admins_review(db):
    p = make_provider(db)
    client = SessionContext().authenticate(CurrentUser(id="c", email="c@fliq.test", role="client"))
    with pytest.raises(PermissionDenied):
        verification_service.approve(db, client, p.id)


def test_unknown_provider(db):
    with pytest.raises(LookupError):
        verification_service.approve(db, admin_session(), "missing")


def test_two_admins_approving_both_succeed(db):
    p = make_provider(db)
    first = verification_service.approve(db, admin_session("admin-1"), p.id)
    second = verification_service.approve(db, admin_session("admin-2"), p.id)
    assert first.verified and second.verified
    assert second.reviewed_by == "admin-2"
    actions = db.query(ActivityLog).filter(ActivityLog.entity_id == p.id).all()
    assert len(actions) == 2


def test_expected_version_detects_concurrent_review(db):
    p = make_provider(db)
    seen = p.version
    verification_service.approve(db, admin_session("admin-1"), p.id, expected_version=seen)
    with pytest.raises(StaleProviderError):
        verification_service.reject(db, admin_session("admin-2"), p.id, "late", expected_version=seen)
