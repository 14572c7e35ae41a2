from fliq.db.session import SessionLocal
from fliq.models.email_log import EmailLog
from fliq.seed import run as seed
from fliq.services import email_service
from fliq.services.email_service import queue_email
from fliq.tasks import worker_jobs


def test_queued_emails_are_retried(db, monkeypatch):
    queue_email(db, "kemi@fliq.test", "fliQ verification update", "Approved", "prov-1")
    queue_email(db, "tunde@fliq.test", "New booking request on fliQ", "Booking", "bk-1")
    assert db.query(EmailLog).filter(EmailLog.status == "queued").count() == 2

    sent_to = []

    def fake_send(to_email, subject, body):
        if to_email.startswith("tunde"):
            raise OSError("smtp down")
        sent_to.append(to_email)

    monkeypatch.setattr(email_service, "send_email", fake_send)
    result = worker_jobs.process_email_queue(limit=10, db=db)
    assert result == {"processed": 2, "sent": 1, "failed": 1}
    assert sent_to == ["kemi@fliq.test"]
    statuses = {e.to_email: e.status for e in db.query(EmailLog).all()}
    assert statuses == {"kemi@fliq.test": "sent", "tunde@fliq.test": "failed"}


def test_seed_creates_bookable_demo_provider(client):
    seed(SessionLocal())
    seed(SessionLocal())

    login = client.post("/api/v1/auth/login", json={"email": "client@fliq.ng", "password": "client12345"})
    assert login.status_code == 200
    providers = client.get("/api/v1/public/providers").json()["items"]
    assert len(providers) == 1
    assert providers[0]["services"][0]["durationUnits"] == ["hours", "days"]
