"""Outgoing mail.

Every message is written to `email_logs` first and then sent straight away.
Rows left `queued` (mail disabled) or `failed` (transport error) are picked
up again by the Celery beat job through `process_pending_emails`.
"""
import logging
import smtplib
import uuid
from datetime import datetime, timezone
from email.message import EmailMessage

import requests
from sqlalchemy.orm import Session

from fliq.core.config import settings
from fliq.models.email_log import EmailLog

logger = logging.getLogger(__name__)

QUEUED = "queued"
SENT = "sent"
FAILED = "failed"

SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"


def _set_status(db: Session, email_id: str, status: str) -> None:
    row = db.get(EmailLog, email_id)
    if row is None:
        return
    row.status = status
    if status == SENT:
        row.sent_at = datetime.now(timezone.utc)
    db.commit()


def queue_email(db: Session, to_email: str, subject: str, body: str, related_entity_id: str = "") -> str:
    email_id = str(uuid.uuid4())
    db.add(EmailLog(id=email_id, to_email=to_email, subject=subject, body=body,
                    status=QUEUED, related_entity_id=related_entity_id))
    db.commit()

    if not settings.EMAIL_ENABLED:
        logger.info("mail disabled, %r to %s stays queued", subject, to_email)
        return email_id

    try:
        send_email(to_email, subject, body)
    except Exception:
        logger.warning("sending %r to %s failed; left for retry", subject, to_email, exc_info=True)
        _set_status(db, email_id, FAILED)
    else:
        _set_status(db, email_id, SENT)
    return email_id


def send_email(to_email: str, subject: str, body: str) -> None:
    """SendGrid when an API key is configured, plain SMTP otherwise."""
    if settings.SENDGRID_API_KEY:
        _send_via_sendgrid(to_email, subject, body)
    else:
        _send_via_smtp(to_email, subject, body)


def _send_via_smtp(to_email: str, subject: str, body: str) -> None:
    msg = EmailMessage()
    msg["From"] = settings.SMTP_FROM
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(body)
    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as smtp:
        if settings.SMTP_USERNAME:
            smtp.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        smtp.send_message(msg)


def _send_via_sendgrid(to_email: str, subject: str, body: str) -> None:
    r = requests.post(
        SENDGRID_URL,
        json={
            "personalizations": [{"to": [{"email": to_email}]}],
            "from": {"email": settings.SENDGRID_FROM_EMAIL or settings.SMTP_FROM},
            "subject": subject,
            "content": [{"type": "text/plain", "value": body}],
        },
        headers={"Authorization": f"Bearer {settings.SENDGRID_API_KEY}"},
        timeout=20,
    )
    if r.status_code >= 400:
        raise RuntimeError(f"SendGrid error {r.status_code}: {r.text}")


def process_pending_emails(db: Session, limit: int = 50) -> dict:
    """Retry up to `limit` queued or failed mails, oldest first."""
    rows = (
        db.query(EmailLog)
        .filter(EmailLog.status.in_([QUEUED, FAILED]), EmailLog.body.isnot(None), EmailLog.body != "")
        .order_by(EmailLog.created_at.asc())
        .limit(limit)
        .all()
    )
    counts = {"processed": len(rows), "sent": 0, "failed": 0}
    for row in rows:
        try:
            send_email(row.to_email, row.subject, row.body)
        except Exception:
            logger.warning("retry of email %s failed", row.id, exc_info=True)
            row.status = FAILED
            counts["failed"] += 1
        else:
            row.status = SENT
            row.sent_at = datetime.now(timezone.utc)
            counts["sent"] += 1
    if rows:
        db.commit()
    return counts
