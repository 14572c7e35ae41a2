import uuid, json
from sqlalchemy.orm import Session
from fliq.models.activity_log import ActivityLog

def log_activity(db: Session, actor_user_id: str, action: str, entity_type: str, entity_id: str, details: dict | None = None):
    db.add(ActivityLog(
        id=str(uuid.uuid4()),
        actor_user_id=actor_user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details_json=json.dumps(details or {}, ensure_ascii=False, default=str),
    ))

def list_activity(db: Session, entity_type: str | None = None, entity_id: str | None = None, limit: int = 100) -> list[ActivityLog]:
    q = db.query(ActivityLog)
    if entity_type:
        q = q.filter(ActivityLog.entity_type == entity_type)
    if entity_id:
        q = q.filter(ActivityLog.entity_id == entity_id)
    return q.order_by(ActivityLog.created_at.desc()).limit(min(limit, 500)).all()
