from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from fliq.db.session import get_db
from fliq.core.security import decode_token
from fliq.core.session_context import SessionContext
from fliq.models.user import User
from fliq.services.auth_service import current_user_of

bearer = HTTPBearer(auto_error=False)

def _user_from_token(creds: HTTPAuthorizationCredentials | None, db: Session) -> User | None:
    if not creds:
        return None
    try:
        payload = decode_token(creds.credentials, expected_type="access")
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid token")
    user = db.get(User, payload.get("sub"))
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return user

def get_current_user(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
) -> User:
    user = _user_from_token(creds, db)
    if not user:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user

def get_session_context(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
):
    """One SessionContext per request, closed when the request ends."""
    ctx = SessionContext()
    user = _user_from_token(creds, db)
    if user:
        ctx.authenticate(current_user_of(user))
    else:
        ctx.mark_unauthenticated()
    try:
        yield ctx
    finally:
        ctx.close()

def require_roles(*roles: str):
    def _guard(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise HTTPException(status_code=403, detail="Forbidden")
        return user
    return _guard
