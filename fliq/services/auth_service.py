import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fliq.core.config import settings
from fliq.core.security import create_reset_token, decode_token, hash_password, verify_password
from fliq.core.session_context import CurrentUser
from fliq.models.user import User
from fliq.services.email_service import queue_email

logger = logging.getLogger(__name__)

SIGNUP_ROLES = ("client", "provider")
MIN_PASSWORD_LENGTH = 8


class AuthError(ValueError):
    pass


class EmailTaken(AuthError):
    pass


def current_user_of(user: User) -> CurrentUser:
    return CurrentUser(id=user.id, email=user.email, role=user.role, name=user.name or "")


def check_new_password(password: str, confirm: str | None = None) -> None:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise AuthError(f"password must be at least {MIN_PASSWORD_LENGTH} characters")
    if confirm is not None and password != confirm:
        raise AuthError("passwords do not match")


def sign_up(db: Session, email: str, password: str, name: str, role: str,
            city: str = "", phone: str = "", confirm_password: str | None = None) -> User:
    """Create the account (credentials + profile) in one transaction.

    Repeating a sign-up with the same email and password returns the existing
    account, so a client retrying after a dropped response does not fail.
    """
    email_l = (email or "").strip().lower()
    if not email_l or "@" not in email_l:
        raise AuthError("a valid email is required")
    if not (name or "").strip():
        raise AuthError("name is required")
    if role not in SIGNUP_ROLES:
        raise AuthError("role must be client or provider")
    check_new_password(password, confirm_password)

    existing = db.query(User).filter(User.email == email_l).first()
    if existing:
        if existing.role == role and verify_password(password, existing.password_hash):
            return existing
        raise EmailTaken("email already registered")

    user = User(
        id=str(uuid.uuid4()),
        email=email_l,
        name=name.strip(),
        role=role,
        password_hash=hash_password(password),
        city=(city or "").strip(),
        phone=(phone or "").strip(),
        is_active=True,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise EmailTaken("email already registered")
    db.refresh(user)
    return user


def authenticate(db: Session, email: str, password: str) -> User | None:
    user = db.query(User).filter(User.email == (email or "").strip().lower()).first()
    if not user or not user.is_active:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def change_password(db: Session, user: User, old_password: str, new_password: str, confirm: str | None = None) -> None:
    if not verify_password(old_password, user.password_hash):
        raise AuthError("Old password incorrect")
    check_new_password(new_password, confirm)
    user.password_hash = hash_password(new_password)
    db.commit()


def _password_fingerprint(user: User) -> str:
    return user.password_hash[-16:]


def reset_link(token: str) -> str:
    return f"{settings.CLIENT_BASE_URL.rstrip('/')}/auth/update-password?token={token}"


def request_password_reset(db: Session, email: str) -> str | None:
    """Mail a reset link if the address belongs to an active account.

    Returns the token (None for unknown addresses); the route never reveals
    which case happened.
    """
    user = db.query(User).filter(User.email == (email or "").strip().lower()).first()
    if not user or not user.is_active:
        logger.info("password reset requested for unknown or inactive address")
        return None
    token = create_reset_token(user.id, _password_fingerprint(user))
    queue_email(
        db, user.email, "Reset your fliQ password",
        f"Someone asked to reset the password of your fliQ account.\n"
        f"Open this link within {settings.RESET_TOKEN_EXPIRE_MINUTES} minutes to choose a new one:\n"
        f"{reset_link(token)}\n\nIf it wasn't you, ignore this e-mail.",
        user.id,
    )
    return token


def reset_password(db: Session, token: str, new_password: str, confirm: str | None = None) -> User:
    try:
        payload = decode_token(token, expected_type="reset")
    except Exception:
        raise AuthError("reset link is invalid or has expired")
    user = db.get(User, payload.get("sub"))
    if not user or not user.is_active or payload.get("pwd") != _password_fingerprint(user):
        raise AuthError("reset link is invalid or has expired")
    check_new_password(new_password, confirm)
    user.password_hash = hash_password(new_password)
    db.commit()
    logger.info("password reset for user %s", user.id)
    return user
