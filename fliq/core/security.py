from datetime import datetime, timedelta, timezone

from jose import jwt
from passlib.context import CryptContext

from fliq.core.config import settings

# PBKDF2 avoids bcrypt backend/version issues and the 72-byte bcrypt input limit.
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
ALGO = "HS256"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def _token(subject: str, token_type: str, expires: timedelta, **claims) -> str:
    exp = datetime.now(timezone.utc) + expires
    payload = {"sub": subject, "type": token_type, "exp": exp, **claims}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGO)


def create_access_token(subject: str, expires_minutes: int | None = None) -> str:
    if expires_minutes is None:
        expires_minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES
    return _token(subject, "access", timedelta(minutes=expires_minutes))


def create_refresh_token(subject: str, expires_days: int | None = None) -> str:
    if expires_days is None:
        expires_days = settings.REFRESH_TOKEN_EXPIRE_DAYS
    return _token(subject, "refresh", timedelta(days=expires_days))


def create_reset_token(subject: str, fingerprint: str, expires_minutes: int | None = None) -> str:
    """Single-use in practice: `fingerprint` is derived from the current password hash."""
    if expires_minutes is None:
        expires_minutes = settings.RESET_TOKEN_EXPIRE_MINUTES
    return _token(subject, "reset", timedelta(minutes=expires_minutes), pwd=fingerprint)


def decode_token(token: str, expected_type: str | None = None) -> dict:
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGO])
    if expected_type and payload.get("type") != expected_type:
        raise ValueError(f"expected {expected_type} token")
    return payload
