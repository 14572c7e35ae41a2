from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from fliq.db.session import get_db
from fliq.schemas.auth import (
    SignUpRequest, LoginRequest, TokenPair, ChangePasswordRequest, ForgotPasswordRequest, ResetPasswordRequest,
)
from fliq.models.user import User
from fliq.core.security import create_access_token, create_refresh_token, decode_token
from fliq.api.deps import get_current_user
from fliq.services.auth_service import (
    AuthError, EmailTaken, sign_up, authenticate, change_password as do_change_password,
    request_password_reset, reset_password as do_reset_password,
)

router = APIRouter(tags=["auth"])

def _tokens(user: User) -> TokenPair:
    return TokenPair(
        access_token=create_access_token(user.id),
        refresh_token=create_refresh_token(user.id),
    )

@router.post("/auth/signup", response_model=TokenPair)
def signup(body: SignUpRequest, db: Session = Depends(get_db)):
    try:
        user = sign_up(db, body.email, body.password, body.name, body.role,
                       city=body.city, phone=body.phone, confirm_password=body.confirmPassword)
    except EmailTaken as e:
        raise HTTPException(status_code=409, detail=str(e))
    except AuthError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _tokens(user)

@router.post("/auth/login", response_model=TokenPair)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = authenticate(db, body.email, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return _tokens(user)

@router.post("/auth/refresh", response_model=TokenPair)
def refresh(refresh_token: str, db: Session = Depends(get_db)):
    try:
        payload = decode_token(refresh_token, expected_type="refresh")
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid refresh token")
    user = db.get(User, payload.get("sub"))
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return _tokens(user)

@router.get("/auth/me")
def me(me: User = Depends(get_current_user)):
    """Return current user info including role."""
    return {
        "id": me.id,
        "email": me.email,
        "name": me.name or "",
        "role": me.role,
        "city": me.city,
        "avatarUrl": me.avatar_url,
    }

@router.post("/auth/change-password")
def change_password(body: ChangePasswordRequest,
                    db: Session = Depends(get_db),
                    me: User = Depends(get_current_user)):
    try:
        do_change_password(db, me, body.oldPassword, body.newPassword, body.confirmPassword)
    except AuthError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"ok": True}

@router.post("/auth/forgot-password")
def forgot_password(body: ForgotPasswordRequest, db: Session = Depends(get_db)):
    """Always 200 so the response does not reveal whether the address is registered."""
    request_password_reset(db, body.email)
    return {"ok": True}

@router.post("/auth/reset-password")
def reset_password(body: ResetPasswordRequest, db: Session = Depends(get_db)):
    try:
        do_reset_password(db, body.token, body.newPassword, body.confirmPassword)
    except AuthError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"ok": True}
