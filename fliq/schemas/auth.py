from pydantic import BaseModel
from typing import Optional

class SignUpRequest(BaseModel):
    email: str  # plain str to allow .local and other dev domains
    password: str
    confirmPassword: Optional[str] = None
    name: str
    role: str = "client"  # client | provider
    city: str = ""
    phone: str = ""

class LoginRequest(BaseModel):
    email: str
    password: str

class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"

class ChangePasswordRequest(BaseModel):
    oldPassword: str
    newPassword: str
    confirmPassword: Optional[str] = None

class ForgotPasswordRequest(BaseModel):
    email: str

class ResetPasswordRequest(BaseModel):
    token: str
    newPassword: str
    confirmPassword: Optional[str] = None
