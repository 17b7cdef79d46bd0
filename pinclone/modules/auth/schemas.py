from pydantic import BaseModel, EmailStr
from typing import Optional


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class SignUpRequest(BaseModel):
    email: EmailStr
    password: str
    full_name: Optional[str] = None


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: Optional[int] = None
    user_id: str
    email: Optional[str] = None


class SignUpResponse(BaseModel):
    user_id: str
    email: str
    message: str  # "signed_in" or "confirmation_pending"


class SessionUser(BaseModel):
    id: str
    email: Optional[str] = None
    user_metadata: dict = {}
    app_metadata: dict = {}


class SessionResponse(BaseModel):
    user: Optional[SessionUser] = None
