from pydantic import BaseModel, EmailStr
from typing import Optional

from prosupps.modules.profile.schemas import ProfileResponse


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str
    profile: ProfileResponse
    redirect_to: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    confirm_password: str
    full_name: Optional[str] = None


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    message: str
    redirect_to: str


class CurrentUserResponse(BaseModel):
    id: str
    email: Optional[str] = None
    profile: Optional[ProfileResponse] = None
    redirect_to: str
