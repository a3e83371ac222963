from typing import Optional

from pydantic import BaseModel, EmailStr, Field, validator

from ryd.auth.rbac import UserRole
from ryd.auth.status import UserStatus


class SignupRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    recaptcha_token: Optional[str] = None

    @validator("name")
    def clean_name(cls, value: str) -> str:
        cleaned = " ".join(value.split())
        if len(cleaned) < 2:
            raise ValueError("Name must be at least 2 characters")
        return cleaned


class LoginRequest(BaseModel):
    email: EmailStr
    password: str
    recaptcha_token: str | None = None


class SessionUser(BaseModel):
    id: int
    email: EmailStr
    name: str
    role: UserRole
    status: UserStatus


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: SessionUser
    redirect: str


class SignupResponse(BaseModel):
    message: str
    user: SessionUser


class WhoAmIResponse(BaseModel):
    id: int
    user: EmailStr
    name: str
    role: UserRole
    status: UserStatus
    capabilities: list[str]
