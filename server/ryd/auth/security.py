from __future__ import annotations

from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError, validator

from ryd.auth.rbac import UserRole
from ryd.auth.status import UserStatus
from ryd.core.config import settings


class InvalidSessionError(Exception):
    pass


class SessionClaims(BaseModel):
    """Identity carried in the session token, validated on every decode."""

    id: int
    role: UserRole
    status: UserStatus
    email: str

    @validator("email")
    def clean_email(cls, value: str) -> str:
        cleaned = value.strip().lower()
        if not cleaned:
            raise ValueError("Email claim is empty")
        return cleaned


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed_password: str | None) -> bool:
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(
    *,
    user_id: int,
    role: str,
    status: str,
    email: str,
    expires_minutes: int | None = None,
) -> str:
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=expires_minutes if expires_minutes is not None else settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    payload = {
        "sub": str(user_id),
        "role": str(UserRole(role).value),
        "status": str(UserStatus(status).value),
        "email": email,
        "exp": expire,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def decode_session_token(token: str) -> SessionClaims:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    except JWTError as exc:
        raise InvalidSessionError("Invalid token") from exc

    subject = payload.get("sub")
    if subject is None:
        raise InvalidSessionError("Invalid token payload")
    try:
        return SessionClaims(
            id=int(subject),
            role=payload.get("role"),
            status=payload.get("status"),
            email=payload.get("email") or "",
        )
    except (TypeError, ValueError, ValidationError) as exc:
        raise InvalidSessionError("Invalid token payload") from exc
