from typing import Callable

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ryd.auth.rbac import Capability, has_capability, is_admin, is_super_admin
from ryd.auth.security import InvalidSessionError, SessionClaims, decode_session_token
from ryd.auth.status import can_use_product, is_pending_approval, status_message
from ryd.core.config import settings
from ryd.core.db import get_db
from ryd.models.user import User

bearer_scheme = HTTPBearer(auto_error=False)


def get_session_claims(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> SessionClaims:
    token = credentials.credentials if credentials else request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        return decode_session_token(token)
    except InvalidSessionError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc


def get_current_user(
    claims: SessionClaims = Depends(get_session_claims),
    db: Session = Depends(get_db),
) -> User:
    user = db.get(User, claims.id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


def require_active_user(user: User = Depends(get_current_user)) -> User:
    """Use the stored status, not the token's, so revocations apply at once."""

    if not can_use_product(user.status):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=status_message(user.status))
    return user


def require_profile_user(user: User = Depends(get_current_user)) -> User:
    """ACTIVE accounts, plus PENDING applicants filling in their profile."""

    if not (can_use_product(user.status) or is_pending_approval(user.status)):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=status_message(user.status))
    return user


def require_capability(*capabilities: Capability) -> Callable[[User], User]:
    def checker(user: User = Depends(require_active_user)) -> User:
        if not all(has_capability(user.role, capability) for capability in capabilities):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return user

    return checker


def require_admin(user: User = Depends(require_active_user)) -> User:
    if not is_admin(user.role):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin privileges required")
    return user


def require_super_admin(user: User = Depends(require_active_user)) -> User:
    if not is_super_admin(user.role):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Super Admin privileges required")
    return user
