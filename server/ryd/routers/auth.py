import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from ryd.auth.deps import get_current_user
from ryd.auth.rbac import UserRole, capabilities_for
from ryd.auth.security import create_access_token, hash_password, verify_password
from ryd.auth.status import UserStatus, redirect_for_status
from ryd.core.config import settings
from ryd.core.db import get_db
from ryd.models.user import User, UserAuditActionEnum
from ryd.schemas.auth import (
    LoginRequest,
    SessionUser,
    SignupRequest,
    SignupResponse,
    TokenResponse,
    WhoAmIResponse,
)
from ryd.services import notifications
from ryd.services.recaptcha import RecaptchaError, recaptcha_enabled, verify_recaptcha
from ryd.services.user_accounts import find_user_by_email, normalize_email, now_utc, record_audit, split_name

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _session_user(user: User) -> SessionUser:
    return SessionUser(
        id=user.id,
        email=user.email,
        name=user.display_name,
        role=user.role,
        status=user.status,
    )


def _issue_session(response: Response, user: User) -> TokenResponse:
    token = create_access_token(user_id=user.id, role=user.role, status=user.status, email=user.email)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )
    return TokenResponse(
        access_token=token,
        user=_session_user(user),
        redirect=redirect_for_status(user.status),
    )


async def _check_recaptcha(request: Request, token: str | None, action: str) -> None:
    if not recaptcha_enabled():
        return
    client_ip = request.client.host if request.client else None
    try:
        await verify_recaptcha(token or "", action=action, remote_ip=client_ip)
    except RecaptchaError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(request: Request, payload: SignupRequest, db: Session = Depends(get_db)) -> SignupResponse:
    await _check_recaptcha(request, payload.recaptcha_token, "signup")

    email = normalize_email(payload.email)
    if find_user_by_email(db, email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User with this email already exists")

    first_name, last_name = split_name(payload.name)
    user = User(
        email=email,
        name=payload.name,
        first_name=first_name,
        last_name=last_name,
        hashed_password=hash_password(payload.password),
        role=UserRole.VOLUNTEER.value,
        status=UserStatus.PENDING.value,
    )
    db.add(user)
    db.flush()
    record_audit(db, actor=user, target=user, action=UserAuditActionEnum.USER_CREATED, payload={"via": "signup"})
    db.commit()
    db.refresh(user)

    logger.info("user_signed_up", extra={"user_id": user.id, "email": user.email})
    notifications.notify_signup_pending(user)
    return SignupResponse(
        message="Account created successfully. Please wait for admin approval.",
        user=_session_user(user),
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    request: Request,
    payload: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
) -> TokenResponse:
    await _check_recaptcha(request, payload.recaptcha_token, "login")

    user = find_user_by_email(db, payload.email)
    if not user or not verify_password(payload.password, user.hashed_password):
        logger.info("login_failed", extra={"email": normalize_email(payload.email)})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    # Every status may sign in; the gate decides where the session can go.
    user.last_login_at = now_utc()
    db.commit()
    db.refresh(user)
    logger.info("login_succeeded", extra={"user_id": user.id, "status": user.status})
    return _issue_session(response, user)


@router.post("/refresh", response_model=TokenResponse)
def refresh(response: Response, user: User = Depends(get_current_user)) -> TokenResponse:
    return _issue_session(response, user)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout() -> Response:
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return response


@router.get("/whoami", response_model=WhoAmIResponse)
def whoami(user: User = Depends(get_current_user)) -> WhoAmIResponse:
    return WhoAmIResponse(
        id=user.id,
        user=user.email,
        name=user.display_name,
        role=user.role,
        status=user.status,
        capabilities=sorted(capability.value for capability in capabilities_for(user.role)),
    )
