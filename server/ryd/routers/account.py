from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ryd.auth.deps import get_current_user, get_session_claims, require_profile_user
from ryd.auth.security import SessionClaims
from ryd.auth.status import parse_status, redirect_for_status, status_message
from ryd.core.db import get_db
from ryd.models.user import User, UserAuditActionEnum
from ryd.schemas.user import ProfileUpdate, UserOut, UserStatusResponse
from ryd.services.user_accounts import record_audit

router = APIRouter(prefix="/user", tags=["account"])


@router.get("/profile", response_model=UserOut, status_code=status.HTTP_200_OK)
def get_profile(user: User = Depends(require_profile_user)) -> UserOut:
    return UserOut.from_orm(user)


@router.patch("/profile", response_model=UserOut, status_code=status.HTTP_200_OK)
def update_profile(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_profile_user),
) -> UserOut:
    changes = {field: getattr(payload, field) for field in payload.__fields_set__}
    for field, value in changes.items():
        setattr(user, field, value)
    if changes:
        record_audit(
            db,
            actor=user,
            target=user,
            action=UserAuditActionEnum.PROFILE_UPDATED,
            payload={"fields": sorted(changes)},
        )
    db.commit()
    db.refresh(user)
    return UserOut.from_orm(user)


@router.get("/status", response_model=UserStatusResponse, status_code=status.HTTP_200_OK)
def get_account_status(
    claims: SessionClaims = Depends(get_session_claims),
    user: User = Depends(get_current_user),
) -> UserStatusResponse:
    current = parse_status(user.status)
    return UserStatusResponse(
        status=user.status,
        role=user.role,
        has_status_changed=current is not claims.status,
        redirect=redirect_for_status(current),
        message=status_message(current),
    )
