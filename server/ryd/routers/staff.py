import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ryd.auth.deps import require_capability
from ryd.auth.rbac import ADMIN_ROLES, Capability, UserRole, is_super_admin, parse_role
from ryd.auth.status import UserStatus
from ryd.core.db import get_db
from ryd.models.user import User, UserAuditActionEnum
from ryd.schemas.user import StaffUpdate, UserListResponse, UserOut
from ryd.services.user_accounts import record_audit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["staff"])


def _load_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("", response_model=UserListResponse, status_code=status.HTTP_200_OK)
def list_staff(
    *,
    search: str | None = Query(None),
    role: UserRole | None = Query(None),
    status_filter: UserStatus | None = Query(None, alias="status"),
    limit: int = Query(200, ge=1, le=500),
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(Capability.VIEW_TEAM)),
) -> UserListResponse:
    query = db.query(User)
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(
            or_(
                func.lower(User.email).like(pattern),
                func.lower(func.coalesce(User.first_name, "")).like(pattern),
                func.lower(func.coalesce(User.last_name, "")).like(pattern),
                func.lower(func.coalesce(User.department, "")).like(pattern),
            )
        )
    if role:
        query = query.filter(User.role == role.value)
    if status_filter:
        query = query.filter(User.status == status_filter.value)

    total = query.count()
    users = query.order_by(User.first_name.asc(), User.last_name.asc(), User.id.asc()).limit(limit).all()
    return UserListResponse(items=[UserOut.from_orm(user) for user in users], total=total)


@router.get("/{user_id:int}", response_model=UserOut, status_code=status.HTTP_200_OK)
def get_staff_member(
    user_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(Capability.VIEW_TEAM)),
) -> UserOut:
    return UserOut.from_orm(_load_user(db, user_id))


@router.patch("/{user_id:int}", response_model=UserOut, status_code=status.HTTP_200_OK)
def update_staff_member(
    user_id: int,
    payload: StaffUpdate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_capability(Capability.EDIT_TEAM_MEMBERS)),
) -> UserOut:
    user = _load_user(db, user_id)
    fields_set = payload.__fields_set__
    target_is_admin = parse_role(user.role) in ADMIN_ROLES

    if target_is_admin and user.id != actor.id and not is_super_admin(actor.role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only super admins can edit admin accounts",
        )

    if "role" in fields_set and payload.role is not None and payload.role.value != user.role:
        if user.id == actor.id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot change your own role")
        if payload.role in ADMIN_ROLES and not is_super_admin(actor.role):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only super admins can grant admin roles",
            )
        previous_role = user.role
        user.role = payload.role.value
        record_audit(
            db,
            actor=actor,
            target=user,
            action=UserAuditActionEnum.ROLE_UPDATED,
            payload={"from": previous_role, "to": user.role},
        )
        logger.info(
            "user_role_updated",
            extra={"user_id": user.id, "actor_id": actor.id, "old_role": previous_role, "new_role": user.role},
        )

    profile_fields = [field for field in fields_set if field != "role"]
    for field in profile_fields:
        setattr(user, field, getattr(payload, field))
    if profile_fields:
        record_audit(
            db,
            actor=actor,
            target=user,
            action=UserAuditActionEnum.PROFILE_UPDATED,
            payload={"fields": sorted(profile_fields)},
        )

    db.commit()
    db.refresh(user)
    return UserOut.from_orm(user)
