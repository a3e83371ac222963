from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy import case, func, or_
from sqlalchemy.orm import Session

from ryd.auth.deps import require_capability
from ryd.auth.rbac import ADMIN_ROLES, Capability, UserRole, is_admin, is_super_admin, parse_role
from ryd.auth.security import hash_password
from ryd.auth.status import UserStatus
from ryd.core.db import get_db
from ryd.models.user import User, UserAuditActionEnum
from ryd.schemas.user import (
    AdminUserCreate,
    CountResponse,
    PendingUsersResponse,
    StatusUpdateRequest,
    UserListResponse,
    UserOut,
)
from ryd.services.user_accounts import (
    StatusConflictError,
    change_user_status,
    find_user_by_email,
    normalize_email,
    now_utc,
    record_audit,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

_PENDING_FIRST = case((User.status == UserStatus.PENDING.value, 0), else_=1)


def _load_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def _pending_query(db: Session):
    return db.query(User).filter(User.status == UserStatus.PENDING.value)


@router.get("/users", response_model=UserListResponse)
def list_users(
    *,
    status_filter: UserStatus | None = Query(None, alias="status"),
    role: UserRole | None = Query(None),
    search: str | None = Query(None),
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(Capability.MANAGE_USERS)),
) -> UserListResponse:
    query = db.query(User)
    if status_filter:
        query = query.filter(User.status == status_filter.value)
    if role:
        query = query.filter(User.role == role.value)
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(
            or_(
                func.lower(User.email).like(pattern),
                func.lower(func.coalesce(User.first_name, "")).like(pattern),
                func.lower(func.coalesce(User.last_name, "")).like(pattern),
            )
        )
    users = query.order_by(_PENDING_FIRST, User.created_at.desc(), User.id.desc()).all()
    return UserListResponse(items=[UserOut.from_orm(user) for user in users], total=len(users))


@router.post("/users", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: AdminUserCreate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_capability(Capability.MANAGE_USERS)),
) -> UserOut:
    if payload.role in ADMIN_ROLES and not is_super_admin(actor.role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only super admins can create admin accounts",
        )
    email = normalize_email(payload.email)
    if find_user_by_email(db, email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User with this email already exists")

    user = User(
        email=email,
        first_name=payload.first_name,
        last_name=payload.last_name,
        name=payload.name,
        hashed_password=hash_password(payload.password),
        role=payload.role.value,
        status=UserStatus.ACTIVE.value,
        phone=payload.phone,
        job_title=payload.job_title,
        department=payload.department,
        approved_at=now_utc(),
        approved_by_id=actor.id,
    )
    db.add(user)
    db.flush()
    record_audit(
        db,
        actor=actor,
        target=user,
        action=UserAuditActionEnum.USER_CREATED,
        payload={"via": "admin", "role": user.role},
    )
    db.commit()
    db.refresh(user)
    logger.info("user_created_by_admin", extra={"user_id": user.id, "actor_id": actor.id, "role": user.role})
    return UserOut.from_orm(user)


@router.get("/users/{user_id:int}", response_model=UserOut)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(Capability.MANAGE_USERS)),
) -> UserOut:
    return UserOut.from_orm(_load_user(db, user_id))


@router.delete("/users/{user_id:int}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    actor: User = Depends(require_capability(Capability.DELETE_USERS)),
) -> Response:
    if user_id == actor.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")
    user = _load_user(db, user_id)
    if is_admin(user.role) and not is_super_admin(actor.role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only super admins can delete other admin accounts",
        )
    db.delete(user)
    db.commit()
    logger.info("user_deleted", extra={"user_id": user_id, "actor_id": actor.id, "role": user.role})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/users/{user_id:int}/status", response_model=UserOut)
def update_user_status(
    user_id: int,
    payload: StatusUpdateRequest,
    db: Session = Depends(get_db),
    actor: User = Depends(require_capability(Capability.APPROVE_USERS)),
) -> UserOut:
    if user_id == actor.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot modify your own status")
    user = _load_user(db, user_id)
    if parse_role(user.role) in ADMIN_ROLES and not is_super_admin(actor.role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only super admins can modify admin account status",
        )
    try:
        change_user_status(
            db,
            actor=actor,
            target=user,
            new_status=payload.status,
            expected_status=payload.expected_status,
            reason=payload.reason,
        )
    except StatusConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return UserOut.from_orm(user)


@router.get("/pending-users", response_model=PendingUsersResponse)
def list_pending_users(
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(Capability.APPROVE_USERS)),
) -> PendingUsersResponse:
    users = _pending_query(db).order_by(User.created_at.desc(), User.id.desc()).all()
    return PendingUsersResponse(count=len(users), users=[UserOut.from_orm(user) for user in users])


@router.get("/pending-users/count", response_model=CountResponse)
def count_pending_users(
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(Capability.APPROVE_USERS)),
) -> CountResponse:
    return CountResponse(count=_pending_query(db).count())
