from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from ryd.auth.status import StatusChange, UserStatus, parse_status, plan_status_change
from ryd.models.user import User, UserAuditActionEnum, UserAuditLog
from ryd.services import notifications

logger = logging.getLogger(__name__)


class StatusConflictError(Exception):
    """The account's status changed between read and write."""


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def split_name(name: str) -> tuple[str, str | None]:
    parts = name.split()
    if not parts:
        return "", None
    first = parts[0]
    last = " ".join(parts[1:]) or None
    return first, last


def find_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(func.lower(User.email) == normalize_email(email)).first()


def record_audit(
    db: Session,
    *,
    actor: User | None,
    target: User,
    action: UserAuditActionEnum,
    payload: dict[str, Any] | None = None,
) -> UserAuditLog:
    entry = UserAuditLog(
        actor_user_id=actor.id if actor else None,
        target_user_id=target.id,
        action=action.value,
        payload=payload or None,
        created_at=now_utc(),
    )
    db.add(entry)
    return entry


def change_user_status(
    db: Session,
    *,
    actor: User | None,
    target: User,
    new_status,
    expected_status=None,
    reason: str | None = None,
) -> StatusChange:
    """Move ``target`` to ``new_status`` if it still holds the expected status.

    The write is a conditional UPDATE on the prior status so two
    administrators racing on the same account cannot both succeed.
    """

    current = parse_status(target.status)
    expected = parse_status(expected_status) if expected_status is not None else current
    if expected is None or expected is not current:
        raise StatusConflictError("Account status has changed, reload and try again")

    change = plan_status_change(expected, new_status)
    if change.is_noop:
        return change

    values: dict[Any, Any] = {User.status: change.target.value, User.updated_at: now_utc()}
    if change.is_approval:
        values[User.approved_at] = now_utc()
        values[User.approved_by_id] = actor.id if actor else None

    updated = (
        db.query(User)
        .filter(User.id == target.id, User.status == change.previous.value)
        .update(values, synchronize_session=False)
    )
    if updated != 1:
        db.rollback()
        raise StatusConflictError("Account status has changed, reload and try again")

    if change.is_approval:
        action = UserAuditActionEnum.USER_APPROVED
    elif change.is_override:
        action = UserAuditActionEnum.STATUS_OVERRIDE
    else:
        action = UserAuditActionEnum.STATUS_CHANGED
    record_audit(
        db,
        actor=actor,
        target=target,
        action=action,
        payload={"from": change.previous.value, "to": change.target.value, "reason": reason},
    )
    db.commit()
    db.refresh(target)

    log_extra = {
        "user_id": target.id,
        "actor_id": actor.id if actor else None,
        "old_status": change.previous.value,
        "new_status": change.target.value,
    }
    if change.is_override:
        logger.warning("account_status_override", extra=log_extra)
    else:
        logger.info("account_status_changed", extra=log_extra)
    notifications.notify_account_status_changed(target, change, actor)
    return change


def load_active_users(db: Session, user_ids) -> list[User]:
    """Load the given accounts, raising ValueError unless all exist and are ACTIVE."""

    wanted = list(dict.fromkeys(user_ids or []))
    if not wanted:
        return []
    users = db.query(User).filter(User.id.in_(wanted)).all()
    found = {user.id: user for user in users}
    missing = [str(user_id) for user_id in wanted if user_id not in found]
    if missing:
        raise ValueError(f"Users not found: {', '.join(missing)}")
    inactive = [found[user_id] for user_id in wanted if parse_status(found[user_id].status) is not UserStatus.ACTIVE]
    if inactive:
        names = ", ".join(user.display_name for user in inactive)
        raise ValueError(f"The following users are not active: {names}")
    return [found[user_id] for user_id in wanted]
