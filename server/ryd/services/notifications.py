from __future__ import annotations

import logging

from ryd.auth.status import StatusChange
from ryd.models.user import User

logger = logging.getLogger(__name__)


def notify_signup_pending(user: User) -> None:
    """Placeholder hook so administrators learn about new applications."""

    logger.info(
        "signup_pending_review",
        extra={"user_id": user.id, "email": user.email},
    )


def notify_account_status_changed(user: User, change: StatusChange, actor: User | None) -> None:
    """Placeholder hook for the approval/rejection email."""

    logger.info(
        "account_status_notification",
        extra={
            "user_id": user.id,
            "email": user.email,
            "old_status": change.previous.value,
            "new_status": change.target.value,
            "actor_id": actor.id if actor else None,
        },
    )
