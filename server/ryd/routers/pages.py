"""Minimal page descriptors that gate redirects land on."""

from fastapi import APIRouter, Depends, Query

from ryd.auth.deps import require_active_user
from ryd.auth.rbac import navigation_items
from ryd.auth.status import (
    DASHBOARD_PAGE,
    PENDING_PAGE,
    REJECTED_PAGE,
    SIGNIN_PAGE,
    SIGNOUT_PAGE,
    SUSPENDED_PAGE,
    UserStatus,
    status_message,
)
from ryd.models.user import User

router = APIRouter(tags=["pages"])


def _holding_page(name: str, status: UserStatus) -> dict:
    return {"page": name, "message": status_message(status), "signout": SIGNOUT_PAGE}


@router.get("/")
def landing() -> dict:
    return {"page": "home", "signin": SIGNIN_PAGE}


@router.get(SIGNIN_PAGE)
def signin_page(callback_url: str | None = Query(None, alias="callbackUrl")) -> dict:
    return {"page": "signin", "callback_url": callback_url or DASHBOARD_PAGE}


@router.get(PENDING_PAGE)
def pending_page() -> dict:
    return _holding_page("pending-approval", UserStatus.PENDING)


@router.get(REJECTED_PAGE)
def rejected_page() -> dict:
    return _holding_page("rejected", UserStatus.REJECTED)


@router.get(SUSPENDED_PAGE)
def suspended_page() -> dict:
    return _holding_page("suspended", UserStatus.SUSPENDED)


@router.get(DASHBOARD_PAGE)
def dashboard_page(user: User = Depends(require_active_user)) -> dict:
    return {
        "page": "dashboard",
        "user": {"id": user.id, "name": user.display_name, "role": user.role},
        "navigation": navigation_items(user.role),
    }
