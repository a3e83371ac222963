"""Request gate driven by the session's account status.

``evaluate_request`` is a pure function of the path and the decoded session
claims; the HTTP middleware in ``ryd.main`` only turns its decision into a
response.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable
from urllib.parse import quote

from ryd.auth.rbac import ADMIN_ROLES, UserRole, parse_role
from ryd.auth.security import SessionClaims
from ryd.auth.status import (
    DASHBOARD_PAGE,
    PENDING_PAGE,
    REJECTED_PAGE,
    SIGNIN_PAGE,
    SIGNOUT_PAGE,
    SUSPENDED_PAGE,
    UserStatus,
    parse_status,
    status_message,
)
from ryd.core.config import settings

API_PREFIX = settings.API_PREFIX.rstrip("/")

PUBLIC_EXACT_PATHS = frozenset({"/"})
PUBLIC_PREFIXES = (
    "/login",
    "/auth",
    f"{API_PREFIX}/auth",
    PENDING_PAGE,
    "/health",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/static",
)

ADMIN_PREFIXES = ("/admin", f"{API_PREFIX}/admin")
SUPER_ADMIN_PREFIXES = ("/super-admin",)


def path_matches(path: str, prefix: str) -> bool:
    prefix = prefix.rstrip("/")
    return path == prefix or path.startswith(prefix + "/")


def _under_any(path: str, prefixes) -> bool:
    return any(path_matches(path, prefix) for prefix in prefixes)


def is_public_path(path: str) -> bool:
    return path in PUBLIC_EXACT_PATHS or _under_any(path, PUBLIC_PREFIXES)


def is_api_path(path: str) -> bool:
    return bool(API_PREFIX) and path_matches(path, API_PREFIX)


@dataclass(frozen=True)
class GateRule:
    allowed: Callable[[str], bool]
    redirect_to: str


def _only(*prefixes: str) -> Callable[[str], bool]:
    return lambda path: _under_any(path, prefixes)


def _anything(path: str) -> bool:
    return True


STATUS_RULES = MappingProxyType(
    {
        UserStatus.PENDING: GateRule(
            allowed=_only(PENDING_PAGE, SIGNOUT_PAGE, f"{API_PREFIX}/auth", f"{API_PREFIX}/user"),
            redirect_to=PENDING_PAGE,
        ),
        UserStatus.REJECTED: GateRule(allowed=_only(REJECTED_PAGE), redirect_to=REJECTED_PAGE),
        UserStatus.SUSPENDED: GateRule(allowed=_only(SUSPENDED_PAGE), redirect_to=SUSPENDED_PAGE),
        UserStatus.INACTIVE: GateRule(allowed=_only(SUSPENDED_PAGE), redirect_to=SUSPENDED_PAGE),
        UserStatus.ACTIVE: GateRule(allowed=_anything, redirect_to=DASHBOARD_PAGE),
    }
)

ROLE_RULES = (
    (SUPER_ADMIN_PREFIXES, frozenset({UserRole.SUPER_ADMIN})),
    (ADMIN_PREFIXES, ADMIN_ROLES),
)


@dataclass(frozen=True)
class GateDecision:
    allow: bool
    redirect_to: str | None = None
    reason: str | None = None
    authenticated: bool = True


ALLOW = GateDecision(allow=True)


def signin_redirect(path: str) -> str:
    return f"{SIGNIN_PAGE}?callbackUrl={quote(path, safe='')}"


def evaluate_request(path: str, claims: SessionClaims | None) -> GateDecision:
    if is_public_path(path):
        return ALLOW
    if claims is None:
        return GateDecision(
            allow=False,
            redirect_to=signin_redirect(path),
            reason="Not authenticated",
            authenticated=False,
        )

    status = parse_status(claims.status)
    rule = STATUS_RULES.get(status) if status is not None else None
    if rule is None:
        return GateDecision(
            allow=False,
            redirect_to=signin_redirect(path),
            reason="Unknown account status",
            authenticated=False,
        )
    if not rule.allowed(path):
        return GateDecision(allow=False, redirect_to=rule.redirect_to, reason=status_message(status))

    if status is UserStatus.ACTIVE:
        role = parse_role(claims.role)
        for prefixes, roles in ROLE_RULES:
            if _under_any(path, prefixes) and role not in roles:
                return GateDecision(allow=False, redirect_to=DASHBOARD_PAGE, reason="Insufficient permissions")
    return ALLOW


def extract_session_token(cookies, authorization: str | None) -> str | None:
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()
    return cookies.get(settings.SESSION_COOKIE_NAME) or None
