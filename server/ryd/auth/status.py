"""Account status lifecycle.

Every account carries one status. Only ACTIVE accounts may use the product;
every other status maps to a holding page the gate redirects to.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from types import MappingProxyType


class UserStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"
    REJECTED = "REJECTED"


STATUS_VALUES = tuple(item.value for item in UserStatus)

SIGNIN_PAGE = "/auth/signin"
SIGNOUT_PAGE = "/auth/signout"
PENDING_PAGE = "/pending-approval"
REJECTED_PAGE = "/auth/rejected"
SUSPENDED_PAGE = "/auth/suspended"
DASHBOARD_PAGE = "/dashboard"

STATUS_REDIRECTS = MappingProxyType(
    {
        UserStatus.PENDING: PENDING_PAGE,
        UserStatus.ACTIVE: DASHBOARD_PAGE,
        UserStatus.REJECTED: REJECTED_PAGE,
        UserStatus.SUSPENDED: SUSPENDED_PAGE,
        UserStatus.INACTIVE: SUSPENDED_PAGE,
    }
)

# Moves an administrator may make as part of the normal review flow.
# Anything else is a manual override and is audited as such.
LIFECYCLE_TRANSITIONS = MappingProxyType(
    {
        UserStatus.PENDING: frozenset({UserStatus.ACTIVE, UserStatus.REJECTED}),
        UserStatus.ACTIVE: frozenset({UserStatus.SUSPENDED, UserStatus.INACTIVE}),
        UserStatus.SUSPENDED: frozenset({UserStatus.ACTIVE}),
        UserStatus.INACTIVE: frozenset({UserStatus.ACTIVE}),
        UserStatus.REJECTED: frozenset(),
    }
)

STATUS_MESSAGES = MappingProxyType(
    {
        UserStatus.PENDING: "Your account is pending approval by an administrator",
        UserStatus.REJECTED: "Your account application was not approved",
        UserStatus.SUSPENDED: "Your account has been suspended",
        UserStatus.INACTIVE: "Your account is inactive",
    }
)


def parse_status(value) -> UserStatus | None:
    if isinstance(value, UserStatus):
        return value
    try:
        return UserStatus(value)
    except (TypeError, ValueError):
        return None


def can_use_product(status) -> bool:
    return parse_status(status) is UserStatus.ACTIVE


def is_pending_approval(status) -> bool:
    return parse_status(status) is UserStatus.PENDING


def is_blocked(status) -> bool:
    return parse_status(status) in (UserStatus.REJECTED, UserStatus.SUSPENDED, UserStatus.INACTIVE)


def redirect_for_status(status) -> str:
    parsed = parse_status(status)
    if parsed is None:
        return SIGNIN_PAGE
    return STATUS_REDIRECTS[parsed]


def status_message(status) -> str:
    parsed = parse_status(status)
    if parsed is None:
        return "Unknown account status"
    return STATUS_MESSAGES.get(parsed, "Account is active")


@dataclass(frozen=True)
class StatusChange:
    previous: UserStatus
    target: UserStatus

    @property
    def is_noop(self) -> bool:
        return self.previous is self.target

    @property
    def is_lifecycle_step(self) -> bool:
        return self.target in LIFECYCLE_TRANSITIONS[self.previous]

    @property
    def is_override(self) -> bool:
        return not self.is_noop and not self.is_lifecycle_step

    @property
    def is_approval(self) -> bool:
        """Only the first PENDING -> ACTIVE move stamps approval data."""

        return self.previous is UserStatus.PENDING and self.target is UserStatus.ACTIVE


def plan_status_change(previous, target) -> StatusChange:
    previous_status = parse_status(previous)
    target_status = parse_status(target)
    if previous_status is None:
        raise ValueError(f"Unknown current status: {previous}")
    if target_status is None:
        raise ValueError("Invalid status value")
    return StatusChange(previous=previous_status, target=target_status)
