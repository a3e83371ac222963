"""Role to capability table and the record-level checks built on it."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable

from ryd.auth.status import can_use_product


class UserRole(str, enum.Enum):
    VOLUNTEER = "VOLUNTEER"
    STAFF = "STAFF"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


ROLE_VALUES = tuple(item.value for item in UserRole)


class Capability(str, enum.Enum):
    # accounts
    MANAGE_USERS = "MANAGE_USERS"
    APPROVE_USERS = "APPROVE_USERS"
    DELETE_USERS = "DELETE_USERS"
    VIEW_ALL_USERS = "VIEW_ALL_USERS"

    # projects
    VIEW_PROJECTS = "VIEW_PROJECTS"
    CREATE_PROJECTS = "CREATE_PROJECTS"
    EDIT_OWN_PROJECTS = "EDIT_OWN_PROJECTS"
    EDIT_ALL_PROJECTS = "EDIT_ALL_PROJECTS"
    DELETE_OWN_PROJECTS = "DELETE_OWN_PROJECTS"
    DELETE_ALL_PROJECTS = "DELETE_ALL_PROJECTS"
    MANAGE_PROJECT_MEMBERS = "MANAGE_PROJECT_MEMBERS"
    VIEW_PROJECT_ANALYTICS = "VIEW_PROJECT_ANALYTICS"

    # tasks
    VIEW_TASKS = "VIEW_TASKS"
    VIEW_ALL_TASKS = "VIEW_ALL_TASKS"
    CREATE_TASKS = "CREATE_TASKS"
    EDIT_OWN_TASKS = "EDIT_OWN_TASKS"
    EDIT_ALL_TASKS = "EDIT_ALL_TASKS"
    DELETE_OWN_TASKS = "DELETE_OWN_TASKS"
    DELETE_ALL_TASKS = "DELETE_ALL_TASKS"
    ASSIGN_TASKS = "ASSIGN_TASKS"
    UNASSIGN_TASKS = "UNASSIGN_TASKS"
    COMPLETE_ASSIGNED_TASKS = "COMPLETE_ASSIGNED_TASKS"

    # staff directory and working teams
    VIEW_TEAM = "VIEW_TEAM"
    MANAGE_TEAM = "MANAGE_TEAM"
    EDIT_TEAM_MEMBERS = "EDIT_TEAM_MEMBERS"
    DELETE_TEAM_MEMBERS = "DELETE_TEAM_MEMBERS"
    VIEW_TEAMS = "VIEW_TEAMS"
    MANAGE_TEAMS = "MANAGE_TEAMS"

    # finance
    VIEW_FINANCES = "VIEW_FINANCES"
    MANAGE_FINANCES = "MANAGE_FINANCES"
    CREATE_TRANSACTIONS = "CREATE_TRANSACTIONS"
    EDIT_TRANSACTIONS = "EDIT_TRANSACTIONS"
    DELETE_TRANSACTIONS = "DELETE_TRANSACTIONS"

    # documents
    UPLOAD_DOCUMENTS = "UPLOAD_DOCUMENTS"
    VIEW_DOCUMENTS = "VIEW_DOCUMENTS"
    EDIT_OWN_DOCUMENTS = "EDIT_OWN_DOCUMENTS"
    EDIT_ALL_DOCUMENTS = "EDIT_ALL_DOCUMENTS"
    DELETE_OWN_DOCUMENTS = "DELETE_OWN_DOCUMENTS"
    DELETE_ALL_DOCUMENTS = "DELETE_ALL_DOCUMENTS"
    MANAGE_DOCUMENT_CATEGORIES = "MANAGE_DOCUMENT_CATEGORIES"

    # reporting and messaging
    VIEW_REPORTS = "VIEW_REPORTS"
    VIEW_ANALYTICS = "VIEW_ANALYTICS"
    VIEW_ADMIN_ANALYTICS = "VIEW_ADMIN_ANALYTICS"
    EXPORT_DATA = "EXPORT_DATA"
    SEND_ANNOUNCEMENTS = "SEND_ANNOUNCEMENTS"
    MANAGE_ANNOUNCEMENTS = "MANAGE_ANNOUNCEMENTS"
    VIEW_ALL_MESSAGES = "VIEW_ALL_MESSAGES"
    VIEW_AUDIT_LOGS = "VIEW_AUDIT_LOGS"

    # system
    MANAGE_SETTINGS = "MANAGE_SETTINGS"
    MANAGE_ROLES = "MANAGE_ROLES"
    MANAGE_PERMISSIONS = "MANAGE_PERMISSIONS"
    MANAGE_SYSTEM = "MANAGE_SYSTEM"


ROLE_LEVELS = MappingProxyType(
    {
        UserRole.VOLUNTEER: 1,
        UserRole.STAFF: 2,
        UserRole.ADMIN: 3,
        UserRole.SUPER_ADMIN: 4,
    }
)

_VOLUNTEER = frozenset(
    {
        Capability.VIEW_PROJECTS,
        Capability.VIEW_TASKS,
        Capability.EDIT_OWN_TASKS,
        Capability.COMPLETE_ASSIGNED_TASKS,
        Capability.VIEW_TEAMS,
        Capability.UPLOAD_DOCUMENTS,
        Capability.VIEW_DOCUMENTS,
        Capability.EDIT_OWN_DOCUMENTS,
        Capability.DELETE_OWN_DOCUMENTS,
    }
)

_STAFF = _VOLUNTEER | {
    Capability.VIEW_ALL_USERS,
    Capability.CREATE_PROJECTS,
    Capability.EDIT_OWN_PROJECTS,
    Capability.DELETE_OWN_PROJECTS,
    Capability.MANAGE_PROJECT_MEMBERS,
    Capability.VIEW_PROJECT_ANALYTICS,
    Capability.VIEW_ALL_TASKS,
    Capability.CREATE_TASKS,
    Capability.EDIT_ALL_TASKS,
    Capability.DELETE_OWN_TASKS,
    Capability.DELETE_ALL_TASKS,
    Capability.ASSIGN_TASKS,
    Capability.UNASSIGN_TASKS,
    Capability.VIEW_TEAM,
    Capability.MANAGE_TEAMS,
    Capability.VIEW_FINANCES,
    Capability.EDIT_ALL_DOCUMENTS,
    Capability.DELETE_ALL_DOCUMENTS,
    Capability.MANAGE_DOCUMENT_CATEGORIES,
    Capability.VIEW_REPORTS,
    Capability.VIEW_ANALYTICS,
    Capability.EXPORT_DATA,
    Capability.SEND_ANNOUNCEMENTS,
    Capability.MANAGE_ANNOUNCEMENTS,
}

_ADMIN = _STAFF | {
    Capability.MANAGE_USERS,
    Capability.APPROVE_USERS,
    Capability.DELETE_USERS,
    Capability.EDIT_ALL_PROJECTS,
    Capability.DELETE_ALL_PROJECTS,
    Capability.MANAGE_TEAM,
    Capability.EDIT_TEAM_MEMBERS,
    Capability.DELETE_TEAM_MEMBERS,
    Capability.MANAGE_FINANCES,
    Capability.CREATE_TRANSACTIONS,
    Capability.EDIT_TRANSACTIONS,
    Capability.DELETE_TRANSACTIONS,
    Capability.VIEW_ADMIN_ANALYTICS,
    Capability.VIEW_ALL_MESSAGES,
    Capability.VIEW_AUDIT_LOGS,
}

_SUPER_ADMIN = _ADMIN | {
    Capability.MANAGE_SETTINGS,
    Capability.MANAGE_ROLES,
    Capability.MANAGE_PERMISSIONS,
    Capability.MANAGE_SYSTEM,
}

ROLE_CAPABILITIES = MappingProxyType(
    {
        UserRole.VOLUNTEER: _VOLUNTEER,
        UserRole.STAFF: frozenset(_STAFF),
        UserRole.ADMIN: frozenset(_ADMIN),
        UserRole.SUPER_ADMIN: frozenset(_SUPER_ADMIN),
    }
)

ADMIN_ROLES = frozenset({UserRole.ADMIN, UserRole.SUPER_ADMIN})


def parse_role(value) -> UserRole | None:
    if isinstance(value, UserRole):
        return value
    try:
        return UserRole(value)
    except (TypeError, ValueError):
        return None


def _parse_capability(value) -> Capability | None:
    if isinstance(value, Capability):
        return value
    try:
        return Capability(value)
    except (TypeError, ValueError):
        return None


def has_capability(role, capability) -> bool:
    """Return True when ``role`` grants ``capability``.

    Unknown roles and unknown capabilities are simply not granted, so the
    check never raises.
    """

    parsed_role = parse_role(role)
    parsed_capability = _parse_capability(capability)
    if parsed_role is None or parsed_capability is None:
        return False
    return parsed_capability in ROLE_CAPABILITIES[parsed_role]


def capabilities_for(role) -> frozenset:
    parsed = parse_role(role)
    if parsed is None:
        return frozenset()
    return ROLE_CAPABILITIES[parsed]


def has_minimum_role(role, minimum: UserRole) -> bool:
    parsed = parse_role(role)
    if parsed is None:
        return False
    return ROLE_LEVELS[parsed] >= ROLE_LEVELS[minimum]


def is_admin(role) -> bool:
    return parse_role(role) in ADMIN_ROLES


def is_super_admin(role) -> bool:
    return parse_role(role) is UserRole.SUPER_ADMIN


def is_staff_or_above(role) -> bool:
    return has_minimum_role(role, UserRole.STAFF)


def can_view_all_records(role, resource: str) -> bool:
    """A role sees every record of ``resource`` when it may edit them all."""

    return has_capability(role, f"EDIT_ALL_{resource.upper()}")


@dataclass(frozen=True)
class ResourceAccess:
    is_owner: bool = False
    can_view: bool = False
    can_edit: bool = False
    can_delete: bool = False
    can_manage_members: bool = False


FULL_ACCESS = ResourceAccess(True, True, True, True, True)
NO_ACCESS = ResourceAccess()


def check_project_access(
    role,
    status,
    user_id: int,
    owner_id: int | None,
    member_ids: Iterable[int] = (),
) -> ResourceAccess:
    if not can_use_product(status):
        return NO_ACCESS
    is_owner = owner_id is not None and owner_id == user_id
    if is_super_admin(role):
        return ResourceAccess(is_owner, True, True, True, True)

    is_member = user_id in set(member_ids)
    can_edit_all = can_view_all_records(role, "projects")
    return ResourceAccess(
        is_owner=is_owner,
        can_view=has_capability(role, Capability.VIEW_PROJECTS)
        and (is_owner or is_member or can_edit_all),
        can_edit=(is_owner and has_capability(role, Capability.EDIT_OWN_PROJECTS)) or can_edit_all,
        can_delete=(is_owner and has_capability(role, Capability.DELETE_OWN_PROJECTS))
        or has_capability(role, Capability.DELETE_ALL_PROJECTS),
        can_manage_members=(is_owner and has_capability(role, Capability.MANAGE_PROJECT_MEMBERS)) or can_edit_all,
    )


def check_task_access(
    role,
    status,
    user_id: int,
    creator_id: int | None,
    assignee_ids: Iterable[int] = (),
    project_owner_id: int | None = None,
) -> ResourceAccess:
    if not can_use_product(status):
        return NO_ACCESS
    is_creator = creator_id is not None and creator_id == user_id
    if is_super_admin(role):
        return ResourceAccess(is_creator, True, True, True, False)

    is_assignee = user_id in set(assignee_ids)
    is_project_owner = project_owner_id is not None and project_owner_id == user_id
    return ResourceAccess(
        is_owner=is_creator,
        can_view=has_capability(role, Capability.VIEW_TASKS)
        and (is_creator or is_assignee or is_project_owner or has_capability(role, Capability.VIEW_ALL_TASKS)),
        can_edit=((is_creator or is_assignee) and has_capability(role, Capability.EDIT_OWN_TASKS))
        or has_capability(role, Capability.EDIT_ALL_TASKS),
        can_delete=(is_creator and has_capability(role, Capability.DELETE_OWN_TASKS))
        or has_capability(role, Capability.DELETE_ALL_TASKS),
    )


def check_document_access(
    role,
    status,
    user_id: int,
    uploader_id: int | None,
    access_level: str,
    is_public: bool = False,
) -> ResourceAccess:
    if not can_use_product(status):
        return NO_ACCESS
    is_uploader = uploader_id is not None and uploader_id == user_id
    admin = is_admin(role)

    if is_public or admin or is_uploader:
        can_view = True
    elif access_level == "ADMIN_ONLY":
        can_view = False
    elif access_level == "STAFF_ONLY":
        can_view = is_staff_or_above(role)
    else:
        can_view = parse_role(role) is not None

    return ResourceAccess(
        is_owner=is_uploader,
        can_view=can_view,
        can_edit=admin
        or has_capability(role, Capability.EDIT_ALL_DOCUMENTS)
        or (is_uploader and has_capability(role, Capability.EDIT_OWN_DOCUMENTS)),
        can_delete=admin
        or has_capability(role, Capability.DELETE_ALL_DOCUMENTS)
        or (is_uploader and has_capability(role, Capability.DELETE_OWN_DOCUMENTS)),
    )


_NAVIGATION = (
    ("Dashboard", "/dashboard", None),
    ("Projects", "/dashboard/projects", Capability.VIEW_PROJECTS),
    ("Tasks", "/dashboard/tasks", Capability.VIEW_TASKS),
    ("Teams", "/dashboard/teams", Capability.VIEW_TEAMS),
    ("Staff", "/dashboard/team", Capability.VIEW_TEAM),
    ("Finance", "/dashboard/finance", Capability.VIEW_FINANCES),
    ("Resources", "/dashboard/resources", Capability.VIEW_DOCUMENTS),
    ("Reports", "/dashboard/reports", Capability.VIEW_REPORTS),
    ("User Management", "/admin/users", Capability.MANAGE_USERS),
    ("System Settings", "/super-admin/settings", Capability.MANAGE_SYSTEM),
)


def navigation_items(role) -> list[dict[str, str]]:
    return [
        {"name": name, "href": href}
        for name, href, capability in _NAVIGATION
        if capability is None or has_capability(role, capability)
    ]
