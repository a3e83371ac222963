import pytest

from ryd.auth.rbac import (
    ROLE_CAPABILITIES,
    Capability,
    UserRole,
    can_view_all_records,
    capabilities_for,
    check_document_access,
    check_project_access,
    check_task_access,
    has_capability,
    has_minimum_role,
    is_admin,
    is_staff_or_above,
    is_super_admin,
    navigation_items,
)


def test_has_capability_is_total_over_every_role_and_capability():
    for role in list(UserRole) + ["GUEST", None, 42]:
        for capability in list(Capability) + ["LAUNCH_ROCKETS", None]:
            result = has_capability(role, capability)
            assert isinstance(result, bool)
            assert result == has_capability(role, capability)


def test_unknown_role_or_capability_is_denied():
    assert has_capability("GUEST", Capability.VIEW_TASKS) is False
    assert has_capability(UserRole.SUPER_ADMIN, "LAUNCH_ROCKETS") is False
    assert capabilities_for("GUEST") == frozenset()


def test_strings_and_enum_members_are_interchangeable():
    assert has_capability("STAFF", "CREATE_TASKS") is True
    assert has_capability(UserRole.STAFF, Capability.CREATE_TASKS) is True


def test_volunteer_cannot_manage_users():
    assert has_capability(UserRole.VOLUNTEER, Capability.MANAGE_USERS) is False


def test_role_capabilities_are_cumulative():
    ordered = [UserRole.VOLUNTEER, UserRole.STAFF, UserRole.ADMIN, UserRole.SUPER_ADMIN]
    for lower, higher in zip(ordered, ordered[1:]):
        assert ROLE_CAPABILITIES[lower] < ROLE_CAPABILITIES[higher]
    assert ROLE_CAPABILITIES[UserRole.SUPER_ADMIN] == frozenset(Capability)


def test_capability_table_cannot_be_mutated():
    with pytest.raises(TypeError):
        ROLE_CAPABILITIES[UserRole.VOLUNTEER] = frozenset(Capability)
    with pytest.raises(AttributeError):
        ROLE_CAPABILITIES[UserRole.VOLUNTEER].add(Capability.MANAGE_USERS)


@pytest.mark.parametrize(
    "role,capability,expected",
    [
        ("STAFF", Capability.VIEW_FINANCES, True),
        ("STAFF", Capability.CREATE_TRANSACTIONS, False),
        ("ADMIN", Capability.APPROVE_USERS, True),
        ("ADMIN", Capability.MANAGE_SYSTEM, False),
        ("SUPER_ADMIN", Capability.MANAGE_SYSTEM, True),
        ("VOLUNTEER", Capability.CREATE_TASKS, False),
    ],
)
def test_selected_grants(role, capability, expected):
    assert has_capability(role, capability) is expected


def test_role_helpers():
    assert is_admin("ADMIN") and is_admin("SUPER_ADMIN")
    assert not is_admin("STAFF")
    assert is_super_admin("SUPER_ADMIN") and not is_super_admin("ADMIN")
    assert is_staff_or_above("STAFF") and not is_staff_or_above("VOLUNTEER")
    assert has_minimum_role("ADMIN", UserRole.STAFF)
    assert not has_minimum_role("bogus", UserRole.VOLUNTEER)


def test_can_view_all_records_follows_edit_all_capability():
    assert can_view_all_records("STAFF", "tasks") is True
    assert can_view_all_records("STAFF", "projects") is False
    assert can_view_all_records("ADMIN", "projects") is True
    assert can_view_all_records("VOLUNTEER", "tasks") is False


def test_project_access_for_owner_member_and_outsider():
    owner = check_project_access("STAFF", "ACTIVE", 1, owner_id=1, member_ids=[2])
    assert owner.is_owner and owner.can_edit and owner.can_delete and owner.can_manage_members

    member = check_project_access("VOLUNTEER", "ACTIVE", 2, owner_id=1, member_ids=[2])
    assert member.can_view
    assert not member.can_edit and not member.can_delete

    outsider = check_project_access("VOLUNTEER", "ACTIVE", 3, owner_id=1, member_ids=[2])
    assert not outsider.can_view


def test_access_checks_deny_everything_unless_active():
    for status in ("PENDING", "SUSPENDED", "REJECTED", "INACTIVE", "???"):
        project = check_project_access("SUPER_ADMIN", status, 1, owner_id=1)
        task = check_task_access("SUPER_ADMIN", status, 1, creator_id=1)
        document = check_document_access("SUPER_ADMIN", status, 1, uploader_id=1, access_level="ALL_STAFF")
        for access in (project, task, document):
            assert not any((access.can_view, access.can_edit, access.can_delete, access.can_manage_members))


def test_super_admin_has_full_project_access():
    access = check_project_access("SUPER_ADMIN", "ACTIVE", 9, owner_id=1)
    assert access.can_view and access.can_edit and access.can_delete and access.can_manage_members
    assert not access.is_owner


def test_task_access_for_assignee_and_creator():
    assignee = check_task_access("VOLUNTEER", "ACTIVE", 5, creator_id=1, assignee_ids=[5])
    assert assignee.can_view and assignee.can_edit
    assert not assignee.can_delete

    stranger = check_task_access("VOLUNTEER", "ACTIVE", 6, creator_id=1, assignee_ids=[5])
    assert not stranger.can_view and not stranger.can_edit

    creator = check_task_access("STAFF", "ACTIVE", 1, creator_id=1)
    assert creator.is_owner and creator.can_delete


def test_document_visibility_by_access_level():
    assert not check_document_access("STAFF", "ACTIVE", 2, uploader_id=1, access_level="ADMIN_ONLY").can_view
    assert check_document_access("ADMIN", "ACTIVE", 2, uploader_id=1, access_level="ADMIN_ONLY").can_view
    assert check_document_access("STAFF", "ACTIVE", 2, uploader_id=1, access_level="STAFF_ONLY").can_view
    assert not check_document_access("VOLUNTEER", "ACTIVE", 2, uploader_id=1, access_level="STAFF_ONLY").can_view
    assert check_document_access("VOLUNTEER", "ACTIVE", 2, uploader_id=1, access_level="ALL_STAFF").can_view
    assert check_document_access(
        "VOLUNTEER", "ACTIVE", 2, uploader_id=1, access_level="ADMIN_ONLY", is_public=True
    ).can_view
    own = check_document_access("VOLUNTEER", "ACTIVE", 1, uploader_id=1, access_level="ADMIN_ONLY")
    assert own.can_view and own.can_edit and own.can_delete


def test_navigation_items_follow_capabilities():
    volunteer_links = {item["name"] for item in navigation_items("VOLUNTEER")}
    admin_links = {item["name"] for item in navigation_items("ADMIN")}
    super_links = {item["name"] for item in navigation_items("SUPER_ADMIN")}

    assert "Finance" not in volunteer_links
    assert "User Management" in admin_links
    assert "System Settings" not in admin_links
    assert "System Settings" in super_links


def test_project_view_follows_list_visibility():
    for role in ("VOLUNTEER", "STAFF", "ADMIN"):
        access = check_project_access(role, "ACTIVE", 3, owner_id=1, member_ids=[2])
        assert access.can_view is can_view_all_records(role, "projects")
