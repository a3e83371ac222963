import pytest

from ryd.auth.status import (
    UserStatus,
    can_use_product,
    is_blocked,
    is_pending_approval,
    plan_status_change,
    redirect_for_status,
    status_message,
)
from ryd.models.user import User, UserAuditLog
from ryd.services.user_accounts import StatusConflictError, change_user_status


@pytest.mark.parametrize(
    "status,expected",
    [
        ("PENDING", "/pending-approval"),
        ("ACTIVE", "/dashboard"),
        ("REJECTED", "/auth/rejected"),
        ("SUSPENDED", "/auth/suspended"),
        ("INACTIVE", "/auth/suspended"),
        ("ARCHIVED", "/auth/signin"),
        (None, "/auth/signin"),
    ],
)
def test_redirect_for_status(status, expected):
    assert redirect_for_status(status) == expected


def test_only_active_accounts_use_the_product():
    assert can_use_product("ACTIVE")
    for status in ("PENDING", "REJECTED", "SUSPENDED", "INACTIVE", "nonsense"):
        assert not can_use_product(status)
    assert is_pending_approval(UserStatus.PENDING)
    assert is_blocked("SUSPENDED") and not is_blocked("PENDING")
    assert "pending" in status_message("PENDING")


def test_plan_classifies_lifecycle_steps_and_overrides():
    approval = plan_status_change("PENDING", "ACTIVE")
    assert approval.is_approval and approval.is_lifecycle_step and not approval.is_override

    suspension = plan_status_change("ACTIVE", "SUSPENDED")
    assert suspension.is_lifecycle_step and not suspension.is_approval

    reinstated = plan_status_change("REJECTED", "ACTIVE")
    assert reinstated.is_override and not reinstated.is_approval

    noop = plan_status_change("ACTIVE", "ACTIVE")
    assert noop.is_noop and not noop.is_override


def test_plan_rejects_unknown_target():
    with pytest.raises(ValueError, match="Invalid status value"):
        plan_status_change("PENDING", "PROMOTED")


def test_approval_stamps_approver_once(db_session, admin_user, pending_user):
    change_user_status(db_session, actor=admin_user, target=pending_user, new_status="ACTIVE")

    assert pending_user.status == "ACTIVE"
    assert pending_user.approved_by_id == admin_user.id
    first_approval = pending_user.approved_at
    assert first_approval is not None

    repeat = change_user_status(db_session, actor=admin_user, target=pending_user, new_status="ACTIVE")

    assert repeat.is_noop
    db_session.refresh(pending_user)
    assert pending_user.status == "ACTIVE"
    assert pending_user.approved_at == first_approval

    actions = [row.action for row in db_session.query(UserAuditLog).filter_by(target_user_id=pending_user.id)]
    assert actions == ["USER_APPROVED"]


def test_stale_expected_status_is_a_conflict(db_session, admin_user, pending_user):
    with pytest.raises(StatusConflictError):
        change_user_status(
            db_session,
            actor=admin_user,
            target=pending_user,
            new_status="REJECTED",
            expected_status="ACTIVE",
        )
    db_session.refresh(pending_user)
    assert pending_user.status == "PENDING"


def test_concurrent_change_loses_the_conditional_update(db_session, admin_user, pending_user):
    db_session.query(User).filter(User.id == pending_user.id).update(
        {User.status: "REJECTED"}, synchronize_session=False
    )
    db_session.commit()

    # pending_user still believes it is PENDING; the UPDATE must not match.
    with pytest.raises(StatusConflictError):
        change_user_status(db_session, actor=admin_user, target=pending_user, new_status="ACTIVE")
    db_session.refresh(pending_user)
    assert pending_user.status == "REJECTED"
    assert pending_user.approved_at is None


def test_override_is_audited_as_such(db_session, admin_user, make_user):
    rejected = make_user("VOLUNTEER", "REJECTED")

    change = change_user_status(
        db_session,
        actor=admin_user,
        target=rejected,
        new_status="ACTIVE",
        reason="Applied again in person",
    )

    assert change.is_override
    entry = db_session.query(UserAuditLog).filter_by(target_user_id=rejected.id).one()
    assert entry.action == "STATUS_OVERRIDE"
    assert entry.payload["reason"] == "Applied again in person"
    assert rejected.approved_at is None
