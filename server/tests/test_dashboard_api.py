from datetime import datetime, timedelta, timezone

from ryd.models.project import Project, ProjectMember
from ryd.models.task import Task, TaskAssignee, TaskTeam
from ryd.models.team import Team, UserTeam
from ryd.services.reporting import dashboard_stats


def _seed(db_session, staff_user, volunteer_user):
    past = datetime.now(timezone.utc) - timedelta(days=3)
    project = Project(name="Outreach", status="ACTIVE", owner_id=staff_user.id)
    project.members = [ProjectMember(user_id=volunteer_user.id)]
    team = Team(name="Kitchen")
    team.members = [UserTeam(user_id=volunteer_user.id)]
    db_session.add_all([project, team])
    db_session.flush()

    mine = Task(title="Mine", status="IN_PROGRESS", end_date=past, created_by_id=staff_user.id)
    mine.assignees = [TaskAssignee(user_id=volunteer_user.id)]
    done = Task(title="Done", status="COMPLETED", end_date=past, created_by_id=staff_user.id)
    done.assignees = [TaskAssignee(user_id=volunteer_user.id)]
    team_task = Task(title="Team", created_by_id=staff_user.id)
    team_task.teams = [TaskTeam(team_id=team.id)]
    db_session.add_all([mine, done, team_task, Task(title="Other", created_by_id=staff_user.id)])
    db_session.commit()


def test_admin_gets_organization_counts(db_session, admin_user, staff_user, volunteer_user, pending_user):
    _seed(db_session, staff_user, volunteer_user)

    stats = dashboard_stats(db_session, admin_user)

    assert stats.scope == "organization"
    assert stats.tasks.total == 4
    assert stats.tasks.completed == 1
    assert stats.tasks.in_progress == 1
    assert stats.tasks.overdue == 1
    assert stats.projects.active == 1
    assert stats.users.total == 4
    assert stats.users.pending == 1


def test_volunteer_gets_personal_counts(db_session, admin_user, staff_user, volunteer_user, pending_user):
    _seed(db_session, staff_user, volunteer_user)

    stats = dashboard_stats(db_session, volunteer_user)

    assert stats.scope == "personal"
    assert stats.users is None
    assert stats.tasks.total == 2
    assert stats.tasks.overdue == 1
    assert stats.projects.total == 1
    assert stats.team_count == 1
    assert stats.team_task_count == 1
    assert {item.title for item in stats.recent_activity} == {"Mine", "Done"}


def test_dashboard_endpoint_requires_active_account(client, authorize, volunteer_user):
    authorize(volunteer_user)

    response = client.get("/api/dashboard/stats")

    assert response.status_code == 200
    assert response.json()["scope"] == "personal"


def test_dashboard_page_lists_navigation(client, authorize, admin_user):
    authorize(admin_user)

    response = client.get("/dashboard")

    assert response.status_code == 200
    body = response.json()
    assert body["user"]["role"] == "ADMIN"
    assert {"name": "User Management", "href": "/admin/users"} in body["navigation"]


def test_holding_pages_are_public(client):
    pending = client.get("/pending-approval")
    signin = client.get("/auth/signin", params={"callbackUrl": "/dashboard/tasks"})

    assert pending.status_code == 200
    assert pending.json()["page"] == "pending-approval"
    assert signin.json()["callback_url"] == "/dashboard/tasks"


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
