from ryd.models.project import Project
from ryd.models.team import Team, UserTeam


def _create_task(client, **overrides):
    payload = {"title": "Prepare volunteer briefing", "priority": "HIGH"}
    payload.update(overrides)
    response = client.post("/api/tasks", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def _team(db_session, name="Logistics", *, is_active=True, members=()):
    team = Team(name=name, is_active=is_active)
    db_session.add(team)
    db_session.flush()
    for user in members:
        db_session.add(UserTeam(user_id=user.id, team_id=team.id))
    db_session.commit()
    return team


def test_staff_creates_task_with_assignees_and_teams(client, authorize, staff_user, volunteer_user, db_session):
    team = _team(db_session)
    authorize(staff_user)

    body = _create_task(client, assignee_ids=[volunteer_user.id], team_ids=[team.id])

    assert body["status"] == "NOT_STARTED"
    assert body["priority"] == "HIGH"
    assert body["created_by"]["id"] == staff_user.id
    assert [assignee["id"] for assignee in body["assignees"]] == [volunteer_user.id]
    assert [item["name"] for item in body["teams"]] == ["Logistics"]
    assert body["completed_at"] is None


def test_volunteer_cannot_create_tasks(client, authorize, volunteer_user):
    authorize(volunteer_user)

    response = client.post("/api/tasks", json={"title": "Self assigned"})

    assert response.status_code == 403


def test_assigning_inactive_users_names_them(client, authorize, staff_user, make_user):
    suspended = make_user("VOLUNTEER", "SUSPENDED", first_name="Kebede", last_name="Alemu")
    authorize(staff_user)

    response = client.post("/api/tasks", json={"title": "Door duty", "assignee_ids": [suspended.id]})

    assert response.status_code == 400
    assert response.json()["error"] == "Cannot assign task: The following users are not active: Kebede Alemu"


def test_inactive_team_is_rejected(client, authorize, staff_user, db_session):
    team = _team(db_session, "Retired", is_active=False)
    authorize(staff_user)

    response = client.post("/api/tasks", json={"title": "Door duty", "team_ids": [team.id]})

    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid or inactive teams")


def test_unknown_project_is_rejected(client, authorize, staff_user):
    authorize(staff_user)

    response = client.post("/api/tasks", json={"title": "Door duty", "project_id": 404})

    assert response.status_code == 400
    assert response.json() == {"error": "Selected project not found"}


def test_cannot_add_task_to_project_you_cannot_edit(client, authorize, staff_user, make_user, db_session):
    owner = make_user("STAFF", email="owner@example.com")
    project = Project(name="Someone else's", owner_id=owner.id)
    db_session.add(project)
    db_session.commit()
    authorize(staff_user)

    response = client.post("/api/tasks", json={"title": "Sneaky", "project_id": project.id})

    assert response.status_code == 403


def test_volunteer_sees_assigned_and_team_tasks_only(client, authorize, staff_user, volunteer_user, db_session):
    team = _team(db_session, "Kitchen", members=[volunteer_user])
    authorize(staff_user)
    _create_task(client, title="Assigned", assignee_ids=[volunteer_user.id])
    _create_task(client, title="Team work", team_ids=[team.id])
    _create_task(client, title="Unrelated")

    authorize(volunteer_user)
    response = client.get("/api/tasks")

    assert response.status_code == 200
    assert {task["title"] for task in response.json()} == {"Assigned", "Team work"}


def test_staff_sees_all_tasks_and_filters(client, authorize, staff_user, admin_user):
    authorize(admin_user)
    _create_task(client, title="Urgent one", priority="URGENT")
    authorize(staff_user)
    _create_task(client, title="Low one", priority="LOW")

    everything = client.get("/api/tasks")
    urgent = client.get("/api/tasks", params={"priority": "URGENT"})

    assert {task["title"] for task in everything.json()} == {"Urgent one", "Low one"}
    assert [task["title"] for task in urgent.json()] == ["Urgent one"]


def test_stranger_cannot_open_task(client, authorize, staff_user, volunteer_user):
    authorize(staff_user)
    task = _create_task(client)

    authorize(volunteer_user)
    response = client.get(f"/api/tasks/{task['id']}")

    assert response.status_code == 403


def test_completing_task_stamps_and_reopening_clears(client, authorize, staff_user):
    authorize(staff_user)
    task = _create_task(client)

    done = client.patch(f"/api/tasks/{task['id']}", json={"status": "COMPLETED"})
    assert done.status_code == 200
    assert done.json()["completed_at"] is not None

    reopened = client.put(f"/api/tasks/{task['id']}", json={"status": "IN_PROGRESS"})
    assert reopened.status_code == 200
    assert reopened.json()["completed_at"] is None


def test_assignee_updates_status_but_not_assignees(client, authorize, staff_user, volunteer_user, make_user):
    other = make_user("VOLUNTEER", email="other@example.com")
    authorize(staff_user)
    task = _create_task(client, assignee_ids=[volunteer_user.id])

    authorize(volunteer_user)
    progress = client.patch(f"/api/tasks/{task['id']}", json={"status": "IN_PROGRESS"})
    reassign = client.patch(f"/api/tasks/{task['id']}", json={"assignee_ids": [other.id]})

    assert progress.status_code == 200
    assert progress.json()["status"] == "IN_PROGRESS"
    assert reassign.status_code == 403


def test_project_can_be_detached_with_none(client, authorize, staff_user, db_session):
    project = Project(name="Outreach", owner_id=staff_user.id)
    db_session.add(project)
    db_session.commit()
    authorize(staff_user)
    task = _create_task(client, project_id=project.id)
    assert task["project"]["name"] == "Outreach"

    response = client.patch(f"/api/tasks/{task['id']}", json={"project_id": "none"})

    assert response.status_code == 200
    assert response.json()["project"] is None


def test_reassigning_replaces_assignees(client, authorize, staff_user, volunteer_user, make_user):
    other = make_user("VOLUNTEER", email="other@example.com")
    authorize(staff_user)
    task = _create_task(client, assignee_ids=[volunteer_user.id])

    response = client.patch(f"/api/tasks/{task['id']}", json={"assignee_ids": [other.id, volunteer_user.id]})
    trimmed = client.patch(f"/api/tasks/{task['id']}", json={"assignee_ids": [other.id]})

    assert sorted(item["id"] for item in response.json()["assignees"]) == sorted([other.id, volunteer_user.id])
    assert [item["id"] for item in trimmed.json()["assignees"]] == [other.id]


def test_delete_task(client, authorize, staff_user):
    authorize(staff_user)
    task = _create_task(client)

    response = client.delete(f"/api/tasks/{task['id']}")

    assert response.status_code == 204
    assert client.get(f"/api/tasks/{task['id']}").status_code == 404


def test_assignee_cannot_delete_task(client, authorize, staff_user, volunteer_user):
    authorize(staff_user)
    task = _create_task(client, assignee_ids=[volunteer_user.id])

    authorize(volunteer_user)
    response = client.delete(f"/api/tasks/{task['id']}")

    assert response.status_code == 403


def test_comments_round_trip(client, authorize, staff_user, volunteer_user):
    authorize(staff_user)
    task = _create_task(client, assignee_ids=[volunteer_user.id])

    authorize(volunteer_user)
    created = client.post(f"/api/tasks/{task['id']}/comments", json={"content": "Venue confirmed"})
    listing = client.get(f"/api/tasks/{task['id']}/comments")

    assert created.status_code == 201
    assert created.json()["user"]["id"] == volunteer_user.id
    assert [comment["content"] for comment in listing.json()] == ["Venue confirmed"]
    assert client.get(f"/api/tasks/{task['id']}").json()["comment_count"] == 1


def test_empty_comment_is_rejected(client, authorize, staff_user):
    authorize(staff_user)
    task = _create_task(client)

    response = client.post(f"/api/tasks/{task['id']}/comments", json={"content": ""})

    assert response.status_code == 400


def test_time_entry_duration_is_whole_minutes(client, authorize, staff_user):
    authorize(staff_user)
    task = _create_task(client)

    response = client.post(
        f"/api/tasks/{task['id']}/time",
        json={
            "start_time": "2026-03-01T09:00:00Z",
            "end_time": "2026-03-01T10:30:59Z",
            "description": "Setup",
        },
    )

    assert response.status_code == 201
    assert response.json()["duration"] == 90
    assert len(client.get(f"/api/tasks/{task['id']}/time").json()) == 1


def test_time_entry_end_before_start(client, authorize, staff_user):
    authorize(staff_user)
    task = _create_task(client)

    response = client.post(
        f"/api/tasks/{task['id']}/time",
        json={"start_time": "2026-03-01T10:00:00Z", "end_time": "2026-03-01T09:00:00Z"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "End time must be after start time"}


def test_team_assignment_lifecycle(client, authorize, staff_user, db_session):
    team = _team(db_session, "Media")
    authorize(staff_user)
    task = _create_task(client)

    assigned = client.post(f"/api/tasks/{task['id']}/teams", json={"team_id": team.id})
    duplicate = client.post(f"/api/tasks/{task['id']}/teams", json={"team_id": team.id})
    listing = client.get(f"/api/tasks/{task['id']}/teams")
    removed = client.delete(f"/api/tasks/{task['id']}/teams/{team.id}")
    missing = client.delete(f"/api/tasks/{task['id']}/teams/{team.id}")

    assert assigned.status_code == 201
    assert [item["name"] for item in assigned.json()] == ["Media"]
    assert duplicate.status_code == 400
    assert [item["id"] for item in listing.json()] == [team.id]
    assert removed.status_code == 204
    assert missing.status_code == 404
    assert missing.json() == {"error": "Team is not assigned to this task"}


def test_assigning_unknown_or_inactive_team(client, authorize, staff_user, db_session):
    retired = _team(db_session, "Retired", is_active=False)
    authorize(staff_user)
    task = _create_task(client)

    unknown = client.post(f"/api/tasks/{task['id']}/teams", json={"team_id": 999})
    inactive = client.post(f"/api/tasks/{task['id']}/teams", json={"team_id": retired.id})

    assert unknown.status_code == 404
    assert inactive.status_code == 400
