from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from ryd.auth.rbac import is_admin
from ryd.auth.status import UserStatus
from ryd.models.project import Project, ProjectMember
from ryd.models.task import Task, TaskAssignee, TaskTeam
from ryd.models.team import UserTeam
from ryd.models.user import User
from ryd.schemas.dashboard import ActivityItem, DashboardStats, ProjectCounts, TaskCounts, UserCounts

RECENT_ACTIVITY_LIMIT = 5
_CLOSED_TASK_STATUSES = ("COMPLETED", "CANCELLED")


def _task_counts(query: Query, now: datetime) -> TaskCounts:
    return TaskCounts(
        total=query.count(),
        completed=query.filter(Task.status == "COMPLETED").count(),
        in_progress=query.filter(Task.status == "IN_PROGRESS").count(),
        overdue=query.filter(
            Task.end_date.isnot(None),
            Task.end_date < now,
            Task.status.notin_(_CLOSED_TASK_STATUSES),
        ).count(),
    )


def _project_counts(query: Query) -> ProjectCounts:
    return ProjectCounts(
        total=query.count(),
        active=query.filter(Project.status == "ACTIVE").count(),
        completed=query.filter(Project.status == "COMPLETED").count(),
    )


def _recent_activity(query: Query) -> list[ActivityItem]:
    tasks = query.order_by(Task.updated_at.desc(), Task.id.desc()).limit(RECENT_ACTIVITY_LIMIT).all()
    return [
        ActivityItem(task_id=task.id, title=task.title, status=task.status, updated_at=task.updated_at)
        for task in tasks
    ]


def organization_stats(db: Session, now: datetime) -> DashboardStats:
    users = db.query(User)
    return DashboardStats(
        scope="organization",
        tasks=_task_counts(db.query(Task), now),
        projects=_project_counts(db.query(Project)),
        users=UserCounts(
            total=users.count(),
            active=users.filter(User.status == UserStatus.ACTIVE.value).count(),
            pending=users.filter(User.status == UserStatus.PENDING.value).count(),
        ),
        recent_activity=_recent_activity(db.query(Task)),
    )


def personal_stats(db: Session, user: User, now: datetime) -> DashboardStats:
    my_tasks = db.query(Task).filter(
        or_(Task.created_by_id == user.id, Task.assignees.any(TaskAssignee.user_id == user.id))
    )
    my_projects = db.query(Project).filter(
        or_(Project.owner_id == user.id, Project.members.any(ProjectMember.user_id == user.id))
    )
    team_ids = [row.team_id for row in db.query(UserTeam.team_id).filter(UserTeam.user_id == user.id)]
    team_task_count = 0
    if team_ids:
        team_task_count = db.query(Task).filter(Task.teams.any(TaskTeam.team_id.in_(team_ids))).count()
    return DashboardStats(
        scope="personal",
        tasks=_task_counts(my_tasks, now),
        projects=_project_counts(my_projects),
        team_count=len(team_ids),
        team_task_count=team_task_count,
        recent_activity=_recent_activity(my_tasks),
    )


def dashboard_stats(db: Session, user: User, now: datetime | None = None) -> DashboardStats:
    now = now or datetime.now(timezone.utc)
    if is_admin(user.role):
        return organization_stats(db, now)
    return personal_stats(db, user, now)
