from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ryd.auth.deps import require_capability
from ryd.auth.rbac import Capability, ResourceAccess, can_view_all_records, check_task_access, has_capability
from ryd.core.db import get_db
from ryd.models.project import Project
from ryd.models.task import Task, TaskAssignee, TaskComment, TaskTeam, TimeEntry
from ryd.models.team import Team, UserTeam
from ryd.models.user import User
from ryd.routers.projects import project_access
from ryd.schemas.task import (
    CommentCreate,
    CommentOut,
    ProjectRef,
    TaskCreate,
    TaskOut,
    TaskPriorityLiteral,
    TaskStatusLiteral,
    TaskTeamAssign,
    TaskUpdate,
    TeamRef,
    TimeEntryCreate,
    TimeEntryOut,
)
from ryd.schemas.user import UserSummary
from ryd.services.user_accounts import load_active_users, now_utc

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])


def _get_task(db: Session, task_id: int) -> Task:
    task = (
        db.query(Task)
        .options(
            joinedload(Task.project),
            joinedload(Task.created_by),
            joinedload(Task.assignees).joinedload(TaskAssignee.user),
            joinedload(Task.teams).joinedload(TaskTeam.team),
        )
        .filter(Task.id == task_id)
        .first()
    )
    if not task:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return task


def task_access(user: User, task: Task) -> ResourceAccess:
    project_owner_id = task.project.owner_id if task.project else None
    return check_task_access(
        user.role,
        user.status,
        user.id,
        task.created_by_id,
        task.assignee_ids,
        project_owner_id,
    )


def _get_visible_task(db: Session, task_id: int, user: User) -> Task:
    task = _get_task(db, task_id)
    if not task_access(user, task).can_view:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You do not have access to this task")
    return task


def _serialize(db: Session, task: Task) -> TaskOut:
    comment_count = db.query(TaskComment).filter(TaskComment.task_id == task.id).count()
    return TaskOut(
        id=task.id,
        title=task.title,
        description=task.description,
        status=task.status,
        priority=task.priority,
        start_date=task.start_date,
        end_date=task.end_date,
        completed_at=task.completed_at,
        location=task.location,
        project=ProjectRef.from_orm(task.project) if task.project else None,
        created_by=UserSummary.from_orm(task.created_by),
        assignees=[UserSummary.from_orm(link.user) for link in task.assignees],
        teams=[TeamRef.from_orm(link.team) for link in task.teams],
        comment_count=comment_count,
        created_at=task.created_at,
        updated_at=task.updated_at,
    )


def _resolve_assignees(db: Session, user_ids: list[int]) -> list[User]:
    try:
        return load_active_users(db, user_ids)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Cannot assign task: {exc}") from exc


def _resolve_teams(db: Session, team_ids: list[int]) -> list[Team]:
    wanted = list(dict.fromkeys(team_ids))
    if not wanted:
        return []
    teams = db.query(Team).filter(Team.id.in_(wanted), Team.is_active.is_(True)).all()
    if len(teams) != len(wanted):
        found = {team.id for team in teams}
        invalid = ", ".join(str(team_id) for team_id in wanted if team_id not in found)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid or inactive teams: {invalid}")
    return teams


def _resolve_project(db: Session, project_id: int, user: User) -> Project:
    project = db.get(Project, project_id)
    if not project:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Selected project not found")
    if not project_access(user, project).can_edit:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to add tasks to this project",
        )
    return project


def _sync_assignees(task: Task, users: list[User]) -> None:
    wanted = {user.id for user in users}
    task.assignees = [link for link in task.assignees if link.user_id in wanted]
    present = {link.user_id for link in task.assignees}
    for user in users:
        if user.id not in present:
            task.assignees.append(TaskAssignee(user_id=user.id))


@router.get("", response_model=list[TaskOut], status_code=status.HTTP_200_OK)
def list_tasks(
    *,
    assignee_id: int | None = Query(None),
    team_id: int | None = Query(None),
    project_id: int | None = Query(None),
    status_filter: TaskStatusLiteral | None = Query(None, alias="status"),
    priority: TaskPriorityLiteral | None = Query(None),
    db: Session = Depends(get_db),
    user: User = Depends(require_capability(Capability.VIEW_TASKS)),
) -> list[TaskOut]:
    query = db.query(Task).options(
        joinedload(Task.project),
        joinedload(Task.created_by),
        joinedload(Task.assignees).joinedload(TaskAssignee.user),
        joinedload(Task.teams).joinedload(TaskTeam.team),
    )
    if not can_view_all_records(user.role, "tasks"):
        team_ids = [row.team_id for row in db.query(UserTeam.team_id).filter(UserTeam.user_id == user.id)]
        visibility = [Task.created_by_id == user.id, Task.assignees.any(TaskAssignee.user_id == user.id)]
        if team_ids:
            visibility.append(Task.teams.any(TaskTeam.team_id.in_(team_ids)))
        query = query.filter(or_(*visibility))
    if assignee_id is not None:
        query = query.filter(Task.assignees.any(TaskAssignee.user_id == assignee_id))
    if team_id is not None:
        query = query.filter(Task.teams.any(TaskTeam.team_id == team_id))
    if project_id is not None:
        query = query.filter(Task.project_id == project_id)
    if status_filter:
        query = query.filter(Task.status == status_filter)
    if priority:
        query = query.filter(Task.priority == priority)
    tasks = query.order_by(Task.created_at.desc(), Task.id.desc()).all()
    return [_serialize(db, task) for task in tasks]


@router.post("", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
def create_task(
    payload: TaskCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability(Capability.CREATE_TASKS)),
) -> TaskOut:
    if payload.assignee_ids and not has_capability(user.role, Capability.ASSIGN_TASKS):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You cannot assign tasks")
    assignees = _resolve_assignees(db, payload.assignee_ids)
    teams = _resolve_teams(db, payload.team_ids)
    project = _resolve_project(db, payload.project_id, user) if payload.project_id is not None else None

    task = Task(
        title=payload.title,
        description=payload.description,
        status=payload.status,
        priority=payload.priority,
        start_date=payload.start_date,
        end_date=payload.end_date,
        location=payload.location,
        project_id=project.id if project else None,
        created_by_id=user.id,
        completed_at=now_utc() if payload.status == "COMPLETED" else None,
    )
    task.assignees = [TaskAssignee(user_id=assignee.id) for assignee in assignees]
    task.teams = [TaskTeam(team_id=team.id) for team in teams]
    db.add(task)
    db.commit()
    logger.info("task_created", extra={"task_id": task.id, "creator_id": user.id, "project_id": task.project_id})
    return _serialize(db, _get_task(db, task.id))


@router.get("/{task_id:int}", response_model=TaskOut, status_code=status.HTTP_200_OK)
def get_task(
    task_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability(Capability.VIEW_TASKS)),
) -> TaskOut:
    return _serialize(db, _get_visible_task(db, task_id, user))


@router.patch("/{task_id:int}", response_model=TaskOut, status_code=status.HTTP_200_OK)
@router.put("/{task_id:int}", response_model=TaskOut, status_code=status.HTTP_200_OK)
def update_task(
    task_id: int,
    payload: TaskUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability(Capability.VIEW_TASKS)),
) -> TaskOut:
    task = _get_task(db, task_id)
    if not task_access(user, task).can_edit:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You cannot edit this task")
    fields_set = payload.__fields_set__

    if "assignee_ids" in fields_set:
        wanted = set(payload.assignee_ids or [])
        if wanted != set(task.assignee_ids) and not has_capability(user.role, Capability.ASSIGN_TASKS):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You cannot change task assignees")
        _sync_assignees(task, _resolve_assignees(db, payload.assignee_ids or []))

    if "project_id" in fields_set and payload.project_id != task.project_id:
        if payload.project_id is None:
            task.project_id = None
        else:
            task.project_id = _resolve_project(db, payload.project_id, user).id

    if "status" in fields_set and payload.status is not None and payload.status != task.status:
        if payload.status == "COMPLETED":
            task.completed_at = now_utc()
        elif task.status == "COMPLETED":
            task.completed_at = None
        task.status = payload.status

    if "title" in fields_set:
        cleaned = (payload.title or "").strip()
        if not cleaned:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Title is required")
        task.title = cleaned
    if "priority" in fields_set and payload.priority is not None:
        task.priority = payload.priority
    for field in ("description", "start_date", "end_date", "location"):
        if field in fields_set:
            setattr(task, field, getattr(payload, field))

    db.commit()
    logger.info("task_updated", extra={"task_id": task.id, "actor_id": user.id, "fields": sorted(fields_set)})
    db.expire_all()
    return _serialize(db, _get_task(db, task.id))


@router.delete("/{task_id:int}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability(Capability.VIEW_TASKS)),
) -> Response:
    task = _get_task(db, task_id)
    if not task_access(user, task).can_delete:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You cannot delete this task")
    db.delete(task)
    db.commit()
    logger.info("task_deleted", extra={"task_id": task_id, "actor_id": user.id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{task_id:int}/comments", response_model=list[CommentOut], status_code=status.HTTP_200_OK)
def list_comments(
    task_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability(Capability.VIEW_TASKS)),
) -> list[CommentOut]:
    task = _get_visible_task(db, task_id, user)
    comments = (
        db.query(TaskComment)
        .options(joinedload(TaskComment.user))
        .filter(TaskComment.task_id == task.id)
        .order_by(TaskComment.created_at.asc(), TaskComment.id.asc())
        .all()
    )
    return [CommentOut.from_orm(comment) for comment in comments]


@router.post("/{task_id:int}/comments", response_model=CommentOut, status_code=status.HTTP_201_CREATED)
def add_comment(
    task_id: int,
    payload: CommentCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability(Capability.VIEW_TASKS)),
) -> CommentOut:
    task = _get_visible_task(db, task_id, user)
    comment = TaskComment(task_id=task.id, user_id=user.id, content=payload.content)
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return CommentOut.from_orm(comment)


@router.get("/{task_id:int}/time", response_model=list[TimeEntryOut], status_code=status.HTTP_200_OK)
def list_time_entries(
    task_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability(Capability.VIEW_TASKS)),
) -> list[TimeEntryOut]:
    task = _get_visible_task(db, task_id, user)
    entries = (
        db.query(TimeEntry)
        .options(joinedload(TimeEntry.user))
        .filter(TimeEntry.task_id == task.id)
        .order_by(TimeEntry.start_time.desc(), TimeEntry.id.desc())
        .all()
    )
    return [TimeEntryOut.from_orm(entry) for entry in entries]


@router.post("/{task_id:int}/time", response_model=TimeEntryOut, status_code=status.HTTP_201_CREATED)
def log_time(
    task_id: int,
    payload: TimeEntryCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability(Capability.VIEW_TASKS)),
) -> TimeEntryOut:
    task = _get_visible_task(db, task_id, user)
    duration = payload.duration
    if payload.end_time is not None:
        if payload.end_time < payload.start_time:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="End time must be after start time")
        if duration is None:
            duration = int((payload.end_time - payload.start_time).total_seconds() // 60)
    entry = TimeEntry(
        task_id=task.id,
        user_id=user.id,
        start_time=payload.start_time,
        end_time=payload.end_time,
        duration=duration,
        description=payload.description,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return TimeEntryOut.from_orm(entry)


@router.get("/{task_id:int}/teams", response_model=list[TeamRef], status_code=status.HTTP_200_OK)
def list_task_teams(
    task_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability(Capability.VIEW_TASKS)),
) -> list[TeamRef]:
    task = _get_visible_task(db, task_id, user)
    return [TeamRef.from_orm(link.team) for link in task.teams]


@router.post("/{task_id:int}/teams", response_model=list[TeamRef], status_code=status.HTTP_201_CREATED)
def assign_team(
    task_id: int,
    payload: TaskTeamAssign,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(Capability.CREATE_TASKS)),
) -> list[TeamRef]:
    task = _get_task(db, task_id)
    team = db.get(Team, payload.team_id)
    if not team:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Team not found")
    if not team.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot assign an inactive team")
    if any(link.team_id == team.id for link in task.teams):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Team is already assigned to this task")
    task.teams.append(TaskTeam(team_id=team.id))
    db.commit()
    db.expire_all()
    return [TeamRef.from_orm(link.team) for link in _get_task(db, task.id).teams]


@router.delete("/{task_id:int}/teams/{team_id:int}", status_code=status.HTTP_204_NO_CONTENT)
def unassign_team(
    task_id: int,
    team_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(Capability.CREATE_TASKS)),
) -> Response:
    task = _get_task(db, task_id)
    link = next((link for link in task.teams if link.team_id == team_id), None)
    if link is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Team is not assigned to this task")
    task.teams.remove(link)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
