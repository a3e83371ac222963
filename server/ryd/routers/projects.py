from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ryd.auth.deps import require_capability
from ryd.auth.rbac import Capability, ResourceAccess, can_view_all_records, check_project_access
from ryd.core.db import get_db
from ryd.models.project import Project, ProjectMember
from ryd.models.task import Task
from ryd.models.user import User
from ryd.schemas.project import ProjectCreate, ProjectOut, ProjectStatusLiteral, ProjectUpdate
from ryd.services.user_accounts import load_active_users

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])


def _get_project(db: Session, project_id: int) -> Project:
    project = (
        db.query(Project)
        .options(joinedload(Project.owner), joinedload(Project.members).joinedload(ProjectMember.user))
        .filter(Project.id == project_id)
        .first()
    )
    if not project:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return project


def project_access(user: User, project: Project) -> ResourceAccess:
    return check_project_access(user.role, user.status, user.id, project.owner_id, project.member_ids)


def _serialize(db: Session, project: Project) -> ProjectOut:
    task_count = db.query(Task).filter(Task.project_id == project.id).count()
    out = ProjectOut.from_orm(project)
    out.task_count = task_count
    return out


def _sync_members(project: Project, members: list[User]) -> None:
    wanted = {member.id for member in members}
    project.members = [link for link in project.members if link.user_id in wanted]
    present = {link.user_id for link in project.members}
    for member in members:
        if member.id not in present:
            project.members.append(ProjectMember(user_id=member.id))


def _resolve_members(db: Session, member_ids: list[int]) -> list[User]:
    try:
        return load_active_users(db, member_ids)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get("", response_model=list[ProjectOut], status_code=status.HTTP_200_OK)
def list_projects(
    *,
    status_filter: ProjectStatusLiteral | None = Query(None, alias="status"),
    member_id: int | None = Query(None),
    db: Session = Depends(get_db),
    user: User = Depends(require_capability(Capability.VIEW_PROJECTS)),
) -> list[ProjectOut]:
    query = db.query(Project).options(
        joinedload(Project.owner),
        joinedload(Project.members).joinedload(ProjectMember.user),
    )
    if can_view_all_records(user.role, "projects"):
        if member_id is not None:
            query = query.filter(
                or_(Project.owner_id == member_id, Project.members.any(ProjectMember.user_id == member_id))
            )
    else:
        query = query.filter(or_(Project.owner_id == user.id, Project.members.any(ProjectMember.user_id == user.id)))
    if status_filter:
        query = query.filter(Project.status == status_filter)
    projects = query.order_by(Project.created_at.desc(), Project.id.desc()).all()
    return [_serialize(db, project) for project in projects]


@router.post("", response_model=ProjectOut, status_code=status.HTTP_201_CREATED)
def create_project(
    payload: ProjectCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability(Capability.CREATE_PROJECTS)),
) -> ProjectOut:
    members = _resolve_members(db, payload.member_ids)
    project = Project(
        name=payload.name,
        description=payload.description,
        status=payload.status,
        start_date=payload.start_date,
        end_date=payload.end_date,
        owner_id=user.id,
    )
    project.members = [ProjectMember(user_id=member.id) for member in members]
    db.add(project)
    db.commit()
    logger.info("project_created", extra={"project_id": project.id, "owner_id": user.id})
    return _serialize(db, _get_project(db, project.id))


@router.get("/{project_id:int}", response_model=ProjectOut, status_code=status.HTTP_200_OK)
def get_project(
    project_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability(Capability.VIEW_PROJECTS)),
) -> ProjectOut:
    project = _get_project(db, project_id)
    if not project_access(user, project).can_view:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You do not have access to this project")
    return _serialize(db, project)


@router.patch("/{project_id:int}", response_model=ProjectOut, status_code=status.HTTP_200_OK)
def update_project(
    project_id: int,
    payload: ProjectUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability(Capability.VIEW_PROJECTS)),
) -> ProjectOut:
    project = _get_project(db, project_id)
    access = project_access(user, project)
    if not access.can_edit:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You cannot edit this project")
    fields_set = payload.__fields_set__

    if "member_ids" in fields_set:
        if not access.can_manage_members:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You cannot manage project members")
        members = _resolve_members(db, payload.member_ids or [])
        _sync_members(project, members)

    if "name" in fields_set:
        cleaned = (payload.name or "").strip()
        if not cleaned:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Project name is required")
        project.name = cleaned
    if "status" in fields_set and payload.status is not None:
        project.status = payload.status
    for field in ("description", "start_date", "end_date"):
        if field in fields_set:
            setattr(project, field, getattr(payload, field))

    db.commit()
    return _serialize(db, _get_project(db, project.id))


@router.delete("/{project_id:int}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(
    project_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability(Capability.VIEW_PROJECTS)),
) -> Response:
    project = _get_project(db, project_id)
    if not project_access(user, project).can_delete:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You cannot delete this project")
    if db.query(Task).filter(Task.project_id == project.id).count():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete project with associated tasks. Remove all tasks first.",
        )
    db.delete(project)
    db.commit()
    logger.info("project_deleted", extra={"project_id": project_id, "actor_id": user.id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
