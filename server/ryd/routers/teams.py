from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ryd.auth.deps import require_capability
from ryd.auth.rbac import Capability
from ryd.auth.status import UserStatus, parse_status
from ryd.core.db import get_db
from ryd.models.task import TaskTeam
from ryd.models.team import Team, UserTeam
from ryd.models.user import User
from ryd.schemas.team import (
    TeamCreate,
    TeamMemberAdd,
    TeamMemberOut,
    TeamMemberUpdate,
    TeamOut,
    TeamTaskBrief,
    TeamUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/teams", tags=["teams"])


def _get_team(db: Session, team_id: int) -> Team:
    team = (
        db.query(Team)
        .options(
            joinedload(Team.members).joinedload(UserTeam.user),
            joinedload(Team.task_links).joinedload(TaskTeam.task),
        )
        .filter(Team.id == team_id)
        .first()
    )
    if not team:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Team not found")
    return team


def _get_membership(team: Team, user_id: int) -> UserTeam:
    membership = next((link for link in team.members if link.user_id == user_id), None)
    if membership is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User is not a member of this team")
    return membership


def _ensure_unique_name(db: Session, name: str, exclude_id: int | None = None) -> None:
    query = db.query(Team).filter(func.lower(Team.name) == name.strip().lower())
    if exclude_id is not None:
        query = query.filter(Team.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A team with this name already exists")


def _serialize(team: Team, *, include_members: bool = True, include_tasks: bool = True) -> TeamOut:
    return TeamOut(
        id=team.id,
        name=team.name,
        description=team.description,
        color=team.color,
        icon=team.icon,
        is_active=team.is_active,
        member_count=len(team.members),
        task_count=len(team.task_links),
        members=[TeamMemberOut.from_orm(link) for link in team.members] if include_members else None,
        tasks=[
            TeamTaskBrief(id=link.task.id, title=link.task.title, status=link.task.status, priority=link.task.priority)
            for link in team.task_links
        ]
        if include_tasks
        else None,
        created_at=team.created_at,
        updated_at=team.updated_at,
    )


@router.get("", response_model=list[TeamOut], status_code=status.HTTP_200_OK)
def list_teams(
    *,
    include_members: bool = Query(False),
    include_tasks: bool = Query(False),
    active_only: bool = Query(False),
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(Capability.VIEW_TEAMS)),
) -> list[TeamOut]:
    query = db.query(Team).options(
        joinedload(Team.members).joinedload(UserTeam.user),
        joinedload(Team.task_links).joinedload(TaskTeam.task),
    )
    if active_only:
        query = query.filter(Team.is_active.is_(True))
    teams = query.order_by(Team.name.asc()).all()
    return [_serialize(team, include_members=include_members, include_tasks=include_tasks) for team in teams]


@router.post("", response_model=TeamOut, status_code=status.HTTP_201_CREATED)
def create_team(
    payload: TeamCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability(Capability.MANAGE_TEAMS)),
) -> TeamOut:
    _ensure_unique_name(db, payload.name)
    team = Team(
        name=payload.name,
        description=payload.description,
        color=payload.color,
        icon=payload.icon,
        is_active=payload.is_active,
    )
    db.add(team)
    db.commit()
    logger.info("team_created", extra={"team_id": team.id, "actor_id": user.id})
    return _serialize(_get_team(db, team.id))


@router.get("/{team_id:int}", response_model=TeamOut, status_code=status.HTTP_200_OK)
def get_team(
    team_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(Capability.VIEW_TEAMS)),
) -> TeamOut:
    return _serialize(_get_team(db, team_id))


@router.patch("/{team_id:int}", response_model=TeamOut, status_code=status.HTTP_200_OK)
def update_team(
    team_id: int,
    payload: TeamUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(Capability.MANAGE_TEAMS)),
) -> TeamOut:
    team = _get_team(db, team_id)
    fields_set = payload.__fields_set__

    if "name" in fields_set and payload.name is not None:
        cleaned = payload.name.strip()
        if not cleaned:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Team name is required")
        _ensure_unique_name(db, cleaned, exclude_id=team.id)
        team.name = cleaned
    if "is_active" in fields_set and payload.is_active is not None:
        team.is_active = payload.is_active
    for field in ("description", "color", "icon"):
        if field in fields_set:
            setattr(team, field, getattr(payload, field))

    db.commit()
    return _serialize(_get_team(db, team.id))


@router.delete("/{team_id:int}", status_code=status.HTTP_204_NO_CONTENT)
def delete_team(
    team_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability(Capability.MANAGE_TEAMS)),
) -> Response:
    team = _get_team(db, team_id)
    db.delete(team)
    db.commit()
    logger.info("team_deleted", extra={"team_id": team_id, "actor_id": user.id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{team_id:int}/members", response_model=TeamMemberOut, status_code=status.HTTP_201_CREATED)
def add_member(
    team_id: int,
    payload: TeamMemberAdd,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(Capability.MANAGE_TEAMS)),
) -> TeamMemberOut:
    team = _get_team(db, team_id)
    member = db.get(User, payload.user_id)
    if not member:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if parse_status(member.status) is not UserStatus.ACTIVE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot add user to team: User is {str(member.status).lower()}",
        )
    if any(link.user_id == member.id for link in team.members):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User is already a member of this team")

    membership = UserTeam(user_id=member.id, team_id=team.id, role=payload.role)
    db.add(membership)
    db.commit()
    db.refresh(membership)
    return TeamMemberOut.from_orm(membership)


@router.patch("/{team_id:int}/members/{user_id:int}", response_model=TeamMemberOut, status_code=status.HTTP_200_OK)
def update_member(
    team_id: int,
    user_id: int,
    payload: TeamMemberUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(Capability.MANAGE_TEAMS)),
) -> TeamMemberOut:
    membership = _get_membership(_get_team(db, team_id), user_id)
    membership.role = payload.role
    db.commit()
    db.refresh(membership)
    return TeamMemberOut.from_orm(membership)


@router.delete("/{team_id:int}/members/{user_id:int}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(
    team_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(Capability.MANAGE_TEAMS)),
) -> Response:
    team = _get_team(db, team_id)
    membership = _get_membership(team, user_id)
    team.members.remove(membership)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
