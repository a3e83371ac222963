from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field, validator

from ryd.schemas.user import UserSummary

TaskStatusLiteral = Literal["NOT_STARTED", "IN_PROGRESS", "COMPLETED", "ON_HOLD", "CANCELLED"]
TaskPriorityLiteral = Literal["LOW", "MEDIUM", "HIGH", "URGENT"]


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    status: TaskStatusLiteral = "NOT_STARTED"
    priority: TaskPriorityLiteral = "MEDIUM"
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=255)
    project_id: Optional[int] = None
    assignee_ids: list[int] = Field(default_factory=list)
    team_ids: list[int] = Field(default_factory=list)

    @validator("title")
    def clean_title(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Title is required")
        return cleaned


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[TaskStatusLiteral] = None
    priority: Optional[TaskPriorityLiteral] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=255)
    project_id: Optional[Union[int, str]] = None
    assignee_ids: Optional[list[int]] = None

    @validator("project_id")
    def normalize_project(cls, value: Optional[Union[int, str]]) -> Optional[int]:
        """Accept "none" or an empty string as "detach from project"."""

        if value is None or isinstance(value, int):
            return value
        cleaned = value.strip()
        if cleaned.lower() in ("", "none", "null"):
            return None
        if cleaned.isdigit():
            return int(cleaned)
        raise ValueError("Invalid project id")


class ProjectRef(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class TeamRef(BaseModel):
    id: int
    name: str
    color: Optional[str] = None
    is_active: bool = True

    class Config:
        from_attributes = True


class TaskOut(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    status: TaskStatusLiteral
    priority: TaskPriorityLiteral
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    location: Optional[str] = None
    project: Optional[ProjectRef] = None
    created_by: UserSummary
    assignees: list[UserSummary] = Field(default_factory=list)
    teams: list[TeamRef] = Field(default_factory=list)
    comment_count: int = 0
    created_at: datetime
    updated_at: datetime


class CommentCreate(BaseModel):
    content: str = Field(..., max_length=5000)

    @validator("content")
    def require_content(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Comment content is required")
        return cleaned


class CommentOut(BaseModel):
    id: int
    content: str
    created_at: datetime
    user: UserSummary

    class Config:
        from_attributes = True


class TimeEntryCreate(BaseModel):
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: Optional[int] = Field(None, ge=0)
    description: Optional[str] = Field(None, max_length=500)

    @validator("start_time", "end_time")
    def to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)


class TimeEntryOut(BaseModel):
    id: int
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: Optional[int] = None
    description: Optional[str] = None
    user: UserSummary
    created_at: datetime

    class Config:
        from_attributes = True


class TaskTeamAssign(BaseModel):
    team_id: int
