from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class TaskCounts(BaseModel):
    total: int = 0
    completed: int = 0
    in_progress: int = 0
    overdue: int = 0


class UserCounts(BaseModel):
    total: int = 0
    active: int = 0
    pending: int = 0


class ProjectCounts(BaseModel):
    total: int = 0
    active: int = 0
    completed: int = 0


class ActivityItem(BaseModel):
    task_id: int
    title: str
    status: str
    updated_at: datetime


class DashboardStats(BaseModel):
    scope: Literal["organization", "personal"]
    tasks: TaskCounts
    projects: ProjectCounts
    users: Optional[UserCounts] = None
    team_count: int = 0
    team_task_count: int = 0
    recent_activity: list[ActivityItem] = Field(default_factory=list)
