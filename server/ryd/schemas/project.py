from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, validator

from ryd.schemas.user import UserSummary

ProjectStatusLiteral = Literal["PLANNING", "ACTIVE", "ON_HOLD", "COMPLETED", "CANCELLED"]


class ProjectBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    status: ProjectStatusLiteral = "PLANNING"
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @validator("name")
    def clean_name(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Project name is required")
        return cleaned


class ProjectCreate(ProjectBase):
    member_ids: list[int] = Field(default_factory=list)


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[ProjectStatusLiteral] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    member_ids: Optional[list[int]] = None


class ProjectMemberOut(BaseModel):
    user_id: int
    role: str
    user: UserSummary

    class Config:
        from_attributes = True


class ProjectOut(ProjectBase):
    id: int
    owner: UserSummary
    members: list[ProjectMemberOut] = Field(default_factory=list)
    task_count: int = 0
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
