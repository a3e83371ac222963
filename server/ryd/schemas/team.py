from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, validator

from ryd.schemas.user import UserSummary

TeamMemberRoleLiteral = Literal["LEADER", "COORDINATOR", "MEMBER"]


class TeamBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = None
    color: Optional[str] = Field(None, max_length=20)
    icon: Optional[str] = Field(None, max_length=50)
    is_active: bool = True

    @validator("name")
    def clean_name(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Team name is required")
        return cleaned


class TeamCreate(TeamBase):
    pass


class TeamUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    description: Optional[str] = None
    color: Optional[str] = Field(None, max_length=20)
    icon: Optional[str] = Field(None, max_length=50)
    is_active: Optional[bool] = None


class TeamMemberAdd(BaseModel):
    user_id: int
    role: TeamMemberRoleLiteral = "MEMBER"


class TeamMemberUpdate(BaseModel):
    role: TeamMemberRoleLiteral


class TeamMemberOut(BaseModel):
    user: UserSummary
    role: TeamMemberRoleLiteral
    joined_at: datetime

    class Config:
        from_attributes = True


class TeamTaskBrief(BaseModel):
    id: int
    title: str
    status: str
    priority: str


class TeamOut(TeamBase):
    id: int
    member_count: int = 0
    task_count: int = 0
    members: Optional[list[TeamMemberOut]] = None
    tasks: Optional[list[TeamTaskBrief]] = None
    created_at: datetime
    updated_at: datetime
