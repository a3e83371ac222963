from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, validator

from ryd.auth.rbac import UserRole
from ryd.auth.status import UserStatus

Availability = Literal["FULL_TIME", "PART_TIME", "WEEKENDS", "FLEXIBLE"]


def _clean_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


class UserSummary(BaseModel):
    id: int
    email: EmailStr
    display_name: str
    role: UserRole
    status: UserStatus

    class Config:
        from_attributes = True


class UserOut(BaseModel):
    id: int
    email: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    display_name: str
    role: UserRole
    status: UserStatus
    phone: Optional[str] = None
    avatar: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    district: Optional[str] = None
    region: Optional[str] = None
    skills: Optional[list[str]] = None
    languages: Optional[list[str]] = None
    emergency_contact: Optional[str] = None
    availability: Optional[Availability] = None
    job_title: Optional[str] = None
    department: Optional[str] = None
    approved_at: Optional[datetime] = None
    approved_by_id: Optional[int] = None
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    first_name: Optional[str] = Field(None, max_length=120)
    last_name: Optional[str] = Field(None, max_length=120)
    phone: Optional[str] = Field(None, max_length=50)
    avatar: Optional[str] = Field(None, max_length=500)
    bio: Optional[str] = Field(None, max_length=2000)
    location: Optional[str] = Field(None, max_length=255)
    district: Optional[str] = Field(None, max_length=120)
    region: Optional[str] = Field(None, max_length=120)
    skills: Optional[list[str]] = None
    languages: Optional[list[str]] = None
    emergency_contact: Optional[str] = Field(None, max_length=255)
    availability: Optional[Availability] = None

    @validator(
        "first_name",
        "last_name",
        "phone",
        "avatar",
        "bio",
        "location",
        "district",
        "region",
        "emergency_contact",
    )
    def strip_text(cls, value: Optional[str]) -> Optional[str]:
        return _clean_optional(value)


class StaffUpdate(ProfileUpdate):
    role: Optional[UserRole] = None
    job_title: Optional[str] = Field(None, max_length=120)
    department: Optional[str] = Field(None, max_length=120)

    @validator("job_title", "department")
    def strip_staff_text(cls, value: Optional[str]) -> Optional[str]:
        return _clean_optional(value)


class AdminUserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    first_name: Optional[str] = Field(None, max_length=120)
    last_name: Optional[str] = Field(None, max_length=120)
    name: Optional[str] = Field(None, max_length=255)
    role: UserRole = UserRole.VOLUNTEER
    phone: Optional[str] = Field(None, max_length=50)
    job_title: Optional[str] = Field(None, max_length=120)
    department: Optional[str] = Field(None, max_length=120)

    @validator("first_name", "last_name", "name", "phone", "job_title", "department")
    def strip_text(cls, value: Optional[str]) -> Optional[str]:
        return _clean_optional(value)


class StatusUpdateRequest(BaseModel):
    status: UserStatus
    expected_status: Optional[UserStatus] = None
    reason: Optional[str] = Field(None, max_length=500)


class UserListResponse(BaseModel):
    items: list[UserOut]
    total: int


class PendingUsersResponse(BaseModel):
    count: int
    users: list[UserOut]


class CountResponse(BaseModel):
    count: int


class UserStatusResponse(BaseModel):
    status: UserStatus
    role: UserRole
    has_status_changed: bool
    redirect: str
    message: str
