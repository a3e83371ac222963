from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, validator

from ryd.schemas.user import UserSummary

AccessLevelLiteral = Literal["ALL_STAFF", "STAFF_ONLY", "ADMIN_ONLY"]


class CategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    description: Optional[str] = None
    color: Optional[str] = Field(None, max_length=20)

    @validator("name")
    def clean_name(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Category name is required")
        return cleaned


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    description: Optional[str] = None
    color: Optional[str] = Field(None, max_length=20)


class CategoryOut(CategoryBase):
    id: int
    color: str
    document_count: int = 0
    created_at: datetime

    class Config:
        from_attributes = True


class CategoryRef(BaseModel):
    id: int
    name: str
    color: str

    class Config:
        from_attributes = True


class DocumentCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    file_name: str = Field(..., min_length=1, max_length=255)
    file_url: str = Field(..., min_length=1, max_length=1000)
    file_type: Optional[str] = Field(None, max_length=120)
    file_size: Optional[int] = Field(None, ge=0)
    category_id: Optional[int] = None
    project_id: Optional[int] = None
    access_level: AccessLevelLiteral = "ALL_STAFF"
    is_public: bool = False
    tags: list[str] = Field(default_factory=list)

    @validator("title")
    def clean_title(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Title is required")
        return cleaned

    @validator("tags")
    def clean_tags(cls, value: list[str]) -> list[str]:
        return [tag.strip() for tag in value if tag and tag.strip()]


class DocumentUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category_id: Optional[int] = None
    project_id: Optional[int] = None
    access_level: Optional[AccessLevelLiteral] = None
    is_public: Optional[bool] = None
    tags: Optional[list[str]] = None


class DocumentOut(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    file_name: str
    file_url: str
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    category: Optional[CategoryRef] = None
    project_id: Optional[int] = None
    access_level: AccessLevelLiteral
    is_public: bool
    tags: list[str] = Field(default_factory=list)
    uploaded_by: UserSummary
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    @validator("tags", pre=True)
    def default_tags(cls, value):
        return value or []
