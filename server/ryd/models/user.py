from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ryd.auth.rbac import ROLE_VALUES
from ryd.auth.status import STATUS_VALUES
from ryd.core.db import Base

UserRoleColumn = Enum(*ROLE_VALUES, name="user_role")
UserStatusColumn = Enum(*STATUS_VALUES, name="user_status")
UserAvailability = Enum("FULL_TIME", "PART_TIME", "WEEKENDS", "FLEXIBLE", name="user_availability")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    first_name = Column(String(120), nullable=True)
    last_name = Column(String(120), nullable=True)
    name = Column(String(255), nullable=True)
    hashed_password = Column(String(255), nullable=True)
    role = Column(UserRoleColumn, nullable=False, default="VOLUNTEER", index=True)
    status = Column(UserStatusColumn, nullable=False, default="PENDING", index=True)

    phone = Column(String(50), nullable=True)
    avatar = Column(String(500), nullable=True)
    bio = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    district = Column(String(120), nullable=True)
    region = Column(String(120), nullable=True)
    skills = Column(JSON, nullable=True)
    languages = Column(JSON, nullable=True)
    emergency_contact = Column(String(255), nullable=True)
    availability = Column(UserAvailability, nullable=True)
    job_title = Column(String(120), nullable=True)
    department = Column(String(120), nullable=True)

    approved_at = Column(DateTime(timezone=True), nullable=True)
    approved_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    owned_projects = relationship("Project", back_populates="owner", cascade="all, delete-orphan")
    project_memberships = relationship("ProjectMember", back_populates="user", cascade="all, delete-orphan")
    created_tasks = relationship(
        "Task",
        foreign_keys="Task.created_by_id",
        back_populates="created_by",
        cascade="all, delete-orphan",
    )
    task_assignments = relationship("TaskAssignee", back_populates="user", cascade="all, delete-orphan")
    task_comments = relationship("TaskComment", back_populates="user", cascade="all, delete-orphan")
    time_entries = relationship("TimeEntry", back_populates="user", cascade="all, delete-orphan")
    team_memberships = relationship("UserTeam", back_populates="user", cascade="all, delete-orphan")
    documents = relationship("Document", back_populates="uploaded_by", cascade="all, delete-orphan")
    transactions = relationship("FinancialTransaction", back_populates="created_by", cascade="all, delete-orphan")
    audit_entries = relationship(
        "UserAuditLog",
        foreign_keys="UserAuditLog.target_user_id",
        back_populates="target_user",
        cascade="all, delete-orphan",
    )
    audit_events = relationship(
        "UserAuditLog",
        foreign_keys="UserAuditLog.actor_user_id",
        back_populates="actor",
        viewonly=True,
    )

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        parts = [part for part in (self.first_name, self.last_name) if part]
        return " ".join(parts) or self.email


class UserAuditActionEnum(str, enum.Enum):
    USER_CREATED = "USER_CREATED"
    USER_APPROVED = "USER_APPROVED"
    STATUS_CHANGED = "STATUS_CHANGED"
    STATUS_OVERRIDE = "STATUS_OVERRIDE"
    ROLE_UPDATED = "ROLE_UPDATED"
    PROFILE_UPDATED = "PROFILE_UPDATED"


UserAuditAction = Enum(*(item.value for item in UserAuditActionEnum), name="user_audit_action")


class UserAuditLog(Base):
    __tablename__ = "user_audit_logs"

    id = Column(Integer, primary_key=True)
    actor_user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    action = Column(UserAuditAction, nullable=False)
    target_user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    payload = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False, index=True)

    actor = relationship("User", foreign_keys=[actor_user_id], back_populates="audit_events")
    target_user = relationship("User", foreign_keys=[target_user_id], back_populates="audit_entries")
