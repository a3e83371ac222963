from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ryd.core.db import Base

ACCESS_LEVELS = ("ALL_STAFF", "STAFF_ONLY", "ADMIN_ONLY")
DocumentAccessLevel = Enum(*ACCESS_LEVELS, name="document_access_level")
DEFAULT_CATEGORY_COLOR = "#4f46e5"


class DocumentCategory(Base):
    __tablename__ = "document_categories"

    id = Column(Integer, primary_key=True)
    name = Column(String(120), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    color = Column(String(20), nullable=False, default=DEFAULT_CATEGORY_COLOR)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    documents = relationship("Document", back_populates="category")


class Document(Base):
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    file_name = Column(String(255), nullable=False)
    file_url = Column(String(1000), nullable=False)
    file_type = Column(String(120), nullable=True)
    file_size = Column(Integer, nullable=True)
    category_id = Column(Integer, ForeignKey("document_categories.id", ondelete="SET NULL"), nullable=True, index=True)
    uploaded_by_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True, index=True)
    access_level = Column(DocumentAccessLevel, nullable=False, default="ALL_STAFF")
    is_public = Column(Boolean, nullable=False, default=False)
    tags = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    category = relationship("DocumentCategory", back_populates="documents")
    uploaded_by = relationship("User", back_populates="documents")
    project = relationship("Project", back_populates="documents")
