from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from ryd.auth.deps import require_capability
from ryd.auth.rbac import Capability, ResourceAccess, check_document_access, is_admin, is_staff_or_above
from ryd.core.db import get_db
from ryd.models.document import DEFAULT_CATEGORY_COLOR, Document, DocumentCategory
from ryd.models.project import Project
from ryd.models.user import User
from ryd.schemas.document import (
    AccessLevelLiteral,
    CategoryCreate,
    CategoryOut,
    CategoryUpdate,
    DocumentCreate,
    DocumentOut,
    DocumentUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/resources", tags=["resources"])


def _get_document(db: Session, document_id: int) -> Document:
    document = (
        db.query(Document)
        .options(joinedload(Document.category), joinedload(Document.uploaded_by))
        .filter(Document.id == document_id)
        .first()
    )
    if not document:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")
    return document


def _get_category(db: Session, category_id: int) -> DocumentCategory:
    category = db.get(DocumentCategory, category_id)
    if not category:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return category


def document_access(user: User, document: Document) -> ResourceAccess:
    return check_document_access(
        user.role,
        user.status,
        user.id,
        document.uploaded_by_id,
        document.access_level,
        document.is_public,
    )


def _ensure_references(db: Session, category_id: int | None, project_id: int | None) -> None:
    if category_id is not None and db.get(DocumentCategory, category_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Selected category not found")
    if project_id is not None and db.get(Project, project_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Selected project not found")


def _ensure_unique_category(db: Session, name: str, exclude_id: int | None = None) -> None:
    query = db.query(DocumentCategory).filter(func.lower(DocumentCategory.name) == name.strip().lower())
    if exclude_id is not None:
        query = query.filter(DocumentCategory.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="A category with this name already exists")


def _serialize_category(db: Session, category: DocumentCategory) -> CategoryOut:
    count = db.query(Document).filter(Document.category_id == category.id).count()
    return CategoryOut(
        id=category.id,
        name=category.name,
        description=category.description,
        color=category.color,
        document_count=count,
        created_at=category.created_at,
    )


@router.get("/documents", response_model=list[DocumentOut], status_code=status.HTTP_200_OK)
def list_documents(
    *,
    category_id: int | None = Query(None),
    project_id: int | None = Query(None),
    access_level: AccessLevelLiteral | None = Query(None),
    search: str | None = Query(None),
    db: Session = Depends(get_db),
    user: User = Depends(require_capability(Capability.VIEW_DOCUMENTS)),
) -> list[DocumentOut]:
    query = db.query(Document).options(joinedload(Document.category), joinedload(Document.uploaded_by))
    if not is_admin(user.role):
        hidden = ["ADMIN_ONLY"] if is_staff_or_above(user.role) else ["ADMIN_ONLY", "STAFF_ONLY"]
        query = query.filter(
            or_(
                Document.is_public.is_(True),
                Document.uploaded_by_id == user.id,
                Document.access_level.notin_(hidden),
            )
        )
    if category_id is not None:
        query = query.filter(Document.category_id == category_id)
    if project_id is not None:
        query = query.filter(Document.project_id == project_id)
    if access_level:
        query = query.filter(Document.access_level == access_level)
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(
            or_(
                func.lower(Document.title).like(pattern),
                func.lower(func.coalesce(Document.description, "")).like(pattern),
            )
        )
    documents = query.order_by(Document.created_at.desc(), Document.id.desc()).all()
    return [DocumentOut.from_orm(document) for document in documents]


@router.post("/documents", response_model=DocumentOut, status_code=status.HTTP_201_CREATED)
def create_document(
    payload: DocumentCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability(Capability.UPLOAD_DOCUMENTS)),
) -> DocumentOut:
    _ensure_references(db, payload.category_id, payload.project_id)
    document = Document(
        title=payload.title,
        description=payload.description,
        file_name=payload.file_name,
        file_url=payload.file_url,
        file_type=payload.file_type,
        file_size=payload.file_size,
        category_id=payload.category_id,
        project_id=payload.project_id,
        access_level=payload.access_level,
        is_public=payload.is_public,
        tags=payload.tags,
        uploaded_by_id=user.id,
    )
    db.add(document)
    db.commit()
    logger.info("document_added", extra={"document_id": document.id, "uploader_id": user.id})
    return DocumentOut.from_orm(_get_document(db, document.id))


@router.get("/documents/{document_id:int}", response_model=DocumentOut, status_code=status.HTTP_200_OK)
def get_document(
    document_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability(Capability.VIEW_DOCUMENTS)),
) -> DocumentOut:
    document = _get_document(db, document_id)
    if not document_access(user, document).can_view:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You do not have access to this document")
    return DocumentOut.from_orm(document)


@router.patch("/documents/{document_id:int}", response_model=DocumentOut, status_code=status.HTTP_200_OK)
def update_document(
    document_id: int,
    payload: DocumentUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability(Capability.VIEW_DOCUMENTS)),
) -> DocumentOut:
    document = _get_document(db, document_id)
    if not document_access(user, document).can_edit:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You cannot edit this document")
    fields_set = payload.__fields_set__
    _ensure_references(
        db,
        payload.category_id if "category_id" in fields_set else None,
        payload.project_id if "project_id" in fields_set else None,
    )
    if "title" in fields_set:
        cleaned = (payload.title or "").strip()
        if not cleaned:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Title is required")
        document.title = cleaned
    if "access_level" in fields_set and payload.access_level is not None:
        document.access_level = payload.access_level
    if "is_public" in fields_set and payload.is_public is not None:
        document.is_public = payload.is_public
    if "tags" in fields_set:
        document.tags = [tag.strip() for tag in payload.tags or [] if tag and tag.strip()]
    for field in ("description", "category_id", "project_id"):
        if field in fields_set:
            setattr(document, field, getattr(payload, field))
    db.commit()
    db.expire_all()
    return DocumentOut.from_orm(_get_document(db, document.id))


@router.delete("/documents/{document_id:int}", status_code=status.HTTP_204_NO_CONTENT)
def delete_document(
    document_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability(Capability.VIEW_DOCUMENTS)),
) -> Response:
    document = _get_document(db, document_id)
    if not document_access(user, document).can_delete:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You cannot delete this document")
    db.delete(document)
    db.commit()
    logger.info("document_deleted", extra={"document_id": document_id, "actor_id": user.id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/categories", response_model=list[CategoryOut], status_code=status.HTTP_200_OK)
def list_categories(
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(Capability.VIEW_DOCUMENTS)),
) -> list[CategoryOut]:
    categories = db.query(DocumentCategory).order_by(DocumentCategory.name.asc()).all()
    return [_serialize_category(db, category) for category in categories]


@router.post("/categories", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryCreate,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(Capability.MANAGE_DOCUMENT_CATEGORIES)),
) -> CategoryOut:
    _ensure_unique_category(db, payload.name)
    category = DocumentCategory(
        name=payload.name,
        description=payload.description,
        color=payload.color or DEFAULT_CATEGORY_COLOR,
    )
    db.add(category)
    db.commit()
    db.refresh(category)
    return _serialize_category(db, category)


@router.patch("/categories/{category_id:int}", response_model=CategoryOut, status_code=status.HTTP_200_OK)
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(Capability.MANAGE_DOCUMENT_CATEGORIES)),
) -> CategoryOut:
    category = _get_category(db, category_id)
    fields_set = payload.__fields_set__
    if "name" in fields_set and payload.name is not None:
        cleaned = payload.name.strip()
        if not cleaned:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category name is required")
        _ensure_unique_category(db, cleaned, exclude_id=category.id)
        category.name = cleaned
    if "description" in fields_set:
        category.description = payload.description
    if "color" in fields_set:
        category.color = payload.color or DEFAULT_CATEGORY_COLOR
    db.commit()
    db.refresh(category)
    return _serialize_category(db, category)


@router.delete("/categories/{category_id:int}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(Capability.MANAGE_DOCUMENT_CATEGORIES)),
) -> Response:
    category = _get_category(db, category_id)
    if db.query(Document).filter(Document.category_id == category.id).count():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete category with documents. Move or delete them first.",
        )
    db.delete(category)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
