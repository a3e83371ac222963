from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session, joinedload

from ryd.auth.deps import require_capability
from ryd.auth.rbac import Capability
from ryd.core.db import get_db
from ryd.models.finance import FinancialTransaction
from ryd.models.project import Project
from ryd.models.user import User
from ryd.schemas.finance import (
    FinanceStats,
    TransactionCreate,
    TransactionOut,
    TransactionTypeLiteral,
    TransactionUpdate,
)
from ryd.services.finance import compute_finance_stats

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/finance", tags=["finance"])


def _get_transaction(db: Session, transaction_id: int) -> FinancialTransaction:
    transaction = (
        db.query(FinancialTransaction)
        .options(joinedload(FinancialTransaction.created_by))
        .filter(FinancialTransaction.id == transaction_id)
        .first()
    )
    if not transaction:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found")
    return transaction


def _ensure_project(db: Session, project_id: int | None) -> None:
    if project_id is not None and db.get(Project, project_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Selected project not found")


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@router.get("/transactions", response_model=list[TransactionOut], status_code=status.HTTP_200_OK)
def list_transactions(
    *,
    type: TransactionTypeLiteral | None = Query(None),
    project_id: int | None = Query(None),
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(Capability.VIEW_FINANCES)),
) -> list[TransactionOut]:
    query = db.query(FinancialTransaction).options(joinedload(FinancialTransaction.created_by))
    if type:
        query = query.filter(FinancialTransaction.type == type)
    if project_id is not None:
        query = query.filter(FinancialTransaction.project_id == project_id)
    if start_date:
        query = query.filter(FinancialTransaction.date >= _utc(start_date))
    if end_date:
        query = query.filter(FinancialTransaction.date <= _utc(end_date))
    rows = query.order_by(FinancialTransaction.date.desc(), FinancialTransaction.id.desc()).all()
    return [TransactionOut.from_orm(row) for row in rows]


@router.post("/transactions", response_model=TransactionOut, status_code=status.HTTP_201_CREATED)
def create_transaction(
    payload: TransactionCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability(Capability.CREATE_TRANSACTIONS)),
) -> TransactionOut:
    _ensure_project(db, payload.project_id)
    transaction = FinancialTransaction(
        type=payload.type,
        amount=payload.amount,
        date=payload.date,
        description=payload.description,
        category=payload.category,
        project_id=payload.project_id,
        created_by_id=user.id,
    )
    db.add(transaction)
    db.commit()
    logger.info(
        "transaction_recorded",
        extra={"transaction_id": transaction.id, "type": transaction.type, "actor_id": user.id},
    )
    return TransactionOut.from_orm(_get_transaction(db, transaction.id))


@router.patch("/transactions/{transaction_id:int}", response_model=TransactionOut, status_code=status.HTTP_200_OK)
def update_transaction(
    transaction_id: int,
    payload: TransactionUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(Capability.EDIT_TRANSACTIONS)),
) -> TransactionOut:
    transaction = _get_transaction(db, transaction_id)
    fields_set = payload.__fields_set__
    if "project_id" in fields_set:
        _ensure_project(db, payload.project_id)
    for field in ("type", "amount", "date", "description"):
        if field in fields_set:
            value = getattr(payload, field)
            if value is None:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field} cannot be empty")
            setattr(transaction, field, value)
    for field in ("category", "project_id"):
        if field in fields_set:
            setattr(transaction, field, getattr(payload, field))
    db.commit()
    return TransactionOut.from_orm(_get_transaction(db, transaction.id))


@router.delete("/transactions/{transaction_id:int}", status_code=status.HTTP_204_NO_CONTENT)
def delete_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_capability(Capability.DELETE_TRANSACTIONS)),
) -> Response:
    transaction = _get_transaction(db, transaction_id)
    db.delete(transaction)
    db.commit()
    logger.info("transaction_deleted", extra={"transaction_id": transaction_id, "actor_id": user.id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/stats", response_model=FinanceStats, status_code=status.HTTP_200_OK)
def finance_stats(
    db: Session = Depends(get_db),
    _: User = Depends(require_capability(Capability.VIEW_FINANCES)),
) -> FinanceStats:
    return compute_finance_stats(db)
