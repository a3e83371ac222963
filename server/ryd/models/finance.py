from __future__ import annotations

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ryd.core.db import Base

TRANSACTION_TYPES = ("EXPENSE", "INCOME", "DONATION", "GRANT")
TransactionType = Enum(*TRANSACTION_TYPES, name="transaction_type")


class FinancialTransaction(Base):
    __tablename__ = "financial_transactions"

    id = Column(Integer, primary_key=True)
    type = Column(TransactionType, nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False, index=True)
    description = Column(Text, nullable=False)
    category = Column(String(120), nullable=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True, index=True)
    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    project = relationship("Project", back_populates="transactions")
    created_by = relationship("User", back_populates="transactions")
