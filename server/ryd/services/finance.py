from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from ryd.models.finance import TRANSACTION_TYPES, FinancialTransaction
from ryd.schemas.finance import FinanceStats


def month_bounds(now: datetime) -> tuple[datetime, datetime]:
    """Return (previous month start, current month start) in UTC."""

    current_start = now.astimezone(timezone.utc).replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if current_start.month == 1:
        previous_start = current_start.replace(year=current_start.year - 1, month=12)
    else:
        previous_start = current_start.replace(month=current_start.month - 1)
    return previous_start, current_start


def percentage_change(previous: Decimal, current: Decimal) -> float:
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round(float((current - previous) / previous * 100), 1)


def totals_by_type(db: Session, start: datetime, end: datetime, *, inclusive_end: bool = False) -> dict[str, Decimal]:
    upper = FinancialTransaction.date <= end if inclusive_end else FinancialTransaction.date < end
    rows = (
        db.query(FinancialTransaction.type, func.coalesce(func.sum(FinancialTransaction.amount), 0))
        .filter(FinancialTransaction.date >= start, upper)
        .group_by(FinancialTransaction.type)
        .all()
    )
    totals = {kind: Decimal("0") for kind in TRANSACTION_TYPES}
    for kind, amount in rows:
        totals[kind] = Decimal(str(amount)).quantize(Decimal("0.01"))
    return totals


def compute_finance_stats(db: Session, now: datetime | None = None) -> FinanceStats:
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    previous_start, current_start = month_bounds(now)
    current = totals_by_type(db, current_start, now, inclusive_end=True)
    previous = totals_by_type(db, previous_start, current_start)
    return FinanceStats(
        total_income=current["INCOME"],
        total_expenses=current["EXPENSE"],
        total_donations=current["DONATION"],
        total_grants=current["GRANT"],
        income_change=percentage_change(previous["INCOME"], current["INCOME"]),
        expense_change=percentage_change(previous["EXPENSE"], current["EXPENSE"]),
        donation_change=percentage_change(previous["DONATION"], current["DONATION"]),
        grant_change=percentage_change(previous["GRANT"], current["GRANT"]),
        period_start=current_start,
        period_end=now,
    )
