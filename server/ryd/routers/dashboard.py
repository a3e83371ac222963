from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ryd.auth.deps import require_active_user
from ryd.core.db import get_db
from ryd.models.user import User
from ryd.schemas.dashboard import DashboardStats
from ryd.services.reporting import dashboard_stats

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStats)
def get_dashboard_stats(
    db: Session = Depends(get_db),
    user: User = Depends(require_active_user),
) -> DashboardStats:
    return dashboard_stats(db, user)
