"""
Dashboard API endpoint.
"""

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.services.dashboard_service import dashboard_service

router = APIRouter()


@router.get("")
def get_dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Home screen summary: this week's dinners, the active shopping list,
    expiring inventory and a few counts.
    """
    return dashboard_service.get_dashboard(db, current_user)
