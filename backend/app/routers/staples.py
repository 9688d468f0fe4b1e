"""
API endpoints for staples (recurring household purchases).
"""

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user, get_owned
from app.models.staple import Staple
from app.models.user import User
from app.schemas import StapleCreate, StapleResponse, StapleUpdate
from app.services.staples_service import enrich_staple, parse_frequency, sort_by_due_status

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[StapleResponse])
def list_staples(
    category: Optional[str] = None,
    frequency: Optional[str] = None,
    is_active: Optional[bool] = Query(None, alias="isActive"),
    due_status: Optional[str] = Query(None, alias="dueStatus"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Staples with due information, most urgent first."""
    query = db.query(Staple).filter(Staple.user_id == current_user.id)
    if category:
        query = query.filter(Staple.category == category)
    if frequency:
        query = query.filter(Staple.frequency == (parse_frequency(frequency) or frequency))
    if is_active is not None:
        query = query.filter(Staple.is_active.is_(is_active))

    staples = [enrich_staple(s) for s in query.all()]
    if due_status:
        staples = [s for s in staples if s["due_status"] == due_status]
    return sort_by_due_status(staples)


@router.post("", response_model=StapleResponse, status_code=status.HTTP_201_CREATED)
def create_staple(
    staple_in: StapleCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    staple = Staple(user_id=current_user.id, **staple_in.model_dump())
    staple.item_name = staple.item_name.strip()
    db.add(staple)
    db.commit()
    db.refresh(staple)
    logger.info(f"Created staple '{staple.item_name}' for user {current_user.id}")
    return enrich_staple(staple)


@router.get("/{staple_id}", response_model=StapleResponse)
def get_staple(
    staple_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return enrich_staple(get_owned(db, Staple, staple_id, current_user, "Staple"))


@router.patch("/{staple_id}", response_model=StapleResponse)
def update_staple(
    staple_id: int,
    staple_in: StapleUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    staple = get_owned(db, Staple, staple_id, current_user, "Staple")
    for field, value in staple_in.model_dump(exclude_unset=True).items():
        if value is None and field in ("item_name", "quantity", "unit", "frequency", "is_active"):
            continue
        setattr(staple, field, value)
    staple.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(staple)
    return enrich_staple(staple)


@router.delete("/{staple_id}")
def delete_staple(
    staple_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    staple = get_owned(db, Staple, staple_id, current_user, "Staple")
    db.delete(staple)
    db.commit()
    return {"success": True}
