"""
API endpoints for family profiles.
"""

import logging
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user, get_owned
from app.models.user import FamilyProfile, User
from app.schemas import ProfileCreate, ProfileResponse, ProfileUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def _clear_main_user(db: Session, user: User, keep_id: int) -> None:
    """Only one profile per account may be the main user."""
    db.query(FamilyProfile).filter(
        FamilyProfile.user_id == user.id,
        FamilyProfile.id != keep_id,
        FamilyProfile.is_main_user.is_(True),
    ).update({FamilyProfile.is_main_user: False}, synchronize_session=False)


@router.get("", response_model=List[ProfileResponse])
def list_profiles(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return (
        db.query(FamilyProfile)
        .filter(FamilyProfile.user_id == current_user.id)
        .order_by(FamilyProfile.is_main_user.desc(), FamilyProfile.profile_name)
        .all()
    )


@router.post("", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
def create_profile(
    profile_in: ProfileCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    profile = FamilyProfile(user_id=current_user.id, **profile_in.model_dump())
    db.add(profile)
    db.flush()
    if profile.is_main_user:
        _clear_main_user(db, current_user, profile.id)
    db.commit()
    db.refresh(profile)
    logger.info(f"Created profile '{profile.profile_name}' for user {current_user.id}")
    return profile


@router.get("/{profile_id}", response_model=ProfileResponse)
def get_profile(
    profile_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_owned(db, FamilyProfile, profile_id, current_user, "Profile")


@router.patch("/{profile_id}", response_model=ProfileResponse)
def update_profile(
    profile_id: int,
    profile_in: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    profile = get_owned(db, FamilyProfile, profile_id, current_user, "Profile")
    for field, value in profile_in.model_dump(exclude_unset=True).items():
        if value is None and field in ("profile_name", "is_main_user", "dietary_preferences", "allergies"):
            continue
        setattr(profile, field, value)
    if profile.is_main_user:
        _clear_main_user(db, current_user, profile.id)
    profile.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(profile)
    return profile


@router.delete("/{profile_id}")
def delete_profile(
    profile_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    profile = get_owned(db, FamilyProfile, profile_id, current_user, "Profile")
    db.delete(profile)
    db.commit()
    return {"success": True}
