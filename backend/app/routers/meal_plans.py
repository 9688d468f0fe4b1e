"""
API endpoints for weekly meal plans.
"""

import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user, get_owned
from app.models.meal_plan import MealPlan
from app.models.user import FamilyProfile, User
from app.schemas import (
    MealPlanCreate,
    MealPlanGenerateRequest,
    MealPlanResponse,
    MealPlanUpdate,
)
from app.services.meal_plan_service import meal_plan_service
from app.services.nutrition_service import plan_nutrition

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[MealPlanResponse])
def list_meal_plans(
    status_filter: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return meal_plan_service.list_plans(db, current_user, status_filter)


@router.post("", response_model=MealPlanResponse, status_code=status.HTTP_201_CREATED)
def create_meal_plan(
    plan_in: MealPlanCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return meal_plan_service.create_plan(db, current_user, plan_in)


@router.post("/generate", response_model=MealPlanResponse, status_code=status.HTTP_201_CREATED)
def generate_meal_plan(
    request: MealPlanGenerateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Build a Draft plan from an AI answer based on the recipe library and
    family profiles.
    """
    return meal_plan_service.generate_plan(db, current_user, request)


@router.get("/{plan_id}", response_model=MealPlanResponse)
def get_meal_plan(
    plan_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_owned(db, MealPlan, plan_id, current_user, "Meal plan")


@router.patch("/{plan_id}", response_model=MealPlanResponse)
def update_meal_plan(
    plan_id: int,
    plan_in: MealPlanUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    plan = get_owned(db, MealPlan, plan_id, current_user, "Meal plan")
    return meal_plan_service.update_plan(db, current_user, plan, plan_in)


@router.delete("/{plan_id}")
def delete_meal_plan(
    plan_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    plan = get_owned(db, MealPlan, plan_id, current_user, "Meal plan")
    db.delete(plan)
    db.commit()
    logger.info(f"Deleted meal plan {plan_id}")
    return {"success": True}


@router.get("/{plan_id}/nutrition")
def get_meal_plan_nutrition(
    plan_id: int,
    profile_id: Optional[int] = Query(None, alias="profileId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Daily and weekly totals, compared with a profile's targets when one is given."""
    plan = get_owned(db, MealPlan, plan_id, current_user, "Meal plan")
    profile = None
    if profile_id is not None:
        profile = get_owned(db, FamilyProfile, profile_id, current_user, "Profile")
    return plan_nutrition(plan, profile)
