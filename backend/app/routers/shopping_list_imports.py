"""
API endpoints that move things into and out of a shopping list: staple and
meal plan imports, inventory exclusions and conversion to inventory.
"""

import logging
from typing import Any, List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user, get_owned
from app.models.shopping_list import ShoppingList
from app.models.user import User
from app.schemas import (
    AddBackRequest,
    ConvertToInventoryRequest,
    ConvertToInventoryResponse,
    ExcludedItemResponse,
    MealPlanImportRequest,
    MealPlanImportResponse,
    ShoppingListItemResponse,
    StapleCandidatesResponse,
    StapleImportRequest,
    StapleImportResponse,
)
from app.services.import_service import import_service
from app.services.inventory_service import inventory_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _owned_list(db: Session, list_id: int, user: User) -> ShoppingList:
    return get_owned(db, ShoppingList, list_id, user, "Shopping list")


@router.get("/{list_id}/import/staples", response_model=StapleCandidatesResponse)
def staple_import_candidates(
    list_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    All staples with due information. Active staples that are due and not
    yet on this list come back preselected.
    """
    shopping_list = _owned_list(db, list_id, current_user)
    return import_service.staple_candidates(db, current_user, shopping_list)


@router.post("/{list_id}/import/staples", response_model=StapleImportResponse)
def import_staples(
    list_id: int,
    request: StapleImportRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    shopping_list = _owned_list(db, list_id, current_user)
    return import_service.import_staples(
        db, current_user, shopping_list, request.staple_ids, force_add=request.force_add
    )


@router.get("/{list_id}/import/meal-plan")
def meal_plan_import_candidates(
    list_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    shopping_list = _owned_list(db, list_id, current_user)
    return {"mealPlans": import_service.meal_plan_candidates(db, current_user, shopping_list)}


@router.post("/{list_id}/import/meal-plan", response_model=MealPlanImportResponse)
def import_meal_plan(
    list_id: int,
    request: MealPlanImportRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Turn the ingredients of a finalized meal plan into list items, skipping
    what the inventory already covers.
    """
    shopping_list = _owned_list(db, list_id, current_user)
    return import_service.import_meal_plan(
        db,
        current_user,
        shopping_list,
        request.meal_plan_id,
        check_inventory=request.check_inventory,
        auto_deduplicate=request.auto_deduplicate,
        use_ai=request.use_ai,
    )


@router.get("/{list_id}/excluded-items", response_model=List[ExcludedItemResponse])
def list_excluded_items(
    list_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    shopping_list = _owned_list(db, list_id, current_user)
    return import_service.excluded_items(db, shopping_list)


@router.post(
    "/{list_id}/excluded-items",
    response_model=ShoppingListItemResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_back_excluded_item(
    list_id: int,
    request: AddBackRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    shopping_list = _owned_list(db, list_id, current_user)
    return import_service.add_back(
        db, shopping_list, request.excluded_item_id, quantity=request.quantity
    )


@router.get("/{list_id}/convert-to-inventory")
def preview_inventory_conversion(
    list_id: int,
    purchased_only: bool = Query(False, alias="purchasedOnly"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    shopping_list = _owned_list(db, list_id, current_user)
    return inventory_service.preview_conversion(
        db, current_user, shopping_list, purchased_only=purchased_only
    )


@router.post("/{list_id}/convert-to-inventory", response_model=ConvertToInventoryResponse)
def convert_to_inventory(
    list_id: int,
    request: ConvertToInventoryRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    shopping_list = _owned_list(db, list_id, current_user)
    return inventory_service.convert_items(db, current_user, shopping_list, request)
