"""
API endpoints for shopping lists, their items, user categories and
duplicate combining.
"""

import logging
from typing import Any, List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.dependencies import get_current_user, get_owned
from app.models.category import ShoppingListCategory
from app.models.shopping_list import ShoppingList
from app.models.user import User
from app.schemas import (
    BatchItemResult,
    BatchItemUpdate,
    CategoryCreate,
    CategoryReorderRequest,
    CategoryResponse,
    CategoryUpdate,
    CombineAllRequest,
    DeduplicateRequest,
    ItemReorderRequest,
    ShoppingListCreate,
    ShoppingListItemCreate,
    ShoppingListItemResponse,
    ShoppingListItemUpdate,
    ShoppingListResponse,
    ShoppingListUpdate,
    SuggestCategoryRequest,
    SuggestCategoryResponse,
)
from app.services import dedup_service
from app.services.category_service import category_service
from app.services.shopping_list_service import (
    ensure_draft,
    serialize_list,
    shopping_list_service,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _owned_list(db: Session, list_id: int, user: User) -> ShoppingList:
    return get_owned(db, ShoppingList, list_id, user, "Shopping list")


# --- Categories (declared before /{list_id}) ---

@router.get("/categories", response_model=List[CategoryResponse])
def list_categories(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return category_service.list_categories(db, current_user)


@router.post("/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    category_in: CategoryCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return category_service.create(db, current_user, category_in.name)


@router.post("/categories/reorder", response_model=List[CategoryResponse])
def reorder_categories(
    request: CategoryReorderRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return category_service.reorder(db, current_user, request.category_ids)


@router.patch("/categories/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: int,
    category_in: CategoryUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    category = get_owned(db, ShoppingListCategory, category_id, current_user, "Category")
    if category_in.name is not None:
        category_service.rename(db, current_user, category, category_in.name)
    if category_in.display_order is not None:
        category.display_order = category_in.display_order
    db.commit()
    db.refresh(category)
    return category


@router.delete("/categories/{category_id}")
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    category = get_owned(db, ShoppingListCategory, category_id, current_user, "Category")
    db.delete(category)
    db.commit()
    logger.info(f"Deleted category {category_id} of user {current_user.id}")
    return {"success": True}


@router.post("/suggest-category", response_model=SuggestCategoryResponse)
def suggest_category(
    request: SuggestCategoryRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Keyword lookup mapped onto the user's categories, with an optional AI fallback."""
    category, confidence = category_service.suggest(
        db, current_user, request.item_name, use_ai=request.use_ai
    )
    return {
        "item_name": request.item_name,
        "suggested_category": category,
        "confidence": confidence,
    }


# --- Lists ---

@router.get("", response_model=List[ShoppingListResponse])
def list_shopping_lists(
    status_filter: Optional[str] = Query(None, alias="status"),
    include_items: bool = Query(False, alias="includeItems"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    lists = shopping_list_service.list_lists(db, current_user, status_filter)
    return [serialize_list(sl, include_items=include_items) for sl in lists]


@router.post("", response_model=ShoppingListResponse, status_code=status.HTTP_201_CREATED)
def create_shopping_list(
    list_in: ShoppingListCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    shopping_list = shopping_list_service.create_list(
        db, current_user, name=list_in.name, notes=list_in.notes
    )
    return serialize_list(shopping_list)


@router.get("/{list_id}", response_model=ShoppingListResponse)
def get_shopping_list(
    list_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return serialize_list(_owned_list(db, list_id, current_user))


@router.patch("/{list_id}", response_model=ShoppingListResponse)
def update_shopping_list(
    list_id: int,
    list_in: ShoppingListUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    shopping_list = _owned_list(db, list_id, current_user)
    shopping_list = shopping_list_service.update_list(
        db, shopping_list, list_in.model_dump(exclude_unset=True)
    )
    return serialize_list(shopping_list)


@router.delete("/{list_id}")
def delete_shopping_list(
    list_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    shopping_list = _owned_list(db, list_id, current_user)
    db.delete(shopping_list)
    db.commit()
    logger.info(f"Deleted shopping list {list_id}")
    return {"success": True}


# --- Items ---

@router.get("/{list_id}/items", response_model=List[ShoppingListItemResponse])
def list_items(
    list_id: int,
    include_purchased: bool = Query(True, alias="includePurchased"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    shopping_list = _owned_list(db, list_id, current_user)
    items = sorted(shopping_list.items, key=lambda i: (i.display_order, i.id))
    if not include_purchased:
        items = [i for i in items if not i.is_purchased]
    return items


@router.post(
    "/{list_id}/items",
    response_model=List[ShoppingListItemResponse],
    status_code=status.HTTP_201_CREATED,
)
def add_items(
    list_id: int,
    items_in: Union[List[ShoppingListItemCreate], ShoppingListItemCreate],
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Add one item or an array of items. Always returns the created items as a list."""
    shopping_list = _owned_list(db, list_id, current_user)
    if not isinstance(items_in, list):
        items_in = [items_in]
    return shopping_list_service.add_items(db, current_user, shopping_list, items_in)


@router.delete("/{list_id}/items")
def clear_purchased_items(
    list_id: int,
    purchased_only: bool = Query(False, alias="purchasedOnly"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    shopping_list = _owned_list(db, list_id, current_user)
    if not purchased_only:
        raise HTTPException(status_code=400, detail="Set purchasedOnly=true to clear purchased items")
    deleted = shopping_list_service.clear_purchased(db, shopping_list)
    logger.info(f"Cleared {deleted} purchased items from list {list_id}")
    return {"success": True, "deletedCount": deleted}


@router.post("/{list_id}/items/batch", response_model=List[BatchItemResult])
def batch_update_items(
    list_id: int,
    request: BatchItemUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Apply one update to many items; each item reports its own outcome."""
    if len(request.item_ids) > settings.BATCH_MAX_ITEMS:
        raise HTTPException(
            status_code=400,
            detail=f"A batch can update at most {settings.BATCH_MAX_ITEMS} items",
        )
    shopping_list = _owned_list(db, list_id, current_user)
    return shopping_list_service.batch_update(db, shopping_list, request.item_ids, request.update)


@router.post("/{list_id}/items/reorder", response_model=List[ShoppingListItemResponse])
def reorder_items(
    list_id: int,
    request: ItemReorderRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    shopping_list = _owned_list(db, list_id, current_user)
    items = shopping_list_service.reorder_items(db, shopping_list, request.item_ids)
    return sorted(items, key=lambda i: (i.display_order, i.id))


@router.patch("/{list_id}/items/{item_id}", response_model=ShoppingListItemResponse)
def update_item(
    list_id: int,
    item_id: int,
    item_in: ShoppingListItemUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    shopping_list = _owned_list(db, list_id, current_user)
    item = shopping_list_service.get_item(db, shopping_list, item_id)
    return shopping_list_service.update_item(db, shopping_list, item, item_in)


@router.delete("/{list_id}/items/{item_id}")
def delete_item(
    list_id: int,
    item_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    shopping_list = _owned_list(db, list_id, current_user)
    item = shopping_list_service.get_item(db, shopping_list, item_id)
    shopping_list_service.delete_item(db, shopping_list, item)
    return {"success": True}


# --- Duplicates ---

@router.get("/{list_id}/deduplicate")
def find_duplicates(
    list_id: int,
    dismissed: Optional[str] = Query(None, description="Comma separated normalized names"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    shopping_list = _owned_list(db, list_id, current_user)
    ensure_draft(shopping_list, "check for duplicates")
    groups = dedup_service.list_duplicates(db, shopping_list)
    if dismissed:
        groups = dedup_service.dismiss_groups(
            groups, [key.strip() for key in dismissed.split(",") if key.strip()]
        )
    logger.info(f"Found {len(groups)} potential duplicate groups on list {list_id}")
    return {
        "duplicateGroups": [group.to_dict() for group in groups],
        "totalDuplicateItems": sum(len(group.items) for group in groups),
        "hasDuplicates": bool(groups),
    }


@router.post("/{list_id}/deduplicate")
def combine_items(
    list_id: int,
    request: DeduplicateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    shopping_list = _owned_list(db, list_id, current_user)
    ensure_draft(shopping_list, "combine items")

    result = dedup_service.merge_items(db, shopping_list, request.item_ids, use_ai=request.use_ai)
    combined = (
        ShoppingListItemResponse.model_validate(result.combined_item).model_dump(by_alias=True, mode="json")
        if result.combined_item is not None
        else None
    )
    combined_count = result.deleted_count + 1 if result.deleted_count else 0
    return {
        "message": f"Successfully combined {combined_count} items",
        "previousItemCount": result.previous_item_count,
        "newItemCount": result.new_item_count,
        "deletedCount": result.deleted_count,
        "mergedName": result.merged_name,
        "mergedQuantity": result.merged_quantity,
        "mergedUnit": result.merged_unit,
        "combinedItem": combined,
    }


@router.post("/{list_id}/deduplicate/combine-all")
def combine_all_duplicates(
    list_id: int,
    request: CombineAllRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Combine every duplicate group; failing groups are reported and skipped."""
    shopping_list = _owned_list(db, list_id, current_user)
    ensure_draft(shopping_list, "combine items")

    result = dedup_service.combine_all(db, shopping_list, use_ai=request.use_ai)
    db.refresh(shopping_list)
    return {
        "groupsProcessed": result.groups_processed,
        "groupsCombined": result.groups_combined,
        "totalDeleted": result.total_deleted,
        "failures": result.failures,
        "finalItemCount": len(shopping_list.items),
    }
