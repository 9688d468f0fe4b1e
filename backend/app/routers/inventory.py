"""
API endpoints for the household inventory.
"""

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user, get_owned
from app.models.inventory import InventoryItem
from app.models.user import User
from app.schemas import InventoryItemCreate, InventoryItemResponse, InventoryItemUpdate
from app.services.inventory_service import (
    infer_category,
    lookup_shelf_life,
    serialize_inventory_item,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[InventoryItemResponse])
def list_inventory(
    location: Optional[str] = None,
    category: Optional[str] = None,
    expiry_status: Optional[str] = Query(None, alias="expiryStatus"),
    include_inactive: bool = Query(False, alias="includeInactive"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Inventory items, soonest expiry first. Items without an expiry date come last.
    """
    query = db.query(InventoryItem).filter(InventoryItem.user_id == current_user.id)
    if not include_inactive:
        query = query.filter(InventoryItem.is_active.is_(True))
    if location:
        query = query.filter(InventoryItem.location == location)
    if category:
        query = query.filter(InventoryItem.category == category)

    items = query.order_by(
        InventoryItem.expiry_date.is_(None), InventoryItem.expiry_date, InventoryItem.item_name
    ).all()

    today = date.today()
    results = [serialize_inventory_item(item, today) for item in items]
    if expiry_status:
        results = [r for r in results if r["expiry_status"] == expiry_status]
    return results


@router.post("", response_model=InventoryItemResponse, status_code=status.HTTP_201_CREATED)
def create_inventory_item(
    item_in: InventoryItemCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Add an item by hand. Without an expiry date one is estimated from the
    shelf-life table when the item is known.
    """
    data = item_in.model_dump()
    data["item_name"] = data["item_name"].strip()
    data["category"] = data["category"] or infer_category(data["item_name"])

    if data["expiry_date"] is None:
        shelf_life = lookup_shelf_life(data["item_name"])
        if shelf_life:
            start = data["purchase_date"] or date.today()
            data["expiry_date"] = start + timedelta(days=shelf_life.days)
            data["expiry_is_estimated"] = True

    item = InventoryItem(user_id=current_user.id, added_by="manual", **data)
    db.add(item)
    db.commit()
    db.refresh(item)
    logger.info(f"Added inventory item '{item.item_name}' for user {current_user.id}")
    return serialize_inventory_item(item)


@router.get("/{item_id}", response_model=InventoryItemResponse)
def get_inventory_item(
    item_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return serialize_inventory_item(
        get_owned(db, InventoryItem, item_id, current_user, "Inventory item")
    )


@router.patch("/{item_id}", response_model=InventoryItemResponse)
def update_inventory_item(
    item_id: int,
    item_in: InventoryItemUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    item = get_owned(db, InventoryItem, item_id, current_user, "Inventory item")
    changes = item_in.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if value is None and field in ("item_name", "quantity", "unit", "category", "is_active"):
            continue
        setattr(item, field, value)
    if "expiry_date" in changes:
        item.expiry_is_estimated = False
    item.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(item)
    return serialize_inventory_item(item)


@router.delete("/{item_id}")
def delete_inventory_item(
    item_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Items are deactivated, not removed, so exclusion history keeps its link."""
    item = get_owned(db, InventoryItem, item_id, current_user, "Inventory item")
    item.is_active = False
    item.updated_at = datetime.utcnow()
    db.commit()
    logger.info(f"Deactivated inventory item {item_id}")
    return {"success": True}
