"""
Shopping list business rules.

Lifecycle is one-directional: Draft -> Finalized -> Archived. Purchase
toggling is only allowed on Finalized lists and Archived lists are read-only.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from sqlalchemy import case, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.shopping_list import LIST_STATUSES, ShoppingList, ShoppingListItem
from app.models.user import User
from app.schemas import ShoppingListItemCreate, ShoppingListItemUpdate
from app.services.category_service import category_service

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"


def ensure_not_archived(shopping_list: ShoppingList) -> None:
    if shopping_list.status == "Archived":
        raise HTTPException(status_code=400, detail="Archived shopping lists cannot be modified")


def ensure_draft(shopping_list: ShoppingList, action: str) -> None:
    if shopping_list.status != "Draft":
        raise HTTPException(
            status_code=400, detail=f"Can only {action} in draft shopping lists"
        )


def default_list_name(today: Optional[date] = None) -> str:
    today = today or date.today()
    monday = today - timedelta(days=today.weekday())
    return f"Shopping list - week of {monday.strftime('%d %b %Y')}"


def item_source_detail(item: ShoppingListItem) -> Dict[str, Any]:
    return {
        "type": item.source or "manual",
        "name": item.item_name,
        "quantity": item.quantity,
        "unit": item.unit,
    }


def group_items_by_category(
    items: List[ShoppingListItem], category_order: Optional[List[str]] = None
) -> Dict[str, List[ShoppingListItem]]:
    """Items keyed by category; known order first, Uncategorized last."""
    groups: Dict[str, List[ShoppingListItem]] = {}
    for item in items:
        groups.setdefault(item.category or UNCATEGORIZED, []).append(item)

    order = {name: index for index, name in enumerate(category_order or [])}
    keys = sorted(
        groups,
        key=lambda k: (k == UNCATEGORIZED, order.get(k, len(order)), k.lower()),
    )
    return {k: sorted(groups[k], key=lambda i: (i.display_order, i.id)) for k in keys}


def serialize_list(
    shopping_list: ShoppingList,
    include_items: bool = True,
    include_purchased: bool = True,
) -> Dict[str, Any]:
    all_items = list(shopping_list.items)
    items = all_items if include_purchased else [i for i in all_items if not i.is_purchased]
    data = {
        "id": shopping_list.id,
        "name": shopping_list.name,
        "notes": shopping_list.notes,
        "status": shopping_list.status,
        "category_order": shopping_list.category_order or [],
        "item_count": len(all_items),
        "unpurchased_count": sum(1 for i in all_items if not i.is_purchased),
        "meal_plan_ids": [link.meal_plan_id for link in shopping_list.meal_plan_links],
        "created_at": shopping_list.created_at,
        "updated_at": shopping_list.updated_at,
        "finalized_at": shopping_list.finalized_at,
        "archived_at": shopping_list.archived_at,
    }
    if include_items:
        data["items"] = items
        data["items_by_category"] = group_items_by_category(items, shopping_list.category_order)
    return data


class ShoppingListService:
    def list_lists(
        self, db: Session, user: User, status: Optional[str] = None
    ) -> List[ShoppingList]:
        """Draft lists first, then most recently updated."""
        query = db.query(ShoppingList).filter(ShoppingList.user_id == user.id)
        if status:
            query = query.filter(ShoppingList.status == status)
        draft_first = case((ShoppingList.status == "Draft", 0), else_=1)
        return query.order_by(draft_first, ShoppingList.updated_at.desc(), ShoppingList.id.desc()).all()

    def create_list(
        self, db: Session, user: User, name: Optional[str] = None, notes: Optional[str] = None
    ) -> ShoppingList:
        shopping_list = ShoppingList(
            user_id=user.id,
            name=(name or "").strip() or default_list_name(),
            notes=notes,
            status="Draft",
            category_order=[c.name for c in category_service.list_categories(db, user)],
        )
        db.add(shopping_list)
        db.commit()
        db.refresh(shopping_list)
        logger.info(f"Created shopping list {shopping_list.id} for user {user.id}")
        return shopping_list

    def update_list(self, db: Session, shopping_list: ShoppingList, changes: Dict[str, Any]) -> ShoppingList:
        """
        Apply a partial update. Status may only move forward; an Archived
        list accepts no other edits.
        """
        new_status = changes.pop("status", None)
        editable = {k: v for k, v in changes.items() if k in ("name", "notes", "category_order")}

        if editable:
            ensure_not_archived(shopping_list)
            for field, value in editable.items():
                if field == "name":
                    value = value.strip()
                setattr(shopping_list, field, value)

        if new_status and new_status != shopping_list.status:
            self._transition(shopping_list, new_status)

        shopping_list.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(shopping_list)
        return shopping_list

    def _transition(self, shopping_list: ShoppingList, new_status: str) -> None:
        current = LIST_STATUSES.index(shopping_list.status)
        target = LIST_STATUSES.index(new_status)
        if target < current:
            raise HTTPException(
                status_code=400,
                detail="Shopping list status can only move forward (Draft -> Finalized -> Archived)",
            )

        now = datetime.utcnow()
        if shopping_list.finalized_at is None:
            shopping_list.finalized_at = now
            self._finalize_staple_imports(shopping_list, now)
        if new_status == "Archived":
            shopping_list.archived_at = now

        logger.info(
            f"Shopping list {shopping_list.id}: {shopping_list.status} -> {new_status}"
        )
        shopping_list.status = new_status

    def _finalize_staple_imports(self, shopping_list: ShoppingList, now: datetime) -> None:
        """Imported staples count as bought once the list is finalized."""
        for record in shopping_list.staple_imports:
            if record.finalized_at is None:
                record.finalized_at = now
                record.staple.last_added_date = now.date()

    def next_display_order(self, db: Session, shopping_list_id: int) -> int:
        current = (
            db.query(func.max(ShoppingListItem.display_order))
            .filter(ShoppingListItem.shopping_list_id == shopping_list_id)
            .scalar()
        )
        return 0 if current is None else current + 1

    def add_items(
        self,
        db: Session,
        user: User,
        shopping_list: ShoppingList,
        items_in: List[ShoppingListItemCreate],
    ) -> List[ShoppingListItem]:
        """
        Add manual items one at a time.

        The display order read and the insert are separate statements, so two
        concurrent requests can end up sharing a display order.
        """
        ensure_not_archived(shopping_list)
        categories = category_service.categorize_many(
            db, user, [i.item_name for i in items_in if not i.category]
        )

        created = []
        for item_in in items_in:
            item = ShoppingListItem(
                shopping_list_id=shopping_list.id,
                item_name=item_in.item_name.strip(),
                quantity=item_in.quantity,
                unit=item_in.unit.strip(),
                category=item_in.category or categories.get(item_in.item_name),
                source="manual",
                custom_note=item_in.custom_note,
                priority=item_in.priority,
                display_order=self.next_display_order(db, shopping_list.id),
            )
            item.source_details = [item_source_detail(item)]
            db.add(item)
            db.commit()
            db.refresh(item)
            created.append(item)

        shopping_list.updated_at = datetime.utcnow()
        db.commit()
        logger.info(f"Added {len(created)} item(s) to shopping list {shopping_list.id}")
        return created

    def get_item(self, db: Session, shopping_list: ShoppingList, item_id: int) -> ShoppingListItem:
        item = (
            db.query(ShoppingListItem)
            .filter(
                ShoppingListItem.id == item_id,
                ShoppingListItem.shopping_list_id == shopping_list.id,
            )
            .first()
        )
        if not item:
            raise HTTPException(status_code=404, detail="Item not found")
        return item

    def apply_item_update(
        self, shopping_list: ShoppingList, item: ShoppingListItem, update: ShoppingListItemUpdate
    ) -> None:
        """Validate and apply changes to an item without committing."""
        ensure_not_archived(shopping_list)
        changes = update.model_dump(exclude_unset=True)

        if "is_purchased" in changes:
            if shopping_list.status != "Finalized":
                raise HTTPException(
                    status_code=400,
                    detail="Items can only be marked as purchased on finalized shopping lists",
                )
            purchased = bool(changes.pop("is_purchased"))
            if purchased != item.is_purchased:
                item.is_purchased = purchased
                item.purchased_at = datetime.utcnow() if purchased else None

        new_name = changes.pop("item_name", None)
        if new_name is not None:
            new_name = new_name.strip()
            if new_name != item.item_name:
                if item.original_item_name is None:
                    item.original_item_name = item.item_name
                item.item_name = new_name

        for field, value in changes.items():
            setattr(item, field, value)

        item.updated_at = datetime.utcnow()

    def update_item(
        self, db: Session, shopping_list: ShoppingList, item: ShoppingListItem, update: ShoppingListItemUpdate
    ) -> ShoppingListItem:
        self.apply_item_update(shopping_list, item, update)
        shopping_list.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(item)
        return item

    def delete_item(self, db: Session, shopping_list: ShoppingList, item: ShoppingListItem) -> None:
        ensure_not_archived(shopping_list)
        db.delete(item)
        shopping_list.updated_at = datetime.utcnow()
        db.commit()

    def clear_purchased(self, db: Session, shopping_list: ShoppingList) -> int:
        ensure_not_archived(shopping_list)
        deleted = (
            db.query(ShoppingListItem)
            .filter(
                ShoppingListItem.shopping_list_id == shopping_list.id,
                ShoppingListItem.is_purchased.is_(True),
            )
            .delete(synchronize_session=False)
        )
        shopping_list.updated_at = datetime.utcnow()
        db.commit()
        db.expire(shopping_list)
        return deleted

    def batch_update(
        self,
        db: Session,
        shopping_list: ShoppingList,
        item_ids: List[int],
        update: ShoppingListItemUpdate,
    ) -> List[Dict[str, Any]]:
        """
        Apply the same update to many items.

        Each item runs in its own savepoint, one at a time since the session
        is not thread-safe. Failures are reported per item.
        """
        results = []
        for item_id in item_ids:
            savepoint = db.begin_nested()
            try:
                item = self.get_item(db, shopping_list, item_id)
                self.apply_item_update(shopping_list, item, update)
                db.flush()
                savepoint.commit()
                results.append({"id": item_id, "success": True, "error": None})
            except HTTPException as e:
                savepoint.rollback()
                results.append({"id": item_id, "success": False, "error": e.detail})
            except SQLAlchemyError as e:
                savepoint.rollback()
                logger.warning(f"Batch update failed for item {item_id}: {e}")
                results.append({"id": item_id, "success": False, "error": "Update failed"})

        shopping_list.updated_at = datetime.utcnow()
        db.commit()
        succeeded = sum(1 for r in results if r["success"])
        logger.info(
            f"Batch update on shopping list {shopping_list.id}: {succeeded}/{len(results)} succeeded"
        )
        return results

    def reorder_items(
        self, db: Session, shopping_list: ShoppingList, item_ids: List[int]
    ) -> List[ShoppingListItem]:
        ensure_not_archived(shopping_list)
        items = {i.id: i for i in shopping_list.items}
        if any(item_id not in items for item_id in item_ids):
            raise HTTPException(status_code=400, detail="Some items do not belong to this list")

        for order, item_id in enumerate(item_ids):
            items[item_id].display_order = order
        shopping_list.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(shopping_list)
        return list(shopping_list.items)


shopping_list_service = ShoppingListService()
