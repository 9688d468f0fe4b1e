import logging
import math
import re
from dataclasses import dataclass
from typing import List, Dict, Any, Optional
from datetime import date, datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.inventory import InventoryItem
from app.models.shopping_list import ShoppingList, ShoppingListItem
from app.models.user import User
from app.schemas import ConvertToInventoryRequest
from app.services.normalization import find_inventory_match, normalize_ingredient_name
from app.services.shopping_list_service import ensure_not_archived
from app.services.units import convert_between

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShelfLife:
    name: str
    category: str
    location: str
    days: int


# Typical shelf life once bought, most specific names first
SHELF_LIFE_DATA = [
    ShelfLife("chicken breast", "Meat", "fridge", 2),
    ShelfLife("chicken", "Meat", "fridge", 2),
    ShelfLife("beef mince", "Meat", "fridge", 2),
    ShelfLife("mince", "Meat", "fridge", 2),
    ShelfLife("bacon", "Meat", "fridge", 7),
    ShelfLife("sausage", "Meat", "fridge", 3),
    ShelfLife("steak", "Meat", "fridge", 3),
    ShelfLife("salmon", "Seafood", "fridge", 2),
    ShelfLife("prawn", "Seafood", "fridge", 2),
    ShelfLife("fish", "Seafood", "fridge", 2),
    ShelfLife("milk", "Dairy & Eggs", "fridge", 7),
    ShelfLife("double cream", "Dairy & Eggs", "fridge", 5),
    ShelfLife("yoghurt", "Dairy & Eggs", "fridge", 10),
    ShelfLife("yogurt", "Dairy & Eggs", "fridge", 10),
    ShelfLife("cheddar", "Dairy & Eggs", "fridge", 28),
    ShelfLife("cheese", "Dairy & Eggs", "fridge", 21),
    ShelfLife("butter", "Dairy & Eggs", "fridge", 30),
    ShelfLife("egg", "Dairy & Eggs", "fridge", 21),
    ShelfLife("lettuce", "Produce", "fridge", 5),
    ShelfLife("spinach", "Produce", "fridge", 5),
    ShelfLife("tomato", "Produce", "fridge", 7),
    ShelfLife("pepper", "Produce", "fridge", 7),
    ShelfLife("mushroom", "Produce", "fridge", 5),
    ShelfLife("carrot", "Produce", "fridge", 21),
    ShelfLife("broccoli", "Produce", "fridge", 5),
    ShelfLife("banana", "Produce", "pantry", 5),
    ShelfLife("apple", "Produce", "fridge", 28),
    ShelfLife("lemon", "Produce", "fridge", 21),
    ShelfLife("potato", "Produce", "pantry", 30),
    ShelfLife("onion", "Produce", "pantry", 30),
    ShelfLife("garlic", "Produce", "pantry", 60),
    ShelfLife("bread", "Bakery", "pantry", 5),
    ShelfLife("tortilla", "Bakery", "pantry", 14),
    ShelfLife("frozen peas", "Frozen", "freezer", 240),
    ShelfLife("ice cream", "Frozen", "freezer", 180),
    ShelfLife("rice", "Pantry", "pantry", 365),
    ShelfLife("pasta", "Pantry", "pantry", 365),
    ShelfLife("flour", "Pantry", "pantry", 240),
    ShelfLife("sugar", "Pantry", "pantry", 730),
    ShelfLife("olive oil", "Pantry", "pantry", 540),
    ShelfLife("chopped tomato", "Pantry", "pantry", 540),
    ShelfLife("stock cube", "Pantry", "pantry", 365),
    ShelfLife("juice", "Beverages", "fridge", 7),
]

DEFAULT_SHELF_LIFE_DAYS = 7
MIN_EXPIRING_SOON_DAYS = 2

_CATEGORY_PATTERNS = [
    ("Produce", r"\b(apple|banana|orange|grape|strawberr|blueberr|lemon|lime|avocado|tomato|lettuce|spinach|kale|carrot|onion|potato|broccoli|pepper|cucumber|celery|mushroom|garlic|ginger)"),
    ("Dairy & Eggs", r"\b(milk|cheese|yogh?urt|cream|butter|egg)"),
    ("Meat", r"\b(chicken|beef|pork|lamb|turkey|bacon|sausage|steak|mince|ham)\b"),
    ("Seafood", r"\b(fish|salmon|tuna|shrimp|prawn|cod|crab|mussel)"),
    ("Bakery", r"\b(bread|bagel|muffin|croissant|roll|bun|loaf|tortilla)"),
    ("Frozen", r"\b(frozen|ice cream)\b"),
    ("Beverages", r"\b(juice|soda|water|tea|coffee|wine|beer)\b"),
    ("Pantry", r"\b(rice|pasta|flour|sugar|salt|oil|vinegar|sauce|stock|broth|can|tin|cereal|oat)"),
    ("Spices & Herbs", r"\b(spice|herb|paprika|cumin|cinnamon|oregano|basil|thyme|rosemary|nutmeg)"),
    ("Condiments", r"\b(ketchup|mustard|mayo|relish|dressing|jam|honey|syrup)"),
    ("Snacks", r"\b(chip|crisp|cracker|cookie|biscuit|popcorn|nut|pretzel)"),
]

_LOCATION_BY_CATEGORY = {
    "produce": "fridge",
    "dairy & eggs": "fridge",
    "meat": "fridge",
    "meat & seafood": "fridge",
    "seafood": "fridge",
    "frozen": "freezer",
}


def lookup_shelf_life(item_name: str) -> Optional[ShelfLife]:
    """Exact normalized name, then whole-word containment either way."""
    key = normalize_ingredient_name(item_name)
    if not key:
        return None
    for entry in SHELF_LIFE_DATA:
        if entry.name == key:
            return entry
    padded = f" {key} "
    for entry in SHELF_LIFE_DATA:
        if f" {entry.name} " in padded or padded in f" {entry.name} ":
            return entry
    return None


def infer_category(item_name: str) -> str:
    lower = item_name.lower()
    for category, pattern in _CATEGORY_PATTERNS:
        if re.search(pattern, lower):
            return category
    return "Other"


def infer_location(category: Optional[str]) -> str:
    return _LOCATION_BY_CATEGORY.get((category or "").lower(), "pantry")


def shelf_life_days(item: InventoryItem) -> int:
    if item.purchase_date and item.expiry_date and item.expiry_date > item.purchase_date:
        return (item.expiry_date - item.purchase_date).days
    entry = lookup_shelf_life(item.item_name)
    return entry.days if entry else DEFAULT_SHELF_LIFE_DAYS


def expiring_threshold_days(shelf_life: int) -> int:
    """20% of the shelf life, at least two days."""
    return max(MIN_EXPIRING_SOON_DAYS, math.ceil(0.2 * shelf_life))


def days_until_expiry(item: InventoryItem, today: Optional[date] = None) -> Optional[int]:
    if item.expiry_date is None:
        return None
    return (item.expiry_date - (today or date.today())).days


def expiry_status(item: InventoryItem, today: Optional[date] = None) -> Optional[str]:
    """expired, expiringSoon or fresh; None without an expiry date."""
    days = days_until_expiry(item, today)
    if days is None:
        return None
    if days < 0:
        return "expired"
    if days <= expiring_threshold_days(shelf_life_days(item)):
        return "expiringSoon"
    return "fresh"


def serialize_inventory_item(item: InventoryItem, today: Optional[date] = None) -> Dict[str, Any]:
    return {
        "id": item.id,
        "item_name": item.item_name,
        "quantity": item.quantity,
        "unit": item.unit,
        "category": item.category,
        "location": item.location,
        "purchase_date": item.purchase_date,
        "expiry_date": item.expiry_date,
        "expiry_is_estimated": item.expiry_is_estimated,
        "is_active": item.is_active,
        "added_by": item.added_by,
        "notes": item.notes,
        "days_until_expiry": days_until_expiry(item, today),
        "expiry_status": expiry_status(item, today),
        "created_at": item.created_at,
        "updated_at": item.updated_at,
    }


def _append_note(existing: Optional[str], note: str) -> str:
    return f"{existing}; {note}" if existing else note


class InventoryService:
    """
    Inventory bookkeeping for items coming off a shopping list.
    """

    def active_items(self, db: Session, user: User) -> List[InventoryItem]:
        return (
            db.query(InventoryItem)
            .filter(InventoryItem.user_id == user.id, InventoryItem.is_active.is_(True))
            .all()
        )

    def preview_conversion(
        self, db: Session, user: User, shopping_list: ShoppingList, purchased_only: bool = False
    ) -> Dict[str, Any]:
        query = db.query(ShoppingListItem).filter(
            ShoppingListItem.shopping_list_id == shopping_list.id,
            ShoppingListItem.in_inventory.is_(False),
        )
        if purchased_only:
            query = query.filter(ShoppingListItem.is_purchased.is_(True))
        items = query.order_by(ShoppingListItem.display_order, ShoppingListItem.id).all()
        inventory = self.active_items(db, user)

        preview = []
        for item in items:
            shelf_life = lookup_shelf_life(item.item_name)
            category = item.category or (shelf_life.category if shelf_life else infer_category(item.item_name))
            location = shelf_life.location if shelf_life else infer_location(category)
            existing = find_inventory_match(item.item_name, inventory)
            preview.append(
                {
                    "id": item.id,
                    "itemName": item.item_name,
                    "quantity": item.quantity,
                    "unit": item.unit,
                    "isPurchased": item.is_purchased,
                    "category": category,
                    "location": location,
                    "shelfLifeDays": shelf_life.days if shelf_life else None,
                    "hasDuplicate": existing is not None,
                    "existingItemId": existing.id if existing else None,
                    "existingQuantity": existing.quantity if existing else None,
                    "existingUnit": existing.unit if existing else None,
                }
            )

        return {
            "items": preview,
            "totalItems": len(preview),
            "duplicateCount": sum(1 for p in preview if p["hasDuplicate"]),
        }

    def _merge_into(
        self, existing: InventoryItem, item: ShoppingListItem, purchase_date: date, expiry: Optional[date]
    ) -> None:
        added = convert_between(item.quantity, item.unit, existing.unit)
        if added is not None:
            existing.quantity = round(existing.quantity + added, 2)
        else:
            logger.info(
                f"Units differ for '{existing.item_name}' ({item.unit} vs {existing.unit}), "
                "keeping inventory quantity"
            )

        if existing.purchase_date is None or purchase_date > existing.purchase_date:
            existing.purchase_date = purchase_date
        if expiry and (existing.expiry_date is None or expiry < existing.expiry_date):
            existing.expiry_date = expiry
            existing.expiry_is_estimated = True
        existing.notes = _append_note(existing.notes, "Added from shopping list")
        existing.updated_at = datetime.utcnow()

    def convert_items(
        self,
        db: Session,
        user: User,
        shopping_list: ShoppingList,
        request: ConvertToInventoryRequest,
    ) -> Dict[str, Any]:
        """
        Turn shopping list items into inventory rows.

        Each item is committed on its own; a failing item is reported in
        `errors` and does not stop the others.
        """
        ensure_not_archived(shopping_list)
        items = (
            db.query(ShoppingListItem)
            .filter(
                ShoppingListItem.shopping_list_id == shopping_list.id,
                ShoppingListItem.id.in_(request.item_ids),
            )
            .all()
        )
        purchase_date = request.purchase_date or date.today()
        inventory = self.active_items(db, user) if request.merge_with_existing else []

        results = {"created": 0, "merged": 0, "errors": []}
        for item in items:
            item_name = item.item_name
            try:
                shelf_life = lookup_shelf_life(item_name)

                category = item.category
                if not category and request.auto_category:
                    category = shelf_life.category if shelf_life else infer_category(item_name)
                category = category or "Other"

                location = None
                if request.auto_location:
                    location = shelf_life.location if shelf_life else infer_location(category)

                expiry = None
                if request.auto_expiry and shelf_life:
                    expiry = purchase_date + timedelta(days=shelf_life.days)

                existing = find_inventory_match(item_name, inventory) if request.merge_with_existing else None
                if existing is not None:
                    self._merge_into(existing, item, purchase_date, expiry)
                    outcome = "merged"
                else:
                    new_item = InventoryItem(
                        user_id=user.id,
                        item_name=item_name,
                        quantity=item.quantity,
                        unit=item.unit,
                        category=category,
                        location=location,
                        purchase_date=purchase_date,
                        expiry_date=expiry,
                        expiry_is_estimated=expiry is not None,
                        is_active=True,
                        added_by="shopping_list",
                        notes="Converted from shopping list",
                    )
                    db.add(new_item)
                    if request.merge_with_existing:
                        inventory.append(new_item)
                    outcome = "created"

                if request.remove_from_list:
                    db.delete(item)
                else:
                    item.in_inventory = True
                db.commit()
                results[outcome] += 1
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Error converting item {item_name}: {e}")
                results["errors"].append(item_name)

        results["total"] = results["created"] + results["merged"]
        logger.info(
            f"Converted {results['total']} items of shopping list {shopping_list.id} to inventory"
        )
        return results


inventory_service = InventoryService()
