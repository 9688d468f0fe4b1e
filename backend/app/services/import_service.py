"""
Imports into a shopping list: due staples, meal plan ingredients and
ingredients previously excluded because the inventory covered them.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Set

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.dependencies import get_owned
from app.models.inventory import InventoryItem
from app.models.meal_plan import MealPlan
from app.models.shopping_list import (
    ShoppingList,
    ShoppingListExcludedItem,
    ShoppingListItem,
    ShoppingListMealPlan,
    StapleImport,
)
from app.models.staple import Staple
from app.models.user import User
from app.services import dedup_service
from app.services.category_service import category_service
from app.services.normalization import find_inventory_match, normalize_ingredient_name
from app.services.shopping_list_service import ensure_draft, shopping_list_service
from app.services.staples_service import enrich_staple, is_preselected, sort_by_due_status
from app.services.units import (
    convert_between,
    convert_to_metric,
    round_quantity,
)

logger = logging.getLogger(__name__)


def _imported_staple_ids(shopping_list: ShoppingList) -> Set[int]:
    ids = {record.staple_id for record in shopping_list.staple_imports}
    for item in shopping_list.items:
        for detail in item.source_details or []:
            if detail.get("type") == "staple" and detail.get("id") is not None:
                ids.add(detail["id"])
    return ids


def _available_in_unit(inventory_item: InventoryItem, unit: str) -> Optional[float]:
    """Inventory quantity expressed in `unit`, None when not comparable."""
    return convert_between(inventory_item.quantity, inventory_item.unit, unit)


class ImportService:
    # --- Staples ---
    def staple_candidates(self, db: Session, user: User, shopping_list: ShoppingList) -> Dict[str, Any]:
        staples = db.query(Staple).filter(Staple.user_id == user.id).all()
        imported = _imported_staple_ids(shopping_list)

        candidates = []
        for staple in staples:
            data = enrich_staple(staple)
            data["already_imported"] = staple.id in imported
            data["preselected"] = is_preselected(data, data["already_imported"])
            candidates.append(data)

        candidates = sort_by_due_status(candidates)
        return {
            "staples": candidates,
            "preselected_count": sum(1 for c in candidates if c["preselected"]),
        }

    def import_staples(
        self,
        db: Session,
        user: User,
        shopping_list: ShoppingList,
        staple_ids: List[int],
        force_add: bool = False,
    ) -> Dict[str, Any]:
        ensure_draft(shopping_list, "import items")

        staples = (
            db.query(Staple)
            .filter(Staple.user_id == user.id, Staple.id.in_(staple_ids))
            .all()
        )
        if len(staples) != len(set(staple_ids)):
            raise HTTPException(status_code=404, detail="Staple not found")

        imported = _imported_staple_ids(shopping_list)
        categories = category_service.categorize_many(
            db, user, [s.item_name for s in staples if not s.category]
        )
        order = shopping_list_service.next_display_order(db, shopping_list.id)

        created, skipped = [], []
        for staple in staples:
            was_imported = staple.id in imported
            if was_imported and not force_add:
                skipped.append(staple.item_name)
                continue

            converted = convert_to_metric(staple.quantity, staple.unit)
            quantity = round_quantity(converted.quantity, converted.unit)
            item = ShoppingListItem(
                shopping_list_id=shopping_list.id,
                item_name=staple.item_name,
                quantity=quantity,
                unit=converted.unit,
                category=staple.category or categories.get(staple.item_name),
                source="staple",
                source_details=[
                    {
                        "type": "staple",
                        "id": staple.id,
                        "name": staple.item_name,
                        "quantity": quantity,
                        "unit": converted.unit,
                    }
                ],
                display_order=order,
            )
            order += 1
            db.add(item)
            db.add(
                StapleImport(
                    staple_id=staple.id,
                    shopping_list_id=shopping_list.id,
                    was_force_add=was_imported,
                )
            )
            created.append(item)

        shopping_list.updated_at = datetime.utcnow()
        db.commit()
        for item in created:
            db.refresh(item)

        logger.info(
            f"Imported {len(created)} staples into list {shopping_list.id}, skipped {len(skipped)}"
        )
        return {
            "imported_count": len(created),
            "skipped_count": len(skipped),
            "skipped": skipped,
            "items": created,
        }

    # --- Meal plans ---
    def meal_plan_candidates(self, db: Session, user: User, shopping_list: ShoppingList) -> List[Dict[str, Any]]:
        plans = (
            db.query(MealPlan)
            .filter(MealPlan.user_id == user.id, MealPlan.status == "Finalized")
            .order_by(MealPlan.week_start_date.desc())
            .all()
        )
        linked = {link.meal_plan_id for link in shopping_list.meal_plan_links}
        return [
            {
                "id": plan.id,
                "weekStartDate": plan.week_start_date,
                "weekEndDate": plan.week_end_date,
                "status": plan.status,
                "mealCount": len(plan.meals),
                "leftoverCount": sum(1 for m in plan.meals if m.is_leftover),
                "alreadyImported": plan.id in linked,
            }
            for plan in plans
        ]

    def _aggregate_ingredients(self, plan: MealPlan) -> Dict[str, Any]:
        """Scaled, metric ingredient totals keyed by "name|unit"."""
        aggregated: Dict[str, Dict[str, Any]] = {}
        meals_processed = leftovers_skipped = 0

        for meal in plan.meals:
            if meal.is_leftover:
                leftovers_skipped += 1
                continue
            recipe = meal.recipe
            if recipe is None:
                continue
            meals_processed += 1

            recipe_servings = recipe.servings or settings.DEFAULT_RECIPE_SERVINGS
            scale = (meal.servings or recipe_servings) / recipe_servings

            for ingredient in recipe.ingredients:
                converted = convert_to_metric(ingredient.quantity * scale, ingredient.unit)
                name = ingredient.ingredient_name.strip()
                key = f"{normalize_ingredient_name(name)}|{converted.unit.lower()}"
                entry = aggregated.setdefault(
                    key,
                    {
                        "name": name,
                        "quantity": 0.0,
                        "unit": converted.unit,
                        "category": ingredient.category,
                        "sources": [],
                        "recipe_ids": set(),
                    },
                )
                entry["quantity"] += converted.quantity
                entry["category"] = entry["category"] or ingredient.category
                entry["recipe_ids"].add(recipe.id)
                entry["sources"].append(
                    {
                        "type": "recipe",
                        "id": recipe.id,
                        "name": recipe.recipe_name,
                        "quantity": round(converted.quantity, 2),
                        "unit": converted.unit,
                        "mealPlanId": plan.id,
                    }
                )

        return {
            "ingredients": aggregated,
            "meals_processed": meals_processed,
            "leftovers_skipped": leftovers_skipped,
        }

    def import_meal_plan(
        self,
        db: Session,
        user: User,
        shopping_list: ShoppingList,
        meal_plan_id: int,
        check_inventory: bool = True,
        auto_deduplicate: bool = True,
        use_ai: bool = False,
    ) -> Dict[str, Any]:
        plan = get_owned(db, MealPlan, meal_plan_id, user, "Meal plan")
        if plan.status != "Finalized":
            raise HTTPException(status_code=400, detail="Only finalized meal plans can be imported")
        ensure_draft(shopping_list, "import items")

        aggregated = self._aggregate_ingredients(plan)
        inventory = (
            db.query(InventoryItem)
            .filter(InventoryItem.user_id == user.id, InventoryItem.is_active.is_(True))
            .all()
            if check_inventory
            else []
        )

        to_create = []
        excluded_count = 0
        for entry in aggregated["ingredients"].values():
            match = find_inventory_match(entry["name"], inventory) if inventory else None
            if match is not None:
                available = _available_in_unit(match, entry["unit"])
                if available is not None and available >= entry["quantity"]:
                    db.add(
                        ShoppingListExcludedItem(
                            shopping_list_id=shopping_list.id,
                            item_name=entry["name"],
                            recipe_quantity=round(entry["quantity"], 2),
                            recipe_unit=entry["unit"],
                            inventory_quantity=match.quantity,
                            inventory_item_id=match.id,
                        )
                    )
                    excluded_count += 1
                    continue
            to_create.append(entry)

        categories = category_service.categorize_many(
            db, user, [e["name"] for e in to_create if not e["category"]]
        )
        order = shopping_list_service.next_display_order(db, shopping_list.id)
        for entry in to_create:
            db.add(
                ShoppingListItem(
                    shopping_list_id=shopping_list.id,
                    item_name=entry["name"],
                    quantity=round_quantity(entry["quantity"], entry["unit"]),
                    unit=entry["unit"],
                    category=entry["category"] or categories.get(entry["name"]),
                    source="recipe",
                    source_details=entry["sources"],
                    is_consolidated=len(entry["recipe_ids"]) > 1,
                    display_order=order,
                )
            )
            order += 1

        already_linked = any(link.meal_plan_id == plan.id for link in shopping_list.meal_plan_links)
        if not already_linked:
            db.add(ShoppingListMealPlan(shopping_list_id=shopping_list.id, meal_plan_id=plan.id))

        shopping_list.updated_at = datetime.utcnow()
        db.commit()
        logger.info(
            f"Imported meal plan {plan.id} into list {shopping_list.id}: "
            f"{len(to_create)} items, {excluded_count} excluded"
        )

        duplicates_removed = 0
        if auto_deduplicate:
            try:
                combined = dedup_service.combine_all(db, shopping_list, use_ai=use_ai)
                duplicates_removed = combined.total_deleted
            except SQLAlchemyError as e:
                db.rollback()
                logger.warning(f"Auto-deduplication after import failed: {e}")

        db.refresh(shopping_list)
        items = list(shopping_list.items)
        return {
            "imported_count": len(to_create),
            "excluded_count": excluded_count,
            "meals_processed": aggregated["meals_processed"],
            "leftover_meals_skipped": aggregated["leftovers_skipped"],
            "duplicates_removed": duplicates_removed,
            "final_item_count": len(items),
            "items": items,
        }

    # --- Excluded items ---
    def excluded_items(self, db: Session, shopping_list: ShoppingList) -> List[ShoppingListExcludedItem]:
        return (
            db.query(ShoppingListExcludedItem)
            .filter(
                ShoppingListExcludedItem.shopping_list_id == shopping_list.id,
                ShoppingListExcludedItem.added_back_at.is_(None),
            )
            .order_by(ShoppingListExcludedItem.item_name)
            .all()
        )

    def add_back(
        self,
        db: Session,
        shopping_list: ShoppingList,
        excluded_item_id: int,
        quantity: Optional[float] = None,
    ) -> ShoppingListItem:
        excluded = (
            db.query(ShoppingListExcludedItem)
            .filter(
                ShoppingListExcludedItem.id == excluded_item_id,
                ShoppingListExcludedItem.shopping_list_id == shopping_list.id,
            )
            .first()
        )
        if not excluded:
            raise HTTPException(status_code=404, detail="Excluded item not found")
        if excluded.added_back_at is not None:
            raise HTTPException(status_code=400, detail="Item has already been added back")
        ensure_draft(shopping_list, "add items back")

        amount = quantity if quantity is not None else excluded.recipe_quantity
        item = ShoppingListItem(
            shopping_list_id=shopping_list.id,
            item_name=excluded.item_name,
            quantity=amount,
            unit=excluded.recipe_unit,
            source="recipe",
            source_details=[
                {
                    "type": "recipe",
                    "name": excluded.item_name,
                    "quantity": amount,
                    "unit": excluded.recipe_unit,
                }
            ],
            custom_note="Added back from inventory exclusion",
            display_order=shopping_list_service.next_display_order(db, shopping_list.id),
        )
        db.add(item)
        excluded.added_back_at = datetime.utcnow()
        excluded.added_back_quantity = amount
        shopping_list.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(item)
        logger.info(f"Added back excluded item '{excluded.item_name}' to list {shopping_list.id}")
        return item


import_service = ImportService()
