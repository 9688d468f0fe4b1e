"""
Duplicate detection and consolidation for shopping list items.

Unpurchased items are grouped by their normalized name. A group can be
merged into one row: the oldest item survives with the combined quantity and
the others are deleted in the same transaction.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.shopping_list import ShoppingList, ShoppingListItem
from app.services import llm_service
from app.services.normalization import normalize_ingredient_name
from app.services.units import (
    ConversionResult,
    are_units_compatible,
    combine_quantities,
    convert_to_metric,
    get_unit_category,
    normalize_unit,
    normalize_and_round,
)

logger = logging.getLogger(__name__)

HIGH = "HIGH"
MEDIUM = "MEDIUM"
LOW = "LOW"


@dataclass
class DuplicateGroup:
    normalized_name: str
    items: List[ShoppingListItem]
    can_combine: bool
    confidence: str
    combined_result: Optional[ConversionResult] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "normalizedName": self.normalized_name,
            "items": [
                {
                    "id": item.id,
                    "itemName": item.item_name,
                    "quantity": item.quantity,
                    "unit": item.unit,
                    "source": item.source,
                    "category": item.category,
                }
                for item in self.items
            ],
            "canCombine": self.can_combine,
            "confidence": self.confidence,
            "needsAI": not self.can_combine,
            "combinedResult": self.combined_result.to_dict() if self.combined_result else None,
        }


@dataclass
class MergeResult:
    previous_item_count: int
    new_item_count: int
    deleted_count: int
    merged_name: Optional[str] = None
    merged_quantity: Optional[float] = None
    merged_unit: Optional[str] = None
    combined_item: Optional[ShoppingListItem] = None


@dataclass
class CombineAllResult:
    groups_processed: int = 0
    groups_combined: int = 0
    total_deleted: int = 0
    failures: List[Dict[str, Any]] = field(default_factory=list)


def _group_units(items: List[ShoppingListItem]) -> List[str]:
    """Units to sum with; differing aliases of a count unit share its standard name."""
    units = [item.unit for item in items]
    if len({(u or "").strip().lower() for u in units}) == 1:
        return units
    return [normalize_unit(u) if get_unit_category(u) == "count" else u for u in units]


def _sum_group(items: List[ShoppingListItem]) -> Optional[ConversionResult]:
    units = _group_units(items)
    result = convert_to_metric(items[0].quantity, units[0])
    for item, unit in zip(items[1:], units[1:]):
        step = combine_quantities(result.quantity, result.unit, item.quantity, unit)
        if step is None:
            return None
        step.was_converted = step.was_converted or result.was_converted
        result = step
    return result


def _classify(items: List[ShoppingListItem]):
    """(can_combine, confidence, combined_result) for a group."""
    units = {(item.unit or "").strip().lower() for item in items}
    group_units = _group_units(items)
    compatible = all(are_units_compatible(group_units[0], u) for u in group_units[1:])
    combined = _sum_group(items) if compatible else None

    if combined is None:
        return False, LOW, None
    if len(units) == 1:
        return True, HIGH, combined
    return True, MEDIUM, combined


def find_duplicates(items: Iterable[ShoppingListItem]) -> List[DuplicateGroup]:
    """Group unpurchased items by normalized name and drop singletons."""
    groups: Dict[str, List[ShoppingListItem]] = {}
    for item in items:
        if item.is_purchased:
            continue
        key = normalize_ingredient_name(item.item_name)
        if key:
            groups.setdefault(key, []).append(item)

    duplicates = []
    for key, members in groups.items():
        if len(members) < 2:
            continue
        can_combine, confidence, combined = _classify(members)
        duplicates.append(DuplicateGroup(key, members, can_combine, confidence, combined))

    duplicates.sort(key=lambda g: g.normalized_name)
    return duplicates


def dismiss_groups(groups: List[DuplicateGroup], dismissed_keys: Iterable[str]) -> List[DuplicateGroup]:
    """Hide groups the client dismissed. Nothing is persisted."""
    dismissed = {normalize_ingredient_name(k) for k in dismissed_keys if k}
    return [g for g in groups if g.normalized_name not in dismissed]


def _merge_source_details(items: List[ShoppingListItem]) -> List[Dict[str, Any]]:
    details: List[Dict[str, Any]] = []
    for item in items:
        if item.source_details:
            details.extend(item.source_details)
        else:
            details.append(
                {
                    "type": item.source or "manual",
                    "name": item.item_name,
                    "quantity": item.quantity,
                    "unit": item.unit,
                }
            )
    return details


def _combined_value(items: List[ShoppingListItem], use_ai: bool):
    """(quantity, unit, ai_name) for a set of items."""
    combined = _sum_group(items)
    if combined is not None:
        return combined.quantity, combined.unit, None

    if not use_ai:
        raise HTTPException(
            status_code=400,
            detail="Items have incompatible units. Set useAI: true to use AI-powered combination.",
        )

    logger.info(f"Using AI to combine {len(items)} items with incompatible units")
    try:
        answer = llm_service.combine_items_semantically(
            [{"name": i.item_name, "quantity": i.quantity, "unit": i.unit} for i in items]
        )
    except llm_service.LLMError as e:
        logger.error(f"AI combination failed: {e}")
        raise HTTPException(
            status_code=500,
            detail="AI-powered combination failed. Please try manual combination.",
        )

    if not answer:
        raise HTTPException(
            status_code=400, detail="AI could not determine how to combine these items"
        )
    return answer["quantity"], answer["unit"], answer.get("itemName")


def merge_items(
    db: Session, shopping_list: ShoppingList, item_ids: List[int], use_ai: bool = False
) -> MergeResult:
    """
    Merge the given items of a list into one.

    Ids that no longer exist are ignored; with fewer than two items left the
    call is a successful no-op. Update and deletes share one commit.
    """
    previous_count = (
        db.query(ShoppingListItem)
        .filter(ShoppingListItem.shopping_list_id == shopping_list.id)
        .count()
    )
    items = (
        db.query(ShoppingListItem)
        .filter(
            ShoppingListItem.shopping_list_id == shopping_list.id,
            ShoppingListItem.id.in_(item_ids),
        )
        .order_by(ShoppingListItem.created_at, ShoppingListItem.id)
        .all()
    )

    if len(items) < 2:
        logger.info(
            f"Merge on list {shopping_list.id} found {len(items)} of {len(item_ids)} items, nothing to do"
        )
        return MergeResult(previous_count, previous_count, 0)

    quantity, unit, ai_name = _combined_value(items, use_ai)

    keep, *remove = items
    longest_name = max(items, key=lambda i: len(i.item_name)).item_name
    notes = [i.custom_note for i in items if i.custom_note]

    try:
        keep.item_name = ai_name or longest_name
        keep.quantity, keep.unit = normalize_and_round(quantity, unit)
        keep.category = next((i.category for i in items if i.category), None)
        keep.source_details = _merge_source_details(items)
        keep.custom_note = "; ".join(notes) or None
        keep.is_consolidated = True
        keep.updated_at = datetime.utcnow()

        for item in remove:
            db.delete(item)
        shopping_list.updated_at = datetime.utcnow()
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"Merge on list {shopping_list.id} failed", exc_info=True)
        raise

    db.refresh(keep)
    logger.info(
        f"Combined {len(items)} items into '{keep.item_name}' ({keep.quantity} {keep.unit}) "
        f"on list {shopping_list.id}"
    )
    return MergeResult(
        previous_item_count=previous_count,
        new_item_count=previous_count - len(remove),
        deleted_count=len(remove),
        merged_name=keep.item_name,
        merged_quantity=keep.quantity,
        merged_unit=keep.unit,
        combined_item=keep,
    )


def _unpurchased_items(db: Session, shopping_list: ShoppingList) -> List[ShoppingListItem]:
    return (
        db.query(ShoppingListItem)
        .filter(
            ShoppingListItem.shopping_list_id == shopping_list.id,
            ShoppingListItem.is_purchased.is_(False),
        )
        .order_by(ShoppingListItem.item_name)
        .all()
    )


def list_duplicates(db: Session, shopping_list: ShoppingList) -> List[DuplicateGroup]:
    return find_duplicates(_unpurchased_items(db, shopping_list))


def combine_all(db: Session, shopping_list: ShoppingList, use_ai: bool = False) -> CombineAllResult:
    """
    Merge every duplicate group, one group at a time.

    A failing group is recorded and skipped; groups merged before it stay merged.
    """
    result = CombineAllResult()
    groups = list_duplicates(db, shopping_list)

    for group in groups:
        if not group.can_combine and not use_ai:
            continue
        result.groups_processed += 1
        ids = [item.id for item in group.items]
        try:
            merged = merge_items(db, shopping_list, ids, use_ai=use_ai)
        except HTTPException as e:
            db.rollback()
            result.failures.append({"normalizedName": group.normalized_name, "error": e.detail})
            continue
        except SQLAlchemyError:
            db.rollback()
            result.failures.append(
                {"normalizedName": group.normalized_name, "error": "Failed to combine items"}
            )
            continue

        if merged.deleted_count:
            result.groups_combined += 1
            result.total_deleted += merged.deleted_count

    logger.info(
        f"Combine all on list {shopping_list.id}: {result.groups_combined} groups, "
        f"{result.total_deleted} items removed, {len(result.failures)} failures"
    )
    return result
