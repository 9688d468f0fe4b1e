"""
Shopping list categories: default seeding, ordering and suggestions.
"""

import logging
from typing import List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.category import ShoppingListCategory
from app.models.user import User
from app.services import llm_service
from app.services.normalization import suggest_category_by_keywords
from app.services.units import DEFAULT_CATEGORIES

logger = logging.getLogger(__name__)

FALLBACK_CATEGORY = "Other"

# Keyword categories -> names the user might have renamed them to
_ALIASES = {
    "Produce": ("fruit & veg", "fruit and veg", "vegetables", "fresh produce"),
    "Dairy & Eggs": ("dairy", "eggs", "dairy and eggs"),
    "Meat & Seafood": ("meat", "meat & fish", "fish", "seafood"),
    "Canned Goods": ("tins", "canned", "tinned goods"),
    "Condiments & Sauces": ("condiments", "sauces"),
    "Pantry": ("cupboard", "dry goods", "store cupboard"),
    "Beverages": ("drinks",),
}


class CategoryService:
    def list_categories(self, db: Session, user: User) -> List[ShoppingListCategory]:
        """User categories ordered for display; defaults are seeded on first use."""
        categories = (
            db.query(ShoppingListCategory)
            .filter(ShoppingListCategory.user_id == user.id)
            .order_by(ShoppingListCategory.display_order, ShoppingListCategory.id)
            .all()
        )
        if categories:
            return categories

        logger.info(f"Seeding default shopping categories for user {user.id}")
        for name, order in DEFAULT_CATEGORIES:
            db.add(
                ShoppingListCategory(
                    user_id=user.id, name=name, display_order=order, is_default=True
                )
            )
        db.commit()
        return self.list_categories(db, user)

    def find_by_name(
        self, db: Session, user: User, name: str, exclude_id: Optional[int] = None
    ) -> Optional[ShoppingListCategory]:
        query = db.query(ShoppingListCategory).filter(
            ShoppingListCategory.user_id == user.id,
            func.lower(ShoppingListCategory.name) == name.strip().lower(),
        )
        if exclude_id is not None:
            query = query.filter(ShoppingListCategory.id != exclude_id)
        return query.first()

    def create(self, db: Session, user: User, name: str) -> ShoppingListCategory:
        self.list_categories(db, user)
        name = name.strip()
        if self.find_by_name(db, user, name):
            raise HTTPException(status_code=400, detail="A category with this name already exists")

        max_order = (
            db.query(func.max(ShoppingListCategory.display_order))
            .filter(
                ShoppingListCategory.user_id == user.id,
                ShoppingListCategory.display_order < 99,
            )
            .scalar()
        )
        category = ShoppingListCategory(
            user_id=user.id,
            name=name,
            display_order=(max_order if max_order is not None else -1) + 1,
            is_default=False,
        )
        db.add(category)
        db.commit()
        db.refresh(category)
        return category

    def rename(self, db: Session, user: User, category: ShoppingListCategory, name: str) -> None:
        name = name.strip()
        if self.find_by_name(db, user, name, exclude_id=category.id):
            raise HTTPException(status_code=400, detail="A category with this name already exists")
        category.name = name

    def reorder(self, db: Session, user: User, category_ids: List[int]) -> List[ShoppingListCategory]:
        categories = {c.id: c for c in self.list_categories(db, user)}
        unknown = [cid for cid in category_ids if cid not in categories]
        if unknown:
            raise HTTPException(status_code=400, detail="Some categories do not belong to this user")

        for order, category_id in enumerate(category_ids):
            categories[category_id].display_order = order
        db.commit()
        return self.list_categories(db, user)

    def match_user_category(self, name: Optional[str], user_categories: List[str]) -> Optional[str]:
        """Map a generic category name onto one of the user's categories."""
        if not name:
            return None
        by_lower = {c.lower(): c for c in user_categories}
        if name.lower() in by_lower:
            return by_lower[name.lower()]
        for alias in _ALIASES.get(name, ()):
            if alias in by_lower:
                return by_lower[alias]
        return None

    def suggest(
        self, db: Session, user: User, item_name: str, use_ai: bool = False
    ) -> Tuple[str, str]:
        """
        Suggest a category for an item.

        Returns (category, confidence) where confidence is "high" for a
        keyword hit, "medium" for an AI answer and "low" for the fallback.
        """
        names = [c.name for c in self.list_categories(db, user)]

        matched = self.match_user_category(suggest_category_by_keywords(item_name), names)
        if matched:
            return matched, "high"

        if use_ai:
            answer = llm_service.suggest_categories([item_name], names)
            if answer:
                suggestion = next(iter(answer.values()))
                logger.info(f"AI suggested category '{suggestion}' for '{item_name}'")
                return suggestion, "medium"

        fallback = self.match_user_category(FALLBACK_CATEGORY, names) or FALLBACK_CATEGORY
        return fallback, "low"

    def categorize_many(self, db: Session, user: User, item_names: List[str]) -> dict:
        """Keyword categories for many names at once; unmatched names are left out."""
        names = [c.name for c in self.list_categories(db, user)]
        result = {}
        for item_name in item_names:
            matched = self.match_user_category(suggest_category_by_keywords(item_name), names)
            if matched:
                result[item_name] = matched
        return result


category_service = CategoryService()
