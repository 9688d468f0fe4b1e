"""
Dashboard Service composing the home screen summary from five independent reads.
"""

import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.models.inventory import InventoryItem
from app.models.meal_plan import DAYS_OF_WEEK, MealPlan
from app.models.recipe import Recipe
from app.models.shopping_list import ShoppingList
from app.models.staple import Staple
from app.models.user import FamilyProfile, User
from app.services.staples_service import DUE_FOR_IMPORT, calculate_due_status, calculate_next_due_date

logger = logging.getLogger(__name__)

SHOPPING_BUCKETS = ("Fresh", "Meat & Fish", "Dairy", "Cupboard")
EXPIRING_LIMIT = 5


def shopping_bucket(category: Optional[str]) -> str:
    lower = (category or "").lower()
    if "fresh" in lower or "produce" in lower:
        return "Fresh"
    if "meat" in lower or "fish" in lower or "seafood" in lower:
        return "Meat & Fish"
    if "dairy" in lower:
        return "Dairy"
    return "Cupboard"


def week_bounds(today: date):
    start = today - timedelta(days=today.weekday())
    return start, start + timedelta(days=6)


class DashboardService:
    def get_profile_summary(self, db: Session, user: User) -> Dict[str, Any]:
        profile = (
            db.query(FamilyProfile)
            .filter(FamilyProfile.user_id == user.id, FamilyProfile.is_main_user.is_(True))
            .first()
        )
        full_name = profile.profile_name.strip() if profile and profile.profile_name else ""
        parts = full_name.split()
        first_name = parts[0] if parts else user.email.split("@")[0]
        family_name = f"{' '.join(parts[1:])} Family" if len(parts) > 1 else "Family"
        return {
            "firstName": first_name,
            "familyName": family_name,
            "initials": (first_name[:1] + family_name[:1]).upper(),
            "email": user.email,
            "profileId": profile.id if profile else None,
        }

    def get_week_summary(self, db: Session, user: User, today: date) -> Dict[str, Any]:
        start, end = week_bounds(today)
        plan = (
            db.query(MealPlan)
            .filter(
                MealPlan.user_id == user.id,
                MealPlan.week_start_date >= start,
                MealPlan.week_start_date <= end,
            )
            .order_by(MealPlan.id.desc())
            .first()
        )

        dinners = {}
        if plan:
            for meal in plan.meals:
                if meal.meal_type == "Dinner" and meal.day_of_week not in dinners:
                    dinners[meal.day_of_week] = meal

        weekly_meals = []
        for index, day in enumerate(DAYS_OF_WEEK):
            day_date = start + timedelta(days=index)
            meal = dinners.get(day)
            name = None
            if meal:
                name = meal.recipe.recipe_name if meal.recipe else meal.recipe_name
            weekly_meals.append(
                {
                    "day": day,
                    "date": day_date.isoformat(),
                    "isToday": day_date == today,
                    "dinner": name,
                    "recipeId": meal.recipe_id if meal else None,
                    "planned": bool(name),
                }
            )

        return {
            "weekRange": {
                "start": start.isoformat(),
                "end": end.isoformat(),
                "label": f"Week of {start.day}-{end.day} {end.strftime('%B')}",
            },
            "weeklyMeals": weekly_meals,
            "plannedCount": sum(1 for m in weekly_meals if m["planned"]),
            "mealPlanId": plan.id if plan else None,
        }

    def get_shopping_summary(self, db: Session, user: User) -> Dict[str, Any]:
        shopping_list = (
            db.query(ShoppingList)
            .filter(ShoppingList.user_id == user.id, ShoppingList.status != "Archived")
            .order_by(ShoppingList.updated_at.desc(), ShoppingList.id.desc())
            .first()
        )
        items = shopping_list.items if shopping_list else []

        counts = {bucket: 0 for bucket in SHOPPING_BUCKETS}
        for item in items:
            counts[shopping_bucket(item.category)] += 1

        return {
            "id": shopping_list.id if shopping_list else None,
            "name": shopping_list.name if shopping_list else None,
            "total": len(items),
            "purchased": sum(1 for i in items if i.is_purchased),
            "categories": [{"name": b, "count": counts[b]} for b in SHOPPING_BUCKETS],
        }

    def get_expiring_items(self, db: Session, user: User, today: date) -> List[Dict[str, Any]]:
        horizon = today + timedelta(days=settings.EXPIRING_SOON_DAYS)
        items = (
            db.query(InventoryItem)
            .filter(
                InventoryItem.user_id == user.id,
                InventoryItem.is_active.is_(True),
                InventoryItem.expiry_date.isnot(None),
                InventoryItem.expiry_date >= today,
                InventoryItem.expiry_date <= horizon,
            )
            .order_by(InventoryItem.expiry_date.asc())
            .limit(EXPIRING_LIMIT)
            .all()
        )
        return [
            {
                "id": item.id,
                "name": item.item_name,
                "quantity": f"{item.quantity:g} {item.unit}".strip(),
                "expiryDate": item.expiry_date.isoformat(),
                "daysUntilExpiry": (item.expiry_date - today).days,
            }
            for item in items
        ]

    def get_counts(self, db: Session, user: User, today: date) -> Dict[str, int]:
        staples = (
            db.query(Staple)
            .filter(Staple.user_id == user.id, Staple.is_active.is_(True))
            .all()
        )
        staples_due = sum(
            1
            for s in staples
            if calculate_due_status(calculate_next_due_date(s.last_added_date, s.frequency), today)
            in DUE_FOR_IMPORT
        )
        return {
            "recipes": db.query(Recipe)
            .filter(Recipe.user_id == user.id, Recipe.is_archived.is_(False))
            .count(),
            "staplesDue": staples_due,
            "inventoryItems": db.query(InventoryItem)
            .filter(InventoryItem.user_id == user.id, InventoryItem.is_active.is_(True))
            .count(),
            "familyMembers": db.query(FamilyProfile)
            .filter(FamilyProfile.user_id == user.id)
            .count(),
        }

    def get_dashboard(self, db: Session, user: User, today: Optional[date] = None) -> Dict[str, Any]:
        """
        Run the five reads one after another on the request session and
        merge them into a single payload.
        """
        today = today or date.today()
        week = self.get_week_summary(db, user, today)
        return {
            "user": self.get_profile_summary(db, user),
            **week,
            "shoppingList": self.get_shopping_summary(db, user),
            "expiringItems": self.get_expiring_items(db, user, today),
            "counts": self.get_counts(db, user, today),
        }


dashboard_service = DashboardService()
