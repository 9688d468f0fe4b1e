"""
Database models for the Meal Planner API.

All SQLAlchemy models are imported here for Alembic migrations.
"""

from app.models.user import User, FamilyProfile
from app.models.recipe import Recipe, RecipeIngredient
from app.models.meal_plan import MealPlan, Meal
from app.models.inventory import InventoryItem
from app.models.staple import Staple
from app.models.product import Product
from app.models.category import ShoppingListCategory
from app.models.shopping_list import (
    ShoppingList,
    ShoppingListItem,
    ShoppingListMealPlan,
    ShoppingListExcludedItem,
    StapleImport,
)
from app.models.chat_history import Conversation, Message

__all__ = [
    "User",
    "FamilyProfile",
    "Recipe",
    "RecipeIngredient",
    "MealPlan",
    "Meal",
    "InventoryItem",
    "Staple",
    "Product",
    "ShoppingListCategory",
    "ShoppingList",
    "ShoppingListItem",
    "ShoppingListMealPlan",
    "ShoppingListExcludedItem",
    "StapleImport",
    "Conversation",
    "Message",
]
