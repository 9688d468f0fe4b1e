"""
Shopping list database models.

A ShoppingList owns its items, the ingredients excluded during meal plan
import, the staple import records and the links to the meal plans it was
generated from. Deleting a list deletes all of them.
"""

from datetime import datetime
from sqlalchemy import (
    Column,
    Integer,
    String,
    Float,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    JSON,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from app.database import Base

LIST_STATUSES = ("Draft", "Finalized", "Archived")
ITEM_SOURCES = ("manual", "recipe", "staple")
ITEM_PRIORITIES = ("Low", "Medium", "High")


class ShoppingList(Base):
    """Shopping list with a one-directional Draft -> Finalized -> Archived lifecycle."""

    __tablename__ = "shopping_lists"
    __table_args__ = (
        Index("idx_shopping_list_user_status", "user_id", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    notes = Column(String, nullable=True)
    status = Column(String, nullable=False, default="Draft")
    category_order = Column(JSON, default=list, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    finalized_at = Column(DateTime, nullable=True)
    archived_at = Column(DateTime, nullable=True)

    # Relationships
    user = relationship("User", back_populates="shopping_lists")
    items = relationship(
        "ShoppingListItem",
        back_populates="shopping_list",
        cascade="all, delete-orphan",
        order_by="ShoppingListItem.display_order",
    )
    excluded_items = relationship(
        "ShoppingListExcludedItem", back_populates="shopping_list", cascade="all, delete-orphan"
    )
    meal_plan_links = relationship(
        "ShoppingListMealPlan", back_populates="shopping_list", cascade="all, delete-orphan"
    )
    staple_imports = relationship(
        "StapleImport", back_populates="shopping_list", cascade="all, delete-orphan"
    )


class ShoppingListItem(Base):
    """Single line of a shopping list."""

    __tablename__ = "shopping_list_items"
    __table_args__ = (
        Index("idx_item_list_order", "shopping_list_id", "display_order"),
        Index("idx_item_list_purchased", "shopping_list_id", "is_purchased"),
    )

    id = Column(Integer, primary_key=True, index=True)
    shopping_list_id = Column(
        Integer, ForeignKey("shopping_lists.id", ondelete="CASCADE"), nullable=False, index=True
    )
    item_name = Column(String, nullable=False)
    original_item_name = Column(String, nullable=True)  # Set on first rename
    quantity = Column(Float, nullable=False, default=1.0)
    unit = Column(String, nullable=False, default="piece")
    category = Column(String, nullable=True)
    source = Column(String, nullable=False, default="manual")  # manual, recipe, staple
    # [{"type": "recipe", "id": 3, "name": "Chili", "quantity": 400, "unit": "g", "mealPlanId": 2}]
    source_details = Column(JSON, default=list, nullable=False)
    custom_note = Column(String, nullable=True)
    priority = Column(String, nullable=False, default="Medium")

    is_purchased = Column(Boolean, default=False, nullable=False)
    purchased_at = Column(DateTime, nullable=True)
    is_consolidated = Column(Boolean, default=False, nullable=False)
    in_inventory = Column(Boolean, default=False, nullable=False)
    display_order = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    shopping_list = relationship("ShoppingList", back_populates="items")


class ShoppingListMealPlan(Base):
    """Link between a shopping list and a meal plan imported into it."""

    __tablename__ = "shopping_list_meal_plans"
    __table_args__ = (
        UniqueConstraint("shopping_list_id", "meal_plan_id", name="uq_list_meal_plan"),
    )

    id = Column(Integer, primary_key=True, index=True)
    shopping_list_id = Column(
        Integer, ForeignKey("shopping_lists.id", ondelete="CASCADE"), nullable=False, index=True
    )
    meal_plan_id = Column(
        Integer, ForeignKey("meal_plans.id", ondelete="CASCADE"), nullable=False, index=True
    )
    imported_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    shopping_list = relationship("ShoppingList", back_populates="meal_plan_links")
    meal_plan = relationship("MealPlan", back_populates="shopping_list_links")


class ShoppingListExcludedItem(Base):
    """Ingredient left off a list because inventory already held enough of it."""

    __tablename__ = "shopping_list_excluded_items"

    id = Column(Integer, primary_key=True, index=True)
    shopping_list_id = Column(
        Integer, ForeignKey("shopping_lists.id", ondelete="CASCADE"), nullable=False, index=True
    )
    item_name = Column(String, nullable=False)
    recipe_quantity = Column(Float, nullable=False)
    recipe_unit = Column(String, nullable=False)
    inventory_quantity = Column(Float, nullable=False)
    inventory_item_id = Column(
        Integer, ForeignKey("inventory_items.id", ondelete="SET NULL"), nullable=True
    )
    added_back_at = Column(DateTime, nullable=True)
    added_back_quantity = Column(Float, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    shopping_list = relationship("ShoppingList", back_populates="excluded_items")
    inventory_item = relationship("InventoryItem", back_populates="excluded_from")


class StapleImport(Base):
    """Record of a staple imported into a shopping list."""

    __tablename__ = "staple_imports"

    id = Column(Integer, primary_key=True, index=True)
    staple_id = Column(Integer, ForeignKey("staples.id", ondelete="CASCADE"), nullable=False, index=True)
    shopping_list_id = Column(
        Integer, ForeignKey("shopping_lists.id", ondelete="CASCADE"), nullable=False, index=True
    )
    imported_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    was_force_add = Column(Boolean, default=False, nullable=False)
    finalized_at = Column(DateTime, nullable=True)

    staple = relationship("Staple", back_populates="imports")
    shopping_list = relationship("ShoppingList", back_populates="staple_imports")
