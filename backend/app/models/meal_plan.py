"""
MealPlan and Meal database models.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Date, DateTime, Boolean, Text, ForeignKey, Index
from sqlalchemy.orm import relationship

from app.database import Base

MEAL_PLAN_STATUSES = ("Draft", "Finalized", "Archived")
DAYS_OF_WEEK = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MEAL_TYPES = ("Breakfast", "Lunch", "Dinner", "Snack")


class MealPlan(Base):
    """A week of planned meals."""

    __tablename__ = "meal_plans"
    __table_args__ = (
        Index("idx_meal_plan_user_week", "user_id", "week_start_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    week_start_date = Column(Date, nullable=False)
    week_end_date = Column(Date, nullable=False)
    status = Column(String, nullable=False, default="Draft")
    notes = Column(Text, nullable=True)
    finalized_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    meals = relationship(
        "Meal",
        back_populates="meal_plan",
        cascade="all, delete-orphan",
        order_by="Meal.id",
    )
    shopping_list_links = relationship(
        "ShoppingListMealPlan", back_populates="meal_plan", cascade="all, delete-orphan"
    )


class Meal(Base):
    """One slot (day + meal type) of a meal plan."""

    __tablename__ = "meals"

    id = Column(Integer, primary_key=True, index=True)
    meal_plan_id = Column(Integer, ForeignKey("meal_plans.id", ondelete="CASCADE"), nullable=False, index=True)
    day_of_week = Column(String, nullable=False)  # Mon..Sun
    meal_type = Column(String, nullable=False, default="Dinner")
    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="SET NULL"), nullable=True, index=True)
    recipe_name = Column(String, nullable=True)
    servings = Column(Integer, nullable=True)
    is_leftover = Column(Boolean, default=False, nullable=False)
    notes = Column(String, nullable=True)

    meal_plan = relationship("MealPlan", back_populates="meals")
    recipe = relationship("Recipe", back_populates="meals")
