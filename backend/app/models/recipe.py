"""
Recipe and RecipeIngredient database models.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, Text, ForeignKey, Index
from sqlalchemy.orm import relationship

from app.database import Base


class Recipe(Base):
    """Recipe in the household library. Macros are per serving."""

    __tablename__ = "recipes"
    __table_args__ = (
        Index("idx_recipe_user_name", "user_id", "recipe_name"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    recipe_name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    servings = Column(Integer, nullable=False, default=4)
    prep_time_minutes = Column(Integer, nullable=True)
    cook_time_minutes = Column(Integer, nullable=True)
    meal_type = Column(String, nullable=True)  # Breakfast, Lunch, Dinner, Snack
    cuisine = Column(String, nullable=True)
    instructions = Column(Text, nullable=True)

    calories_per_serving = Column(Float, nullable=True)
    protein_per_serving = Column(Float, nullable=True)
    carbs_per_serving = Column(Float, nullable=True)
    fat_per_serving = Column(Float, nullable=True)

    is_favorite = Column(Boolean, default=False, nullable=False)
    is_archived = Column(Boolean, default=False, nullable=False)
    times_used = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    ingredients = relationship(
        "RecipeIngredient",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeIngredient.id",
    )
    meals = relationship("Meal", back_populates="recipe")


class RecipeIngredient(Base):
    """Single ingredient line of a recipe."""

    __tablename__ = "recipe_ingredients"

    id = Column(Integer, primary_key=True, index=True)
    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False, index=True)
    ingredient_name = Column(String, nullable=False)
    quantity = Column(Float, nullable=False, default=1.0)
    unit = Column(String, nullable=False, default="piece")
    category = Column(String, nullable=True)
    notes = Column(String, nullable=True)

    recipe = relationship("Recipe", back_populates="ingredients")
