"""
API endpoints for the recipe library.
"""

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user, get_owned
from app.models.meal_plan import Meal
from app.models.recipe import Recipe, RecipeIngredient
from app.models.user import User
from app.schemas import RecipeCreate, RecipeResponse, RecipeUpdate

logger = logging.getLogger(__name__)

router = APIRouter()

_COPY_FIELDS = (
    "description",
    "servings",
    "prep_time_minutes",
    "cook_time_minutes",
    "meal_type",
    "cuisine",
    "instructions",
    "calories_per_serving",
    "protein_per_serving",
    "carbs_per_serving",
    "fat_per_serving",
)


def _ingredients(ingredients_in) -> List[RecipeIngredient]:
    return [
        RecipeIngredient(
            ingredient_name=i.ingredient_name.strip(),
            quantity=i.quantity,
            unit=i.unit.strip(),
            category=i.category,
            notes=i.notes,
        )
        for i in ingredients_in
    ]


@router.get("", response_model=List[RecipeResponse])
def list_recipes(
    search: Optional[str] = None,
    meal_type: Optional[str] = Query(None, alias="mealType"),
    favorite: Optional[bool] = None,
    include_archived: bool = Query(False, alias="includeArchived"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """List recipes with optional search and filtering."""
    query = db.query(Recipe).filter(Recipe.user_id == current_user.id)
    if not include_archived:
        query = query.filter(Recipe.is_archived.is_(False))
    if search:
        query = query.filter(
            or_(
                Recipe.recipe_name.ilike(f"%{search}%"),
                Recipe.cuisine.ilike(f"%{search}%"),
            )
        )
    if meal_type:
        query = query.filter(Recipe.meal_type == meal_type)
    if favorite is not None:
        query = query.filter(Recipe.is_favorite.is_(favorite))
    return query.order_by(Recipe.is_favorite.desc(), Recipe.recipe_name).all()


@router.post("", response_model=RecipeResponse, status_code=status.HTTP_201_CREATED)
def create_recipe(
    recipe_in: RecipeCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    data = recipe_in.model_dump(exclude={"ingredients"})
    data["recipe_name"] = data["recipe_name"].strip()
    recipe = Recipe(user_id=current_user.id, **data)
    recipe.ingredients = _ingredients(recipe_in.ingredients)
    db.add(recipe)
    db.commit()
    db.refresh(recipe)
    logger.info(f"Created recipe '{recipe.recipe_name}' with {len(recipe.ingredients)} ingredients")
    return recipe


@router.get("/{recipe_id}", response_model=RecipeResponse)
def get_recipe(
    recipe_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_owned(db, Recipe, recipe_id, current_user, "Recipe")


@router.patch("/{recipe_id}", response_model=RecipeResponse)
def update_recipe(
    recipe_id: int,
    recipe_in: RecipeUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Partial update. When ingredients are given they replace the current ones."""
    recipe = get_owned(db, Recipe, recipe_id, current_user, "Recipe")
    changes = recipe_in.model_dump(exclude_unset=True, exclude={"ingredients"})
    for field, value in changes.items():
        if value is None and field in ("recipe_name", "servings", "is_favorite"):
            continue
        setattr(recipe, field, value)
    if recipe_in.ingredients is not None:
        recipe.ingredients = _ingredients(recipe_in.ingredients)
    recipe.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(recipe)
    return recipe


@router.delete("/{recipe_id}")
def delete_recipe(
    recipe_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Recipes used by a meal plan are archived instead of deleted."""
    recipe = get_owned(db, Recipe, recipe_id, current_user, "Recipe")
    in_use = db.query(Meal).filter(Meal.recipe_id == recipe.id).first() is not None
    if in_use:
        recipe.is_archived = True
        recipe.updated_at = datetime.utcnow()
        db.commit()
        logger.info(f"Archived recipe {recipe_id}, it is used by a meal plan")
        return {"success": True, "archived": True}

    db.delete(recipe)
    db.commit()
    return {"success": True, "archived": False}


@router.post("/{recipe_id}/favorite", response_model=RecipeResponse)
def toggle_favorite(
    recipe_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    recipe = get_owned(db, Recipe, recipe_id, current_user, "Recipe")
    recipe.is_favorite = not recipe.is_favorite
    db.commit()
    db.refresh(recipe)
    return recipe


@router.post("/{recipe_id}/duplicate", response_model=RecipeResponse, status_code=status.HTTP_201_CREATED)
def duplicate_recipe(
    recipe_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    source = get_owned(db, Recipe, recipe_id, current_user, "Recipe")
    copy = Recipe(
        user_id=current_user.id,
        recipe_name=f"{source.recipe_name} (Copy)",
        **{field: getattr(source, field) for field in _COPY_FIELDS},
    )
    copy.ingredients = [
        RecipeIngredient(
            ingredient_name=i.ingredient_name,
            quantity=i.quantity,
            unit=i.unit,
            category=i.category,
            notes=i.notes,
        )
        for i in source.ingredients
    ]
    db.add(copy)
    db.commit()
    db.refresh(copy)
    return copy
