"""
Meal plan creation, lifecycle and AI generation.
"""

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.dependencies import get_owned
from app.models.meal_plan import DAYS_OF_WEEK, MEAL_PLAN_STATUSES, Meal, MealPlan
from app.models.recipe import Recipe
from app.models.user import FamilyProfile, User
from app.schemas import MealBase, MealPlanCreate, MealPlanGenerateRequest, MealPlanUpdate
from app.services import llm_service
from app.services.normalization import names_match

logger = logging.getLogger(__name__)


class MealPlanService:
    def list_plans(self, db: Session, user: User, status: Optional[str] = None) -> List[MealPlan]:
        query = db.query(MealPlan).filter(MealPlan.user_id == user.id)
        if status:
            query = query.filter(MealPlan.status == status)
        return query.order_by(MealPlan.week_start_date.desc(), MealPlan.id.desc()).all()

    def _build_meals(self, db: Session, user: User, meals_in: List[MealBase]) -> List[Meal]:
        meals = []
        for meal_in in meals_in:
            recipe_name = meal_in.recipe_name
            if meal_in.recipe_id is not None:
                recipe = get_owned(db, Recipe, meal_in.recipe_id, user, "Recipe")
                recipe_name = recipe.recipe_name
            meals.append(
                Meal(
                    day_of_week=meal_in.day_of_week,
                    meal_type=meal_in.meal_type,
                    recipe_id=meal_in.recipe_id,
                    recipe_name=recipe_name,
                    servings=meal_in.servings,
                    is_leftover=meal_in.is_leftover,
                    notes=meal_in.notes,
                )
            )
        return meals

    def create_plan(self, db: Session, user: User, data: MealPlanCreate) -> MealPlan:
        plan = MealPlan(
            user_id=user.id,
            week_start_date=data.week_start_date,
            week_end_date=data.week_start_date + timedelta(days=6),
            status="Draft",
            notes=data.notes,
        )
        plan.meals = self._build_meals(db, user, data.meals)
        db.add(plan)
        db.commit()
        db.refresh(plan)
        logger.info(f"Created meal plan {plan.id} for week of {plan.week_start_date}")
        return plan

    def update_plan(self, db: Session, user: User, plan: MealPlan, data: MealPlanUpdate) -> MealPlan:
        changes = data.model_dump(exclude_unset=True)

        if plan.status == "Archived" and ("notes" in changes or data.meals is not None):
            raise HTTPException(status_code=400, detail="Archived meal plans cannot be modified")

        if data.meals is not None:
            if plan.status != "Draft":
                raise HTTPException(status_code=400, detail="Meals can only be changed on draft meal plans")
            plan.meals = self._build_meals(db, user, data.meals)

        if "notes" in changes:
            plan.notes = data.notes

        if data.status and data.status != plan.status:
            if MEAL_PLAN_STATUSES.index(data.status) < MEAL_PLAN_STATUSES.index(plan.status):
                raise HTTPException(
                    status_code=400,
                    detail="Meal plan status can only move forward (Draft -> Finalized -> Archived)",
                )
            if plan.finalized_at is None:
                plan.finalized_at = datetime.utcnow()
                for meal in plan.meals:
                    if meal.recipe is not None and not meal.is_leftover:
                        meal.recipe.times_used += 1
            logger.info(f"Meal plan {plan.id}: {plan.status} -> {data.status}")
            plan.status = data.status

        plan.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(plan)
        return plan

    def current_week_plan(self, db: Session, user: User, today: Optional[date] = None) -> Optional[MealPlan]:
        today = today or date.today()
        return (
            db.query(MealPlan)
            .filter(
                MealPlan.user_id == user.id,
                MealPlan.week_start_date <= today,
                MealPlan.week_end_date >= today,
                MealPlan.status != "Archived",
            )
            .order_by(MealPlan.week_start_date.desc(), MealPlan.id.desc())
            .first()
        )

    def _resolve_recipe(self, name: str, recipes: List[Recipe]) -> Optional[Recipe]:
        for recipe in recipes:
            if recipe.recipe_name.lower() == name.lower():
                return recipe
        for recipe in recipes:
            if names_match(recipe.recipe_name, name):
                return recipe
        return None

    def generate_plan(self, db: Session, user: User, request: MealPlanGenerateRequest) -> MealPlan:
        """
        Ask the model for a week of meals and store them as a Draft plan.

        Recipe names are resolved against the user's library; unknown
        recipes are kept by name only.
        """
        recipes = (
            db.query(Recipe)
            .filter(Recipe.user_id == user.id, Recipe.is_archived.is_(False))
            .all()
        )
        profiles_query = db.query(FamilyProfile).filter(FamilyProfile.user_id == user.id)
        if request.profile_ids:
            profiles_query = profiles_query.filter(FamilyProfile.id.in_(request.profile_ids))
        profiles = profiles_query.all()

        answer = llm_service.generate_meal_plan(
            recipes=[
                {
                    "name": r.recipe_name,
                    "mealType": r.meal_type,
                    "servings": r.servings,
                    "caloriesPerServing": r.calories_per_serving,
                    "isFavorite": r.is_favorite,
                }
                for r in recipes
            ],
            profiles=[
                {
                    "name": p.profile_name,
                    "age": p.age,
                    "dailyCalorieTarget": p.daily_calorie_target,
                    "dietaryPreferences": p.dietary_preferences,
                    "allergies": p.allergies,
                }
                for p in profiles
            ],
            meal_types=request.meal_types,
            days=list(DAYS_OF_WEEK),
        )
        if not answer:
            raise HTTPException(
                status_code=500, detail="Could not generate a meal plan. Please try again."
            )

        servings_default = max(len(profiles), 1)
        plan = MealPlan(
            user_id=user.id,
            week_start_date=request.week_start_date,
            week_end_date=request.week_start_date + timedelta(days=6),
            status="Draft",
            notes="Generated with AI",
        )
        for planned in answer:
            recipe = self._resolve_recipe(planned["recipeName"], recipes)
            plan.meals.append(
                Meal(
                    day_of_week=planned["day"],
                    meal_type=planned["mealType"],
                    recipe_id=recipe.id if recipe else None,
                    recipe_name=recipe.recipe_name if recipe else planned["recipeName"],
                    servings=planned["servings"] or servings_default,
                )
            )

        db.add(plan)
        db.commit()
        db.refresh(plan)
        logger.info(f"Generated meal plan {plan.id} with {len(plan.meals)} meals")
        return plan


meal_plan_service = MealPlanService()
