"""
Nutrition helpers for recipes and meal plans.

All figures are per person: a meal contributes the per-serving macros of
its recipe to the day it is planned on.
"""

from typing import Any, Dict, Optional

from app.models.meal_plan import DAYS_OF_WEEK, MealPlan
from app.models.recipe import Recipe
from app.models.user import FamilyProfile

MACROS = ("calories", "protein", "carbs", "fat")

# Within +/-10% of the target counts as on track
TARGET_TOLERANCE = 0.10


def _empty() -> Dict[str, float]:
    return {macro: 0.0 for macro in MACROS}


def recipe_macros(recipe: Optional[Recipe]) -> Dict[str, float]:
    """Per-serving macros, missing values count as zero."""
    if recipe is None:
        return _empty()
    return {
        "calories": recipe.calories_per_serving or 0.0,
        "protein": recipe.protein_per_serving or 0.0,
        "carbs": recipe.carbs_per_serving or 0.0,
        "fat": recipe.fat_per_serving or 0.0,
    }


def daily_totals(plan: MealPlan) -> Dict[str, Dict[str, float]]:
    days = {day: _empty() for day in DAYS_OF_WEEK}
    for meal in plan.meals:
        macros = recipe_macros(meal.recipe)
        totals = days.setdefault(meal.day_of_week, _empty())
        for macro in MACROS:
            totals[macro] += macros[macro]
    return {day: {k: round(v, 1) for k, v in totals.items()} for day, totals in days.items()}


def weekly_summary(plan: MealPlan) -> Dict[str, Any]:
    days = daily_totals(plan)
    weekly = _empty()
    for totals in days.values():
        for macro in MACROS:
            weekly[macro] += totals[macro]

    planned_days = [day for day in DAYS_OF_WEEK if any(m.day_of_week == day for m in plan.meals)]
    divisor = len(planned_days) or 1
    return {
        "daily": days,
        "weekly": {k: round(v, 1) for k, v in weekly.items()},
        "dailyAverage": {k: round(v / divisor, 1) for k, v in weekly.items()},
        "plannedDays": len(planned_days),
    }


def _profile_targets(profile: FamilyProfile) -> Dict[str, Optional[float]]:
    return {
        "calories": profile.daily_calorie_target,
        "protein": profile.daily_protein_target,
        "carbs": profile.daily_carbs_target,
        "fat": profile.daily_fat_target,
    }


def compare_with_targets(actual: Dict[str, float], profile: FamilyProfile) -> Dict[str, Any]:
    comparison = {}
    for macro, target in _profile_targets(profile).items():
        value = actual.get(macro, 0.0)
        if not target:
            comparison[macro] = {"target": None, "actual": value, "difference": None,
                                 "percentOfTarget": None, "status": "noTarget"}
            continue
        percent = value / target
        if percent < 1 - TARGET_TOLERANCE:
            status = "under"
        elif percent > 1 + TARGET_TOLERANCE:
            status = "over"
        else:
            status = "onTrack"
        comparison[macro] = {
            "target": target,
            "actual": value,
            "difference": round(value - target, 1),
            "percentOfTarget": round(percent * 100),
            "status": status,
        }
    return comparison


def plan_nutrition(plan: MealPlan, profile: Optional[FamilyProfile] = None) -> Dict[str, Any]:
    summary = weekly_summary(plan)
    summary["mealPlanId"] = plan.id
    if profile is not None:
        summary["profile"] = {"id": profile.id, "profileName": profile.profile_name}
        summary["comparison"] = compare_with_targets(summary["dailyAverage"], profile)
    return summary
