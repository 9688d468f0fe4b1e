"""
Tests for the home screen summary.
"""
from datetime import date, timedelta

import pytest

from app.models.meal_plan import Meal, MealPlan
from app.models.shopping_list import ShoppingList, ShoppingListItem
from app.models.staple import Staple
from app.models.user import FamilyProfile
from app.services.dashboard_service import dashboard_service, shopping_bucket

TODAY = date(2024, 5, 15)
MONDAY = date(2024, 5, 13)


@pytest.fixture
def household(test_db, user, chili_recipe, add_inventory):
    """A week in mid May: a plan, a shopping list, staples and some inventory."""
    test_db.add(FamilyProfile(user_id=user.id, profile_name="Sam Taylor", is_main_user=True))
    test_db.add(FamilyProfile(user_id=user.id, profile_name="Alex Taylor"))

    plan = MealPlan(user_id=user.id, week_start_date=MONDAY, week_end_date=MONDAY + timedelta(days=6))
    plan.meals = [
        Meal(day_of_week="Mon", meal_type="Dinner", recipe_id=chili_recipe.id, recipe_name="Chili", servings=4),
        Meal(day_of_week="Tue", meal_type="Breakfast", recipe_name="Porridge", servings=2),
        Meal(day_of_week="Wed", meal_type="Dinner", recipe_name="Takeaway", servings=2),
    ]
    test_db.add(plan)

    shopping_list = ShoppingList(user_id=user.id, name="Weekly shop", category_order=[])
    shopping_list.items = [
        ShoppingListItem(item_name="Carrots", category="Produce", source_details=[]),
        ShoppingListItem(item_name="Salmon", category="Meat & Seafood", source_details=[]),
        ShoppingListItem(item_name="Milk", category="Dairy & Eggs", source_details=[], is_purchased=True),
        ShoppingListItem(item_name="Rice", category="Pantry", source_details=[]),
        ShoppingListItem(item_name="Mystery", source_details=[]),
    ]
    test_db.add(shopping_list)

    test_db.add(Staple(user_id=user.id, item_name="Milk"))
    test_db.add(Staple(user_id=user.id, item_name="Rice", frequency="every_3_months", last_added_date=TODAY))
    test_db.add(Staple(user_id=user.id, item_name="Candles", is_active=False))
    test_db.commit()

    add_inventory("Yoghurt", 500, "g", expiry_date=TODAY - timedelta(days=1))
    add_inventory("Cream", 1.5, "L", expiry_date=TODAY)
    add_inventory("Spinach", 200, "g", expiry_date=TODAY + timedelta(days=3))
    add_inventory("Cheddar", 200, "g", expiry_date=TODAY + timedelta(days=4))
    add_inventory("Rice", 1, "kg")
    return {"plan": plan, "shopping_list": shopping_list}


@pytest.mark.unit
class TestDashboardService:

    def test_user_summary(self, test_db, user, household):
        summary = dashboard_service.get_dashboard(test_db, user, TODAY)["user"]

        assert summary["firstName"] == "Sam"
        assert summary["familyName"] == "Taylor Family"
        assert summary["initials"] == "ST"

    def test_user_without_profile(self, test_db, user):
        summary = dashboard_service.get_profile_summary(test_db, user)

        assert summary["firstName"] == "cook"
        assert summary["familyName"] == "Family"
        assert summary["profileId"] is None

    def test_week(self, test_db, user, household):
        data = dashboard_service.get_dashboard(test_db, user, TODAY)

        assert data["weekRange"] == {"start": "2024-05-13", "end": "2024-05-19", "label": "Week of 13-19 May"}
        assert data["mealPlanId"] == household["plan"].id
        assert data["plannedCount"] == 2
        meals = {m["day"]: m for m in data["weeklyMeals"]}
        assert meals["Mon"]["dinner"] == "Chili"
        assert meals["Tue"]["planned"] is False
        assert meals["Wed"]["dinner"] == "Takeaway"
        assert meals["Wed"]["isToday"] is True
        assert meals["Sun"]["date"] == "2024-05-19"

    def test_shopping_buckets(self, test_db, user, household):
        shopping = dashboard_service.get_dashboard(test_db, user, TODAY)["shoppingList"]

        assert shopping["name"] == "Weekly shop"
        assert shopping["total"] == 5
        assert shopping["purchased"] == 1
        assert shopping["categories"] == [
            {"name": "Fresh", "count": 1},
            {"name": "Meat & Fish", "count": 1},
            {"name": "Dairy", "count": 1},
            {"name": "Cupboard", "count": 2},
        ]

    def test_expiring_items(self, test_db, user, household):
        expiring = dashboard_service.get_dashboard(test_db, user, TODAY)["expiringItems"]

        assert [i["name"] for i in expiring] == ["Cream", "Spinach"]
        assert expiring[0]["quantity"] == "1.5 L"
        assert expiring[0]["daysUntilExpiry"] == 0
        assert expiring[1]["daysUntilExpiry"] == 3

    def test_counts(self, test_db, user, household):
        counts = dashboard_service.get_dashboard(test_db, user, TODAY)["counts"]

        assert counts == {"recipes": 1, "staplesDue": 1, "inventoryItems": 5, "familyMembers": 2}

    def test_bucket_names(self):
        assert shopping_bucket("Fresh produce") == "Fresh"
        assert shopping_bucket("Fish") == "Meat & Fish"
        assert shopping_bucket(None) == "Cupboard"


@pytest.mark.api
class TestDashboardApi:

    def test_empty_account(self, client):
        response = client.get("/api/dashboard")

        assert response.status_code == 200
        data = response.json()
        assert data["plannedCount"] == 0
        assert len(data["weeklyMeals"]) == 7
        assert data["shoppingList"]["id"] is None
        assert data["expiringItems"] == []
        assert data["counts"]["recipes"] == 0

    def test_requires_session(self, anon_client):
        assert anon_client.get("/api/dashboard").status_code == 401
