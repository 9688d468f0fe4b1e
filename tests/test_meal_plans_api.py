"""
Tests for meal plans: creation, lifecycle, nutrition and AI generation.
"""
import json
from datetime import timedelta

import pytest

pytestmark = pytest.mark.api

DAY_ERROR = "Day of week must be one of: Mon, Tue, Wed, Thu, Fri, Sat, Sun"


def _create(client, week_start, meals):
    return client.post(
        "/api/meal-plans", json={"weekStartDate": week_start.isoformat(), "meals": meals}
    )


class TestMealPlans:

    def test_create(self, client, chili_recipe, this_monday):
        response = _create(
            client,
            this_monday,
            [
                {"dayOfWeek": "Mon", "mealType": "Dinner", "recipeId": chili_recipe.id},
                {"dayOfWeek": "Tue", "mealType": "Lunch", "recipeName": "Sandwiches", "servings": 2},
            ],
        )

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "Draft"
        assert data["weekEndDate"] == (this_monday + timedelta(days=6)).isoformat()
        assert data["meals"][0]["recipeName"] == "Chili"
        assert data["meals"][0]["servings"] == 4
        assert data["meals"][1]["recipeId"] is None
        assert data["meals"][1]["recipeName"] == "Sandwiches"

    def test_invalid_day(self, client, chili_recipe, this_monday):
        response = _create(
            client, this_monday, [{"dayOfWeek": "Funday", "mealType": "Dinner", "recipeId": chili_recipe.id}]
        )

        assert response.status_code == 400
        assert response.json() == {"error": DAY_ERROR}

    def test_meal_needs_recipe(self, client, this_monday):
        response = _create(client, this_monday, [{"dayOfWeek": "Mon", "mealType": "Dinner"}])

        assert response.status_code == 400
        assert response.json() == {"error": "Each meal needs a recipe"}

    def test_foreign_recipe(self, client, test_db, other_user, this_monday):
        from app.models.recipe import Recipe

        theirs = Recipe(user_id=other_user.id, recipe_name="Secret stew")
        test_db.add(theirs)
        test_db.commit()

        response = _create(client, this_monday, [{"dayOfWeek": "Mon", "mealType": "Dinner", "recipeId": theirs.id}])

        assert response.status_code == 403

    def test_list_by_status(self, client, finalized_plan, chili_recipe, this_monday):
        _create(client, this_monday, [{"dayOfWeek": "Mon", "mealType": "Dinner", "recipeId": chili_recipe.id}])

        drafts = client.get("/api/meal-plans", params={"status": "Draft"}).json()
        finalized = client.get("/api/meal-plans", params={"status": "Finalized"}).json()

        assert len(drafts) == 1
        assert [p["id"] for p in finalized] == [finalized_plan.id]

    def test_replace_meals_on_draft(self, client, chili_recipe, pasta_recipe, this_monday):
        plan = _create(
            client, this_monday, [{"dayOfWeek": "Mon", "mealType": "Dinner", "recipeId": chili_recipe.id}]
        ).json()

        response = client.patch(
            f"/api/meal-plans/{plan['id']}",
            json={"meals": [{"dayOfWeek": "Fri", "mealType": "Dinner", "recipeId": pasta_recipe.id}]},
        )

        assert [m["dayOfWeek"] for m in response.json()["meals"]] == ["Fri"]
        assert response.json()["meals"][0]["recipeName"] == "Pasta bake"

    def test_finalize_counts_recipe_use(self, client, chili_recipe, pasta_recipe, this_monday):
        """Leftover meals do not count as another use of the recipe."""
        plan = _create(
            client,
            this_monday,
            [
                {"dayOfWeek": "Mon", "mealType": "Dinner", "recipeId": chili_recipe.id},
                {"dayOfWeek": "Tue", "mealType": "Dinner", "recipeId": chili_recipe.id, "isLeftover": True},
                {"dayOfWeek": "Wed", "mealType": "Dinner", "recipeId": pasta_recipe.id},
            ],
        ).json()

        response = client.patch(f"/api/meal-plans/{plan['id']}", json={"status": "Finalized"})

        assert response.status_code == 200
        assert response.json()["status"] == "Finalized"
        assert response.json()["finalizedAt"] is not None
        assert client.get(f"/api/recipes/{chili_recipe.id}").json()["timesUsed"] == 1
        assert client.get(f"/api/recipes/{pasta_recipe.id}").json()["timesUsed"] == 1

    def test_finalized_plan_rules(self, client, finalized_plan, chili_recipe):
        url = f"/api/meal-plans/{finalized_plan.id}"

        meals = client.patch(
            url, json={"meals": [{"dayOfWeek": "Mon", "mealType": "Dinner", "recipeId": chili_recipe.id}]}
        )
        backwards = client.patch(url, json={"status": "Draft"})
        notes = client.patch(url, json={"notes": "Big shop on Saturday"})

        assert meals.status_code == 400
        assert meals.json() == {"error": "Meals can only be changed on draft meal plans"}
        assert backwards.status_code == 400
        assert "only move forward" in backwards.json()["error"]
        assert notes.json()["notes"] == "Big shop on Saturday"

    def test_archived_plan_is_read_only(self, client, finalized_plan):
        url = f"/api/meal-plans/{finalized_plan.id}"
        client.patch(url, json={"status": "Archived"})

        response = client.patch(url, json={"notes": "Too late"})

        assert response.status_code == 400
        assert response.json() == {"error": "Archived meal plans cannot be modified"}

    def test_delete(self, client, finalized_plan):
        assert client.delete(f"/api/meal-plans/{finalized_plan.id}").json() == {"success": True}
        assert client.get(f"/api/meal-plans/{finalized_plan.id}").status_code == 404


class TestNutrition:

    def test_plan_totals(self, client, finalized_plan):
        response = client.get(f"/api/meal-plans/{finalized_plan.id}/nutrition")

        data = response.json()
        assert data["mealPlanId"] == finalized_plan.id
        assert data["daily"]["Mon"]["calories"] == 600
        assert data["daily"]["Tue"]["calories"] == 700
        assert data["daily"]["Wed"]["protein"] == 40
        assert data["weekly"]["calories"] == 1900
        assert data["plannedDays"] == 3
        assert "comparison" not in data

    def test_compared_with_profile(self, client, finalized_plan):
        profile = client.post(
            "/api/profiles",
            json={"profileName": "Sam", "dailyCalorieTarget": 2000, "dailyProteinTarget": 35},
        ).json()

        response = client.get(
            f"/api/meal-plans/{finalized_plan.id}/nutrition", params={"profileId": profile["id"]}
        )

        data = response.json()
        assert data["profile"] == {"id": profile["id"], "profileName": "Sam"}
        assert data["comparison"]["calories"]["status"] == "under"
        assert data["comparison"]["protein"]["status"] == "onTrack"
        assert data["comparison"]["fat"]["status"] == "noTarget"


class TestGenerate:

    def test_generate(self, client, chili_recipe, this_monday, mock_ollama):
        mock_ollama.generate.return_value = {
            "response": json.dumps(
                {
                    "meals": [
                        {"day": "Mon", "mealType": "Dinner", "recipeName": "chili"},
                        {"day": "Tue", "mealType": "Dinner", "recipeName": "Fish tacos", "servings": 3},
                    ]
                }
            )
        }

        response = client.post("/api/meal-plans/generate", json={"weekStartDate": this_monday.isoformat()})

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "Draft"
        assert data["notes"] == "Generated with AI"
        chili, tacos = data["meals"]
        assert chili["recipeId"] == chili_recipe.id
        assert chili["recipeName"] == "Chili"
        assert chili["servings"] == 1
        assert tacos["recipeId"] is None
        assert tacos["recipeName"] == "Fish tacos"
        assert tacos["servings"] == 3

    def test_default_servings_follow_family_size(self, client, chili_recipe, this_monday, mock_ollama):
        client.post("/api/profiles", json={"profileName": "Sam"})
        client.post("/api/profiles", json={"profileName": "Alex"})
        mock_ollama.generate.return_value = {
            "response": '{"meals": [{"day": "Mon", "mealType": "Dinner", "recipeName": "Chili"}]}'
        }

        response = client.post("/api/meal-plans/generate", json={"weekStartDate": this_monday.isoformat()})

        assert response.json()["meals"][0]["servings"] == 2

    def test_generate_failure(self, client, this_monday, mock_ollama):
        mock_ollama.generate.return_value = {"response": "I cannot plan meals today"}

        response = client.post("/api/meal-plans/generate", json={"weekStartDate": this_monday.isoformat()})

        assert response.status_code == 500
        assert response.json() == {"error": "Could not generate a meal plan. Please try again."}

    def test_generate_needs_meal_types(self, client, this_monday):
        response = client.post(
            "/api/meal-plans/generate", json={"weekStartDate": this_monday.isoformat(), "mealTypes": []}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Choose at least one meal type"}
