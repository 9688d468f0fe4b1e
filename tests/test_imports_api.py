"""
Tests for importing staples and meal plans into a shopping list, inventory
exclusions and converting bought items into inventory.
"""
from datetime import date, datetime, timedelta

import pytest

from app.models.meal_plan import MealPlan

pytestmark = pytest.mark.api


@pytest.fixture
def staples(client):
    """Milk was never bought, rice was bought today on a quarterly schedule."""
    milk = client.post(
        "/api/staples", json={"itemName": "Milk", "quantity": 2, "unit": "pint", "category": "Dairy & Eggs"}
    ).json()
    beef = client.post("/api/staples", json={"itemName": "Beef mince", "quantity": 1, "unit": "lb"}).json()
    rice = client.post(
        "/api/staples",
        json={
            "itemName": "Rice",
            "quantity": 1,
            "unit": "kg",
            "frequency": "Every 3 months",
            "lastAddedDate": date.today().isoformat(),
        },
    ).json()
    return {"milk": milk, "beef": beef, "rice": rice}


class TestStapleImport:

    def test_candidates(self, client, make_list, staples):
        shopping_list = make_list()

        response = client.get(f"/api/shopping-lists/{shopping_list['id']}/import/staples")

        assert response.status_code == 200
        data = response.json()
        assert data["preselectedCount"] == 2
        names = [s["itemName"] for s in data["staples"]]
        assert names[-1] == "Rice"
        rice = data["staples"][-1]
        assert rice["dueStatus"] == "notDue"
        assert rice["frequency"] == "every_3_months"
        assert rice["preselected"] is False

    def test_import_converts_to_metric(self, client, make_list, staples):
        shopping_list = make_list()

        response = client.post(
            f"/api/shopping-lists/{shopping_list['id']}/import/staples",
            json={"stapleIds": [staples["milk"]["id"], staples["beef"]["id"]]},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["importedCount"] == 2
        assert data["skippedCount"] == 0
        by_name = {i["itemName"]: i for i in data["items"]}
        assert (by_name["Milk"]["quantity"], by_name["Milk"]["unit"]) == (945, "ml")
        assert by_name["Milk"]["category"] == "Dairy & Eggs"
        assert (by_name["Beef mince"]["quantity"], by_name["Beef mince"]["unit"]) == (450, "g")
        assert by_name["Beef mince"]["category"] == "Meat & Seafood"
        assert by_name["Beef mince"]["source"] == "staple"
        assert by_name["Beef mince"]["sourceDetails"][0]["id"] == staples["beef"]["id"]

    def test_reimport_is_skipped_unless_forced(self, client, make_list, staples):
        shopping_list = make_list()
        url = f"/api/shopping-lists/{shopping_list['id']}/import/staples"
        milk_id = staples["milk"]["id"]
        client.post(url, json={"stapleIds": [milk_id]})

        again = client.post(url, json={"stapleIds": [milk_id]}).json()
        forced = client.post(url, json={"stapleIds": [milk_id], "forceAdd": True}).json()

        assert again["importedCount"] == 0
        assert again["skipped"] == ["Milk"]
        assert forced["importedCount"] == 1

        candidates = client.get(url).json()["staples"]
        milk = next(s for s in candidates if s["id"] == milk_id)
        assert milk["alreadyImported"] is True
        assert milk["preselected"] is False

    def test_unknown_staple(self, client, make_list, staples):
        shopping_list = make_list()

        response = client.post(
            f"/api/shopping-lists/{shopping_list['id']}/import/staples", json={"stapleIds": [9999]}
        )

        assert response.status_code == 404

    def test_only_into_draft_lists(self, client, make_list, set_list_status, staples):
        shopping_list = make_list()
        set_list_status(shopping_list["id"], "Finalized")

        response = client.post(
            f"/api/shopping-lists/{shopping_list['id']}/import/staples",
            json={"stapleIds": [staples["milk"]["id"]]},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Can only import items in draft shopping lists"}

    def test_finalizing_marks_staples_bought(self, client, make_list, set_list_status, staples):
        shopping_list = make_list()
        milk_id = staples["milk"]["id"]
        client.post(
            f"/api/shopping-lists/{shopping_list['id']}/import/staples", json={"stapleIds": [milk_id]}
        )

        set_list_status(shopping_list["id"], "Finalized")

        milk = client.get(f"/api/staples/{milk_id}").json()
        assert milk["lastAddedDate"] in (date.today().isoformat(), datetime.utcnow().date().isoformat())
        assert milk["dueStatus"] == "notDue"


class TestMealPlanImport:

    def test_candidates(self, client, make_list, finalized_plan):
        shopping_list = make_list()

        response = client.get(f"/api/shopping-lists/{shopping_list['id']}/import/meal-plan")

        plans = response.json()["mealPlans"]
        assert len(plans) == 1
        assert plans[0]["id"] == finalized_plan.id
        assert plans[0]["mealCount"] == 3
        assert plans[0]["leftoverCount"] == 1
        assert plans[0]["alreadyImported"] is False

    def test_import_excludes_what_inventory_covers(self, client, make_list, finalized_plan, add_inventory):
        """Half a pasta bake needs 250g of pasta and the cupboard has a kilo."""
        add_inventory("Pasta", 1, "kg")
        shopping_list = make_list()

        response = client.post(
            f"/api/shopping-lists/{shopping_list['id']}/import/meal-plan",
            json={"mealPlanId": finalized_plan.id},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["importedCount"] == 3
        assert data["excludedCount"] == 1
        assert data["mealsProcessed"] == 2
        assert data["leftoverMealsSkipped"] == 1
        assert data["duplicatesRemoved"] == 0
        assert data["finalItemCount"] == 3

        by_name = {i["itemName"]: i for i in data["items"]}
        assert set(by_name) == {"Beef mince", "Onions", "Chopped tomatoes"}
        assert by_name["Beef mince"]["quantity"] == 500
        # 2 onions for the chili plus half of one for the pasta bake
        assert by_name["Onions"]["quantity"] == 3
        assert by_name["Onions"]["isConsolidated"] is True
        assert len(by_name["Onions"]["sourceDetails"]) == 2
        assert by_name["Chopped tomatoes"]["unit"] == "can"

        linked = client.get(f"/api/shopping-lists/{shopping_list['id']}").json()
        assert linked["mealPlanIds"] == [finalized_plan.id]

    def test_without_inventory_check(self, client, make_list, finalized_plan, add_inventory):
        add_inventory("Pasta", 1, "kg")
        shopping_list = make_list()

        response = client.post(
            f"/api/shopping-lists/{shopping_list['id']}/import/meal-plan",
            json={"mealPlanId": finalized_plan.id, "checkInventory": False},
        )

        assert response.json()["importedCount"] == 4
        assert response.json()["excludedCount"] == 0

    def test_only_finalized_plans(self, client, make_list, test_db, user, this_monday):
        plan = MealPlan(
            user_id=user.id,
            week_start_date=this_monday,
            week_end_date=this_monday + timedelta(days=6),
            status="Draft",
        )
        test_db.add(plan)
        test_db.commit()
        shopping_list = make_list()

        response = client.post(
            f"/api/shopping-lists/{shopping_list['id']}/import/meal-plan", json={"mealPlanId": plan.id}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Only finalized meal plans can be imported"}

    def test_unknown_plan(self, client, make_list):
        shopping_list = make_list()

        response = client.post(
            f"/api/shopping-lists/{shopping_list['id']}/import/meal-plan", json={"mealPlanId": 9999}
        )

        assert response.status_code == 404
        assert response.json() == {"error": "Meal plan not found"}


class TestExcludedItems:

    @pytest.fixture
    def imported_list(self, client, make_list, finalized_plan, add_inventory):
        add_inventory("Pasta", 1, "kg")
        shopping_list = make_list()
        client.post(
            f"/api/shopping-lists/{shopping_list['id']}/import/meal-plan",
            json={"mealPlanId": finalized_plan.id},
        )
        return shopping_list

    def test_list_excluded(self, client, imported_list):
        response = client.get(f"/api/shopping-lists/{imported_list['id']}/excluded-items")

        assert response.status_code == 200
        [pasta] = response.json()
        assert pasta["itemName"] == "Pasta"
        assert pasta["recipeQuantity"] == 250
        assert pasta["recipeUnit"] == "g"
        assert pasta["inventoryQuantity"] == 1

    def test_add_back(self, client, imported_list):
        url = f"/api/shopping-lists/{imported_list['id']}/excluded-items"
        excluded_id = client.get(url).json()[0]["id"]

        response = client.post(url, json={"excludedItemId": excluded_id})

        assert response.status_code == 201
        assert response.json()["itemName"] == "Pasta"
        assert response.json()["quantity"] == 250
        assert response.json()["customNote"] == "Added back from inventory exclusion"
        assert client.get(url).json() == []

        again = client.post(url, json={"excludedItemId": excluded_id})
        assert again.status_code == 400
        assert again.json() == {"error": "Item has already been added back"}

    def test_add_back_custom_quantity(self, client, imported_list):
        url = f"/api/shopping-lists/{imported_list['id']}/excluded-items"
        excluded_id = client.get(url).json()[0]["id"]

        response = client.post(url, json={"excludedItemId": excluded_id, "quantity": 500})

        assert response.json()["quantity"] == 500

    def test_unknown_excluded_item(self, client, imported_list):
        response = client.post(
            f"/api/shopping-lists/{imported_list['id']}/excluded-items", json={"excludedItemId": 9999}
        )

        assert response.status_code == 404


class TestConvertToInventory:

    @pytest.fixture
    def bought_list(self, make_list):
        return make_list(
            items=[
                {"itemName": "Milk", "quantity": 1, "unit": "L"},
                {"itemName": "Bananas", "quantity": 6, "unit": "piece"},
            ]
        )

    def test_preview(self, client, bought_list, add_inventory):
        milk = add_inventory("Milk", 500, "ml")

        response = client.get(f"/api/shopping-lists/{bought_list['id']}/convert-to-inventory")

        data = response.json()
        assert data["totalItems"] == 2
        assert data["duplicateCount"] == 1
        by_name = {p["itemName"]: p for p in data["items"]}
        assert by_name["Milk"]["hasDuplicate"] is True
        assert by_name["Milk"]["existingItemId"] == milk.id
        assert by_name["Bananas"]["hasDuplicate"] is False
        assert by_name["Bananas"]["shelfLifeDays"] == 5
        assert by_name["Bananas"]["location"] == "pantry"

    def test_convert_merges_and_creates(self, client, test_db, bought_list, add_inventory):
        milk = add_inventory("Milk", 500, "ml")
        ids = [i["id"] for i in bought_list["items"]]

        response = client.post(
            f"/api/shopping-lists/{bought_list['id']}/convert-to-inventory", json={"itemIds": ids}
        )

        assert response.status_code == 200
        assert response.json() == {"created": 1, "merged": 1, "errors": [], "total": 2}

        test_db.refresh(milk)
        assert milk.quantity == 1500
        assert milk.unit == "ml"

        inventory = client.get("/api/inventory").json()
        bananas = next(i for i in inventory if i["itemName"] == "Bananas")
        assert bananas["category"] == "Produce"
        assert bananas["location"] == "pantry"
        assert bananas["addedBy"] == "shopping_list"
        assert bananas["expiryIsEstimated"] is True
        assert bananas["expiryDate"] == (date.today() + timedelta(days=5)).isoformat()

        items = client.get(f"/api/shopping-lists/{bought_list['id']}/items").json()
        assert all(i["inInventory"] for i in items)
        preview = client.get(f"/api/shopping-lists/{bought_list['id']}/convert-to-inventory").json()
        assert preview["totalItems"] == 0

    def test_convert_and_remove_from_list(self, client, bought_list):
        ids = [i["id"] for i in bought_list["items"]]

        response = client.post(
            f"/api/shopping-lists/{bought_list['id']}/convert-to-inventory",
            json={"itemIds": ids, "removeFromList": True, "mergeWithExisting": False},
        )

        assert response.json()["created"] == 2
        assert client.get(f"/api/shopping-lists/{bought_list['id']}").json()["itemCount"] == 0

    def test_merge_with_unit_alias(self, client, test_db, make_list, add_inventory):
        """"pcs" and "piece" are the same unit, so the stock goes up."""
        eggs = add_inventory("Eggs", 6, "piece")
        shopping_list = make_list(items=[{"itemName": "Eggs", "quantity": 12, "unit": "pcs"}])

        response = client.post(
            f"/api/shopping-lists/{shopping_list['id']}/convert-to-inventory",
            json={"itemIds": [shopping_list["items"][0]["id"]]},
        )

        assert response.json()["merged"] == 1
        test_db.refresh(eggs)
        assert eggs.quantity == 18
        assert eggs.unit == "piece"

    def test_archived_list_is_left_alone(self, client, bought_list, set_list_status):
        set_list_status(bought_list["id"], "Finalized")
        set_list_status(bought_list["id"], "Archived")
        ids = [i["id"] for i in bought_list["items"]]

        response = client.post(
            f"/api/shopping-lists/{bought_list['id']}/convert-to-inventory",
            json={"itemIds": ids, "removeFromList": True},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Archived shopping lists cannot be modified"}
        items = client.get(f"/api/shopping-lists/{bought_list['id']}/items").json()
        assert len(items) == 2
        assert not any(i["inInventory"] for i in items)
        assert client.get("/api/inventory").json() == []
