"""
Shared pytest fixtures: in-memory database, users and API clients.
"""
import sys
import os
from datetime import date, timedelta
from typing import Generator
from unittest.mock import patch

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Add backend directory to sys.path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../backend"))

# Settings are read on first import of the app package
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["AI_ENABLED"] = "true"

from fastapi.testclient import TestClient

from app.database import Base, get_db
from app.dependencies import get_current_user
from app.main import app
from app.models.inventory import InventoryItem
from app.models.meal_plan import Meal, MealPlan
from app.models.recipe import Recipe, RecipeIngredient
from app.models.shopping_list import ShoppingList, ShoppingListItem
from app.models.user import User


def _enable_foreign_keys(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture
def mock_ollama():
    """Mock Ollama client for testing"""
    with patch('app.services.llm_service.ollama_client') as mock_client:
        yield mock_client


@pytest.fixture
def test_db() -> Generator[Session, None, None]:
    """Create in-memory SQLite database for testing"""
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", _enable_foreign_keys)
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def db_session(test_db):
    """Alias for test_db for clarity"""
    return test_db


@pytest.fixture
def user(test_db) -> User:
    account = User(email="cook@example.com", hashed_password="not-a-bcrypt-hash")
    test_db.add(account)
    test_db.commit()
    test_db.refresh(account)
    return account


@pytest.fixture
def other_user(test_db) -> User:
    account = User(email="neighbour@example.com", hashed_password="not-a-bcrypt-hash")
    test_db.add(account)
    test_db.commit()
    test_db.refresh(account)
    return account


@pytest.fixture
def anon_client(test_db) -> Generator[TestClient, None, None]:
    """Client on the test database with the real session check."""

    def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def client(anon_client, user) -> TestClient:
    """Client signed in as `user`."""
    app.dependency_overrides[get_current_user] = lambda: user
    return anon_client


@pytest.fixture
def make_list(client):
    """Create a shopping list through the API, optionally with items."""

    def _make(name="Weekly shop", items=None):
        response = client.post("/api/shopping-lists", json={"name": name})
        assert response.status_code == 201
        shopping_list = response.json()
        if items:
            added = client.post(f"/api/shopping-lists/{shopping_list['id']}/items", json=items)
            assert added.status_code == 201
            shopping_list["items"] = added.json()
        return shopping_list

    return _make


@pytest.fixture
def set_list_status(client):
    def _set(list_id, status):
        response = client.patch(f"/api/shopping-lists/{list_id}", json={"status": status})
        assert response.status_code == 200
        return response.json()

    return _set


@pytest.fixture
def chili_recipe(test_db, user) -> Recipe:
    recipe = Recipe(
        user_id=user.id,
        recipe_name="Chili",
        servings=4,
        meal_type="Dinner",
        calories_per_serving=600,
        protein_per_serving=40,
        carbs_per_serving=50,
        fat_per_serving=20,
    )
    recipe.ingredients = [
        RecipeIngredient(ingredient_name="Beef mince", quantity=500, unit="g"),
        RecipeIngredient(ingredient_name="Onions", quantity=2, unit="piece"),
        RecipeIngredient(ingredient_name="Chopped tomatoes", quantity=2, unit="can"),
    ]
    test_db.add(recipe)
    test_db.commit()
    test_db.refresh(recipe)
    return recipe


@pytest.fixture
def pasta_recipe(test_db, user) -> Recipe:
    recipe = Recipe(
        user_id=user.id,
        recipe_name="Pasta bake",
        servings=4,
        meal_type="Dinner",
        calories_per_serving=700,
        protein_per_serving=25,
        carbs_per_serving=90,
        fat_per_serving=25,
    )
    recipe.ingredients = [
        RecipeIngredient(ingredient_name="Onion", quantity=1, unit="piece"),
        RecipeIngredient(ingredient_name="Pasta", quantity=500, unit="g"),
    ]
    test_db.add(recipe)
    test_db.commit()
    test_db.refresh(recipe)
    return recipe


@pytest.fixture
def this_monday() -> date:
    today = date.today()
    return today - timedelta(days=today.weekday())


@pytest.fixture
def finalized_plan(test_db, user, chili_recipe, pasta_recipe, this_monday) -> MealPlan:
    """Chili on Monday, half a pasta bake on Tuesday and chili leftovers on Wednesday."""
    plan = MealPlan(
        user_id=user.id,
        week_start_date=this_monday,
        week_end_date=this_monday + timedelta(days=6),
        status="Finalized",
    )
    plan.meals = [
        Meal(day_of_week="Mon", meal_type="Dinner", recipe_id=chili_recipe.id,
             recipe_name=chili_recipe.recipe_name, servings=4),
        Meal(day_of_week="Tue", meal_type="Dinner", recipe_id=pasta_recipe.id,
             recipe_name=pasta_recipe.recipe_name, servings=2),
        Meal(day_of_week="Wed", meal_type="Dinner", recipe_id=chili_recipe.id,
             recipe_name=chili_recipe.recipe_name, servings=4, is_leftover=True),
    ]
    test_db.add(plan)
    test_db.commit()
    test_db.refresh(plan)
    return plan


@pytest.fixture
def add_inventory(test_db, user):
    def _add(item_name, quantity, unit, expiry_date=None, **extra):
        item = InventoryItem(
            user_id=user.id,
            item_name=item_name,
            quantity=quantity,
            unit=unit,
            expiry_date=expiry_date,
            **extra,
        )
        test_db.add(item)
        test_db.commit()
        test_db.refresh(item)
        return item

    return _add


@pytest.fixture
def foreign_list(test_db, other_user) -> ShoppingList:
    """A shopping list owned by somebody else."""
    shopping_list = ShoppingList(user_id=other_user.id, name="Not yours", category_order=[])
    shopping_list.items = [ShoppingListItem(item_name="Cake", quantity=1, unit="piece", source_details=[])]
    test_db.add(shopping_list)
    test_db.commit()
    test_db.refresh(shopping_list)
    return shopping_list
