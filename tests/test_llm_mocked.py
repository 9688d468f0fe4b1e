"""
Tests for llm_service with a mocked Ollama client.
"""
import json
from unittest.mock import patch

import pytest

from app.services import llm_service
from app.services.llm_service import (
    LLMError,
    combine_items_semantically,
    extract_json_from_response,
    generate_meal_plan,
    nutritionist_reply,
    suggest_categories,
)


class TestExtractJson:
    """Tests for extract_json_from_response"""

    def test_markdown_block(self):
        text = 'Here you go:\n```json\n{"quantity": 2, "unit": "kg"}\n```'

        assert extract_json_from_response(text) == {"quantity": 2, "unit": "kg"}

    def test_bare_object_in_text(self):
        text = 'Sure! {"quantity": 2, "unit": "kg"} Hope that helps.'

        assert extract_json_from_response(text) == {"quantity": 2, "unit": "kg"}

    def test_invalid(self):
        assert extract_json_from_response("I am not sure") is None
        assert extract_json_from_response("") is None


class TestCombineItems:
    """Tests for combine_items_semantically"""

    @patch('app.services.llm_service.ollama_client')
    def test_combine_success(self, mock_client):
        """Test a usable answer"""
        mock_client.generate.return_value = {
            "response": '{"quantity": 3, "unit": "piece", "itemName": "Eggs"}'
        }

        result = combine_items_semantically(
            [{"name": "Eggs", "quantity": 2, "unit": "piece"}, {"name": "egg", "quantity": 1, "unit": "large"}]
        )

        assert result == {"quantity": 3.0, "unit": "piece", "itemName": "Eggs"}
        mock_client.generate.assert_called_once()

    @patch('app.services.llm_service.ollama_client')
    def test_combine_unusable_answer(self, mock_client):
        """Test an answer without the expected fields"""
        mock_client.generate.return_value = {"response": '{"answer": "buy some"}'}

        assert combine_items_semantically([{"name": "Salt", "quantity": 1, "unit": "pinch"}]) is None

    @patch('app.services.llm_service.ollama_client', None)
    def test_combine_no_client(self):
        """Test when the Ollama client is not available"""
        with pytest.raises(LLMError):
            combine_items_semantically([{"name": "Salt", "quantity": 1, "unit": "pinch"}])

    @patch('app.services.llm_service.ollama_client')
    def test_combine_disabled(self, mock_client):
        with patch.object(llm_service.settings, "AI_ENABLED", False):
            with pytest.raises(LLMError):
                combine_items_semantically([{"name": "Salt", "quantity": 1, "unit": "pinch"}])

        mock_client.generate.assert_not_called()


class TestSuggestCategories:
    """Tests for suggest_categories"""

    @patch('app.services.llm_service.ollama_client')
    def test_only_known_categories(self, mock_client):
        mock_client.generate.return_value = {
            "response": '{"Milk": "dairy & eggs", "Widget": "Gadgets"}'
        }

        result = suggest_categories(["Milk", "Widget"], ["Produce", "Dairy & Eggs", "Other"])

        assert result == {"Milk": "Dairy & Eggs"}

    @patch('app.services.llm_service.ollama_client')
    def test_connection_error(self, mock_client):
        mock_client.generate.side_effect = Exception("connection refused")

        assert suggest_categories(["Milk"], ["Dairy & Eggs"]) is None


class TestNutritionistReply:
    """Tests for nutritionist_reply"""

    @patch('app.services.llm_service.ollama_client')
    def test_reply_with_history_and_context(self, mock_client):
        mock_client.generate.return_value = {"response": "  Add more greens.  "}

        reply = nutritionist_reply(
            "How is my week?",
            history=[{"role": "user", "content": "Hi"}, {"role": "assistant", "content": "Hello!"}],
            context={"profile": {"name": "Anna"}},
        )

        assert reply == "Add more greens."
        prompt = mock_client.generate.call_args.kwargs["prompt"]
        assert "user: Hi" in prompt
        assert "assistant: Hello!" in prompt
        assert '"name": "Anna"' in prompt
        assert prompt.rstrip().endswith("assistant:")

    @patch('app.services.llm_service.ollama_client', None)
    def test_reply_no_client(self):
        assert nutritionist_reply("Hello") is None


class TestGenerateMealPlan:
    """Tests for generate_meal_plan"""

    @patch('app.services.llm_service.ollama_client')
    def test_generate_filters_unusable_meals(self, mock_client):
        mock_client.generate.return_value = {
            "response": json.dumps(
                {
                    "meals": [
                        {"day": "Monday", "mealType": "dinner", "recipeName": "Chili", "servings": 4},
                        {"day": "Funday", "mealType": "Dinner", "recipeName": "Cake", "servings": 2},
                        {"day": "Tue", "mealType": "Dinner", "recipeName": "", "servings": 2},
                        {"day": "Wed", "mealType": "Dinner", "recipeName": "Soup", "servings": "lots"},
                    ]
                }
            )
        }

        meals = generate_meal_plan(
            recipes=[{"name": "Chili"}],
            profiles=[],
            meal_types=["Dinner"],
            days=["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"],
        )

        assert meals == [
            {"day": "Mon", "mealType": "Dinner", "recipeName": "Chili", "servings": 4},
            {"day": "Wed", "mealType": "Dinner", "recipeName": "Soup", "servings": None},
        ]

    @patch('app.services.llm_service.ollama_client')
    def test_generate_garbage(self, mock_client):
        mock_client.generate.return_value = {"response": "No idea, sorry"}

        assert generate_meal_plan([], [], ["Dinner"], ["Mon"]) is None
