"""
Tests for the nutritionist chat, suggested prompts and applying suggested actions.
"""
from datetime import date, timedelta
from unittest.mock import patch

import pytest

from app.models.chat_history import Conversation
from app.services.nutritionist_service import FALLBACK_REPLY

pytestmark = pytest.mark.api


class TestChat:

    def test_new_conversation(self, client, mock_ollama):
        mock_ollama.generate.return_value = {"response": "Eat more greens."}

        response = client.post("/api/nutritionist/chat", json={"message": "How is my week?\nBe honest."})

        assert response.status_code == 200
        data = response.json()
        assert data["usedFallback"] is False
        assert data["message"]["role"] == "assistant"
        assert data["message"]["content"] == "Eat more greens."

        conversation = client.get(f"/api/nutritionist/conversations/{data['conversationId']}").json()
        assert conversation["title"] == "How is my week?"
        assert [m["role"] for m in conversation["messages"]] == ["user", "assistant"]

    def test_history_is_sent_with_follow_up(self, client, mock_ollama):
        mock_ollama.generate.return_value = {"response": "Eat more greens."}
        first = client.post("/api/nutritionist/chat", json={"message": "How is my week?"}).json()

        client.post(
            "/api/nutritionist/chat",
            json={"message": "Which greens?", "conversationId": first["conversationId"]},
        )

        prompt = mock_ollama.generate.call_args.kwargs["prompt"]
        assert "user: How is my week?" in prompt
        assert "assistant: Eat more greens." in prompt
        messages = client.get(f"/api/nutritionist/conversations/{first['conversationId']}").json()["messages"]
        assert len(messages) == 4

    def test_household_context(self, client, mock_ollama, add_inventory):
        mock_ollama.generate.return_value = {"response": "Use the milk first."}
        profile = client.post("/api/profiles", json={"profileName": "Sam", "dailyCalorieTarget": 2000}).json()
        add_inventory("Milk", 1, "L", expiry_date=date.today() + timedelta(days=1))

        client.post("/api/nutritionist/chat", json={"message": "Ideas?", "profileId": profile["id"]})

        prompt = mock_ollama.generate.call_args.kwargs["prompt"]
        assert '"name": "Sam"' in prompt
        assert "Milk (1 L, expires" in prompt

    @patch('app.services.llm_service.ollama_client', None)
    def test_fallback_reply(self, client):
        """Without a model the fixed reply is stored so the conversation goes on."""
        response = client.post("/api/nutritionist/chat", json={"message": "Hello"})

        assert response.status_code == 200
        assert response.json()["usedFallback"] is True
        assert response.json()["message"]["content"] == FALLBACK_REPLY

    def test_empty_message(self, client):
        response = client.post("/api/nutritionist/chat", json={"message": ""})

        assert response.status_code == 400

    def test_foreign_conversation(self, client, test_db, other_user):
        theirs = Conversation(user_id=other_user.id, title="Private")
        test_db.add(theirs)
        test_db.commit()

        chat = client.post("/api/nutritionist/chat", json={"message": "Hi", "conversationId": theirs.id})
        read = client.get(f"/api/nutritionist/conversations/{theirs.id}")

        assert chat.status_code == 403
        assert read.status_code == 403


class TestConversations:

    def test_create_list_delete(self, client):
        created = client.post("/api/nutritionist/conversations")

        assert created.status_code == 201
        assert created.json()["title"] == "New Conversation"
        assert created.json()["lastMessage"] is None

        conversation_id = created.json()["id"]
        assert [c["id"] for c in client.get("/api/nutritionist/conversations").json()] == [conversation_id]
        assert client.delete(f"/api/nutritionist/conversations/{conversation_id}").json() == {"success": True}
        assert client.get(f"/api/nutritionist/conversations/{conversation_id}").status_code == 404


class TestSuggestedPrompts:

    def test_fresh_account(self, client):
        response = client.get("/api/nutritionist/suggested-prompts")

        assert response.json() == {
            "prompts": [
                "Help me set up my macro targets",
                "Suggest dinners for this week",
                "Suggest high-protein recipes",
                "I need breakfast ideas",
            ]
        }

    def test_with_plan_targets_and_expiring_food(self, client, finalized_plan, add_inventory):
        profile = client.post(
            "/api/profiles",
            json={"profileName": "Sam", "dailyCalorieTarget": 2000, "dailyProteinTarget": 100},
        ).json()
        add_inventory("Milk", 1, "L", expiry_date=date.today() + timedelta(days=1))

        response = client.get("/api/nutritionist/suggested-prompts", params={"profileId": profile["id"]})

        assert response.json()["prompts"] == [
            "How balanced is this week's meal plan?",
            "What can I cook with what's expiring soon?",
            "Suggest high-protein recipes",
            "I need breakfast ideas",
        ]


class TestApplyAction:

    def test_add_to_shopping_list_creates_draft(self, client):
        response = client.post(
            "/api/nutritionist/apply-action",
            json={
                "type": "add_to_shopping_list",
                "payload": {"items": [{"itemName": "Spinach"}, {"itemName": "Salmon", "quantity": 2, "unit": "fillet"}]},
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["message"].startswith("Added 2 item(s) to Shopping list - week of")
        list_id = data["data"]["shoppingListId"]
        items = client.get(f"/api/shopping-lists/{list_id}/items").json()
        assert [i["itemName"] for i in items] == ["Spinach", "Salmon"]

    def test_add_to_shopping_list_uses_latest_draft(self, client, make_list):
        shopping_list = make_list(name="This week")

        response = client.post(
            "/api/nutritionist/apply-action",
            json={"type": "add_to_shopping_list", "payload": {"itemName": "Spinach"}},
        )

        assert response.json()["data"]["shoppingListId"] == shopping_list["id"]
        assert response.json()["message"] == "Added 1 item(s) to This week"

    def test_add_to_staples(self, client):
        response = client.post(
            "/api/nutritionist/apply-action",
            json={"type": "add_to_staples", "payload": {"itemName": "Oats", "frequency": "every_4_weeks"}},
        )

        assert response.json()["message"] == "Added Oats to staples"
        staple = client.get(f"/api/staples/{response.json()['data']['stapleId']}").json()
        assert staple["frequency"] == "every_4_weeks"

    def test_invalid_payload(self, client):
        response = client.post(
            "/api/nutritionist/apply-action",
            json={"type": "add_to_staples", "payload": {"itemName": "Oats", "frequency": "daily"}},
        )

        assert response.status_code == 400
        assert response.json()["error"].startswith("Frequency must be one of")

    def test_update_profile_targets(self, client):
        profile = client.post("/api/profiles", json={"profileName": "Sam"}).json()

        response = client.post(
            "/api/nutritionist/apply-action",
            json={
                "type": "update_profile_targets",
                "payload": {"profileId": profile["id"], "dailyProteinTarget": 120},
            },
        )

        assert response.json()["data"]["dailyProteinTarget"] == 120
        assert response.json()["data"]["dailyCalorieTarget"] is None
        assert client.get(f"/api/profiles/{profile['id']}").json()["dailyProteinTarget"] == 120

    def test_update_profile_targets_needs_profile(self, client):
        response = client.post(
            "/api/nutritionist/apply-action",
            json={"type": "update_profile_targets", "payload": {"dailyProteinTarget": 120}},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "profileId is required"}

    def test_malformed_ids(self, client):
        to_list = client.post(
            "/api/nutritionist/apply-action",
            json={"type": "add_to_shopping_list", "payload": {"itemName": "Milk", "shoppingListId": "abc"}},
        )
        to_profile = client.post(
            "/api/nutritionist/apply-action",
            json={"type": "update_profile_targets", "payload": {"profileId": "me", "dailyProteinTarget": 120}},
        )

        assert to_list.status_code == 400
        assert to_list.json()["error"].startswith("shoppingListId: ")
        assert to_profile.status_code == 400
        assert to_profile.json()["error"].startswith("profileId: ")
        assert client.get("/api/shopping-lists").json() == []

    def test_unknown_action(self, client):
        response = client.post("/api/nutritionist/apply-action", json={"type": "order_pizza", "payload": {}})

        assert response.status_code == 400
        assert response.json() == {
            "error": "Action type must be one of: add_to_shopping_list, add_to_staples, update_profile_targets"
        }
