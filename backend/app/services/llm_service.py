"""
LLM Service for the AI-assisted features, backed by Ollama.

Every helper builds a prompt, calls the text model and extracts JSON from the
answer. Helpers return None when the answer cannot be used so callers can
fall back to a non-AI path.
"""

import json
import re
import logging
from typing import Optional, Dict, List, Any

import ollama
import httpx

from app.config import settings

logger = logging.getLogger(__name__)

# Initialize Ollama client
try:
    timeout = httpx.Timeout(settings.OLLAMA_TIMEOUT, connect=10.0)
    ollama_client = ollama.Client(host=settings.OLLAMA_HOST, timeout=timeout)
except Exception as e:
    logger.error(f"Failed to connect to Ollama at {settings.OLLAMA_HOST}: {e}")
    ollama_client = None


class LLMError(Exception):
    """Raised when the model could not be reached or failed to answer."""


def _generate(prompt: str, temperature: float = 0.1, max_tokens: int = 500) -> str:
    """Call the text model and return the raw answer. Raises LLMError."""
    if not settings.AI_ENABLED:
        raise LLMError("AI features are disabled")
    if not ollama_client:
        raise LLMError("Ollama client not initialized. Check Ollama connection.")

    try:
        response = ollama_client.generate(
            model=settings.TEXT_MODEL,
            prompt=prompt,
            options={
                "temperature": temperature,
                "num_predict": max_tokens,
            },
        )
    except Exception as e:
        logger.error(f"Error calling Ollama: {e}")
        raise LLMError(str(e)) from e

    return response.get("response", "")


def extract_json_from_response(response_text: str) -> Optional[Any]:
    """
    Extract JSON from LLM response, handling markdown code blocks.

    Args:
        response_text: Raw LLM response

    Returns:
        Parsed JSON value or None
    """
    if not response_text:
        return None

    # Remove markdown code blocks if present
    json_match = re.search(r"```(?:json)?\s*([\[{].*?[\]}])\s*```", response_text, re.DOTALL)
    if json_match:
        json_str = json_match.group(1)
    else:
        # Try to find JSON object directly
        json_match = re.search(r"\{.*\}", response_text, re.DOTALL)
        if json_match:
            json_str = json_match.group(0)
        else:
            json_str = response_text.strip()

    try:
        return json.loads(json_str)
    except json.JSONDecodeError as e:
        logger.error(f"JSON decode error: {e}, text: {response_text[:200]}")
        return None


def combine_items_semantically(items: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    Ask the model how to combine duplicate items with incompatible units.

    Args:
        items: [{"name": ..., "quantity": ..., "unit": ...}, ...]

    Returns:
        {"quantity": float, "unit": str, "itemName": str} or None when the
        answer is unusable. Raises LLMError when the model call fails.
    """
    descriptions = "\n".join(f"{i['quantity']} {i['unit']} {i['name']}" for i in items)
    prompt = f"""You are a grocery shopping assistant. Combine these duplicate shopping list items into a single item with the most practical quantity and unit for shopping.

ITEMS TO COMBINE:
{descriptions}

Rules:
- 1 pinch is about 0.3g for dry spices
- For items sold by count (eggs, stock cubes) prefer "piece"
- For items sold by weight convert to grams, for liquids use ml

Respond with ONLY valid JSON in this exact format:
{{"quantity": <number>, "unit": "<unit>", "itemName": "<best name for the item>"}}
"""
    data = extract_json_from_response(_generate(prompt, max_tokens=150))
    if not isinstance(data, dict):
        return None

    try:
        quantity = float(data["quantity"])
        unit = str(data["unit"]).strip()
    except (KeyError, TypeError, ValueError):
        logger.warning(f"Unusable AI combination answer: {data}")
        return None

    if quantity < 0 or not unit:
        return None

    name = data.get("itemName")
    return {
        "quantity": quantity,
        "unit": unit,
        "itemName": str(name).strip() if name else None,
    }


def suggest_categories(item_names: List[str], categories: List[str]) -> Optional[Dict[str, str]]:
    """
    Map item names onto one of the given categories.

    Returns {item_name: category} restricted to known categories, or None.
    """
    if not item_names or not categories:
        return None

    prompt = f"""You are a grocery store assistant. Categorize each shopping item into one of the available categories.

AVAILABLE CATEGORIES:
{chr(10).join(categories)}

ITEMS:
{chr(10).join(item_names)}

Respond with ONLY a JSON object mapping every item to exactly one category name from the list, e.g. {{"Milk": "Dairy & Eggs"}}.
If an item does not fit any category use "Other".
"""
    try:
        data = extract_json_from_response(_generate(prompt, max_tokens=400))
    except LLMError:
        return None

    if not isinstance(data, dict):
        return None

    by_lower = {c.lower(): c for c in categories}
    result = {}
    for name, category in data.items():
        matched = by_lower.get(str(category).strip().lower())
        if matched:
            result[str(name)] = matched
    return result


def nutritionist_reply(
    message: str,
    history: Optional[List[Dict[str, str]]] = None,
    context: Optional[Dict[str, Any]] = None,
) -> Optional[str]:
    """
    Answer a chat message as a family nutritionist.

    Returns the reply text or None when the model is unavailable.
    """
    lines = [
        "You are a friendly, practical family nutritionist. Give short, concrete advice.",
        "Use the household context below when it is relevant.",
    ]
    if context:
        lines.append(f"Context:\n{json.dumps(context, indent=2, default=str)}")
    for turn in history or []:
        lines.append(f"{turn['role']}: {turn['content']}")
    lines.append(f"user: {message}")
    lines.append("assistant:")

    try:
        reply = _generate("\n\n".join(lines), temperature=0.6, max_tokens=800)
    except LLMError:
        return None

    reply = reply.strip()
    return reply or None


def generate_meal_plan(
    recipes: List[Dict[str, Any]],
    profiles: List[Dict[str, Any]],
    meal_types: List[str],
    days: List[str],
) -> Optional[List[Dict[str, Any]]]:
    """
    Ask the model for a week of meals chosen from the recipe library.

    Returns [{"day": "Mon", "mealType": "Dinner", "recipeName": ..., "servings": 4}, ...]
    or None.
    """
    prompt = f"""You are a meal planner for a family. Plan the meals below using the recipe library when possible.

FAMILY:
{json.dumps(profiles, indent=2, default=str)}

RECIPE LIBRARY:
{json.dumps(recipes, indent=2, default=str)}

DAYS: {", ".join(days)}
MEAL TYPES: {", ".join(meal_types)}

Respect allergies and dietary preferences. Avoid repeating a recipe on consecutive days.
Respond with ONLY valid JSON in this format:
{{"meals": [{{"day": "Mon", "mealType": "Dinner", "recipeName": "<name>", "servings": 4}}]}}
"""
    try:
        data = extract_json_from_response(_generate(prompt, temperature=0.4, max_tokens=2000))
    except LLMError:
        return None

    if not isinstance(data, dict) or not isinstance(data.get("meals"), list):
        return None

    meals = []
    for meal in data["meals"]:
        if not isinstance(meal, dict):
            continue
        day = str(meal.get("day", "")).strip()[:3].capitalize()
        meal_type = str(meal.get("mealType", "")).strip().capitalize()
        name = str(meal.get("recipeName", "")).strip()
        if day not in days or meal_type not in meal_types or not name:
            logger.warning(f"Skipping unusable planned meal: {meal}")
            continue
        try:
            servings = int(meal.get("servings") or 0) or None
        except (TypeError, ValueError):
            servings = None
        meals.append({"day": day, "mealType": meal_type, "recipeName": name, "servings": servings})

    return meals or None
