"""
Service for ingredient name normalization.

Produces the grouping key used to spot duplicate shopping list lines and the
fuzzy matching used to find an ingredient in the inventory.
"""

import logging
import re
from typing import Iterable, Optional, TypeVar

from rapidfuzz import fuzz

logger = logging.getLogger(__name__)

FUZZY_MATCH_THRESHOLD = 90

# Trailing preparation notes that do not change what is bought
SUFFIXES_TO_REMOVE = [
    ", diced", ", chopped", ", sliced", ", minced", ", grated",
    ", fresh", ", dried", ", frozen", ", canned",
    ", large", ", medium", ", small",
    ", to taste", ", optional",
    " (optional)",
]

PREFIXES_TO_REMOVE = {
    "fresh", "frozen", "canned", "tinned", "organic", "raw",
    "large", "medium", "small", "baby",
    "sliced", "diced", "chopped", "minced", "grated", "crushed", "shredded",
    "peeled", "cubed", "halved",
}

PLURAL_MAP = {
    "tomatoes": "tomato",
    "potatoes": "potato",
    "onions": "onion",
    "carrots": "carrot",
    "eggs": "egg",
    "apples": "apple",
    "oranges": "orange",
    "lemons": "lemon",
    "limes": "lime",
    "peppers": "pepper",
    "mushrooms": "mushroom",
    "cloves": "clove",
    "leaves": "leaf",
    "breasts": "breast",
    "thighs": "thigh",
    "fillets": "fillet",
    "loaves": "loaf",
    "knives": "knife",
}

# Words that end in "s" in the singular
SINGULAR_S_WORDS = {
    "hummus", "asparagus", "couscous", "molasses", "swiss", "citrus",
    "oats", "grits", "lentils", "chickpeas", "noodles", "greens", "peas",
}

SYNONYMS = {
    "eggplant": "aubergine",
    "zucchini": "courgette",
    "arugula": "rocket",
    "green onion": "spring onion",
    "scallion": "spring onion",
    "bell pepper": "pepper",
    "capsicum": "pepper",
    "cilantro": "coriander",
    "beet": "beetroot",
    "corn": "sweetcorn",
    "bok choy": "pak choi",
    "ground beef": "beef mince",
    "ground pork": "pork mince",
    "ground turkey": "turkey mince",
    "shrimp": "prawn",
    "heavy cream": "double cream",
    "whipping cream": "double cream",
    "all-purpose flour": "plain flour",
    "all purpose flour": "plain flour",
    "powdered sugar": "icing sugar",
    "confectioners sugar": "icing sugar",
    "baking soda": "bicarbonate of soda",
    "cornstarch": "cornflour",
    "chicken broth": "chicken stock",
    "beef broth": "beef stock",
    "vegetable broth": "vegetable stock",
    "bouillon cube": "stock cube",
    "garbanzo bean": "chickpea",
    "canola oil": "rapeseed oil",
    "mayo": "mayonnaise",
    "catsup": "ketchup",
    "tomato ketchup": "ketchup",
    "tumeric": "turmeric",
}

# Keyword -> shopping category, checked in order
CATEGORY_KEYWORDS = {
    "Produce": [
        "apple", "banana", "tomato", "potato", "onion", "carrot", "lettuce",
        "spinach", "pepper", "garlic", "lemon", "lime", "orange", "mushroom",
        "courgette", "aubergine", "cucumber", "broccoli", "herb", "coriander",
        "parsley", "basil", "ginger", "avocado", "berry", "grape", "celery",
    ],
    "Dairy & Eggs": [
        "milk", "cheese", "yoghurt", "yogurt", "butter", "cream", "egg",
        "cheddar", "mozzarella", "parmesan", "feta",
    ],
    "Meat & Seafood": [
        "chicken", "beef", "pork", "lamb", "mince", "bacon", "sausage",
        "turkey", "salmon", "cod", "tuna", "prawn", "fish", "ham", "steak",
    ],
    "Bakery": ["bread", "roll", "bagel", "baguette", "tortilla", "wrap", "pitta", "croissant"],
    "Frozen": ["frozen", "ice cream", "peas"],
    "Canned Goods": ["canned", "tinned", "chopped tomato", "beans", "chickpea", "coconut milk"],
    "Condiments & Sauces": [
        "sauce", "ketchup", "mayonnaise", "mustard", "vinegar", "soy",
        "pesto", "dressing", "stock cube", "paste",
    ],
    "Pantry": [
        "flour", "sugar", "rice", "pasta", "oil", "salt", "spice", "oats",
        "lentil", "noodle", "cereal", "honey", "stock", "cumin", "paprika",
    ],
    "Beverages": ["water", "juice", "coffee", "tea", "soda", "wine", "beer", "cola"],
    "Snacks": ["crisps", "chips", "chocolate", "biscuit", "cookie", "nuts", "popcorn"],
    "Household": [
        "soap", "detergent", "toilet", "paper", "foil", "bin bag", "sponge",
        "washing", "shampoo", "toothpaste",
    ],
}

_PARENS = re.compile(r"\([^)]*\)")
_SPACES = re.compile(r"\s+")


def singularize(word: str) -> str:
    """Fold a single English plural to its singular."""
    if word in PLURAL_MAP:
        return PLURAL_MAP[word]
    if word in SINGULAR_S_WORDS or len(word) <= 3:
        return word
    if word.endswith("ies"):
        return word[:-3] + "y"
    if word.endswith("oes"):
        return word[:-2]
    if word.endswith(("ches", "shes", "xes")):
        return word[:-2]
    if word.endswith("s") and not word.endswith(("ss", "us", "is")):
        return word[:-1]
    return word


def normalize_ingredient_name(name: str) -> str:
    """
    Build the grouping key for an ingredient name.

    Examples:
        "Tomatoes" -> "tomato"
        "Onion, diced" -> "onion"
        "Scallions" -> "spring onion"
    """
    if not name:
        return ""

    normalized = name.lower().strip()

    for suffix in SUFFIXES_TO_REMOVE:
        if normalized.endswith(suffix):
            normalized = normalized[: -len(suffix)]

    normalized = _PARENS.sub(" ", normalized)
    normalized = _SPACES.sub(" ", normalized).strip()

    if normalized in SYNONYMS:
        return SYNONYMS[normalized]

    words = normalized.split(" ")
    while len(words) > 1 and words[0] in PREFIXES_TO_REMOVE:
        words = words[1:]

    if words:
        words[-1] = singularize(words[-1])
    normalized = " ".join(words)

    return SYNONYMS.get(normalized, normalized)


def names_match(a: str, b: str, threshold: int = FUZZY_MATCH_THRESHOLD) -> bool:
    """
    Decide whether two ingredient names refer to the same thing.

    Exact key match, whole-word containment ("milk" in "semi skimmed milk")
    or a fuzzy ratio at or above the threshold.
    """
    key_a = normalize_ingredient_name(a)
    key_b = normalize_ingredient_name(b)
    if not key_a or not key_b:
        return False
    if key_a == key_b:
        return True

    padded_a, padded_b = f" {key_a} ", f" {key_b} "
    if padded_a in padded_b or padded_b in padded_a:
        return True

    return fuzz.ratio(key_a, key_b) >= threshold


T = TypeVar("T")


def find_inventory_match(name: str, inventory: Iterable[T], attr: str = "item_name") -> Optional[T]:
    """
    Return the best inventory row for an ingredient name.

    Exact key matches win over containment and fuzzy matches.
    """
    key = normalize_ingredient_name(name)
    best = None
    best_score = -1.0

    for row in inventory:
        candidate = getattr(row, attr)
        if not names_match(name, candidate):
            continue
        candidate_key = normalize_ingredient_name(candidate)
        score = 101.0 if candidate_key == key else fuzz.ratio(key, candidate_key)
        if score > best_score:
            best, best_score = row, score

    return best


def suggest_category_by_keywords(name: str) -> Optional[str]:
    """Fast-path category lookup. Returns None when no keyword matches."""
    text = f" {name.lower().strip()} "
    key = f" {normalize_ingredient_name(name)} "
    for category, keywords in CATEGORY_KEYWORDS.items():
        for keyword in keywords:
            if f" {keyword}" in text or f" {keyword}" in key:
                return category
    return None
