"""
Unit conversion and rounding helpers.

Cooking measurements are converted to grams or millilitres through a static
table. Count-like units (pieces, cans, cloves...) are never converted.
"""

import math
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

# unit -> (factor to metric, metric unit, kind)
CONVERSIONS: Dict[str, Tuple[float, str, str]] = {
    # Weight (to grams)
    "oz": (28.3495, "g", "weight"),
    "ounce": (28.3495, "g", "weight"),
    "ounces": (28.3495, "g", "weight"),
    "lb": (453.592, "g", "weight"),
    "lbs": (453.592, "g", "weight"),
    "pound": (453.592, "g", "weight"),
    "pounds": (453.592, "g", "weight"),
    "g": (1, "g", "weight"),
    "gram": (1, "g", "weight"),
    "grams": (1, "g", "weight"),
    "kg": (1000, "g", "weight"),
    "kilogram": (1000, "g", "weight"),
    "kilograms": (1000, "g", "weight"),
    # Volume (to millilitres)
    "ml": (1, "ml", "volume"),
    "milliliter": (1, "ml", "volume"),
    "millilitre": (1, "ml", "volume"),
    "milliliters": (1, "ml", "volume"),
    "millilitres": (1, "ml", "volume"),
    "l": (1000, "ml", "volume"),
    "liter": (1000, "ml", "volume"),
    "litre": (1000, "ml", "volume"),
    "liters": (1000, "ml", "volume"),
    "litres": (1000, "ml", "volume"),
    "cup": (236.588, "ml", "volume"),
    "cups": (236.588, "ml", "volume"),
    "tbsp": (14.7868, "ml", "volume"),
    "tablespoon": (14.7868, "ml", "volume"),
    "tablespoons": (14.7868, "ml", "volume"),
    "tsp": (4.92892, "ml", "volume"),
    "teaspoon": (4.92892, "ml", "volume"),
    "teaspoons": (4.92892, "ml", "volume"),
    "fl oz": (29.5735, "ml", "volume"),
    "fluid ounce": (29.5735, "ml", "volume"),
    "fluid ounces": (29.5735, "ml", "volume"),
    "pint": (473.176, "ml", "volume"),
    "pints": (473.176, "ml", "volume"),
    "quart": (946.353, "ml", "volume"),
    "quarts": (946.353, "ml", "volume"),
    "gallon": (3785.41, "ml", "volume"),
    "gallons": (3785.41, "ml", "volume"),
}

NON_CONVERTIBLE_UNITS = {
    "piece", "pieces", "pcs",
    "whole", "each",
    "clove", "cloves",
    "slice", "slices",
    "bunch", "bunches",
    "sprig", "sprigs",
    "head", "heads",
    "stalk", "stalks",
    "leaf", "leaves",
    "can", "cans",
    "jar", "jars",
    "bottle", "bottles",
    "pack", "packs", "packet", "packets",
    "bag", "bags",
    "box", "boxes",
    "pinch", "pinches",
    "dash", "dashes",
    "handful", "handfuls",
    "small", "medium", "large",
    "to taste",
}

# Standard unit name -> (rounding category, aliases)
STANDARD_UNITS: Dict[str, Tuple[str, Tuple[str, ...]]] = {
    "g": ("weight", ("gram", "grams", "gm", "gms")),
    "kg": ("weight", ("kilogram", "kilograms", "kilo", "kilos")),
    "ml": ("volume", ("milliliter", "millilitre", "milliliters", "millilitres")),
    "L": ("volume", ("l", "liter", "litre", "liters", "litres")),
    "tsp": ("spoon", ("teaspoon", "teaspoons", "ts")),
    "tbsp": ("spoon", ("tablespoon", "tablespoons", "tbs", "tb")),
    "piece": ("count", ("pieces", "pcs", "pc", "whole", "each", "ea", "unit", "units")),
    "slice": ("count", ("slices",)),
    "clove": ("count", ("cloves",)),
    "bunch": ("count", ("bunches",)),
    "sprig": ("count", ("sprigs",)),
    "head": ("count", ("heads",)),
    "stalk": ("count", ("stalks",)),
    "leaf": ("count", ("leaves",)),
    "rasher": ("count", ("rashers",)),
    "fillet": ("count", ("fillets",)),
    "breast": ("count", ("breasts",)),
    "thigh": ("count", ("thighs",)),
    "egg": ("count", ("eggs",)),
    "can": ("count", ("cans", "tin", "tins")),
    "jar": ("count", ("jars",)),
    "bottle": ("count", ("bottles",)),
    "pack": ("count", ("packs", "packet", "packets", "pkg", "package", "packages")),
    "bag": ("count", ("bags",)),
    "box": ("count", ("boxes",)),
    "stick": ("count", ("sticks",)),
    "cube": ("count", ("cubes",)),
    "pinch": ("count", ("pinches",)),
    "dash": ("count", ("dashes",)),
    "handful": ("count", ("handfuls",)),
    "cup": ("volume", ("cups",)),
}

_ALIASES: Dict[str, str] = {}
_CATEGORIES: Dict[str, str] = {}
for _name, (_category, _aliases) in STANDARD_UNITS.items():
    for _alias in (_name,) + _aliases:
        _ALIASES[_alias.lower()] = _name
        _CATEGORIES[_alias.lower()] = _category

DEFAULT_CATEGORIES = [
    ("Produce", 0),
    ("Dairy & Eggs", 1),
    ("Meat & Seafood", 2),
    ("Bakery", 3),
    ("Frozen", 4),
    ("Pantry", 5),
    ("Canned Goods", 6),
    ("Condiments & Sauces", 7),
    ("Beverages", 8),
    ("Snacks", 9),
    ("Household", 10),
    ("Other", 99),
]


@dataclass
class ConversionResult:
    quantity: float
    unit: str
    was_converted: bool
    original_quantity: float
    original_unit: str

    def to_dict(self) -> dict:
        return {
            "quantity": self.quantity,
            "unit": self.unit,
            "wasConverted": self.was_converted,
            "originalQuantity": self.original_quantity,
            "originalUnit": self.original_unit,
        }


def _key(unit: Optional[str]) -> str:
    return (unit or "").lower().strip()


def convert_to_metric(quantity: float, unit: str) -> ConversionResult:
    """
    Convert a quantity to grams or millilitres.

    Count units and unknown units come back unchanged. Metric units only get
    their name normalized ("grams" -> "g").
    """
    key = _key(unit)
    if key in NON_CONVERTIBLE_UNITS or key not in CONVERSIONS:
        return ConversionResult(quantity, unit, False, quantity, unit)

    factor, metric_unit, _ = CONVERSIONS[key]
    if factor == 1:
        return ConversionResult(quantity, metric_unit, False, quantity, unit)

    return ConversionResult(
        round(quantity * factor, 2), metric_unit, True, quantity, unit
    )


def are_units_compatible(unit1: str, unit2: str) -> bool:
    """True when both units are the same or of the same kind (weight/volume)."""
    key1, key2 = _key(unit1), _key(unit2)
    if key1 == key2:
        return True
    if key1 not in CONVERSIONS or key2 not in CONVERSIONS:
        return False
    return CONVERSIONS[key1][2] == CONVERSIONS[key2][2]


def combine_quantities(
    qty1: float, unit1: str, qty2: float, unit2: str
) -> Optional[ConversionResult]:
    """Add two quantities in a common metric unit, None when impossible."""
    first = convert_to_metric(qty1, unit1)
    second = convert_to_metric(qty2, unit2)

    if _key(first.unit) != _key(second.unit):
        return None

    return ConversionResult(
        quantity=round(first.quantity + second.quantity, 2),
        unit=first.unit,
        was_converted=first.was_converted or second.was_converted,
        original_quantity=qty1 + qty2,
        original_unit=unit1,
    )


def convert_between(quantity: float, from_unit: str, to_unit: str) -> Optional[float]:
    """Express a quantity in another unit of the same kind."""
    from_key, to_key = _key(from_unit), _key(to_unit)
    if from_key == to_key or _key(normalize_unit(from_unit)) == _key(normalize_unit(to_unit)):
        return quantity
    if not are_units_compatible(from_unit, to_unit):
        return None
    from_factor = CONVERSIONS[from_key][0]
    to_factor = CONVERSIONS[to_key][0]
    return round(quantity * from_factor / to_factor, 2)


def normalize_unit(unit: Optional[str]) -> str:
    """Map a unit alias to its standard name ("pcs" -> "piece")."""
    if not unit:
        return ""
    return _ALIASES.get(_key(unit), unit.strip())


def get_unit_category(unit: str) -> str:
    return _CATEGORIES.get(_key(unit), "other")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def round_quantity(quantity: float, unit: str) -> float:
    """
    Round a quantity to something that makes sense on a shopping list.

    Count units round to whole numbers, spoons and cups to quarters, ml to 5,
    litres and kg to 0.1, grams to 10 above 50g and to 1 below.
    """
    category = get_unit_category(unit)
    standard = normalize_unit(unit).lower()

    if category == "count":
        return float(_round_half_up(quantity))
    if category == "spoon" or standard == "cup":
        return _round_half_up(quantity * 4) / 4
    if standard == "ml":
        return float(_round_half_up(quantity / 5) * 5)
    if standard in ("l", "kg"):
        return _round_half_up(quantity * 10) / 10
    if standard == "g":
        if quantity >= 50:
            return float(_round_half_up(quantity / 10) * 10)
        return float(_round_half_up(quantity))
    return round(quantity, 2)


def normalize_and_round(quantity: float, unit: str) -> Tuple[float, str]:
    standard = normalize_unit(unit)
    return round_quantity(quantity, standard), standard


def format_quantity(quantity: float, unit: Optional[str] = None) -> str:
    """Format a quantity without trailing zeros ("2.50" -> "2.5")."""
    value = round_quantity(quantity, unit) if unit else round(quantity, 2)
    if float(value).is_integer():
        text = str(int(value))
    else:
        text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {unit}" if unit else text
