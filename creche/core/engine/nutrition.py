"""
Nutrient aggregation for weekly menus.

Ingredients carry a nutrient profile per 100 g/ml plus the quantity served.
Meal totals are the scaled sum of their ingredients, day totals the sum of the
day's meals, and the weekly figure an average over the days that have data.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional

from creche.core.constants import MenuType

NutritionTotals = Dict[str, float]

NUTRIENT_FIELDS = (
    # Macros
    "energy",
    "protein",
    "lipid",
    "carbohydrate",
    "fiber",
    # Minerals
    "calcium",
    "iron",
    "sodium",
    "potassium",
    "magnesium",
    "phosphorus",
    "zinc",
    "copper",
    "manganese",
    # Vitamins
    "vitamin_c",
    "vitamin_a",
    "retinol",
    "thiamine",
    "riboflavin",
    "pyridoxine",
    "niacin",
    # Lipid composition
    "cholesterol",
    "saturated",
    "monounsaturated",
    "polyunsaturated",
)

MEAL_FIELDS = ("breakfast", "morning_snack", "lunch", "bottle", "snack", "pre_dinner", "dinner")

# Daily reference values per menu age group (PNAE)
PNAE_TARGETS: Dict[str, Dict[str, float]] = {
    MenuType.BERCARIO_0_6.value: {
        "energy": 500, "protein": 9, "lipid": 30, "carbohydrate": 60, "fiber": 0,
        "calcium": 210, "iron": 0.27, "sodium": 100, "potassium": 400, "magnesium": 30,
        "phosphorus": 100, "zinc": 2, "vitamin_a": 400, "vitamin_c": 40,
    },
    MenuType.BERCARIO_6_12.value: {
        "energy": 700, "protein": 11, "lipid": 30, "carbohydrate": 95, "fiber": 5,
        "calcium": 260, "iron": 11, "sodium": 300, "potassium": 700, "magnesium": 75,
        "phosphorus": 275, "zinc": 3, "vitamin_a": 500, "vitamin_c": 50,
    },
    MenuType.BERCARIO_12_24.value: {
        "energy": 900, "protein": 13, "lipid": 35, "carbohydrate": 130, "fiber": 19,
        "calcium": 500, "iron": 7, "sodium": 800, "potassium": 3000, "magnesium": 80,
        "phosphorus": 460, "zinc": 3, "vitamin_a": 300, "vitamin_c": 15,
    },
    MenuType.MATERNAL.value: {
        "energy": 1200, "protein": 19, "lipid": 40, "carbohydrate": 180, "fiber": 25,
        "calcium": 800, "iron": 10, "sodium": 1200, "potassium": 3800, "magnesium": 130,
        "phosphorus": 500, "zinc": 5, "vitamin_a": 400, "vitamin_c": 25,
    },
}

ADEQUATE_RANGE = (0.9, 1.1)
CLOSE_THRESHOLD = 0.7


def _number(value: Any) -> float:
    """Missing or null nutrient values count as zero."""
    if value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def empty_totals() -> NutritionTotals:
    """All nutrient fields set to zero."""
    return {field: 0.0 for field in NUTRIENT_FIELDS}


def ingredient_contribution(ingredient: Mapping[str, Any]) -> NutritionTotals:
    """
    Nutrients supplied by one ingredient.

    Each field is ``value_per_100 * quantity / 100``.

    >>> ingredient_contribution({"energy": 130, "protein": 2.7, "quantity": 200})["energy"]
    260.0
    """
    quantity = _number(ingredient.get("quantity"))
    return {field: _number(ingredient.get(field)) * quantity / 100 for field in NUTRIENT_FIELDS}


def sum_totals(items: Iterable[Optional[Mapping[str, Any]]]) -> NutritionTotals:
    """Field-wise sum of nutrient totals; ``None`` entries are skipped."""
    totals = empty_totals()
    for item in items:
        if not item:
            continue
        for field in NUTRIENT_FIELDS:
            totals[field] += _number(item.get(field))
    return totals


def aggregate(ingredients: Iterable[Mapping[str, Any]]) -> NutritionTotals:
    """Total nutrients of a list of ingredients. Empty input gives all zeros."""
    return sum_totals(ingredient_contribution(ingredient) for ingredient in ingredients)


def day_totals(meals: Mapping[str, Optional[Mapping[str, Any]]]) -> Optional[NutritionTotals]:
    """
    Sum the totals of the day's meals.

    Args:
        meals: Mapping of meal field (breakfast, lunch, ...) to that meal's totals.
            Keys that are not meal fields (ingredient lists, notes) are ignored.

    Returns:
        Day totals, or None when no meal has nutrition data
    """
    present = [meals.get(field) for field in MEAL_FIELDS if meals.get(field)]
    if not present:
        return None
    return sum_totals(present)


def period_average(days: Iterable[Optional[Mapping[str, Any]]]) -> NutritionTotals:
    """
    Average day totals over the days whose energy is above zero.

    The sum covers every provided day; the divisor counts only days with
    energy > 0 and falls back to 1 when there is none.
    """
    valid_days = [day for day in days if day]
    totals = sum_totals(valid_days)
    count = sum(1 for day in valid_days if _number(day.get("energy")) > 0)
    divisor = count or 1
    return {field: value / divisor for field, value in totals.items()}


def round_for_display(totals: Mapping[str, Any]) -> NutritionTotals:
    """Energy without decimals, every other field with one."""
    return {
        field: round(_number(totals.get(field)), 0 if field == "energy" else 1)
        for field in NUTRIENT_FIELDS
    }


def target_status(ratio: float) -> str:
    """Classify a value/target ratio as adequate, close or low."""
    low, high = ADEQUATE_RANGE
    if low <= ratio <= high:
        return "adequate"
    if ratio >= CLOSE_THRESHOLD:
        return "close"
    return "low"


def compare_to_targets(totals: Mapping[str, Any], menu_type: str) -> List[Dict[str, Any]]:
    """
    Compare totals against the reference targets of a menu age group.

    Raises:
        KeyError: If the menu type has no reference targets
    """
    targets = PNAE_TARGETS[menu_type]
    comparison = []
    for nutrient, target in targets.items():
        value = _number(totals.get(nutrient))
        ratio = value / target if target else 0.0
        comparison.append({
            "nutrient": nutrient,
            "value": value,
            "target": target,
            "ratio": round(ratio, 3),
            "status": target_status(ratio),
        })
    return comparison
