"""Merging of user-entered nutrition with estimated values."""

import math
import re

from food_logger.domain.estimation import FoodEstimate
from food_logger.domain.nutrition import NutritionMergeResult, NutritionTotals

MAX_NUTRITION_VALUE = 10000

_NUMERIC_PREFIX = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def merge_nutrition_data(
    user_calories: str,
    user_protein: str,
    user_carbs: str,
    user_fat: str,
    ai_data: NutritionTotals | FoodEstimate | None = None,
) -> NutritionMergeResult:
    """Validate user input and merge it over estimated values.

    A user value always wins, then the estimated value, then zero. Estimation
    is still needed unless all four fields were supplied by the user.
    """
    calories, calories_error = _parse_user_value(user_calories, "Calories")
    protein, protein_error = _parse_user_value(user_protein, "Protein")
    carbs, carbs_error = _parse_user_value(user_carbs, "Carbs")
    fat, fat_error = _parse_user_value(user_fat, "Fat")

    errors = [
        error
        for error in (calories_error, protein_error, carbs_error, fat_error)
        if error
    ]
    has_all_user_values = all(
        value is not None for value in (calories, protein, carbs, fat)
    )

    return NutritionMergeResult(
        calories=_first_present(calories, ai_data and ai_data.calories),
        protein=_first_present(protein, ai_data and ai_data.protein),
        carbs=_first_present(carbs, ai_data and ai_data.carbs),
        fat=_first_present(fat, ai_data and ai_data.fat),
        user_calories=calories,
        user_protein=protein,
        user_carbs=carbs,
        user_fat=fat,
        needs_ai_estimation=not has_all_user_values,
        validation_errors=errors,
    )


def format_user_value(value: float | None) -> str:
    """Render a stored user value back into merge input."""
    if value is None:
        return ""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def _parse_user_value(raw: str, field_name: str) -> tuple[float | None, str | None]:
    cleaned = (raw or "").strip()
    if not cleaned:
        return None, None

    match = _NUMERIC_PREFIX.match(cleaned)
    parsed = float(match.group(0)) if match else math.nan
    if not math.isfinite(parsed):
        return None, f"{field_name} must be a valid number"
    if parsed < 0:
        return None, f"{field_name} cannot be negative"
    if parsed > MAX_NUTRITION_VALUE:
        return None, f"{field_name} value seems too high (max 10,000)"
    return parsed, None


def _first_present(user_value: float | None, ai_value: float | None) -> float:
    if user_value is not None:
        return user_value
    if ai_value is not None:
        return float(ai_value)
    return 0.0
