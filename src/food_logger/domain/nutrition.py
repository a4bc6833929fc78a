"""Nutrition domain models."""

from dataclasses import dataclass, field
from enum import StrEnum


@dataclass(frozen=True)
class NutritionTotals:
    """Calories and macronutrients in grams."""

    calories: float
    protein: float
    carbs: float
    fat: float


@dataclass(frozen=True)
class NutritionMergeResult:
    """Outcome of merging user input with estimated nutrition."""

    calories: float
    protein: float
    carbs: float
    fat: float
    user_calories: float | None
    user_protein: float | None
    user_carbs: float | None
    user_fat: float | None
    needs_ai_estimation: bool
    validation_errors: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        """Return whether every field passed validation."""
        return not self.validation_errors


@dataclass(frozen=True)
class DailyTargets:
    """Daily nutrition goals."""

    calories: float = 2000
    protein: float = 150
    carbs: float = 250
    fat: float = 65


@dataclass(frozen=True)
class DailyProgress:
    """Consumed totals against targets for a single day."""

    date: str
    current: NutritionTotals
    targets: DailyTargets
    percentages: dict[str, int]


@dataclass(frozen=True)
class DailyTotals:
    """Totals for a single logged day."""

    date: str
    totals: NutritionTotals


class Sex(StrEnum):
    MALE = "male"
    FEMALE = "female"


class ActivityLevel(StrEnum):
    """Typical daily activity."""

    SEDENTARY = "sedentary"
    LIGHT = "light"
    MODERATE = "moderate"
    ACTIVE = "active"
    VERY_ACTIVE = "veryactive"


class CalorieGoal(StrEnum):
    LOSE = "lose"
    MAINTAIN = "maintain"
    GAIN = "gain"


@dataclass(frozen=True)
class BodyProfile:
    """Inputs used to calculate daily targets."""

    sex: Sex
    age: int
    weight_kg: float
    height_cm: float
    activity_level: ActivityLevel
    goal: CalorieGoal = CalorieGoal.MAINTAIN
    protein_per_kg: float = 2.2
    fat_percentage: float = 30
