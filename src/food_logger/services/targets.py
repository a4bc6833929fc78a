"""Daily nutrition targets and progress."""

import json
import logging
import math
from dataclasses import asdict, dataclass

from food_logger.domain.nutrition import (
    ActivityLevel,
    BodyProfile,
    CalorieGoal,
    DailyProgress,
    DailyTargets,
    Sex,
)
from food_logger.services.key_value import KeyValueStore
from food_logger.services.log_store import LogStateStore

DAILY_TARGETS_KEY = "daily_targets"

ACTIVITY_MULTIPLIERS: dict[ActivityLevel, float] = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHT: 1.375,
    ActivityLevel.MODERATE: 1.55,
    ActivityLevel.ACTIVE: 1.725,
    ActivityLevel.VERY_ACTIVE: 1.9,
}
GOAL_ADJUSTMENTS: dict[CalorieGoal, float] = {
    CalorieGoal.LOSE: -500,
    CalorieGoal.MAINTAIN: 0,
    CalorieGoal.GAIN: 500,
}
# Weight-loss targets never go below these.
CALORIE_FLOORS: dict[Sex, float] = {Sex.FEMALE: 1200, Sex.MALE: 1500}

_logger = logging.getLogger(__name__)


def calculate_targets(profile: BodyProfile) -> DailyTargets:
    """Derive daily targets from body measurements, activity and goal.

    Resting energy uses the Mifflin-St Jeor equation. Protein is grams per kg
    of body weight, fat takes a share of calories and carbs fill the rest.
    """
    if profile.age <= 0 or profile.weight_kg <= 0 or profile.height_cm <= 0:
        raise ValueError("Age, weight and height must be positive")
    if not 0 <= profile.fat_percentage <= 100:
        raise ValueError("Fat percentage must be between 0 and 100")
    if profile.protein_per_kg < 0:
        raise ValueError("Protein per kg cannot be negative")

    offset = 5 if profile.sex is Sex.MALE else -161
    resting = (
        10 * profile.weight_kg + 6.25 * profile.height_cm - 5 * profile.age + offset
    )
    calories = (
        resting * ACTIVITY_MULTIPLIERS[profile.activity_level]
        + GOAL_ADJUSTMENTS[profile.goal]
    )
    if profile.goal is CalorieGoal.LOSE:
        calories = max(calories, CALORIE_FLOORS[profile.sex])

    protein = profile.weight_kg * profile.protein_per_kg
    fat = calories * profile.fat_percentage / 100 / 9
    carbs = max((calories - protein * 4 - fat * 9) / 4, 0)
    return DailyTargets(
        calories=_round_half_up(calories),
        protein=_round_half_up(protein),
        carbs=_round_half_up(carbs),
        fat=_round_half_up(fat),
    )


@dataclass
class TargetsService:
    """Reads and writes daily targets and reports progress against them."""

    store: KeyValueStore
    log_store: LogStateStore

    async def get_targets(self) -> DailyTargets:
        """Return stored targets, or the defaults."""
        raw = await self.store.get_item(DAILY_TARGETS_KEY)
        if not raw:
            return DailyTargets()
        try:
            data = json.loads(raw)
            return DailyTargets(
                calories=float(data.get("calories", DailyTargets.calories)),
                protein=float(data.get("protein", DailyTargets.protein)),
                carbs=float(data.get("carbs", DailyTargets.carbs)),
                fat=float(data.get("fat", DailyTargets.fat)),
            )
        except (AttributeError, TypeError, ValueError):
            _logger.warning("Stored daily targets are invalid, using defaults")
            return DailyTargets()

    async def save_targets(self, targets: DailyTargets) -> DailyTargets:
        """Persist new targets."""
        await self.store.set_item(DAILY_TARGETS_KEY, json.dumps(asdict(targets)))
        return targets

    async def reset_targets(self) -> DailyTargets:
        """Set every target to zero."""
        return await self.save_targets(DailyTargets(0, 0, 0, 0))

    async def apply_profile(self, profile: BodyProfile) -> DailyTargets:
        """Calculate targets from a body profile and store them."""
        targets = calculate_targets(profile)
        _logger.info("Calculated daily targets of %d kcal", targets.calories)
        return await self.save_targets(targets)

    async def daily_progress(self, log_date: str) -> DailyProgress:
        """Compare a day's totals with the current targets."""
        targets = await self.get_targets()
        current = self.log_store.daily_totals(log_date)
        return DailyProgress(
            date=log_date,
            current=current,
            targets=targets,
            percentages={
                "calories": _percentage(current.calories, targets.calories),
                "protein": _percentage(current.protein, targets.protein),
                "carbs": _percentage(current.carbs, targets.carbs),
                "fat": _percentage(current.fat, targets.fat),
            },
        )


def _percentage(current: float, target: float) -> int:
    if target <= 0:
        return 0
    return _round_half_up(current / target * 100)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)
