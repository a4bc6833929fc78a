"""Request and response models for the food log API."""

from dataclasses import asdict

from pydantic import BaseModel, ConfigDict, Field, field_validator

from food_logger.config import parse_log_date
from food_logger.domain.favorites import FavoriteEntry
from food_logger.domain.food_logs import FoodLogEntry, FoodLogForm, confidence_level
from food_logger.domain.nutrition import (
    ActivityLevel,
    BodyProfile,
    CalorieGoal,
    DailyProgress,
    DailyTargets,
    DailyTotals,
    Sex,
)
from food_logger.services.merge import format_user_value
from food_logger.services.reconciliation import ReconciliationOutcome

NutritionInput = str | float | None


class FoodLogFormBody(BaseModel):
    """User input for creating or editing an entry."""

    title: str = ""
    description: str = ""
    calories: NutritionInput = None
    protein: NutritionInput = None
    carbs: NutritionInput = None
    fat: NutritionInput = None
    date: str | None = None

    @field_validator("date")
    @classmethod
    def check_date(cls, value: str | None) -> str | None:
        return parse_log_date(value) if value else None

    def to_form(self) -> FoodLogForm:
        """Convert the body into the raw form the flow validates."""
        return FoodLogForm(
            title=self.title,
            description=self.description,
            calories=_as_text(self.calories),
            protein=_as_text(self.protein),
            carbs=_as_text(self.carbs),
            fat=_as_text(self.fat),
            date=self.date,
        )


class CaptureBody(FoodLogFormBody):
    """Image capture with optional details."""

    model_config = ConfigDict(populate_by_name=True)

    image_url: str = Field(alias="imageUrl")


class LogAgainBody(BaseModel):
    """Target day for a repeated entry."""

    date: str | None = None

    @field_validator("date")
    @classmethod
    def check_date(cls, value: str | None) -> str | None:
        return parse_log_date(value) if value else None


class TargetsBody(BaseModel):
    """Daily targets update."""

    calories: float = Field(ge=0)
    protein: float = Field(ge=0)
    carbs: float = Field(ge=0)
    fat: float = Field(ge=0)

    def to_targets(self) -> DailyTargets:
        """Convert to the domain model."""
        return DailyTargets(
            calories=self.calories,
            protein=self.protein,
            carbs=self.carbs,
            fat=self.fat,
        )


class FavoriteBody(BaseModel):
    """A favorite to log, with an optional target day."""

    title: str = ""
    description: str = ""
    calories: float = Field(ge=0)
    protein: float = Field(ge=0)
    carbs: float = Field(ge=0)
    fat: float = Field(ge=0)
    date: str | None = None

    @field_validator("date")
    @classmethod
    def check_date(cls, value: str | None) -> str | None:
        return parse_log_date(value) if value else None

    def to_favorite(self) -> FavoriteEntry:
        return FavoriteEntry(
            title=self.title,
            description=self.description,
            calories=self.calories,
            protein=self.protein,
            carbs=self.carbs,
            fat=self.fat,
        )


class BodyProfileBody(BaseModel):
    """Body measurements used to calculate targets."""

    model_config = ConfigDict(populate_by_name=True)

    sex: Sex
    age: int = Field(gt=0, le=120)
    weight_kg: float = Field(gt=0, alias="weightKg")
    height_cm: float = Field(gt=0, alias="heightCm")
    activity_level: ActivityLevel = Field(alias="activityLevel")
    goal: CalorieGoal = CalorieGoal.MAINTAIN
    protein_per_kg: float = Field(default=2.2, ge=0, alias="proteinPerKg")
    fat_percentage: float = Field(default=30, ge=0, le=100, alias="fatPercentage")

    def to_profile(self) -> BodyProfile:
        return BodyProfile(
            sex=self.sex,
            age=self.age,
            weight_kg=self.weight_kg,
            height_cm=self.height_cm,
            activity_level=self.activity_level,
            goal=self.goal,
            protein_per_kg=self.protein_per_kg,
            fat_percentage=self.fat_percentage,
        )


def entry_payload(entry: FoodLogEntry) -> dict[str, object]:
    """Serialize an entry for responses."""
    payload = asdict(entry)
    payload["status"] = entry.status.value
    payload["confidence_level"] = confidence_level(entry).value
    return payload


def outcome_payload(outcome: ReconciliationOutcome) -> dict[str, object]:
    """Serialize a reconciliation outcome."""
    return {
        "status": outcome.status.value,
        "entry": entry_payload(outcome.entry) if outcome.entry else None,
        "notice": outcome.notice,
    }


def daily_totals_payload(day: DailyTotals) -> dict[str, object]:
    """Serialize one day's totals."""
    return {"date": day.date, **asdict(day.totals)}


def progress_payload(progress: DailyProgress) -> dict[str, object]:
    """Serialize daily progress."""
    return {
        "date": progress.date,
        "current": asdict(progress.current),
        "targets": asdict(progress.targets),
        "percentages": progress.percentages,
    }


def _as_text(value: NutritionInput) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return format_user_value(value)
