"""Domain models for food log entries."""

from dataclasses import dataclass
from enum import StrEnum
from uuid import uuid4

HIGH_CONFIDENCE = 80
MEDIUM_CONFIDENCE = 60


class EstimationStatus(StrEnum):
    """Estimation state of a food log entry."""

    FINAL = "final"
    ESTIMATING = "estimating"
    NEEDS_INPUT = "needs-input"


class ConfidenceLevel(StrEnum):
    """Display bucket for an entry's estimation confidence."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    UNCERTAIN = "uncertain"


@dataclass(frozen=True)
class FoodLogEntry:
    """A single logged food with user-entered and displayed nutrition."""

    id: str
    created_at: str
    date: str
    generated_title: str
    estimation_confidence: int
    calories: float
    protein: float
    carbs: float
    fat: float
    user_title: str | None = None
    user_description: str | None = None
    user_calories: float | None = None
    user_protein: float | None = None
    user_carbs: float | None = None
    user_fat: float | None = None
    image_url: str | None = None
    needs_ai_estimation: bool = False
    status: EstimationStatus = EstimationStatus.FINAL

    @property
    def is_estimating(self) -> bool:
        """Return whether this entry is a skeleton awaiting estimation."""
        return self.status is EstimationStatus.ESTIMATING

    @property
    def display_title(self) -> str:
        """Return the title shown to the user."""
        return self.user_title or self.generated_title


@dataclass(frozen=True)
class FoodLogForm:
    """Raw user input for creating or editing an entry."""

    title: str = ""
    description: str = ""
    calories: str = ""
    protein: str = ""
    carbs: str = ""
    fat: str = ""
    date: str | None = None


def confidence_level(entry: FoodLogEntry) -> ConfidenceLevel:
    """Bucket an entry's confidence for display."""
    if entry.is_estimating or entry.estimation_confidence == 0:
        return ConfidenceLevel.UNCERTAIN
    if entry.estimation_confidence >= HIGH_CONFIDENCE:
        return ConfidenceLevel.HIGH
    if entry.estimation_confidence >= MEDIUM_CONFIDENCE:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def generate_entry_id() -> str:
    """Return a new opaque entry id."""
    return f"food_log_{uuid4().hex}"
