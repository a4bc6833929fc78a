"""Favorite entry templates."""

from dataclasses import dataclass

from food_logger.domain.food_logs import FoodLogEntry


@dataclass(frozen=True)
class FavoriteEntry:
    """A saved title, description and nutrition that can be logged again."""

    title: str
    description: str
    calories: float
    protein: float
    carbs: float
    fat: float

    @classmethod
    def from_log(cls, entry: FoodLogEntry) -> "FavoriteEntry":
        """Build a favorite from what an entry currently shows."""
        return cls(
            title=(entry.user_title or "").strip() or entry.generated_title,
            description=(entry.user_description or "").strip(),
            calories=entry.calories,
            protein=entry.protein,
            carbs=entry.carbs,
            fat=entry.fat,
        )

    def matches(self, other: "FavoriteEntry") -> bool:
        """Return whether both favorites describe the same food."""
        return (
            self.title.strip() == other.title.strip()
            and self.description.strip() == other.description.strip()
            and self.calories == other.calories
            and self.protein == other.protein
            and self.carbs == other.carbs
            and self.fat == other.fat
        )

    def mentions(self, term: str) -> bool:
        """Case-insensitive search over title and description."""
        query = term.strip().lower()
        return (
            query in self.title.strip().lower()
            or query in self.description.strip().lower()
        )
