"""In-memory food log state backed by persistent storage."""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Protocol
from zoneinfo import ZoneInfo

from food_logger.domain.food_logs import FoodLogEntry
from food_logger.domain.nutrition import DailyTotals, NutritionTotals

_logger = logging.getLogger(__name__)


class PersistenceError(RuntimeError):
    """Raised when the storage collaborator fails to read or write."""


class FoodLogStorage(Protocol):
    """Persistence interface for the ordered list of food log entries."""

    async def get_all(self) -> list[FoodLogEntry]:
        """Return all stored entries, newest first."""

    async def save_or_replace(self, entry: FoodLogEntry) -> None:
        """Replace an entry with the same id, or prepend it."""

    async def replace(self, entry: FoodLogEntry) -> None:
        """Replace an existing entry; do nothing if the id is absent."""

    async def delete_by_id(self, entry_id: str) -> None:
        """Delete an entry by id."""

    async def clear(self) -> None:
        """Delete all entries."""


@dataclass
class LogStateStore:
    """Owns the visible food log collection.

    All mutations go through the primitives below. State-only primitives are
    synchronous, so each runs atomically between suspension points. Once an id
    is deleted through ``delete_persisted`` it can never be re-inserted during
    this session, which makes late estimation completions inert.
    """

    storage: FoodLogStorage
    timezone_name: str = "UTC"
    _entries: list[FoodLogEntry] = field(default_factory=list, init=False)
    _deleted_ids: set[str] = field(default_factory=set, init=False)

    async def load(self) -> list[FoodLogEntry]:
        """Replace state with the stored entries."""
        try:
            stored = await self.storage.get_all()
        except Exception as exc:
            _logger.exception("Failed to load food logs")
            raise PersistenceError("Failed to load food logs") from exc
        self._entries = [self._with_date(entry) for entry in stored]
        return self.entries()

    def entries(self) -> list[FoodLogEntry]:
        """Return all entries in display order."""
        return list(self._entries)

    def get(self, entry_id: str) -> FoodLogEntry | None:
        """Return an entry by id."""
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    def entries_for_date(self, log_date: str) -> list[FoodLogEntry]:
        """Return entries attributed to a calendar day."""
        return [entry for entry in self._entries if entry.date == log_date]

    def entries_for_month(self, month: str) -> list[FoodLogEntry]:
        """Return entries attributed to a month (YYYY-MM)."""
        return [entry for entry in self._entries if entry.date.startswith(month)]

    def daily_totals(self, log_date: str) -> NutritionTotals:
        """Sum nutrition for a calendar day."""
        return _sum_totals(self.entries_for_date(log_date))

    def daily_totals_for_month(self, month: str) -> list[DailyTotals]:
        """Return per-day totals for a month, most recent day first."""
        by_date: dict[str, list[FoodLogEntry]] = {}
        for entry in self.entries_for_month(month):
            by_date.setdefault(entry.date, []).append(entry)
        return [
            DailyTotals(date=day, totals=_sum_totals(entries))
            for day, entries in sorted(by_date.items(), reverse=True)
        ]

    def upsert_in_state(self, entry: FoodLogEntry) -> None:
        """Replace an entry in place, or insert it at the head."""
        if entry.id in self._deleted_ids:
            _logger.info("Ignoring upsert for deleted entry %s", entry.id)
            return
        for index, existing in enumerate(self._entries):
            if existing.id == entry.id:
                self._entries[index] = entry
                return
        self._entries.insert(0, entry)

    def patch_in_state(self, entry: FoodLogEntry) -> bool:
        """Replace an existing entry; never insert."""
        for index, existing in enumerate(self._entries):
            if existing.id == entry.id:
                self._entries[index] = entry
                return True
        _logger.info("Ignoring patch for missing entry %s", entry.id)
        return False

    def remove_from_state(self, entry_id: str) -> None:
        """Drop an entry from state if present."""
        self._entries = [entry for entry in self._entries if entry.id != entry_id]

    async def create_persisted(self, entry: FoodLogEntry) -> bool:
        """Write an entry through to storage, then show it.

        Returns False when the id was deleted earlier in this session.
        """
        if entry.id in self._deleted_ids:
            _logger.info("Dropping create for deleted entry %s", entry.id)
            return False
        try:
            await self.storage.save_or_replace(entry)
        except Exception as exc:
            _logger.exception("Failed to save food log %s", entry.id)
            raise PersistenceError("Failed to save food log") from exc
        self.upsert_in_state(entry)
        return True

    async def update_persisted(self, entry: FoodLogEntry) -> bool:
        """Replace an entry in storage, then in state."""
        if entry.id in self._deleted_ids:
            _logger.info("Dropping update for deleted entry %s", entry.id)
            return False
        try:
            await self.storage.replace(entry)
        except Exception as exc:
            _logger.exception("Failed to update food log %s", entry.id)
            raise PersistenceError("Failed to update food log") from exc
        return self.patch_in_state(entry)

    async def delete_persisted(self, entry_id: str) -> None:
        """Delete an entry from storage, then from state."""
        try:
            await self.storage.delete_by_id(entry_id)
        except Exception as exc:
            _logger.exception("Failed to delete food log %s", entry_id)
            raise PersistenceError("Failed to delete food log") from exc
        self._deleted_ids.add(entry_id)
        self.remove_from_state(entry_id)

    async def clear_persisted(self) -> None:
        """Delete every entry from storage and state."""
        try:
            await self.storage.clear()
        except Exception as exc:
            _logger.exception("Failed to clear food logs")
            raise PersistenceError("Failed to clear food logs") from exc
        self._deleted_ids.update(entry.id for entry in self._entries)
        self._entries = []

    def _with_date(self, entry: FoodLogEntry) -> FoodLogEntry:
        if entry.date:
            return entry
        created = datetime.fromisoformat(entry.created_at.replace("Z", "+00:00"))
        local_date = created.astimezone(ZoneInfo(self.timezone_name)).date()
        return replace(entry, date=local_date.isoformat())


def _sum_totals(entries: list[FoodLogEntry]) -> NutritionTotals:
    total = NutritionTotals(0.0, 0.0, 0.0, 0.0)
    for entry in entries:
        total = NutritionTotals(
            calories=total.calories + entry.calories,
            protein=total.protein + entry.protein,
            carbs=total.carbs + entry.carbs,
            fat=total.fat + entry.fat,
        )
    return total
