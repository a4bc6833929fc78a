"""Favorite entries kept in the key-value store."""

import json
import logging
from dataclasses import asdict, dataclass

from food_logger.domain.favorites import FavoriteEntry
from food_logger.domain.food_logs import FoodLogEntry
from food_logger.services.key_value import KeyValueStore
from food_logger.services.log_store import PersistenceError

FAVORITE_ENTRIES_KEY = "favorite_entries"

_logger = logging.getLogger(__name__)


@dataclass
class FavoritesService:
    """Adds, removes and searches favorites, newest first, without duplicates."""

    store: KeyValueStore
    key: str = FAVORITE_ENTRIES_KEY

    async def list_favorites(self, term: str = "") -> list[FavoriteEntry]:
        """Return favorites, optionally filtered by title or description."""
        favorites = await self._read()
        if not term.strip():
            return favorites
        return [favorite for favorite in favorites if favorite.mentions(term)]

    async def is_favorite(self, entry: FoodLogEntry) -> bool:
        """Return whether an entry matches a saved favorite."""
        candidate = FavoriteEntry.from_log(entry)
        return any(favorite.matches(candidate) for favorite in await self._read())

    async def add_from_log(self, entry: FoodLogEntry) -> FavoriteEntry:
        """Save an entry as a favorite unless an identical one exists."""
        candidate = FavoriteEntry.from_log(entry)
        favorites = await self._read()
        if any(favorite.matches(candidate) for favorite in favorites):
            return candidate
        await self._write([candidate, *favorites])
        _logger.info("Added favorite %r", candidate.title)
        return candidate

    async def remove_matching_log(self, entry: FoodLogEntry) -> None:
        """Drop every favorite matching an entry."""
        candidate = FavoriteEntry.from_log(entry)
        favorites = await self._read()
        remaining = [f for f in favorites if not f.matches(candidate)]
        await self._write(remaining)
        _logger.info(
            "Removed %d favorite(s) for %r",
            len(favorites) - len(remaining),
            candidate.title,
        )

    async def toggle_for_log(self, entry: FoodLogEntry) -> bool:
        """Flip favorite state for an entry and return the new state."""
        if await self.is_favorite(entry):
            await self.remove_matching_log(entry)
            return False
        await self.add_from_log(entry)
        return True

    async def _read(self) -> list[FavoriteEntry]:
        raw = await self.store.get_item(self.key)
        if not raw:
            return []
        try:
            records = json.loads(raw)
        except json.JSONDecodeError:
            _logger.warning("Stored favorites are not valid JSON, ignoring them")
            return []
        if not isinstance(records, list):
            _logger.warning("Stored favorites are not a list, ignoring them")
            return []
        favorites: list[FavoriteEntry] = []
        for record in records:
            try:
                favorites.append(_parse_favorite(record))
            except (AttributeError, TypeError, ValueError):
                _logger.warning("Skipping invalid favorite record")
        return favorites

    async def _write(self, favorites: list[FavoriteEntry]) -> None:
        payload = json.dumps([asdict(favorite) for favorite in favorites])
        try:
            await self.store.set_item(self.key, payload)
        except Exception as exc:
            _logger.exception("Failed to save favorites")
            raise PersistenceError("Failed to save favorites") from exc


def _parse_favorite(record: dict[str, object]) -> FavoriteEntry:
    return FavoriteEntry(
        title=str(record.get("title") or ""),
        description=str(record.get("description") or ""),
        calories=float(record.get("calories") or 0.0),
        protein=float(record.get("protein") or 0.0),
        carbs=float(record.get("carbs") or 0.0),
        fat=float(record.get("fat") or 0.0),
    )
