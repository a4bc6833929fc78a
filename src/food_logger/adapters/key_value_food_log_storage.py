"""Food log storage serialized as a single JSON list in a key-value store."""

import json
import logging
from dataclasses import dataclass

from food_logger.domain.food_logs import EstimationStatus, FoodLogEntry
from food_logger.services.key_value import KeyValueStore
from food_logger.services.log_store import FoodLogStorage

FOOD_LOGS_KEY = "food_logs"

_logger = logging.getLogger(__name__)


@dataclass
class KeyValueFoodLogStorage(FoodLogStorage):
    """Stores all entries, newest first, under one key.

    Every write reads, modifies and rewrites the full list.
    """

    store: KeyValueStore
    key: str = FOOD_LOGS_KEY

    async def get_all(self) -> list[FoodLogEntry]:
        """Return all stored entries."""
        return [_parse_entry(record) for record in await self._read_records()]

    async def save_or_replace(self, entry: FoodLogEntry) -> None:
        """Replace an entry with the same id in place, or prepend it."""
        records = await self._read_records()
        record = _to_record(entry)
        for index, existing in enumerate(records):
            if existing.get("id") == entry.id:
                records[index] = record
                break
        else:
            records.insert(0, record)
        await self._write_records(records)

    async def replace(self, entry: FoodLogEntry) -> None:
        """Replace an existing entry by id."""
        records = await self._read_records()
        updated = [
            _to_record(entry) if record.get("id") == entry.id else record
            for record in records
        ]
        await self._write_records(updated)

    async def delete_by_id(self, entry_id: str) -> None:
        """Delete an entry by id."""
        records = await self._read_records()
        await self._write_records(
            [record for record in records if record.get("id") != entry_id]
        )

    async def clear(self) -> None:
        """Delete all entries."""
        await self.store.remove_item(self.key)

    async def _read_records(self) -> list[dict[str, object]]:
        raw = await self.store.get_item(self.key)
        if not raw:
            return []
        try:
            records = json.loads(raw)
        except json.JSONDecodeError:
            _logger.warning("Stored food logs are not valid JSON, ignoring them")
            return []
        if not isinstance(records, list):
            _logger.warning("Stored food logs are not a list, ignoring them")
            return []
        return [record for record in records if isinstance(record, dict)]

    async def _write_records(self, records: list[dict[str, object]]) -> None:
        await self.store.set_item(self.key, json.dumps(records))


def _to_record(entry: FoodLogEntry) -> dict[str, object]:
    record: dict[str, object] = {
        "id": entry.id,
        "createdAt": entry.created_at,
        "date": entry.date,
        "generatedTitle": entry.generated_title,
        "estimationConfidence": entry.estimation_confidence,
        "calories": entry.calories,
        "protein": entry.protein,
        "carbs": entry.carbs,
        "fat": entry.fat,
        "userTitle": entry.user_title,
        "userDescription": entry.user_description,
        "userCalories": entry.user_calories,
        "userProtein": entry.user_protein,
        "userCarbs": entry.user_carbs,
        "userFat": entry.user_fat,
        "imageUrl": entry.image_url,
        "status": entry.status.value,
    }
    return {key: value for key, value in record.items() if value is not None}


def _parse_entry(record: dict[str, object]) -> FoodLogEntry:
    confidence = int(record.get("estimationConfidence") or 0)
    return FoodLogEntry(
        id=str(record["id"]),
        created_at=str(record.get("createdAt", "")),
        date=str(record.get("date") or ""),
        generated_title=str(record.get("generatedTitle", "")),
        estimation_confidence=confidence,
        calories=float(record.get("calories") or 0.0),
        protein=float(record.get("protein") or 0.0),
        carbs=float(record.get("carbs") or 0.0),
        fat=float(record.get("fat") or 0.0),
        user_title=_optional_str(record.get("userTitle")),
        user_description=_optional_str(record.get("userDescription")),
        user_calories=_optional_float(record.get("userCalories")),
        user_protein=_optional_float(record.get("userProtein")),
        user_carbs=_optional_float(record.get("userCarbs")),
        user_fat=_optional_float(record.get("userFat")),
        image_url=_optional_str(record.get("imageUrl")),
        status=_parse_status(record.get("status"), confidence),
    )


def _parse_status(value: object, confidence: int) -> EstimationStatus:
    if isinstance(value, str):
        try:
            status = EstimationStatus(value)
        except ValueError:
            status = None
        # Skeletons are never persisted.
        if status is not None and status is not EstimationStatus.ESTIMATING:
            return status
    return EstimationStatus.FINAL if confidence > 0 else EstimationStatus.NEEDS_INPUT


def _optional_str(value: object) -> str | None:
    return str(value) if value is not None else None


def _optional_float(value: object) -> float | None:
    return float(value) if isinstance(value, int | float) else None
