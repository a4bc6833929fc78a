"""Entry creation and edit flows tying estimation to the log store."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from enum import StrEnum
from zoneinfo import ZoneInfo

from food_logger.domain.favorites import FavoriteEntry
from food_logger.domain.food_logs import (
    EstimationStatus,
    FoodLogEntry,
    FoodLogForm,
    generate_entry_id,
)
from food_logger.domain.nutrition import NutritionMergeResult, NutritionTotals
from food_logger.services.estimation import EstimationOrchestrator
from food_logger.services.log_store import LogStateStore, PersistenceError
from food_logger.services.merge import merge_nutrition_data

MANUAL_ENTRY_TITLE = "Manual entry"
FULL_CONFIDENCE = 100
DEFAULT_LOW_CONFIDENCE_THRESHOLD = 50

MISSING_TEXT_MESSAGE = "Please provide either a title or description for your food log."
MISSING_IMAGE_MESSAGE = "Please provide an image for your food log."
INVALID_IMAGE_NOTICE = "We couldn't recognize food in that image. Please try again."
INVALID_TEXT_NOTICE = (
    "We couldn't estimate nutrition for that entry. Please add more detail."
)
DISCARDED_NOTICE = "This entry was deleted before its estimate finished."

_logger = logging.getLogger(__name__)


class NutritionValidationError(ValueError):
    """Raised when user input fails validation."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("\n".join(errors))
        self.errors = errors


class EntryNotFoundError(LookupError):
    """Raised when an entry id is not in the log."""


class EntryBusyError(RuntimeError):
    """Raised when an entry is still waiting for its estimate."""


class OutcomeStatus(StrEnum):
    """Terminal result of a reconciliation."""

    SAVED = "saved"
    INVALID = "invalid"
    DISCARDED = "discarded"


@dataclass(frozen=True)
class ReconciliationOutcome:
    """Result returned by every flow entry point."""

    status: OutcomeStatus
    entry: FoodLogEntry | None = None
    notice: str | None = None


@dataclass
class _Completion:
    entry: FoodLogEntry | None = None
    invalid: bool = False
    persisted: bool = False


@dataclass
class ReconciliationFlow:
    """Creates and edits entries with optimistic skeletons and persisted finals."""

    orchestrator: EstimationOrchestrator
    store: LogStateStore
    low_confidence_threshold: int = DEFAULT_LOW_CONFIDENCE_THRESHOLD
    timezone_name: str = "UTC"

    async def create_manual(self, form: FoodLogForm) -> ReconciliationOutcome:
        """Create an entry from typed title, description and nutrition."""
        if not form.title.strip() and not form.description.strip():
            raise NutritionValidationError([MISSING_TEXT_MESSAGE])
        merged = _validate(form)
        draft = self._new_draft(form, merged, MANUAL_ENTRY_TITLE, image_url=None)
        return await self._create(draft, INVALID_TEXT_NOTICE)

    async def create_from_capture(
        self, image_url: str, form: FoodLogForm | None = None
    ) -> ReconciliationOutcome:
        """Create an entry from a captured image and optional details."""
        form = form or FoodLogForm()
        if not image_url.strip():
            raise NutritionValidationError([MISSING_IMAGE_MESSAGE])
        merged = _validate(form)
        draft = self._new_draft(form, merged, "", image_url=image_url.strip())
        return await self._create(draft, INVALID_IMAGE_NOTICE)

    async def edit(self, entry_id: str, form: FoodLogForm) -> ReconciliationOutcome:
        """Apply user changes to an existing entry, re-estimating when useful."""
        previous = self._require_settled(entry_id)
        # Fields the user left blank keep what is currently displayed.
        merged = _validate(
            form,
            NutritionTotals(
                previous.calories, previous.protein, previous.carbs, previous.fat
            ),
        )

        user_title = form.title.strip() or None
        user_description = form.description.strip() or None
        text_changed = (
            user_title != previous.user_title
            or user_description != previous.user_description
        )
        low_confidence = previous.estimation_confidence < self.low_confidence_threshold
        needs_estimation = merged.needs_ai_estimation and (
            text_changed or low_confidence
        )

        if merged.needs_ai_estimation:
            confidence = previous.estimation_confidence
            status = previous.status
        else:
            confidence = FULL_CONFIDENCE
            status = EstimationStatus.FINAL

        draft = replace(
            previous,
            date=form.date or previous.date,
            user_title=user_title,
            user_description=user_description,
            calories=merged.calories,
            protein=merged.protein,
            carbs=merged.carbs,
            fat=merged.fat,
            user_calories=merged.user_calories,
            user_protein=merged.user_protein,
            user_carbs=merged.user_carbs,
            user_fat=merged.user_fat,
            estimation_confidence=confidence,
            needs_ai_estimation=needs_estimation,
            status=status,
        )
        _logger.info(
            "Editing food log %s (re-estimate=%s)", entry_id, needs_estimation
        )

        completion = _Completion()

        def on_invalid(_: str) -> None:
            completion.invalid = True
            self.store.patch_in_state(previous)

        try:
            await self.orchestrator.process(
                draft,
                on_skeleton=self.store.patch_in_state,
                on_final=self._recorder(completion, self.store.update_persisted),
                on_invalid=on_invalid,
            )
        except PersistenceError:
            self.store.patch_in_state(previous)
            raise

        notice = INVALID_IMAGE_NOTICE if previous.image_url else INVALID_TEXT_NOTICE
        return _outcome(completion, notice)

    async def log_again(
        self, entry_id: str, log_date: str | None = None
    ) -> ReconciliationOutcome:
        """Copy a finished entry to a new id, dated today unless given."""
        source = self._require_settled(entry_id)
        copy = replace(
            source,
            id=generate_entry_id(),
            created_at=datetime.now(UTC).isoformat(),
            date=log_date or self._today(),
            needs_ai_estimation=False,
        )
        completion = _Completion(entry=copy)
        completion.persisted = await self.store.create_persisted(copy)
        return _outcome(completion, INVALID_TEXT_NOTICE)

    async def log_favorite(
        self, favorite: FavoriteEntry, log_date: str | None = None
    ) -> ReconciliationOutcome:
        """Log a favorite as a new entry; its numbers count as user input."""
        title = favorite.title.strip()
        if not title and not favorite.description.strip():
            raise NutritionValidationError([MISSING_TEXT_MESSAGE])
        entry = FoodLogEntry(
            id=generate_entry_id(),
            created_at=datetime.now(UTC).isoformat(),
            date=log_date or self._today(),
            generated_title=title or MANUAL_ENTRY_TITLE,
            estimation_confidence=FULL_CONFIDENCE,
            calories=favorite.calories,
            protein=favorite.protein,
            carbs=favorite.carbs,
            fat=favorite.fat,
            user_title=title or None,
            user_description=favorite.description.strip() or None,
            user_calories=favorite.calories,
            user_protein=favorite.protein,
            user_carbs=favorite.carbs,
            user_fat=favorite.fat,
        )
        _logger.info("Logging favorite %r as %s", entry.generated_title, entry.id)
        completion = _Completion(entry=entry)
        completion.persisted = await self.store.create_persisted(entry)
        return _outcome(completion, INVALID_TEXT_NOTICE)

    async def _create(
        self, draft: FoodLogEntry, invalid_notice: str
    ) -> ReconciliationOutcome:
        completion = _Completion()

        def on_invalid(entry_id: str) -> None:
            completion.invalid = True
            self.store.remove_from_state(entry_id)

        _logger.info(
            "Creating food log %s (estimate=%s)", draft.id, draft.needs_ai_estimation
        )
        try:
            await self.orchestrator.process(
                draft,
                on_skeleton=self.store.upsert_in_state,
                on_final=self._recorder(completion, self.store.create_persisted),
                on_invalid=on_invalid,
            )
        except PersistenceError:
            self.store.remove_from_state(draft.id)
            raise
        return _outcome(completion, invalid_notice)

    def _recorder(
        self,
        completion: _Completion,
        persist: Callable[[FoodLogEntry], Awaitable[bool]],
    ) -> Callable[[FoodLogEntry], Awaitable[None]]:
        async def on_final(entry: FoodLogEntry) -> None:
            completion.entry = entry
            completion.persisted = await persist(entry)

        return on_final

    def _new_draft(
        self,
        form: FoodLogForm,
        merged: NutritionMergeResult,
        default_title: str,
        image_url: str | None,
    ) -> FoodLogEntry:
        title = form.title.strip()
        complete = not merged.needs_ai_estimation
        return FoodLogEntry(
            id=generate_entry_id(),
            created_at=datetime.now(UTC).isoformat(),
            date=form.date or self._today(),
            generated_title=title or default_title,
            estimation_confidence=FULL_CONFIDENCE if complete else 0,
            calories=merged.calories,
            protein=merged.protein,
            carbs=merged.carbs,
            fat=merged.fat,
            user_title=title or None,
            user_description=form.description.strip() or None,
            user_calories=merged.user_calories,
            user_protein=merged.user_protein,
            user_carbs=merged.user_carbs,
            user_fat=merged.user_fat,
            image_url=image_url,
            needs_ai_estimation=merged.needs_ai_estimation,
            status=EstimationStatus.FINAL if complete else EstimationStatus.ESTIMATING,
        )

    def _require_settled(self, entry_id: str) -> FoodLogEntry:
        entry = self.store.get(entry_id)
        if entry is None:
            raise EntryNotFoundError(entry_id)
        if entry.is_estimating:
            raise EntryBusyError(entry_id)
        return entry

    def _today(self) -> str:
        return datetime.now(ZoneInfo(self.timezone_name)).date().isoformat()


def _validate(
    form: FoodLogForm, current: NutritionTotals | None = None
) -> NutritionMergeResult:
    merged = merge_nutrition_data(
        form.calories, form.protein, form.carbs, form.fat, current
    )
    if not merged.is_valid:
        raise NutritionValidationError(merged.validation_errors)
    return merged


def _outcome(completion: _Completion, invalid_notice: str) -> ReconciliationOutcome:
    if completion.invalid:
        return ReconciliationOutcome(OutcomeStatus.INVALID, notice=invalid_notice)
    if not completion.persisted:
        return ReconciliationOutcome(OutcomeStatus.DISCARDED, notice=DISCARDED_NOTICE)
    return ReconciliationOutcome(OutcomeStatus.SAVED, entry=completion.entry)
