"""Estimation orchestration for food log entries."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from typing import Protocol

from food_logger.domain.estimation import (
    FoodEstimate,
    ImageEstimateRequest,
    TextEstimateRequest,
)
from food_logger.domain.food_logs import EstimationStatus, FoodLogEntry
from food_logger.services.merge import format_user_value, merge_nutrition_data

PROCESSING_IMAGE_TITLE = "Processing image..."
IMAGE_ENTRY_TITLE = "Image entry"
LOWEST_FINAL_CONFIDENCE = 1

_logger = logging.getLogger(__name__)

SkeletonCallback = Callable[[FoodLogEntry], object]
FinalCallback = Callable[[FoodLogEntry], Awaitable[None]]
InvalidCallback = Callable[[str], object]


class EstimationError(RuntimeError):
    """Raised when the estimation service cannot produce an estimate."""

    code = "AI_ESTIMATION_FAILED"

    def __init__(self, message: str = "AI_ESTIMATION_FAILED") -> None:
        super().__init__(message)


class EstimationClient(Protocol):
    """Interface for the external nutrition estimation service."""

    async def estimate_text(self, request: TextEstimateRequest) -> FoodEstimate:
        """Estimate nutrition from a title and description."""

    async def estimate_image(self, request: ImageEstimateRequest) -> FoodEstimate:
        """Estimate nutrition from an uploaded image."""


@dataclass
class EstimationOrchestrator:
    """Drives an entry from draft through skeleton to its final state."""

    client: EstimationClient

    async def process(
        self,
        entry: FoodLogEntry,
        on_skeleton: SkeletonCallback,
        on_final: FinalCallback,
        on_invalid: InvalidCallback | None = None,
    ) -> None:
        """Estimate missing nutrition for an entry and report exactly one outcome.

        The skeleton callback runs before the first suspension point, so the
        loading state is visible before the service is called. Estimation
        failures never propagate: the entry is finalized with whatever the
        user entered. Errors raised by ``on_final`` are left to the caller.
        """
        if not entry.needs_ai_estimation:
            await on_final(_without_estimation(entry))
            return

        on_skeleton(_to_skeleton(entry))

        try:
            estimate = await self._estimate(entry)
        except Exception:
            _logger.warning(
                "Estimation failed for %s, keeping user data", entry.id, exc_info=True
            )
            await on_final(_to_fallback(entry))
            return

        if estimate.is_unusable and on_invalid is not None:
            _logger.info("Estimation rejected input for %s", entry.id)
            on_invalid(entry.id)
            return

        await on_final(_apply_estimate(entry, estimate))

    async def _estimate(self, entry: FoodLogEntry) -> FoodEstimate:
        if entry.image_url:
            return await self.client.estimate_image(
                ImageEstimateRequest(
                    image_url=entry.image_url,
                    title=entry.user_title or None,
                    description=entry.user_description or None,
                )
            )
        return await self.client.estimate_text(
            TextEstimateRequest(
                title=entry.user_title or entry.generated_title or None,
                description=entry.user_description or None,
            )
        )


def _to_skeleton(entry: FoodLogEntry) -> FoodLogEntry:
    return replace(
        entry,
        generated_title=(
            PROCESSING_IMAGE_TITLE if entry.image_url else entry.generated_title
        ),
        estimation_confidence=0,
        status=EstimationStatus.ESTIMATING,
    )


def _without_estimation(entry: FoodLogEntry) -> FoodLogEntry:
    status = (
        EstimationStatus.FINAL
        if entry.status is EstimationStatus.ESTIMATING
        else entry.status
    )
    return replace(entry, needs_ai_estimation=False, status=status)


def _to_fallback(entry: FoodLogEntry) -> FoodLogEntry:
    return replace(
        entry,
        generated_title=entry.generated_title or IMAGE_ENTRY_TITLE,
        needs_ai_estimation=False,
        estimation_confidence=entry.estimation_confidence or LOWEST_FINAL_CONFIDENCE,
        status=EstimationStatus.NEEDS_INPUT,
    )


def _apply_estimate(entry: FoodLogEntry, estimate: FoodEstimate) -> FoodLogEntry:
    merged = merge_nutrition_data(
        format_user_value(entry.user_calories),
        format_user_value(entry.user_protein),
        format_user_value(entry.user_carbs),
        format_user_value(entry.user_fat),
        estimate,
    )
    return replace(
        entry,
        generated_title=entry.user_title or estimate.generated_title,
        estimation_confidence=max(
            estimate.estimation_confidence, LOWEST_FINAL_CONFIDENCE
        ),
        calories=merged.calories,
        protein=merged.protein,
        carbs=merged.carbs,
        fat=merged.fat,
        user_calories=merged.user_calories,
        user_protein=merged.user_protein,
        user_carbs=merged.user_carbs,
        user_fat=merged.user_fat,
        needs_ai_estimation=False,
        status=EstimationStatus.FINAL,
    )
