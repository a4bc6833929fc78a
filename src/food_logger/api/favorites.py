"""Favorite entry endpoints."""

from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, Request, Response, status

from food_logger.api.log_models import FavoriteBody, outcome_payload
from food_logger.domain.food_logs import FoodLogEntry
from food_logger.services.reconciliation import (
    EntryBusyError,
    EntryNotFoundError,
    OutcomeStatus,
)

if TYPE_CHECKING:
    from food_logger.containers import AppContainer

router = APIRouter(tags=["favorites"])


@router.get("/favorites")
async def list_favorites(request: Request, q: str = "") -> dict[str, object]:
    """Return favorites, optionally filtered by a search term."""
    container: AppContainer = request.app.state.container
    favorites = await container.favorites_service.list_favorites(q)
    return {"favorites": [asdict(favorite) for favorite in favorites]}


@router.post("/favorites/log", status_code=status.HTTP_201_CREATED)
async def log_favorite(body: FavoriteBody, request: Request) -> dict[str, object]:
    """Log a favorite as a new entry."""
    container: AppContainer = request.app.state.container
    outcome = await container.reconciliation_flow.log_favorite(
        body.to_favorite(), body.date
    )
    if outcome.status is not OutcomeStatus.SAVED:
        raise HTTPException(status_code=status.HTTP_410_GONE, detail=outcome.notice)
    return outcome_payload(outcome)


@router.get("/logs/{entry_id}/favorite")
async def get_favorite_state(entry_id: str, request: Request) -> dict[str, bool]:
    """Report whether an entry is saved as a favorite."""
    container: AppContainer = request.app.state.container
    entry = _settled_entry(container, entry_id)
    return {"is_favorite": await container.favorites_service.is_favorite(entry)}


@router.put("/logs/{entry_id}/favorite")
async def add_favorite(entry_id: str, request: Request) -> dict[str, object]:
    """Save an entry as a favorite."""
    container: AppContainer = request.app.state.container
    entry = _settled_entry(container, entry_id)
    return asdict(await container.favorites_service.add_from_log(entry))


@router.delete("/logs/{entry_id}/favorite", status_code=status.HTTP_204_NO_CONTENT)
async def remove_favorite(entry_id: str, request: Request) -> Response:
    """Remove favorites matching an entry."""
    container: AppContainer = request.app.state.container
    entry = _settled_entry(container, entry_id)
    await container.favorites_service.remove_matching_log(entry)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/logs/{entry_id}/favorite/toggle")
async def toggle_favorite(entry_id: str, request: Request) -> dict[str, bool]:
    """Flip an entry's favorite state."""
    container: AppContainer = request.app.state.container
    entry = _settled_entry(container, entry_id)
    return {"is_favorite": await container.favorites_service.toggle_for_log(entry)}


def _settled_entry(container: AppContainer, entry_id: str) -> FoodLogEntry:
    entry = container.log_store.get(entry_id)
    if entry is None:
        raise EntryNotFoundError(entry_id)
    if entry.is_estimating:
        raise EntryBusyError(entry_id)
    return entry
