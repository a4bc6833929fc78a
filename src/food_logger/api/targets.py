"""Daily target and progress endpoints."""

from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, Request

from food_logger.api.log_models import (
    BodyProfileBody,
    TargetsBody,
    progress_payload,
)
from food_logger.config import parse_log_date

if TYPE_CHECKING:
    from food_logger.containers import AppContainer

router = APIRouter(tags=["targets"])


@router.get("/targets")
async def get_targets(request: Request) -> dict[str, object]:
    """Return the current daily targets."""
    container: AppContainer = request.app.state.container
    return asdict(await container.targets_service.get_targets())


@router.put("/targets")
async def put_targets(body: TargetsBody, request: Request) -> dict[str, object]:
    """Replace the daily targets."""
    container: AppContainer = request.app.state.container
    return asdict(await container.targets_service.save_targets(body.to_targets()))


@router.post("/targets/calculate")
async def calculate_targets(
    body: BodyProfileBody, request: Request
) -> dict[str, object]:
    """Calculate targets from a body profile and store them."""
    container: AppContainer = request.app.state.container
    targets = await container.targets_service.apply_profile(body.to_profile())
    return asdict(targets)


@router.delete("/targets")
async def reset_targets(request: Request) -> dict[str, object]:
    """Reset every daily target to zero."""
    container: AppContainer = request.app.state.container
    return asdict(await container.targets_service.reset_targets())


@router.get("/progress")
async def daily_progress(request: Request, date: str) -> dict[str, object]:
    """Return consumed totals against targets for a day."""
    container: AppContainer = request.app.state.container
    try:
        day = parse_log_date(date)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return progress_payload(await container.targets_service.daily_progress(day))
