"""Food log endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, Request, Response, status

from food_logger.api.log_models import (
    CaptureBody,
    FoodLogFormBody,
    LogAgainBody,
    daily_totals_payload,
    entry_payload,
    outcome_payload,
)
from food_logger.config import parse_log_date, parse_log_month
from food_logger.services.reconciliation import (
    OutcomeStatus,
    ReconciliationOutcome,
)

if TYPE_CHECKING:
    from food_logger.containers import AppContainer

router = APIRouter(prefix="/logs", tags=["logs"])


def _container(request: Request) -> AppContainer:
    return request.app.state.container


@router.get("")
async def list_logs(request: Request, date: str | None = None) -> dict[str, object]:
    """Return all entries, or the entries for one day."""
    store = _container(request).log_store
    entries = store.entries_for_date(_day(date)) if date else store.entries()
    return {"logs": [entry_payload(entry) for entry in entries]}


@router.get("/totals")
async def daily_totals(request: Request, date: str) -> dict[str, object]:
    """Return summed nutrition for one day."""
    day = _day(date)
    totals = _container(request).log_store.daily_totals(day)
    return {
        "date": day,
        "calories": totals.calories,
        "protein": totals.protein,
        "carbs": totals.carbs,
        "fat": totals.fat,
    }


@router.get("/monthly")
async def monthly_totals(request: Request, month: str) -> dict[str, object]:
    """Return per-day totals for a month, newest first."""
    try:
        parsed = parse_log_month(month)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    days = _container(request).log_store.daily_totals_for_month(parsed)
    return {"month": parsed, "days": [daily_totals_payload(day) for day in days]}


@router.get("/{entry_id}")
async def get_log(entry_id: str, request: Request) -> dict[str, object]:
    """Return a single entry."""
    entry = _container(request).log_store.get(entry_id)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return entry_payload(entry)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_log(body: FoodLogFormBody, request: Request) -> dict[str, object]:
    """Create an entry from typed input."""
    flow = _container(request).reconciliation_flow
    return _respond(await flow.create_manual(body.to_form()))


@router.post("/capture", status_code=status.HTTP_201_CREATED)
async def capture_log(body: CaptureBody, request: Request) -> dict[str, object]:
    """Create an entry from an uploaded image URL."""
    flow = _container(request).reconciliation_flow
    return _respond(await flow.create_from_capture(body.image_url, body.to_form()))


@router.patch("/{entry_id}")
async def edit_log(
    entry_id: str, body: FoodLogFormBody, request: Request
) -> dict[str, object]:
    """Apply user changes to an entry."""
    flow = _container(request).reconciliation_flow
    return _respond(await flow.edit(entry_id, body.to_form()))


@router.post("/{entry_id}/log-again", status_code=status.HTTP_201_CREATED)
async def log_again(
    entry_id: str, request: Request, body: LogAgainBody | None = None
) -> dict[str, object]:
    """Copy an entry to another day."""
    flow = _container(request).reconciliation_flow
    log_date = body.date if body else None
    return _respond(await flow.log_again(entry_id, log_date))


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_log(entry_id: str, request: Request) -> Response:
    """Delete an entry, including one still being estimated."""
    store = _container(request).log_store
    if store.get(entry_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    await store.delete_persisted(entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def _day(raw: str) -> str:
    try:
        return parse_log_date(raw)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


def _respond(outcome: ReconciliationOutcome) -> dict[str, object]:
    if outcome.status is OutcomeStatus.INVALID:
        raise HTTPException(status_code=422, detail=outcome.notice)
    if outcome.status is OutcomeStatus.DISCARDED:
        raise HTTPException(status_code=status.HTTP_410_GONE, detail=outcome.notice)
    return outcome_payload(outcome)
