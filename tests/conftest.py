"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field

import pytest

from food_logger.config import Settings
from food_logger.containers import AppContainer
from food_logger.domain.estimation import (
    FoodEstimate,
    ImageEstimateRequest,
    TextEstimateRequest,
)
from food_logger.domain.food_logs import FoodLogEntry
from food_logger.services.estimation import EstimationClient, EstimationOrchestrator
from food_logger.services.favorites import FavoritesService
from food_logger.services.key_value import InMemoryKeyValueStore
from food_logger.services.log_store import FoodLogStorage, LogStateStore
from food_logger.services.reconciliation import ReconciliationFlow
from food_logger.services.targets import TargetsService


def make_entry(**overrides: object) -> FoodLogEntry:
    """Build a finished entry with sensible defaults."""
    values: dict[str, object] = {
        "id": "food_log_1",
        "created_at": "2024-05-01T12:00:00+00:00",
        "date": "2024-05-01",
        "generated_title": "Oatmeal",
        "estimation_confidence": 85,
        "calories": 300.0,
        "protein": 10.0,
        "carbs": 54.0,
        "fat": 5.0,
        "user_title": "Oatmeal",
    }
    values.update(overrides)
    return FoodLogEntry(**values)  # type: ignore[arg-type]


def make_estimate(**overrides: object) -> FoodEstimate:
    """Build an estimate using service field names."""
    values: dict[str, object] = {
        "generatedTitle": "Estimated meal",
        "estimationConfidence": 70,
        "calories": 400,
        "protein": 20,
        "carbs": 50,
        "fat": 12,
    }
    values.update(overrides)
    return FoodEstimate.model_validate(values)


@dataclass
class InMemoryFoodLogStorage(FoodLogStorage):
    """In-memory storage that can be told to fail."""

    items: list[FoodLogEntry] = field(default_factory=list)
    failing: set[str] = field(default_factory=set)
    calls: list[str] = field(default_factory=list)

    async def get_all(self) -> list[FoodLogEntry]:
        self._record("get_all")
        return list(self.items)

    async def save_or_replace(self, entry: FoodLogEntry) -> None:
        self._record("save_or_replace")
        for index, existing in enumerate(self.items):
            if existing.id == entry.id:
                self.items[index] = entry
                return
        self.items.insert(0, entry)

    async def replace(self, entry: FoodLogEntry) -> None:
        self._record("replace")
        self.items = [entry if item.id == entry.id else item for item in self.items]

    async def delete_by_id(self, entry_id: str) -> None:
        self._record("delete_by_id")
        self.items = [item for item in self.items if item.id != entry_id]

    async def clear(self) -> None:
        self._record("clear")
        self.items = []

    def _record(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.failing:
            raise OSError(f"{operation} failed")


@dataclass
class FakeEstimationClient(EstimationClient):
    """Fake estimation service with optional gating and failures."""

    estimate: FoodEstimate = field(default_factory=make_estimate)
    error: Exception | None = None
    gate: asyncio.Event | None = None
    text_requests: list[TextEstimateRequest] = field(default_factory=list)
    image_requests: list[ImageEstimateRequest] = field(default_factory=list)

    @property
    def call_count(self) -> int:
        return len(self.text_requests) + len(self.image_requests)

    async def estimate_text(self, request: TextEstimateRequest) -> FoodEstimate:
        self.text_requests.append(request)
        return await self._respond()

    async def estimate_image(self, request: ImageEstimateRequest) -> FoodEstimate:
        self.image_requests.append(request)
        return await self._respond()

    async def close(self) -> None:
        return None

    async def _respond(self) -> FoodEstimate:
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.estimate


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_anon_key="anon-key",
        storage_backend="memory",
    )


@pytest.fixture
def storage() -> InMemoryFoodLogStorage:
    return InMemoryFoodLogStorage()


@pytest.fixture
def estimation_client() -> FakeEstimationClient:
    return FakeEstimationClient()


@pytest.fixture
def log_store(storage: InMemoryFoodLogStorage) -> LogStateStore:
    return LogStateStore(storage)


@pytest.fixture
def flow(
    estimation_client: FakeEstimationClient, log_store: LogStateStore
) -> ReconciliationFlow:
    return ReconciliationFlow(
        orchestrator=EstimationOrchestrator(estimation_client),
        store=log_store,
    )


@pytest.fixture
def container(
    settings: Settings,
    estimation_client: FakeEstimationClient,
    log_store: LogStateStore,
    flow: ReconciliationFlow,
) -> AppContainer:
    async def close_resources() -> None:
        await estimation_client.close()

    return AppContainer(
        settings=settings,
        estimation_client=estimation_client,
        log_store=log_store,
        reconciliation_flow=flow,
        targets_service=TargetsService(
            store=InMemoryKeyValueStore(), log_store=log_store
        ),
        favorites_service=FavoritesService(InMemoryKeyValueStore()),
        close_resources=close_resources,
    )
