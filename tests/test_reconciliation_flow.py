"""Tests for the reconciliation flow."""

import asyncio

import pytest

from food_logger.domain.food_logs import EstimationStatus, FoodLogForm
from food_logger.services.estimation import EstimationError, EstimationOrchestrator
from food_logger.services.log_store import LogStateStore, PersistenceError
from food_logger.services.reconciliation import (
    INVALID_IMAGE_NOTICE,
    MISSING_TEXT_MESSAGE,
    EntryBusyError,
    EntryNotFoundError,
    NutritionValidationError,
    OutcomeStatus,
    ReconciliationFlow,
)
from tests.conftest import (
    FakeEstimationClient,
    InMemoryFoodLogStorage,
    make_entry,
    make_estimate,
)


def test_banana_scenario(
    flow: ReconciliationFlow,
    estimation_client: FakeEstimationClient,
    storage: InMemoryFoodLogStorage,
) -> None:
    estimation_client.estimate = make_estimate(
        generatedTitle="Banana",
        estimationConfidence=72,
        calories=100,
        protein=1.3,
        carbs=27,
        fat=0.4,
    )

    outcome = asyncio.run(
        flow.create_manual(FoodLogForm(title="Banana", calories="105"))
    )

    assert outcome.status is OutcomeStatus.SAVED
    entry = outcome.entry
    assert entry is not None
    assert (entry.calories, entry.protein, entry.carbs, entry.fat) == (
        105,
        1.3,
        27,
        0.4,
    )
    assert entry.estimation_confidence == 72
    assert entry.generated_title == "Banana"
    assert entry.id.startswith("food_log_")
    assert storage.items == [entry]
    assert flow.store.entries() == [entry]


def test_complete_manual_entry_is_saved_without_estimation(
    flow: ReconciliationFlow,
    estimation_client: FakeEstimationClient,
    storage: InMemoryFoodLogStorage,
) -> None:
    form = FoodLogForm(
        title="Toast",
        calories="80",
        protein="3",
        carbs="15",
        fat="1",
        date="2024-05-02",
    )

    outcome = asyncio.run(flow.create_manual(form))

    assert estimation_client.call_count == 0
    assert outcome.entry is not None
    assert outcome.entry.estimation_confidence == 100
    assert outcome.entry.status is EstimationStatus.FINAL
    assert outcome.entry.date == "2024-05-02"
    assert storage.items == [outcome.entry]


def test_description_only_entry_gets_manual_title(flow: ReconciliationFlow) -> None:
    form = FoodLogForm(
        description="two eggs", calories="150", protein="12", carbs="1", fat="10"
    )

    outcome = asyncio.run(flow.create_manual(form))

    assert outcome.entry is not None
    assert outcome.entry.generated_title == "Manual entry"
    assert outcome.entry.user_title is None


def test_missing_text_is_rejected_before_any_call(
    flow: ReconciliationFlow, estimation_client: FakeEstimationClient
) -> None:
    with pytest.raises(NutritionValidationError) as excinfo:
        asyncio.run(flow.create_manual(FoodLogForm(calories="100")))

    assert excinfo.value.errors == [MISSING_TEXT_MESSAGE]
    assert estimation_client.call_count == 0
    assert flow.store.entries() == []


def test_invalid_numbers_are_rejected_before_any_call(
    flow: ReconciliationFlow, estimation_client: FakeEstimationClient
) -> None:
    with pytest.raises(NutritionValidationError) as excinfo:
        asyncio.run(flow.create_manual(FoodLogForm(title="Soup", fat="-3")))

    assert excinfo.value.errors == ["Fat cannot be negative"]
    assert estimation_client.call_count == 0
    assert flow.store.entries() == []


def test_estimation_failure_persists_user_data(
    flow: ReconciliationFlow,
    estimation_client: FakeEstimationClient,
    storage: InMemoryFoodLogStorage,
) -> None:
    estimation_client.error = EstimationError()

    outcome = asyncio.run(
        flow.create_manual(FoodLogForm(title="Stew", calories="410"))
    )

    entry = outcome.entry
    assert outcome.status is OutcomeStatus.SAVED
    assert entry is not None
    assert entry.calories == 410
    assert (entry.protein, entry.carbs, entry.fat) == (0, 0, 0)
    assert entry.estimation_confidence > 0
    assert entry.status is EstimationStatus.NEEDS_INPUT
    assert storage.items == [entry]


def test_capture_shows_skeleton_while_estimating(
    flow: ReconciliationFlow, estimation_client: FakeEstimationClient
) -> None:
    async def scenario() -> None:
        estimation_client.gate = asyncio.Event()
        task = asyncio.create_task(flow.create_from_capture("https://img/1.jpg"))
        await asyncio.sleep(0)
        [skeleton] = flow.store.entries()
        assert skeleton.is_estimating
        assert skeleton.generated_title == "Processing image..."
        estimation_client.gate.set()
        outcome = await task
        assert outcome.status is OutcomeStatus.SAVED

    asyncio.run(scenario())

    [entry] = flow.store.entries()
    assert not entry.is_estimating
    assert entry.image_url == "https://img/1.jpg"
    assert estimation_client.image_requests[0].image_url == "https://img/1.jpg"


def test_invalid_image_discards_skeleton(
    flow: ReconciliationFlow,
    estimation_client: FakeEstimationClient,
    storage: InMemoryFoodLogStorage,
) -> None:
    estimation_client.estimate = make_estimate(generatedTitle="Invalid Image")

    outcome = asyncio.run(flow.create_from_capture("https://img/cat.jpg"))

    assert outcome.status is OutcomeStatus.INVALID
    assert outcome.notice == INVALID_IMAGE_NOTICE
    assert flow.store.entries() == []
    assert storage.items == []


def test_capture_requires_image_url(flow: ReconciliationFlow) -> None:
    with pytest.raises(NutritionValidationError):
        asyncio.run(flow.create_from_capture("  "))


def test_delete_during_estimation_wins(
    flow: ReconciliationFlow,
    estimation_client: FakeEstimationClient,
    storage: InMemoryFoodLogStorage,
) -> None:
    async def scenario() -> None:
        estimation_client.gate = asyncio.Event()
        task = asyncio.create_task(
            flow.create_manual(FoodLogForm(title="Pasta", calories="600"))
        )
        await asyncio.sleep(0)
        [skeleton] = flow.store.entries()
        await flow.store.delete_persisted(skeleton.id)
        estimation_client.gate.set()
        outcome = await task
        assert outcome.status is OutcomeStatus.DISCARDED

    asyncio.run(scenario())

    assert flow.store.entries() == []
    assert storage.items == []


def test_create_persistence_failure_removes_skeleton(
    flow: ReconciliationFlow, storage: InMemoryFoodLogStorage
) -> None:
    storage.failing.add("save_or_replace")

    with pytest.raises(PersistenceError):
        asyncio.run(flow.create_manual(FoodLogForm(title="Rice", calories="200")))

    assert flow.store.entries() == []


def _seed(store: LogStateStore, **overrides: object) -> None:
    asyncio.run(store.create_persisted(make_entry(**overrides)))


def test_numeric_correction_does_not_reestimate(
    flow: ReconciliationFlow,
    estimation_client: FakeEstimationClient,
    storage: InMemoryFoodLogStorage,
) -> None:
    _seed(flow.store)

    outcome = asyncio.run(
        flow.edit("food_log_1", FoodLogForm(title="Oatmeal", calories="320"))
    )

    entry = outcome.entry
    assert estimation_client.call_count == 0
    assert entry is not None
    assert entry.calories == 320
    assert entry.user_calories == 320
    assert entry.protein == 10
    assert entry.estimation_confidence == 85
    assert storage.items == [entry]


def test_text_change_reestimates(
    flow: ReconciliationFlow, estimation_client: FakeEstimationClient
) -> None:
    _seed(flow.store)

    outcome = asyncio.run(
        flow.edit("food_log_1", FoodLogForm(title="Oatmeal with honey"))
    )

    entry = outcome.entry
    assert estimation_client.text_requests[0].title == "Oatmeal with honey"
    assert entry is not None
    assert entry.calories == 400
    assert entry.estimation_confidence == 70
    assert entry.generated_title == "Oatmeal with honey"


def test_low_confidence_reestimates_without_text_change(
    flow: ReconciliationFlow, estimation_client: FakeEstimationClient
) -> None:
    _seed(flow.store, estimation_confidence=20)

    asyncio.run(flow.edit("food_log_1", FoodLogForm(title="Oatmeal")))

    assert estimation_client.call_count == 1


def test_threshold_is_configurable(
    estimation_client: FakeEstimationClient, log_store: LogStateStore
) -> None:
    flow = ReconciliationFlow(
        orchestrator=EstimationOrchestrator(estimation_client),
        store=log_store,
        low_confidence_threshold=90,
    )
    _seed(log_store)

    asyncio.run(flow.edit("food_log_1", FoodLogForm(title="Oatmeal")))

    assert estimation_client.call_count == 1


def test_complete_edit_sets_full_confidence(
    flow: ReconciliationFlow, estimation_client: FakeEstimationClient
) -> None:
    _seed(flow.store, estimation_confidence=30)
    form = FoodLogForm(
        title="Porridge", calories="280", protein="9", carbs="50", fat="4"
    )

    outcome = asyncio.run(flow.edit("food_log_1", form))

    assert estimation_client.call_count == 0
    assert outcome.entry is not None
    assert outcome.entry.estimation_confidence == 100
    assert outcome.entry.user_title == "Porridge"


def test_edit_failure_during_estimation_keeps_prior_confidence(
    flow: ReconciliationFlow, estimation_client: FakeEstimationClient
) -> None:
    _seed(flow.store)
    estimation_client.error = EstimationError()

    outcome = asyncio.run(flow.edit("food_log_1", FoodLogForm(title="Granola")))

    assert outcome.entry is not None
    assert outcome.entry.estimation_confidence == 85
    assert outcome.entry.user_title == "Granola"


def test_edit_persistence_failure_restores_previous(
    flow: ReconciliationFlow, storage: InMemoryFoodLogStorage
) -> None:
    _seed(flow.store)
    previous = flow.store.get("food_log_1")
    storage.failing.add("replace")

    with pytest.raises(PersistenceError):
        asyncio.run(flow.edit("food_log_1", FoodLogForm(title="Granola")))

    assert flow.store.entries() == [previous]


def test_edit_unknown_entry(flow: ReconciliationFlow) -> None:
    with pytest.raises(EntryNotFoundError):
        asyncio.run(flow.edit("missing", FoodLogForm(title="x")))


def test_edit_busy_entry(flow: ReconciliationFlow) -> None:
    flow.store.upsert_in_state(
        make_entry(estimation_confidence=0, status=EstimationStatus.ESTIMATING)
    )

    with pytest.raises(EntryBusyError):
        asyncio.run(flow.edit("food_log_1", FoodLogForm(title="x")))


def test_log_again_copies_to_new_day(
    flow: ReconciliationFlow, storage: InMemoryFoodLogStorage
) -> None:
    _seed(flow.store)

    outcome = asyncio.run(flow.log_again("food_log_1", "2024-06-01"))

    copy = outcome.entry
    assert copy is not None
    assert copy.id != "food_log_1"
    assert copy.date == "2024-06-01"
    assert copy.calories == 300
    assert [item.id for item in storage.items] == [copy.id, "food_log_1"]


def test_unusable_edit_estimate_restores_previous(
    flow: ReconciliationFlow,
    estimation_client: FakeEstimationClient,
    storage: InMemoryFoodLogStorage,
) -> None:
    _seed(flow.store, image_url="https://img/oats.jpg")
    previous = flow.store.get("food_log_1")
    estimation_client.estimate = make_estimate(generatedTitle="Invalid Image")

    outcome = asyncio.run(flow.edit("food_log_1", FoodLogForm(title="Granola")))

    assert outcome.status is OutcomeStatus.INVALID
    assert outcome.notice == INVALID_IMAGE_NOTICE
    assert estimation_client.image_requests[0].title == "Granola"
    assert flow.store.entries() == [previous]
    assert storage.items == [previous]


def test_delete_during_edit_estimation_wins(
    flow: ReconciliationFlow,
    estimation_client: FakeEstimationClient,
    storage: InMemoryFoodLogStorage,
) -> None:
    _seed(flow.store)

    async def scenario() -> None:
        estimation_client.gate = asyncio.Event()
        task = asyncio.create_task(
            flow.edit("food_log_1", FoodLogForm(title="Granola"))
        )
        await asyncio.sleep(0)
        [skeleton] = flow.store.entries()
        assert skeleton.is_estimating
        assert skeleton.estimation_confidence == 0
        await flow.store.delete_persisted("food_log_1")
        estimation_client.gate.set()
        outcome = await task
        assert outcome.status is OutcomeStatus.DISCARDED

    asyncio.run(scenario())

    assert flow.store.entries() == []
    assert storage.items == []
    assert "replace" not in storage.calls


def test_failed_capture_estimate_gets_placeholder_title(
    flow: ReconciliationFlow, estimation_client: FakeEstimationClient
) -> None:
    estimation_client.error = EstimationError()

    outcome = asyncio.run(flow.create_from_capture("https://img/2.jpg"))

    entry = outcome.entry
    assert outcome.status is OutcomeStatus.SAVED
    assert entry is not None
    assert entry.generated_title == "Image entry"
    assert entry.user_title is None
    assert entry.status is EstimationStatus.NEEDS_INPUT
