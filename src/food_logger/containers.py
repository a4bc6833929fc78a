"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from food_logger.adapters.file_key_value_store import FileKeyValueStore
from food_logger.adapters.key_value_food_log_storage import KeyValueFoodLogStorage
from food_logger.adapters.openai_estimation_client import OpenAIEstimationClient
from food_logger.adapters.supabase_estimation_client import HttpxEstimationClient
from food_logger.adapters.supabase_key_value_store import SupabaseKeyValueStore
from food_logger.config import Settings
from food_logger.services.estimation import EstimationClient, EstimationOrchestrator
from food_logger.services.favorites import FavoritesService
from food_logger.services.key_value import InMemoryKeyValueStore, KeyValueStore
from food_logger.services.log_store import LogStateStore
from food_logger.services.reconciliation import ReconciliationFlow
from food_logger.services.targets import TargetsService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    estimation_client: EstimationClient
    log_store: LogStateStore
    reconciliation_flow: ReconciliationFlow
    targets_service: TargetsService
    favorites_service: FavoritesService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    key_value_store = _build_key_value_store(resolved_settings)
    estimation_client: HttpxEstimationClient | OpenAIEstimationClient
    if resolved_settings.estimation_backend == "openai":
        if not resolved_settings.openai_api_key:
            raise ValueError("OPENAI_API_KEY is required for the openai backend")
        estimation_client = OpenAIEstimationClient.create(
            api_key=resolved_settings.openai_api_key,
            model=resolved_settings.openai_model,
        )
    else:
        estimation_client = HttpxEstimationClient.create(
            base_url=resolved_settings.supabase_url,
            api_key=resolved_settings.supabase_anon_key,
            timeout_seconds=resolved_settings.estimation_timeout_seconds,
        )

    log_store = LogStateStore(
        storage=KeyValueFoodLogStorage(key_value_store),
        timezone_name=resolved_settings.timezone,
    )
    reconciliation_flow = ReconciliationFlow(
        orchestrator=EstimationOrchestrator(estimation_client),
        store=log_store,
        low_confidence_threshold=resolved_settings.low_confidence_threshold,
        timezone_name=resolved_settings.timezone,
    )
    targets_service = TargetsService(store=key_value_store, log_store=log_store)
    favorites_service = FavoritesService(store=key_value_store)

    async def close_resources() -> None:
        await estimation_client.close()

    return AppContainer(
        settings=resolved_settings,
        estimation_client=estimation_client,
        log_store=log_store,
        reconciliation_flow=reconciliation_flow,
        targets_service=targets_service,
        favorites_service=favorites_service,
        close_resources=close_resources,
    )


def _build_key_value_store(settings: Settings) -> KeyValueStore:
    if settings.storage_backend == "supabase":
        return SupabaseKeyValueStore(
            create_client(settings.supabase_url, settings.supabase_anon_key),
            table=settings.storage_table,
        )
    if settings.storage_backend == "memory":
        return InMemoryKeyValueStore()
    return FileKeyValueStore.create(settings.storage_dir)
