"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from food_logger.api.favorites import router as favorites_router
from food_logger.api.logs import router as logs_router
from food_logger.api.targets import router as targets_router
from food_logger.app_logging import configure_logging
from food_logger.containers import AppContainer
from food_logger.services.log_store import PersistenceError
from food_logger.services.reconciliation import (
    EntryBusyError,
    EntryNotFoundError,
    NutritionValidationError,
)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        entries = await app.state.container.log_store.load()
        logger.info("Loaded %d food logs", len(entries))
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(logs_router)
    app.include_router(targets_router)
    app.include_router(favorites_router)

    @app.exception_handler(NutritionValidationError)
    async def validation_failed(
        request: Request, exc: NutritionValidationError
    ) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": exc.errors})

    @app.exception_handler(EntryNotFoundError)
    async def entry_not_found(
        request: Request, exc: EntryNotFoundError
    ) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": "Not Found"})

    @app.exception_handler(EntryBusyError)
    async def entry_busy(request: Request, exc: EntryBusyError) -> JSONResponse:
        return JSONResponse(
            status_code=409,
            content={"detail": "This entry is still being estimated."},
        )

    @app.exception_handler(PersistenceError)
    async def persistence_failed(
        request: Request, exc: PersistenceError
    ) -> JSONResponse:
        logger.error("Storage failure on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
