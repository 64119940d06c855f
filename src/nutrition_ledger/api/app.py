"""FastAPI application factory."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from nutrition_ledger.api.ledger import router as ledger_router
from nutrition_ledger.app_logging import configure_logging
from nutrition_ledger.containers import AppContainer
from nutrition_ledger.domain.errors import (
    EntryNotFoundError,
    InvalidRangeError,
    InvalidTimezoneError,
    PartialWriteError,
    StorageUnavailableError,
)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    app = FastAPI()
    app.state.container = container

    app.include_router(ledger_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.exception_handler(EntryNotFoundError)
    async def entry_not_found(
        request: Request, exc: EntryNotFoundError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"error": "not_found", "detail": str(exc)},
        )

    @app.exception_handler(InvalidRangeError)
    async def invalid_range(request: Request, exc: InvalidRangeError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"error": "invalid_range", "detail": str(exc)},
        )

    @app.exception_handler(InvalidTimezoneError)
    async def invalid_timezone(
        request: Request, exc: InvalidTimezoneError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"error": "invalid_timezone", "detail": str(exc)},
        )

    @app.exception_handler(StorageUnavailableError)
    async def storage_unavailable(
        request: Request, exc: StorageUnavailableError
    ) -> JSONResponse:
        logger.error(
            "Storage unavailable",
            exc_info=exc,
            extra={"path": request.url.path},
        )
        content: dict[str, object] = {
            "error": "storage_unavailable",
            "detail": _format_storage_error(container, exc),
        }
        if isinstance(exc, PartialWriteError):
            content["error"] = "partial_write"
            content["entry_id"] = exc.entry_id
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=content,
            headers={"Retry-After": "1"},
        )

    return app


def _format_storage_error(container: AppContainer, exc: Exception) -> str:
    """Return a user-facing storage error with local debug info."""
    fallback = "Couldn't save your changes. Please try again."
    if container.settings.environment == "local":
        return f"{fallback} (debug: {type(exc).__name__}: {exc})"
    return fallback
