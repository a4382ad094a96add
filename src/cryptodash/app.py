from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from cryptodash.config import load_env_file
from cryptodash.logging_config import configure_logging
from cryptodash.services.data_refresh import DataRefreshService
from cryptodash.web.routes import cryptocurrencies, diagnostics, historical, refresh


def create_app(refresh_service: Optional[DataRefreshService] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    When ``refresh_service`` is omitted it is built from the environment at
    startup and torn down at shutdown.
    """
    load_env_file()
    configure_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = refresh_service is None
        service = refresh_service or DataRefreshService.from_env()
        service.start()
        app.state.refresh_service = service
        try:
            yield
        finally:
            app.state.refresh_service = None
            if owned:
                service.close()

    app = FastAPI(
        title="Crypto Dashboard API",
        version="0.1.0",
        description="Blockchain statistics with cached reads and stored snapshots.",
        lifespan=lifespan,
    )

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(cryptocurrencies.router)
    app.include_router(historical.router)
    app.include_router(refresh.router)
    app.include_router(diagnostics.router)

    return app


app = create_app()
