from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .api import health, transfers
from .config import settings
from .core.bridge.manager import BridgeManager
from .core.bridge.registry import BridgeRegistry
from .logging_config import setup_logging


def create_app(manager: Optional[BridgeManager] = None) -> FastAPI:
    """Build the API. Without a manager, one is created from settings on startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if manager is not None:
            yield
            return
        setup_logging()
        owned = BridgeManager(BridgeRegistry.from_settings(settings))
        app.state.bridge_manager = owned
        try:
            yield
        finally:
            await owned.aclose()
            app.state.bridge_manager = None

    app = FastAPI(
        title="Bridgekeeper API",
        description="Cross-chain transfer tracking and release dispatch",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.bridge_manager = manager

    app.include_router(health.router, tags=["Health"])
    app.include_router(transfers.router, tags=["Transfers"])

    @app.get("/")
    async def root():
        """Root endpoint with basic info"""
        return {
            "name": "Bridgekeeper API",
            "version": "0.1.0",
            "docs": "/docs",
            "health": "/healthz",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "bridgekeeper.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower()
    )
