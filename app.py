"""
app.py - FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires the optimizer services and registers the router.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from housekeeping.controllers.optimization_controller import router as optimization_router
from housekeeping.services.matrix_service import ScoreMatrixCache
from housekeeping.services.optimization_service import AssignmentOptimizationService
from housekeeping.services.simulation_service import SimulationService
from housekeeping.utils.config import get_settings
from housekeeping.utils.logger import get_logger


logger = get_logger(__name__)


def create_app() -> FastAPI:
    """
    Build and wire the FastAPI application.

    Services are stateless apart from the shared score-matrix cache and are
    injected via app.state.
    """
    settings = get_settings()

    score_cache = ScoreMatrixCache(max_entries=settings.score_cache_size)
    optimization_service = AssignmentOptimizationService(
        settings=settings,
        cache=score_cache,
    )
    simulation_service = SimulationService(
        optimization_service=optimization_service,
        settings=settings,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "Startup complete | app=%s | version=%s | score_cache_size=%s",
            settings.app_name,
            settings.app_version,
            settings.score_cache_size,
        )
        yield
        app.state.score_cache.clear()
        logger.info("Shutdown complete | score cache cleared")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.include_router(optimization_router)

    app.state.score_cache = score_cache
    app.state.optimization_service = optimization_service
    app.state.simulation_service = simulation_service

    return app


# Module-level app object for uvicorn
app = create_app()
