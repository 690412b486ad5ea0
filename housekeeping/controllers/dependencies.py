"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from housekeeping.services.optimization_service import AssignmentOptimizationService
from housekeeping.services.simulation_service import SimulationService


def get_optimization_service(request: Request) -> AssignmentOptimizationService:
    service = getattr(request.app.state, "optimization_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Optimization service is not initialized",
        )
    return service


def get_simulation_service(request: Request) -> SimulationService:
    service = getattr(request.app.state, "simulation_service", None)
    if service is None:
        optimization_service = getattr(request.app.state, "optimization_service", None)
        if optimization_service is not None:
            service = SimulationService(
                optimization_service=optimization_service,
                settings=optimization_service.settings,
            )
            request.app.state.simulation_service = service
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Simulation service is not initialized",
        )
    return service
