"""HTTP controller layer for room assignment, reporting and simulation."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator

from housekeeping.controllers.dependencies import (
    get_optimization_service,
    get_simulation_service,
)
from housekeeping.domain.constraints import OptimizationConfigError, ScoreWeights
from housekeeping.domain.models import HistoricalRecord, Job, RecordOutcome, Worker
from housekeeping.services.optimization_service import AssignmentOptimizationService
from housekeeping.services.reference_solver import SolverDependencyError
from housekeeping.services.report_service import build_daily_report
from housekeeping.services.simulation_service import (
    SimulationService,
    SimulationValidationError,
)
from housekeeping.services.validation_service import (
    InputValidationError,
    build_job,
    build_worker,
    validate_assignment,
    validate_snapshot,
)
from housekeeping.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["housekeeping"])


class JobPayload(BaseModel):
    """Raw room row; labels are normalized in the service layer."""

    job_id: str = Field(min_length=1)
    kind: str = Field(min_length=1)
    state: str = Field(min_length=1)
    notes: str = ""


class WorkerPayload(BaseModel):
    worker_id: str = Field(min_length=1)
    contract: str = Field(min_length=1)
    experience: float | None = Field(default=None, ge=0.0, le=1.0)
    preferred_zone: str | None = None


class RecordPayload(BaseModel):
    worker_id: str = Field(min_length=1)
    subject: str = ""
    timestamp: datetime | None = None


class WeightsPayload(BaseModel):
    proximity: float = Field(default=0.30, ge=0.0)
    workload: float = Field(default=0.40, ge=0.0)
    experience: float = Field(default=0.20, ge=0.0)
    historical: float = Field(default=0.10, ge=0.0)


class OptimizeRequest(BaseModel):
    jobs: list[JobPayload] = Field(default_factory=list)
    workers: list[WorkerPayload] = Field(default_factory=list)
    reported_errors: list[RecordPayload] = Field(default_factory=list)
    resolved_errors: list[RecordPayload] = Field(default_factory=list)
    weights: WeightsPayload | None = None
    max_iterations: int | None = Field(default=None, ge=0)
    include_reference_gap: bool = False


class ReferenceGapResponse(BaseModel):
    heuristic_objective: float = Field(ge=0.0)
    reference_objective: float = Field(ge=0.0)
    relative_gap: float = Field(ge=0.0)
    status: str


class OptimizeResponse(BaseModel):
    assignment: dict[str, list[str]]
    unassigned_jobs: list[str]
    balanced: bool
    iterations_used: int = Field(ge=0)
    termination: str
    worker_loads: dict[str, float]
    reference_gap: ReferenceGapResponse | None = None


class ReportRequest(BaseModel):
    jobs: list[JobPayload] = Field(default_factory=list)
    workers: list[WorkerPayload] = Field(default_factory=list)
    assignment: dict[str, list[str]] = Field(default_factory=dict)


class WorkerReportResponse(BaseModel):
    worker_id: str
    departures: list[str]
    stayovers: list[str]
    free: list[str]
    room_count: int = Field(ge=0)
    workload: float = Field(ge=0.0)
    capacity: float = Field(gt=0.0)
    utilization: float = Field(ge=0.0)


class ReportResponse(BaseModel):
    total_rooms: int = Field(ge=0)
    departures: int = Field(ge=0)
    stayovers: int = Field(ge=0)
    free: int = Field(ge=0)
    dnd_refusals: int = Field(ge=0)
    unassigned: list[str]
    fairness_metric: float = Field(ge=0.0, le=1.0)
    workers: list[WorkerReportResponse]


class SimulateRequest(BaseModel):
    departures: int = Field(ge=0)
    stayovers: int = Field(ge=0)
    workers: list[WorkerPayload] = Field(min_length=1)

    @field_validator("workers")
    @classmethod
    def validate_unique_workers(cls, value: list[WorkerPayload]) -> list[WorkerPayload]:
        identifiers = [item.worker_id.strip() for item in value]
        if len(identifiers) != len(set(identifiers)):
            raise ValueError("workers must have unique worker_id values")
        return value


class SimulatedRoomResponse(BaseModel):
    room_id: str
    kind: str
    state: str


class SimulationDeltaResponse(BaseModel):
    fairness_change: float
    unassigned_change: int
    peak_workload_change: float


class SimulateResponse(BaseModel):
    rooms: list[SimulatedRoomResponse]
    baseline: ReportResponse
    optimized: ReportResponse
    result: OptimizeResponse
    delta: SimulationDeltaResponse


def _to_jobs(payloads: Sequence[JobPayload]) -> list[Job]:
    return [
        build_job(item.job_id, item.kind, item.state, item.notes) for item in payloads
    ]


def _to_workers(payloads: Sequence[WorkerPayload]) -> list[Worker]:
    return [
        build_worker(
            item.worker_id,
            item.contract,
            experience=item.experience,
            preferred_zone=item.preferred_zone,
        )
        for item in payloads
    ]


def _to_records(
    payloads: Sequence[RecordPayload],
    outcome: RecordOutcome,
) -> list[HistoricalRecord]:
    return [
        HistoricalRecord(
            worker_id=item.worker_id.strip(),
            subject=item.subject,
            outcome=outcome,
            timestamp=item.timestamp,
        )
        for item in payloads
    ]


def _to_weights(payload: Optional[WeightsPayload]) -> Optional[ScoreWeights]:
    if payload is None:
        return None
    return ScoreWeights(
        proximity=payload.proximity,
        workload=payload.workload,
        experience=payload.experience,
        historical=payload.historical,
    )


@router.get("/health", status_code=status.HTTP_200_OK)
async def health(
    service: AssignmentOptimizationService = Depends(get_optimization_service),
) -> dict[str, str]:
    return {"status": "ok", "version": service.settings.app_version}


@router.post(
    "/optimize",
    response_model=OptimizeResponse,
    status_code=status.HTTP_200_OK,
)
async def optimize(
    payload: OptimizeRequest,
    service: AssignmentOptimizationService = Depends(get_optimization_service),
) -> OptimizeResponse:
    """Score, assign and rebalance the submitted rooms across the submitted staff."""
    try:
        jobs = _to_jobs(payload.jobs)
        workers = _to_workers(payload.workers)
        validate_snapshot(jobs, workers)
        reported = _to_records(payload.reported_errors, RecordOutcome.REPORTED)
        resolved = _to_records(payload.resolved_errors, RecordOutcome.RESOLVED)
        weights = _to_weights(payload.weights)

        result = service.optimize(
            jobs=jobs,
            workers=workers,
            reported_errors=reported,
            resolved_errors=resolved,
            weights=weights,
            max_iterations=payload.max_iterations,
        )
        body = result.to_api_dict()
        if payload.include_reference_gap:
            gap = service.reference_gap(
                jobs=jobs,
                workers=workers,
                result=result,
                reported_errors=reported,
                resolved_errors=resolved,
                weights=weights,
            )
            body["reference_gap"] = gap.to_api_dict()
        return OptimizeResponse(**body)
    except (InputValidationError, OptimizationConfigError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except SolverDependencyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected optimization failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to optimize assignment",
        ) from exc


@router.post(
    "/report",
    response_model=ReportResponse,
    status_code=status.HTTP_200_OK,
)
async def report(
    payload: ReportRequest,
    service: AssignmentOptimizationService = Depends(get_optimization_service),
) -> ReportResponse:
    """Summarize an existing assignment without re-optimizing it."""
    try:
        jobs = _to_jobs(payload.jobs)
        workers = _to_workers(payload.workers)
        validate_snapshot(jobs, workers)
        assignment = {
            worker_id.strip(): tuple(job_id.strip() for job_id in job_ids)
            for worker_id, job_ids in payload.assignment.items()
        }
        validate_assignment(assignment, jobs, workers)
        daily = build_daily_report(jobs, workers, assignment, service.settings)
        return ReportResponse(**daily.to_api_dict())
    except InputValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected report failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to build report",
        ) from exc


@router.post(
    "/simulate",
    response_model=SimulateResponse,
    status_code=status.HTTP_200_OK,
)
async def simulate(
    payload: SimulateRequest,
    service: SimulationService = Depends(get_simulation_service),
) -> SimulateResponse:
    """Run an isolated in-memory what-if day against the hotel layout."""
    try:
        workers = _to_workers(payload.workers)
        result = service.run(
            departures=payload.departures,
            stayovers=payload.stayovers,
            workers=workers,
        )
        return SimulateResponse(**result)
    except (SimulationValidationError, InputValidationError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected simulation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to run simulation",
        ) from exc
