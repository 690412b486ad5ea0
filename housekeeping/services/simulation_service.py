"""What-if day simulation over the hotel's room layout.

Nothing here is persisted: each run builds its rooms in memory, compares the
legacy round-robin distribution against the optimizer, and discards both.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence
from uuid import uuid4

from housekeeping.domain.models import ContractHours, Job, JobKind, JobState, Worker
from housekeeping.services.optimization_service import AssignmentOptimizationService
from housekeeping.services.report_service import DailyReport, build_daily_report
from housekeeping.utils.config import Settings, get_settings
from housekeeping.utils.logger import get_logger, run_context


logger = get_logger(__name__)

# Room-count ceilings used by the legacy distribution, keyed by contract.
ROUND_ROBIN_ROOM_LIMITS: dict[ContractHours, int] = {
    ContractHours.LONG: 18,
    ContractHours.SHORT: 15,
}


class SimulationValidationError(Exception):
    """Raised when a simulated day cannot be built from the requested counts."""


@dataclass(frozen=True)
class RoomTemplate:
    room_id: str
    kind: JobKind


def build_hotel_rooms(settings: Optional[Settings] = None) -> list[RoomTemplate]:
    """Floors x rooms-per-floor, minus missing numbers; low floors are twins."""
    resolved = settings or get_settings()
    missing = set(resolved.hotel_missing_rooms)
    rooms: list[RoomTemplate] = []
    for floor in range(1, resolved.hotel_floors + 1):
        for index in range(1, resolved.hotel_rooms_per_floor + 1):
            number = floor * 100 + index
            room_id = str(number)
            if room_id in missing:
                continue
            kind = JobKind.TWIN if number <= resolved.hotel_twin_ceiling else JobKind.KING
            rooms.append(RoomTemplate(room_id=room_id, kind=kind))
    return rooms


def simulate_day(
    rooms: Sequence[RoomTemplate],
    departures: int,
    stayovers: int,
) -> list[Job]:
    """First `departures` rooms leave, the next `stayovers` stay; the rest need nothing."""
    if departures < 0 or stayovers < 0:
        raise SimulationValidationError("departures and stayovers must be >= 0")
    if departures + stayovers > len(rooms):
        raise SimulationValidationError(
            f"departures + stayovers must not exceed {len(rooms)} rooms"
        )
    jobs: list[Job] = []
    for position, room in enumerate(rooms[: departures + stayovers]):
        state = JobState.DEPARTURE if position < departures else JobState.STAYOVER
        jobs.append(Job(job_id=room.room_id, kind=room.kind, state=state))
    return jobs


def round_robin_distribution(
    jobs: Sequence[Job],
    workers: Sequence[Worker],
) -> dict[str, tuple[str, ...]]:
    """Legacy dealing: departures modulo staff, stayovers only below room limits."""
    placed: dict[str, list[str]] = {worker.worker_id: [] for worker in workers}
    if not workers:
        return {}

    departures = [job for job in jobs if job.state is JobState.DEPARTURE]
    stayovers = [job for job in jobs if job.state is not JobState.DEPARTURE]
    for position, job in enumerate(departures):
        worker = workers[position % len(workers)]
        placed[worker.worker_id].append(job.job_id)
    for position, job in enumerate(stayovers):
        worker = workers[position % len(workers)]
        if len(placed[worker.worker_id]) < ROUND_ROBIN_ROOM_LIMITS[worker.contract]:
            placed[worker.worker_id].append(job.job_id)
    return {worker_id: tuple(job_ids) for worker_id, job_ids in placed.items()}


class SimulationService:
    """Runs baseline vs optimized comparisons for a synthetic day."""

    def __init__(
        self,
        optimization_service: Optional[AssignmentOptimizationService] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._optimization_service = optimization_service or AssignmentOptimizationService(
            settings=self._settings,
        )

    def run(
        self,
        *,
        departures: int,
        stayovers: int,
        workers: Sequence[Worker],
    ) -> dict[str, Any]:
        with run_context(str(uuid4())):
            return self._simulate(departures, stayovers, workers)

    def _simulate(
        self,
        departures: int,
        stayovers: int,
        workers: Sequence[Worker],
    ) -> dict[str, Any]:
        logger.info(
            "Simulation run started | departures=%s | stayovers=%s | workers=%s",
            departures,
            stayovers,
            len(workers),
        )
        rooms = build_hotel_rooms(self._settings)
        jobs = simulate_day(rooms, departures, stayovers)

        baseline_assignment = round_robin_distribution(jobs, workers)
        baseline_report = build_daily_report(jobs, workers, baseline_assignment, self._settings)

        result = self._optimization_service.optimize(jobs=jobs, workers=workers)
        optimized_report = build_daily_report(jobs, workers, result.assignment, self._settings)

        delta = self.compare_reports(baseline_report, optimized_report)
        logger.info(
            (
                "Simulation run completed | baseline_fairness=%.4f | "
                "optimized_fairness=%.4f | unassigned_change=%s"
            ),
            baseline_report.fairness_metric,
            optimized_report.fairness_metric,
            delta["unassigned_change"],
        )
        return {
            "rooms": [
                {"room_id": job.job_id, "kind": job.kind.value, "state": job.state.value}
                for job in jobs
            ],
            "baseline": baseline_report.to_api_dict(),
            "optimized": optimized_report.to_api_dict(),
            "result": result.to_api_dict(),
            "delta": delta,
        }

    @staticmethod
    def compare_reports(baseline: DailyReport, optimized: DailyReport) -> dict[str, float | int]:
        baseline_peak = max((row.workload for row in baseline.workers), default=0.0)
        optimized_peak = max((row.workload for row in optimized.workers), default=0.0)
        return {
            "fairness_change": optimized.fairness_metric - baseline.fairness_metric,
            "unassigned_change": len(optimized.unassigned) - len(baseline.unassigned),
            "peak_workload_change": optimized_peak - baseline_peak,
        }
