"""Daily housekeeping report over a room assignment."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from housekeeping.domain.models import Job, JobState, Worker
from housekeeping.services.scoring_service import workload_weight
from housekeeping.utils.config import Settings, get_settings


@dataclass(frozen=True)
class WorkerReportRow:
    worker_id: str
    departures: tuple[str, ...]
    stayovers: tuple[str, ...]
    free: tuple[str, ...]
    room_count: int
    workload: float
    capacity: float
    utilization: float

    def to_api_dict(self) -> dict[str, object]:
        return {
            "worker_id": self.worker_id,
            "departures": list(self.departures),
            "stayovers": list(self.stayovers),
            "free": list(self.free),
            "room_count": self.room_count,
            "workload": self.workload,
            "capacity": self.capacity,
            "utilization": self.utilization,
        }


@dataclass(frozen=True)
class DailyReport:
    total_rooms: int
    departures: int
    stayovers: int
    free: int
    dnd_refusals: int
    unassigned: tuple[str, ...]
    fairness_metric: float
    workers: tuple[WorkerReportRow, ...]

    def to_api_dict(self) -> dict[str, object]:
        return {
            "total_rooms": self.total_rooms,
            "departures": self.departures,
            "stayovers": self.stayovers,
            "free": self.free,
            "dnd_refusals": self.dnd_refusals,
            "unassigned": list(self.unassigned),
            "fairness_metric": self.fairness_metric,
            "workers": [row.to_api_dict() for row in self.workers],
        }


def compute_fairness_metric(loads: Sequence[float]) -> float:
    """Jain's index: 1.0 when every worker carries the same load."""
    if not loads:
        return 0.0
    numerator = sum(loads) ** 2
    denominator = len(loads) * sum(value**2 for value in loads)
    if denominator == 0.0:
        return 0.0
    return float(min(1.0, numerator / denominator))


def _has_marker(notes: str, markers: Sequence[str]) -> bool:
    return any(marker in notes for marker in markers)


def build_daily_report(
    jobs: Sequence[Job],
    workers: Sequence[Worker],
    assignment: Mapping[str, Sequence[str]],
    settings: Optional[Settings] = None,
) -> DailyReport:
    resolved_settings = settings or get_settings()
    job_by_id = {job.job_id: job for job in jobs}

    rows: list[WorkerReportRow] = []
    assigned_ids: set[str] = set()
    for worker in workers:
        held = [job_by_id[job_id] for job_id in assignment.get(worker.worker_id, ())]
        assigned_ids.update(job.job_id for job in held)
        workload = sum(workload_weight(job) for job in held)
        rows.append(
            WorkerReportRow(
                worker_id=worker.worker_id,
                departures=tuple(job.job_id for job in held if job.state is JobState.DEPARTURE),
                stayovers=tuple(job.job_id for job in held if job.state is JobState.STAYOVER),
                free=tuple(job.job_id for job in held if job.state is JobState.FREE),
                room_count=len(held),
                workload=workload,
                capacity=worker.capacity,
                utilization=workload / worker.capacity if worker.capacity else 0.0,
            )
        )

    return DailyReport(
        total_rooms=len(jobs),
        departures=sum(1 for job in jobs if job.state is JobState.DEPARTURE),
        stayovers=sum(1 for job in jobs if job.state is JobState.STAYOVER),
        free=sum(1 for job in jobs if job.state is JobState.FREE),
        dnd_refusals=sum(
            1 for job in jobs if _has_marker(job.notes, resolved_settings.report_dnd_markers)
        ),
        unassigned=tuple(job.job_id for job in jobs if job.job_id not in assigned_ids),
        fairness_metric=compute_fairness_metric([row.workload for row in rows]),
        workers=tuple(rows),
    )
