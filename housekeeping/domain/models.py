"""Domain models for room assignment and workload balancing."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class JobKind(str, Enum):
    TWIN = "twin"
    KING = "king"
    SUITE = "suite"
    DOUBLE_TWIN = "double_twin"


class JobState(str, Enum):
    DEPARTURE = "departure"
    STAYOVER = "stayover"
    FREE = "free"


class ContractHours(str, Enum):
    SHORT = "5h"
    LONG = "6h"


class RecordOutcome(str, Enum):
    REPORTED = "reported"
    RESOLVED = "resolved"


class BalanceTermination(str, Enum):
    TOLERANCE_MET = "tolerance_met"
    NO_IMPROVING_SWAP = "no_improving_swap"
    ITERATION_LIMIT = "iteration_limit"


# Workload units a worker may absorb per shift.
CAPACITY_BY_CONTRACT: dict[ContractHours, float] = {
    ContractHours.LONG: 18.0,
    ContractHours.SHORT: 15.0,
}


@dataclass(frozen=True)
class Job:
    """A room to clean; the id encodes floor and index (`"305"` -> 3, 5)."""

    job_id: str
    kind: JobKind
    state: JobState
    notes: str = ""

    @property
    def floor(self) -> int:
        return int(self.job_id[:-2] or 0)

    @property
    def index(self) -> int:
        return int(self.job_id[-2:])


@dataclass(frozen=True)
class Worker:
    worker_id: str
    contract: ContractHours
    experience: float = 0.5
    preferred_zone: Optional[str] = None

    @property
    def capacity(self) -> float:
        return CAPACITY_BY_CONTRACT[self.contract]


@dataclass(frozen=True)
class HistoricalRecord:
    worker_id: str
    subject: str
    outcome: RecordOutcome
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class ScoreMatrix:
    """Dense affinity table indexed `[worker_index][job_index]`."""

    worker_ids: tuple[str, ...]
    job_ids: tuple[str, ...]
    values: tuple[tuple[float, ...], ...]

    def score(self, worker_index: int, job_index: int) -> float:
        return self.values[worker_index][job_index]


@dataclass(frozen=True)
class SolveResult:
    assignment: dict[str, tuple[str, ...]]
    unassigned_job_ids: tuple[str, ...]
    worker_loads: dict[str, float]


@dataclass(frozen=True)
class BalanceResult:
    assignment: dict[str, tuple[str, ...]]
    balanced: bool
    iterations_used: int
    termination: BalanceTermination
    worker_loads: dict[str, float]
    max_load_history: tuple[float, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class OptimizationResult:
    assignment: dict[str, tuple[str, ...]]
    unassigned_job_ids: tuple[str, ...]
    balanced: bool
    iterations_used: int
    termination: BalanceTermination
    worker_loads: dict[str, float]

    def to_api_dict(self) -> dict[str, object]:
        return {
            "assignment": {
                worker_id: list(job_ids)
                for worker_id, job_ids in self.assignment.items()
            },
            "unassigned_jobs": list(self.unassigned_job_ids),
            "balanced": self.balanced,
            "iterations_used": self.iterations_used,
            "termination": self.termination.value,
            "worker_loads": dict(self.worker_loads),
        }
