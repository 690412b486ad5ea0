"""CP-SAT reference optimum used to measure the greedy heuristic's gap."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

try:
    from ortools.sat.python import cp_model
except ModuleNotFoundError:  # pragma: no cover - runtime dependency guard
    cp_model = None  # type: ignore[assignment]

from housekeeping.domain.models import Job, ScoreMatrix, Worker
from housekeeping.services.scoring_service import workload_weight
from housekeeping.utils.logger import get_logger


logger = get_logger(__name__)

# Workload weights are fractional; CP-SAT needs integers.
_WEIGHT_SCALE = 100


class SolverDependencyError(Exception):
    """Raised when OR-Tools is unavailable in the runtime."""


@dataclass(frozen=True)
class ReferenceConfig:
    max_time_seconds: int = 10
    random_seed: int = 42
    workers: int = 1
    objective_scale: int = 1000


@dataclass(frozen=True)
class BuildArtifacts:
    model: Any
    variables: dict[tuple[str, str], Any]
    objective_coefficients: dict[tuple[str, str], int]


@dataclass(frozen=True)
class ReferenceSolution:
    status: str
    objective_value: float
    assignment: dict[str, tuple[str, ...]]


@dataclass(frozen=True)
class OptimalityGap:
    heuristic_objective: float
    reference_objective: float
    relative_gap: float
    status: str

    def to_api_dict(self) -> dict[str, float | str]:
        return {
            "heuristic_objective": self.heuristic_objective,
            "reference_objective": self.reference_objective,
            "relative_gap": self.relative_gap,
            "status": self.status,
        }


def _ensure_solver_dependency() -> None:
    if cp_model is None:
        raise SolverDependencyError(
            "OR-Tools is not installed. Install 'ortools' to compute the reference optimum."
        )


def build_model(
    *,
    matrix: ScoreMatrix,
    workers: Sequence[Worker],
    jobs: Sequence[Job],
    config: ReferenceConfig,
) -> BuildArtifacts:
    """Maximize total score with each job placed at most once within capacity."""
    _ensure_solver_dependency()
    model = cp_model.CpModel()
    worker_rows = {worker_id: row for row, worker_id in enumerate(matrix.worker_ids)}
    job_columns = {job_id: column for column, job_id in enumerate(matrix.job_ids)}
    variables: dict[tuple[str, str], cp_model.IntVar] = {}
    objective_coefficients: dict[tuple[str, str], int] = {}

    for worker in workers:
        for job in jobs:
            pair = (worker.worker_id, job.job_id)
            variables[pair] = model.NewBoolVar(f"x_{worker.worker_id}_{job.job_id}")
            value = matrix.score(worker_rows[worker.worker_id], job_columns[job.job_id])
            objective_coefficients[pair] = max(0, int(round(value * config.objective_scale)))

    for job in jobs:
        model.Add(sum(variables[(worker.worker_id, job.job_id)] for worker in workers) <= 1)

    for worker in workers:
        capacity_scaled = int(round(worker.capacity * _WEIGHT_SCALE))
        model.Add(
            sum(
                int(round(workload_weight(job) * _WEIGHT_SCALE))
                * variables[(worker.worker_id, job.job_id)]
                for job in jobs
            )
            <= capacity_scaled
        )

    if variables:
        model.Maximize(
            sum(objective_coefficients[pair] * var for pair, var in variables.items())
        )
    else:
        model.Maximize(0)
    return BuildArtifacts(
        model=model,
        variables=variables,
        objective_coefficients=objective_coefficients,
    )


def solve_reference_assignment(
    *,
    matrix: ScoreMatrix,
    workers: Sequence[Worker],
    jobs: Sequence[Job],
    config: ReferenceConfig | None = None,
) -> ReferenceSolution:
    _ensure_solver_dependency()
    resolved = config or ReferenceConfig()
    if not workers or not jobs:
        return ReferenceSolution(
            status="EMPTY",
            objective_value=0.0,
            assignment={worker.worker_id: () for worker in workers},
        )

    artifacts = build_model(matrix=matrix, workers=workers, jobs=jobs, config=resolved)
    solver = cp_model.CpSolver()
    solver.parameters.max_time_in_seconds = float(resolved.max_time_seconds)
    solver.parameters.num_search_workers = resolved.workers
    solver.parameters.random_seed = resolved.random_seed

    status = solver.Solve(artifacts.model)
    status_name = solver.StatusName(status)
    if status not in (cp_model.OPTIMAL, cp_model.FEASIBLE):
        logger.warning("Reference solve failed | status=%s", status_name)
        return ReferenceSolution(
            status=status_name,
            objective_value=0.0,
            assignment={worker.worker_id: () for worker in workers},
        )

    placed: dict[str, list[str]] = {worker.worker_id: [] for worker in workers}
    for job in jobs:
        for worker in workers:
            if solver.Value(artifacts.variables[(worker.worker_id, job.job_id)]) == 1:
                placed[worker.worker_id].append(job.job_id)
                break

    objective_value = float(solver.ObjectiveValue()) / resolved.objective_scale
    logger.info(
        "Reference solve completed | status=%s | objective_value=%.6f",
        status_name,
        objective_value,
    )
    return ReferenceSolution(
        status=status_name,
        objective_value=objective_value,
        assignment={worker_id: tuple(job_ids) for worker_id, job_ids in placed.items()},
    )


def assignment_objective(
    matrix: ScoreMatrix,
    assignment: Mapping[str, Sequence[str]],
    objective_scale: int = 1000,
) -> float:
    """Total matrix score of an assignment, rounded like the CP-SAT objective."""
    worker_rows = {worker_id: row for row, worker_id in enumerate(matrix.worker_ids)}
    job_columns = {job_id: column for column, job_id in enumerate(matrix.job_ids)}
    total = 0
    for worker_id, job_ids in assignment.items():
        for job_id in job_ids:
            value = matrix.score(worker_rows[worker_id], job_columns[job_id])
            total += max(0, int(round(value * objective_scale)))
    return total / objective_scale


def compute_optimality_gap(
    matrix: ScoreMatrix,
    assignment: Mapping[str, Sequence[str]],
    reference: ReferenceSolution,
    objective_scale: int = 1000,
) -> OptimalityGap:
    heuristic = assignment_objective(matrix, assignment, objective_scale)
    if reference.objective_value <= 0.0:
        relative = 0.0
    else:
        relative = max(0.0, (reference.objective_value - heuristic) / reference.objective_value)
    return OptimalityGap(
        heuristic_objective=heuristic,
        reference_objective=reference.objective_value,
        relative_gap=relative,
        status=reference.status,
    )
