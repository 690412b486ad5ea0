"""End-to-end room assignment: score, solve greedily, then rebalance."""

from __future__ import annotations

import copy
from typing import Optional, Sequence
from uuid import uuid4

from housekeeping.domain.constraints import (
    DEFAULT_SCORE_WEIGHTS,
    ScoreWeights,
    default_max_iterations,
    validate_score_weights,
)
from housekeeping.domain.models import (
    HistoricalRecord,
    Job,
    OptimizationResult,
    Worker,
)
from housekeeping.services.balancing_service import balance
from housekeeping.services.matrix_service import (
    ScoreMatrixCache,
    build_rescorer,
    build_score_matrix,
)
from housekeeping.services.reference_solver import (
    OptimalityGap,
    ReferenceConfig,
    compute_optimality_gap,
    solve_reference_assignment,
)
from housekeeping.services.solver_service import solve
from housekeeping.utils.config import Settings, get_settings
from housekeeping.utils.logger import get_logger, run_context


logger = get_logger(__name__)


class AssignmentOptimizationService:
    """Stateless optimizer facade; each call works on its own copy of the inputs."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        cache: Optional[ScoreMatrixCache] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._cache = cache

    @property
    def settings(self) -> Settings:
        return self._settings

    def _score_matrix(self, workers, jobs, reported, resolved, weights):
        if self._cache is not None:
            return self._cache.get_or_build(
                workers, jobs, None, reported, resolved, weights
            )
        return build_score_matrix(workers, jobs, None, reported, resolved, weights)

    def optimize(
        self,
        *,
        jobs: Sequence[Job],
        workers: Sequence[Worker],
        reported_errors: Sequence[HistoricalRecord] = (),
        resolved_errors: Sequence[HistoricalRecord] = (),
        weights: Optional[ScoreWeights] = None,
        max_iterations: Optional[int] = None,
    ) -> OptimizationResult:
        resolved_weights = weights or DEFAULT_SCORE_WEIGHTS
        validate_score_weights(resolved_weights)

        # Work on a private snapshot so concurrent callers never share state.
        job_snapshot = tuple(copy.deepcopy(list(jobs)))
        worker_snapshot = tuple(copy.deepcopy(list(workers)))
        reported_snapshot = tuple(copy.deepcopy(list(reported_errors)))
        resolved_snapshot = tuple(copy.deepcopy(list(resolved_errors)))

        iteration_limit = (
            max_iterations
            if max_iterations is not None
            else default_max_iterations(
                len(job_snapshot), self._settings.balance_iterations_per_job
            )
        )
        with run_context(str(uuid4())):
            return self._run(
                job_snapshot,
                worker_snapshot,
                reported_snapshot,
                resolved_snapshot,
                resolved_weights,
                iteration_limit,
            )

    def _run(
        self,
        jobs: tuple[Job, ...],
        workers: tuple[Worker, ...],
        reported: tuple[HistoricalRecord, ...],
        resolved: tuple[HistoricalRecord, ...],
        weights: ScoreWeights,
        iteration_limit: int,
    ) -> OptimizationResult:
        logger.info(
            "Optimization run started | jobs=%s | workers=%s | max_iterations=%s",
            len(jobs),
            len(workers),
            iteration_limit,
        )

        matrix = self._score_matrix(workers, jobs, reported, resolved, weights)
        scorer = build_rescorer(workers, reported, resolved, weights)
        solved = solve(matrix, workers, jobs, scorer)

        assigned_ids = {
            job_id for job_ids in solved.assignment.values() for job_id in job_ids
        }
        placed_jobs = [job for job in jobs if job.job_id in assigned_ids]
        balanced = balance(
            solved.assignment,
            placed_jobs,
            max_iterations=iteration_limit,
            tolerance=self._settings.balance_tolerance,
            capacities={worker.worker_id: worker.capacity for worker in workers},
        )

        result = OptimizationResult(
            assignment=balanced.assignment,
            unassigned_job_ids=solved.unassigned_job_ids,
            balanced=balanced.balanced,
            iterations_used=balanced.iterations_used,
            termination=balanced.termination,
            worker_loads=balanced.worker_loads,
        )
        logger.info(
            (
                "Optimization run completed | balanced=%s | iterations=%s | "
                "termination=%s | unassigned=%s"
            ),
            result.balanced,
            result.iterations_used,
            result.termination.value,
            len(result.unassigned_job_ids),
        )
        return result

    def reference_gap(
        self,
        *,
        jobs: Sequence[Job],
        workers: Sequence[Worker],
        result: OptimizationResult,
        reported_errors: Sequence[HistoricalRecord] = (),
        resolved_errors: Sequence[HistoricalRecord] = (),
        weights: Optional[ScoreWeights] = None,
    ) -> OptimalityGap:
        """Compare a heuristic result with the CP-SAT optimum on the same matrix."""
        resolved_weights = weights or DEFAULT_SCORE_WEIGHTS
        matrix = self._score_matrix(
            tuple(workers), tuple(jobs), tuple(reported_errors), tuple(resolved_errors),
            resolved_weights,
        )
        config = ReferenceConfig(
            max_time_seconds=self._settings.reference_solver_max_time_seconds,
            random_seed=self._settings.reference_solver_random_seed,
            workers=self._settings.reference_solver_workers,
            objective_scale=self._settings.reference_objective_scale,
        )
        reference = solve_reference_assignment(
            matrix=matrix,
            workers=workers,
            jobs=jobs,
            config=config,
        )
        gap = compute_optimality_gap(
            matrix,
            result.assignment,
            reference,
            objective_scale=config.objective_scale,
        )
        logger.info(
            "Reference comparison | heuristic=%.6f | reference=%.6f | gap=%.4f",
            gap.heuristic_objective,
            gap.reference_objective,
            gap.relative_gap,
        )
        return gap
