"""Greedy capacity-aware assignment, rescoring candidates as jobs are placed."""

from __future__ import annotations

from typing import Callable, Optional, Sequence

from housekeeping.domain.constraints import LOAD_EPSILON, PRIORITY_CLASSES
from housekeeping.domain.models import Job, ScoreMatrix, SolveResult, Worker
from housekeeping.services.scoring_service import workload_weight
from housekeeping.utils.logger import get_logger


logger = get_logger(__name__)

# Scores are compared at this precision so float noise cannot break ties.
_SCORE_PRECISION = 12

# (worker, candidate job, jobs the worker already holds) -> score in [0, 1]
Scorer = Callable[[Worker, Job, Sequence[Job]], float]


def order_by_priority(jobs: Sequence[Job]) -> list[Job]:
    """Departures, then stayovers, then free rooms; input order within a class."""
    rank = {state: position for position, state in enumerate(PRIORITY_CLASSES)}
    indexed = sorted(
        enumerate(jobs),
        key=lambda item: (rank.get(item[1].state, len(rank)), item[0]),
    )
    return [job for _, job in indexed]


def _select_worker(
    job_index: int,
    weight: float,
    workers: Sequence[Worker],
    worker_rows: dict[str, int],
    loads: dict[str, float],
    matrix: ScoreMatrix,
    job: Job,
    held: dict[str, list[Job]],
    scorer: Optional[Scorer],
) -> Optional[Worker]:
    best: Optional[Worker] = None
    best_key: Optional[tuple[float, float, str]] = None
    for worker in workers:
        if loads[worker.worker_id] + weight > worker.capacity + LOAD_EPSILON:
            continue
        if scorer is not None:
            raw = scorer(worker, job, held[worker.worker_id])
        else:
            raw = matrix.score(worker_rows[worker.worker_id], job_index)
        value = round(raw, _SCORE_PRECISION)
        key = (-value, loads[worker.worker_id], worker.worker_id)
        if best_key is None or key < best_key:
            best = worker
            best_key = key
    return best


def solve(
    score_matrix: ScoreMatrix,
    workers: Sequence[Worker],
    jobs: Sequence[Job],
    scorer: Optional[Scorer] = None,
) -> SolveResult:
    """Place each job on the best-scoring worker that still has room for it.

    Without a `scorer` the precomputed matrix is used as is. With one, each
    candidate is rescored against the jobs the worker has been given so far,
    so proximity follows the partial assignment.
    """
    worker_rows = {worker_id: row for row, worker_id in enumerate(score_matrix.worker_ids)}
    job_columns = {job_id: column for column, job_id in enumerate(score_matrix.job_ids)}
    input_position = {job.job_id: position for position, job in enumerate(jobs)}

    placed: dict[str, list[str]] = {worker.worker_id: [] for worker in workers}
    loads: dict[str, float] = {worker.worker_id: 0.0 for worker in workers}
    held: dict[str, list[Job]] = {worker.worker_id: [] for worker in workers}
    unassigned: list[str] = []

    for job in order_by_priority(jobs):
        weight = workload_weight(job)
        chosen = None
        if workers:
            chosen = _select_worker(
                job_columns[job.job_id],
                weight,
                workers,
                worker_rows,
                loads,
                score_matrix,
                job,
                held,
                scorer,
            )
        if chosen is None:
            unassigned.append(job.job_id)
            continue
        placed[chosen.worker_id].append(job.job_id)
        held[chosen.worker_id].append(job)
        loads[chosen.worker_id] += weight

    unassigned.sort(key=input_position.__getitem__)
    if unassigned:
        logger.warning(
            "Jobs left unassigned | workers=%s | unassigned=%s",
            len(workers),
            unassigned,
        )
    logger.info(
        "Greedy assignment completed | workers=%s | jobs=%s | assigned=%s | unassigned=%s",
        len(workers),
        len(jobs),
        len(jobs) - len(unassigned),
        len(unassigned),
    )
    return SolveResult(
        assignment={worker_id: tuple(job_ids) for worker_id, job_ids in placed.items()},
        unassigned_job_ids=tuple(unassigned),
        worker_loads=loads,
    )
