"""Per-criterion sub-scores and their weighted combination."""

from __future__ import annotations

from itertools import combinations
from typing import Optional, Sequence

from housekeeping.domain.constraints import (
    DEFAULT_SCORE_WEIGHTS,
    STATE_WEIGHTS,
    TYPE_WEIGHTS,
    WORKLOAD_CEILING,
    ScoreWeights,
)
from housekeeping.domain.models import Job, Worker


def _clamp(value: float, lower: float = 0.0, upper: float = 1.0) -> float:
    return max(lower, min(upper, value))


def job_distance(first: Job, second: Job) -> int:
    """Floor changes dominate; rooms on the same floor are linear in index."""
    return abs(first.floor - second.floor) * 10 + abs(first.index - second.index)


def proximity_score(candidate: Job, assigned_jobs: Sequence[Job]) -> float:
    if len(assigned_jobs) <= 1:
        return 1.0
    group = [*assigned_jobs, candidate]
    distances = [job_distance(a, b) for a, b in combinations(group, 2)]
    mean_distance = sum(distances) / len(distances)
    return 1.0 / (1.0 + mean_distance)


def workload_weight(job: Job) -> float:
    return TYPE_WEIGHTS[job.kind] * STATE_WEIGHTS[job.state]


def workload_score(job: Job) -> float:
    return _clamp(1.0 - workload_weight(job) / WORKLOAD_CEILING)


def experience_score(worker: Worker) -> float:
    return _clamp(worker.experience)


def combine_scores(
    proximity: float,
    workload: float,
    experience: float,
    historical: float,
    weights: Optional[ScoreWeights] = None,
) -> float:
    resolved = weights or DEFAULT_SCORE_WEIGHTS
    total = (
        resolved.proximity * proximity
        + resolved.workload * workload
        + resolved.experience * experience
        + resolved.historical * historical
    )
    return _clamp(total)


def score(
    worker: Worker,
    job: Job,
    assigned_jobs: Sequence[Job],
    historical_ratio: float,
    weights: Optional[ScoreWeights] = None,
) -> float:
    """Affinity in [0, 1] of `worker` for `job` given what it already holds."""
    return combine_scores(
        proximity=proximity_score(job, assigned_jobs),
        workload=workload_score(job),
        experience=experience_score(worker),
        historical=_clamp(historical_ratio),
        weights=weights,
    )
