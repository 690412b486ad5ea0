"""Domain-level constants and validation rules for scoring and balancing."""

from __future__ import annotations

from dataclasses import dataclass

from housekeeping.domain.models import JobKind, JobState


TYPE_WEIGHTS: dict[JobKind, float] = {
    JobKind.TWIN: 1.0,
    JobKind.KING: 1.2,
    JobKind.SUITE: 1.5,
    JobKind.DOUBLE_TWIN: 1.3,
}

STATE_WEIGHTS: dict[JobState, float] = {
    JobState.DEPARTURE: 1.5,
    JobState.STAYOVER: 1.0,
    JobState.FREE: 0.8,
}

# Normalization ceiling for a single job's workload weight.
WORKLOAD_CEILING = 3.0

# Assignment order: rooms blocking resale go first.
PRIORITY_CLASSES: tuple[JobState, ...] = (
    JobState.DEPARTURE,
    JobState.STAYOVER,
    JobState.FREE,
)

LOAD_EPSILON = 1e-9


class OptimizationConfigError(ValueError):
    """Raised when scoring weights or balancer bounds are invalid."""


@dataclass(frozen=True)
class ScoreWeights:
    proximity: float = 0.30
    workload: float = 0.40
    experience: float = 0.20
    historical: float = 0.10

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.proximity, self.workload, self.experience, self.historical)


DEFAULT_SCORE_WEIGHTS = ScoreWeights()


@dataclass(frozen=True)
class BalancerConfig:
    max_iterations: int
    tolerance: float


def validate_score_weights(weights: ScoreWeights) -> None:
    for name, value in zip(
        ("proximity", "workload", "experience", "historical"),
        weights.as_tuple(),
    ):
        if value < 0.0:
            raise OptimizationConfigError(f"{name} weight must be >= 0")
    if abs(sum(weights.as_tuple()) - 1.0) > 1e-6:
        raise OptimizationConfigError("score weights must sum to 1")


def validate_balancer_config(config: BalancerConfig) -> None:
    if config.max_iterations < 0:
        raise OptimizationConfigError("max_iterations must be >= 0")
    if config.tolerance <= 0.0:
        raise OptimizationConfigError("tolerance must be > 0")


def default_max_iterations(job_count: int, iterations_per_job: int = 4) -> int:
    return max(0, iterations_per_job * job_count)
