"""First-improvement local search that evens out per-worker workload."""

from __future__ import annotations

from typing import Mapping, Optional, Sequence

from housekeeping.domain.constraints import (
    LOAD_EPSILON,
    BalancerConfig,
    default_max_iterations,
    validate_balancer_config,
)
from housekeeping.domain.models import BalanceResult, BalanceTermination, Job
from housekeeping.services.scoring_service import workload_weight
from housekeeping.utils.logger import get_logger


logger = get_logger(__name__)

AssignmentMap = Mapping[str, Sequence[str]]


def worker_totals(
    assignment: AssignmentMap,
    job_by_id: Mapping[str, Job],
) -> dict[str, float]:
    return {
        worker_id: sum(workload_weight(job_by_id[job_id]) for job_id in job_ids)
        for worker_id, job_ids in assignment.items()
    }


def mean_load(totals: Mapping[str, float]) -> float:
    """Mean total over every worker in the assignment, idle ones included.

    An idle worker pulls the target down, so the tolerance check cannot pass
    while one rostered worker is empty-handed and another is overloaded.
    """
    if not totals:
        return 0.0
    return sum(totals.values()) / len(totals)


def _extremes(totals: Mapping[str, float]) -> tuple[str, str]:
    heaviest = min(totals, key=lambda worker_id: (-totals[worker_id], worker_id))
    lightest = min(totals, key=lambda worker_id: (totals[worker_id], worker_id))
    return heaviest, lightest


def find_improving_swap(
    assignment: AssignmentMap,
    totals: Mapping[str, float],
    job_by_id: Mapping[str, Job],
    heaviest: str,
    lightest: str,
    mean: float,
    capacities: Optional[Mapping[str, float]] = None,
) -> Optional[tuple[str, Optional[str]]]:
    """Return the first `(job_from_heaviest, job_from_lightest_or_None)` that helps.

    `None` on the right-hand side means a one-way transfer to the lightest worker.
    """
    max_total = totals[heaviest]
    min_total = totals[lightest]
    current_deviation = abs(max_total - mean)

    for give in assignment[heaviest]:
        give_weight = workload_weight(job_by_id[give])
        for take in (*assignment[lightest], None):
            take_weight = workload_weight(job_by_id[take]) if take is not None else 0.0
            new_heavy = max_total - give_weight + take_weight
            new_light = min_total + give_weight - take_weight
            if abs(new_heavy - mean) >= current_deviation - LOAD_EPSILON:
                continue
            if new_light > max_total + LOAD_EPSILON:
                continue
            if capacities is not None and (
                new_heavy > capacities.get(heaviest, float("inf")) + LOAD_EPSILON
                or new_light > capacities.get(lightest, float("inf")) + LOAD_EPSILON
            ):
                continue
            return give, take
    return None


def apply_swap(
    assignment: AssignmentMap,
    heaviest: str,
    lightest: str,
    give: str,
    take: Optional[str],
) -> dict[str, tuple[str, ...]]:
    """Return a new assignment with the swap applied; the input is untouched."""
    updated = {worker_id: tuple(job_ids) for worker_id, job_ids in assignment.items()}
    if take is None:
        updated[heaviest] = tuple(job_id for job_id in updated[heaviest] if job_id != give)
        updated[lightest] = (*updated[lightest], give)
        return updated
    updated[heaviest] = tuple(take if job_id == give else job_id for job_id in updated[heaviest])
    updated[lightest] = tuple(give if job_id == take else job_id for job_id in updated[lightest])
    return updated


def balance(
    assignment: AssignmentMap,
    jobs: Sequence[Job],
    max_iterations: Optional[int] = None,
    tolerance: float = 0.5,
    capacities: Optional[Mapping[str, float]] = None,
) -> BalanceResult:
    """Swap jobs between the most and least loaded workers until within tolerance.

    Stops on the first of: tolerance met, no improving swap, iteration cap.
    """
    job_by_id = {job.job_id: job for job in jobs}
    limit = default_max_iterations(len(jobs)) if max_iterations is None else max_iterations
    validate_balancer_config(BalancerConfig(max_iterations=limit, tolerance=tolerance))

    current = {worker_id: tuple(job_ids) for worker_id, job_ids in assignment.items()}
    totals = worker_totals(current, job_by_id)
    if not current:
        return BalanceResult(
            assignment=current,
            balanced=True,
            iterations_used=0,
            termination=BalanceTermination.TOLERANCE_MET,
            worker_loads=totals,
            max_load_history=(),
        )

    history = [max(totals.values())]
    iterations_used = 0
    termination = BalanceTermination.ITERATION_LIMIT

    while True:
        mean = mean_load(totals)
        heaviest, lightest = _extremes(totals)
        if abs(totals[heaviest] - mean) <= tolerance:
            termination = BalanceTermination.TOLERANCE_MET
            break
        if iterations_used >= limit:
            termination = BalanceTermination.ITERATION_LIMIT
            break

        swap = find_improving_swap(
            current, totals, job_by_id, heaviest, lightest, mean, capacities
        )
        if swap is None:
            termination = BalanceTermination.NO_IMPROVING_SWAP
            break

        give, take = swap
        current = apply_swap(current, heaviest, lightest, give, take)
        totals = worker_totals(current, job_by_id)
        iterations_used += 1
        history.append(max(totals.values()))
        logger.debug(
            "Balancing swap applied | iteration=%s | from=%s | to=%s | give=%s | take=%s",
            iterations_used,
            heaviest,
            lightest,
            give,
            take,
        )

    balanced = termination is BalanceTermination.TOLERANCE_MET
    if not balanced:
        logger.warning(
            "Balancing stopped before tolerance | reason=%s | iterations=%s | max_load=%.3f",
            termination.value,
            iterations_used,
            max(totals.values()),
        )
    return BalanceResult(
        assignment=current,
        balanced=balanced,
        iterations_used=iterations_used,
        termination=termination,
        worker_loads=totals,
        max_load_history=tuple(history),
    )
