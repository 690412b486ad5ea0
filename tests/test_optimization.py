from __future__ import annotations

from dataclasses import replace

import pytest

from housekeeping.domain.constraints import OptimizationConfigError, ScoreWeights
from housekeeping.domain.models import (
    BalanceTermination,
    ContractHours,
    HistoricalRecord,
    Job,
    JobKind,
    JobState,
    RecordOutcome,
    Worker,
)
from housekeeping.services.matrix_service import ScoreMatrixCache
from housekeeping.services.optimization_service import AssignmentOptimizationService
from housekeeping.utils.config import get_settings


def _service(**overrides) -> AssignmentOptimizationService:
    settings = replace(get_settings(), **overrides)
    return AssignmentOptimizationService(settings=settings)


def _two_worker_day() -> tuple[list[Job], list[Worker]]:
    jobs = [
        Job("101", JobKind.TWIN, JobState.DEPARTURE),
        Job("102", JobKind.TWIN, JobState.DEPARTURE),
        Job("103", JobKind.TWIN, JobState.DEPARTURE),
        Job("201", JobKind.KING, JobState.STAYOVER),
        Job("202", JobKind.KING, JobState.STAYOVER),
    ]
    workers = [Worker("w1", ContractHours.LONG), Worker("w2", ContractHours.SHORT)]
    return jobs, workers


def test_two_workers_share_departures_and_stayovers() -> None:
    jobs, workers = _two_worker_day()
    result = _service().optimize(jobs=jobs, workers=workers)

    assert result.unassigned_job_ids == ()
    assert result.assignment == {"w1": ("101", "103"), "w2": ("102", "201", "202")}
    assert result.balanced is True
    assert result.iterations_used == 0
    assert result.termination is BalanceTermination.TOLERANCE_MET
    assert result.worker_loads == {"w1": pytest.approx(3.0), "w2": pytest.approx(3.9)}


def test_overflow_beyond_capacity_is_reported_unassigned() -> None:
    jobs = [Job(f"1{index:02d}", JobKind.TWIN, JobState.DEPARTURE) for index in range(1, 21)]
    workers = [Worker("solo", ContractHours.LONG)]
    result = _service().optimize(jobs=jobs, workers=workers)

    assert result.assignment["solo"] == tuple(job.job_id for job in jobs[:12])
    assert result.unassigned_job_ids == tuple(job.job_id for job in jobs[12:])
    assert result.worker_loads["solo"] == pytest.approx(18.0)
    assert result.balanced is True


def test_no_workers_is_a_result_state() -> None:
    jobs, _ = _two_worker_day()
    result = _service().optimize(jobs=jobs, workers=[])
    assert result.assignment == {}
    assert result.unassigned_job_ids == tuple(job.job_id for job in jobs)
    assert result.balanced is True


def test_identical_inputs_give_identical_results() -> None:
    jobs = [
        Job(f"{floor}{index:02d}", kind, state)
        for floor, kind, state in (
            (1, JobKind.SUITE, JobState.DEPARTURE),
            (3, JobKind.TWIN, JobState.STAYOVER),
            (5, JobKind.DOUBLE_TWIN, JobState.FREE),
        )
        for index in range(1, 8)
    ]
    workers = [
        Worker("w1", ContractHours.LONG, experience=0.9),
        Worker("w2", ContractHours.SHORT, experience=0.4),
        Worker("w3", ContractHours.LONG, experience=0.6),
    ]
    first = _service().optimize(jobs=jobs, workers=workers)
    second = _service().optimize(jobs=jobs, workers=workers)
    assert first == second


def test_result_partitions_the_job_set_within_capacity() -> None:
    jobs = [Job(f"4{index:02d}", JobKind.SUITE, JobState.DEPARTURE) for index in range(1, 19)]
    workers = [Worker("w1", ContractHours.SHORT), Worker("w2", ContractHours.SHORT)]
    result = _service().optimize(jobs=jobs, workers=workers)

    placed = [job_id for job_ids in result.assignment.values() for job_id in job_ids]
    assert len(placed) == len(set(placed))
    assert sorted(placed + list(result.unassigned_job_ids)) == sorted(job.job_id for job in jobs)
    for worker in workers:
        assert result.worker_loads[worker.worker_id] <= worker.capacity + 1e-9


def test_historical_errors_shift_work_to_reliable_staff() -> None:
    jobs = [Job("101", JobKind.TWIN, JobState.DEPARTURE)]
    workers = [Worker("w1", ContractHours.LONG), Worker("w2", ContractHours.LONG)]
    reported = [HistoricalRecord("w1", "305", RecordOutcome.REPORTED)]
    result = _service().optimize(jobs=jobs, workers=workers, reported_errors=reported)
    assert result.assignment == {"w1": (), "w2": ("101",)}


def test_invalid_weights_are_rejected() -> None:
    jobs, workers = _two_worker_day()
    with pytest.raises(OptimizationConfigError):
        _service().optimize(
            jobs=jobs,
            workers=workers,
            weights=ScoreWeights(proximity=0.5, workload=0.5, experience=0.5, historical=0.0),
        )


def test_explicit_iteration_cap_is_honoured() -> None:
    # experience keeps six suites with the veteran, the most its short contract allows
    jobs = [Job(f"1{index:02d}", JobKind.SUITE, JobState.DEPARTURE) for index in range(1, 9)]
    workers = [
        Worker("veteran", ContractHours.SHORT, experience=1.0),
        Worker("novice", ContractHours.LONG, experience=0.0),
    ]
    capped = _service().optimize(jobs=jobs, workers=workers, max_iterations=0)
    assert capped.iterations_used == 0
    assert capped.balanced is False
    assert capped.termination is BalanceTermination.ITERATION_LIMIT

    free = _service().optimize(jobs=jobs, workers=workers)
    assert free.balanced is True
    assert free.iterations_used == 2
    assert free.worker_loads == {"veteran": pytest.approx(9.0), "novice": pytest.approx(9.0)}


def test_shared_cache_is_hit_on_repeat_runs() -> None:
    jobs, workers = _two_worker_day()
    cache = ScoreMatrixCache(max_entries=4)
    service = AssignmentOptimizationService(settings=get_settings(), cache=cache)
    first = service.optimize(jobs=jobs, workers=workers)
    second = service.optimize(jobs=jobs, workers=workers)
    assert first == second
    assert cache.hits == 1


def test_api_dict_shape() -> None:
    jobs, workers = _two_worker_day()
    body = _service().optimize(jobs=jobs, workers=workers).to_api_dict()
    assert set(body) == {
        "assignment",
        "unassigned_jobs",
        "balanced",
        "iterations_used",
        "termination",
        "worker_loads",
    }
    assert body["termination"] == "tolerance_met"
    assert body["assignment"]["w1"] == ["101", "103"]


def _two_floor_departures() -> tuple[list[Job], list[Worker]]:
    jobs = [
        Job(job_id, JobKind.TWIN, JobState.DEPARTURE)
        for job_id in ("101", "102", "601", "602", "603", "103")
    ]
    workers = [
        Worker("a", ContractHours.LONG, experience=0.6),
        Worker("b", ContractHours.LONG, experience=0.5),
    ]
    return jobs, workers


def test_proximity_keeps_each_worker_on_one_floor() -> None:
    jobs, workers = _two_floor_departures()
    result = _service().optimize(jobs=jobs, workers=workers)

    assert result.assignment == {"a": ("101", "102", "103"), "b": ("601", "602", "603")}
    assert result.balanced is True
    assert result.iterations_used == 0


def test_dropping_proximity_weight_changes_the_assignment() -> None:
    jobs, workers = _two_floor_departures()
    result = _service().optimize(
        jobs=jobs,
        workers=workers,
        weights=ScoreWeights(proximity=0.0, workload=0.7, experience=0.2, historical=0.1),
    )

    # without locality the stronger worker takes everything and balancing splits floors
    assert result.assignment == {"a": ("602", "603", "103"), "b": ("101", "102", "601")}
    assert result.iterations_used == 3
    assert result.worker_loads == {"a": pytest.approx(4.5), "b": pytest.approx(4.5)}


def test_idle_worker_is_given_work_before_reporting_balanced() -> None:
    jobs = [Job(f"1{index:02d}", JobKind.TWIN, JobState.STAYOVER) for index in range(1, 11)]
    workers = [
        Worker("vet", ContractHours.LONG, experience=0.9),
        Worker("new", ContractHours.LONG, experience=0.5),
    ]
    result = _service().optimize(
        jobs=jobs,
        workers=workers,
        weights=ScoreWeights(proximity=0.0, workload=0.7, experience=0.2, historical=0.1),
    )

    assert result.assignment["vet"] and result.assignment["new"]
    assert result.balanced is True
    assert result.iterations_used == 5
    assert result.worker_loads == {"vet": pytest.approx(5.0), "new": pytest.approx(5.0)}
