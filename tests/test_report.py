from __future__ import annotations

import pytest

from housekeeping.domain.models import ContractHours, Job, JobKind, JobState, Worker
from housekeeping.services.report_service import build_daily_report, compute_fairness_metric
from housekeeping.utils.config import get_settings


def _day() -> tuple[list[Job], list[Worker]]:
    jobs = [
        Job("101", JobKind.TWIN, JobState.DEPARTURE),
        Job("102", JobKind.KING, JobState.STAYOVER, notes="DND until noon"),
        Job("103", JobKind.SUITE, JobState.FREE),
        Job("201", JobKind.TWIN, JobState.STAYOVER, notes="Refus"),
        Job("202", JobKind.TWIN, JobState.DEPARTURE),
    ]
    workers = [Worker("w1", ContractHours.LONG), Worker("w2", ContractHours.SHORT)]
    return jobs, workers


def test_fairness_metric_edges() -> None:
    assert compute_fairness_metric([]) == 0.0
    assert compute_fairness_metric([0.0, 0.0]) == 0.0
    assert compute_fairness_metric([3.0, 3.0, 3.0]) == pytest.approx(1.0)
    assert compute_fairness_metric([4.0, 0.0]) == pytest.approx(0.5)


def test_report_counts_states_and_markers() -> None:
    jobs, workers = _day()
    report = build_daily_report(jobs, workers, {"w1": ("101", "102"), "w2": ("103",)}, get_settings())
    assert report.total_rooms == 5
    assert report.departures == 2
    assert report.stayovers == 2
    assert report.free == 1
    assert report.dnd_refusals == 2
    assert report.unassigned == ("201", "202")


def test_report_rows_per_worker() -> None:
    jobs, workers = _day()
    report = build_daily_report(jobs, workers, {"w1": ("101", "102"), "w2": ("103",)})
    first, second = report.workers
    assert first.worker_id == "w1"
    assert first.departures == ("101",)
    assert first.stayovers == ("102",)
    assert first.room_count == 2
    assert first.workload == pytest.approx(2.7)
    assert first.utilization == pytest.approx(2.7 / 18.0)
    assert second.free == ("103",)
    assert second.capacity == 15.0
    assert second.workload == pytest.approx(1.2)


def test_report_api_dict_lists_workers() -> None:
    jobs, workers = _day()
    body = build_daily_report(jobs, workers, {}).to_api_dict()
    assert body["unassigned"] == ["101", "102", "103", "201", "202"]
    assert [row["room_count"] for row in body["workers"]] == [0, 0]
    assert body["fairness_metric"] == 0.0
