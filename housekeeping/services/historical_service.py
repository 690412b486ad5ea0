"""Historical performance ratios derived from caller-owned error logs."""

from __future__ import annotations

from typing import Iterable, Sequence

from housekeeping.domain.models import HistoricalRecord, Worker


def resolution_ratio(
    worker_id: str,
    reported_records: Iterable[HistoricalRecord],
    resolved_records: Iterable[HistoricalRecord],
) -> float:
    """Share of a worker's reported errors that were later resolved.

    A worker with no reported errors is treated as fully reliable.
    """
    reported = sum(1 for record in reported_records if record.worker_id == worker_id)
    if reported == 0:
        return 1.0
    resolved = sum(1 for record in resolved_records if record.worker_id == worker_id)
    return resolved / reported


def build_ratio_table(
    workers: Sequence[Worker],
    reported_records: Sequence[HistoricalRecord],
    resolved_records: Sequence[HistoricalRecord],
) -> dict[str, float]:
    return {
        worker.worker_id: resolution_ratio(
            worker.worker_id,
            reported_records,
            resolved_records,
        )
        for worker in workers
    }
