"""Dense worker x job score matrix construction."""

from __future__ import annotations

import hashlib
import json
from collections import OrderedDict
from threading import RLock
from typing import Callable, Mapping, Optional, Sequence

from housekeeping.domain.constraints import DEFAULT_SCORE_WEIGHTS, ScoreWeights
from housekeeping.domain.models import HistoricalRecord, Job, ScoreMatrix, Worker
from housekeeping.services.historical_service import build_ratio_table
from housekeeping.services.scoring_service import score
from housekeeping.utils.logger import get_logger


logger = get_logger(__name__)


def build_score_matrix(
    workers: Sequence[Worker],
    jobs: Sequence[Job],
    assignment: Optional[Mapping[str, Sequence[str]]] = None,
    reported_records: Sequence[HistoricalRecord] = (),
    resolved_records: Sequence[HistoricalRecord] = (),
    weights: Optional[ScoreWeights] = None,
) -> ScoreMatrix:
    """Score every (worker, job) pair against the worker's current jobs."""
    job_by_id = {job.job_id: job for job in jobs}
    current = assignment or {}
    ratios = build_ratio_table(workers, reported_records, resolved_records)

    rows: list[tuple[float, ...]] = []
    for worker in workers:
        held_jobs = [
            job_by_id[job_id]
            for job_id in current.get(worker.worker_id, ())
            if job_id in job_by_id
        ]
        rows.append(
            tuple(
                score(
                    worker,
                    job,
                    held_jobs,
                    ratios[worker.worker_id],
                    weights,
                )
                for job in jobs
            )
        )

    logger.debug(
        "Score matrix built | workers=%s | jobs=%s",
        len(workers),
        len(jobs),
    )
    return ScoreMatrix(
        worker_ids=tuple(worker.worker_id for worker in workers),
        job_ids=tuple(job.job_id for job in jobs),
        values=tuple(rows),
    )


def build_rescorer(
    workers: Sequence[Worker],
    reported_records: Sequence[HistoricalRecord] = (),
    resolved_records: Sequence[HistoricalRecord] = (),
    weights: Optional[ScoreWeights] = None,
) -> Callable[[Worker, Job, Sequence[Job]], float]:
    """Score a candidate against the jobs a worker holds at call time."""
    ratios = build_ratio_table(workers, reported_records, resolved_records)

    def _rescore(worker: Worker, job: Job, held_jobs: Sequence[Job]) -> float:
        return score(worker, job, held_jobs, ratios[worker.worker_id], weights)

    return _rescore


def snapshot_fingerprint(
    workers: Sequence[Worker],
    jobs: Sequence[Job],
    assignment: Optional[Mapping[str, Sequence[str]]] = None,
    reported_records: Sequence[HistoricalRecord] = (),
    resolved_records: Sequence[HistoricalRecord] = (),
    weights: Optional[ScoreWeights] = None,
) -> str:
    """SHA-256 over a canonical JSON rendering of every scoring input."""

    def _record(record: HistoricalRecord) -> list[str | None]:
        return [
            record.worker_id,
            record.subject,
            record.outcome.value,
            record.timestamp.isoformat() if record.timestamp else None,
        ]

    payload = {
        "workers": [
            [worker.worker_id, worker.contract.value, worker.experience, worker.preferred_zone]
            for worker in workers
        ],
        "jobs": [[job.job_id, job.kind.value, job.state.value] for job in jobs],
        "assignment": {
            worker_id: list(job_ids)
            for worker_id, job_ids in sorted((assignment or {}).items())
        },
        "reported": [_record(record) for record in reported_records],
        "resolved": [_record(record) for record in resolved_records],
        "weights": list((weights or DEFAULT_SCORE_WEIGHTS).as_tuple()),
    }
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


class ScoreMatrixCache:
    """Bounded LRU of score matrices keyed by input fingerprint.

    Cached matrices are immutable, so sharing them across runs cannot change
    any result.
    """

    def __init__(self, max_entries: int = 32) -> None:
        self._max_entries = max(0, max_entries)
        self._entries: OrderedDict[str, ScoreMatrix] = OrderedDict()
        self._lock = RLock()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_or_build(
        self,
        workers: Sequence[Worker],
        jobs: Sequence[Job],
        assignment: Optional[Mapping[str, Sequence[str]]] = None,
        reported_records: Sequence[HistoricalRecord] = (),
        resolved_records: Sequence[HistoricalRecord] = (),
        weights: Optional[ScoreWeights] = None,
    ) -> ScoreMatrix:
        key = snapshot_fingerprint(
            workers, jobs, assignment, reported_records, resolved_records, weights
        )
        with self._lock:
            cached = self._entries.get(key)
            if cached is not None:
                self._entries.move_to_end(key)
                self.hits += 1
                return cached
            self.misses += 1

        matrix = build_score_matrix(
            workers, jobs, assignment, reported_records, resolved_records, weights
        )
        if self._max_entries == 0:
            return matrix
        with self._lock:
            self._entries[key] = matrix
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)
        return matrix

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0
