"""Boundary normalization of free-form room and staff fields.

The optimizer core assumes well-typed input; everything arriving from forms or
imports goes through these helpers first.
"""

from __future__ import annotations

import re
import unicodedata
from collections import Counter
from typing import Mapping, Optional, Sequence

from housekeeping.domain.models import ContractHours, Job, JobKind, JobState, Worker


class InputValidationError(Exception):
    """Raised when caller-supplied rooms or staff cannot be normalized."""


JOB_ID_PATTERN = re.compile(r"^[1-9]\d?(0[1-9]|[1-9]\d)$")

_KIND_ALIASES: dict[str, JobKind] = {
    "twin": JobKind.TWIN,
    "tw": JobKind.TWIN,
    "twtw": JobKind.TWIN,
    "king": JobKind.KING,
    "k": JobKind.KING,
    "suite": JobKind.SUITE,
    "double_twin": JobKind.DOUBLE_TWIN,
    "doubletwin": JobKind.DOUBLE_TWIN,
    "dtw": JobKind.DOUBLE_TWIN,
}

_STATE_ALIASES: dict[str, JobState] = {
    "departure": JobState.DEPARTURE,
    "depart": JobState.DEPARTURE,
    "dep": JobState.DEPARTURE,
    "stayover": JobState.STAYOVER,
    "stay_over": JobState.STAYOVER,
    "recouche": JobState.STAYOVER,
    "free": JobState.FREE,
    "libre": JobState.FREE,
}

_CONTRACT_ALIASES: dict[str, ContractHours] = {
    "6h": ContractHours.LONG,
    "6": ContractHours.LONG,
    "long": ContractHours.LONG,
    "5h": ContractHours.SHORT,
    "5": ContractHours.SHORT,
    "short": ContractHours.SHORT,
}


def _normalize_label(value: str) -> str:
    decomposed = unicodedata.normalize("NFKD", value)
    ascii_only = "".join(char for char in decomposed if not unicodedata.combining(char))
    return re.sub(r"[\s\-]+", "_", ascii_only.strip().lower())


def parse_job_kind(value: str | JobKind) -> JobKind:
    if isinstance(value, JobKind):
        return value
    kind = _KIND_ALIASES.get(_normalize_label(value))
    if kind is None:
        raise InputValidationError(f"unknown room kind '{value}'")
    return kind


def parse_job_state(value: str | JobState) -> JobState:
    if isinstance(value, JobState):
        return value
    state = _STATE_ALIASES.get(_normalize_label(value))
    if state is None:
        raise InputValidationError(f"unknown room state '{value}'")
    return state


def parse_contract(value: str | ContractHours) -> ContractHours:
    if isinstance(value, ContractHours):
        return value
    contract = _CONTRACT_ALIASES.get(_normalize_label(value))
    if contract is None:
        raise InputValidationError(f"unknown contract '{value}'")
    return contract


def build_job(
    job_id: str,
    kind: str | JobKind,
    state: str | JobState,
    notes: str = "",
) -> Job:
    normalized_id = str(job_id).strip()
    if not JOB_ID_PATTERN.match(normalized_id):
        raise InputValidationError(
            f"room id '{job_id}' must be a floor number followed by a two-digit index"
        )
    return Job(
        job_id=normalized_id,
        kind=parse_job_kind(kind),
        state=parse_job_state(state),
        notes=notes or "",
    )


def build_worker(
    worker_id: str,
    contract: str | ContractHours,
    experience: Optional[float] = None,
    preferred_zone: Optional[str] = None,
) -> Worker:
    normalized_id = str(worker_id).strip()
    if not normalized_id:
        raise InputValidationError("staff id must be non-empty")
    resolved_experience = 0.5 if experience is None else float(experience)
    if not 0.0 <= resolved_experience <= 1.0:
        raise InputValidationError(
            f"experience for '{normalized_id}' must be between 0 and 1"
        )
    return Worker(
        worker_id=normalized_id,
        contract=parse_contract(contract),
        experience=resolved_experience,
        preferred_zone=preferred_zone or None,
    )


def validate_snapshot(jobs: Sequence[Job], workers: Sequence[Worker]) -> None:
    duplicate_jobs = sorted(
        job_id for job_id, count in Counter(job.job_id for job in jobs).items() if count > 1
    )
    if duplicate_jobs:
        raise InputValidationError(f"duplicate room ids: {duplicate_jobs}")
    duplicate_workers = sorted(
        worker_id
        for worker_id, count in Counter(worker.worker_id for worker in workers).items()
        if count > 1
    )
    if duplicate_workers:
        raise InputValidationError(f"duplicate staff ids: {duplicate_workers}")


def validate_assignment(
    assignment: Mapping[str, Sequence[str]],
    jobs: Sequence[Job],
    workers: Sequence[Worker],
) -> None:
    """Reject assignments naming unknown staff or rooms, or repeating a room."""
    job_ids = {job.job_id for job in jobs}
    worker_ids = {worker.worker_id for worker in workers}
    unknown_workers = sorted(set(assignment) - worker_ids)
    if unknown_workers:
        raise InputValidationError(f"assignment references unknown staff: {unknown_workers}")
    seen: Counter[str] = Counter(
        job_id for assigned in assignment.values() for job_id in assigned
    )
    unknown_jobs = sorted(set(seen) - job_ids)
    if unknown_jobs:
        raise InputValidationError(f"assignment references unknown rooms: {unknown_jobs}")
    repeated = sorted(job_id for job_id, count in seen.items() if count > 1)
    if repeated:
        raise InputValidationError(f"rooms assigned more than once: {repeated}")
