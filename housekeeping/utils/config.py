"""Runtime settings loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value else default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {value!r}") from exc


def _env_tuple(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = os.getenv(name)
    if not value:
        return default
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    """Immutable process settings; use `dataclasses.replace` for variants."""

    app_name: str = "Housekeeping Assignment Optimizer"
    app_version: str = "1.0.0"
    log_level: str = "INFO"

    balance_tolerance: float = 0.5
    balance_iterations_per_job: int = 4
    score_cache_size: int = 32

    reference_solver_max_time_seconds: int = 10
    reference_solver_random_seed: int = 42
    reference_solver_workers: int = 1
    reference_objective_scale: int = 1000

    hotel_floors: int = 6
    hotel_rooms_per_floor: int = 20
    hotel_missing_rooms: tuple[str, ...] = ("616",)
    hotel_twin_ceiling: int = 320
    report_dnd_markers: tuple[str, ...] = ("DND", "Refus")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings once per process from `HOUSEKEEPING_*` variables."""
    defaults = Settings()
    return Settings(
        app_name=_env_str("HOUSEKEEPING_APP_NAME", defaults.app_name),
        app_version=_env_str("HOUSEKEEPING_APP_VERSION", defaults.app_version),
        log_level=_env_str("HOUSEKEEPING_LOG_LEVEL", defaults.log_level),
        balance_tolerance=_env_float(
            "HOUSEKEEPING_BALANCE_TOLERANCE", defaults.balance_tolerance
        ),
        balance_iterations_per_job=_env_int(
            "HOUSEKEEPING_BALANCE_ITERATIONS_PER_JOB",
            defaults.balance_iterations_per_job,
        ),
        score_cache_size=_env_int("HOUSEKEEPING_SCORE_CACHE_SIZE", defaults.score_cache_size),
        reference_solver_max_time_seconds=_env_int(
            "HOUSEKEEPING_REFERENCE_SOLVER_MAX_TIME_SECONDS",
            defaults.reference_solver_max_time_seconds,
        ),
        reference_solver_random_seed=_env_int(
            "HOUSEKEEPING_REFERENCE_SOLVER_RANDOM_SEED",
            defaults.reference_solver_random_seed,
        ),
        reference_solver_workers=_env_int(
            "HOUSEKEEPING_REFERENCE_SOLVER_WORKERS",
            defaults.reference_solver_workers,
        ),
        reference_objective_scale=_env_int(
            "HOUSEKEEPING_REFERENCE_OBJECTIVE_SCALE",
            defaults.reference_objective_scale,
        ),
        hotel_floors=_env_int("HOUSEKEEPING_HOTEL_FLOORS", defaults.hotel_floors),
        hotel_rooms_per_floor=_env_int(
            "HOUSEKEEPING_HOTEL_ROOMS_PER_FLOOR", defaults.hotel_rooms_per_floor
        ),
        hotel_missing_rooms=_env_tuple(
            "HOUSEKEEPING_HOTEL_MISSING_ROOMS", defaults.hotel_missing_rooms
        ),
        hotel_twin_ceiling=_env_int(
            "HOUSEKEEPING_HOTEL_TWIN_CEILING", defaults.hotel_twin_ceiling
        ),
        report_dnd_markers=_env_tuple(
            "HOUSEKEEPING_REPORT_DND_MARKERS", defaults.report_dnd_markers
        ),
    )
