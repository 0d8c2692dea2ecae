"""Engine defaults, overridable through the environment."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Final

from schemarecon.domain.comparison import DEFAULT_THRESHOLD, CompareStrategy
from schemarecon.domain.resolution import ResolveStrategy, SourcePreference

from .env import env_float, env_str
from .errors import ConfigurationError

COMPARE_THRESHOLD_ENV: Final[str] = "SCHEMARECON_COMPARE_THRESHOLD"
COMPARE_STRATEGY_ENV: Final[str] = "SCHEMARECON_COMPARE_STRATEGY"
RESOLVE_STRATEGY_ENV: Final[str] = "SCHEMARECON_RESOLVE_STRATEGY"
PREFER_SOURCE_ENV: Final[str] = "SCHEMARECON_PREFER_SOURCE"
APPLY_TIMEOUT_ENV: Final[str] = "SCHEMARECON_APPLY_TIMEOUT"


@dataclass(frozen=True, slots=True, kw_only=True)
class EngineDefaults:
    compare_threshold: float = DEFAULT_THRESHOLD
    compare_strategy: CompareStrategy = CompareStrategy.STRUCTURAL
    resolve_strategy: ResolveStrategy = ResolveStrategy.BALANCED
    prefer_source: SourcePreference = SourcePreference.MERGE
    apply_timeout_seconds: float | None = None


def get_engine_defaults() -> EngineDefaults:
    threshold = env_float(COMPARE_THRESHOLD_ENV, minimum=0.0, maximum=1.0)
    timeout = env_float(APPLY_TIMEOUT_ENV, minimum=0.0)
    if timeout == 0.0:
        timeout = None
    return EngineDefaults(
        compare_threshold=DEFAULT_THRESHOLD if threshold is None else threshold,
        compare_strategy=_env_choice(
            COMPARE_STRATEGY_ENV, CompareStrategy, CompareStrategy.STRUCTURAL
        ),
        resolve_strategy=_env_choice(
            RESOLVE_STRATEGY_ENV, ResolveStrategy, ResolveStrategy.BALANCED
        ),
        prefer_source=_env_choice(PREFER_SOURCE_ENV, SourcePreference, SourcePreference.MERGE),
        apply_timeout_seconds=timeout,
    )


def _env_choice[E: StrEnum](name: str, enum: type[E], default: E) -> E:
    value = env_str(name)
    if value is None:
        return default
    try:
        return enum(value.lower())
    except ValueError as exc:
        choices = ", ".join(item.value for item in enum)
        raise ConfigurationError(f"{name} must be one of {choices}, got {value!r}") from exc
