"""Resolution policy settings."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType
from typing import Final


class ResolveStrategy(StrEnum):
    """Risk tolerance for automatically resolving modified items."""

    CONSERVATIVE = "conservative"
    AGGRESSIVE = "aggressive"
    BALANCED = "balanced"


class SourcePreference(StrEnum):
    A = "a"
    B = "b"
    MERGE = "merge"


RISK_TOLERANCE: Final = MappingProxyType(
    {
        ResolveStrategy.CONSERVATIVE: 0.6,
        ResolveStrategy.BALANCED: 0.8,
        ResolveStrategy.AGGRESSIVE: 1.0,
    }
)
DEFAULT_AUTO_RESOLVE_THRESHOLD: Final[float] = 0.5


@dataclass(frozen=True, slots=True, kw_only=True)
class ResolveConfig:
    strategy: ResolveStrategy = ResolveStrategy.BALANCED
    prefer_source: SourcePreference = SourcePreference.MERGE
    # balanced strategy only: minimum diff similarity for automatic resolution
    auto_resolve_threshold: float = DEFAULT_AUTO_RESOLVE_THRESHOLD

    def __post_init__(self) -> None:
        object.__setattr__(self, "strategy", ResolveStrategy(self.strategy))
        object.__setattr__(self, "prefer_source", SourcePreference(self.prefer_source))
        if not 0.0 <= self.auto_resolve_threshold <= 1.0:
            raise ValueError(
                f"auto_resolve_threshold must be within [0, 1], got {self.auto_resolve_threshold}"
            )

    @property
    def risk_tolerance(self) -> float:
        return RISK_TOLERANCE[self.strategy]
