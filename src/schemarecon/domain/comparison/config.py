"""Comparison settings."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Final

DEFAULT_THRESHOLD: Final[float] = 0.8


class CompareStrategy(StrEnum):
    """How entities and fields are paired across the two snapshots."""

    STRUCTURAL = "structural"
    SEMANTIC = "semantic"
    HYBRID = "hybrid"


@dataclass(frozen=True, slots=True, kw_only=True)
class CompareConfig:
    """Settings a ``ComparisonResult`` was produced with.

    ``ignore_fields`` accepts bare field names (ignored in every entity) and
    qualified ``entity.field`` paths.
    """

    threshold: float = DEFAULT_THRESHOLD
    strategy: CompareStrategy = CompareStrategy.STRUCTURAL
    ignore_fields: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not 0.0 <= self.threshold <= 1.0:
            raise ValueError(f"threshold must be within [0, 1], got {self.threshold}")
        object.__setattr__(self, "strategy", CompareStrategy(self.strategy))
        object.__setattr__(self, "ignore_fields", tuple(sorted(set(self.ignore_fields))))

    def is_ignored(self, entity_name: str, field_name: str) -> bool:
        return (
            field_name in self.ignore_fields
            or f"{entity_name}.{field_name}" in self.ignore_fields
        )
