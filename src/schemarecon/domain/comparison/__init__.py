"""Comparator: two ``SchemaIR`` snapshots -> ``ComparisonResult``."""

from __future__ import annotations

from .compare import compare
from .config import DEFAULT_THRESHOLD, CompareConfig, CompareStrategy
from .result import (
    AttributeDifference,
    Change,
    ChangeLevel,
    Changes,
    ChangeSet,
    ComparisonResult,
    Statistics,
)

__all__ = [
    "DEFAULT_THRESHOLD",
    "AttributeDifference",
    "Change",
    "ChangeLevel",
    "ChangeSet",
    "Changes",
    "CompareConfig",
    "CompareStrategy",
    "ComparisonResult",
    "Statistics",
    "compare",
]
