"""Comparison result types.

A ``ComparisonResult`` is produced once by the comparator and never mutated.
Each ``Change`` carries both side names and both definitions so that later
stages (resolver, applier) never need the original snapshots.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from schemarecon.domain.model import Entity, Field

    from .config import CompareConfig


class ChangeLevel(StrEnum):
    ENTITY = "entity"
    FIELD = "field"


class ChangeSet(StrEnum):
    """Which bucket of the diff a change belongs to."""

    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"


@dataclass(frozen=True, slots=True)
class AttributeDifference:
    attribute: str
    old: object
    new: object


@dataclass(frozen=True, slots=True, kw_only=True)
class Change:
    """One entry of a diff.

    ``path`` is the B-side path for added entries and the A-side path otherwise.
    """

    path: str
    level: ChangeLevel
    entity_a: str | None = None
    entity_b: str | None = None
    field_a: str | None = None
    field_b: str | None = None
    before: Entity | Field | None = None
    after: Entity | Field | None = None
    differences: tuple[AttributeDifference, ...] = ()

    @property
    def renamed(self) -> bool:
        if self.level is ChangeLevel.ENTITY:
            return None not in (self.entity_a, self.entity_b) and self.entity_a != self.entity_b
        return None not in (self.field_a, self.field_b) and self.field_a != self.field_b


@dataclass(frozen=True, slots=True, kw_only=True)
class Changes:
    added: tuple[Change, ...] = ()
    removed: tuple[Change, ...] = ()
    modified: tuple[Change, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.modified)

    def by_set(self) -> tuple[tuple[ChangeSet, tuple[Change, ...]], ...]:
        """Change sets in resolution order: added, removed, modified."""

        return (
            (ChangeSet.ADDED, self.added),
            (ChangeSet.REMOVED, self.removed),
            (ChangeSet.MODIFIED, self.modified),
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class Statistics:
    similarity: float
    total_compared_items: int = 0
    added_count: int = 0
    removed_count: int = 0
    modified_count: int = 0
    matched_entities: int = 0

    def __post_init__(self) -> None:
        if not 0.0 <= self.similarity <= 1.0:
            raise ValueError(f"similarity must be within [0, 1], got {self.similarity}")


@dataclass(frozen=True, slots=True, kw_only=True)
class ComparisonResult:
    changes: Changes
    statistics: Statistics
    config: CompareConfig

    @property
    def similarity(self) -> float:
        return self.statistics.similarity
