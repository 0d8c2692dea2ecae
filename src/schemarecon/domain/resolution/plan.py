"""Resolution plan types shared by the resolver and the applier.

The plan is the contract between:
- resolution policy (pure, derived from one comparison result)
- apply orchestration (sequential store mutation)

Actions carry the side names and definitions of their originating change, so
a plan can be executed without the diff it came from.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Final

from schemarecon.domain.model import Entity

if TYPE_CHECKING:
    from schemarecon.domain.comparison import ChangeLevel, ChangeSet
    from schemarecon.domain.model import Field

    from .config import ResolveStrategy, SourcePreference

PLAN_VERSION: Final[str] = "1.0"


class ActionKind(StrEnum):
    ACCEPT_A = "accept_a"
    ACCEPT_B = "accept_b"
    MERGE = "merge"
    RENAME = "rename"
    DROP = "drop"
    MANUAL_REVIEW = "manual_review"


@dataclass(frozen=True, slots=True, kw_only=True)
class Action:
    """One proposed reconciliation step for a single entity or field."""

    target: str
    kind: ActionKind
    confidence: float
    change: ChangeSet
    level: ChangeLevel
    entity_a: str | None = None
    entity_b: str | None = None
    field_a: str | None = None
    field_b: str | None = None
    before: Entity | Field | None = None
    after: Entity | Field | None = None
    reason: str | None = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be within [0, 1], got {self.confidence}")

    @property
    def entity_names(self) -> tuple[str, ...]:
        """Entity names this action may touch, A side first."""

        names = (self.entity_a, self.entity_b)
        return tuple(dict.fromkeys(name for name in names if name is not None))


@dataclass(frozen=True, slots=True, kw_only=True)
class ResolutionPlan:
    """Immutable ordered plan for one comparison result."""

    plan_id: str
    actions: tuple[Action, ...]
    strategy: ResolveStrategy
    prefer_source: SourcePreference
    similarity: float
    version: str = PLAN_VERSION

    @property
    def target_entities(self) -> tuple[str, ...]:
        names: dict[str, None] = {}
        for action in self.actions:
            names.update(dict.fromkeys(action.entity_names))
        return tuple(names)


def plan_digest(
    actions: tuple[Action, ...],
    *,
    strategy: ResolveStrategy,
    prefer_source: SourcePreference,
    similarity: float,
) -> str:
    """Content digest identifying a plan; equal inputs give equal ids."""

    payload = {
        "version": PLAN_VERSION,
        "strategy": str(strategy),
        "prefer_source": str(prefer_source),
        "similarity": similarity,
        "actions": [_canonical_action(action) for action in actions],
    }
    data = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    return f"sha256:{hashlib.sha256(data.encode('utf-8')).hexdigest()}"


def _canonical_action(action: Action) -> dict[str, object]:
    return {
        "target": action.target,
        "kind": str(action.kind),
        "confidence": action.confidence,
        "change": str(action.change),
        "level": str(action.level),
        "entity_a": action.entity_a,
        "entity_b": action.entity_b,
        "field_a": action.field_a,
        "field_b": action.field_b,
        "before": _canonical_definition(action.before),
        "after": _canonical_definition(action.after),
        "reason": action.reason,
    }


def _canonical_definition(definition: Entity | Field | None) -> object:
    if definition is None:
        return None
    if isinstance(definition, Entity):
        return {
            "entity_name": definition.entity_name,
            "fields": [_canonical_definition(item) for item in definition.fields],
        }
    return {
        "name": definition.name,
        "declared_type": str(definition.declared_type),
        "nullable": definition.nullable,
        "default": definition.default,
        "is_primary_key": definition.is_primary_key,
    }
