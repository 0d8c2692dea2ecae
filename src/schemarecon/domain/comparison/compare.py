"""Schema comparator.

``compare`` is a pure function: two snapshots plus a config in, one frozen
``ComparisonResult`` out. Matching runs in two levels:

1) entities are paired by name; semantic and hybrid runs then pair the
   leftovers by score
2) fields of every paired entity are paired by name, and by score as well
   when the entity pair is compared semantically

Unpaired entities become entity-level added/removed entries, unpaired fields
of paired entities field-level ones, and paired items whose attributes (or
names) differ become modified entries.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from schemarecon.domain.model import ensure_compatible

from .config import CompareConfig, CompareStrategy
from .matching import (
    Pair,
    entity_score,
    field_score,
    match_by_name,
    match_names_then_score,
)
from .result import (
    AttributeDifference,
    Change,
    ChangeLevel,
    Changes,
    ComparisonResult,
    Statistics,
)

if TYPE_CHECKING:
    from schemarecon.domain.model import Entity, Field, SchemaIR

log = logging.getLogger(__name__)


@dataclass(slots=True)
class _Tally:
    """Running similarity bookkeeping for one comparison."""

    compared_items: int = 0
    weighted_changes: int = 0
    added: list[Change] = field(default_factory=list["Change"])
    removed: list[Change] = field(default_factory=list["Change"])
    modified: list[Change] = field(default_factory=list["Change"])

    def similarity(self) -> float:
        if not (self.added or self.removed or self.modified):
            return 1.0
        if self.compared_items == 0:
            return 0.0
        return min(1.0, max(0.0, 1.0 - self.weighted_changes / self.compared_items))


def compare(a: SchemaIR, b: SchemaIR, config: CompareConfig | None = None) -> ComparisonResult:
    """Compute the structured difference between ``a`` and ``b``."""

    config = config or CompareConfig()
    ensure_compatible(a.ir_version, b.ir_version)

    entity_pairs, only_a, only_b = _match_entities(a, b, config)
    tally = _Tally()

    for name in only_b:
        entity = _require(b.entity(name))
        tally.added.append(_entity_change(entity, side="b", config=config, tally=tally))
    for name in only_a:
        entity = _require(a.entity(name))
        tally.removed.append(_entity_change(entity, side="a", config=config, tally=tally))

    for pair, semantic in entity_pairs:
        left = _require(a.entity(pair.left))
        right = _require(b.entity(pair.right))
        _compare_entity_pair(left, right, semantic=semantic, config=config, tally=tally)

    changes = Changes(
        added=_sorted(tally.added),
        removed=_sorted(tally.removed),
        modified=_sorted(tally.modified),
    )
    statistics = Statistics(
        similarity=tally.similarity(),
        total_compared_items=tally.compared_items,
        added_count=len(changes.added),
        removed_count=len(changes.removed),
        modified_count=len(changes.modified),
        matched_entities=len(entity_pairs),
    )
    log.debug(
        "Compared %s with %s (%s): similarity=%.4f",
        a.source_name,
        b.source_name,
        config.strategy,
        statistics.similarity,
    )
    return ComparisonResult(changes=changes, statistics=statistics, config=config)


def _match_entities(
    a: SchemaIR,
    b: SchemaIR,
    config: CompareConfig,
) -> tuple[list[tuple[Pair, bool]], list[str], list[str]]:
    """Return ``(pair, matched_semantically)`` tuples plus leftovers of each side."""

    def score(left_name: str, right_name: str) -> float:
        left = _require(a.entity(left_name))
        right = _require(b.entity(right_name))
        return entity_score(
            left,
            right,
            left_fields=_compared_fields(left, config),
            right_fields=_compared_fields(right, config),
        )

    match config.strategy:
        case CompareStrategy.STRUCTURAL:
            pairs, only_a, only_b = match_by_name(a.entity_names, b.entity_names)
            return [(pair, False) for pair in pairs], only_a, only_b
        case CompareStrategy.SEMANTIC:
            exact, fuzzy, only_a, only_b = match_names_then_score(
                a.entity_names, b.entity_names, score, threshold=config.threshold
            )
            pairs = sorted(exact + fuzzy, key=lambda pair: pair.left)
            return [(pair, True) for pair in pairs], only_a, only_b
        case CompareStrategy.HYBRID:
            exact, fuzzy, only_a, only_b = match_names_then_score(
                a.entity_names, b.entity_names, score, threshold=config.threshold
            )
            combined = [(pair, False) for pair in exact] + [(pair, True) for pair in fuzzy]
            combined.sort(key=lambda item: item[0].left)
            return combined, only_a, only_b


def _compare_entity_pair(
    left: Entity,
    right: Entity,
    *,
    semantic: bool,
    config: CompareConfig,
    tally: _Tally,
) -> None:
    left_fields = {item.name: item for item in _compared_fields(left, config)}
    right_fields = {item.name: item for item in _compared_fields(right, config)}
    names = {"entity_a": left.entity_name, "entity_b": right.entity_name}

    if left.entity_name != right.entity_name:
        tally.compared_items += 1
        tally.weighted_changes += 1
        tally.modified.append(
            Change(
                path=left.entity_name,
                level=ChangeLevel.ENTITY,
                before=left,
                after=right,
                differences=(
                    AttributeDifference("entity_name", left.entity_name, right.entity_name),
                ),
                **names,
            )
        )

    if semantic:

        def score(left_name: str, right_name: str) -> float:
            return field_score(left_fields[left_name], right_fields[right_name])

        exact, fuzzy, only_left, only_right = match_names_then_score(
            list(left_fields), list(right_fields), score, threshold=config.threshold
        )
        field_pairs = exact + fuzzy
    else:
        field_pairs, only_left, only_right = match_by_name(list(left_fields), list(right_fields))

    if not (left_fields or right_fields):
        # an entity without compared fields still counts as one compared item
        tally.compared_items += 1

    for name in only_right:
        tally.compared_items += 1
        tally.weighted_changes += 1
        tally.added.append(
            Change(
                path=f"{right.entity_name}.{name}",
                level=ChangeLevel.FIELD,
                field_b=name,
                after=right_fields[name],
                **names,
            )
        )
    for name in only_left:
        tally.compared_items += 1
        tally.weighted_changes += 1
        tally.removed.append(
            Change(
                path=f"{left.entity_name}.{name}",
                level=ChangeLevel.FIELD,
                field_a=name,
                before=left_fields[name],
                **names,
            )
        )
    for pair in field_pairs:
        tally.compared_items += 1
        before = left_fields[pair.left]
        after = right_fields[pair.right]
        differences = _field_differences(before, after)
        if not differences:
            continue
        tally.weighted_changes += 1
        tally.modified.append(
            Change(
                path=f"{left.entity_name}.{pair.left}",
                level=ChangeLevel.FIELD,
                field_a=pair.left,
                field_b=pair.right,
                before=before,
                after=after,
                differences=differences,
                **names,
            )
        )


def _entity_change(entity: Entity, *, side: str, config: CompareConfig, tally: _Tally) -> Change:
    weight = max(1, len(_compared_fields(entity, config)))
    tally.compared_items += weight
    tally.weighted_changes += weight
    if side == "b":
        return Change(
            path=entity.entity_name,
            level=ChangeLevel.ENTITY,
            entity_b=entity.entity_name,
            after=entity,
        )
    return Change(
        path=entity.entity_name,
        level=ChangeLevel.ENTITY,
        entity_a=entity.entity_name,
        before=entity,
    )


def _field_differences(before: Field, after: Field) -> tuple[AttributeDifference, ...]:
    differences: list[AttributeDifference] = []
    if before.name != after.name:
        differences.append(AttributeDifference("name", before.name, after.name))
    old_attributes = before.attributes()
    new_attributes = after.attributes()
    for attribute, old in old_attributes.items():
        new = new_attributes[attribute]
        if old != new:
            differences.append(AttributeDifference(attribute, old, new))
    return tuple(differences)


def _compared_fields(entity: Entity, config: CompareConfig) -> tuple[Field, ...]:
    return tuple(
        item for item in entity.fields if not config.is_ignored(entity.entity_name, item.name)
    )


def _sorted(changes: list[Change]) -> tuple[Change, ...]:
    return tuple(sorted(changes, key=lambda change: change.path))


def _require[T](value: T | None) -> T:
    if value is None:
        raise AssertionError("matched name no longer resolves to an entity")
    return value
