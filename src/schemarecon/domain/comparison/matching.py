"""Pairing helpers used by the comparator.

Scores are symmetric in their two arguments and the greedy matcher breaks
ties on the unordered name pair, so swapping the compared snapshots swaps
the pairs without changing which pairs are chosen.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from difflib import SequenceMatcher
from typing import TYPE_CHECKING

from schemarecon.domain.model import type_compatibility

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from schemarecon.domain.model import Entity, Field

log = logging.getLogger(__name__)

ENTITY_OVERLAP_WEIGHT = 0.6
ENTITY_TYPE_WEIGHT = 0.2
ENTITY_NAME_WEIGHT = 0.2
FIELD_NAME_WEIGHT = 0.6
FIELD_TYPE_WEIGHT = 0.4


@dataclass(frozen=True, slots=True)
class Pair:
    left: str
    right: str
    score: float


def name_similarity(left: str, right: str) -> float:
    def singularize(value: str) -> str:
        return value[:-1] if value.endswith("s") else value

    a, b = sorted((left.lower(), right.lower()))
    a_s, b_s = sorted((singularize(a), singularize(b)))
    return max(
        SequenceMatcher(None, a, b).ratio(),
        SequenceMatcher(None, a_s, b_s).ratio(),
    )


def jaccard(left: set[str], right: set[str]) -> float:
    if not left and not right:
        return 1.0
    union = len(left | right) or 1
    return len(left & right) / union


def entity_score(
    left: Entity,
    right: Entity,
    *,
    left_fields: Sequence[Field],
    right_fields: Sequence[Field],
) -> float:
    """Score a candidate entity pair over field-set overlap, type agreement and name."""

    left_by_name = {item.name: item for item in left_fields}
    right_by_name = {item.name: item for item in right_fields}
    overlap = jaccard(set(left_by_name), set(right_by_name))
    shared = sorted(set(left_by_name) & set(right_by_name))
    if shared:
        type_agreement = sum(
            type_compatibility(left_by_name[name].declared_type, right_by_name[name].declared_type)
            for name in shared
        ) / len(shared)
    else:
        type_agreement = 0.0
    return (
        ENTITY_OVERLAP_WEIGHT * overlap
        + ENTITY_TYPE_WEIGHT * type_agreement
        + ENTITY_NAME_WEIGHT * name_similarity(left.entity_name, right.entity_name)
    )


def field_score(left: Field, right: Field) -> float:
    return FIELD_NAME_WEIGHT * name_similarity(left.name, right.name) + (
        FIELD_TYPE_WEIGHT * type_compatibility(left.declared_type, right.declared_type)
    )


def match_by_name(
    left_names: Sequence[str],
    right_names: Sequence[str],
) -> tuple[list[Pair], list[str], list[str]]:
    """Identity matching: pair equal names, return leftovers on both sides."""

    right_set = set(right_names)
    left_set = set(left_names)
    pairs = [Pair(name, name, 1.0) for name in sorted(left_set & right_set)]
    return (
        pairs,
        sorted(left_set - right_set),
        sorted(right_set - left_set),
    )


def match_greedy(
    left_names: Sequence[str],
    right_names: Sequence[str],
    score: Callable[[str, str], float],
    *,
    threshold: float,
) -> tuple[list[Pair], list[str], list[str]]:
    """Accept the best-scoring remaining pair until none clears ``threshold``."""

    candidates: list[Pair] = []
    for left in left_names:
        for right in right_names:
            value = score(left, right)
            if value >= threshold:
                candidates.append(Pair(left, right, value))
    candidates.sort(key=lambda pair: (-pair.score, *sorted((pair.left, pair.right))))

    pairs: list[Pair] = []
    taken_left: set[str] = set()
    taken_right: set[str] = set()
    for candidate in candidates:
        if candidate.left in taken_left or candidate.right in taken_right:
            continue
        log.debug(
            "Matched %s -> %s (score %.3f)", candidate.left, candidate.right, candidate.score
        )
        pairs.append(candidate)
        taken_left.add(candidate.left)
        taken_right.add(candidate.right)

    pairs.sort(key=lambda pair: pair.left)
    return (
        pairs,
        sorted(name for name in left_names if name not in taken_left),
        sorted(name for name in right_names if name not in taken_right),
    )


def match_names_then_score(
    left_names: Sequence[str],
    right_names: Sequence[str],
    score: Callable[[str, str], float],
    *,
    threshold: float,
) -> tuple[list[Pair], list[Pair], list[str], list[str]]:
    """Pair equal names first, then score only what is left on each side.

    Returns ``(exact, fuzzy, only_left, only_right)``. A name present on both
    sides is always paired with itself, whatever its score.
    """

    exact, rest_left, rest_right = match_by_name(left_names, right_names)
    fuzzy, only_left, only_right = match_greedy(rest_left, rest_right, score, threshold=threshold)
    return exact, fuzzy, only_left, only_right
