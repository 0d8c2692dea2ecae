"""Resolution policy: ``ComparisonResult`` -> ``ResolutionPlan``.

Responsibilities of this stage:
- map every diff entry to exactly one action
- never emit two actions for one target: such entries collapse into one
  manual review
- score each action with a confidence derived from diff similarity and
  strategy risk tolerance
- derive a content-based plan id

This stage is pure and deterministic: the same diff and config always give
the same plan, id included.

Out of scope for this stage:
- reading or writing any store
- validating that the plan can still be applied
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from schemarecon.domain.comparison import ChangeSet

from .config import ResolveConfig, ResolveStrategy, SourcePreference
from .plan import Action, ActionKind, ResolutionPlan, plan_digest

if TYPE_CHECKING:
    from schemarecon.domain.comparison import Change, ComparisonResult

log = logging.getLogger(__name__)


def propose(diff: ComparisonResult, config: ResolveConfig | None = None) -> ResolutionPlan:
    """Derive an ordered plan: added entries, then removed, then modified."""

    config = config or ResolveConfig()
    similarity = diff.similarity
    actions: list[Action] = []
    for change_set, changes in diff.changes.by_set():
        for change in changes:
            kind, reason = _decide(change_set, change, similarity=similarity, config=config)
            actions.append(
                Action(
                    target=change.path,
                    kind=kind,
                    confidence=_confidence(change_set, similarity=similarity, config=config),
                    change=change_set,
                    level=change.level,
                    entity_a=change.entity_a,
                    entity_b=change.entity_b,
                    field_a=change.field_a,
                    field_b=change.field_b,
                    before=change.before,
                    after=change.after,
                    reason=reason,
                )
            )

    frozen = _collapse_conflicts(actions)
    plan = ResolutionPlan(
        plan_id=plan_digest(
            frozen,
            strategy=config.strategy,
            prefer_source=config.prefer_source,
            similarity=similarity,
        ),
        actions=frozen,
        strategy=config.strategy,
        prefer_source=config.prefer_source,
        similarity=similarity,
    )
    log.debug(
        "Proposed plan %s with %d action(s) (%s, prefer %s)",
        plan.plan_id,
        len(plan.actions),
        config.strategy,
        config.prefer_source,
    )
    return plan


def _confidence(change_set: ChangeSet, *, similarity: float, config: ResolveConfig) -> float:
    scaled = similarity * config.risk_tolerance
    if change_set is ChangeSet.MODIFIED:
        value = scaled
    else:
        value = 0.5 + 0.5 * scaled
    return round(min(1.0, max(0.0, value)), 4)


def _decide(
    change_set: ChangeSet,
    change: Change,
    *,
    similarity: float,
    config: ResolveConfig,
) -> tuple[ActionKind, str | None]:
    match change_set:
        case ChangeSet.ADDED:
            if config.prefer_source is SourcePreference.A:
                return ActionKind.DROP, "only present in source B; source A preferred"
            return ActionKind.ACCEPT_B, None
        case ChangeSet.REMOVED:
            if config.prefer_source is SourcePreference.B:
                return ActionKind.DROP, "only present in source A; source B preferred"
            return ActionKind.ACCEPT_A, None
        case ChangeSet.MODIFIED:
            return _decide_modified(change, similarity=similarity, config=config)


def _decide_modified(
    change: Change,
    *,
    similarity: float,
    config: ResolveConfig,
) -> tuple[ActionKind, str | None]:
    if config.strategy is ResolveStrategy.CONSERVATIVE:
        return ActionKind.MANUAL_REVIEW, "conservative strategy reviews every modification"
    if (
        config.strategy is ResolveStrategy.BALANCED
        and similarity < config.auto_resolve_threshold
    ):
        return (
            ActionKind.MANUAL_REVIEW,
            f"similarity {similarity:.4f} below auto-resolve threshold "
            f"{config.auto_resolve_threshold:.4f}",
        )
    match config.prefer_source:
        case SourcePreference.A:
            return ActionKind.ACCEPT_A, None
        case SourcePreference.B:
            if change.renamed:
                return ActionKind.RENAME, None
            return ActionKind.ACCEPT_B, None
        case SourcePreference.MERGE:
            return ActionKind.MERGE, None


def _collapse_conflicts(actions: list[Action]) -> tuple[Action, ...]:
    by_target: dict[str, list[Action]] = {}
    for action in actions:
        by_target.setdefault(action.target, []).append(action)

    collapsed: list[Action] = []
    for target, group in by_target.items():
        first = group[0]
        if len(group) == 1:
            collapsed.append(first)
            continue
        change_sets = ", ".join(str(action.change) for action in group)
        log.warning("Conflicting changes for %s (%s); marking for review", target, change_sets)
        collapsed.append(
            replace(
                first,
                kind=ActionKind.MANUAL_REVIEW,
                confidence=0.0,
                reason=f"conflicting changes for the same target: {change_sets}",
            )
        )
    return tuple(collapsed)
