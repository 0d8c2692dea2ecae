from __future__ import annotations

import pytest

from schemarecon.domain.comparison import (
    Change,
    ChangeLevel,
    Changes,
    ChangeSet,
    CompareConfig,
    ComparisonResult,
    Statistics,
    compare,
)
from schemarecon.domain.model import FieldType
from schemarecon.domain.resolution import (
    PLAN_VERSION,
    Action,
    ActionKind,
    ResolutionPlan,
    ResolveConfig,
    ResolveStrategy,
    SourcePreference,
    propose,
)
from tests.helpers.schemas import id_field, make_entity, make_field, make_schema, schema_pair


def _diff() -> ComparisonResult:
    a, b = schema_pair()
    return compare(a, b)


def _kinds(plan: ResolutionPlan) -> list[ActionKind]:
    return [action.kind for action in plan.actions]


def test_actions_follow_added_removed_modified_order() -> None:
    plan = propose(_diff())

    assert [action.target for action in plan.actions] == ["users.email", "legacy", "orders.total"]
    assert [action.change for action in plan.actions] == [
        ChangeSet.ADDED,
        ChangeSet.REMOVED,
        ChangeSet.MODIFIED,
    ]


def test_default_plan_is_balanced_merge() -> None:
    plan = propose(_diff())

    assert plan.strategy is ResolveStrategy.BALANCED
    assert plan.prefer_source is SourcePreference.MERGE
    assert plan.version == PLAN_VERSION
    assert _kinds(plan) == [ActionKind.ACCEPT_B, ActionKind.ACCEPT_A, ActionKind.MERGE]


def test_confidence_scales_with_similarity_and_risk_tolerance() -> None:
    diff = _diff()
    similarity = diff.similarity

    balanced = propose(diff)
    aggressive = propose(diff, ResolveConfig(strategy=ResolveStrategy.AGGRESSIVE))

    assert balanced.actions[0].confidence == round(0.5 + 0.5 * similarity * 0.8, 4)
    assert balanced.actions[2].confidence == round(similarity * 0.8, 4)
    assert aggressive.actions[2].confidence == round(similarity, 4)
    assert all(0.0 <= action.confidence <= 1.0 for action in balanced.actions)


def test_conservative_strategy_reviews_modifications() -> None:
    plan = propose(_diff(), ResolveConfig(strategy=ResolveStrategy.CONSERVATIVE))

    assert _kinds(plan) == [ActionKind.ACCEPT_B, ActionKind.ACCEPT_A, ActionKind.MANUAL_REVIEW]
    assert plan.actions[2].reason is not None


def test_balanced_strategy_reviews_below_threshold() -> None:
    plan = propose(_diff(), ResolveConfig(auto_resolve_threshold=0.9))

    assert plan.actions[2].kind is ActionKind.MANUAL_REVIEW
    assert "below auto-resolve threshold" in (plan.actions[2].reason or "")


def test_aggressive_strategy_ignores_threshold() -> None:
    plan = propose(
        _diff(),
        ResolveConfig(strategy=ResolveStrategy.AGGRESSIVE, auto_resolve_threshold=1.0),
    )

    assert plan.actions[2].kind is ActionKind.MERGE


def test_prefer_a_drops_additions() -> None:
    plan = propose(_diff(), ResolveConfig(prefer_source=SourcePreference.A))

    assert _kinds(plan) == [ActionKind.DROP, ActionKind.ACCEPT_A, ActionKind.ACCEPT_A]
    assert plan.actions[0].reason is not None


def test_prefer_b_drops_removals() -> None:
    plan = propose(_diff(), ResolveConfig(prefer_source=SourcePreference.B))

    assert _kinds(plan) == [ActionKind.ACCEPT_B, ActionKind.DROP, ActionKind.ACCEPT_B]


def test_prefer_b_renames_renamed_fields() -> None:
    a = make_schema(make_entity("users", id_field(), make_field("email_address")))
    b = make_schema(make_entity("users", id_field(), make_field("email_addr")))
    diff = compare(a, b, CompareConfig(strategy="semantic", threshold=0.5))  # type: ignore[arg-type]

    plan = propose(
        diff,
        ResolveConfig(strategy=ResolveStrategy.AGGRESSIVE, prefer_source=SourcePreference.B),
    )

    (action,) = plan.actions
    assert action.kind is ActionKind.RENAME
    assert action.level is ChangeLevel.FIELD
    assert (action.field_a, action.field_b) == ("email_address", "email_addr")


def test_actions_carry_both_definitions() -> None:
    action = propose(_diff()).actions[2]

    assert action.before == make_field("total", FieldType.DECIMAL, default="0.00")
    assert action.after is not None
    assert action.entity_a == action.entity_b == "orders"


def test_plan_is_deterministic() -> None:
    first = propose(_diff())
    second = propose(_diff())

    assert first.plan_id == second.plan_id
    assert first == second
    assert first.plan_id.startswith("sha256:")


def test_plan_id_depends_on_config() -> None:
    diff = _diff()

    balanced = propose(diff)
    conservative = propose(diff, ResolveConfig(strategy=ResolveStrategy.CONSERVATIVE))
    prefer_b = propose(diff, ResolveConfig(prefer_source=SourcePreference.B))

    assert len({balanced.plan_id, conservative.plan_id, prefer_b.plan_id}) == 3


def test_empty_diff_gives_empty_plan() -> None:
    a, _ = schema_pair()

    plan = propose(compare(a, a))

    assert plan.actions == ()
    assert plan.similarity == 1.0
    assert plan.plan_id.startswith("sha256:")


def test_target_entities_lists_each_entity_once() -> None:
    plan = propose(_diff())

    assert plan.target_entities == ("users", "legacy", "orders")


def test_resolve_config_validation() -> None:
    config = ResolveConfig(strategy="aggressive", prefer_source="b")  # type: ignore[arg-type]

    assert config.strategy is ResolveStrategy.AGGRESSIVE
    assert config.risk_tolerance == 1.0
    with pytest.raises(ValueError, match="auto_resolve_threshold"):
        ResolveConfig(auto_resolve_threshold=-0.1)
    with pytest.raises(ValueError):
        ResolveConfig(strategy="reckless")  # type: ignore[arg-type]


def test_action_rejects_confidence_out_of_range() -> None:
    with pytest.raises(ValueError, match="confidence"):
        Action(
            target="users",
            kind=ActionKind.DROP,
            confidence=1.5,
            change=ChangeSet.ADDED,
            level=ChangeLevel.ENTITY,
            entity_b="users",
        )


def test_conflicting_changes_for_one_target_become_a_single_review() -> None:
    before = make_field("id", FieldType.STRING)
    after = make_field("id", FieldType.INTEGER)
    names = {"entity_a": "users", "entity_b": "users"}
    diff = ComparisonResult(
        changes=Changes(
            added=(
                Change(path="users.id", level=ChangeLevel.FIELD, field_b="id", after=after, **names),
            ),
            removed=(
                Change(path="users.id", level=ChangeLevel.FIELD, field_a="id", before=before, **names),
            ),
        ),
        statistics=Statistics(similarity=0.0, total_compared_items=2, added_count=1, removed_count=1),
        config=CompareConfig(),
    )

    plan = propose(diff, ResolveConfig(strategy=ResolveStrategy.AGGRESSIVE))

    (action,) = plan.actions
    assert action.target == "users.id"
    assert action.kind is ActionKind.MANUAL_REVIEW
    assert action.confidence == 0.0
    assert action.reason == "conflicting changes for the same target: added, removed"
