from __future__ import annotations

import pytest

from schemarecon.domain.comparison import (
    ChangeLevel,
    CompareConfig,
    CompareStrategy,
    compare,
)
from schemarecon.domain.model import (
    Field,
    FieldType,
    IncompatibleIRVersionError,
    SchemaIR,
    SourceType,
)
from tests.helpers.schemas import id_field, make_entity, make_field, make_schema, schema_pair


def _paths(changes: tuple[object, ...]) -> list[str]:
    return [change.path for change in changes]  # type: ignore[attr-defined]


_STRATEGIES = pytest.mark.parametrize("strategy", list(CompareStrategy))


@_STRATEGIES
def test_added_field_scenario(strategy: CompareStrategy) -> None:
    a = make_schema(make_entity("users", Field(name="id")))
    b = make_schema(make_entity("users", Field(name="id"), Field(name="email")))

    result = compare(a, b, CompareConfig(strategy=strategy))

    assert _paths(result.changes.added) == ["users.email"]
    assert result.changes.removed == ()
    assert result.changes.modified == ()
    assert result.similarity == 0.5


@_STRATEGIES
def test_identical_snapshots_have_full_similarity(strategy: CompareStrategy) -> None:
    a, _ = schema_pair()

    result = compare(a, a, CompareConfig(strategy=strategy))

    assert result.changes.is_empty
    assert result.similarity == 1.0
    assert result.statistics.matched_entities == 3


def test_empty_snapshots_are_identical() -> None:
    result = compare(make_schema(), make_schema())

    assert result.changes.is_empty
    assert result.similarity == 1.0


@_STRATEGIES
def test_mixed_changes_are_bucketed_and_weighted(strategy: CompareStrategy) -> None:
    a, b = schema_pair()

    result = compare(a, b, CompareConfig(strategy=strategy))

    assert _paths(result.changes.added) == ["users.email"]
    assert _paths(result.changes.removed) == ["legacy"]
    assert _paths(result.changes.modified) == ["orders.total"]
    modified = result.changes.modified[0]
    assert modified.level is ChangeLevel.FIELD
    assert [item.attribute for item in modified.differences] == ["declared_type"]
    assert modified.differences[0].old is FieldType.DECIMAL
    assert modified.differences[0].new is FieldType.FLOAT
    assert result.statistics.total_compared_items == 7
    assert result.similarity == pytest.approx(4 / 7)


@_STRATEGIES
def test_comparison_is_symmetric(strategy: CompareStrategy) -> None:
    a, b = schema_pair()
    config = CompareConfig(strategy=strategy)

    forward = compare(a, b, config)
    backward = compare(b, a, config)

    assert _paths(forward.changes.added) == _paths(backward.changes.removed)
    assert _paths(forward.changes.removed) == _paths(backward.changes.added)
    assert _paths(forward.changes.modified) == _paths(backward.changes.modified)
    assert forward.similarity == backward.similarity


def test_removed_entity_carries_definition() -> None:
    a, b = schema_pair()

    removed = compare(a, b).changes.removed[0]

    assert removed.level is ChangeLevel.ENTITY
    assert removed.entity_a == "legacy"
    assert removed.entity_b is None
    assert removed.before == make_entity("legacy", id_field())
    assert removed.after is None


@_STRATEGIES
def test_ignore_fields_by_name_and_path(strategy: CompareStrategy) -> None:
    a, b = schema_pair()

    by_name = compare(a, b, CompareConfig(strategy=strategy, ignore_fields=("email",)))
    by_path = compare(a, b, CompareConfig(strategy=strategy, ignore_fields=("orders.total",)))

    assert by_name.changes.added == ()
    assert by_path.changes.modified == ()
    assert _paths(by_path.changes.added) == ["users.email"]


@_STRATEGIES
def test_ignored_differences_give_full_similarity(strategy: CompareStrategy) -> None:
    a = make_schema(make_entity("users", id_field(), make_field("audit")))
    b = make_schema(make_entity("users", id_field(), make_field("audit", FieldType.JSON)))

    result = compare(a, b, CompareConfig(strategy=strategy, ignore_fields=("audit",)))

    assert result.changes.is_empty
    assert result.similarity == 1.0


def test_semantic_strategy_pairs_renamed_fields() -> None:
    a = make_schema(make_entity("users", id_field(), make_field("email_address")))
    b = make_schema(make_entity("users", id_field(), make_field("email_addr")))

    result = compare(a, b, CompareConfig(strategy=CompareStrategy.SEMANTIC, threshold=0.5))

    assert result.changes.added == ()
    assert result.changes.removed == ()
    (change,) = result.changes.modified
    assert change.path == "users.email_address"
    assert change.field_a == "email_address"
    assert change.field_b == "email_addr"
    assert change.renamed
    assert result.similarity == 0.5


def test_semantic_strategy_finds_renames_at_default_threshold() -> None:
    a = make_schema(make_entity("users", id_field(), make_field("email_address")))
    b = make_schema(make_entity("users", id_field(), make_field("email_addr")))

    result = compare(a, b, CompareConfig(strategy=CompareStrategy.SEMANTIC))

    (change,) = result.changes.modified
    assert (change.field_a, change.field_b) == ("email_address", "email_addr")
    assert result.changes.added == result.changes.removed == ()


@_STRATEGIES
def test_same_name_type_change_is_a_modification(strategy: CompareStrategy) -> None:
    a = make_schema(make_entity("users", make_field("id", FieldType.STRING), make_field("name")))
    b = make_schema(make_entity("users", make_field("id", FieldType.INTEGER), make_field("name")))

    result = compare(a, b, CompareConfig(strategy=strategy))

    assert result.changes.added == ()
    assert result.changes.removed == ()
    (change,) = result.changes.modified
    assert change.path == "users.id"
    assert not change.renamed
    assert [item.attribute for item in change.differences] == ["declared_type"]
    assert result.similarity == 0.5


def test_structural_strategy_reports_renames_as_add_and_remove() -> None:
    a = make_schema(make_entity("users", id_field(), make_field("email_address")))
    b = make_schema(make_entity("users", id_field(), make_field("email_addr")))

    result = compare(a, b)

    assert _paths(result.changes.added) == ["users.email_addr"]
    assert _paths(result.changes.removed) == ["users.email_address"]


def test_hybrid_strategy_matches_renamed_entity() -> None:
    fields = (id_field(), make_field("name"), make_field("email"))
    a = make_schema(make_entity("customers", *fields))
    b = make_schema(make_entity("clients", *fields))

    result = compare(a, b, CompareConfig(strategy=CompareStrategy.HYBRID))

    (change,) = result.changes.modified
    assert change.level is ChangeLevel.ENTITY
    assert change.path == "customers"
    assert (change.entity_a, change.entity_b) == ("customers", "clients")
    assert change.renamed
    assert result.similarity == 0.75


def test_hybrid_strategy_prefers_exact_names() -> None:
    a, b = schema_pair()

    structural = compare(a, b)
    hybrid = compare(a, b, CompareConfig(strategy=CompareStrategy.HYBRID))

    assert _paths(hybrid.changes.added) == _paths(structural.changes.added)
    assert _paths(hybrid.changes.modified) == _paths(structural.changes.modified)


def test_incompatible_versions_fail_fast() -> None:
    a = make_schema(make_entity("users", id_field()))
    b = SchemaIR(
        source_name="b",
        source_type=SourceType.MEMORY,
        ir_version="2.0",
        entities=a.entities,
    )

    with pytest.raises(IncompatibleIRVersionError):
        compare(a, b)


def test_minor_version_difference_is_compatible() -> None:
    a = make_schema(make_entity("users", id_field()))
    b = SchemaIR(
        source_name="b",
        source_type=SourceType.MEMORY,
        ir_version="1.3",
        entities=a.entities,
    )

    assert compare(a, b).similarity == 1.0


def test_compare_config_validates_threshold() -> None:
    with pytest.raises(ValueError, match="threshold"):
        CompareConfig(threshold=1.5)


def test_compare_config_normalizes_ignore_fields() -> None:
    config = CompareConfig(ignore_fields=("b", "a", "b"), strategy="hybrid")  # type: ignore[arg-type]

    assert config.ignore_fields == ("a", "b")
    assert config.strategy is CompareStrategy.HYBRID
