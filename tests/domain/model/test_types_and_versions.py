from __future__ import annotations

import pytest

from schemarecon.domain.model import (
    CURRENT_IR_VERSION,
    FieldType,
    IncompatibleIRVersionError,
    InvalidIRVersionError,
    IRVersion,
    ensure_compatible,
    type_compatibility,
    widen,
)


@pytest.mark.parametrize(
    ("native", "expected"),
    [
        ("VARCHAR(255)", FieldType.STRING),
        ("text", FieldType.STRING),
        ("INT UNSIGNED", FieldType.INTEGER),
        ("bigint", FieldType.INTEGER),
        ("double precision", FieldType.FLOAT),
        ("NUMERIC(10, 2)", FieldType.DECIMAL),
        ("timestamptz", FieldType.DATETIME),
        ("jsonb", FieldType.JSON),
        ("bytea", FieldType.BINARY),
        ("integer", FieldType.INTEGER),
        ("geometry", FieldType.UNKNOWN),
        ("", FieldType.UNKNOWN),
        (None, FieldType.UNKNOWN),
    ],
)
def test_field_type_parse(native: str | None, expected: FieldType) -> None:
    assert FieldType.parse(native) is expected


def test_widen_numeric_and_temporal() -> None:
    assert widen(FieldType.INTEGER, FieldType.FLOAT) is FieldType.FLOAT
    assert widen(FieldType.DECIMAL, FieldType.INTEGER) is FieldType.DECIMAL
    assert widen(FieldType.DATE, FieldType.DATETIME) is FieldType.DATETIME
    assert widen(FieldType.UNKNOWN, FieldType.BOOLEAN) is FieldType.BOOLEAN
    assert widen(FieldType.BOOLEAN, FieldType.JSON) is FieldType.STRING


def test_type_compatibility_scores() -> None:
    assert type_compatibility(FieldType.STRING, FieldType.STRING) == 1.0
    assert type_compatibility(FieldType.INTEGER, FieldType.FLOAT) == 0.5
    assert type_compatibility(FieldType.UNKNOWN, FieldType.JSON) == 0.5
    assert type_compatibility(FieldType.BOOLEAN, FieldType.DATE) == 0.0


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("1.0", IRVersion(1, 0)),
        ("v2.3", IRVersion(2, 3)),
        ("1.2.3", IRVersion(1, 2, 3)),
        (1, IRVersion(1, 0)),
        (1.5, IRVersion(1, 5)),
    ],
)
def test_ir_version_parse(raw: object, expected: IRVersion) -> None:
    assert IRVersion.parse(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "one", "1", True, ["1.0"]])
def test_ir_version_rejects_unparseable_values(raw: object) -> None:
    with pytest.raises(InvalidIRVersionError):
        IRVersion.parse(raw)


def test_ir_version_str() -> None:
    assert str(CURRENT_IR_VERSION) == "1.0"
    assert str(IRVersion(1, 2, 3)) == "1.2.3"


def test_ensure_compatible_checks_major_version() -> None:
    ensure_compatible(IRVersion(1, 0), IRVersion(1, 4))

    with pytest.raises(IncompatibleIRVersionError, match="major"):
        ensure_compatible(IRVersion(1, 0), IRVersion(2, 0))
