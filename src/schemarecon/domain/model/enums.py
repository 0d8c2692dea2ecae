"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class SourceType(StrEnum):
    """Origin kind of a schema snapshot."""

    FILE = "file"
    DB = "db"
    MEMORY = "memory"


class FieldType(StrEnum):
    """Canonical type tag of a field, independent of the source-native spelling."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    JSON = "json"
    BINARY = "binary"
    UUID = "uuid"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, native: str | None) -> FieldType:
        """Map a source-native type spelling (``VARCHAR(255)``, ``INT``...) to a tag."""

        if native is None:
            return cls.UNKNOWN
        normalized = native.strip().lower()
        if not normalized:
            return cls.UNKNOWN
        try:
            return cls(normalized)
        except ValueError:
            pass
        base = normalized.split("(", 1)[0].strip()
        base = base.removesuffix(" unsigned").removesuffix("[]").strip()
        return _NATIVE_ALIASES.get(base, cls.UNKNOWN)


_NATIVE_ALIASES: dict[str, FieldType] = {
    "str": FieldType.STRING,
    "text": FieldType.STRING,
    "varchar": FieldType.STRING,
    "character varying": FieldType.STRING,
    "char": FieldType.STRING,
    "character": FieldType.STRING,
    "nvarchar": FieldType.STRING,
    "nchar": FieldType.STRING,
    "clob": FieldType.STRING,
    "citext": FieldType.STRING,
    "enum": FieldType.STRING,
    "int": FieldType.INTEGER,
    "int4": FieldType.INTEGER,
    "int8": FieldType.INTEGER,
    "smallint": FieldType.INTEGER,
    "bigint": FieldType.INTEGER,
    "tinyint": FieldType.INTEGER,
    "mediumint": FieldType.INTEGER,
    "serial": FieldType.INTEGER,
    "bigserial": FieldType.INTEGER,
    "long": FieldType.INTEGER,
    "real": FieldType.FLOAT,
    "double": FieldType.FLOAT,
    "double precision": FieldType.FLOAT,
    "float4": FieldType.FLOAT,
    "float8": FieldType.FLOAT,
    "number": FieldType.FLOAT,
    "numeric": FieldType.DECIMAL,
    "money": FieldType.DECIMAL,
    "bool": FieldType.BOOLEAN,
    "bit": FieldType.BOOLEAN,
    "timestamp": FieldType.DATETIME,
    "timestamptz": FieldType.DATETIME,
    "timestamp with time zone": FieldType.DATETIME,
    "timestamp without time zone": FieldType.DATETIME,
    "time": FieldType.DATETIME,
    "jsonb": FieldType.JSON,
    "object": FieldType.JSON,
    "array": FieldType.JSON,
    "blob": FieldType.BINARY,
    "bytea": FieldType.BINARY,
    "varbinary": FieldType.BINARY,
    "bytes": FieldType.BINARY,
    "uniqueidentifier": FieldType.UUID,
}

_NUMERIC_RANK: dict[FieldType, int] = {
    FieldType.INTEGER: 0,
    FieldType.DECIMAL: 1,
    FieldType.FLOAT: 2,
}
_TEMPORAL = frozenset({FieldType.DATE, FieldType.DATETIME})
_TEXTUAL = frozenset({FieldType.STRING, FieldType.UUID})


def type_compatibility(left: FieldType, right: FieldType) -> float:
    """Score how interchangeable two type tags are: 1.0 equal, 0.5 same family, else 0.0."""

    if left is right:
        return 1.0
    if FieldType.UNKNOWN in (left, right):
        return 0.5
    for family in (_NUMERIC_RANK.keys(), _TEMPORAL, _TEXTUAL):
        if left in family and right in family:
            return 0.5
    return 0.0


def widen(left: FieldType, right: FieldType) -> FieldType:
    """Return the narrowest type able to hold values of both tags."""

    if left is right:
        return left
    if left in _NUMERIC_RANK and right in _NUMERIC_RANK:
        return left if _NUMERIC_RANK[left] >= _NUMERIC_RANK[right] else right
    if left in _TEMPORAL and right in _TEMPORAL:
        return FieldType.DATETIME
    if FieldType.UNKNOWN in (left, right):
        return right if left is FieldType.UNKNOWN else left
    return FieldType.STRING
