"""Structural checks on schema snapshots.

Validation never raises on bad input: every problem becomes one message in
the report, and all problems are reported at once.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .model import PATH_SEPARATOR, InvalidIRVersionError, IRVersion, SourceType

if TYPE_CHECKING:
    from .model import SchemaIR

NO_ENTITIES = "Schema has no entities"


@dataclass(frozen=True, slots=True, kw_only=True)
class ValidationSummary:
    source_name: str | None
    source_type: str | None
    entities_count: int
    ir_version: str | None


@dataclass(frozen=True, slots=True, kw_only=True)
class ValidationReport:
    ok: bool
    errors: tuple[str, ...] = ()
    summary: ValidationSummary | None = None


def validate(schema: SchemaIR) -> ValidationReport:
    errors: list[str] = []
    if not schema.entities:
        errors.append(NO_ENTITIES)
    else:
        errors.extend(
            _empty_entity_message(entity.entity_name)
            for entity in schema.entities
            if not entity.fields
        )
    return ValidationReport(
        ok=not errors,
        errors=tuple(errors),
        summary=ValidationSummary(
            source_name=schema.source_name,
            source_type=str(schema.source_type),
            entities_count=len(schema.entities),
            ir_version=str(schema.ir_version),
        ),
    )


def validate_document(document: object) -> ValidationReport:
    """Validate a decoded JSON document without building the model first."""

    if not isinstance(document, Mapping):
        return ValidationReport(ok=False, errors=("Schema document must be a JSON object",))

    errors: list[str] = []
    version = _check_version(document.get("ir_version"), errors)
    source_type = document.get("source_type")
    if source_type is not None and source_type not in {item.value for item in SourceType}:
        errors.append(f"Unknown source_type: {source_type!r}")
    source_name = document.get("source_name")
    if not isinstance(source_name, str) or not source_name:
        errors.append("source_name is missing")
        source_name = None

    entities = document.get("entities", [])
    if not isinstance(entities, list):
        errors.append("entities must be a list")
        entities = []
    if not entities:
        errors.append(NO_ENTITIES)

    names: list[str] = []
    for index, raw in enumerate(entities):
        if not isinstance(raw, Mapping):
            errors.append(f"Entity #{index} must be an object")
            continue
        name = raw.get("entity_name")
        if not isinstance(name, str) or not name.strip():
            errors.append(f"Entity #{index} has no entity_name")
            name = f"#{index}"
        else:
            if PATH_SEPARATOR in name:
                errors.append(f"Entity name '{name}' must not contain '{PATH_SEPARATOR}'")
            names.append(name)
        errors.extend(_check_fields(name, raw.get("fields", [])))

    errors.extend(
        f"Duplicate entity name: '{name}'"
        for name, count in sorted(Counter(names).items())
        if count > 1
    )
    return ValidationReport(
        ok=not errors,
        errors=tuple(errors),
        summary=ValidationSummary(
            source_name=source_name,
            source_type=source_type if isinstance(source_type, str) else None,
            entities_count=len(entities),
            ir_version=str(version) if version is not None else None,
        ),
    )


def _check_version(raw: object, errors: list[str]) -> IRVersion | None:
    try:
        return IRVersion.parse(raw)
    except InvalidIRVersionError as exc:
        errors.append(str(exc))
        return None


def _check_fields(entity_name: str, raw_fields: object) -> list[str]:
    if not isinstance(raw_fields, list):
        return [f"Entity '{entity_name}' fields must be a list"]
    if not raw_fields:
        return [_empty_entity_message(entity_name)]
    errors: list[str] = []
    names: list[str] = []
    for index, raw in enumerate(raw_fields):
        name = raw.get("name") if isinstance(raw, Mapping) else None
        if not isinstance(name, str) or not name.strip():
            errors.append(f"Entity '{entity_name}' field #{index} has no name")
            continue
        if PATH_SEPARATOR in name:
            errors.append(
                f"Entity '{entity_name}' field '{name}' must not contain '{PATH_SEPARATOR}'"
            )
        names.append(name)
    errors.extend(
        f"Entity '{entity_name}' declares duplicate field '{name}'"
        for name, count in sorted(Counter(names).items())
        if count > 1
    )
    return errors


def _empty_entity_message(entity_name: str) -> str:
    return f"Entity '{entity_name}' has no fields"
