"""Canonical schema snapshot: ``SchemaIR`` -> ``Entity`` -> ``Field``.

All three are frozen. Entity and snapshot equality is structural and ignores
declaration order; the comparator decides separately how order matters.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from .enums import FieldType, SourceType
from .errors import DuplicateNameError, SchemaModelError
from .versions import IRVersion

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping


type FieldDefault = Any

# joins entity and field names in change paths and action targets
PATH_SEPARATOR = "."


@dataclass(frozen=True, slots=True, kw_only=True)
class Field:
    """One attribute of an entity."""

    name: str
    declared_type: FieldType = FieldType.UNKNOWN
    nullable: bool = True
    default: FieldDefault = None
    is_primary_key: bool = False

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise SchemaModelError("Field name must not be blank")
        if PATH_SEPARATOR in self.name:
            raise SchemaModelError(f"Field name must not contain '{PATH_SEPARATOR}': {self.name!r}")
        if not isinstance(self.declared_type, FieldType):
            object.__setattr__(self, "declared_type", FieldType.parse(str(self.declared_type)))

    def attributes(self) -> dict[str, object]:
        """Comparable attributes, name excluded."""

        return {
            "declared_type": self.declared_type,
            "nullable": self.nullable,
            "default": self.default,
            "is_primary_key": self.is_primary_key,
        }

    def renamed(self, name: str) -> Field:
        return replace(self, name=name)


@dataclass(frozen=True, slots=True, kw_only=True, eq=False)
class Entity:
    """One logical record type (table, collection, object kind)."""

    entity_name: str
    fields: tuple[Field, ...] = ()

    def __post_init__(self) -> None:
        if not self.entity_name or not self.entity_name.strip():
            raise SchemaModelError("Entity name must not be blank")
        if PATH_SEPARATOR in self.entity_name:
            raise SchemaModelError(
                f"Entity name must not contain '{PATH_SEPARATOR}': {self.entity_name!r}"
            )
        fields = tuple(self.fields)
        object.__setattr__(self, "fields", fields)
        duplicates = _duplicates(item.name for item in fields)
        if duplicates:
            raise DuplicateNameError(
                f"Entity '{self.entity_name}' declares duplicate fields: {', '.join(duplicates)}"
            )

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(item.name for item in self.fields)

    def field(self, name: str) -> Field | None:
        for item in self.fields:
            if item.name == name:
                return item
        return None

    def renamed(self, entity_name: str) -> Entity:
        return Entity(entity_name=entity_name, fields=self.fields)

    def with_field(self, new_field: Field, *, replacing: str | None = None) -> Entity:
        """Return a copy holding ``new_field``.

        The new field takes the position of ``replacing`` (or of an existing field
        with the same name); otherwise it is appended.
        """

        slot_name = replacing if replacing is not None and self.field(replacing) else new_field.name
        fields: list[Field] = []
        placed = False
        for item in self.fields:
            if item.name == slot_name:
                fields.append(new_field)
                placed = True
            elif item.name == new_field.name:
                continue
            else:
                fields.append(item)
        if not placed:
            fields.append(new_field)
        return Entity(entity_name=self.entity_name, fields=tuple(fields))

    def without_field(self, name: str) -> Entity:
        return Entity(
            entity_name=self.entity_name,
            fields=tuple(item for item in self.fields if item.name != name),
        )

    def _canonical(self) -> tuple[str, tuple[Field, ...]]:
        return self.entity_name, tuple(sorted(self.fields, key=lambda item: item.name))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entity):
            return NotImplemented
        return self._canonical() == other._canonical()


@dataclass(frozen=True, slots=True, kw_only=True, eq=False)
class SchemaIR:
    """Canonical snapshot of one data source."""

    source_name: str
    source_type: SourceType
    ir_version: IRVersion
    entities: tuple[Entity, ...] = ()
    source_format: str | None = None
    metadata: Mapping[str, object] = field(default_factory=dict["str", "object"])

    def __post_init__(self) -> None:
        object.__setattr__(self, "ir_version", IRVersion.parse(self.ir_version))
        try:
            object.__setattr__(self, "source_type", SourceType(self.source_type))
        except ValueError as exc:
            raise SchemaModelError(f"Unknown source_type: {self.source_type!r}") from exc
        entities = tuple(self.entities)
        object.__setattr__(self, "entities", entities)
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))
        duplicates = _duplicates(entity.entity_name for entity in entities)
        if duplicates:
            raise DuplicateNameError(f"Duplicate entity names: {', '.join(duplicates)}")

    @property
    def entity_names(self) -> tuple[str, ...]:
        return tuple(entity.entity_name for entity in self.entities)

    def entity(self, name: str) -> Entity | None:
        for entity in self.entities:
            if entity.entity_name == name:
                return entity
        return None

    def _canonical(self) -> tuple[object, ...]:
        entities = tuple(
            entity._canonical()  # noqa: SLF001
            for entity in sorted(self.entities, key=lambda item: item.entity_name)
        )
        return (self.source_name, self.source_type, self.ir_version, entities)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SchemaIR):
            return NotImplemented
        return self._canonical() == other._canonical()


def _duplicates(names: Iterable[str]) -> list[str]:
    counts = Counter(names)
    return sorted(name for name, count in counts.items() if count > 1)
