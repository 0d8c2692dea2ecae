"""In-memory ``SchemaStore`` implementation, used for tests and memory sources."""

from __future__ import annotations

import itertools
import logging
from typing import TYPE_CHECKING

from schemarecon.domain.ports import StoreError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from schemarecon.domain.model import Entity, SchemaIR

log = logging.getLogger(__name__)


class InMemorySchemaStore:
    """Dictionary-backed store; ``writes`` counts successful mutations."""

    def __init__(self, entities: Iterable[Entity] = ()) -> None:
        self._entities: dict[str, Entity] = {entity.entity_name: entity for entity in entities}
        self._backups: dict[str, dict[str, Entity | None]] = {}
        self._backup_ids = itertools.count(1)
        self.writes = 0

    @classmethod
    def from_schema(cls, schema: SchemaIR) -> InMemorySchemaStore:
        return cls(schema.entities)

    @property
    def entities(self) -> tuple[Entity, ...]:
        return tuple(self._entities[name] for name in sorted(self._entities))

    async def get_entity(self, name: str) -> Entity | None:
        return self._entities.get(name)

    async def list_entities(self) -> tuple[str, ...]:
        return tuple(sorted(self._entities))

    async def write_entity(self, entity: Entity, *, replacing: str | None = None) -> None:
        if replacing is not None and replacing != entity.entity_name:
            self._entities.pop(replacing, None)
        self._entities[entity.entity_name] = entity
        self.writes += 1

    async def delete_entity(self, name: str) -> None:
        if self._entities.pop(name, None) is None:
            raise StoreError(f"Entity '{name}' does not exist")
        self.writes += 1

    async def create_backup(self, names: Sequence[str]) -> str:
        ref = f"memory-backup-{next(self._backup_ids)}"
        self._backups[ref] = {name: self._entities.get(name) for name in names}
        return ref

    async def restore_backup(self, ref: str) -> None:
        try:
            snapshot = self._backups[ref]
        except KeyError as exc:
            raise StoreError(f"Unknown backup: {ref}") from exc
        for name, entity in snapshot.items():
            if entity is None:
                self._entities.pop(name, None)
            else:
                self._entities[name] = entity
        log.debug("Restored %d entities from %s", len(snapshot), ref)
