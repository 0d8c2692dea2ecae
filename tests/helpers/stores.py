from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from schemarecon.adapters.memory import InMemorySchemaStore
from schemarecon.domain.ports import StoreError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from schemarecon.domain.model import Entity


class BackupFailingStore(InMemorySchemaStore):
    async def create_backup(self, names: Sequence[str]) -> str:
        raise StoreError("disk full")


class WriteFailingStore(InMemorySchemaStore):
    """Rejects writes of the named entities."""

    def __init__(self, entities: Sequence[Entity], *, reject: set[str]) -> None:
        super().__init__(entities)
        self.reject = reject

    async def write_entity(self, entity: Entity, *, replacing: str | None = None) -> None:
        if entity.entity_name in self.reject:
            raise StoreError(f"write of {entity.entity_name} rejected")
        await super().write_entity(entity, replacing=replacing)


class SlowStore(InMemorySchemaStore):
    """Every write takes ``delay`` seconds; ``write_started`` is set when one begins."""

    def __init__(self, entities: Sequence[Entity], *, delay: float) -> None:
        super().__init__(entities)
        self.delay = delay
        self.write_started = asyncio.Event()

    async def write_entity(self, entity: Entity, *, replacing: str | None = None) -> None:
        self.write_started.set()
        await asyncio.sleep(self.delay)
        await super().write_entity(entity, replacing=replacing)
