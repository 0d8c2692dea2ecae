"""Ports for reading and mutating the schema store targeted by a plan."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from schemarecon.domain.model import Entity


class StoreError(RuntimeError):
    """Raised by store implementations when a read or write cannot be carried out."""


class StoreConnectionError(StoreError):
    """Raised when the store cannot be opened or reached at all."""


@runtime_checkable
class SchemaStore(Protocol):
    """Entity-granular store contract used by the applier.

    Every write is atomic: after ``write_entity`` or ``delete_entity`` returns,
    the change is fully visible; if it raises, nothing changed.
    """

    async def get_entity(self, name: str) -> Entity | None: ...

    async def list_entities(self) -> tuple[str, ...]: ...

    async def write_entity(self, entity: Entity, *, replacing: str | None = None) -> None:
        """Store ``entity``, removing ``replacing`` in the same write when given."""
        ...

    async def delete_entity(self, name: str) -> None: ...

    async def create_backup(self, names: Sequence[str]) -> str:
        """Snapshot the named entities (absent ones included) and return a reference."""
        ...

    async def restore_backup(self, ref: str) -> None: ...
