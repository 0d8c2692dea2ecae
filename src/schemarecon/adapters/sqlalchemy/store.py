"""SQLAlchemy-backed ``SchemaStore``.

Every mutation runs in its own transaction (``engine.begin()``), so a write
is either fully visible or not at all. Blocking database calls run in a
worker thread through ``asyncio.to_thread``.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Mapping
from typing import TYPE_CHECKING, cast

from sqlalchemy import create_engine, delete, insert, select
from sqlalchemy.exc import SQLAlchemyError

from schemarecon.domain.model import Entity, Field, FieldType
from schemarecon.domain.ports import StoreConnectionError, StoreError

from .mappings import (
    create_tables,
    schema_backup_table,
    schema_entity_table,
    schema_field_table,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from sqlalchemy.engine import Connection, Engine

log = logging.getLogger(__name__)


class SqlAlchemySchemaStore:
    """Persist entity definitions in the ``schema_entity``/``schema_field`` tables."""

    def __init__(self, engine: Engine, *, create: bool = True) -> None:
        self._engine = engine
        if create:
            create_tables(engine)

    @classmethod
    def from_uri(cls, uri: str) -> SqlAlchemySchemaStore:
        try:
            engine = create_engine(uri, future=True)
        except (SQLAlchemyError, ImportError) as exc:
            raise StoreConnectionError(f"Cannot open schema store: {exc}") from exc
        try:
            return cls(engine)
        except SQLAlchemyError as exc:
            engine.dispose()
            location = engine.url.render_as_string(hide_password=True)
            raise StoreConnectionError(f"Cannot open schema store at {location}: {exc}") from exc

    @property
    def engine(self) -> Engine:
        return self._engine

    def dispose(self) -> None:
        self._engine.dispose()

    # --- SchemaStore ----------------------------------------------------------

    async def get_entity(self, name: str) -> Entity | None:
        return await self._run(lambda connection: _load_entity(connection, name), write=False)

    async def list_entities(self) -> tuple[str, ...]:
        def list_names(connection: Connection) -> tuple[str, ...]:
            rows = connection.execute(
                select(schema_entity_table.c.name).order_by(schema_entity_table.c.name)
            )
            return tuple(row.name for row in rows)

        return await self._run(list_names, write=False)

    async def write_entity(self, entity: Entity, *, replacing: str | None = None) -> None:
        def write(connection: Connection) -> None:
            if replacing is not None and replacing != entity.entity_name:
                _delete_entity(connection, replacing)
            _delete_entity(connection, entity.entity_name)
            _insert_entity(connection, entity)

        await self._run(write, write=True)
        log.debug("Wrote entity %s (replacing=%s)", entity.entity_name, replacing)

    async def delete_entity(self, name: str) -> None:
        def remove(connection: Connection) -> None:
            if not _delete_entity(connection, name):
                raise StoreError(f"Entity '{name}' does not exist")

        await self._run(remove, write=True)

    async def create_backup(self, names: Sequence[str]) -> str:
        ref = f"backup-{uuid.uuid4().hex}"

        def snapshot(connection: Connection) -> None:
            payload = {name: _entity_payload(_load_entity(connection, name)) for name in names}
            connection.execute(insert(schema_backup_table).values(ref=ref, payload=payload))

        await self._run(snapshot, write=True)
        return ref

    async def restore_backup(self, ref: str) -> None:
        def restore(connection: Connection) -> None:
            row = connection.execute(
                select(schema_backup_table.c.payload).where(schema_backup_table.c.ref == ref)
            ).one_or_none()
            if row is None:
                raise StoreError(f"Unknown backup: {ref}")
            payload = cast(Mapping[str, object], row.payload)
            for name, raw in payload.items():
                _delete_entity(connection, name)
                if raw is not None:
                    _insert_entity(connection, _entity_from_payload(name, raw))

        await self._run(restore, write=True)

    # --- helpers ----------------------------------------------------------------

    async def _run[T](self, work: Callable[[Connection], T], *, write: bool) -> T:
        def run() -> T:
            try:
                if write:
                    with self._engine.begin() as connection:
                        return work(connection)
                with self._engine.connect() as connection:
                    return work(connection)
            except SQLAlchemyError as exc:
                raise StoreError(f"Schema store operation failed: {exc}") from exc

        return await asyncio.to_thread(run)


def _load_entity(connection: Connection, name: str) -> Entity | None:
    exists = connection.execute(
        select(schema_entity_table.c.name).where(schema_entity_table.c.name == name)
    ).one_or_none()
    if exists is None:
        return None
    rows = connection.execute(
        select(schema_field_table)
        .where(schema_field_table.c.entity_name == name)
        .order_by(schema_field_table.c.position)
    )
    fields = tuple(
        Field(
            name=row.name,
            declared_type=row.declared_type,
            nullable=row.nullable,
            default=row.default,
            is_primary_key=row.is_primary_key,
        )
        for row in rows
    )
    return Entity(entity_name=name, fields=fields)


def _insert_entity(connection: Connection, entity: Entity) -> None:
    connection.execute(insert(schema_entity_table).values(name=entity.entity_name))
    if not entity.fields:
        return
    connection.execute(
        insert(schema_field_table),
        [
            {
                "entity_name": entity.entity_name,
                "name": item.name,
                "position": position,
                "declared_type": item.declared_type,
                "nullable": item.nullable,
                "default": item.default,
                "is_primary_key": item.is_primary_key,
            }
            for position, item in enumerate(entity.fields)
        ],
    )


def _delete_entity(connection: Connection, name: str) -> bool:
    connection.execute(delete(schema_field_table).where(schema_field_table.c.entity_name == name))
    result = connection.execute(
        delete(schema_entity_table).where(schema_entity_table.c.name == name)
    )
    return result.rowcount > 0


def _entity_payload(entity: Entity | None) -> object:
    if entity is None:
        return None
    return [
        {
            "name": item.name,
            "declared_type": item.declared_type.value,
            "nullable": item.nullable,
            "default": item.default,
            "is_primary_key": item.is_primary_key,
        }
        for item in entity.fields
    ]


def _entity_from_payload(name: str, raw: object) -> Entity:
    items = cast(list[Mapping[str, object]], raw)
    return Entity(
        entity_name=name,
        fields=tuple(
            Field(
                name=str(item["name"]),
                declared_type=FieldType(str(item["declared_type"])),
                nullable=bool(item["nullable"]),
                default=item.get("default"),
                is_primary_key=bool(item["is_primary_key"]),
            )
            for item in items
        ),
    )
