"""SQLAlchemy adapter package: schema store and database reflection."""

from __future__ import annotations

from .mappings import (
    create_tables,
    metadata,
    schema_backup_table,
    schema_entity_table,
    schema_field_table,
)
from .reflection import DB_FORMATS, field_type_for, load_database, reflect_entities
from .store import SqlAlchemySchemaStore

__all__ = [
    "DB_FORMATS",
    "SqlAlchemySchemaStore",
    "create_tables",
    "field_type_for",
    "load_database",
    "metadata",
    "reflect_entities",
    "schema_backup_table",
    "schema_entity_table",
    "schema_field_table",
]
