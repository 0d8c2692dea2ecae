"""SQLAlchemy Core tables backing ``SqlAlchemySchemaStore``."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKeyConstraint,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
    Text,
    TypeDecorator,
)

from schemarecon.domain.model import FieldType

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class JsonText(TypeDecorator[object]):
    """Arbitrary JSON value stored as text; SQL NULL and JSON ``null`` both read as ``None``."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: object, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(value, sort_keys=True)

    def process_result_value(self, value: str | None, dialect: Dialect) -> object:
        _ = dialect
        if value is None:
            return None
        return json.loads(value)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


def _utcnow() -> datetime:
    return datetime.now(UTC)


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

schema_entity_table = Table(
    "schema_entity",
    metadata,
    Column("name", String(255), nullable=False),
    Column("updated_at", UTCDateTime, nullable=False, default=_utcnow, onupdate=_utcnow),
    PrimaryKeyConstraint("name"),
)

schema_field_table = Table(
    "schema_field",
    metadata,
    Column("entity_name", String(255), nullable=False),
    Column("name", String(255), nullable=False),
    Column("position", Integer, nullable=False),
    Column(
        "declared_type",
        Enum(FieldType, native_enum=False, values_callable=lambda kinds: [k.value for k in kinds]),
        nullable=False,
    ),
    Column("nullable", Boolean, nullable=False, default=True),
    Column("default", JsonText, nullable=True),
    Column("is_primary_key", Boolean, nullable=False, default=False),
    PrimaryKeyConstraint("entity_name", "name"),
    ForeignKeyConstraint(["entity_name"], ["schema_entity.name"]),
)

schema_backup_table = Table(
    "schema_backup",
    metadata,
    Column("ref", String(80), nullable=False),
    Column("created_at", UTCDateTime, nullable=False, default=_utcnow),
    Column("payload", JsonText, nullable=False),
    PrimaryKeyConstraint("ref"),
)


def create_tables(engine: Engine) -> None:
    """Create the store tables if they do not exist yet."""

    metadata.create_all(engine, checkfirst=True)
    log.debug("Schema store tables ready on %s", engine.url.render_as_string(hide_password=True))
