"""Database schema ingestion through SQLAlchemy reflection."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Final

from sqlalchemy import URL, create_engine, inspect, make_url
from sqlalchemy import types as sqltypes
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from schemarecon.adapters.documents import BuildConfig
from schemarecon.domain.model import (
    CURRENT_IR_VERSION,
    Entity,
    Field,
    FieldType,
    SchemaIR,
    SourceType,
)
from schemarecon.errors import DbConnectionError, InvalidInputError

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine
    from sqlalchemy.engine.interfaces import ReflectedColumn

    from schemarecon.domain.ports import LoadRequest

log = logging.getLogger(__name__)

DB_FORMATS: Final = ("sqlite", "mysql", "postgres", "postgresql")

_DRIVERS: Final = {
    "mysql": "mysql+pymysql",
    "postgres": "postgresql+psycopg",
    "postgresql": "postgresql+psycopg",
}
_DEFAULT_PORTS: Final = {"mysql": 3306, "postgres": 5432, "postgresql": 5432}

# most specific first: Float is a Numeric, DateTime is not a Date
_TYPE_CLASSES: Final[tuple[tuple[type[sqltypes.TypeEngine[object]], FieldType], ...]] = (
    (sqltypes.Boolean, FieldType.BOOLEAN),
    (sqltypes.Integer, FieldType.INTEGER),
    (sqltypes.Float, FieldType.FLOAT),
    (sqltypes.Numeric, FieldType.DECIMAL),
    (sqltypes.DateTime, FieldType.DATETIME),
    (sqltypes.Date, FieldType.DATE),
    (sqltypes.Time, FieldType.DATETIME),
    (sqltypes.JSON, FieldType.JSON),
    (sqltypes.LargeBinary, FieldType.BINARY),
    (sqltypes.Uuid, FieldType.UUID),
    (sqltypes.String, FieldType.STRING),
)


def field_type_for(column_type: sqltypes.TypeEngine[object]) -> FieldType:
    for type_class, field_type in _TYPE_CLASSES:
        if isinstance(column_type, type_class):
            return field_type
    return FieldType.parse(type(column_type).__name__)


def database_url(request: LoadRequest, config: BuildConfig) -> str | URL:
    """Connection URL for ``request``; an explicit ``url`` option wins."""

    if config.url:
        return config.url
    if request.format == "sqlite":
        location = request.path or config.database
        if not location:
            raise InvalidInputError("SQLite path is required")
        path = Path(location)
        if not path.is_file():
            raise DbConnectionError(
                f"SQLite database not found: {path}", details={"path": str(path)}
            )
        return f"sqlite+pysqlite:///{path}"

    if request.path and "://" in request.path:
        return request.path
    missing = [name for name in ("host", "database", "username") if not getattr(config, name)]
    if missing:
        raise InvalidInputError(
            f"{request.format} sources need {', '.join(missing)}", details={"missing": missing}
        )
    return URL.create(
        _DRIVERS[request.format],
        username=config.username,
        password=config.password,
        host=config.host,
        port=config.port or _DEFAULT_PORTS[request.format],
        database=config.database,
    )


def _field_from_column(column: ReflectedColumn, *, primary_keys: set[str]) -> Field:
    default = column.get("default")
    return Field(
        name=column["name"],
        declared_type=field_type_for(column["type"]),
        nullable=bool(column.get("nullable", True)),
        default=str(default) if default is not None else None,
        is_primary_key=column["name"] in primary_keys,
    )


def reflect_entities(engine: Engine, *, tables: list[str] | None = None) -> tuple[Entity, ...]:
    inspector = inspect(engine)
    names = sorted(inspector.get_table_names())
    if tables:
        unknown = sorted(set(tables) - set(names))
        if unknown:
            raise InvalidInputError(
                f"Unknown table(s): {', '.join(unknown)}", details={"tables": unknown}
            )
        names = [name for name in names if name in tables]
    entities: list[Entity] = []
    for name in names:
        primary_keys = set(inspector.get_pk_constraint(name).get("constrained_columns") or ())
        fields = tuple(
            _field_from_column(column, primary_keys=primary_keys)
            for column in inspector.get_columns(name)
        )
        entities.append(Entity(entity_name=name, fields=fields))
    return tuple(entities)


def load_database(request: LoadRequest) -> SchemaIR:
    """``SchemaLoader`` for ``db`` sources."""

    config = BuildConfig.model_validate(dict(request.options))
    try:
        url = make_url(database_url(request, config))
    except ArgumentError as exc:
        raise DbConnectionError(f"Invalid {request.format} connection URL") from exc
    rendered = url.render_as_string(hide_password=True)
    try:
        engine = create_engine(url, future=True)
    except (ArgumentError, ImportError) as exc:
        raise DbConnectionError(
            f"Cannot create a {request.format} engine: {exc}", details={"url": rendered}
        ) from exc
    try:
        entities = reflect_entities(engine, tables=config.tables)
    except SQLAlchemyError as exc:
        raise DbConnectionError(
            f"Failed to connect to {request.format}: {exc}", details={"url": rendered}
        ) from exc
    finally:
        engine.dispose()

    log.info("Reflected %d table(s) from %s", len(entities), rendered)
    return SchemaIR(
        source_name=config.source_name or _source_name(request, config),
        source_type=SourceType.DB,
        ir_version=CURRENT_IR_VERSION,
        entities=entities,
        source_format=request.format,
    )


def _source_name(request: LoadRequest, config: BuildConfig) -> str:
    if config.database:
        return config.database
    if request.path and "://" not in request.path:
        return Path(request.path).stem
    return request.format
