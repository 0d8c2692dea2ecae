"""File and in-memory schema loaders.

Supported layouts:
- a JSON schema document (object with ``entities``)
- a JSON array of records, becoming one entity named after the file
- a JSON object mapping entity names to arrays of records
- a CSV file whose header row names the fields of one entity

Record layouts infer field types from sampled values.
"""

from __future__ import annotations

import csv
import io
import json
import logging
from collections.abc import Mapping, Sequence
from datetime import date, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Final, cast
from uuid import UUID

from schemarecon.domain.model import (
    CURRENT_IR_VERSION,
    Entity,
    Field,
    FieldType,
    SchemaIR,
    SourceType,
    widen,
)
from schemarecon.errors import InvalidInputError, JsonDocumentError, SourceIOError

from .documents import BuildConfig, SchemaIRDocument

if TYPE_CHECKING:
    from schemarecon.domain.ports import LoadRequest

log = logging.getLogger(__name__)

FILE_FORMATS: Final = ("json", "csv")
MEMORY_FORMATS: Final = ("json", "records")

_TRUE_FALSE: Final = frozenset({"true", "false"})


# --- type inference -----------------------------------------------------------


def infer_value_type(value: object, *, parse_strings: bool = True) -> FieldType | None:
    """Type tag of one sample value; ``None`` for null or empty samples."""

    match value:
        case None:
            return None
        case bool():
            return FieldType.BOOLEAN
        case int():
            return FieldType.INTEGER
        case float():
            return FieldType.FLOAT
        case Mapping() | list():
            return FieldType.JSON
        case str() if not value.strip():
            return None
        case str() if parse_strings:
            return _infer_text_type(value.strip())
        case str():
            return FieldType.STRING
        case _:
            return FieldType.UNKNOWN


def _infer_text_type(text: str) -> FieldType:
    if text.lower() in _TRUE_FALSE:
        return FieldType.BOOLEAN
    try:
        int(text)
    except ValueError:
        pass
    else:
        return FieldType.INTEGER
    try:
        float(text)
    except ValueError:
        pass
    else:
        return FieldType.FLOAT
    try:
        date.fromisoformat(text)
    except ValueError:
        pass
    else:
        return FieldType.DATE
    try:
        datetime.fromisoformat(text)
    except ValueError:
        pass
    else:
        return FieldType.DATETIME
    try:
        UUID(text)
    except ValueError:
        pass
    else:
        return FieldType.UUID
    return FieldType.STRING


class _FieldSampler:
    """Accumulates type and nullability evidence for one column."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.declared_type: FieldType | None = None
        self.nullable = False

    def observe(self, value: object, *, parse_strings: bool) -> None:
        observed = infer_value_type(value, parse_strings=parse_strings)
        if observed is None:
            self.nullable = True
        elif self.declared_type is None:
            self.declared_type = observed
        else:
            self.declared_type = widen(self.declared_type, observed)

    def to_field(self) -> Field:
        return Field(
            name=self.name,
            declared_type=self.declared_type or FieldType.UNKNOWN,
            nullable=self.nullable or self.declared_type is None,
        )


def entity_from_records(
    entity_name: str,
    records: Sequence[object],
    *,
    sample_size: int = 100,
    infer_types: bool = True,
) -> Entity:
    """Build one entity from a list of JSON objects; keys become fields in first-seen order."""

    samplers: dict[str, _FieldSampler] = {}
    for index, record in enumerate(records):
        if not isinstance(record, Mapping):
            raise InvalidInputError(
                f"Record #{index} of '{entity_name}' is not an object",
                details={"entity": entity_name, "index": index},
            )
        row = cast(Mapping[str, object], record)
        for key in row:
            if key not in samplers:
                samplers[key] = _FieldSampler(key)
                # absent from every earlier record
                samplers[key].nullable = index > 0
        for key, sampler in samplers.items():
            if key not in row:
                sampler.nullable = True
            elif infer_types and index < sample_size:
                sampler.observe(row[key], parse_strings=False)
    return Entity(
        entity_name=entity_name,
        fields=tuple(sampler.to_field() for sampler in samplers.values()),
    )


def entity_from_rows(
    entity_name: str,
    header: Sequence[str],
    rows: Sequence[Sequence[str]],
    *,
    sample_size: int = 100,
    infer_types: bool = True,
) -> Entity:
    names = [name.strip() for name in header]
    samplers = [_FieldSampler(name) for name in names]
    for row in rows[:sample_size]:
        for position, sampler in enumerate(samplers):
            value = row[position] if position < len(row) else None
            if infer_types:
                sampler.observe(value, parse_strings=True)
            elif value is None or not value.strip():
                sampler.nullable = True
            else:
                sampler.declared_type = FieldType.STRING
    return Entity(entity_name=entity_name, fields=tuple(sampler.to_field() for sampler in samplers))


# --- layouts ------------------------------------------------------------------


def schema_from_data(
    data: object,
    *,
    source_name: str,
    source_type: SourceType,
    source_format: str,
    config: BuildConfig,
) -> SchemaIR:
    """Interpret decoded JSON data as one of the supported layouts."""

    if isinstance(data, Mapping) and "entities" in data:
        document = dict(cast(Mapping[str, object], data))
        document.setdefault("source_name", source_name)
        document.setdefault("source_type", source_type.value)
        document.setdefault("ir_version", str(CURRENT_IR_VERSION))
        return SchemaIRDocument.model_validate(document).to_domain()

    if isinstance(data, list):
        records = cast(list[object], data)
        entities = (
            entity_from_records(
                config.entity_name or source_name,
                records,
                sample_size=config.sample_size,
                infer_types=config.infer_types,
            ),
        )
    elif isinstance(data, Mapping):
        mapping = cast(Mapping[str, object], data)
        entities = tuple(
            entity_from_records(
                name,
                _records(name, records),
                sample_size=config.sample_size,
                infer_types=config.infer_types,
            )
            for name, records in mapping.items()
        )
    else:
        raise InvalidInputError(
            "Unsupported JSON layout: expected a schema document, an array of records "
            "or an object of record arrays",
            details={"type": type(data).__name__},
        )

    return SchemaIR(
        source_name=source_name,
        source_type=source_type,
        ir_version=CURRENT_IR_VERSION,
        entities=entities,
        source_format=source_format,
    )


def _records(name: str, value: object) -> list[object]:
    if not isinstance(value, list):
        raise InvalidInputError(
            f"Entity '{name}' must map to an array of records", details={"entity": name}
        )
    return cast(list[object], value)


def parse_csv(
    text: str,
    *,
    delimiter: str = ",",
    has_header: bool = True,
) -> tuple[list[str], list[list[str]]]:
    reader = csv.reader(io.StringIO(text), delimiter=delimiter)
    rows = [row for row in reader if any(cell.strip() for cell in row)]
    if not rows:
        raise InvalidInputError("CSV file is empty")
    if has_header:
        return rows[0], rows[1:]
    width = max(len(row) for row in rows)
    return [f"column_{index + 1}" for index in range(width)], rows


# --- loaders ------------------------------------------------------------------


def _read_text(path: Path, encoding: str) -> str:
    try:
        return path.read_text(encoding=encoding)
    except OSError as exc:
        raise SourceIOError(
            f"Failed to read {path}: {exc.strerror or exc}", details={"path": str(path)}
        ) from exc
    except UnicodeDecodeError as exc:
        raise InvalidInputError(
            f"File is not valid {encoding}: {path}", details={"path": str(path)}
        ) from exc


def load_json_file(path: Path, config: BuildConfig) -> SchemaIR:
    text = _read_text(path, config.encoding)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidInputError(
            f"File is not valid JSON: {exc.msg} (line {exc.lineno})", details={"path": str(path)}
        ) from exc
    return schema_from_data(
        data,
        source_name=config.source_name or path.stem,
        source_type=SourceType.FILE,
        source_format="json",
        config=config,
    )


def load_csv_file(path: Path, config: BuildConfig) -> SchemaIR:
    text = _read_text(path, config.encoding)
    header, rows = parse_csv(text, delimiter=config.delimiter, has_header=config.has_header)
    entity = entity_from_rows(
        config.entity_name or path.stem,
        header,
        rows,
        sample_size=config.sample_size,
        infer_types=config.infer_types,
    )
    log.debug("Read %d CSV column(s) from %s", len(entity.fields), path)
    return SchemaIR(
        source_name=config.source_name or path.stem,
        source_type=SourceType.FILE,
        ir_version=CURRENT_IR_VERSION,
        entities=(entity,),
        source_format="csv",
    )


def load_file(request: LoadRequest) -> SchemaIR:
    """``SchemaLoader`` for ``file`` sources."""

    if request.path is None:
        raise InvalidInputError("A path is required for file sources")
    config = BuildConfig.model_validate(dict(request.options))
    path = Path(request.path)
    match request.format:
        case "json":
            return load_json_file(path, config)
        case "csv":
            return load_csv_file(path, config)
        case _:
            raise AssertionError(f"unsupported file format reached the loader: {request.format}")


def load_memory(request: LoadRequest) -> SchemaIR:
    """``SchemaLoader`` for ``memory`` sources; data comes from the ``data`` option."""

    config = BuildConfig.model_validate(dict(request.options))
    data = config.data
    if isinstance(data, str):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as exc:
            raise JsonDocumentError(f"Inline data is not valid JSON: {exc.msg}") from exc
    if data is None:
        raise InvalidInputError("Memory sources need schema or records under config.data")
    return schema_from_data(
        data,
        source_name=config.source_name or "memory",
        source_type=SourceType.MEMORY,
        source_format=request.format,
        config=config,
    )
