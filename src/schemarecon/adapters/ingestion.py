"""Dispatch of ``LoadRequest``s to the loader for their source type and format."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from schemarecon.domain.model import SourceType
from schemarecon.domain.ports import LoadRequest
from schemarecon.errors import UnsupportedFormatError, UnsupportedSourceError

from .files import FILE_FORMATS, MEMORY_FORMATS, load_file, load_memory
from .sqlalchemy import DB_FORMATS, load_database

if TYPE_CHECKING:
    from collections.abc import Mapping

    from schemarecon.domain.model import SchemaIR
    from schemarecon.domain.ports import SchemaLoader

SUPPORTED_FORMATS: Final[dict[SourceType, tuple[str, ...]]] = {
    SourceType.FILE: FILE_FORMATS,
    SourceType.DB: DB_FORMATS,
    SourceType.MEMORY: MEMORY_FORMATS,
}
LOADERS: Final[dict[SourceType, SchemaLoader]] = {
    SourceType.FILE: load_file,
    SourceType.DB: load_database,
    SourceType.MEMORY: load_memory,
}


def make_request(
    source_type: str,
    format: str,  # noqa: A002
    path: str | None = None,
    options: Mapping[str, object] | None = None,
) -> LoadRequest:
    """Validate source type and format; raise the matching unsupported-* error otherwise."""

    try:
        kind = SourceType(source_type.strip().lower())
    except ValueError as exc:
        supported = ", ".join(item.value for item in SourceType)
        raise UnsupportedSourceError(
            f"Unsupported source type: {source_type!r} (expected one of {supported})",
            details={"source_type": source_type},
        ) from exc
    normalized = format.strip().lower()
    if normalized not in SUPPORTED_FORMATS[kind]:
        raise UnsupportedFormatError(
            f"Unsupported format {format!r} for {kind} sources "
            f"(expected one of {', '.join(SUPPORTED_FORMATS[kind])})",
            details={"source_type": kind.value, "format": format},
        )
    return LoadRequest(source_type=kind, format=normalized, path=path, options=dict(options or {}))


def load_schema(request: LoadRequest) -> SchemaIR:
    return LOADERS[request.source_type](request)
