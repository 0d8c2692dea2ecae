"""Ports for producing ``SchemaIR`` snapshots from external sources."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from schemarecon.domain.model import SourceType

if TYPE_CHECKING:
    from collections.abc import Mapping

    from schemarecon.domain.model import SchemaIR


@dataclass(frozen=True, slots=True, kw_only=True)
class LoadRequest:
    """Where to read a schema from and how."""

    source_type: SourceType
    format: str
    path: str | None = None
    options: Mapping[str, object] = field(default_factory=dict["str", "object"])


@runtime_checkable
class SchemaLoader(Protocol):
    """Callable port turning one ``LoadRequest`` into a snapshot."""

    def __call__(self, request: LoadRequest) -> SchemaIR: ...


__all__ = ["LoadRequest", "SchemaLoader"]
