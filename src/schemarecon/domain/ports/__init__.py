"""Domain port definitions for adapters."""

from __future__ import annotations

from .loading import LoadRequest, SchemaLoader
from .stores import SchemaStore, StoreConnectionError, StoreError

__all__ = [
    "LoadRequest",
    "SchemaLoader",
    "SchemaStore",
    "StoreConnectionError",
    "StoreError",
]
