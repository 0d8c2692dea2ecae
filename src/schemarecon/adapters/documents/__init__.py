"""Versioned JSON wire documents."""

from __future__ import annotations

from .codec import decode_json, encode_document, parse_document
from .schema import (
    DOCUMENT_VERSION,
    ActionDocument,
    ApplyOptions,
    ApplyResultDocument,
    ApplyRuntimeConfig,
    BuildConfig,
    ChangeDocument,
    CompareOptions,
    ComparisonDocument,
    EntityDocument,
    ErrorDocument,
    FieldDocument,
    PlanDocument,
    ResolveOptions,
    SchemaIRDocument,
    ValidationReportDocument,
)

__all__ = [
    "DOCUMENT_VERSION",
    "ActionDocument",
    "ApplyOptions",
    "ApplyResultDocument",
    "ApplyRuntimeConfig",
    "BuildConfig",
    "ChangeDocument",
    "CompareOptions",
    "ComparisonDocument",
    "EntityDocument",
    "ErrorDocument",
    "FieldDocument",
    "PlanDocument",
    "ResolveOptions",
    "SchemaIRDocument",
    "ValidationReportDocument",
    "decode_json",
    "encode_document",
    "parse_document",
]
