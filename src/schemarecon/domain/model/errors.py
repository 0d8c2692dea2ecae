"""Errors raised while constructing or relating IR values."""

from __future__ import annotations


class SchemaModelError(ValueError):
    """Raised when an IR value violates a construction invariant."""


class DuplicateNameError(SchemaModelError):
    """Raised when entity or field names are not unique within their container."""


class InvalidIRVersionError(SchemaModelError):
    """Raised when ``ir_version`` is absent or cannot be parsed."""


class IncompatibleIRVersionError(SchemaModelError):
    """Raised when two snapshots with different major IR versions are compared."""
