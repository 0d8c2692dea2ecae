"""Public IR model surface."""

from __future__ import annotations

from .enums import FieldType, SourceType, type_compatibility, widen
from .errors import (
    DuplicateNameError,
    IncompatibleIRVersionError,
    InvalidIRVersionError,
    SchemaModelError,
)
from .schema import PATH_SEPARATOR, Entity, Field, FieldDefault, SchemaIR
from .versions import CURRENT_IR_VERSION, IRVersion, ensure_compatible

__all__ = [
    "CURRENT_IR_VERSION",
    "PATH_SEPARATOR",
    "DuplicateNameError",
    "Entity",
    "Field",
    "FieldDefault",
    "FieldType",
    "IRVersion",
    "IncompatibleIRVersionError",
    "InvalidIRVersionError",
    "SchemaIR",
    "SchemaModelError",
    "SourceType",
    "ensure_compatible",
    "type_compatibility",
    "widen",
]
