"""Error taxonomy of the document boundary.

Every failure surfaced by ``schemarecon.app`` is a ``SchemaReconError`` with a
stable ``code``; ``to_document()`` gives the JSON error shape.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from collections.abc import Mapping


class ErrorCode(StrEnum):
    INVALID_INPUT = "INVALID_INPUT"
    UNSUPPORTED_SOURCE = "UNSUPPORTED_SOURCE"
    UNSUPPORTED_FORMAT = "UNSUPPORTED_FORMAT"
    DB_CONNECTION_FAILED = "DB_CONNECTION_FAILED"
    IO_ERROR = "IO_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    CANCELLED = "CANCELLED"
    TIMEOUT = "TIMEOUT"
    JSON_ERROR = "JSON_ERROR"


class SchemaReconError(Exception):
    """Base class for errors reported across the document boundary."""

    code: ClassVar[ErrorCode] = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, *, details: Mapping[str, object] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: dict[str, object] = dict(details or {})

    def to_document(self) -> dict[str, object]:
        return {
            "code": str(self.code),
            "message": self.message,
            "details": self.details or None,
        }


class InvalidInputError(SchemaReconError):
    code = ErrorCode.INVALID_INPUT


class JsonDocumentError(SchemaReconError):
    code = ErrorCode.JSON_ERROR


class UnsupportedSourceError(SchemaReconError):
    code = ErrorCode.UNSUPPORTED_SOURCE


class UnsupportedFormatError(SchemaReconError):
    code = ErrorCode.UNSUPPORTED_FORMAT


class DbConnectionError(SchemaReconError):
    code = ErrorCode.DB_CONNECTION_FAILED


class SourceIOError(SchemaReconError):
    code = ErrorCode.IO_ERROR


class InternalError(SchemaReconError):
    code = ErrorCode.INTERNAL_ERROR


class OperationTimeoutError(SchemaReconError):
    code = ErrorCode.TIMEOUT


class OperationCancelledError(SchemaReconError):
    """The operation was cancelled; ``partial_result`` holds what completed, if anything."""

    code = ErrorCode.CANCELLED

    def __init__(
        self,
        message: str,
        *,
        details: Mapping[str, object] | None = None,
        partial_result: object | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.partial_result = partial_result
