"""Application entry points: JSON documents in, JSON documents out.

Every operation validates its input documents before any engine component
runs and reports failures as ``SchemaReconError`` subclasses carrying a
stable error code.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import OperationalError

from schemarecon import __version__
from schemarecon.adapters.documents import (
    ApplyOptions,
    ApplyResultDocument,
    BuildConfig,
    CompareOptions,
    ComparisonDocument,
    PlanDocument,
    ResolveOptions,
    SchemaIRDocument,
    ValidationReportDocument,
    decode_json,
    encode_document,
    parse_document,
)
from schemarecon.adapters.ingestion import load_schema, make_request
from schemarecon.adapters.sqlalchemy import SqlAlchemySchemaStore
from schemarecon.config import ConfigurationError, get_database_config, get_engine_defaults
from schemarecon.domain.apply import (
    ApplyConfig,
    BackupError,
    InvalidPlanError,
    PlanApplier,
    rollback,
)
from schemarecon.domain.comparison import CompareConfig
from schemarecon.domain.comparison import compare as compare_schemas
from schemarecon.domain.model import SchemaModelError
from schemarecon.domain.ports import StoreConnectionError, StoreError
from schemarecon.domain.resolution import DEFAULT_AUTO_RESOLVE_THRESHOLD, ResolveConfig, propose
from schemarecon.domain.validation import ValidationReport, validate, validate_document
from schemarecon.errors import (
    DbConnectionError,
    InternalError,
    InvalidInputError,
    JsonDocumentError,
    OperationCancelledError,
    OperationTimeoutError,
    SchemaReconError,
    SourceIOError,
)

if TYPE_CHECKING:
    from schemarecon.domain.model import SchemaIR
    from schemarecon.domain.ports import SchemaStore

type DocumentInput = str | bytes | Mapping[str, object] | None

log = getLogger(__name__)


def validation_messages(exc: ValidationError) -> list[str]:
    messages: list[str] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        messages.append(f"{location}: {error['msg']}" if location else error["msg"])
    return messages


@contextmanager
def _boundary(operation: str) -> Iterator[None]:
    """Translate everything raised inside an operation into the error taxonomy."""

    try:
        yield
    except SchemaReconError:
        raise
    except json.JSONDecodeError as exc:
        raise JsonDocumentError(
            f"Invalid JSON: {exc.msg} (line {exc.lineno}, column {exc.colno})",
            details={"operation": operation},
        ) from exc
    except ValidationError as exc:
        raise InvalidInputError(
            f"Invalid input for {operation}",
            details={"operation": operation, "errors": validation_messages(exc)},
        ) from exc
    except (SchemaModelError, InvalidPlanError, ConfigurationError) as exc:
        raise InvalidInputError(str(exc), details={"operation": operation}) from exc
    except (StoreConnectionError, OperationalError) as exc:
        raise DbConnectionError(str(exc), details={"operation": operation}) from exc
    except (BackupError, StoreError) as exc:
        raise SourceIOError(str(exc), details={"operation": operation}) from exc
    except Exception as exc:
        log.exception("Unexpected error during %s", operation)
        raise InternalError(f"{operation} failed: {exc}", details={"operation": operation}) from exc


def _load[M: BaseModel](model: type[M], value: DocumentInput) -> M:
    if isinstance(value, Mapping):
        return model.model_validate(value)
    return parse_document(model, value)


def _schema(value: DocumentInput) -> SchemaIR:
    if value is None:
        raise InvalidInputError("A schema document is required")
    return _load(SchemaIRDocument, value).to_domain()


async def build_ir(
    source_type: str,
    format: str,  # noqa: A002
    path: str | None = None,
    config: DocumentInput = None,
) -> str:
    """Ingest one source and return its ``SchemaIR`` document."""

    with _boundary("build_ir"):
        build_config = _load(BuildConfig, config)
        options = build_config.model_dump(exclude_unset=True)
        request = make_request(source_type, format, path, options)
        log.info("Building IR from %s/%s %s", request.source_type, request.format, path or "")
        try:
            async with asyncio.timeout(build_config.connect_timeout_seconds):
                schema = await asyncio.to_thread(load_schema, request)
        except TimeoutError as exc:
            raise OperationTimeoutError(
                f"build_ir timed out after {build_config.connect_timeout_seconds}s",
                details={"source_type": request.source_type.value, "format": request.format},
            ) from exc
        return encode_document(SchemaIRDocument.from_domain(schema))


async def compare(ir_a: DocumentInput, ir_b: DocumentInput, options: DocumentInput = None) -> str:
    """Compare two IR documents and return a comparison document."""

    with _boundary("compare"):
        a = _schema(ir_a)
        b = _schema(ir_b)
        parsed = _load(CompareOptions, options)
        defaults = get_engine_defaults()
        threshold = parsed.threshold
        config = CompareConfig(
            threshold=defaults.compare_threshold if threshold is None else threshold,
            strategy=parsed.strategy or defaults.compare_strategy,
            ignore_fields=tuple(parsed.ignore_fields),
        )
        result = compare_schemas(a, b, config)
        log.info(
            "Compared %s with %s: similarity=%.4f (+%d -%d ~%d)",
            a.source_name,
            b.source_name,
            result.similarity,
            result.statistics.added_count,
            result.statistics.removed_count,
            result.statistics.modified_count,
        )
        return encode_document(ComparisonDocument.from_domain(result))


async def propose_resolution(
    comparison_result: DocumentInput,
    options: DocumentInput = None,
) -> str:
    """Turn a comparison document into a resolution plan document."""

    with _boundary("propose_resolution"):
        if comparison_result is None:
            raise InvalidInputError("A comparison document is required")
        diff = _load(ComparisonDocument, comparison_result).to_domain()
        parsed = _load(ResolveOptions, options)
        defaults = get_engine_defaults()
        config = ResolveConfig(
            strategy=parsed.strategy or defaults.resolve_strategy,
            prefer_source=parsed.prefer_source or defaults.prefer_source,
            auto_resolve_threshold=(
                parsed.auto_resolve_threshold
                if parsed.auto_resolve_threshold is not None
                else DEFAULT_AUTO_RESOLVE_THRESHOLD
            ),
        )
        plan = propose(diff, config)
        log.info("Proposed plan %s with %d action(s)", plan.plan_id, len(plan.actions))
        return encode_document(PlanDocument.from_domain(plan))


async def apply_resolution(
    plan: DocumentInput,
    options: DocumentInput = None,
    *,
    store: SchemaStore | None = None,
) -> str:
    """Apply a plan document to ``store`` (or the configured database store)."""

    with _boundary("apply_resolution"):
        if plan is None:
            raise InvalidInputError("A plan document is required")
        resolution_plan = _load(PlanDocument, plan).to_domain()
        parsed = _load(ApplyOptions, options)
        timeout = parsed.config.timeout_seconds or get_engine_defaults().apply_timeout_seconds
        config = ApplyConfig(
            dry_run=parsed.dry_run,
            backup=parsed.backup,
            stop_on_failure=parsed.config.stop_on_failure,
            timeout_seconds=timeout,
        )

        owned: SqlAlchemySchemaStore | None = None
        if store is None:
            uri = parsed.config.store_uri or get_database_config().uri
            owned = await asyncio.to_thread(SqlAlchemySchemaStore.from_uri, uri)
            store = owned

        applier = PlanApplier(store)
        try:
            result = await applier.apply(resolution_plan, config)
        except asyncio.CancelledError as exc:
            task = asyncio.current_task()
            if task is not None:
                task.uncancel()
            partial = applier.last_result
            partial_document = (
                ApplyResultDocument.from_domain(partial).model_dump(mode="json")
                if partial is not None
                else None
            )
            raise OperationCancelledError(
                f"Apply of {resolution_plan.plan_id} was cancelled",
                details={"partial_result": partial_document},
                partial_result=partial,
            ) from exc
        finally:
            if owned is not None:
                owned.dispose()

        log.info(
            "Applied plan %s: state=%s succeeded=%d failed=%d skipped=%d",
            result.plan_id,
            result.state,
            result.succeeded,
            result.failed,
            result.skipped,
        )
        return encode_document(ApplyResultDocument.from_domain(result))


async def restore_backup(
    backup_ref: str,
    *,
    store: SchemaStore | None = None,
    store_uri: str | None = None,
) -> None:
    """Roll a store back to the snapshot taken before an apply run."""

    with _boundary("restore_backup"):
        if not backup_ref.strip():
            raise InvalidInputError("A backup reference is required")
        owned: SqlAlchemySchemaStore | None = None
        if store is None:
            uri = store_uri or get_database_config().uri
            owned = await asyncio.to_thread(SqlAlchemySchemaStore.from_uri, uri)
            store = owned
        try:
            await rollback(store, backup_ref)
        finally:
            if owned is not None:
                owned.dispose()


async def validate_ir(ir: DocumentInput) -> str:
    """Validate an IR document; problems are reported in the document, never raised."""

    report = _validate_input(ir)
    return encode_document(ValidationReportDocument.from_domain(report))


def _validate_input(ir: DocumentInput) -> ValidationReport:
    if isinstance(ir, Mapping):
        raw: object = ir
    elif ir is None:
        return ValidationReport(ok=False, errors=("Schema document is missing",))
    else:
        try:
            raw = decode_json(ir)
        except json.JSONDecodeError as exc:
            return ValidationReport(ok=False, errors=(f"Invalid JSON: {exc.msg}",))

    report = validate_document(raw)
    if not report.ok:
        return report
    try:
        schema = SchemaIRDocument.model_validate(raw).to_domain()
    except ValidationError as exc:
        return ValidationReport(
            ok=False, errors=tuple(validation_messages(exc)), summary=report.summary
        )
    except SchemaModelError as exc:
        return ValidationReport(ok=False, errors=(str(exc),), summary=report.summary)
    return validate(schema)


def ping() -> str:
    return "pong"


def version() -> str:
    return __version__
