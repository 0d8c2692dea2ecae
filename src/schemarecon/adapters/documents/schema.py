"""Pydantic models describing the JSON documents exchanged at the boundary.

The models are wire shapes only. ``to_domain``/``from_domain`` translate to and
from the frozen domain values; validation errors raised here are reported as
``INVALID_INPUT`` by the application layer.
"""

from __future__ import annotations

import codecs
from collections.abc import Mapping
from enum import StrEnum
from typing import cast

from pydantic import BaseModel, ConfigDict, Field, JsonValue, field_validator, model_validator

from schemarecon.domain import model as ir
from schemarecon.domain.apply import (
    ActionOutcome,
    ActionResult,
    ApplyResult,
    ApplyState,
    Interruption,
)
from schemarecon.domain.comparison import (
    AttributeDifference,
    Change,
    ChangeLevel,
    Changes,
    ChangeSet,
    CompareConfig,
    CompareStrategy,
    ComparisonResult,
    Statistics,
)
from schemarecon.domain.resolution import (
    PLAN_VERSION,
    Action,
    ActionKind,
    ResolutionPlan,
    ResolveStrategy,
    SourcePreference,
)
from schemarecon.domain.validation import ValidationReport, ValidationSummary

DOCUMENT_VERSION = "1.0"


def _plain(value: object) -> JsonValue:
    if isinstance(value, StrEnum):
        return value.value
    return cast(JsonValue, value)


class DocumentModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# --- IR -----------------------------------------------------------------------


class FieldDocument(DocumentModel):
    name: str
    declared_type: str = Field(default=ir.FieldType.UNKNOWN.value, alias="type")
    nullable: bool = True
    default: JsonValue = None
    is_primary_key: bool = Field(default=False, alias="primary_key")

    @field_validator("declared_type", mode="before")
    @classmethod
    def _canonical_type(cls, value: object) -> object:
        if value is None or isinstance(value, str):
            return ir.FieldType.parse(value).value
        return value

    def to_domain(self) -> ir.Field:
        return ir.Field(
            name=self.name,
            declared_type=ir.FieldType(self.declared_type),
            nullable=self.nullable,
            default=self.default,
            is_primary_key=self.is_primary_key,
        )

    @classmethod
    def from_domain(cls, item: ir.Field) -> FieldDocument:
        return cls(
            name=item.name,
            declared_type=item.declared_type.value,
            nullable=item.nullable,
            default=_plain(item.default),
            is_primary_key=item.is_primary_key,
        )


class EntityDocument(DocumentModel):
    entity_name: str
    fields: list[FieldDocument] = Field(default_factory=list["FieldDocument"])

    def to_domain(self) -> ir.Entity:
        return ir.Entity(
            entity_name=self.entity_name,
            fields=tuple(item.to_domain() for item in self.fields),
        )

    @classmethod
    def from_domain(cls, entity: ir.Entity) -> EntityDocument:
        return cls(
            entity_name=entity.entity_name,
            fields=[FieldDocument.from_domain(item) for item in entity.fields],
        )


class SchemaIRDocument(DocumentModel):
    source_name: str
    source_type: ir.SourceType
    ir_version: str
    source_format: str | None = None
    entities: list[EntityDocument] = Field(default_factory=list["EntityDocument"])
    metadata: dict[str, JsonValue] = Field(default_factory=dict["str", "JsonValue"])

    @field_validator("ir_version", mode="before")
    @classmethod
    def _parse_version(cls, value: object) -> str:
        return str(ir.IRVersion.parse(value))

    def to_domain(self) -> ir.SchemaIR:
        return ir.SchemaIR(
            source_name=self.source_name,
            source_type=self.source_type,
            ir_version=ir.IRVersion.parse(self.ir_version),
            entities=tuple(entity.to_domain() for entity in self.entities),
            source_format=self.source_format,
            metadata=self.metadata,
        )

    @classmethod
    def from_domain(cls, schema: ir.SchemaIR) -> SchemaIRDocument:
        return cls(
            source_name=schema.source_name,
            source_type=schema.source_type,
            ir_version=str(schema.ir_version),
            source_format=schema.source_format,
            entities=[EntityDocument.from_domain(entity) for entity in schema.entities],
            metadata={key: _plain(value) for key, value in schema.metadata.items()},
        )


type DefinitionDocument = EntityDocument | FieldDocument


def _definition_to_domain(document: DefinitionDocument | None) -> ir.Entity | ir.Field | None:
    return None if document is None else document.to_domain()


def _definition_from_domain(definition: ir.Entity | ir.Field | None) -> DefinitionDocument | None:
    if definition is None:
        return None
    if isinstance(definition, ir.Entity):
        return EntityDocument.from_domain(definition)
    return FieldDocument.from_domain(definition)


# --- comparison ---------------------------------------------------------------


class DifferenceDocument(DocumentModel):
    attribute: str
    old: JsonValue = None
    new: JsonValue = None


class ChangeDocument(DocumentModel):
    path: str
    level: ChangeLevel
    entity_a: str | None = None
    entity_b: str | None = None
    field_a: str | None = None
    field_b: str | None = None
    before: EntityDocument | FieldDocument | None = None
    after: EntityDocument | FieldDocument | None = None
    differences: list[DifferenceDocument] = Field(default_factory=list["DifferenceDocument"])

    def to_domain(self) -> Change:
        return Change(
            path=self.path,
            level=self.level,
            entity_a=self.entity_a,
            entity_b=self.entity_b,
            field_a=self.field_a,
            field_b=self.field_b,
            before=_definition_to_domain(self.before),
            after=_definition_to_domain(self.after),
            differences=tuple(
                AttributeDifference(item.attribute, item.old, item.new)
                for item in self.differences
            ),
        )

    @classmethod
    def from_domain(cls, change: Change) -> ChangeDocument:
        return cls(
            path=change.path,
            level=change.level,
            entity_a=change.entity_a,
            entity_b=change.entity_b,
            field_a=change.field_a,
            field_b=change.field_b,
            before=_definition_from_domain(change.before),
            after=_definition_from_domain(change.after),
            differences=[
                DifferenceDocument(
                    attribute=item.attribute, old=_plain(item.old), new=_plain(item.new)
                )
                for item in change.differences
            ],
        )


class ChangesDocument(DocumentModel):
    added: list[ChangeDocument] = Field(default_factory=list["ChangeDocument"])
    removed: list[ChangeDocument] = Field(default_factory=list["ChangeDocument"])
    modified: list[ChangeDocument] = Field(default_factory=list["ChangeDocument"])


class StatisticsDocument(DocumentModel):
    similarity: float = Field(ge=0.0, le=1.0)
    total_compared_items: int = 0
    added_count: int = 0
    removed_count: int = 0
    modified_count: int = 0
    matched_entities: int = 0


class CompareConfigDocument(DocumentModel):
    threshold: float = Field(default=0.8, ge=0.0, le=1.0)
    strategy: CompareStrategy = CompareStrategy.STRUCTURAL
    ignore_fields: list[str] = Field(default_factory=list["str"], alias="ignoreFields")


class ComparisonDocument(DocumentModel):
    version: str = DOCUMENT_VERSION
    changes: ChangesDocument
    statistics: StatisticsDocument
    config: CompareConfigDocument = Field(default_factory=CompareConfigDocument)

    def to_domain(self) -> ComparisonResult:
        return ComparisonResult(
            changes=Changes(
                added=tuple(item.to_domain() for item in self.changes.added),
                removed=tuple(item.to_domain() for item in self.changes.removed),
                modified=tuple(item.to_domain() for item in self.changes.modified),
            ),
            statistics=Statistics(**self.statistics.model_dump()),
            config=CompareConfig(
                threshold=self.config.threshold,
                strategy=self.config.strategy,
                ignore_fields=tuple(self.config.ignore_fields),
            ),
        )

    @classmethod
    def from_domain(cls, result: ComparisonResult) -> ComparisonDocument:
        changes = result.changes
        statistics = result.statistics
        return cls(
            changes=ChangesDocument(
                added=[ChangeDocument.from_domain(item) for item in changes.added],
                removed=[ChangeDocument.from_domain(item) for item in changes.removed],
                modified=[ChangeDocument.from_domain(item) for item in changes.modified],
            ),
            statistics=StatisticsDocument(
                similarity=statistics.similarity,
                total_compared_items=statistics.total_compared_items,
                added_count=statistics.added_count,
                removed_count=statistics.removed_count,
                modified_count=statistics.modified_count,
                matched_entities=statistics.matched_entities,
            ),
            config=CompareConfigDocument(
                threshold=result.config.threshold,
                strategy=result.config.strategy,
                ignore_fields=list(result.config.ignore_fields),
            ),
        )


# --- plan ---------------------------------------------------------------------


class ActionDocument(DocumentModel):
    target: str
    kind: ActionKind
    confidence: float = Field(ge=0.0, le=1.0)
    change: ChangeSet
    level: ChangeLevel
    entity_a: str | None = None
    entity_b: str | None = None
    field_a: str | None = None
    field_b: str | None = None
    before: EntityDocument | FieldDocument | None = None
    after: EntityDocument | FieldDocument | None = None
    reason: str | None = None

    def to_domain(self) -> Action:
        return Action(
            target=self.target,
            kind=self.kind,
            confidence=self.confidence,
            change=self.change,
            level=self.level,
            entity_a=self.entity_a,
            entity_b=self.entity_b,
            field_a=self.field_a,
            field_b=self.field_b,
            before=_definition_to_domain(self.before),
            after=_definition_to_domain(self.after),
            reason=self.reason,
        )

    @classmethod
    def from_domain(cls, action: Action) -> ActionDocument:
        return cls(
            target=action.target,
            kind=action.kind,
            confidence=action.confidence,
            change=action.change,
            level=action.level,
            entity_a=action.entity_a,
            entity_b=action.entity_b,
            field_a=action.field_a,
            field_b=action.field_b,
            before=_definition_from_domain(action.before),
            after=_definition_from_domain(action.after),
            reason=action.reason,
        )


class PlanDocument(DocumentModel):
    version: str = PLAN_VERSION
    plan_id: str = Field(min_length=1)
    strategy: ResolveStrategy
    prefer_source: SourcePreference = Field(alias="preferSource")
    similarity: float = Field(ge=0.0, le=1.0)
    actions: list[ActionDocument] = Field(default_factory=list["ActionDocument"])

    def to_domain(self) -> ResolutionPlan:
        return ResolutionPlan(
            plan_id=self.plan_id,
            actions=tuple(item.to_domain() for item in self.actions),
            strategy=self.strategy,
            prefer_source=self.prefer_source,
            similarity=self.similarity,
            version=self.version,
        )

    @classmethod
    def from_domain(cls, plan: ResolutionPlan) -> PlanDocument:
        return cls(
            version=plan.version,
            plan_id=plan.plan_id,
            strategy=plan.strategy,
            prefer_source=plan.prefer_source,
            similarity=plan.similarity,
            actions=[ActionDocument.from_domain(item) for item in plan.actions],
        )


# --- apply --------------------------------------------------------------------


class ActionResultDocument(DocumentModel):
    index: int
    target: str
    kind: ActionKind
    outcome: ActionOutcome
    reason: str | None = None


class ApplyResultDocument(DocumentModel):
    plan_id: str
    dry_run: bool
    applied: bool
    state: ApplyState
    backup_ref: str | None = None
    interrupted: Interruption | None = None
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    would_apply: int = 0
    results: list[ActionResultDocument] = Field(default_factory=list["ActionResultDocument"])

    @classmethod
    def from_domain(cls, result: ApplyResult) -> ApplyResultDocument:
        return cls(
            plan_id=result.plan_id,
            dry_run=result.dry_run,
            applied=result.applied,
            state=result.state,
            backup_ref=result.backup_ref,
            interrupted=result.interrupted,
            succeeded=result.succeeded,
            failed=result.failed,
            skipped=result.skipped,
            would_apply=result.would_apply,
            results=[
                ActionResultDocument(
                    index=item.index,
                    target=item.target,
                    kind=item.kind,
                    outcome=item.outcome,
                    reason=item.reason,
                )
                for item in result.results
            ],
        )

    def to_domain(self) -> ApplyResult:
        return ApplyResult(
            plan_id=self.plan_id,
            dry_run=self.dry_run,
            state=self.state,
            results=tuple(
                ActionResult(
                    index=item.index,
                    target=item.target,
                    kind=item.kind,
                    outcome=item.outcome,
                    reason=item.reason,
                )
                for item in self.results
            ),
            backup_ref=self.backup_ref,
            interrupted=self.interrupted,
        )


# --- validation and errors ----------------------------------------------------


class ValidationSummaryDocument(DocumentModel):
    source_name: str | None = None
    source_type: str | None = None
    entities_count: int = 0
    ir_version: str | None = None


class ValidationReportDocument(DocumentModel):
    ok: bool
    errors: list[str] = Field(default_factory=list["str"])
    summary: ValidationSummaryDocument | None = None

    @classmethod
    def from_domain(cls, report: ValidationReport) -> ValidationReportDocument:
        summary: ValidationSummary | None = report.summary
        return cls(
            ok=report.ok,
            errors=list(report.errors),
            summary=None
            if summary is None
            else ValidationSummaryDocument(
                source_name=summary.source_name,
                source_type=summary.source_type,
                entities_count=summary.entities_count,
                ir_version=summary.ir_version,
            ),
        )


class ErrorDocument(DocumentModel):
    code: str
    message: str
    details: dict[str, JsonValue] | None = None


# --- operation options --------------------------------------------------------


class LayeredOptions(DocumentModel):
    """Options whose ``config`` object fills in keys missing at the top level."""

    @model_validator(mode="before")
    @classmethod
    def _lift_config(cls, value: object) -> object:
        if not isinstance(value, Mapping):
            return value
        nested = value.get("config")
        if nested is None:
            return value
        if not isinstance(nested, Mapping):
            raise ValueError("config must be an object")
        merged = {str(key): item for key, item in value.items() if key != "config"}
        for key, item in nested.items():
            if not merged.keys() & cls._spellings(str(key)):
                merged[str(key)] = item
        return merged

    @classmethod
    def _spellings(cls, key: str) -> set[str]:
        for name, info in cls.model_fields.items():
            if key in (name, info.alias):
                return {name} if info.alias is None else {name, info.alias}
        return {key}


class CompareOptions(LayeredOptions):
    threshold: float | None = Field(default=None, ge=0.0, le=1.0)
    strategy: CompareStrategy | None = None
    ignore_fields: list[str] = Field(default_factory=list["str"], alias="ignoreFields")


class ResolveOptions(LayeredOptions):
    strategy: ResolveStrategy | None = None
    prefer_source: SourcePreference | None = Field(default=None, alias="preferSource")
    auto_resolve_threshold: float | None = Field(
        default=None, ge=0.0, le=1.0, alias="autoResolveThreshold"
    )


class ApplyRuntimeConfig(DocumentModel):
    stop_on_failure: bool = Field(default=False, alias="stopOnFailure")
    timeout_seconds: float | None = Field(default=None, gt=0.0, alias="timeoutSeconds")
    store_uri: str | None = Field(default=None, alias="storeUri")


class ApplyOptions(DocumentModel):
    dry_run: bool = Field(default=False, alias="dryRun")
    backup: bool = True
    config: ApplyRuntimeConfig = Field(default_factory=ApplyRuntimeConfig)


class BuildConfig(DocumentModel):
    """Source-specific ingestion settings (``config`` of ``build_ir``)."""

    source_name: str | None = Field(default=None, alias="sourceName")
    data: JsonValue = None
    encoding: str = "utf-8"
    delimiter: str = Field(default=",", min_length=1, max_length=1)
    has_header: bool = Field(default=True, alias="hasHeader")
    infer_types: bool = Field(default=True, alias="inferTypes")
    sample_size: int = Field(default=100, ge=1, alias="sampleSize")
    entity_name: str | None = Field(default=None, alias="entityName")
    tables: list[str] = Field(default_factory=list["str"], alias="table")
    url: str | None = None
    host: str | None = None
    port: int | None = Field(default=None, ge=1, le=65535)
    database: str | None = None
    username: str | None = None
    password: str | None = None
    connect_timeout_seconds: float | None = Field(
        default=None, gt=0.0, alias="connectTimeoutSeconds"
    )

    @model_validator(mode="before")
    @classmethod
    def _accept_none(cls, value: object) -> object:
        return {} if value is None else value

    @field_validator("tables", mode="before")
    @classmethod
    def _single_table(cls, value: object) -> object:
        return [value] if isinstance(value, str) else value

    @field_validator("encoding")
    @classmethod
    def _known_encoding(cls, value: str) -> str:
        try:
            return codecs.lookup(value).name
        except LookupError as exc:
            raise ValueError(f"Unknown encoding: {value!r}") from exc
