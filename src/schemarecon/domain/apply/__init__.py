"""Applier: ``ResolutionPlan`` -> store mutation -> ``ApplyResult``."""

from __future__ import annotations

from .applier import (
    ALREADY_APPLIED,
    BackupError,
    InvalidPlanError,
    PlanApplier,
    rollback,
    validate_plan,
)
from .config import ApplyConfig
from .mutations import DeleteEntity, PreconditionError, WriteEntity, merge_fields, plan_mutation
from .result import ActionOutcome, ActionResult, ApplyResult, ApplyState, Interruption

__all__ = [
    "ALREADY_APPLIED",
    "ActionOutcome",
    "ActionResult",
    "ApplyConfig",
    "ApplyResult",
    "ApplyState",
    "BackupError",
    "DeleteEntity",
    "Interruption",
    "InvalidPlanError",
    "PlanApplier",
    "PreconditionError",
    "WriteEntity",
    "merge_fields",
    "plan_mutation",
    "rollback",
    "validate_plan",
]
