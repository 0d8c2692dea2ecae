"""Resolver: ``ComparisonResult`` -> ``ResolutionPlan``."""

from __future__ import annotations

from .config import (
    DEFAULT_AUTO_RESOLVE_THRESHOLD,
    RISK_TOLERANCE,
    ResolveConfig,
    ResolveStrategy,
    SourcePreference,
)
from .plan import PLAN_VERSION, Action, ActionKind, ResolutionPlan, plan_digest
from .propose import propose

__all__ = [
    "DEFAULT_AUTO_RESOLVE_THRESHOLD",
    "PLAN_VERSION",
    "RISK_TOLERANCE",
    "Action",
    "ActionKind",
    "ResolutionPlan",
    "ResolveConfig",
    "ResolveStrategy",
    "SourcePreference",
    "plan_digest",
    "propose",
]
