"""Applier states and outcome types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from schemarecon.domain.resolution import ActionKind


class ApplyState(StrEnum):
    """Applier lifecycle.

    ``proposed -> validating -> (dry_run | applying) -> committed``, with
    ``applying -> failed_partial`` when an action fails or the run is
    interrupted.
    """

    PROPOSED = "proposed"
    VALIDATING = "validating"
    DRY_RUN = "dry_run"
    APPLYING = "applying"
    COMMITTED = "committed"
    FAILED_PARTIAL = "failed_partial"


class ActionOutcome(StrEnum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


class Interruption(StrEnum):
    CANCELLED = "CANCELLED"
    TIMEOUT = "TIMEOUT"


@dataclass(frozen=True, slots=True, kw_only=True)
class ActionResult:
    index: int
    target: str
    kind: ActionKind
    outcome: ActionOutcome
    reason: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ApplyResult:
    """Per-action outcomes of one apply run, in plan order.

    In a dry run outcomes are projections: nothing was written.
    """

    plan_id: str
    dry_run: bool
    state: ApplyState
    results: tuple[ActionResult, ...] = ()
    backup_ref: str | None = None
    interrupted: Interruption | None = None

    def _count(self, outcome: ActionOutcome) -> int:
        return sum(1 for result in self.results if result.outcome is outcome)

    @property
    def succeeded(self) -> int:
        return 0 if self.dry_run else self._count(ActionOutcome.SUCCEEDED)

    @property
    def failed(self) -> int:
        return self._count(ActionOutcome.FAILED)

    @property
    def skipped(self) -> int:
        return self._count(ActionOutcome.SKIPPED)

    @property
    def would_apply(self) -> int:
        return self._count(ActionOutcome.SUCCEEDED) if self.dry_run else 0

    @property
    def applied(self) -> bool:
        return not self.dry_run and self.succeeded > 0
