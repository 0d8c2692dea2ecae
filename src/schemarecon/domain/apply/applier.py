"""Plan execution against a ``SchemaStore``.

Responsibilities of this stage:
- validate a plan before touching the store
- snapshot targeted entities before the first write
- execute actions sequentially, one atomic store write per action
- account every action as succeeded, failed or skipped

Interruption semantics:
- a store write that has started is shielded and awaited, so reported
  outcomes always match the store
- on timeout the run returns a result marked ``TIMEOUT``
- on cancellation the partial result is kept on ``last_result`` and the
  ``CancelledError`` propagates
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from schemarecon.domain.comparison import ChangeLevel
from schemarecon.domain.model import Entity
from schemarecon.domain.ports import StoreError
from schemarecon.domain.resolution import ActionKind

from .config import ApplyConfig
from .mutations import DeleteEntity, PreconditionError, WriteEntity, plan_mutation
from .result import ActionOutcome, ActionResult, ApplyResult, ApplyState, Interruption

if TYPE_CHECKING:
    from schemarecon.domain.ports import SchemaStore
    from schemarecon.domain.resolution import Action, ResolutionPlan

    from .mutations import Mutation

log = logging.getLogger(__name__)

_ENTITY_TARGET = re.compile(r"^[^.\s][^.]*$")
_FIELD_TARGET = re.compile(r"^[^.\s][^.]*\.[^.\s][^.]*$")

ALREADY_APPLIED = "already_applied"


class InvalidPlanError(ValueError):
    """Raised when a plan is malformed; nothing has been applied."""


class BackupError(RuntimeError):
    """Raised when the pre-apply backup cannot be created; nothing has been applied."""


def validate_plan(plan: ResolutionPlan) -> None:
    if not plan.plan_id:
        raise InvalidPlanError("Plan has no plan_id")
    for index, action in enumerate(plan.actions):
        _validate_action(index, action)


def _validate_action(index: int, action: Action) -> None:
    pattern = _ENTITY_TARGET if action.level is ChangeLevel.ENTITY else _FIELD_TARGET
    if not pattern.match(action.target or ""):
        raise InvalidPlanError(
            f"Action {index} has a malformed {action.level} target: {action.target!r}"
        )
    if not action.entity_names:
        raise InvalidPlanError(f"Action {index} ({action.target}) names no entity")
    if action.kind is ActionKind.MANUAL_REVIEW or action.kind is ActionKind.DROP:
        return
    needs_before = action.kind in (ActionKind.ACCEPT_A, ActionKind.MERGE)
    needs_after = action.kind in (ActionKind.ACCEPT_B, ActionKind.RENAME, ActionKind.MERGE)
    if action.level is ChangeLevel.ENTITY and action.entity_a and action.entity_b:
        # entity renames only need both names
        return
    if (needs_before and action.before is None) or (needs_after and action.after is None):
        raise InvalidPlanError(
            f"Action {index} ({action.target}) lacks the definition required by {action.kind}"
        )


@dataclass(slots=True)
class _Run:
    plan: ResolutionPlan
    config: ApplyConfig
    state: ApplyState = ApplyState.PROPOSED
    results: list[ActionResult] = field(default_factory=list["ActionResult"])
    backup_ref: str | None = None
    interrupted: Interruption | None = None

    def record(self, action: Action, outcome: ActionOutcome, reason: str | None = None) -> None:
        self.results.append(
            ActionResult(
                index=len(self.results),
                target=action.target,
                kind=action.kind,
                outcome=outcome,
                reason=reason,
            )
        )

    def skip_remaining(self, reason: str) -> None:
        for action in self.plan.actions[len(self.results) :]:
            self.record(action, ActionOutcome.SKIPPED, reason)

    def to_result(self) -> ApplyResult:
        return ApplyResult(
            plan_id=self.plan.plan_id,
            dry_run=self.config.dry_run,
            state=self.state,
            results=tuple(self.results),
            backup_ref=self.backup_ref,
            interrupted=self.interrupted,
        )


class _Simulation:
    """Read-through overlay used by dry runs; writes never reach the store."""

    def __init__(self, store: SchemaStore) -> None:
        self._store = store
        self._overlay: dict[str, Entity | None] = {}

    async def get_entity(self, name: str) -> Entity | None:
        if name in self._overlay:
            return self._overlay[name]
        return await self._store.get_entity(name)

    def apply(self, mutation: Mutation) -> None:
        match mutation:
            case WriteEntity(entity=entity, replacing=replacing):
                if replacing is not None:
                    self._overlay[replacing] = None
                self._overlay[entity.entity_name] = entity
            case DeleteEntity(name=name):
                self._overlay[name] = None


class PlanApplier:
    """Execute resolution plans against one store."""

    def __init__(self, store: SchemaStore) -> None:
        self._store = store
        self.last_result: ApplyResult | None = None

    async def apply(self, plan: ResolutionPlan, config: ApplyConfig | None = None) -> ApplyResult:
        run = _Run(plan=plan, config=config or ApplyConfig())
        self._transition(run, ApplyState.VALIDATING)
        validate_plan(plan)

        if run.config.dry_run:
            self._transition(run, ApplyState.DRY_RUN)
            await self._simulate(run)
            self._transition(run, ApplyState.COMMITTED)
            return self._finish(run)

        if run.config.backup and plan.actions:
            run.backup_ref = await self._backup(plan)

        self._transition(run, ApplyState.APPLYING)
        try:
            async with asyncio.timeout(run.config.timeout_seconds):
                await self._execute(run)
        except TimeoutError:
            log.warning("Apply of %s timed out after %ss", plan.plan_id, run.config.timeout_seconds)
            run.interrupted = Interruption.TIMEOUT
            run.skip_remaining("timeout")
        except asyncio.CancelledError:
            log.warning("Apply of %s cancelled", plan.plan_id)
            run.interrupted = Interruption.CANCELLED
            run.skip_remaining("cancelled")
            self._transition(run, ApplyState.FAILED_PARTIAL)
            self._finish(run)
            raise

        failed = any(result.outcome is ActionOutcome.FAILED for result in run.results)
        if failed or run.interrupted is not None:
            self._transition(run, ApplyState.FAILED_PARTIAL)
        else:
            self._transition(run, ApplyState.COMMITTED)
        return self._finish(run)

    async def _backup(self, plan: ResolutionPlan) -> str:
        names = plan.target_entities
        try:
            ref = await self._store.create_backup(names)
        except StoreError as exc:
            raise BackupError(f"Backup of {len(names)} entities failed: {exc}") from exc
        log.info("Backed up %d entities as %s", len(names), ref)
        return ref

    async def _simulate(self, run: _Run) -> None:
        simulation = _Simulation(self._store)
        for action in run.plan.actions:
            if action.kind is ActionKind.MANUAL_REVIEW:
                run.record(action, ActionOutcome.SKIPPED, "manual_review")
                continue
            try:
                mutation = await plan_mutation(action, simulation)
            except PreconditionError as exc:
                run.record(action, ActionOutcome.FAILED, str(exc))
                if run.config.stop_on_failure:
                    run.skip_remaining("stopped after failure")
                    return
                continue
            if mutation is None:
                run.record(action, ActionOutcome.SKIPPED, ALREADY_APPLIED)
                continue
            simulation.apply(mutation)
            run.record(action, ActionOutcome.SUCCEEDED, "would apply")

    async def _execute(self, run: _Run) -> None:
        for action in run.plan.actions:
            if action.kind is ActionKind.MANUAL_REVIEW:
                run.record(action, ActionOutcome.SKIPPED, "manual_review")
                continue
            try:
                mutation = await plan_mutation(action, self._store)
                if mutation is None:
                    run.record(action, ActionOutcome.SKIPPED, ALREADY_APPLIED)
                    continue
                write = asyncio.ensure_future(self._write(mutation))
                try:
                    await asyncio.shield(write)
                except asyncio.CancelledError:
                    # let the started write finish so the recorded outcome matches the store
                    error = await _settle(write)
                    if error is None:
                        run.record(action, ActionOutcome.SUCCEEDED)
                    else:
                        run.record(action, ActionOutcome.FAILED, str(error))
                    raise
            except (PreconditionError, StoreError) as exc:
                log.warning("Action %s on %s failed: %s", action.kind, action.target, exc)
                run.record(action, ActionOutcome.FAILED, str(exc))
                if run.config.stop_on_failure:
                    run.skip_remaining("stopped after failure")
                    return
                continue
            run.record(action, ActionOutcome.SUCCEEDED)

    async def _write(self, mutation: Mutation) -> None:
        match mutation:
            case WriteEntity(entity=entity, replacing=replacing):
                await self._store.write_entity(entity, replacing=replacing)
            case DeleteEntity(name=name):
                await self._store.delete_entity(name)

    def _transition(self, run: _Run, state: ApplyState) -> None:
        log.info("Plan %s: %s -> %s", run.plan.plan_id, run.state, state)
        run.state = state

    def _finish(self, run: _Run) -> ApplyResult:
        result = run.to_result()
        self.last_result = result
        return result


async def _settle(write: asyncio.Future[None]) -> StoreError | None:
    try:
        await write
    except StoreError as exc:
        return exc
    return None


async def rollback(store: SchemaStore, backup_ref: str) -> None:
    """Restore the entities snapshotted under ``backup_ref``."""

    try:
        await store.restore_backup(backup_ref)
    except StoreError as exc:
        raise BackupError(f"Restore of backup {backup_ref} failed: {exc}") from exc
    log.info("Restored backup %s", backup_ref)
