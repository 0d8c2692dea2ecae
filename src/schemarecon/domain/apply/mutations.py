"""Per-action desired state and the single store write that reaches it.

Each action is planned against the current store state:
- ``None`` means the store already is in the desired state (converged)
- a ``Mutation`` is exactly one atomic store write
- ``PreconditionError`` means the action cannot be carried out
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from schemarecon.domain.comparison import ChangeLevel, ChangeSet
from schemarecon.domain.model import Entity, Field, widen
from schemarecon.domain.resolution import ActionKind

if TYPE_CHECKING:
    from schemarecon.domain.resolution import Action


class PreconditionError(RuntimeError):
    """Raised when the store state does not allow an action to run."""


class EntityLookup(Protocol):
    async def get_entity(self, name: str) -> Entity | None: ...


@dataclass(frozen=True, slots=True)
class WriteEntity:
    entity: Entity
    replacing: str | None = None


@dataclass(frozen=True, slots=True)
class DeleteEntity:
    name: str


type Mutation = WriteEntity | DeleteEntity


def merge_fields(a: Field, b: Field) -> Field:
    """Combine two definitions of one field under B's name."""

    return Field(
        name=b.name,
        declared_type=widen(a.declared_type, b.declared_type),
        nullable=a.nullable or b.nullable,
        default=b.default if b.default is not None else a.default,
        is_primary_key=a.is_primary_key and b.is_primary_key,
    )


async def plan_mutation(action: Action, store: EntityLookup) -> Mutation | None:
    if action.kind is ActionKind.MANUAL_REVIEW:
        raise PreconditionError("manual review actions are never applied")
    if action.level is ChangeLevel.ENTITY:
        return await _plan_entity(action, store)
    return await _plan_field(action, store)


async def _plan_entity(action: Action, store: EntityLookup) -> Mutation | None:
    if action.kind is ActionKind.DROP:
        current = await store.get_entity(action.target)
        return None if current is None else DeleteEntity(action.target)

    if action.change is ChangeSet.MODIFIED:
        return await _plan_entity_rename(action, store)

    desired = action.before if action.kind is ActionKind.ACCEPT_A else action.after
    if not isinstance(desired, Entity):
        raise PreconditionError(f"no entity definition to apply for {action.kind}")
    current = await store.get_entity(desired.entity_name)
    if current == desired:
        return None
    return WriteEntity(desired)


async def _plan_entity_rename(action: Action, store: EntityLookup) -> Mutation | None:
    if action.entity_a is None or action.entity_b is None:
        raise PreconditionError("entity rename needs both entity names")
    if action.kind is ActionKind.ACCEPT_A:
        desired_name, other_name = action.entity_a, action.entity_b
    else:
        desired_name, other_name = action.entity_b, action.entity_a

    desired = await store.get_entity(desired_name)
    other = await store.get_entity(other_name) if other_name != desired_name else None
    if other is None:
        if desired is None:
            raise PreconditionError(f"entity '{desired_name}' not found")
        return None
    if desired is not None:
        raise PreconditionError(f"rename target '{desired_name}' already exists")
    return WriteEntity(other.renamed(desired_name), replacing=other_name)


async def _plan_field(action: Action, store: EntityLookup) -> Mutation | None:
    entity = await _locate_entity(action, store)
    match action.kind:
        case ActionKind.DROP:
            name = action.field_b if action.change is ChangeSet.ADDED else action.field_a
            if name is None or entity.field(name) is None:
                return None
            return WriteEntity(entity.without_field(name))
        case ActionKind.ACCEPT_A:
            desired = _field_definition(action.before)
            other_name = action.field_b
        case ActionKind.ACCEPT_B | ActionKind.RENAME:
            desired = _field_definition(action.after)
            other_name = action.field_a
        case ActionKind.MERGE:
            desired = merge_fields(_field_definition(action.before), _field_definition(action.after))
            other_name = action.field_a
        case ActionKind.MANUAL_REVIEW:
            raise PreconditionError("manual review actions are never applied")

    stale = other_name if other_name not in (None, desired.name) else None
    if entity.field(desired.name) == desired and (stale is None or entity.field(stale) is None):
        return None
    replacing = stale if stale is not None and entity.field(stale) is not None else None
    return WriteEntity(entity.with_field(desired, replacing=replacing))


async def _locate_entity(action: Action, store: EntityLookup) -> Entity:
    for name in action.entity_names:
        entity = await store.get_entity(name)
        if entity is not None:
            return entity
    raise PreconditionError(f"entity for '{action.target}' not found")


def _field_definition(definition: Entity | Field | None) -> Field:
    if not isinstance(definition, Field):
        raise PreconditionError("no field definition to apply")
    return definition
