"""
Replica Components — decode recipes for component-driven packets.

An object's template (lot) carries a set of component kinds, fetched from
the catalog in no particular order. The wire layout of its replica packets
is the concatenation of each kind's leaf structures, in PRIORITY order,
using the construction or serialization table depending on the packet.

    {7, 1, 17}  ->  sort by PRIORITY  ->  [1, 7, 17]
                ->  CONSTRUCTION_STEPS  ->  [physics, buff, destroyable, inventory]
"""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Iterable

from lu_replay.errors import UnknownComponentKind
from lu_replay.protocol.packet_types import StructDef
from lu_replay.protocol import replica as r


class ComponentKind(IntEnum):
    CONTROLLABLE_PHYSICS = 1
    RENDER = 2
    CHARACTER = 4
    DESTROYABLE = 7
    SKILL = 9
    INVENTORY = 17
    SOUND_AMBIENT_2D = 55
    ROCKET_LANDING = 68
    BBB = 107


class Context(Enum):
    CONSTRUCTION = "construction"
    SERIALIZATION = "serialization"


DecodeRecipe = tuple[StructDef, ...]

# Serialization order of components on the wire. Unlisted kinds go last.
PRIORITY: tuple[int, ...] = (
    ComponentKind.CONTROLLABLE_PHYSICS,
    ComponentKind.DESTROYABLE,
    ComponentKind.CHARACTER,
    ComponentKind.INVENTORY,
    ComponentKind.SKILL,
    ComponentKind.RENDER,
    ComponentKind.BBB,
)

_CHARACTER_CONSTRUCTION = (
    r.POSSESSION_CONTROL_CONSTRUCTION,
    r.LEVEL_PROGRESSION_CONSTRUCTION,
    r.PLAYER_FORCED_MOVEMENT_CONSTRUCTION,
    r.CHARACTER_CONSTRUCTION,
)

_CHARACTER_SERIALIZATION = (
    r.POSSESSION_CONTROL_SERIALIZATION,
    r.LEVEL_PROGRESSION_SERIALIZATION,
    r.PLAYER_FORCED_MOVEMENT_SERIALIZATION,
    r.CHARACTER_SERIALIZATION,
)

CONSTRUCTION_STEPS: dict[ComponentKind, tuple[StructDef, ...]] = {
    ComponentKind.CONTROLLABLE_PHYSICS: (r.CONTROLLABLE_PHYSICS_CONSTRUCTION,),
    ComponentKind.RENDER: (r.FX_CONSTRUCTION,),
    ComponentKind.CHARACTER: _CHARACTER_CONSTRUCTION,
    ComponentKind.DESTROYABLE: (r.BUFF_CONSTRUCTION, r.DESTROYABLE_CONSTRUCTION),
    ComponentKind.SKILL: (r.SKILL_CONSTRUCTION,),
    ComponentKind.INVENTORY: (r.INVENTORY_CONSTRUCTION,),
    ComponentKind.SOUND_AMBIENT_2D: (),
    ComponentKind.ROCKET_LANDING: (),
    ComponentKind.BBB: (r.BBB_CONSTRUCTION,),
}

SERIALIZATION_STEPS: dict[ComponentKind, tuple[StructDef, ...]] = {
    ComponentKind.CONTROLLABLE_PHYSICS: (r.CONTROLLABLE_PHYSICS_SERIALIZATION,),
    ComponentKind.RENDER: (),
    ComponentKind.CHARACTER: _CHARACTER_SERIALIZATION,
    ComponentKind.DESTROYABLE: (r.DESTROYABLE_SERIALIZATION,),
    ComponentKind.SKILL: (),
    ComponentKind.INVENTORY: (r.INVENTORY_SERIALIZATION,),
    ComponentKind.SOUND_AMBIENT_2D: (),
    ComponentKind.ROCKET_LANDING: (),
    ComponentKind.BBB: (r.BBB_SERIALIZATION,),
}

STEP_TABLES = {
    Context.CONSTRUCTION: CONSTRUCTION_STEPS,
    Context.SERIALIZATION: SERIALIZATION_STEPS,
}

for _context, _table in STEP_TABLES.items():
    _missing = set(ComponentKind) - set(_table)
    if _missing:
        raise RuntimeError(f"{_context.value} table has no entry for {sorted(_missing)}")


def sort_by_priority(kinds: Iterable[int]) -> list[int]:
    """Order kinds by PRIORITY; unranked kinds keep their relative order at the end."""
    rank = {kind: i for i, kind in enumerate(PRIORITY)}
    return sorted(kinds, key=lambda k: rank.get(k, len(PRIORITY)))


def resolve(kinds: Iterable[int], context: Context, lot: int | None = None) -> DecodeRecipe:
    """Turn a component set into the ordered leaf structures for one packet context.

    A kind missing from both tables means the catalog knows a component the
    decoder does not; that aborts with UnknownComponentKind. A kind mapped to
    no structures in this context simply contributes nothing.
    """
    table = STEP_TABLES[context]
    recipe: list[StructDef] = []
    for kind in sort_by_priority(kinds):
        if kind not in CONSTRUCTION_STEPS and kind not in SERIALIZATION_STEPS:
            raise UnknownComponentKind(kind, lot)
        recipe.extend(table.get(kind, ()))
    return tuple(recipe)
