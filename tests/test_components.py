"""Tests for component priority ordering and recipe resolution."""

import pytest

from lu_replay.errors import UnknownComponentKind
from lu_replay.protocol import replica as r
from lu_replay.protocol.components import (
    CONSTRUCTION_STEPS, PRIORITY, SERIALIZATION_STEPS, ComponentKind, Context,
    resolve, sort_by_priority,
)
from builders import PLAYER_COMPONENTS


def test_tables_cover_every_kind():
    assert set(CONSTRUCTION_STEPS) == set(ComponentKind)
    assert set(SERIALIZATION_STEPS) == set(ComponentKind)


def test_sort_by_priority():
    assert sort_by_priority([107, 2, 7, 1]) == [1, 7, 2, 107]


def test_unranked_kinds_go_last_in_input_order():
    assert sort_by_priority([68, 4, 55, 1]) == [1, 4, 68, 55]


def test_priority_is_wire_order():
    assert PRIORITY == (1, 7, 4, 17, 9, 2, 107)


def test_player_construction_recipe():
    recipe = resolve(PLAYER_COMPONENTS, Context.CONSTRUCTION)
    assert recipe == (
        r.CONTROLLABLE_PHYSICS_CONSTRUCTION,
        r.BUFF_CONSTRUCTION,
        r.DESTROYABLE_CONSTRUCTION,
        r.POSSESSION_CONTROL_CONSTRUCTION,
        r.LEVEL_PROGRESSION_CONSTRUCTION,
        r.PLAYER_FORCED_MOVEMENT_CONSTRUCTION,
        r.CHARACTER_CONSTRUCTION,
        r.INVENTORY_CONSTRUCTION,
        r.SKILL_CONSTRUCTION,
        r.FX_CONSTRUCTION,
        r.BBB_CONSTRUCTION,
    )


def test_player_serialization_recipe():
    recipe = resolve(PLAYER_COMPONENTS, Context.SERIALIZATION)
    assert recipe == (
        r.CONTROLLABLE_PHYSICS_SERIALIZATION,
        r.DESTROYABLE_SERIALIZATION,
        r.POSSESSION_CONTROL_SERIALIZATION,
        r.LEVEL_PROGRESSION_SERIALIZATION,
        r.PLAYER_FORCED_MOVEMENT_SERIALIZATION,
        r.CHARACTER_SERIALIZATION,
        r.INVENTORY_SERIALIZATION,
        r.BBB_SERIALIZATION,
    )


def test_kinds_with_no_structures_contribute_nothing():
    assert resolve([55, 68], Context.CONSTRUCTION) == ()
    assert resolve([9, 2], Context.SERIALIZATION) == ()


def test_empty_component_set():
    assert resolve([], Context.CONSTRUCTION) == ()


def test_unknown_kind_reports_kind_and_lot():
    with pytest.raises(UnknownComponentKind) as exc:
        resolve([1, 5], Context.CONSTRUCTION, lot=9999)
    assert exc.value.kind == 5
    assert exc.value.lot == 9999
    assert "5" in str(exc.value) and "9999" in str(exc.value)


def test_unknown_kind_fails_in_either_context():
    with pytest.raises(UnknownComponentKind):
        resolve([42], Context.SERIALIZATION)


def test_resolve_is_deterministic():
    first = resolve([17, 7, 1, 55], Context.CONSTRUCTION)
    for _ in range(3):
        assert resolve([17, 7, 1, 55], Context.CONSTRUCTION) == first
    assert [s.name for s in first] == [
        "ControllablePhysicsConstruction", "BuffConstruction",
        "DestroyableConstruction", "InventoryConstruction",
    ]
