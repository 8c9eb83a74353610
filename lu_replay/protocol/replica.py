"""
Replica Packets — object construction (0x24) and serialization (0x27).

Replica payloads are not self-describing. The envelope ends with the
optional parent/child group; everything after it is the sequence of
component structures chosen by the object's decode recipe (see
components.py):

    construction: [0x24][bit][network_id:u16][object header][parent/child][components...]
    serialization: [0x27][network_id:u16][parent/child][components...]
"""

from __future__ import annotations

from typing import Sequence

from lu_replay.errors import UnderrunOrMalformedPayload
from lu_replay.protocol.packet_types import FieldDef, FlagGroup, ArrayDef, StructDef, decode_struct, vec3
from lu_replay.protocol.reader import BitStream

CONSTRUCTION_PACKET_ID = 0x24
SERIALIZATION_PACKET_ID = 0x27


def _quat(prefix: str) -> list:
    return [FieldDef(f"{prefix}_{c}", "f32") for c in "xyzw"]


# ---- Envelopes ----

_PARENT_CHILD = FlagGroup("parent_child", [
    FlagGroup("parent", [
        FieldDef("parent_id", "i64"),
        FieldDef("update_position_with_parent", "bit"),
    ]),
    FlagGroup("children", [
        ArrayDef("child_ids", "u16", [FieldDef("child_id", "i64")]),
    ]),
])

CONSTRUCTION_HEADER = StructDef("ConstructionHeader", [
    FieldDef("object_id", "i64"),
    FieldDef("lot", "i32", description="Template id"),
    FieldDef("name", "var_wstr8"),
    FieldDef("time_since_created", "u32"),
    FlagGroup("config", [FieldDef("data", "var_bytes32", description="Compressed LDF")]),
    FlagGroup("trigger"),
    FlagGroup("spawner", [FieldDef("spawner_id", "i64")]),
    FlagGroup("spawner_node", [FieldDef("spawner_node_id", "u32")]),
    FlagGroup("scale", [FieldDef("scale", "f32")]),
    FlagGroup("world_state", [FieldDef("object_world_state", "u8")]),
    FlagGroup("gm_level", [FieldDef("gm_level", "u8")]),
    _PARENT_CHILD,
])

SERIALIZATION_HEADER = StructDef("SerializationHeader", [_PARENT_CHILD])


# ---- Component structures ----

_FRAME_STATS = [
    *vec3("position"),
    *_quat("rotation"),
    FieldDef("is_on_ground", "bit"),
    FieldDef("is_on_rail", "bit"),
    FlagGroup("linear_velocity", vec3("velocity")),
    FlagGroup("angular_velocity", vec3("velocity")),
    FlagGroup("local_space", [
        FieldDef("object_id", "i64"),
        *vec3("position"),
        FlagGroup("linear_velocity", vec3("velocity")),
    ]),
]

_CHEAT_INFO = FlagGroup("cheat_info", [
    FieldDef("gravity_scale", "f32"),
    FieldDef("run_multiplier", "f32"),
])

_EQUIPPED_ITEM_INFO = FlagGroup("equipped_item_info", [
    FieldDef("jetpack_effect", "u32"),
    FieldDef("is_jetpacking", "bit"),
])

CONTROLLABLE_PHYSICS_CONSTRUCTION = StructDef("ControllablePhysicsConstruction", [
    FlagGroup("jetpack", [
        FieldDef("effect_id", "u32"),
        FieldDef("is_flying", "bit"),
        FieldDef("bypass_checks", "bit"),
    ]),
    FlagGroup("stun_immunity", [
        FieldDef(name, "u32") for name in (
            "immune_to_stun_move", "immune_to_stun_jump", "immune_to_stun_turn",
            "immune_to_stun_attack", "immune_to_stun_use_item",
            "immune_to_stun_equip", "immune_to_stun_interact",
        )
    ]),
    _CHEAT_INFO,
    _EQUIPPED_ITEM_INFO,
    FlagGroup("frame_stats", _FRAME_STATS),
], description="Player movement state, full snapshot")

CONTROLLABLE_PHYSICS_SERIALIZATION = StructDef("ControllablePhysicsSerialization", [
    _CHEAT_INFO,
    _EQUIPPED_ITEM_INFO,
    FlagGroup("frame_stats", [*_FRAME_STATS, FieldDef("is_teleporting", "bit")]),
], description="Player movement state, incremental")

FX_CONSTRUCTION = StructDef("FxConstruction", [
    ArrayDef("effects", "u32", [
        FieldDef("name", "var_str8"),
        FieldDef("effect_id", "u32"),
        FieldDef("effect_type", "var_wstr8"),
        FieldDef("scale", "f32"),
        FieldDef("secondary", "i64"),
    ]),
])

_POSSESSION_INFO = [
    FlagGroup("possession_info", [
        FlagGroup("possessed", [FieldDef("possessed_id", "i64")]),
        FieldDef("possession_type", "u8"),
    ]),
]

POSSESSION_CONTROL_CONSTRUCTION = StructDef("PossessionControlConstruction", _POSSESSION_INFO)
POSSESSION_CONTROL_SERIALIZATION = StructDef("PossessionControlSerialization", _POSSESSION_INFO)

_LEVEL = [FlagGroup("level_info", [FieldDef("level", "u32")])]

LEVEL_PROGRESSION_CONSTRUCTION = StructDef("LevelProgressionConstruction", _LEVEL)
LEVEL_PROGRESSION_SERIALIZATION = StructDef("LevelProgressionSerialization", _LEVEL)

_FORCED_MOVEMENT = [
    FlagGroup("forced_movement", [
        FieldDef("player_on_rail", "bit"),
        FieldDef("show_billboard", "bit"),
    ]),
]

PLAYER_FORCED_MOVEMENT_CONSTRUCTION = StructDef("PlayerForcedMovementConstruction", _FORCED_MOVEMENT)
PLAYER_FORCED_MOVEMENT_SERIALIZATION = StructDef("PlayerForcedMovementSerialization", _FORCED_MOVEMENT)

_CHARACTER_SOCIAL = [
    FlagGroup("vehicle", [
        FieldDef("vehicle_id", "i64"),
        FieldDef("vehicle_state", "u8"),
    ]),
    FlagGroup("gm_info", [
        FieldDef("pvp_enabled", "bit"),
        FieldDef("is_gm", "bit"),
        FieldDef("gm_level", "u8"),
        FieldDef("editor_enabled", "bit"),
        FieldDef("editor_level", "u8"),
    ]),
    FlagGroup("guild", [
        FieldDef("guild_id", "i64"),
        FieldDef("guild_name", "var_wstr8"),
        FieldDef("is_guild_leader", "bit"),
    ]),
]

CHARACTER_CONSTRUCTION = StructDef("CharacterConstruction", [
    *[FieldDef(name, "u32") for name in (
        "hair_color", "hair_style", "head", "chest_color", "legs",
        "chest_decal", "head_color", "left_hand", "right_hand",
        "eyebrows", "eyes", "mouth",
    )],
    FieldDef("account_id", "u64"),
    FieldDef("last_logout", "u64"),
    FieldDef("universe_score", "u64"),
    FieldDef("is_free_trial", "bit"),
    FlagGroup("world_transition", [
        FieldDef("state", "u8"),
        FieldDef("rocket_lot", "i32"),
    ]),
    *_CHARACTER_SOCIAL,
])

CHARACTER_SERIALIZATION = StructDef("CharacterSerialization", _CHARACTER_SOCIAL)

BUFF_CONSTRUCTION = StructDef("BuffConstruction", [
    FlagGroup("buffs", [
        ArrayDef("entries", "u32", [
            FieldDef("buff_id", "u32"),
            FieldDef("duration_ms", "u32"),
            FieldDef("caster_id", "i64"),
            FieldDef("added_by_teammate", "bit"),
        ]),
    ]),
    FlagGroup("immunities", [
        ArrayDef("entries", "u32", [
            FieldDef("buff_id", "u32"),
            FieldDef("ref_count", "u32"),
        ]),
    ]),
])

_DESTROYABLE_STATS = FlagGroup("stats", [
    FieldDef("health", "u32"),
    FieldDef("max_health", "f32"),
    FieldDef("armor", "u32"),
    FieldDef("max_armor", "f32"),
    FieldDef("imagination", "u32"),
    FieldDef("max_imagination", "f32"),
    FieldDef("damage_absorption", "u32"),
    FieldDef("immunity", "bit"),
    FieldDef("is_gm_immune", "bit"),
    FieldDef("is_shielded", "bit"),
    ArrayDef("factions", "u32", [FieldDef("faction_id", "i32")]),
    FieldDef("is_smashable", "bit"),
])

DESTROYABLE_CONSTRUCTION = StructDef("DestroyableConstruction", [
    FlagGroup("status_immunity", [
        FieldDef(name, "u32") for name in (
            "immune_to_basic_attack", "immune_to_damage_over_time",
            "immune_to_knockback", "immune_to_interrupt", "immune_to_speed",
            "immune_to_imagination_gain", "immune_to_imagination_loss",
            "immune_to_quickbuild_interrupt", "immune_to_pull_to_point",
        )
    ]),
    _DESTROYABLE_STATS,
    FlagGroup("threat", [FieldDef("is_on_threat_list", "bit")]),
])

DESTROYABLE_SERIALIZATION = StructDef("DestroyableSerialization", [
    _DESTROYABLE_STATS,
    FlagGroup("threat", [FieldDef("is_on_threat_list", "bit")]),
])

SKILL_CONSTRUCTION = StructDef("SkillConstruction", [
    FlagGroup("skills", [
        ArrayDef("entries", "u32", [
            FieldDef("skill_id", "u32"),
            FieldDef("behavior_handle", "u32"),
            FieldDef("caster_id", "i64"),
        ]),
    ]),
])

_INVENTORY = [
    FlagGroup("equipped_items", [
        ArrayDef("items", "u32", [
            FieldDef("object_id", "i64"),
            FieldDef("lot", "i32"),
            FlagGroup("subkey", [FieldDef("subkey", "i64")]),
            FlagGroup("count", [FieldDef("count", "u32")]),
            FlagGroup("slot", [FieldDef("slot", "u16")]),
            FlagGroup("inventory_type", [FieldDef("inventory_type", "u32")]),
            FlagGroup("extra_info", [FieldDef("data", "var_bytes32")]),
            FieldDef("is_bound", "bit"),
        ]),
    ]),
    FlagGroup("equipped_model_transforms", [
        ArrayDef("transforms", "u32", [
            FieldDef("object_id", "i64"),
            *vec3("position"),
            *_quat("rotation"),
        ]),
    ]),
]

INVENTORY_CONSTRUCTION = StructDef("InventoryConstruction", _INVENTORY)
INVENTORY_SERIALIZATION = StructDef("InventorySerialization", _INVENTORY)

_BBB = [
    FlagGroup("metadata", [
        ArrayDef("blocks", "u32", [
            FieldDef("metadata_source_item", "i64"),
            FieldDef("block_id", "i64"),
        ]),
    ]),
]

BBB_CONSTRUCTION = StructDef("BbbConstruction", _BBB)
BBB_SERIALIZATION = StructDef("BbbSerialization", _BBB)


# ---- Envelope readers ----

def read_construction_header(reader: BitStream) -> dict:
    """Read a construction envelope, parent/child group included."""
    packet_id = reader.read_u8()
    if packet_id != CONSTRUCTION_PACKET_ID:
        raise UnderrunOrMalformedPayload(f"expected construction 0x24, got 0x{packet_id:02x}")
    if not reader.read_bit():
        raise UnderrunOrMalformedPayload("construction without replica flag")
    network_id = reader.read_u16()
    return {"network_id": network_id, **decode_struct(reader, CONSTRUCTION_HEADER)}


def read_serialization_header(reader: BitStream) -> dict:
    """Read a serialization envelope, parent/child group included."""
    packet_id = reader.read_u8()
    if packet_id != SERIALIZATION_PACKET_ID:
        raise UnderrunOrMalformedPayload(f"expected serialization 0x27, got 0x{packet_id:02x}")
    network_id = reader.read_u16()
    return {"network_id": network_id, **decode_struct(reader, SERIALIZATION_HEADER)}


def run_recipe(reader: BitStream, recipe: Sequence[StructDef]) -> list[dict]:
    """Decode each component structure of a recipe in order."""
    return [{"component": sdef.name, **decode_struct(reader, sdef)} for sdef in recipe]
