"""
Protocol Packet Types — registry of leaf message structures.

Leaf structures are declared, not hand-decoded: a StructDef is an ordered
list of fields, presence-flagged groups and counted arrays, and
decode_struct() walks it against a BitStream.

Service messages (handshake, world system traffic) share one envelope:
    [0x53:u8][service:u16][message_id:u32][padding:u8][body...]
and are looked up in KNOWN_MESSAGES by (service, message_id).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Union

from lu_replay.errors import UnderrunOrMalformedPayload
from lu_replay.protocol.reader import BitStream

SERVICE_PACKET_ID = 0x53


class Service(IntEnum):
    GENERAL = 0
    AUTH = 1
    CHAT = 2
    WORLD = 4   # messages to the world server
    CLIENT = 5  # messages to the client


@dataclass
class FieldDef:
    """A single value within a structure."""
    name: str
    type: str  # "bit", "u8".."u64", "i8".."i64", "f32", "f64", "str", "wstr", "bytes", "var_*"
    size: int = 0  # bytes for "str"/"bytes", UTF-16 units for "wstr"
    description: str = ""


@dataclass
class FlagGroup:
    """Fields present only when a leading flag bit is set."""
    name: str
    fields: list[Member] = field(default_factory=list)
    description: str = ""


@dataclass
class ArrayDef:
    """A count followed by that many records."""
    name: str
    count_type: str
    fields: list[Member] = field(default_factory=list)
    description: str = ""


Member = Union[FieldDef, FlagGroup, ArrayDef]


@dataclass
class StructDef:
    """An ordered leaf structure."""
    name: str
    fields: list[Member] = field(default_factory=list)
    description: str = ""


@dataclass
class MessageDef:
    """Definition of a known service message."""
    service: int
    message_id: int
    name: str
    body: StructDef
    description: str = ""


def vec3(prefix: str) -> list[Member]:
    """Three f32 fields: <prefix>_x, <prefix>_y, <prefix>_z."""
    return [FieldDef(f"{prefix}_x", "f32"), FieldDef(f"{prefix}_y", "f32"), FieldDef(f"{prefix}_z", "f32")]


# ---- Registry of known service messages ----

KNOWN_MESSAGES: dict[tuple[int, int], MessageDef] = {}


def register_message(mdef: MessageDef) -> None:
    """Register a message definition."""
    KNOWN_MESSAGES[(mdef.service, mdef.message_id)] = mdef


for _mdef in (
    # ---- General ----

    MessageDef(
        Service.GENERAL, 0x00, "HANDSHAKE",
        StructDef("Handshake", [
            FieldDef("network_version", "u32"),
            FieldDef("padding_a", "u32"),
            FieldDef("service_id", "u16", description="Service of the sending peer"),
            FieldDef("padding_b", "u16"),
        ]),
        description="First message on every connection",
    ),

    # ---- Auth ----

    MessageDef(
        Service.AUTH, 0x00, "LOGIN_REQUEST",
        StructDef("LoginRequest", [
            FieldDef("username", "wstr", 33),
            FieldDef("password", "wstr", 41),
            FieldDef("locale_id", "u16"),
            FieldDef("client_os", "u8", description="0=unknown, 1=windows, 2=macos"),
            FieldDef("memory_stats", "wstr", 256),
            FieldDef("video_card_info", "wstr", 128),
            FieldDef("number_of_processors", "u32"),
            FieldDef("processor_type", "u32"),
            FieldDef("processor_level", "u16"),
            FieldDef("processor_revision", "u16"),
            FieldDef("os_version_info_size", "u32"),
            FieldDef("major_version", "u32"),
            FieldDef("minor_version", "u32"),
            FieldDef("build_number", "u32"),
            FieldDef("platform_id", "u32"),
        ]),
    ),

    # ---- Chat ----

    MessageDef(
        Service.CHAT, 0x01, "GENERAL_CHAT_MESSAGE",
        StructDef("GeneralChatMessage", [
            FieldDef("sender_id", "u64"),
            FieldDef("chat_channel", "u8"),
            FieldDef("source_id", "u16"),
            FieldDef("message", "var_wstr32"),
        ]),
    ),

    # ---- World server ----

    MessageDef(
        Service.WORLD, 0x01, "CLIENT_VALIDATION",
        StructDef("ClientValidation", [
            FieldDef("username", "wstr", 33),
            FieldDef("session_key", "wstr", 33),
            FieldDef("fdb_checksum", "str", 33),
        ]),
    ),

    MessageDef(
        Service.WORLD, 0x02, "CHARACTER_LIST_REQUEST",
        StructDef("CharacterListRequest"),
    ),

    MessageDef(
        Service.WORLD, 0x04, "CHARACTER_LOGIN_REQUEST",
        StructDef("CharacterLoginRequest", [
            FieldDef("char_id", "u64"),
        ]),
    ),

    MessageDef(
        Service.WORLD, 0x13, "LEVEL_LOAD_COMPLETE",
        StructDef("LevelLoadComplete", [
            FieldDef("zone_id", "u16"),
            FieldDef("map_instance", "u16"),
            FieldDef("map_clone", "u32"),
        ]),
    ),

    # ---- Client ----

    MessageDef(
        Service.CLIENT, 0x02, "LOAD_STATIC_ZONE",
        StructDef("LoadStaticZone", [
            FieldDef("zone_id", "u16"),
            FieldDef("map_instance", "u16"),
            FieldDef("map_clone", "u32"),
            FieldDef("map_checksum", "u32"),
            FieldDef("editor_enabled", "u8"),
            FieldDef("editor_level", "u8"),
            *vec3("player_position"),
            FieldDef("instance_type", "u32"),
        ]),
    ),

    MessageDef(
        Service.CLIENT, 0x07, "CHARACTER_CREATE_RESPONSE",
        StructDef("CharacterCreateResponse", [
            FieldDef("result", "u8"),
        ]),
    ),

    MessageDef(
        Service.CLIENT, 0x08, "CHARACTER_DELETE_RESPONSE",
        StructDef("CharacterDeleteResponse", [
            FieldDef("success", "u8"),
        ]),
    ),

    MessageDef(
        Service.CLIENT, 0x0e, "TRANSFER_TO_WORLD",
        StructDef("TransferToWorld", [
            FieldDef("redirect_ip", "str", 33),
            FieldDef("redirect_port", "u16"),
            FieldDef("is_maintenance_transfer", "u8"),
        ]),
    ),
):
    register_message(_mdef)


# ---- Decoding ----

def decode_field(reader: BitStream, field_def: FieldDef) -> int | float | bool | str | bytes:
    """Decode a single field at the reader's cursor."""
    match field_def.type:
        case "bit":
            return reader.read_bit()
        case "u8":
            return reader.read_u8()
        case "u16":
            return reader.read_u16()
        case "u32":
            return reader.read_u32()
        case "u64":
            return reader.read_u64()
        case "i8":
            return reader.read_i8()
        case "i16":
            return reader.read_i16()
        case "i32":
            return reader.read_i32()
        case "i64":
            return reader.read_i64()
        case "f32":
            return reader.read_f32()
        case "f64":
            return reader.read_f64()
        case "str":
            return reader.read_str(field_def.size)
        case "wstr":
            return reader.read_wstr(field_def.size)
        case "bytes":
            return reader.read_bytes(field_def.size)
        case "var_str8":
            return reader.read_var_str("u8")
        case "var_wstr8":
            return reader.read_var_wstr("u8")
        case "var_wstr32":
            return reader.read_var_wstr("u32")
        case "var_bytes32":
            return reader.read_var_bytes("u32")
        case _:
            raise ValueError(f"unknown field type {field_def.type!r} for {field_def.name}")


def _decode_members(reader: BitStream, members: list[Member]) -> dict:
    result: dict = {}
    for m in members:
        if isinstance(m, FlagGroup):
            result[m.name] = _decode_members(reader, m.fields) if reader.read_bit() else None
        elif isinstance(m, ArrayDef):
            count = decode_field(reader, FieldDef(m.name, m.count_type))
            result[m.name] = [_decode_members(reader, m.fields) for _ in range(count)]
        else:
            result[m.name] = decode_field(reader, m)
    return result


def decode_struct(reader: BitStream, sdef: StructDef) -> dict:
    """Decode one leaf structure at the reader's cursor."""
    return _decode_members(reader, sdef.fields)


def decode_message(reader: BitStream, services: set[int] | None = None) -> dict:
    """Decode a service message, header included.

    `services` restricts which services are acceptable for the caller's
    packet category; anything else is malformed for that category.
    """
    packet_id = reader.read_u8()
    if packet_id != SERVICE_PACKET_ID:
        raise UnderrunOrMalformedPayload(f"expected packet id 0x53, got 0x{packet_id:02x}")
    service = reader.read_u16()
    message_id = reader.read_u32()
    reader.read_u8()  # padding

    if services is not None and service not in services:
        raise UnderrunOrMalformedPayload(f"service {service} not valid here")
    mdef = KNOWN_MESSAGES.get((service, message_id))
    if mdef is None:
        raise UnderrunOrMalformedPayload(
            f"no schema for service {service} message 0x{message_id:02x}"
        )

    return {
        "service": service,
        "message_id": message_id,
        "name": mdef.name,
        **decode_struct(reader, mdef.body),
    }
