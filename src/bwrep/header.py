from __future__ import annotations

from functools import lru_cache

from construct import Array, Byte, Bytes, ConstructError, Int16ul, Int32ul, Padding, Pointer, Struct

from .config import DecodeConfig, resolve_config
from .cursor import decode_fixed_string
from .errors import CorruptionError, EncodingError, FormatError
from .layout import (
    ENGINE_VERSION_OFFSET,
    GAME_CREATOR_SIZE,
    MAP_NAME_SIZE,
    MIN_HEADER_SIZE,
    PLAYER_NAME_SIZE,
    PLAYER_SLOT_COUNT,
    PLAYER_SLOT_SIZE,
    SIGNATURE_SIZE,
    HeaderLayout,
    detect_variant,
    layout_for,
)
from .types import PlayerSlot, Race, ReplayHeader, SlotType

_ENGINE_VERSION = Pointer(ENGINE_VERSION_OFFSET, Int32ul)

PLAYER_SLOT_STRUCT = Struct(
    "name" / Bytes(PLAYER_NAME_SIZE),
    Padding(2),
    "slot_type" / Byte,  # +0x1B
    "race" / Byte,  # +0x1C
    "team" / Byte,  # +0x1D
    Padding(1),
    "color" / Byte,  # +0x1F
    Padding(4),
)


@lru_cache(maxsize=None)
def header_struct(layout: HeaderLayout) -> Struct:
    return Struct(
        "signature" / Pointer(layout.signature, Bytes(SIGNATURE_SIZE)),
        "engine_version" / Pointer(layout.engine_version, Int32ul),
        "frame_count" / Pointer(layout.frame_count, Int32ul),
        "save_time" / Pointer(layout.save_time, Int32ul),
        "map_name" / Pointer(layout.map_name, Bytes(MAP_NAME_SIZE)),
        "game_creator" / Pointer(layout.game_creator, Bytes(GAME_CREATOR_SIZE)),
        "map_width" / Pointer(layout.map_width, Int16ul),
        "map_height" / Pointer(layout.map_height, Int16ul),
    )


def _nonempty_raw(raw: bytes) -> bool:
    end = raw.find(b"\x00")
    return (raw if end < 0 else raw[:end]).strip(b" ") != b""


def _required_string(raw: bytes, field: str) -> str:
    text = decode_fixed_string(raw)
    if not text and _nonempty_raw(raw):
        raise EncodingError(f"{field} has no printable characters: {raw.rstrip(bytes(1))!r}")
    return text


def decode_player_slots(data: bytes, layout: HeaderLayout) -> tuple[PlayerSlot, ...]:
    """Decode the player-slot table and keep active computer/human slots in slot order."""

    available = max(0, len(data) - layout.player_slots) // PLAYER_SLOT_SIZE
    count = min(PLAYER_SLOT_COUNT, available)
    if count <= 0:
        return ()
    try:
        raw_slots = Pointer(layout.player_slots, Array(count, PLAYER_SLOT_STRUCT)).parse(data)
    except ConstructError as exc:
        raise CorruptionError(f"player slot table is truncated: {exc}") from exc

    slots: list[PlayerSlot] = []
    for index, raw in enumerate(raw_slots):
        slot_type = SlotType.from_raw(raw.slot_type)
        if slot_type is SlotType.INACTIVE:
            continue
        name = _required_string(bytes(raw.name), f"player {index} name")
        slot = PlayerSlot(
            player_id=index,
            name=name,
            race=Race.from_raw(raw.race),
            team=int(raw.team),
            color=int(raw.color),
            slot_type=slot_type,
        )
        if slot.active:
            slots.append(slot)
    return tuple(slots)


def decode_header(data: bytes, config: DecodeConfig | None = None) -> tuple[ReplayHeader, tuple[PlayerSlot, ...]]:
    config = resolve_config(config)
    data = bytes(data)
    if len(data) < MIN_HEADER_SIZE:
        raise CorruptionError(f"buffer too short for a replay header: {len(data)} < {MIN_HEADER_SIZE} bytes")

    engine_version = int(_ENGINE_VERSION.parse(data))
    if not 0 < engine_version <= int(config.max_engine_version):
        raise FormatError(f"implausible engine version: {engine_version}")
    variant = detect_variant(engine_version)
    layout = layout_for(variant)
    if layout is None:
        raise FormatError(f"unsupported {variant.value} replay layout (engine version {engine_version})")
    if len(data) < layout.min_size:
        raise CorruptionError(f"buffer too short for a {variant.value} header: {len(data)} < {layout.min_size} bytes")

    try:
        raw = header_struct(layout).parse(data)
    except ConstructError as exc:
        raise CorruptionError(f"replay header is truncated: {exc}") from exc

    signature = bytes(raw.signature)
    if signature not in config.signature_bytes():
        raise FormatError(f"invalid replay signature: {signature!r}")

    header = ReplayHeader(
        signature=signature,
        engine_version=int(raw.engine_version),
        frame_count=int(raw.frame_count),
        save_time=int(raw.save_time),
        map_name=_required_string(bytes(raw.map_name), "map name"),
        game_creator=decode_fixed_string(bytes(raw.game_creator)),
        map_width=int(raw.map_width),
        map_height=int(raw.map_height),
        variant=variant,
    )
    return header, decode_player_slots(data, layout)


def header_looks_valid(data: bytes, config: DecodeConfig | None = None) -> bool:
    try:
        decode_header(data, config)
    except (FormatError, CorruptionError, EncodingError):
        return False
    return True


__all__ = [
    "PLAYER_SLOT_STRUCT",
    "decode_header",
    "decode_player_slots",
    "header_looks_valid",
    "header_struct",
]
