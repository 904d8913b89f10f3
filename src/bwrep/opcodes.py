from __future__ import annotations

import enum
from dataclasses import dataclass
from types import MappingProxyType
from typing import Final, Mapping

from .types import FormatVariant

FRAME_MARKER: Final[int] = 0x00

# Opcode byte + player byte precede every payload.
ACTION_PREFIX_SIZE: Final[int] = 2


class ActionCategory(str, enum.Enum):
    BUILD = "build"
    TRAIN = "train"
    MICRO = "micro"
    SELECTION = "selection"
    OTHER = "other"


class PayloadKind(str, enum.Enum):
    RAW = "raw"
    # unit_id:u16
    UNIT = "unit"
    # unit_id:u16 x:u16 y:u16
    BUILD = "build"
    # x:u16 y:u16
    POINT = "point"
    # x:u16 y:u16 target:u16
    POINT_TARGET = "point_target"


_PAYLOAD_SIZES: Final[Mapping[PayloadKind, int]] = MappingProxyType(
    {
        PayloadKind.UNIT: 2,
        PayloadKind.BUILD: 6,
        PayloadKind.POINT: 4,
        PayloadKind.POINT_TARGET: 6,
    }
)


@dataclass(frozen=True, slots=True)
class OpcodeSpec:
    opcode: int
    name: str
    payload_length: int
    category: ActionCategory = ActionCategory.OTHER
    payload: PayloadKind = PayloadKind.RAW

    def __post_init__(self) -> None:
        expected = _PAYLOAD_SIZES.get(self.payload)
        if expected is not None and expected != self.payload_length:
            raise ValueError(f"opcode 0x{self.opcode:02x}: {self.payload.value} payload needs {expected} bytes")

    @property
    def encoded_length(self) -> int:
        return ACTION_PREFIX_SIZE + self.payload_length


def _table(*specs: OpcodeSpec) -> Mapping[int, OpcodeSpec]:
    out: dict[int, OpcodeSpec] = {}
    for spec in specs:
        if spec.opcode == FRAME_MARKER:
            raise ValueError("opcode 0x00 is reserved for the frame marker")
        if spec.opcode in out:
            raise ValueError(f"duplicate opcode 0x{spec.opcode:02x}")
        out[spec.opcode] = spec
    return MappingProxyType(out)


_S = ActionCategory.SELECTION
_B = ActionCategory.BUILD
_T = ActionCategory.TRAIN
_M = ActionCategory.MICRO

REMASTERED_OPCODES: Final[Mapping[int, OpcodeSpec]] = _table(
    OpcodeSpec(0x09, "Select", 2, _S),
    OpcodeSpec(0x0A, "Shift Select", 2, _S),
    OpcodeSpec(0x0B, "Shift Deselect", 2, _S),
    OpcodeSpec(0x0C, "Build", 6, _B, PayloadKind.BUILD),
    OpcodeSpec(0x0D, "Vision", 2),
    OpcodeSpec(0x0E, "Alliance", 4),
    OpcodeSpec(0x13, "Hotkey", 2),
    OpcodeSpec(0x14, "Move", 4, _M, PayloadKind.POINT),
    OpcodeSpec(0x15, "Attack", 6, _M, PayloadKind.POINT_TARGET),
    OpcodeSpec(0x18, "Cancel", 0),
    OpcodeSpec(0x19, "Cancel Hatch", 0),
    OpcodeSpec(0x1A, "Stop", 0, _M),
    OpcodeSpec(0x1D, "Train", 2, _T, PayloadKind.UNIT),
    OpcodeSpec(0x1E, "Cancel Train", 2),
    OpcodeSpec(0x20, "Cloak", 0),
    OpcodeSpec(0x21, "Decloak", 0),
    OpcodeSpec(0x22, "Unit Morph", 2, _T, PayloadKind.UNIT),
    OpcodeSpec(0x23, "Unsiege", 0),
    OpcodeSpec(0x24, "Siege", 0),
    OpcodeSpec(0x27, "Unload All", 0),
    OpcodeSpec(0x2A, "Hold Position", 0, _M),
    OpcodeSpec(0x2B, "Burrow", 0),
    OpcodeSpec(0x2C, "Unburrow", 0),
    OpcodeSpec(0x2F, "Research", 2),
    OpcodeSpec(0x31, "Upgrade", 2),
    OpcodeSpec(0x34, "Building Morph", 2, _B, PayloadKind.UNIT),
    OpcodeSpec(0x35, "Stim", 0),
)

OPCODE_TABLES: Final[Mapping[FormatVariant, Mapping[int, OpcodeSpec]]] = MappingProxyType(
    {
        FormatVariant.REMASTERED: REMASTERED_OPCODES,
    }
)


def opcode_table(variant: FormatVariant) -> Mapping[int, OpcodeSpec]:
    table = OPCODE_TABLES.get(variant)
    if table is None:
        raise KeyError(f"no opcode table for {variant.value} replays")
    return table


def opcode_name(opcode: int, table: Mapping[int, OpcodeSpec] = REMASTERED_OPCODES) -> str:
    spec = table.get(int(opcode))
    if spec is None:
        return f"Command_{int(opcode):02x}"
    return spec.name


def opcodes_in_category(category: ActionCategory, table: Mapping[int, OpcodeSpec] = REMASTERED_OPCODES) -> frozenset[int]:
    return frozenset(code for code, spec in table.items() if spec.category is category)


__all__ = [
    "ACTION_PREFIX_SIZE",
    "FRAME_MARKER",
    "OPCODE_TABLES",
    "REMASTERED_OPCODES",
    "ActionCategory",
    "OpcodeSpec",
    "PayloadKind",
    "opcode_name",
    "opcode_table",
    "opcodes_in_category",
]
