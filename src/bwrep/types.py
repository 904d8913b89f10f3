from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Final, TypeAlias

FRAMES_PER_SECOND: Final[int] = 24
FRAMES_PER_MINUTE: Final[int] = FRAMES_PER_SECOND * 60


def format_frame_time(frame: int) -> str:
    """Format a frame index as `m:ss` game time (24 frames per second)."""

    total_s = max(0, int(frame)) // FRAMES_PER_SECOND
    minutes = total_s // 60
    seconds = total_s % 60
    return f"{minutes}:{seconds:02d}"


class FormatVariant(str, enum.Enum):
    CLASSIC = "classic"
    REMASTERED = "remastered"


class SlotType(enum.IntEnum):
    INACTIVE = 0
    COMPUTER = 2
    HUMAN = 6

    @classmethod
    def from_raw(cls, raw: int) -> "SlotType":
        try:
            return cls(int(raw))
        except ValueError:
            return cls.INACTIVE


class Race(enum.IntEnum):
    ZERG = 0
    TERRAN = 1
    PROTOSS = 2
    RANDOM = 6
    UNKNOWN = 0xFF

    @classmethod
    def from_raw(cls, raw: int) -> "Race":
        try:
            return cls(int(raw))
        except ValueError:
            return cls.UNKNOWN

    @property
    def display_name(self) -> str:
        return self.name.capitalize()


@dataclass(frozen=True, slots=True)
class ReplayHeader:
    signature: bytes
    engine_version: int
    frame_count: int
    save_time: int
    map_name: str
    game_creator: str = ""
    map_width: int = 0
    map_height: int = 0
    variant: FormatVariant = FormatVariant.REMASTERED

    @property
    def duration(self) -> str:
        return format_frame_time(self.frame_count)


@dataclass(frozen=True, slots=True)
class PlayerSlot:
    player_id: int
    name: str
    race: Race
    team: int
    color: int
    slot_type: SlotType

    @property
    def active(self) -> bool:
        return self.slot_type in (SlotType.COMPUTER, SlotType.HUMAN) and bool(self.name)


@dataclass(frozen=True, slots=True)
class Action:
    frame: int
    player_id: int
    opcode: int
    action_name: str
    offset: int = -1
    unit_id: int | None = None
    unit_name: str | None = None
    x: int | None = None
    y: int | None = None
    is_build_action: bool = False
    is_train_action: bool = False
    is_micro_action: bool = False
    is_selection_only: bool = False

    @property
    def is_effective(self) -> bool:
        return self.is_build_action or self.is_train_action or self.is_micro_action


ActionStream: TypeAlias = tuple[Action, ...]


@dataclass(frozen=True, slots=True)
class PlayerMetrics:
    apm: int
    eapm: int
    action_count: int = 0
    effective_action_count: int = 0


@dataclass(frozen=True, slots=True)
class BuildOrderEntry:
    player_id: int
    frame: int
    timestamp: str
    action_label: str
    estimated_supply: int
    unit_id: int | None = None


__all__ = [
    "FRAMES_PER_MINUTE",
    "FRAMES_PER_SECOND",
    "Action",
    "ActionStream",
    "BuildOrderEntry",
    "FormatVariant",
    "PlayerMetrics",
    "PlayerSlot",
    "Race",
    "ReplayHeader",
    "SlotType",
    "format_frame_time",
]
