from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Final, Mapping

from .types import FormatVariant

REMASTERED_MIN_ENGINE_VERSION: Final[int] = 74

# Same offset in every known layout, so it can be read before the variant is known.
ENGINE_VERSION_OFFSET: Final[int] = 0x04

SIGNATURE_SIZE: Final[int] = 4
MAP_NAME_SIZE: Final[int] = 32
GAME_CREATOR_SIZE: Final[int] = 25
PLAYER_NAME_SIZE: Final[int] = 25
PLAYER_SLOT_SIZE: Final[int] = 36
PLAYER_SLOT_COUNT: Final[int] = 8


@dataclass(frozen=True, slots=True)
class HeaderLayout:
    variant: FormatVariant
    signature: int
    engine_version: int
    frame_count: int
    save_time: int
    map_name: int
    game_creator: int
    map_width: int
    map_height: int
    player_slots: int

    @property
    def min_size(self) -> int:
        """Smallest buffer holding every scalar field and the first player slot."""

        scalar_end = max(
            self.signature + SIGNATURE_SIZE,
            self.frame_count + 4,
            self.save_time + 4,
            self.map_name + MAP_NAME_SIZE,
            self.game_creator + GAME_CREATOR_SIZE,
            self.map_width + 2,
            self.map_height + 2,
        )
        return max(scalar_end, self.player_slots + PLAYER_SLOT_SIZE)

    def slot_offset(self, index: int) -> int:
        return self.player_slots + int(index) * PLAYER_SLOT_SIZE


REMASTERED_LAYOUT: Final[HeaderLayout] = HeaderLayout(
    variant=FormatVariant.REMASTERED,
    signature=0x00,
    engine_version=ENGINE_VERSION_OFFSET,
    frame_count=0x0C,
    save_time=0x14,
    map_name=0x45,
    game_creator=0x65,
    map_width=0x7E,
    map_height=0x80,
    player_slots=0x161,
)

# Classic (pre-Remastered) offsets have not been reverse engineered; those
# files are rejected as unsupported until a layout is added here.
HEADER_LAYOUTS: Final[Mapping[FormatVariant, HeaderLayout]] = MappingProxyType(
    {
        FormatVariant.REMASTERED: REMASTERED_LAYOUT,
    }
)

MIN_HEADER_SIZE: Final[int] = min(layout.min_size for layout in HEADER_LAYOUTS.values())


def detect_variant(engine_version: int) -> FormatVariant:
    if int(engine_version) >= REMASTERED_MIN_ENGINE_VERSION:
        return FormatVariant.REMASTERED
    return FormatVariant.CLASSIC


def layout_for(variant: FormatVariant) -> HeaderLayout | None:
    return HEADER_LAYOUTS.get(variant)


__all__ = [
    "ENGINE_VERSION_OFFSET",
    "GAME_CREATOR_SIZE",
    "HEADER_LAYOUTS",
    "MAP_NAME_SIZE",
    "MIN_HEADER_SIZE",
    "PLAYER_NAME_SIZE",
    "PLAYER_SLOT_COUNT",
    "PLAYER_SLOT_SIZE",
    "REMASTERED_LAYOUT",
    "REMASTERED_MIN_ENGINE_VERSION",
    "SIGNATURE_SIZE",
    "HeaderLayout",
    "detect_variant",
    "layout_for",
]
