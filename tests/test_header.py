from __future__ import annotations

import pytest

from bwrep.config import DecodeConfig
from bwrep.errors import CorruptionError, EncodingError, FormatError
from bwrep.header import decode_header, header_looks_valid
from bwrep.layout import MIN_HEADER_SIZE, detect_variant
from bwrep.types import FormatVariant, Race, SlotType

from synthetic_replay import COMPUTER, SlotSpec, build_replay, header_bytes


def test_decode_header_reads_remastered_fields() -> None:
    header, players = decode_header(build_replay(b""))

    assert header.signature == b"Repl"
    assert header.engine_version == 74
    assert header.frame_count == 1440
    assert header.duration == "1:00"
    assert header.save_time == 1_700_000_000
    assert header.map_name == "Fighting Spirit"
    assert header.game_creator == "Alice"
    assert (header.map_width, header.map_height) == (128, 128)
    assert header.variant is FormatVariant.REMASTERED

    assert [p.player_id for p in players] == [0, 1]
    alice, bob = players
    assert alice.name == "Alice"
    assert alice.race is Race.TERRAN
    assert alice.slot_type is SlotType.HUMAN
    assert bob.race is Race.PROTOSS
    assert bob.race.display_name == "Protoss"
    assert (bob.team, bob.color) == (2, 1)


def test_decode_header_keeps_slot_index_as_player_id() -> None:
    slots = (
        SlotSpec(index=0, name=b"Human"),
        SlotSpec(index=3, name=b"Computer", slot_type=COMPUTER),
        SlotSpec(index=5, name=b"Ghost", slot_type=0),
        SlotSpec(index=6, name=b"", slot_type=6),
    )
    _header, players = decode_header(build_replay(b"", slots=slots))
    assert [(p.player_id, p.name) for p in players] == [(0, "Human"), (3, "Computer")]


@pytest.mark.parametrize("size", [0, 4, 100, MIN_HEADER_SIZE - 1])
def test_short_buffers_fail_without_partial_header(size: int) -> None:
    data = bytes(header_bytes())[:size]
    with pytest.raises((CorruptionError, FormatError)):
        decode_header(data)


@pytest.mark.parametrize("signature", [b"Repl", b"reRS", b"seRS"])
def test_accepted_signatures(signature: bytes) -> None:
    header, _players = decode_header(build_replay(b"", signature=signature))
    assert header.signature == signature


def test_bad_signature_is_format_error() -> None:
    with pytest.raises(FormatError, match="signature"):
        decode_header(build_replay(b"", signature=b"RIFF"))


def test_signature_list_is_configurable() -> None:
    config = DecodeConfig(accepted_signatures=["RIFF"])
    header, _players = decode_header(build_replay(b"", signature=b"RIFF"), config)
    assert header.signature == b"RIFF"


@pytest.mark.parametrize("engine_version", [0, 1001, 0xFFFFFFFF])
def test_implausible_engine_version_is_format_error(engine_version: int) -> None:
    with pytest.raises(FormatError, match="engine version"):
        decode_header(build_replay(b"", engine_version=engine_version))


def test_classic_layout_is_reported_as_unsupported() -> None:
    assert detect_variant(59) is FormatVariant.CLASSIC
    with pytest.raises(FormatError, match="unsupported classic"):
        decode_header(build_replay(b"", engine_version=59))


def test_map_name_with_control_bytes_is_filtered() -> None:
    header, _players = decode_header(build_replay(b"", map_name=b"Python\x01\x02\x03\x04\x05"))
    assert header.map_name == "Python"


def test_unreadable_map_name_is_encoding_error() -> None:
    with pytest.raises(EncodingError, match="map name"):
        decode_header(build_replay(b"", map_name=b"\x01\x02\x03"))


def test_unreadable_player_name_is_encoding_error() -> None:
    slots = (SlotSpec(index=0, name=b"\x05\x06\x07"),)
    with pytest.raises(EncodingError, match="player 0 name"):
        decode_header(build_replay(b"", slots=slots))


def test_header_looks_valid() -> None:
    assert header_looks_valid(build_replay(b""))
    assert not header_looks_valid(b"\x78\x9c" + bytes(1000))
    assert not header_looks_valid(b"")
