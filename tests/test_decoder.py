from __future__ import annotations

import pytest

from bwrep.config import DecodeConfig
from bwrep.decoder import DecoderState, decode_commands
from bwrep.diagnostics import Reliability, Termination
from bwrep.errors import CorruptionError
from bwrep.locator import LocatorResult
from bwrep.opcodes import REMASTERED_OPCODES

from synthetic_replay import build, frames, move, select, train, u16

_AT_ZERO = LocatorResult(offset=0, score=1.0, low_confidence=False)


def _decode(stream: bytes, *, players=(0, 1), frame_limit: int = 0, config: DecodeConfig | None = None):
    return decode_commands(
        stream,
        _AT_ZERO,
        opcodes=REMASTERED_OPCODES,
        player_ids=players,
        frame_limit=frame_limit,
        config=config or DecodeConfig(),
    )


def test_decoder_tracks_frames_and_payloads() -> None:
    stream = (
        frames(3)
        + build(0, 106, x=12, y=34)
        + frames(2)
        + move(1, x=500, y=600)
        + train(1, 64)
        + frames(1)
    )
    run = _decode(stream)

    assert run.state is DecoderState.DONE
    assert [(a.frame, a.player_id, a.action_name) for a in run.actions] == [
        (3, 0, "Build"),
        (5, 1, "Move"),
        (5, 1, "Train"),
    ]
    built, moved, trained = run.actions
    assert (built.unit_id, built.unit_name, built.x, built.y) == (106, "Command Center", 12, 34)
    assert (moved.x, moved.y, moved.unit_id) == (500, 600, None)
    assert trained.unit_name == "Probe"
    assert built.offset == 3

    diag = run.diagnostics
    assert diag.frame_markers == 6
    assert diag.recognized_opcodes == 3
    assert diag.unknown_bytes == 0
    assert diag.termination is Termination.EXHAUSTED
    assert diag.final_frame == 6


def test_unknown_bytes_are_skipped_one_at_a_time() -> None:
    stream = b"\xff\xfe" + train(0) + b"\x77"
    run = _decode(stream)
    assert len(run.actions) == 1
    assert run.diagnostics.unknown_bytes == 3
    assert run.diagnostics.recognized_ratio == pytest.approx(0.25)


def test_opcode_with_inactive_player_byte_is_rejected() -> None:
    # 0x1D followed by player 7 is not an action; resync on the next byte.
    stream = b"\x1d\x07" + frames(1) + train(1)
    run = _decode(stream)
    assert [a.player_id for a in run.actions] == [1]
    assert run.actions[0].frame == 1
    assert run.diagnostics.rejected_player_bytes == 1
    assert run.diagnostics.unknown_bytes == 2
    assert run.diagnostics.frame_markers == 1


def test_frame_limit_stops_decoding() -> None:
    stream = train(0) + frames(2) + train(0) + frames(5) + train(0)
    run = _decode(stream, frame_limit=4)
    assert len(run.actions) == 2
    assert run.diagnostics.termination is Termination.FRAME_LIMIT
    assert run.diagnostics.final_frame == 4


def test_zero_frame_limit_means_unbounded() -> None:
    run = _decode(frames(5000) + train(0), config=DecodeConfig(max_empty_frames=10_000))
    assert len(run.actions) == 1
    assert run.actions[0].frame == 5000


def test_long_silence_aborts() -> None:
    run = _decode(train(0) + frames(50) + train(0), config=DecodeConfig(max_empty_frames=20))
    assert len(run.actions) == 1
    assert run.state is DecoderState.ABORTED
    assert run.diagnostics.termination is Termination.EMPTY_FRAMES
    assert run.diagnostics.reliability is Reliability.LOW


def test_action_ceiling_stops_decoding() -> None:
    stream = b"".join(select(0) for _ in range(10))
    run = _decode(stream, config=DecodeConfig(max_actions=4))
    assert len(run.actions) == 4
    assert run.diagnostics.termination is Termination.ACTION_LIMIT
    assert run.diagnostics.truncated


def test_truncated_final_action_aborts() -> None:
    stream = train(0) + b"\x0c\x00" + u16(106)
    run = _decode(stream)
    assert len(run.actions) == 1
    assert run.state is DecoderState.ABORTED
    assert run.diagnostics.termination is Termination.TRUNCATED_ACTION
    assert run.diagnostics.reliability is Reliability.LOW


def test_truncated_final_action_raises_when_strict() -> None:
    stream = train(0) + b"\x0c\x00" + u16(106)
    with pytest.raises(CorruptionError, match="Build action at offset 4"):
        _decode(stream, config=DecodeConfig(strict=True))


def test_frames_never_decrease() -> None:
    stream = b"".join(frames(i % 3) + select(i % 2, i) + b"\xee" for i in range(200))
    run = _decode(stream)
    frames_seen = [a.frame for a in run.actions]
    assert frames_seen == sorted(frames_seen)
    assert len(run.actions) == 200
