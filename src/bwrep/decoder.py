from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Mapping

from .config import DecodeConfig
from .cursor import ByteCursor
from .diagnostics import DecodeDiagnostics, DiagnosticsCounter, Termination
from .errors import CorruptionError
from .locator import LocatorResult
from .opcodes import FRAME_MARKER, OpcodeSpec, PayloadKind
from .types import Action, ActionStream
from .units import unit_name


class DecoderState(str, enum.Enum):
    ADVANCING_FRAME = "advancing_frame"
    DECODING_ACTION = "decoding_action"
    SKIPPING_UNKNOWN = "skipping_unknown"
    DONE = "done"
    ABORTED = "aborted"


TERMINAL_STATES = frozenset({DecoderState.DONE, DecoderState.ABORTED})


@dataclass(frozen=True, slots=True)
class DecodeRun:
    actions: ActionStream
    diagnostics: DecodeDiagnostics
    state: DecoderState


class CommandDecoder:
    """Walk the command stream one byte at a time.

    `0x00` advances the frame counter. A known opcode followed by an active
    player id is decoded as `[opcode][player][payload]` with the payload length
    from the opcode table. Anything else is skipped one byte at a time.
    """

    def __init__(
        self,
        data: bytes,
        *,
        opcodes: Mapping[int, OpcodeSpec],
        player_ids: Iterable[int],
        frame_limit: int,
        config: DecodeConfig,
    ) -> None:
        self._cursor = ByteCursor(data)
        self._opcodes = opcodes
        self._player_ids = frozenset(int(pid) for pid in player_ids)
        self._frame_limit = max(0, int(frame_limit))
        self._config = config
        self._state = DecoderState.ADVANCING_FRAME
        self._termination = Termination.NOT_STARTED
        self._frame = 0
        self._empty_frames = 0
        self._counter = DiagnosticsCounter()
        self._actions: list[Action] = []

    @property
    def state(self) -> DecoderState:
        return self._state

    @property
    def frame(self) -> int:
        return self._frame

    def _finish(self, state: DecoderState, termination: Termination) -> None:
        self._state = state
        self._termination = termination

    def _advance_frame(self) -> None:
        if not self._cursor.can_read(1):
            self._finish(DecoderState.DONE, Termination.EXHAUSTED)
            return
        byte = self._cursor.peek_u8()
        if byte == FRAME_MARKER:
            self._cursor.skip(1)
            self._frame += 1
            self._empty_frames += 1
            self._counter.frame_markers += 1
            if self._frame_limit and self._frame >= self._frame_limit:
                self._finish(DecoderState.DONE, Termination.FRAME_LIMIT)
            elif self._empty_frames > int(self._config.max_empty_frames):
                self._finish(DecoderState.ABORTED, Termination.EMPTY_FRAMES)
        elif byte in self._opcodes:
            self._state = DecoderState.DECODING_ACTION
        else:
            self._state = DecoderState.SKIPPING_UNKNOWN

    def _skip_unknown(self) -> None:
        self._cursor.skip(1)
        self._counter.unknown_bytes += 1
        self._state = DecoderState.ADVANCING_FRAME

    def _reject_opcode(self) -> None:
        self._counter.rejected_player_bytes += 1
        self._skip_unknown()

    def _decode_action(self) -> None:
        cursor = self._cursor
        start = cursor.position
        spec = self._opcodes[cursor.peek_u8()]

        if cursor.can_read(2) and cursor.data[start + 1] not in self._player_ids:
            self._reject_opcode()
            return
        if not cursor.can_read(spec.encoded_length):
            if self._config.strict:
                raise CorruptionError(
                    f"{spec.name} action at offset {start} needs {spec.encoded_length} bytes, "
                    f"{cursor.remaining()} left"
                )
            self._finish(DecoderState.ABORTED, Termination.TRUNCATED_ACTION)
            return

        cursor.skip(1)
        player_id = cursor.read_u8()
        unit_id: int | None = None
        x: int | None = None
        y: int | None = None
        if spec.payload is PayloadKind.UNIT:
            unit_id = cursor.read_u16le()
        elif spec.payload is PayloadKind.BUILD:
            unit_id = cursor.read_u16le()
            x = cursor.read_u16le()
            y = cursor.read_u16le()
        elif spec.payload is PayloadKind.POINT:
            x = cursor.read_u16le()
            y = cursor.read_u16le()
        elif spec.payload is PayloadKind.POINT_TARGET:
            x = cursor.read_u16le()
            y = cursor.read_u16le()
            cursor.skip(2)  # target unit tag
        else:
            cursor.skip(spec.payload_length)

        self._actions.append(
            Action(
                frame=self._frame,
                player_id=player_id,
                opcode=spec.opcode,
                action_name=spec.name,
                offset=start,
                unit_id=unit_id,
                unit_name=unit_name(unit_id) if unit_id is not None else None,
                x=x,
                y=y,
            )
        )
        self._counter.recognized_opcodes += 1
        self._counter.actions += 1
        self._empty_frames = 0
        if len(self._actions) >= int(self._config.max_actions):
            self._finish(DecoderState.DONE, Termination.ACTION_LIMIT)
        else:
            self._state = DecoderState.ADVANCING_FRAME

    def run(self, locator: LocatorResult) -> DecodeRun:
        self._cursor.set_position(locator.offset)
        while self._state not in TERMINAL_STATES:
            if self._state is DecoderState.ADVANCING_FRAME:
                self._advance_frame()
            elif self._state is DecoderState.DECODING_ACTION:
                self._decode_action()
            else:
                self._skip_unknown()

        diagnostics = self._counter.snapshot(
            offset=locator.offset,
            locator_score=locator.score,
            low_confidence=locator.low_confidence,
            termination=self._termination,
            final_frame=self._frame,
            config=self._config,
        )
        return DecodeRun(actions=tuple(self._actions), diagnostics=diagnostics, state=self._state)


def decode_commands(
    data: bytes,
    locator: LocatorResult,
    *,
    opcodes: Mapping[int, OpcodeSpec],
    player_ids: Iterable[int],
    frame_limit: int,
    config: DecodeConfig,
) -> DecodeRun:
    decoder = CommandDecoder(
        data,
        opcodes=opcodes,
        player_ids=player_ids,
        frame_limit=frame_limit,
        config=config,
    )
    return decoder.run(locator)


__all__ = [
    "TERMINAL_STATES",
    "CommandDecoder",
    "DecodeRun",
    "DecoderState",
    "decode_commands",
]
