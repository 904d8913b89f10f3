from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .build_order import extract_build_orders
from .classify import classify_actions
from .config import DecodeConfig, resolve_config
from .decoder import decode_commands
from .diagnostics import DecodeDiagnostics, locator_failed_diagnostics
from .errors import CommandStreamNotFound, CorruptionError, FormatError
from .header import decode_header
from .inflate import inflate_embedded
from .locator import locate_command_stream
from .metrics import compute_metrics
from .opcodes import opcode_table
from .report import ReplayReport, build_report
from .trace import decode_trace, decode_trace_scope
from .types import ActionStream, BuildOrderEntry, PlayerMetrics, PlayerSlot, ReplayHeader

DECODER_SOURCE = "bwrep-native"


@dataclass(frozen=True, slots=True)
class ReplayAnalysis:
    header: ReplayHeader
    players: tuple[PlayerSlot, ...]
    actions: ActionStream
    metrics: dict[int, PlayerMetrics]
    build_orders: dict[int, tuple[BuildOrderEntry, ...]]
    diagnostics: DecodeDiagnostics
    source: str = DECODER_SOURCE
    inflated_from: int | None = None

    @property
    def player_ids(self) -> tuple[int, ...]:
        return tuple(player.player_id for player in self.players)

    def player(self, player_id: int) -> PlayerSlot | None:
        return next((p for p in self.players if p.player_id == int(player_id)), None)


def _decode_header_or_inflate(
    data: bytes, config: DecodeConfig
) -> tuple[bytes, ReplayHeader, tuple[PlayerSlot, ...], int | None]:
    try:
        header, players = decode_header(data, config)
    except (FormatError, CorruptionError) as exc:
        if not config.try_inflate:
            raise
        recovered = inflate_embedded(data, config)
        if recovered is None:
            raise
        inflated, offset = recovered
        decode_trace("inflated", offset=offset, size=len(inflated), reason=str(exc))
        header, players = decode_header(inflated, config)
        return inflated, header, players, offset
    return data, header, players, None


def _decode(data: bytes, config: DecodeConfig) -> ReplayAnalysis:
    decode_trace("decode_begin", size=len(data))

    data, header, players, inflated_from = _decode_header_or_inflate(data, config)
    player_ids = tuple(player.player_id for player in players)
    decode_trace(
        "header",
        engine_version=header.engine_version,
        frame_count=header.frame_count,
        map_name=header.map_name,
        players=len(players),
        variant=header.variant.value,
    )

    opcodes = opcode_table(header.variant)
    actions: ActionStream = ()
    try:
        located = locate_command_stream(data, opcodes, config)
    except CommandStreamNotFound as exc:
        if config.strict:
            raise
        decode_trace("locator_failed", reason=str(exc))
        diagnostics = locator_failed_diagnostics()
    else:
        decode_trace(
            "locator",
            offset=located.offset,
            score=f"{located.score:.3f}",
            low_confidence=located.low_confidence,
        )
        run = decode_commands(
            data,
            located,
            opcodes=opcodes,
            player_ids=player_ids,
            frame_limit=header.frame_count,
            config=config,
        )
        actions = classify_actions(run.actions, opcodes)
        diagnostics = run.diagnostics

    decode_trace(
        "decode_end",
        actions=diagnostics.action_count,
        frame_markers=diagnostics.frame_markers,
        reliability=diagnostics.reliability.value,
        termination=diagnostics.termination.value,
        unknown_bytes=diagnostics.unknown_bytes,
    )
    return ReplayAnalysis(
        header=header,
        players=players,
        actions=actions,
        metrics=compute_metrics(actions, player_ids, header.frame_count),
        build_orders=extract_build_orders(actions, player_ids),
        diagnostics=diagnostics,
        inflated_from=inflated_from,
    )


def decode_replay(data: bytes, config: DecodeConfig | None = None, *, source: str = "buffer") -> ReplayAnalysis:
    """Decode one complete replay buffer into actions, metrics and build orders.

    Header and cursor failures propagate. A missing command stream yields an
    `unrecoverable` analysis with no actions unless `config.strict` is set.
    Trace lines emitted by this call share one decode id.
    """

    config = resolve_config(config)
    with decode_trace_scope(source):
        return _decode(bytes(data), config)


def decode_replay_file(path: Path, config: DecodeConfig | None = None) -> ReplayAnalysis:
    path = Path(path)
    return decode_replay(path.read_bytes(), config, source=str(path))


def analyze_replay(
    data: bytes,
    config: DecodeConfig | None = None,
    *,
    action_limit: int = 0,
) -> ReplayReport:
    return build_report(decode_replay(data, config), action_limit=action_limit)


def analyze_replay_file(
    path: Path,
    config: DecodeConfig | None = None,
    *,
    action_limit: int = 0,
) -> ReplayReport:
    return build_report(decode_replay_file(path, config), action_limit=action_limit)


__all__ = [
    "DECODER_SOURCE",
    "ReplayAnalysis",
    "analyze_replay",
    "analyze_replay_file",
    "decode_replay",
    "decode_replay_file",
]
