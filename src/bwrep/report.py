from __future__ import annotations

from typing import TYPE_CHECKING

import msgspec

from .types import Action, BuildOrderEntry, PlayerMetrics, PlayerSlot, ReplayHeader

if TYPE_CHECKING:
    from .pipeline import ReplayAnalysis


class HeaderReport(msgspec.Struct, forbid_unknown_fields=True, rename="camel"):
    signature: str
    engine_version: int
    frame_count: int
    duration: str
    save_time: int
    map_name: str
    game_creator: str
    map_width: int
    map_height: int
    variant: str


class PlayerReport(msgspec.Struct, forbid_unknown_fields=True, rename="camel"):
    id: int
    name: str
    race: str
    team: int
    color: int
    slot_type: str


class MetricsReport(msgspec.Struct, forbid_unknown_fields=True, rename="camel"):
    apm: int
    eapm: int
    action_count: int
    effective_action_count: int


class BuildOrderReport(msgspec.Struct, forbid_unknown_fields=True, rename="camel", omit_defaults=True):
    frame: int
    timestamp: str
    action_label: str
    estimated_supply: int
    unit_id: int | None = None


class ActionReport(msgspec.Struct, forbid_unknown_fields=True, rename="camel", omit_defaults=True):
    frame: int
    player_id: int
    opcode: int
    name: str
    unit_id: int | None = None
    unit_name: str | None = None
    x: int | None = None
    y: int | None = None


class DataQuality(msgspec.Struct, forbid_unknown_fields=True, rename="camel"):
    reliability: str
    commands_found: int
    source: str
    command_offset: int
    termination: str
    recognized_ratio: float
    unknown_bytes: int
    frame_markers: int
    low_confidence: bool
    inflated_from: int | None = None


class ReplayReport(msgspec.Struct, forbid_unknown_fields=True, rename="camel", omit_defaults=True):
    header: HeaderReport
    players: list[PlayerReport]
    metrics: dict[int, MetricsReport]
    build_orders: dict[int, list[BuildOrderReport]]
    data_quality: DataQuality
    actions: list[ActionReport] | None = None


def header_report(header: ReplayHeader) -> HeaderReport:
    return HeaderReport(
        signature=header.signature.decode("latin-1"),
        engine_version=header.engine_version,
        frame_count=header.frame_count,
        duration=header.duration,
        save_time=header.save_time,
        map_name=header.map_name,
        game_creator=header.game_creator,
        map_width=header.map_width,
        map_height=header.map_height,
        variant=header.variant.value,
    )


def player_report(player: PlayerSlot) -> PlayerReport:
    return PlayerReport(
        id=player.player_id,
        name=player.name,
        race=player.race.display_name,
        team=player.team,
        color=player.color,
        slot_type=player.slot_type.name.lower(),
    )


def metrics_report(metrics: PlayerMetrics) -> MetricsReport:
    return MetricsReport(
        apm=metrics.apm,
        eapm=metrics.eapm,
        action_count=metrics.action_count,
        effective_action_count=metrics.effective_action_count,
    )


def build_order_report(entry: BuildOrderEntry) -> BuildOrderReport:
    return BuildOrderReport(
        frame=entry.frame,
        timestamp=entry.timestamp,
        action_label=entry.action_label,
        estimated_supply=entry.estimated_supply,
        unit_id=entry.unit_id,
    )


def action_report(action: Action) -> ActionReport:
    return ActionReport(
        frame=action.frame,
        player_id=action.player_id,
        opcode=action.opcode,
        name=action.action_name,
        unit_id=action.unit_id,
        unit_name=action.unit_name,
        x=action.x,
        y=action.y,
    )


def build_report(analysis: ReplayAnalysis, *, action_limit: int = 0) -> ReplayReport:
    """Project a decoded replay onto the JSON report structure.

    `action_limit` > 0 attaches the first N decoded actions.
    """

    diag = analysis.diagnostics
    actions = None
    if int(action_limit) > 0:
        actions = [action_report(action) for action in analysis.actions[: int(action_limit)]]
    return ReplayReport(
        header=header_report(analysis.header),
        players=[player_report(player) for player in analysis.players],
        metrics={pid: metrics_report(m) for pid, m in analysis.metrics.items()},
        build_orders={
            pid: [build_order_report(entry) for entry in entries] for pid, entries in analysis.build_orders.items()
        },
        data_quality=DataQuality(
            reliability=diag.reliability.value,
            commands_found=diag.action_count,
            source=analysis.source,
            command_offset=diag.command_offset,
            termination=diag.termination.value,
            recognized_ratio=round(diag.recognized_ratio, 4),
            unknown_bytes=diag.unknown_bytes,
            frame_markers=diag.frame_markers,
            low_confidence=diag.low_confidence,
            inflated_from=analysis.inflated_from,
        ),
        actions=actions,
    )


def encode_report_json(report: ReplayReport, *, indent: int = 2) -> bytes:
    raw = msgspec.json.encode(report)
    if indent <= 0:
        return raw
    return msgspec.json.format(raw, indent=int(indent))


__all__ = [
    "ActionReport",
    "BuildOrderReport",
    "DataQuality",
    "HeaderReport",
    "MetricsReport",
    "PlayerReport",
    "ReplayReport",
    "build_report",
    "encode_report_json",
]
