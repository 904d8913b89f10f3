from __future__ import annotations

import sys
import warnings
from pathlib import Path

import msgspec
import typer

from .config import DecodeConfig, default_decode_config, load_decode_config
from .debug import debug_enabled, set_debug_enabled
from .diagnostics import DecodeDiagnostics
from .errors import DecodeFailure, describe_error
from .pipeline import ReplayAnalysis, decode_replay
from .reliability import ReplayReliabilityWarning, warn_on_low_reliability
from .report import build_report, encode_report_json
from .trace import close_decode_trace, init_decode_trace, init_decode_trace_from_env
from .types import Action, format_frame_time

app = typer.Typer(add_completion=False)


@app.callback()
def cmd_root(
    debug: bool = typer.Option(False, "--debug", help="print decoder diagnostics (also BWREP_DEBUG=1)"),
) -> None:
    """Decode StarCraft: Remastered .rep replays."""
    set_debug_enabled(True if debug else None)


def _load_config(config_file: Path | None, *, strict: bool) -> DecodeConfig:
    try:
        config = load_decode_config(config_file) if config_file is not None else default_decode_config()
    except (OSError, ValueError) as exc:
        typer.echo(f"cannot load config: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    if strict:
        config = msgspec.structs.replace(config, strict=True)
    return config


def _echo_failure(failure: DecodeFailure) -> None:
    typer.echo(f"error[{failure.kind}]: {failure.message}", err=True)
    for suggestion in failure.suggestions:
        typer.echo(f"  - {suggestion}", err=True)


def _echo_diagnostics(diag: DecodeDiagnostics) -> None:
    typer.echo(
        "diagnostics: "
        f"offset={diag.command_offset} score={diag.locator_score:.3f} low_confidence={diag.low_confidence} "
        f"recognized={diag.recognized_opcodes} unknown={diag.unknown_bytes} "
        f"rejected_player={diag.rejected_player_bytes} markers={diag.frame_markers} "
        f"actions={diag.action_count} final_frame={diag.final_frame} "
        f"termination={diag.termination.value} reliability={diag.reliability.value}",
        err=True,
    )


def _echo_reliability_warning(diag: DecodeDiagnostics, source: str) -> None:
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", ReplayReliabilityWarning)
        warn_on_low_reliability(diag, source=source)
    for warning in caught:
        typer.echo(f"warning: {warning.message}", err=True)


def _decode(
    replay_file: Path,
    *,
    config_file: Path | None = None,
    trace_log: Path | None = None,
    strict: bool = False,
) -> ReplayAnalysis:
    config = _load_config(config_file, strict=strict)
    try:
        data = Path(replay_file).read_bytes()
    except OSError as exc:
        typer.echo(f"cannot read replay: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if trace_log is not None:
        init_decode_trace(trace_log)
    else:
        init_decode_trace_from_env()
    try:
        analysis = decode_replay(data, config, source=str(replay_file))
    except Exception as exc:
        _echo_failure(describe_error(exc))
        raise typer.Exit(code=2) from exc
    finally:
        close_decode_trace()

    if debug_enabled():
        _echo_diagnostics(analysis.diagnostics)
    _echo_reliability_warning(analysis.diagnostics, str(replay_file))
    return analysis


def _player_label(analysis: ReplayAnalysis, player_id: int) -> str:
    player = analysis.player(player_id)
    if player is None:
        return f"#{player_id}"
    return player.name


def _require_player(analysis: ReplayAnalysis, player: int | None) -> None:
    if player is None or analysis.player(player) is not None:
        return
    known = ", ".join(str(pid) for pid in analysis.player_ids) or "none"
    typer.echo(f"unknown player id {player} (active: {known})", err=True)
    raise typer.Exit(code=1)


def _format_action(action: Action) -> str:
    parts = [
        f"{action.frame:6d}",
        f"{format_frame_time(action.frame):>6s}",
        f"p{action.player_id}",
        f"0x{action.opcode:02x}",
        action.action_name,
    ]
    if action.unit_name:
        parts.append(action.unit_name)
    if action.x is not None and action.y is not None:
        parts.append(f"({action.x},{action.y})")
    return "  ".join(parts)


@app.command("analyze")
def cmd_analyze(
    replay_file: Path = typer.Argument(..., help="replay file path (.rep)"),
    json_out: bool = typer.Option(False, "--json", help="print the full report as JSON"),
    actions: int = typer.Option(0, "--actions", min=0, help="include the first N actions in the JSON report"),
    config_file: Path | None = typer.Option(None, "--config", help="decode config (.toml or .json)"),
    trace_log: Path | None = typer.Option(
        None,
        "--trace-log",
        help="append decode trace lines to this file (default: BWREP_TRACE_LOG)",
    ),
    strict: bool = typer.Option(False, "--strict", help="fail instead of degrading reliability"),
) -> None:
    """Decode a replay and print metrics, build orders and data quality."""
    analysis = _decode(replay_file, config_file=config_file, trace_log=trace_log, strict=strict)
    report = build_report(analysis, action_limit=actions)
    if json_out:
        sys.stdout.write(encode_report_json(report).decode("utf-8") + "\n")
        sys.stdout.flush()
        return

    header = report.header
    typer.echo(f"map: {header.map_name}")
    typer.echo(f"duration: {header.duration} ({header.frame_count} frames)")
    typer.echo(f"engine: {header.engine_version} ({header.variant})")
    for player in report.players:
        metrics = report.metrics.get(player.id)
        apm = metrics.apm if metrics is not None else 0
        eapm = metrics.eapm if metrics is not None else 0
        builds = len(report.build_orders.get(player.id, []))
        typer.echo(f"  p{player.id}  {player.name:<24s} {player.race:<8s} apm={apm:<4d} eapm={eapm:<4d} builds={builds}")
    quality = report.data_quality
    typer.echo(
        f"reliability: {quality.reliability} (commands={quality.commands_found}, "
        f"offset={quality.command_offset}, termination={quality.termination})"
    )


@app.command("header")
def cmd_header(
    replay_file: Path = typer.Argument(..., help="replay file path (.rep)"),
    config_file: Path | None = typer.Option(None, "--config", help="decode config (.toml or .json)"),
) -> None:
    """Print header fields and active player slots."""
    analysis = _decode(replay_file, config_file=config_file)
    header = analysis.header
    typer.echo(f"signature={header.signature.decode('latin-1')!r}")
    typer.echo(f"engine_version={header.engine_version}")
    typer.echo(f"variant={header.variant.value}")
    typer.echo(f"frame_count={header.frame_count}")
    typer.echo(f"duration={header.duration}")
    typer.echo(f"save_time={header.save_time}")
    typer.echo(f"map_name={header.map_name!r}")
    typer.echo(f"map_size={header.map_width}x{header.map_height}")
    typer.echo(f"game_creator={header.game_creator!r}")
    for player in analysis.players:
        typer.echo(
            f"player id={player.player_id} name={player.name!r} race={player.race.display_name} "
            f"team={player.team} color={player.color} type={player.slot_type.name.lower()}"
        )


@app.command("actions")
def cmd_actions(
    replay_file: Path = typer.Argument(..., help="replay file path (.rep)"),
    player: int | None = typer.Option(None, "--player", help="only show actions from this player id"),
    limit: int = typer.Option(50, "--limit", min=0, help="maximum actions to print (0 = all)"),
    config_file: Path | None = typer.Option(None, "--config", help="decode config (.toml or .json)"),
) -> None:
    """List decoded actions in stream order."""
    analysis = _decode(replay_file, config_file=config_file)
    _require_player(analysis, player)
    shown = 0
    for action in analysis.actions:
        if player is not None and action.player_id != player:
            continue
        if limit and shown >= limit:
            break
        typer.echo(_format_action(action))
        shown += 1
    typer.echo(f"{shown} action(s) shown of {len(analysis.actions)} decoded", err=True)


@app.command("build-order")
def cmd_build_order(
    replay_file: Path = typer.Argument(..., help="replay file path (.rep)"),
    player: int | None = typer.Option(None, "--player", help="only show this player id"),
    config_file: Path | None = typer.Option(None, "--config", help="decode config (.toml or .json)"),
) -> None:
    """Print each player's build order."""
    analysis = _decode(replay_file, config_file=config_file)
    _require_player(analysis, player)
    for player_id, entries in analysis.build_orders.items():
        if player is not None and player_id != player:
            continue
        typer.echo(f"p{player_id} {_player_label(analysis, player_id)}:")
        if not entries:
            typer.echo("  (no build or train actions)")
        for entry in entries:
            typer.echo(f"  {entry.timestamp:>6s}  supply~{entry.estimated_supply:<3d} {entry.action_label}")


def main(argv: list[str] | None = None) -> None:
    app(prog_name="bwrep", args=argv)


if __name__ == "__main__":
    main()
