from __future__ import annotations

import enum
from dataclasses import dataclass, replace

from .config import DecodeConfig


class Reliability(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    UNRECOVERABLE = "unrecoverable"


class Termination(str, enum.Enum):
    EXHAUSTED = "exhausted"
    FRAME_LIMIT = "frame_limit"
    ACTION_LIMIT = "action_limit"
    EMPTY_FRAMES = "empty_frames"
    TRUNCATED_ACTION = "truncated_action"
    NOT_STARTED = "not_started"


# Terminations that mean the stream was abandoned before its natural end.
ABORTING_TERMINATIONS = frozenset({Termination.EMPTY_FRAMES, Termination.TRUNCATED_ACTION})


@dataclass(slots=True)
class DiagnosticsCounter:
    """Mutable counters owned by one decoder run."""

    recognized_opcodes: int = 0
    unknown_bytes: int = 0
    rejected_player_bytes: int = 0
    frame_markers: int = 0
    actions: int = 0

    def snapshot(
        self,
        *,
        offset: int,
        locator_score: float,
        low_confidence: bool,
        termination: Termination,
        final_frame: int,
        config: DecodeConfig,
    ) -> "DecodeDiagnostics":
        partial = DecodeDiagnostics(
            recognized_opcodes=self.recognized_opcodes,
            unknown_bytes=self.unknown_bytes,
            rejected_player_bytes=self.rejected_player_bytes,
            frame_markers=self.frame_markers,
            action_count=self.actions,
            command_offset=int(offset),
            locator_score=float(locator_score),
            low_confidence=bool(low_confidence),
            termination=termination,
            final_frame=int(final_frame),
        )
        return partial.with_reliability(assess_reliability(partial, config))


@dataclass(frozen=True, slots=True)
class DecodeDiagnostics:
    recognized_opcodes: int = 0
    unknown_bytes: int = 0
    rejected_player_bytes: int = 0
    frame_markers: int = 0
    action_count: int = 0
    command_offset: int = -1
    locator_score: float = 0.0
    low_confidence: bool = True
    termination: Termination = Termination.NOT_STARTED
    final_frame: int = 0
    reliability: Reliability = Reliability.UNRECOVERABLE
    locator_failed: bool = False

    @property
    def recognized_ratio(self) -> float:
        # Rejected player bytes count as unknown: the opcode byte was skipped.
        total = self.recognized_opcodes + self.unknown_bytes
        if total <= 0:
            return 0.0
        return self.recognized_opcodes / total

    @property
    def truncated(self) -> bool:
        return self.termination is Termination.ACTION_LIMIT

    @property
    def aborted(self) -> bool:
        return self.termination in ABORTING_TERMINATIONS

    def with_reliability(self, reliability: Reliability) -> "DecodeDiagnostics":
        return replace(self, reliability=reliability)


def locator_failed_diagnostics() -> DecodeDiagnostics:
    return DecodeDiagnostics(locator_failed=True, reliability=Reliability.UNRECOVERABLE)


def assess_reliability(diag: DecodeDiagnostics, config: DecodeConfig) -> Reliability:
    if diag.locator_failed:
        return Reliability.UNRECOVERABLE
    if diag.low_confidence or diag.aborted or diag.action_count <= 0:
        return Reliability.LOW
    strong = (
        diag.recognized_ratio >= float(config.high_min_recognized_ratio)
        and diag.action_count >= int(config.high_min_actions)
    )
    if strong and not diag.truncated:
        return Reliability.HIGH
    return Reliability.MEDIUM


__all__ = [
    "ABORTING_TERMINATIONS",
    "DecodeDiagnostics",
    "DiagnosticsCounter",
    "Reliability",
    "Termination",
    "assess_reliability",
    "locator_failed_diagnostics",
]
