from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from .config import DecodeConfig
from .errors import CommandStreamNotFound
from .opcodes import FRAME_MARKER, OpcodeSpec


@dataclass(frozen=True, slots=True)
class CandidateScore:
    offset: int
    window: int
    markers: int
    opcodes: int

    @property
    def score(self) -> float:
        if self.window <= 0:
            return 0.0
        return (self.markers + self.opcodes) / self.window


@dataclass(frozen=True, slots=True)
class LocatorResult:
    offset: int
    score: float
    low_confidence: bool
    candidates: tuple[CandidateScore, ...] = ()


def score_candidate(data: bytes, offset: int, opcodes: Mapping[int, OpcodeSpec], window: int) -> CandidateScore:
    chunk = data[offset : offset + window]
    markers = chunk.count(FRAME_MARKER)
    known = sum(1 for byte in chunk if byte in opcodes)
    return CandidateScore(offset=int(offset), window=len(chunk), markers=markers, opcodes=known)


def locate_command_stream(data: bytes, opcodes: Mapping[int, OpcodeSpec], config: DecodeConfig) -> LocatorResult:
    """Pick the command stream start among the configured candidate offsets.

    Counting is a density signal only; nothing is parsed here. The first
    candidate meeting both thresholds wins. Otherwise the configured fallback
    offset is returned flagged as low confidence, and `CommandStreamNotFound`
    is raised only when even the fallback lies outside the buffer.
    """

    scores: list[CandidateScore] = []
    for offset in config.locator_candidates:
        offset = int(offset)
        if offset >= len(data):
            continue
        candidate = score_candidate(data, offset, opcodes, int(config.locator_window))
        scores.append(candidate)
        if candidate.opcodes >= config.locator_min_opcodes and candidate.markers >= config.locator_min_markers:
            return LocatorResult(
                offset=candidate.offset,
                score=candidate.score,
                low_confidence=False,
                candidates=tuple(scores),
            )

    fallback = int(config.locator_fallback)
    if fallback >= len(data):
        raise CommandStreamNotFound(
            f"no command stream candidate fits in {len(data)} bytes (fallback offset {fallback})"
        )
    fallback_score = next((c for c in scores if c.offset == fallback), None)
    if fallback_score is None:
        fallback_score = score_candidate(data, fallback, opcodes, int(config.locator_window))
    return LocatorResult(
        offset=fallback,
        score=fallback_score.score,
        low_confidence=True,
        candidates=tuple(scores),
    )


__all__ = [
    "CandidateScore",
    "LocatorResult",
    "locate_command_stream",
    "score_candidate",
]
