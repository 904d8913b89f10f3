from __future__ import annotations

import math
from collections import Counter
from collections.abc import Iterable, Sequence

from .types import FRAMES_PER_MINUTE, Action, PlayerMetrics


def game_minutes(total_frames: int) -> float:
    return max(0, int(total_frames)) / FRAMES_PER_MINUTE


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_metrics(
    actions: Sequence[Action],
    player_ids: Iterable[int],
    total_frames: int,
) -> dict[int, PlayerMetrics]:
    """Fold the action stream into APM/EAPM per player.

    EAPM counts only build, train and micro actions, so `eapm <= apm` always
    holds. A zero-length game yields zeros instead of dividing by zero.
    """

    minutes = game_minutes(total_frames)
    all_counts: Counter[int] = Counter()
    effective_counts: Counter[int] = Counter()
    for action in actions:
        all_counts[action.player_id] += 1
        if action.is_effective:
            effective_counts[action.player_id] += 1

    out: dict[int, PlayerMetrics] = {}
    for player_id in player_ids:
        player_id = int(player_id)
        total = all_counts.get(player_id, 0)
        effective = effective_counts.get(player_id, 0)
        if minutes <= 0.0:
            apm = eapm = 0
        else:
            apm = _round_half_up(total / minutes)
            eapm = _round_half_up(effective / minutes)
        out[player_id] = PlayerMetrics(
            apm=apm,
            eapm=eapm,
            action_count=total,
            effective_action_count=effective,
        )
    return out


__all__ = [
    "compute_metrics",
    "game_minutes",
]
