from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Final

from .types import Action, BuildOrderEntry, format_frame_time

# Placeholder supply model: a fixed base plus a fixed step per earlier entry.
# It does not simulate supply providers or unit costs.
SUPPLY_BASE: Final[int] = 4
SUPPLY_STEP: Final[int] = 2


def estimate_supply(entry_index: int) -> int:
    return SUPPLY_BASE + SUPPLY_STEP * max(0, int(entry_index))


def is_production(action: Action) -> bool:
    return action.is_build_action or action.is_train_action


def action_label(action: Action) -> str:
    if action.unit_name:
        return action.unit_name
    return action.action_name


def extract_build_orders(actions: Sequence[Action], player_ids: Iterable[int]) -> dict[int, tuple[BuildOrderEntry, ...]]:
    out: dict[int, tuple[BuildOrderEntry, ...]] = {}
    for player_id in player_ids:
        player_id = int(player_id)
        produced = [a for a in actions if a.player_id == player_id and is_production(a)]
        # sorted() is stable: same-frame entries keep decode order.
        produced = sorted(produced, key=lambda a: a.frame)
        out[player_id] = tuple(
            BuildOrderEntry(
                player_id=player_id,
                frame=action.frame,
                timestamp=format_frame_time(action.frame),
                action_label=action_label(action),
                estimated_supply=estimate_supply(index),
                unit_id=action.unit_id,
            )
            for index, action in enumerate(produced)
        )
    return out


__all__ = [
    "SUPPLY_BASE",
    "SUPPLY_STEP",
    "action_label",
    "estimate_supply",
    "extract_build_orders",
    "is_production",
]
