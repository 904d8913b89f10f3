from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from typing import Mapping

from .opcodes import REMASTERED_OPCODES, ActionCategory, OpcodeSpec
from .types import Action, ActionStream


def action_category(action: Action, opcodes: Mapping[int, OpcodeSpec] = REMASTERED_OPCODES) -> ActionCategory:
    spec = opcodes.get(int(action.opcode))
    if spec is None:
        return ActionCategory.OTHER
    return spec.category


def classify_action(action: Action, opcodes: Mapping[int, OpcodeSpec] = REMASTERED_OPCODES) -> Action:
    category = action_category(action, opcodes)
    return replace(
        action,
        is_build_action=category is ActionCategory.BUILD,
        is_train_action=category is ActionCategory.TRAIN,
        is_micro_action=category is ActionCategory.MICRO,
        is_selection_only=category is ActionCategory.SELECTION,
    )


def classify_actions(actions: Iterable[Action], opcodes: Mapping[int, OpcodeSpec] = REMASTERED_OPCODES) -> ActionStream:
    return tuple(classify_action(action, opcodes) for action in actions)


__all__ = [
    "action_category",
    "classify_action",
    "classify_actions",
]
