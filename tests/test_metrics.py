from __future__ import annotations

import pytest

from bwrep.classify import classify_action
from bwrep.metrics import compute_metrics, game_minutes
from bwrep.types import Action, format_frame_time


def _classified(opcode: int, player_id: int, frame: int = 0) -> Action:
    return classify_action(Action(frame=frame, player_id=player_id, opcode=opcode, action_name=""))


def test_ten_actions_in_one_minute_is_ten_apm() -> None:
    actions = [_classified(0x14, 0, frame=i * 100) for i in range(10)]
    metrics = compute_metrics(actions, [0, 1], total_frames=1440)
    assert metrics[0].apm == 10
    assert metrics[0].eapm == 10
    assert metrics[1].apm == 0
    assert metrics[1].action_count == 0


def test_selection_counts_toward_apm_only() -> None:
    actions = [_classified(0x09, 0) for _ in range(6)] + [_classified(0x1D, 0) for _ in range(2)]
    metrics = compute_metrics(actions, [0], total_frames=2880)
    assert metrics[0].apm == 4
    assert metrics[0].eapm == 1
    assert metrics[0].effective_action_count == 2
    assert metrics[0].eapm <= metrics[0].apm


def test_rates_round_half_up() -> None:
    # 5 actions over 2 minutes is 2.5 APM.
    actions = [_classified(0x14, 0) for _ in range(5)]
    assert compute_metrics(actions, [0], total_frames=2880)[0].apm == 3


def test_zero_length_game_yields_zero_rates() -> None:
    actions = [_classified(0x14, 0)]
    metrics = compute_metrics(actions, [0], total_frames=0)
    assert (metrics[0].apm, metrics[0].eapm, metrics[0].action_count) == (0, 0, 1)


def test_actions_of_unlisted_players_are_ignored() -> None:
    metrics = compute_metrics([_classified(0x14, 5)], [0], total_frames=1440)
    assert list(metrics) == [0]


@pytest.mark.parametrize(
    ("frame", "text"),
    [(0, "0:00"), (23, "0:00"), (24, "0:01"), (1440, "1:00"), (24 * 754, "12:34"), (-10, "0:00")],
)
def test_format_frame_time(frame: int, text: str) -> None:
    assert format_frame_time(frame) == text


def test_game_minutes() -> None:
    assert game_minutes(1440) == pytest.approx(1.0)
    assert game_minutes(-1) == 0.0
