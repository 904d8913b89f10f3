from __future__ import annotations

from bwrep.build_order import estimate_supply, extract_build_orders
from bwrep.classify import classify_action
from bwrep.types import Action


def _classified(opcode: int, player_id: int, frame: int, unit_id: int | None = None, unit_name: str | None = None) -> Action:
    action = Action(
        frame=frame,
        player_id=player_id,
        opcode=opcode,
        action_name={0x0C: "Build", 0x1D: "Train", 0x09: "Select", 0x14: "Move"}[opcode],
        unit_id=unit_id,
        unit_name=unit_name,
    )
    return classify_action(action)


def test_build_orders_keep_only_production_sorted_by_frame() -> None:
    actions = [
        _classified(0x09, 0, 10),
        _classified(0x1D, 0, 40, 7, "SCV"),
        _classified(0x0C, 0, 30, 106, "Command Center"),
        _classified(0x14, 0, 35),
        _classified(0x1D, 1, 12, 64, "Probe"),
        _classified(0x0C, 0, 40, 109, "Supply Depot"),
    ]
    orders = extract_build_orders(actions, [0, 1])

    p0 = orders[0]
    assert [(e.frame, e.action_label) for e in p0] == [
        (30, "Command Center"),
        (40, "SCV"),
        (40, "Supply Depot"),
    ]
    assert [e.estimated_supply for e in p0] == [4, 6, 8]
    assert p0[0].timestamp == "0:01"
    assert p0[0].unit_id == 106
    assert [e.action_label for e in orders[1]] == ["Probe"]


def test_players_without_production_get_empty_orders() -> None:
    orders = extract_build_orders([_classified(0x09, 0, 1)], [0, 3])
    assert orders == {0: (), 3: ()}


def test_label_falls_back_to_action_name() -> None:
    orders = extract_build_orders([_classified(0x1D, 0, 5)], [0])
    assert orders[0][0].action_label == "Train"


def test_estimate_supply_is_linear_in_entry_index() -> None:
    assert [estimate_supply(i) for i in range(4)] == [4, 6, 8, 10]
