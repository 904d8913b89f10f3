from __future__ import annotations

import pytest

from bwrep.config import DecodeConfig
from bwrep.diagnostics import (
    DecodeDiagnostics,
    Reliability,
    Termination,
    assess_reliability,
    locator_failed_diagnostics,
)


def _diag(**overrides) -> DecodeDiagnostics:  # noqa: ANN003
    fields = dict(
        recognized_opcodes=600,
        unknown_bytes=100,
        frame_markers=2000,
        action_count=600,
        command_offset=633,
        locator_score=0.9,
        low_confidence=False,
        termination=Termination.EXHAUSTED,
        final_frame=2000,
    )
    fields.update(overrides)
    return DecodeDiagnostics(**fields)


def test_clean_large_decode_is_high() -> None:
    assert assess_reliability(_diag(), DecodeConfig()) is Reliability.HIGH


@pytest.mark.parametrize(
    ("overrides", "expected"),
    [
        ({"low_confidence": True}, Reliability.LOW),
        ({"termination": Termination.EMPTY_FRAMES}, Reliability.LOW),
        ({"termination": Termination.TRUNCATED_ACTION}, Reliability.LOW),
        ({"action_count": 0, "recognized_opcodes": 0}, Reliability.LOW),
        ({"action_count": 499, "recognized_opcodes": 499}, Reliability.MEDIUM),
        ({"unknown_bytes": 1000}, Reliability.MEDIUM),
        ({"termination": Termination.ACTION_LIMIT}, Reliability.MEDIUM),
        ({"termination": Termination.FRAME_LIMIT}, Reliability.HIGH),
    ],
)
def test_reliability_tiers(overrides: dict, expected: Reliability) -> None:
    assert assess_reliability(_diag(**overrides), DecodeConfig()) is expected


def test_tier_thresholds_come_from_config() -> None:
    config = DecodeConfig(high_min_actions=1000)
    assert assess_reliability(_diag(), config) is Reliability.MEDIUM


def test_locator_failure_is_unrecoverable() -> None:
    diag = locator_failed_diagnostics()
    assert diag.locator_failed
    assert diag.reliability is Reliability.UNRECOVERABLE
    assert assess_reliability(diag, DecodeConfig()) is Reliability.UNRECOVERABLE
    assert diag.action_count == 0
    assert diag.termination is Termination.NOT_STARTED


def test_recognized_ratio() -> None:
    assert _diag().recognized_ratio == pytest.approx(600 / 700)
    assert DecodeDiagnostics().recognized_ratio == 0.0
