from __future__ import annotations

import warnings

import pytest

from bwrep.diagnostics import DecodeDiagnostics, Reliability, Termination, locator_failed_diagnostics
from bwrep.reliability import ReplayReliabilityWarning, warn_on_low_reliability


def test_low_reliability_warns() -> None:
    diag = DecodeDiagnostics(command_offset=633, low_confidence=True, reliability=Reliability.LOW)
    with pytest.warns(ReplayReliabilityWarning, match="offset 633 is a fallback guess"):
        assert warn_on_low_reliability(diag, source="game.rep") is True


def test_unrecoverable_warns() -> None:
    with pytest.warns(ReplayReliabilityWarning, match="unrecoverable reliability; command stream not found"):
        warn_on_low_reliability(locator_failed_diagnostics())


def test_aborted_decode_warns_with_termination() -> None:
    diag = DecodeDiagnostics(
        action_count=3,
        low_confidence=False,
        termination=Termination.TRUNCATED_ACTION,
        reliability=Reliability.LOW,
    )
    with pytest.warns(ReplayReliabilityWarning, match="truncated_action"):
        warn_on_low_reliability(diag)


@pytest.mark.parametrize("reliability", [Reliability.HIGH, Reliability.MEDIUM])
def test_good_reliability_is_silent(reliability: Reliability) -> None:
    diag = DecodeDiagnostics(low_confidence=False, reliability=reliability)
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        assert warn_on_low_reliability(diag) is False
