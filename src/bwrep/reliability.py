from __future__ import annotations

import warnings

from .diagnostics import DecodeDiagnostics, Reliability


class ReplayReliabilityWarning(UserWarning):
    """Warnings for decodes whose output may not reflect the real game."""


def warn_on_low_reliability(diagnostics: DecodeDiagnostics, *, source: str = "replay") -> bool:
    """Warn if a decode finished with `low` or `unrecoverable` reliability.

    Returns True if a warning was emitted.
    """

    if diagnostics.reliability not in (Reliability.LOW, Reliability.UNRECOVERABLE):
        return False

    if diagnostics.locator_failed:
        reason = "command stream not found"
    elif diagnostics.low_confidence:
        reason = f"command stream offset {diagnostics.command_offset} is a fallback guess"
    elif diagnostics.aborted:
        reason = f"decoding stopped early ({diagnostics.termination.value})"
    else:
        reason = "no actions decoded"

    warnings.warn(
        f"{source}: {diagnostics.reliability.value} reliability; {reason}.",
        category=ReplayReliabilityWarning,
        stacklevel=2,
    )
    return True


__all__ = [
    "ReplayReliabilityWarning",
    "warn_on_low_reliability",
]
