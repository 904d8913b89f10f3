from __future__ import annotations

import os

DEBUG_ENV_VAR = "BWREP_DEBUG"

_DEBUG_OVERRIDE: bool | None = None


def set_debug_enabled(enabled: bool | None) -> None:
    """Force debug output on or off; `None` defers to `BWREP_DEBUG` again."""
    global _DEBUG_OVERRIDE
    _DEBUG_OVERRIDE = None if enabled is None else bool(enabled)


def debug_enabled() -> bool:
    if _DEBUG_OVERRIDE is not None:
        return bool(_DEBUG_OVERRIDE)
    return os.environ.get(DEBUG_ENV_VAR) == "1"
