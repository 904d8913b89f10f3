from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_configure(config: pytest.Config) -> None:
    # Ensure the local `src/` tree wins over any other editable install that may exist
    # (e.g. a different git worktree pointing at the same project).
    src_dir = Path(__file__).resolve().parents[1] / "src"
    src_str = str(src_dir)
    if src_str not in sys.path:
        sys.path.insert(0, src_str)


@pytest.fixture(autouse=True)
def _isolate_decode_env(monkeypatch: pytest.MonkeyPatch):
    from bwrep.debug import set_debug_enabled
    from bwrep.trace import close_decode_trace

    monkeypatch.delenv("BWREP_CONFIG", raising=False)
    monkeypatch.delenv("BWREP_DEBUG", raising=False)
    monkeypatch.delenv("BWREP_TRACE_LOG", raising=False)
    yield
    set_debug_enabled(None)
    close_decode_trace()
