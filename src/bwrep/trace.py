from __future__ import annotations

import datetime as dt
import itertools
import os
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from threading import Lock

TRACE_ENV_VAR = "BWREP_TRACE_LOG"

_TRACE_LOCK = Lock()
_TRACE_PATH: Path | None = None

_DECODE_IDS = itertools.count(1)
_CURRENT_DECODE: ContextVar[str | None] = ContextVar("bwrep_decode_id", default=None)


def _format_value(value: object) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    text = str(value).replace("\n", "\\n")
    # Quote anything that would split into two key=value tokens.
    if not text or any(ch.isspace() or ch in '"=' for ch in text):
        return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'
    return text


def _format_line(event: str, fields: dict[str, object]) -> str:
    timestamp = dt.datetime.now(dt.timezone.utc).isoformat(timespec="milliseconds")
    parts = [timestamp]
    decode_id = _CURRENT_DECODE.get()
    if decode_id is not None:
        parts.append(f"decode={decode_id}")
    parts.append(f"event={str(event).strip()}")
    parts.extend(f"{key}={_format_value(fields[key])}" for key in sorted(fields))
    return " ".join(parts) + "\n"


def decode_trace_path() -> Path | None:
    with _TRACE_LOCK:
        return _TRACE_PATH


def current_decode_id() -> str | None:
    return _CURRENT_DECODE.get()


def init_decode_trace(path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with _TRACE_LOCK:
        global _TRACE_PATH
        _TRACE_PATH = path

    decode_trace("init", pid=int(os.getpid()))
    return path


def init_decode_trace_from_env() -> Path | None:
    env_path = os.environ.get(TRACE_ENV_VAR)
    if not env_path:
        return None
    return init_decode_trace(Path(env_path))


@contextmanager
def decode_trace_scope(source: str) -> Iterator[str]:
    """Tag every trace line emitted inside the block with one decode id.

    Ids are `<pid>-<n>`, unique within the process, so interleaved decodes in
    one log file can be told apart.
    """

    decode_id = f"{os.getpid()}-{next(_DECODE_IDS)}"
    token = _CURRENT_DECODE.set(decode_id)
    try:
        decode_trace("decode_scope", source=source)
        yield decode_id
    finally:
        _CURRENT_DECODE.reset(token)


def decode_trace(event: str, **fields: object) -> None:
    with _TRACE_LOCK:
        path = _TRACE_PATH
        if path is None:
            return
        line = _format_line(event, fields)
        with path.open("a", encoding="utf-8") as handle:
            handle.write(line)


def close_decode_trace() -> None:
    with _TRACE_LOCK:
        global _TRACE_PATH
        _TRACE_PATH = None


__all__ = [
    "TRACE_ENV_VAR",
    "close_decode_trace",
    "current_decode_id",
    "decode_trace",
    "decode_trace_path",
    "decode_trace_scope",
    "init_decode_trace",
    "init_decode_trace_from_env",
]
