from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("bwrep")
except PackageNotFoundError:  # pragma: no cover
    # Allow running from source (e.g. `PYTHONPATH=src`) without installed package metadata.
    __version__ = "0.0.0+dev"

__all__ = [
    "build_order",
    "classify",
    "cli",
    "config",
    "cursor",
    "debug",
    "decoder",
    "diagnostics",
    "errors",
    "header",
    "inflate",
    "layout",
    "locator",
    "metrics",
    "opcodes",
    "pipeline",
    "reliability",
    "report",
    "trace",
    "types",
    "units",
]
