from __future__ import annotations

import os
from pathlib import Path

import msgspec

CONFIG_ENV_VAR = "BWREP_CONFIG"

DEFAULT_SIGNATURES: tuple[str, ...] = ("Repl", "reRS", "seRS")
DEFAULT_COMMAND_OFFSET = 633


class DecodeConfig(msgspec.Struct, forbid_unknown_fields=True):
    # Header sanity
    accepted_signatures: list[str] = msgspec.field(default_factory=lambda: list(DEFAULT_SIGNATURES))
    max_engine_version: int = 1000
    # Command stream location
    locator_candidates: list[int] = msgspec.field(default_factory=lambda: [DEFAULT_COMMAND_OFFSET, 600, 700, 800])
    locator_fallback: int = DEFAULT_COMMAND_OFFSET
    locator_window: int = 200
    locator_min_opcodes: int = 5
    locator_min_markers: int = 10
    # Decoder safety valves
    max_actions: int = 100_000
    max_empty_frames: int = 1000
    # Reliability tiers
    high_min_recognized_ratio: float = 0.75
    high_min_actions: int = 500
    # Misc
    try_inflate: bool = True
    strict: bool = False

    def signature_bytes(self) -> frozenset[bytes]:
        return frozenset(sig.encode("latin-1") for sig in self.accepted_signatures)


def _validate(config: DecodeConfig) -> DecodeConfig:
    if not config.locator_candidates:
        raise ValueError("locator_candidates must not be empty")
    if any(int(offset) < 0 for offset in config.locator_candidates) or config.locator_fallback < 0:
        raise ValueError("locator offsets must be non-negative")
    if config.locator_window <= 0:
        raise ValueError(f"locator_window must be positive, got {config.locator_window}")
    if config.max_actions <= 0:
        raise ValueError(f"max_actions must be positive, got {config.max_actions}")
    if config.max_empty_frames <= 0:
        raise ValueError(f"max_empty_frames must be positive, got {config.max_empty_frames}")
    if not 0.0 <= config.high_min_recognized_ratio <= 1.0:
        raise ValueError(f"high_min_recognized_ratio must be within [0, 1], got {config.high_min_recognized_ratio}")
    for sig in config.accepted_signatures:
        if len(sig.encode("latin-1")) != 4:
            raise ValueError(f"signature must be 4 bytes: {sig!r}")
    return config


def load_decode_config(path: Path) -> DecodeConfig:
    """Load a `DecodeConfig` from a `.toml` or `.json` file."""

    path = Path(path)
    raw = path.read_bytes()
    try:
        if path.suffix.lower() == ".toml":
            config = msgspec.toml.decode(raw, type=DecodeConfig)
        else:
            config = msgspec.json.decode(raw, type=DecodeConfig)
    except msgspec.DecodeError as exc:
        raise ValueError(f"invalid decode config {path}: {exc}") from exc
    return _validate(config)


def default_decode_config() -> DecodeConfig:
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return load_decode_config(Path(env_path))
    return DecodeConfig()


def resolve_config(config: DecodeConfig | None) -> DecodeConfig:
    if config is None:
        return default_decode_config()
    return _validate(config)


__all__ = [
    "CONFIG_ENV_VAR",
    "DEFAULT_COMMAND_OFFSET",
    "DecodeConfig",
    "default_decode_config",
    "load_decode_config",
    "resolve_config",
]
