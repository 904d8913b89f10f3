from __future__ import annotations

import struct
from typing import Final

from .errors import OutOfBoundsError

PRINTABLE_RATIO: Final[float] = 0.8

# Tried in order; the raw byte filter below is the last resort.
_TEXT_ENCODINGS: Final[tuple[str, ...]] = ("cp1252", "utf-8")

_U16LE = struct.Struct("<H")
_U32LE = struct.Struct("<I")


def printable_ratio(text: str) -> float:
    if not text:
        return 0.0
    printable = sum(1 for ch in text if ch.isprintable())
    return printable / len(text)


def _filter_raw(raw: bytes) -> str:
    return "".join(chr(b) for b in raw if 0x20 <= b <= 0x7E or 0xA0 <= b <= 0xFF)


def decode_fixed_string(raw: bytes, *, threshold: float = PRINTABLE_RATIO) -> str:
    """Decode a null-padded string field.

    Truncates at the first null byte, then tries cp1252 and UTF-8 (both strict),
    keeping the first result with at least `threshold` printable characters.
    Falls back to keeping only bytes in 0x20-0x7E and 0xA0-0xFF.
    """

    end = raw.find(b"\x00")
    if end >= 0:
        raw = raw[:end]
    if not raw:
        return ""
    for encoding in _TEXT_ENCODINGS:
        try:
            text = raw.decode(encoding)
        except UnicodeDecodeError:
            continue
        if printable_ratio(text) >= threshold:
            return text.strip()
    return _filter_raw(raw).strip()


class ByteCursor:
    """Little-endian reader over an immutable buffer.

    Every read is bounds checked and raises `OutOfBoundsError` instead of
    returning partial data. Only `skip` and `set_position` clamp.
    """

    __slots__ = ("_data", "_position")

    def __init__(self, data: bytes | bytearray | memoryview, position: int = 0) -> None:
        self._data = bytes(data)
        self._position = 0
        self.set_position(position)

    @property
    def data(self) -> bytes:
        return self._data

    @property
    def position(self) -> int:
        return self._position

    def __len__(self) -> int:
        return len(self._data)

    def remaining(self) -> int:
        return len(self._data) - self._position

    def can_read(self, n: int = 1) -> bool:
        return n >= 0 and self._position + int(n) <= len(self._data)

    def _require(self, n: int) -> None:
        if not self.can_read(n):
            raise OutOfBoundsError(self._position, n, len(self._data))

    def set_position(self, position: int) -> None:
        self._position = max(0, min(int(position), len(self._data)))

    def skip(self, n: int) -> None:
        self.set_position(self._position + int(n))

    def peek_u8(self) -> int:
        self._require(1)
        return self._data[self._position]

    def read_u8(self) -> int:
        self._require(1)
        value = self._data[self._position]
        self._position += 1
        return value

    def read_u16le(self) -> int:
        self._require(2)
        (value,) = _U16LE.unpack_from(self._data, self._position)
        self._position += 2
        return int(value)

    def read_u32le(self) -> int:
        self._require(4)
        (value,) = _U32LE.unpack_from(self._data, self._position)
        self._position += 4
        return int(value)

    def read_bytes(self, n: int) -> bytes:
        n = int(n)
        if n < 0:
            raise ValueError(f"negative read length: {n}")
        self._require(n)
        out = self._data[self._position : self._position + n]
        self._position += n
        return out

    def read_fixed_string(self, n: int) -> str:
        return decode_fixed_string(self.read_bytes(n))


__all__ = [
    "PRINTABLE_RATIO",
    "ByteCursor",
    "decode_fixed_string",
    "printable_ratio",
]
