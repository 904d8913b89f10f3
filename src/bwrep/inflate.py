from __future__ import annotations

import zlib
from typing import Final, Iterator

from .config import DecodeConfig
from .header import header_looks_valid

ZLIB_SCAN_LIMIT: Final[int] = 5000
MIN_INFLATED_SIZE: Final[int] = 1000
# Enough output to hold the header and the full player-slot table.
HEADER_WINDOW: Final[int] = MIN_INFLATED_SIZE + 1
MAX_INFLATED_SIZE: Final[int] = 64 * 1024 * 1024

_ZLIB_SECOND_BYTES: Final[frozenset[int]] = frozenset({0x9C, 0xDA})


def iter_zlib_offsets(data: bytes, *, limit: int = ZLIB_SCAN_LIMIT) -> Iterator[int]:
    end = min(int(limit), len(data) - 2)
    for idx in range(max(0, end)):
        if data[idx] == 0x78 and data[idx + 1] in _ZLIB_SECOND_BYTES:
            yield idx


def inflate_embedded(
    data: bytes,
    config: DecodeConfig,
    *,
    max_size: int = MAX_INFLATED_SIZE,
) -> tuple[bytes, int] | None:
    """Find a zlib stream near the start of `data` whose output decodes as a replay header.

    Each candidate is inflated only up to `HEADER_WINDOW` bytes for the header
    check. The rest of the stream is inflated for the winner alone, capped at
    `max_size`. Returns `(inflated, offset)` or None when no candidate qualifies.
    """

    view = memoryview(data)
    for offset in iter_zlib_offsets(data):
        stream = zlib.decompressobj()
        try:
            head = stream.decompress(view[offset:], HEADER_WINDOW)
        except zlib.error:
            continue
        if len(head) <= MIN_INFLATED_SIZE:
            continue
        if not header_looks_valid(head, config):
            continue
        remaining = int(max_size) - len(head)
        if remaining <= 0:
            # zlib treats a max_length of 0 as unbounded.
            return head, offset
        try:
            rest = stream.decompress(stream.unconsumed_tail, remaining)
        except zlib.error:
            continue
        return head + rest, offset
    return None


__all__ = [
    "HEADER_WINDOW",
    "MAX_INFLATED_SIZE",
    "MIN_INFLATED_SIZE",
    "ZLIB_SCAN_LIMIT",
    "inflate_embedded",
    "iter_zlib_offsets",
]
