from __future__ import annotations

from typing import ClassVar, Final, Literal, TypeAlias

import msgspec

ErrorKind: TypeAlias = Literal["format", "command_stream_not_found", "corruption", "encoding", "unknown"]

_UNKNOWN_SUGGESTIONS: Final[tuple[str, ...]] = (
    "Retry the decode",
    "Try a different replay file",
    "Check that the file is a valid .rep replay",
)


class ReplayDecodeError(ValueError):
    """Base class for every failure the decoder reports to callers."""

    kind: ClassVar[ErrorKind] = "unknown"
    recoverable: ClassVar[bool] = True
    suggestions: ClassVar[tuple[str, ...]] = _UNKNOWN_SUGGESTIONS


class FormatError(ReplayDecodeError):
    kind = "format"
    recoverable = False
    suggestions = (
        "Make sure the file is a .rep replay",
        "Check that the replay was saved by StarCraft: Remastered (engine version 74 or newer)",
        "Save the replay again from the game",
    )


class CommandStreamNotFound(ReplayDecodeError):
    kind = "command_stream_not_found"
    recoverable = True
    suggestions = (
        "Try a different replay file",
        "Check that the replay contains a played game and not only a lobby",
    )


class CorruptionError(ReplayDecodeError):
    kind = "corruption"
    recoverable = True
    suggestions = (
        "Download the replay file again",
        "Check that the file transfer completed",
        "Try a backup copy of the replay",
    )


class OutOfBoundsError(CorruptionError):
    def __init__(self, position: int, width: int, length: int) -> None:
        super().__init__(f"cannot read {width} byte(s) at position {position}: buffer length is {length}")
        self.position = int(position)
        self.width = int(width)
        self.length = int(length)


class EncodingError(ReplayDecodeError):
    kind = "encoding"
    recoverable = True
    suggestions = (
        "The replay may come from a non-western client (Korean or Chinese names)",
        "Try a different replay file",
    )


class DecodeFailure(msgspec.Struct, forbid_unknown_fields=True):
    kind: ErrorKind
    message: str
    recoverable: bool
    suggestions: list[str] = msgspec.field(default_factory=list)


def describe_error(exc: BaseException) -> DecodeFailure:
    """Map any exception raised during a decode onto the error taxonomy."""

    if isinstance(exc, ReplayDecodeError):
        return DecodeFailure(
            kind=exc.kind,
            message=str(exc),
            recoverable=bool(exc.recoverable),
            suggestions=list(exc.suggestions),
        )
    message = str(exc) or type(exc).__name__
    return DecodeFailure(
        kind="unknown",
        message=message,
        recoverable=True,
        suggestions=list(_UNKNOWN_SUGGESTIONS),
    )


__all__ = [
    "CommandStreamNotFound",
    "CorruptionError",
    "DecodeFailure",
    "EncodingError",
    "ErrorKind",
    "FormatError",
    "OutOfBoundsError",
    "ReplayDecodeError",
    "describe_error",
]
