"""Channel expression parsing.

A channel expression names device channels the way a user types them on the
command line::

    all             every channel, 0..max_channel
    7               a single channel
    0-4             an inclusive range; "4-0" means the same thing
    0-4,7,10-12     any comma separated mixture of the above

Parsing is strict: whitespace, signs, empty pieces and out-of-range values are
rejected rather than repaired. Callers who want to accept ``"1, 2"`` must run
:func:`strip_whitespace` first.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Iterator

from . import constants

ALL_KEYWORD = "all"

_DIGITS = re.compile(r"[0-9]+")
_WHITESPACE = re.compile(r"\s")


class ChannelSpecError(ValueError):
    """Raised when a channel expression cannot be parsed."""


class EmptyChannelSpecError(ChannelSpecError):
    """Raised for an empty expression or an empty comma separated piece."""


class InvalidChannelError(ChannelSpecError):
    """Raised when a piece is not made of decimal digits."""


class InvalidRangeError(InvalidChannelError):
    """Raised when either side of an ``A-B`` range is missing or not numeric."""


class ChannelOutOfRangeError(ChannelSpecError):
    """Raised when a channel or range bound is outside the allowed bounds."""

    def __init__(self, value: int | str, max_channel: int) -> None:
        super().__init__(
            f"channel out of range: {value} "
            f"(allowed {constants.CHANNEL_MIN}-{max_channel})"
        )
        self.value = value
        self.max_channel = max_channel


@dataclass(frozen=True, slots=True)
class ChannelSet:
    """Sorted, duplicate-free, immutable collection of channel indices."""

    indices: tuple[int, ...] = ()

    @classmethod
    def from_indices(cls, indices: Iterable[int]) -> "ChannelSet":
        return cls(tuple(sorted(set(indices))))

    @classmethod
    def all(cls, max_channel: int = constants.CHANNEL_MAX) -> "ChannelSet":
        return cls(tuple(range(constants.CHANNEL_MIN, max_channel + 1)))

    def union(self, other: "ChannelSet") -> "ChannelSet":
        return ChannelSet.from_indices((*self.indices, *other.indices))

    def __iter__(self) -> Iterator[int]:
        return iter(self.indices)

    def __len__(self) -> int:
        return len(self.indices)

    def __contains__(self, channel: object) -> bool:
        return channel in self.indices

    def __str__(self) -> str:
        """Render consecutive runs as ranges, e.g. ``0-4,7,10-12``."""

        pieces: list[str] = []
        run_start = run_end = None
        for channel in self.indices:
            if run_end is not None and channel == run_end + 1:
                run_end = channel
                continue
            if run_start is not None:
                pieces.append(_format_run(run_start, run_end))
            run_start = run_end = channel
        if run_start is not None:
            pieces.append(_format_run(run_start, run_end))
        return ",".join(pieces)


def _format_run(start: int, end: int) -> str:
    return str(start) if start == end else f"{start}-{end}"


def strip_whitespace(spec: str) -> str:
    """Remove all whitespace from a channel expression.

    This is the opt-in lenient mode; :func:`parse_channels` itself rejects
    whitespace.
    """

    return _WHITESPACE.sub("", spec)


def parse_channels(
    spec: str, *, max_channel: int = constants.CHANNEL_MAX
) -> ChannelSet:
    """Parse a channel expression into a canonical :class:`ChannelSet`.

    Raises:
        EmptyChannelSpecError: If the expression or one of its pieces is empty.
        InvalidChannelError: If a piece is not a plain decimal number.
        InvalidRangeError: If a range side is empty or not numeric.
        ChannelOutOfRangeError: If a value or range bound exceeds ``max_channel``.
    """

    if not spec:
        raise EmptyChannelSpecError("no channels")

    if spec.lower() == ALL_KEYWORD:
        return ChannelSet.all(max_channel)

    if _WHITESPACE.search(spec):
        raise InvalidChannelError(f"whitespace not allowed in channel list: {spec!r}")

    collected: list[int] = []
    for position, piece in enumerate(spec.split(",")):
        if not piece:
            raise EmptyChannelSpecError(
                f"invalid token: empty channel at position {position} in {spec!r}"
            )
        collected.extend(_parse_piece(piece, max_channel))

    return ChannelSet.from_indices(collected)


def parse_channel_specs(
    specs: Iterable[str], *, max_channel: int = constants.CHANNEL_MAX
) -> ChannelSet:
    """Parse several channel expressions and return their union."""

    result: ChannelSet | None = None
    for spec in specs:
        parsed = parse_channels(spec, max_channel=max_channel)
        result = parsed if result is None else result.union(parsed)

    if result is None:
        raise EmptyChannelSpecError("no channels")
    return result


def _parse_piece(piece: str, max_channel: int) -> range:
    if "-" not in piece:
        if not _DIGITS.fullmatch(piece):
            raise InvalidChannelError(f"invalid channel: {piece!r}")
        value = _to_channel(piece, max_channel)
        return range(value, value + 1)

    low_text, _, high_text = piece.partition("-")
    if not low_text or not high_text:
        raise InvalidRangeError(f"invalid range: {piece!r}")
    if not _DIGITS.fullmatch(low_text) or not _DIGITS.fullmatch(high_text):
        raise InvalidRangeError(f"invalid range: {piece!r}")

    low = _to_channel(low_text, max_channel)
    high = _to_channel(high_text, max_channel)
    if low > high:
        low, high = high, low
    return range(low, high + 1)


def _to_channel(text: str, max_channel: int) -> int:
    significant = text.lstrip("0")
    if len(significant) > len(str(max_channel)):
        # Too long to be in bounds; never hand it to int().
        shown = significant
        if len(shown) > 12:
            shown = f"{shown[:8]}... ({len(shown)} digits)"
        raise ChannelOutOfRangeError(shown, max_channel)

    value = int(significant or "0")
    if value < constants.CHANNEL_MIN or value > max_channel:
        raise ChannelOutOfRangeError(value, max_channel)
    return value
