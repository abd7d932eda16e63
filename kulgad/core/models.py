"""Domain models for device commands and channel status."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


@dataclass(frozen=True, slots=True)
class SetCommand:
    channel: int
    value: bool


@dataclass(frozen=True, slots=True)
class GetCommand:
    pass


Command = Union[SetCommand, GetCommand]

PinStatusVector = tuple[bool, ...]


class PinState(str, Enum):
    """Reported state of a single channel after a get round-trip."""

    ON = "on"
    OFF = "off"
    UNKNOWN = "unknown"
    """The device reported fewer pins than the channel index."""


@dataclass(frozen=True, slots=True)
class ChannelStatus:
    channel: int
    state: PinState
