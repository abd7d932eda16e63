"""Core primitives for kulgad."""

from .models import (
    ChannelStatus,
    Command,
    GetCommand,
    PinState,
    PinStatusVector,
    SetCommand,
)
from .protocols import MessageChannel

__all__ = [
    "ChannelStatus",
    "Command",
    "GetCommand",
    "MessageChannel",
    "PinState",
    "PinStatusVector",
    "SetCommand",
]
