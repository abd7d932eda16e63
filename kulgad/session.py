"""Set/get command session against a device message channel.

A session runs at most two phases over an already open channel:

1. SET: one fire-and-forget ``set`` frame per channel in ascending order,
   separated by a fixed pacing delay.
2. GET: a single ``get`` frame followed by exactly one response frame, whose
   ``pins`` array is mapped back onto the requested channels.

Any send or receive failure ends the session in :attr:`SessionState.FAILED`
and raises :class:`SessionIOError`. There is no retry.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from . import constants
from .channels import ChannelSet
from .codec import MalformedResponseError, decode_pins, encode_command
from .core import (
    ChannelStatus,
    GetCommand,
    MessageChannel,
    PinState,
    PinStatusVector,
    SetCommand,
)

LOGGER = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


class UsageError(RuntimeError):
    """Raised when a session request is missing a phase, value or channels."""


class SessionIOError(RuntimeError):
    """Raised when sending or receiving on the device channel fails."""


class SessionState(str, Enum):
    IDLE = "idle"
    SENDING = "sending"
    AWAITING_RESPONSE = "awaiting_response"
    REPORTING = "reporting"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class SessionRequest:
    """What to do in one session. Validated on construction."""

    channels: ChannelSet
    want_set: bool = False
    want_get: bool = False
    set_value: Optional[bool] = None

    def __post_init__(self) -> None:
        if not self.want_set and not self.want_get:
            raise UsageError("Nothing to do: request set and/or get")
        if self.want_set and self.set_value is None:
            raise UsageError("Missing value for set. Use on or off")
        if not len(self.channels):
            raise UsageError("No channels provided. Use e.g. 1,2,3 or 7-12 or all")


@dataclass(frozen=True, slots=True)
class SessionReport:
    sent: tuple[int, ...] = ()
    set_value: Optional[bool] = None
    statuses: Optional[tuple[ChannelStatus, ...]] = None
    raw_response: Optional[str] = None
    malformed: bool = False


def resolve_statuses(
    channels: ChannelSet, pins: PinStatusVector
) -> tuple[ChannelStatus, ...]:
    """Map each requested channel onto the decoded pins array."""

    statuses = []
    for channel in channels:
        if channel < len(pins):
            state = PinState.ON if pins[channel] else PinState.OFF
        else:
            state = PinState.UNKNOWN
        statuses.append(ChannelStatus(channel=channel, state=state))
    return tuple(statuses)


class CommandSession:
    """Drives one set/get interaction over a :class:`MessageChannel`."""

    def __init__(
        self,
        channel: MessageChannel,
        *,
        pacing_seconds: float = constants.SET_PACING_SECONDS,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self._channel = channel
        self._pacing_seconds = pacing_seconds
        self._sleep = sleep
        self._state = SessionState.IDLE

    @property
    def state(self) -> SessionState:
        return self._state

    async def run(self, request: SessionRequest) -> SessionReport:
        """Execute the requested phases and return what happened.

        Raises:
            SessionIOError: If the channel fails at any point.
        """

        if self._state is not SessionState.IDLE:
            raise RuntimeError(f"Session already used (state={self._state.value})")

        sent: tuple[int, ...] = ()
        statuses: Optional[tuple[ChannelStatus, ...]] = None
        raw_response: Optional[str] = None
        malformed = False

        try:
            if request.want_set:
                self._state = SessionState.SENDING
                sent = await self._send_set(request.channels, bool(request.set_value))

            if request.want_get:
                self._state = SessionState.AWAITING_RESPONSE
                raw_response = await self._request_status()
        except asyncio.CancelledError:
            self._state = SessionState.FAILED
            raise
        except Exception as exc:
            failed_in = self._state
            self._state = SessionState.FAILED
            raise SessionIOError(
                f"Device channel failed while {failed_in.value}: {exc}"
            ) from exc

        if raw_response is not None:
            self._state = SessionState.REPORTING
            try:
                pins = decode_pins(raw_response)
            except MalformedResponseError as exc:
                LOGGER.warning("Status response not understood: %s", exc)
                malformed = True
            else:
                statuses = resolve_statuses(request.channels, pins)

        self._state = SessionState.DONE
        return SessionReport(
            sent=sent,
            set_value=request.set_value if request.want_set else None,
            statuses=statuses,
            raw_response=raw_response,
            malformed=malformed,
        )

    async def _send_set(self, channels: ChannelSet, value: bool) -> tuple[int, ...]:
        sent: list[int] = []
        last = len(channels) - 1
        for index, channel in enumerate(channels):
            await self._channel.send_text(encode_command(SetCommand(channel, value)))
            sent.append(channel)
            LOGGER.info("Sent: set ch=%d val=%s", channel, "on" if value else "off")
            if index < last:
                await self._sleep(self._pacing_seconds)
        return tuple(sent)

    async def _request_status(self) -> str:
        await self._channel.send_text(encode_command(GetCommand()))
        LOGGER.debug("Sent: get, awaiting status response")
        return await self._channel.receive_text()
