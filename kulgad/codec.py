"""Text encoding of device commands and decoding of status responses.

The device speaks a tiny JSON-shaped dialect. Outbound frames are fixed
templates, and only the ``pins`` field of an inbound frame is interpreted, so
no general JSON handling is involved.
"""

from __future__ import annotations

import re

from .core import Command, GetCommand, PinStatusVector, SetCommand

_PINS_ARRAY = re.compile(r'"pins"\s*:\s*\[([^\[\]]*)\]')


class MalformedResponseError(ValueError):
    """Raised when a status response carries no decodable pins array."""


def encode_command(command: Command) -> str:
    if isinstance(command, SetCommand):
        value = "true" if command.value else "false"
        return f'{{"cmd":"set","ch":{int(command.channel)},"val":{value}}}'
    if isinstance(command, GetCommand):
        return '{"cmd":"get"}'
    raise TypeError(f"Unsupported command: {command!r}")


def decode_pins(text: str) -> PinStatusVector:
    """Extract the ``pins`` boolean array from a status response.

    Raises:
        MalformedResponseError: If the key is absent, is not followed by an
            array, or the array holds anything but ``true``/``false``.
    """

    match = _PINS_ARRAY.search(text)
    if match is None:
        raise MalformedResponseError("'pins' array not found in response")

    body = match.group(1).strip()
    if not body:
        return ()

    pins: list[bool] = []
    for position, item in enumerate(body.split(",")):
        token = item.strip()
        if token == "true":
            pins.append(True)
        elif token == "false":
            pins.append(False)
        else:
            raise MalformedResponseError(
                f"unexpected pins element at index {position}: {token!r}"
            )
    return tuple(pins)
