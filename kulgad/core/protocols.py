"""Protocol definitions for device message channels."""

from __future__ import annotations

from typing import Protocol


class MessageChannel(Protocol):
    """Minimal contract for a bidirectional text message connection."""

    async def send_text(self, text: str) -> None:
        """Send one text frame."""
        ...

    async def receive_text(self) -> str:
        """Block until one frame arrives and return its text.

        There is no timeout; callers that need bounded waiting must impose it.
        """
        ...

    async def close(self) -> None:
        """Close the connection gracefully."""
        ...
