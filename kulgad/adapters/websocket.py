"""Websocket message channel to a kulgad device."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional
from urllib.parse import urlunparse

import aiohttp

from ..core import MessageChannel

LOGGER = logging.getLogger(__name__)


class DeviceConnectionError(RuntimeError):
    """Raised when the websocket handshake with the device fails."""


class DeviceIOError(RuntimeError):
    """Raised when a frame cannot be sent or received."""


def build_ws_url(host: str, port: int, path: str = "/", secure: bool = False) -> str:
    scheme = "wss" if secure else "ws"
    if not path.startswith("/"):
        path = "/" + path
    netloc = f"[{host}]:{port}" if ":" in host else f"{host}:{port}"
    return urlunparse((scheme, netloc, path, "", "", ""))


class WebSocketChannel(MessageChannel):
    """Text frame channel over an aiohttp client websocket."""

    def __init__(
        self,
        url: str,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        connect_timeout: float = 10.0,
    ) -> None:
        self.url = url
        self.connect_timeout = connect_timeout

        self._session: Optional[aiohttp.ClientSession] = session
        self._owns_session = session is None
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None
        self._closed = False

    @property
    def is_open(self) -> bool:
        return self._ws is not None and not self._ws.closed

    async def open(self) -> None:
        """Perform the websocket handshake.

        Raises:
            DeviceConnectionError: If the device cannot be reached or refuses
                the upgrade.
        """

        if self._ws is not None:
            raise RuntimeError("Channel already opened")

        if self._session is None:
            # No total timeout: the status read may block indefinitely.
            timeout = aiohttp.ClientTimeout(total=None)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True

        try:
            async with asyncio.timeout(self.connect_timeout):
                self._ws = await self._session.ws_connect(self.url, autoping=True)
        except (aiohttp.ClientError, OSError, TimeoutError) as exc:
            await self._release_session()
            raise DeviceConnectionError(
                f"Failed to connect to {self.url}: {exc}"
            ) from exc

        LOGGER.info("Connected to %s", self.url)

    async def send_text(self, text: str) -> None:
        ws = self._require_ws()
        try:
            await ws.send_str(text)
        except (aiohttp.ClientError, ConnectionError, RuntimeError) as exc:
            raise DeviceIOError(f"Failed to send frame: {exc}") from exc
        LOGGER.debug("-> %s", text)

    async def receive_text(self) -> str:
        ws = self._require_ws()
        message = await ws.receive()

        if message.type == aiohttp.WSMsgType.TEXT:
            LOGGER.debug("<- %s", message.data)
            return message.data
        if message.type == aiohttp.WSMsgType.BINARY:
            return message.data.decode("utf-8", errors="replace")
        if message.type == aiohttp.WSMsgType.ERROR:
            raise DeviceIOError(f"Websocket error: {ws.exception()}")
        raise DeviceIOError(
            f"Connection closed before a response arrived (type={message.type.name})"
        )

    async def close(self) -> None:
        """Send a normal close frame once and release the HTTP session."""

        if self._closed:
            return
        self._closed = True

        if self._ws is not None and not self._ws.closed:
            await self._ws.close()
            LOGGER.debug("Closed websocket to %s", self.url)
        await self._release_session()

    async def __aenter__(self) -> "WebSocketChannel":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _require_ws(self) -> aiohttp.ClientWebSocketResponse:
        if self._ws is None or self._closed:
            raise DeviceIOError("Channel is not open")
        return self._ws

    async def _release_session(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
