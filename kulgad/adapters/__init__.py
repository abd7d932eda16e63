"""Adapter modules for external integrations."""

from .websocket import (
    DeviceConnectionError,
    DeviceIOError,
    WebSocketChannel,
    build_ws_url,
)

__all__ = [
    "DeviceConnectionError",
    "DeviceIOError",
    "WebSocketChannel",
    "build_ws_url",
]
