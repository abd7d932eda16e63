"""Constants used across the kulgad package."""

from __future__ import annotations

from pathlib import Path

APP_NAME = "kulgad"
DEFAULT_CONFIG_FILENAME = f"{APP_NAME}.cfg"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / APP_NAME / DEFAULT_CONFIG_FILENAME

DEFAULT_DEVICE_HOST = "localhost"
DEFAULT_DEVICE_PORT = 3001
DEFAULT_DEVICE_PATH = "/"
DEFAULT_CONNECT_TIMEOUT_SECONDS = 10.0

CHANNEL_MIN = 0
CHANNEL_MAX = 255

# The device drops set commands that arrive faster than this.
SET_PACING_SECONDS = 0.05

STATUS_CELLS_PER_LINE = 16
