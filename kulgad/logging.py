"""Logging setup for the kulgad command line."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(
    level: str = "INFO", *, log_path: Optional[Path] = None, log_network: bool = False
) -> None:
    """Route kulgad's log records to stderr and, optionally, a file.

    Parameters
    ----------
    level:
        Log level name from ``[logging] level`` or ``--log-level``. Unknown names fall back to INFO.
    log_path:
        ``[logging] path``. Its parent directory is created when missing.
    log_network:
        When false, aiohttp's websocket chatter is held at WARNING so that the
        per-channel "Sent:" lines stay readable.
    """

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )

    if log_path:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(file_handler)

    logging.getLogger("aiohttp").setLevel(
        logging.NOTSET if log_network else logging.WARNING
    )
