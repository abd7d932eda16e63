"""Configuration loader for kulgad."""

from __future__ import annotations

from configparser import ConfigParser
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from . import constants


@dataclass(slots=True)
class DeviceConfig:
    host: str = constants.DEFAULT_DEVICE_HOST
    port: int = constants.DEFAULT_DEVICE_PORT
    path: str = constants.DEFAULT_DEVICE_PATH
    secure: bool = False
    connect_timeout_seconds: float = constants.DEFAULT_CONNECT_TIMEOUT_SECONDS


@dataclass(slots=True)
class ChannelConfig:
    max_channel: int = constants.CHANNEL_MAX
    allow_whitespace: bool = False  # Strip whitespace from channel specs before parsing


@dataclass(slots=True)
class LoggingConfig:
    level: str = "INFO"
    path: Optional[Path] = None
    log_network: bool = False


@dataclass(slots=True)
class KulgadConfig:
    device: DeviceConfig
    channels: ChannelConfig
    logging: LoggingConfig
    raw: ConfigParser
    path: Path


def load_config(path: Optional[Path] = None) -> KulgadConfig:
    """Load configuration from disk, applying defaults where necessary."""

    config_path = path or constants.DEFAULT_CONFIG_PATH
    parser = ConfigParser()
    parser.read_dict(
        {
            "device": {
                "host": constants.DEFAULT_DEVICE_HOST,
                "port": str(constants.DEFAULT_DEVICE_PORT),
                "path": constants.DEFAULT_DEVICE_PATH,
                "secure": "false",
                "connect_timeout_seconds": str(
                    constants.DEFAULT_CONNECT_TIMEOUT_SECONDS
                ),
            },
            "channels": {
                "max_channel": str(constants.CHANNEL_MAX),
                "allow_whitespace": "false",
            },
            "logging": {
                "level": "INFO",
                "log_network": "false",
            },
        }
    )

    if config_path.exists():
        parser.read(config_path)

    path_value = parser.get("device", "path", fallback=constants.DEFAULT_DEVICE_PATH)
    if not path_value.startswith("/"):
        path_value = "/" + path_value

    device = DeviceConfig(
        host=parser.get("device", "host"),
        port=parser.getint("device", "port", fallback=constants.DEFAULT_DEVICE_PORT),
        path=path_value,
        secure=parser.getboolean("device", "secure", fallback=False),
        connect_timeout_seconds=max(
            0.1,
            parser.getfloat(
                "device",
                "connect_timeout_seconds",
                fallback=constants.DEFAULT_CONNECT_TIMEOUT_SECONDS,
            ),
        ),
    )

    channels = ChannelConfig(
        max_channel=max(
            constants.CHANNEL_MIN,
            min(
                constants.CHANNEL_MAX,
                parser.getint(
                    "channels", "max_channel", fallback=constants.CHANNEL_MAX
                ),
            ),
        ),
        allow_whitespace=parser.getboolean(
            "channels", "allow_whitespace", fallback=False
        ),
    )

    log_path_value = parser.get("logging", "path", fallback="").strip()
    logging_config = LoggingConfig(
        level=parser.get("logging", "level", fallback="INFO"),
        path=Path(log_path_value).expanduser() if log_path_value else None,
        log_network=parser.getboolean("logging", "log_network", fallback=False),
    )

    return KulgadConfig(
        device=device,
        channels=channels,
        logging=logging_config,
        raw=parser,
        path=config_path,
    )
