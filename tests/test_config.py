from pathlib import Path

from kulgad.config import load_config


def test_load_config_defaults(tmp_path: Path) -> None:
    config_path = tmp_path / "kulgad.cfg"
    config = load_config(config_path)

    assert config.path == config_path
    assert config.device.host == "localhost"
    assert config.device.port == 3001
    assert config.device.path == "/"
    assert config.device.secure is False
    assert config.device.connect_timeout_seconds == 10.0
    assert config.channels.max_channel == 255
    assert config.channels.allow_whitespace is False
    assert config.logging.level == "INFO"
    assert config.logging.path is None


def test_load_config_overrides_defaults(tmp_path: Path) -> None:
    config_path = tmp_path / "kulgad.cfg"
    config_path.write_text(
        """
[device]
host = 210.119.41.68
port = 3002
path = ws
secure = true

[channels]
max_channel = 63
allow_whitespace = yes

[logging]
level = DEBUG
path = ~/kulgad.log
""",
        encoding="utf-8",
    )

    config = load_config(config_path)

    assert config.device.host == "210.119.41.68"
    assert config.device.port == 3002
    assert config.device.path == "/ws"
    assert config.device.secure is True
    assert config.channels.max_channel == 63
    assert config.channels.allow_whitespace is True
    assert config.logging.level == "DEBUG"
    assert config.logging.path == Path("~/kulgad.log").expanduser()


def test_load_config_clamps_max_channel(tmp_path: Path) -> None:
    config_path = tmp_path / "kulgad.cfg"
    config_path.write_text("[channels]\nmax_channel = 1000\n", encoding="utf-8")

    config = load_config(config_path)

    assert config.channels.max_channel == 255
