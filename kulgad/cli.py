"""Command-line interface for kulgad."""

from __future__ import annotations

import argparse
import asyncio
import configparser
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from . import constants
from .adapters import DeviceConnectionError, WebSocketChannel, build_ws_url
from .channels import ChannelSpecError, parse_channel_specs, strip_whitespace
from .config import KulgadConfig, load_config
from .logging import configure_logging
from .session import (
    CommandSession,
    SessionIOError,
    SessionReport,
    SessionRequest,
    UsageError,
)

LOGGER = logging.getLogger(__name__)

_PHASE_WORDS = {"set", "get"}
_VALUE_WORDS = {"on": True, "true": True, "off": False, "false": False}
_SHORT_FLAGS = {"-s", "-g", "-on", "-off"}

EXAMPLES = """\
examples:
  kulgad set 3 on
  kulgad -s -off 0-4,7,10-12
  kulgad 12,3,15 -on -s -g
  kulgad get all
  kulgad --host 192.168.0.20 --port 3001 get 2-20

Channels are 0..255 written as all, N, A-B or comma separated mixtures,
without spaces (use --allow-spaces to strip them). Options, keywords and
channel lists may appear in any order.
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=constants.APP_NAME,
        description="Set or query kulgad device channels over a websocket",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=constants.DEFAULT_CONFIG_PATH,
        help=f"Path to configuration file (default: {constants.DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument("--host", help="Device host (overrides [device] host)")
    parser.add_argument("--port", type=int, help="Device port (overrides [device] port)")
    parser.add_argument("--path", help="Websocket path (overrides [device] path)")

    parser.add_argument(
        "-s", "--set", dest="want_set", action="store_true", help="Change channel states"
    )
    parser.add_argument(
        "-g", "--get", dest="want_get", action="store_true", help="Query channel states"
    )
    parser.add_argument(
        "-on",
        dest="values",
        action="append_const",
        const=True,
        help="Value for set: on",
    )
    parser.add_argument(
        "-off",
        dest="values",
        action="append_const",
        const=False,
        help="Value for set: off",
    )

    parser.add_argument(
        "--allow-spaces",
        action="store_true",
        help="Strip whitespace from channel lists instead of rejecting them",
    )
    parser.add_argument("--log-level", help="Log level (overrides [logging] level)")
    parser.add_argument(
        "--show-config",
        action="store_true",
        help="Print the resolved configuration and exit",
    )
    parser.add_argument(
        "tokens",
        nargs="*",
        metavar="TOKEN",
        help="set | get | on | off | channel list",
    )
    return parser


def normalize_flags(argv: Sequence[str]) -> list[str]:
    """Lower-case the short set/get/value flags so ``-S -ON`` works like ``-s -on``."""

    return [arg.lower() if arg.lower() in _SHORT_FLAGS else arg for arg in argv]


def build_request(
    args: argparse.Namespace, *, max_channel: int, allow_whitespace: bool
) -> SessionRequest:
    """Turn free-order command-line tokens into a validated session request.

    Raises:
        UsageError: For conflicting values, missing channels, phase or value.
        ChannelSpecError: If a channel list is malformed.
    """

    want_set = bool(args.want_set)
    want_get = bool(args.want_get)
    values: list[bool] = list(args.values or [])
    specs: list[str] = []

    for token in args.tokens:
        word = token.lower()
        if word in _PHASE_WORDS:
            if word == "set":
                want_set = True
            else:
                want_get = True
        elif word in _VALUE_WORDS:
            values.append(_VALUE_WORDS[word])
        else:
            specs.append(strip_whitespace(token) if allow_whitespace else token)

    if len(set(values)) > 1:
        raise UsageError("Conflicting values: on and off")
    if not want_set and not want_get:
        raise UsageError("Nothing to do: pass set (-s) and/or get (-g)")
    if not specs:
        raise UsageError("No channels provided. Use e.g. 1,2,3 or 7-12 or all")

    channels = parse_channel_specs(specs, max_channel=max_channel)
    return SessionRequest(
        channels=channels,
        want_set=want_set,
        want_get=want_get,
        set_value=values[0] if values else None,
    )


async def execute(request: SessionRequest, config: KulgadConfig) -> SessionReport:
    """Connect to the configured device, run the session and close."""

    device = config.device
    url = build_ws_url(device.host, device.port, device.path, device.secure)
    async with WebSocketChannel(
        url, connect_timeout=device.connect_timeout_seconds
    ) as channel:
        session = CommandSession(channel)
        return await session.run(request)


def render_report(
    report: SessionReport, *, per_line: int = constants.STATUS_CELLS_PER_LINE
) -> str:
    if report.statuses is not None:
        lines = ["Status:"]
        for start in range(0, len(report.statuses), per_line):
            chunk = report.statuses[start : start + per_line]
            lines.append(
                "  ".join(f"{status.channel}:{status.state.value}" for status in chunk)
            )
        return "\n".join(lines)
    if report.raw_response is not None:
        return f"Received (raw): {report.raw_response}"
    return ""


def _apply_overrides(config: KulgadConfig, args: argparse.Namespace) -> None:
    if args.host:
        config.device.host = args.host
        config.raw.set("device", "host", args.host)
    if args.port is not None:
        config.device.port = args.port
        config.raw.set("device", "port", str(args.port))
    if args.path:
        path = args.path if args.path.startswith("/") else "/" + args.path
        config.device.path = path
        config.raw.set("device", "path", path)
    if args.allow_spaces:
        config.channels.allow_whitespace = True
        config.raw.set("channels", "allow_whitespace", "true")
    if args.log_level:
        config.logging.level = args.log_level
        config.raw.set("logging", "level", args.log_level)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_intermixed_args(
            normalize_flags(sys.argv[1:] if argv is None else argv)
        )
    except SystemExit as exc:
        return 0 if not exc.code else 1

    try:
        config = load_config(args.config)
    except (ValueError, configparser.Error) as exc:
        LOGGER.error("Invalid configuration in %s: %s", args.config, exc)
        return 1
    _apply_overrides(config, args)
    configure_logging(
        config.logging.level,
        log_path=config.logging.path,
        log_network=config.logging.log_network,
    )

    if args.show_config:
        print(f"Configuration loaded from {config.path!s}\n")
        for section in config.raw.sections():
            print(f"[{section}]")
            for key, value in config.raw[section].items():
                print(f"{key} = {value}")
            print()
        return 0

    try:
        request = build_request(
            args,
            max_channel=config.channels.max_channel,
            allow_whitespace=config.channels.allow_whitespace,
        )
    except UsageError as exc:
        LOGGER.error("%s", exc)
        parser.print_usage(sys.stderr)
        return 1
    except ChannelSpecError as exc:
        LOGGER.error("Invalid channel list: %s", exc)
        return 1

    try:
        report = asyncio.run(execute(request, config))
    except (DeviceConnectionError, SessionIOError) as exc:
        LOGGER.error("Error: %s", exc)
        return 1

    output = render_report(report)
    if output:
        print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
