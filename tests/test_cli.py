"""Tests for the kulgad command-line interface."""

from pathlib import Path

import pytest
import pytest_asyncio
from aiohttp import web

from kulgad import cli
from kulgad.channels import (
    ChannelOutOfRangeError,
    InvalidChannelError,
    parse_channels,
)
from kulgad.config import load_config
from kulgad.core import ChannelStatus, PinState
from kulgad.session import SessionReport, SessionRequest, UsageError


def _request(*argv: str, max_channel: int = 255, allow_whitespace: bool = False):
    args = cli.build_parser().parse_intermixed_args(cli.normalize_flags(argv))
    return cli.build_request(
        args, max_channel=max_channel, allow_whitespace=allow_whitespace
    )


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    return tmp_path / "kulgad.cfg"


@pytest.fixture(autouse=True)
def keep_test_logging(monkeypatch):
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)


@pytest.fixture
def no_network(monkeypatch):
    class _Forbidden:
        def __init__(self, *args, **kwargs):
            raise AssertionError("no connection expected")

    monkeypatch.setattr(cli, "WebSocketChannel", _Forbidden)


def test_positional_keywords():
    request = _request("set", "3", "on")

    assert request.want_set is True
    assert request.want_get is False
    assert request.set_value is True
    assert list(request.channels) == [3]


def test_flags_in_any_order():
    request = _request("12,3,15", "-off", "-s", "-g")

    assert request.want_set is True
    assert request.want_get is True
    assert request.set_value is False
    assert list(request.channels) == [3, 12, 15]


def test_keywords_are_case_insensitive():
    request = _request("SET", "all", "Off")

    assert request.set_value is False
    assert len(request.channels) == 256


def test_short_flags_are_case_insensitive():
    request = _request("-S", "-G", "-ON", "3")

    assert request.want_set is True
    assert request.want_get is True
    assert request.set_value is True
    assert list(request.channels) == [3]

    assert _request("-s", "-Off", "4").set_value is False


def test_normalize_flags_leaves_other_arguments_alone():
    argv = ["-c", "/tmp/ON.cfg", "--host", "Device", "-S", "ALL"]

    assert cli.normalize_flags(argv) == ["-c", "/tmp/ON.cfg", "--host", "Device", "-s", "ALL"]


def test_multiple_channel_tokens_are_merged():
    request = _request("get", "10-12", "1", "11")

    assert list(request.channels) == [1, 10, 11, 12]


def test_conflicting_values_are_rejected():
    with pytest.raises(UsageError, match="Conflicting"):
        _request("set", "1", "-on", "off")


def test_missing_phase_is_rejected():
    with pytest.raises(UsageError, match="Nothing to do"):
        _request("1-3", "on")


def test_missing_channels_are_rejected():
    with pytest.raises(UsageError, match="No channels"):
        _request("get")


def test_set_without_value_is_rejected():
    with pytest.raises(UsageError, match="Missing value"):
        _request("set", "4")


def test_bad_channel_list_is_a_parse_error():
    with pytest.raises(ChannelOutOfRangeError):
        _request("get", "256")


def test_spaces_rejected_unless_allowed():
    with pytest.raises(InvalidChannelError):
        _request("get", "1, 2")

    request = _request("get", "1, 2", allow_whitespace=True)
    assert list(request.channels) == [1, 2]


def test_max_channel_is_applied():
    request = _request("get", "all", max_channel=15)

    assert list(request.channels) == list(range(16))


def test_render_report_wraps_status_cells():
    statuses = tuple(
        ChannelStatus(channel=index, state=PinState.ON if index % 2 else PinState.OFF)
        for index in range(18)
    )
    report = SessionReport(statuses=statuses, raw_response="{}")

    lines = cli.render_report(report).splitlines()

    assert lines[0] == "Status:"
    assert lines[1].startswith("0:off  1:on  2:off")
    assert lines[1].endswith("15:on")
    assert lines[2] == "16:off  17:on"


def test_render_report_shows_unknown():
    report = SessionReport(
        statuses=(ChannelStatus(channel=5, state=PinState.UNKNOWN),),
        raw_response='{"pins":[]}',
    )

    assert cli.render_report(report) == "Status:\n5:unknown"


def test_render_report_falls_back_to_raw_text():
    report = SessionReport(raw_response="busy", malformed=True)

    assert cli.render_report(report) == "Received (raw): busy"


def test_render_report_set_only_is_empty():
    assert cli.render_report(SessionReport(sent=(1, 2), set_value=True)) == ""


@pytest.mark.parametrize(
    "argv",
    [
        ["get"],
        ["1-3"],
        ["set", "1"],
        ["get", "3,,5"],
        ["get", "7-300"],
        ["set", "1", "on", "off"],
        ["--no-such-option"],
    ],
)
def test_main_usage_and_parse_errors_exit_1_without_connecting(
    argv, config_path, no_network
):
    assert cli.main(["-c", str(config_path), *argv]) == 1


def test_main_accepts_upper_case_flags(config_path, monkeypatch):
    seen = []

    async def fake_execute(request, config):
        seen.append(request)
        return SessionReport(sent=tuple(request.channels), set_value=request.set_value)

    monkeypatch.setattr(cli, "execute", fake_execute)

    assert cli.main(["-c", str(config_path), "-S", "-OFF", "2-3"]) == 0
    assert list(seen[0].channels) == [2, 3]
    assert seen[0].set_value is False


def test_main_very_long_channel_number_exits_1(config_path, no_network, caplog):
    assert cli.main(["-c", str(config_path), "get", "9" * 5000]) == 1
    assert "Invalid channel list" in caplog.text


@pytest.mark.parametrize(
    "content",
    ["[device]\nport = abc\n", "[channels]\nallow_whitespace = maybe\n", "port = 1\n"],
)
def test_main_bad_config_exits_1(content, config_path, no_network, caplog):
    config_path.write_text(content, encoding="utf-8")

    assert cli.main(["-c", str(config_path), "get", "1"]) == 1
    assert "Invalid configuration" in caplog.text


def test_main_reports_connection_failure(config_path, unused_tcp_port, caplog):
    exit_code = cli.main(
        [
            "-c",
            str(config_path),
            "--host",
            "127.0.0.1",
            "--port",
            str(unused_tcp_port),
            "get",
            "1",
        ]
    )

    assert exit_code == 1
    assert "Failed to connect" in caplog.text


def test_main_show_config(config_path, capsys, no_network):
    exit_code = cli.main(["-c", str(config_path), "--host", "device.local", "--show-config"])

    output = capsys.readouterr().out
    assert exit_code == 0
    assert "[device]" in output
    assert "host = device.local" in output


@pytest_asyncio.fixture
async def device(unused_tcp_port_factory):
    state = {"received": [], "pins": [False] * 8, "reply": None}

    async def websocket_handler(request: web.Request):
        ws = web.WebSocketResponse()
        await ws.prepare(request)
        async for message in ws:
            state["received"].append(message.data)
            if message.data.startswith('{"cmd":"set"'):
                channel = int(message.data.split('"ch":')[1].split(",")[0])
                if channel < len(state["pins"]):
                    state["pins"][channel] = message.data.endswith("true}")
            elif message.data == '{"cmd":"get"}':
                reply = state["reply"]
                if reply is None:
                    pins = ",".join("true" if pin else "false" for pin in state["pins"])
                    reply = f'{{"pins":[{pins}]}}'
                await ws.send_str(reply)
        return ws

    app = web.Application()
    app.router.add_get("/", websocket_handler)

    runner = web.AppRunner(app)
    await runner.setup()
    port = unused_tcp_port_factory()
    site = web.TCPSite(runner, "127.0.0.1", port)
    await site.start()

    try:
        yield port, state
    finally:
        await runner.cleanup()


def _config_for(config_path: Path, port: int):
    config_path.write_text(
        f"[device]\nhost = 127.0.0.1\nport = {port}\n", encoding="utf-8"
    )
    return load_config(config_path)


@pytest.mark.asyncio
async def test_execute_set_then_get_round_trip(device, config_path):
    port, state = device
    config = _config_for(config_path, port)
    request = SessionRequest(
        channels=parse_channels("1-2,9"), want_set=True, want_get=True, set_value=True
    )

    report = await cli.execute(request, config)

    assert state["received"] == [
        '{"cmd":"set","ch":1,"val":true}',
        '{"cmd":"set","ch":2,"val":true}',
        '{"cmd":"set","ch":9,"val":true}',
        '{"cmd":"get"}',
    ]
    assert report.sent == (1, 2, 9)
    assert cli.render_report(report) == "Status:\n1:on  2:on  9:unknown"


@pytest.mark.asyncio
async def test_execute_get_with_malformed_reply(device, config_path):
    port, state = device
    state["reply"] = '{"status":"booting"}'
    config = _config_for(config_path, port)
    request = SessionRequest(channels=parse_channels("0"), want_get=True)

    report = await cli.execute(request, config)

    assert report.malformed is True
    assert cli.render_report(report) == 'Received (raw): {"status":"booting"}'
