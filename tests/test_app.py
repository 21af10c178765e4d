"""Tests for startup wiring."""

from __future__ import annotations

import struct
from unittest.mock import MagicMock, patch

import pytest

from jarvis import app
from jarvis.config.schema import DiscoveryConfig, InputConfig, JarvisConfig
from jarvis.device.packet import HEADER, checksum
from jarvis.dispatch.commands import TextInput
from jarvis.dispatch.runtime import ExecutionOrder


def _announcement(device_id: int) -> bytes:
    body = bytes([HEADER, 9, device_id, 1, 0, 0, 0])
    return body + struct.pack("!I", checksum(body))


class TestBuildSources:
    def test_text_sources(self):
        sources = app.build_sources([
            InputConfig(name="console"),
            InputConfig(order="sync"),
        ])
        assert isinstance(sources[0].listener, TextInput)
        assert sources[0].order == ExecutionOrder.ASYNC
        assert sources[0].name == "console"
        assert sources[1].order == ExecutionOrder.SYNC
        assert sources[1].name == "text-1"


class TestDiscover:
    def test_returns_devices(self):
        channel = MagicMock()
        channel.recv_from.side_effect = [(_announcement(4), ("10.0.0.4", 1)), TimeoutError()]
        devices = app.discover(channel, JarvisConfig())
        assert [d.device_id for d in devices] == [4]

    def test_failure_is_not_fatal(self):
        channel = MagicMock()
        channel.recv_from.side_effect = TimeoutError()
        with patch.object(app, "post_message") as post:
            assert app.discover(channel, JarvisConfig()) == []
        messages = [c.args[0] for c in post.call_args_list]
        assert any("COULD NOT START" in m for m in messages)

    def test_disabled(self):
        channel = MagicMock()
        cfg = JarvisConfig(discovery=DiscoveryConfig(enabled=False))
        assert app.discover(channel, cfg) == []
        channel.connect.assert_not_called()


class TestMain:
    def test_runs_discovery_then_dispatch_even_on_failure(self, tmp_path):
        cfg_path = tmp_path / "config.json"
        cfg_path.write_text('{"channel": {"readAddress": "127.0.0.1:0", "writeAddress": "127.0.0.1:0"}}')
        order: list[str] = []

        with patch.object(app, "UDPChannel") as channel_cls, \
             patch.object(app, "discover", side_effect=lambda *a: order.append("discover") or []), \
             patch.object(app, "DispatchRuntime") as runtime_cls, \
             patch.object(app, "configure_logging"):
            runtime_cls.return_value.run.side_effect = lambda: order.append("dispatch")
            app.main(["--config", str(cfg_path)])

        channel_cls.assert_called_once_with(
            read_address="127.0.0.1:0", write_address="127.0.0.1:0", recv_timeout=2.0,
        )
        assert order == ["discover", "dispatch"]
        context = runtime_cls.call_args[0][0]
        assert context is channel_cls.return_value.__enter__.return_value

    def test_unknown_argument(self):
        with pytest.raises(SystemExit):
            app.main(["--bogus"])
