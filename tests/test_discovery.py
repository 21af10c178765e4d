"""Tests for broadcast device discovery (fake transports, no real sockets)."""

from __future__ import annotations

import struct
from unittest.mock import MagicMock

import pytest

from jarvis.device.discovery import (
    BROADCAST_HOST,
    DEVICE_PORT,
    RECV_BUFFER_SIZE,
    DeviceDiscovery,
    DiscoveryState,
    set_up_devices,
)
from jarvis.device.errors import (
    CouldNotReceiveDataError,
    CouldNotReceiveDevicePacketError,
    CouldNotSendSetupCommandError,
    CouldNotSetupDevicesError,
    CouldNotUnserializeDevicePacketError,
    DeviceError,
    MismatchChecksumError,
)
from jarvis.device.packet import HEADER, Device, DeviceStatus, checksum

ADDR = ("192.168.1.50", 62345)


def _announcement(device_id: int) -> bytes:
    body = bytes([HEADER, 9, device_id, 1, 0, 0, 0])
    return body + struct.pack("!I", checksum(body))


def _transport(*responses) -> MagicMock:
    """Fake transport whose recv_from yields *responses* in order.

    Exceptions in *responses* are raised instead of returned.
    """
    transport = MagicMock()
    transport.recv_from.side_effect = [
        r if isinstance(r, Exception) else (r, ADDR) for r in responses
    ]
    return transport


# ---------------------------------------------------------------------------
# Broadcast
# ---------------------------------------------------------------------------


class TestBroadcast:
    def test_connects_to_broadcast_and_sends_command(self):
        transport = _transport(_announcement(1), TimeoutError())
        set_up_devices(transport)

        transport.connect.assert_called_once_with((BROADCAST_HOST, DEVICE_PORT))
        transport.send.assert_called_once()
        sent = transport.send.call_args[0][0]
        assert len(sent) == 11
        assert sent[0] == HEADER
        assert sent[1] == 0x09

    def test_custom_target(self):
        transport = _transport(_announcement(1), TimeoutError())
        DeviceDiscovery(transport, broadcast_host="10.0.0.255", broadcast_port=9999).run()
        transport.connect.assert_called_once_with(("10.0.0.255", 9999))

    def test_connect_failure(self):
        transport = MagicMock()
        transport.connect.side_effect = OSError("network unreachable")
        disc = DeviceDiscovery(transport)

        with pytest.raises(CouldNotSendSetupCommandError) as exc_info:
            disc.run()

        assert isinstance(exc_info.value.__cause__, OSError)
        assert disc.state == DiscoveryState.FAILED
        transport.send.assert_not_called()
        transport.recv_from.assert_not_called()

    def test_send_failure(self):
        transport = MagicMock()
        transport.send.side_effect = PermissionError("broadcast not permitted")

        with pytest.raises(CouldNotSetupDevicesError):
            set_up_devices(transport)
        transport.recv_from.assert_not_called()


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------


class TestCollect:
    def test_first_receive_fails(self):
        transport = _transport(TimeoutError("timed out"))
        disc = DeviceDiscovery(transport)

        with pytest.raises(CouldNotReceiveDevicePacketError) as exc_info:
            disc.run()
        assert isinstance(exc_info.value.__cause__, CouldNotReceiveDataError)
        assert disc.state == DiscoveryState.FAILED

    def test_first_packet_undecodable(self):
        transport = _transport(bytes([HEADER, 9, 15, 1, 0, 0, 0, 0, 0, 0, 0]))

        with pytest.raises(CouldNotUnserializeDevicePacketError) as exc_info:
            set_up_devices(transport)
        assert isinstance(exc_info.value.__cause__, MismatchChecksumError)

    def test_first_packet_empty(self):
        transport = _transport(b"")
        with pytest.raises(CouldNotUnserializeDevicePacketError):
            set_up_devices(transport)

    def test_one_device_then_receive_failure(self):
        transport = _transport(_announcement(15), TimeoutError())
        disc = DeviceDiscovery(transport)

        devices = disc.run()

        assert devices == [Device(device_id=15, status=DeviceStatus.ON)]
        assert disc.state == DiscoveryState.DONE

    def test_later_decode_failure_keeps_partial_result(self):
        transport = _transport(
            _announcement(1),
            _announcement(2),
            b"\x00garbage",
            _announcement(3),
        )
        devices = set_up_devices(transport)

        assert [d.device_id for d in devices] == [1, 2]
        assert transport.recv_from.call_count == 3

    def test_arrival_order_preserved(self):
        ids = [7, 3, 200, 3, 42]
        transport = _transport(*[_announcement(i) for i in ids], OSError("done"))
        devices = set_up_devices(transport)
        assert [d.device_id for d in devices] == ids

    def test_many_responses_do_not_recurse(self):
        count = 5000
        transport = _transport(*[_announcement(i % 256) for i in range(count)], TimeoutError())
        devices = set_up_devices(transport)
        assert len(devices) == count

    def test_padded_datagram(self):
        transport = _transport(_announcement(9).ljust(RECV_BUFFER_SIZE, b"\x00"), TimeoutError())
        assert set_up_devices(transport)[0].device_id == 9

    def test_receives_with_buffer_size(self):
        transport = _transport(_announcement(1), TimeoutError())
        DeviceDiscovery(transport, buffer_size=64).run()
        transport.recv_from.assert_called_with(64)

    def test_default_buffer_size(self):
        transport = _transport(_announcement(1), TimeoutError())
        set_up_devices(transport)
        transport.recv_from.assert_called_with(RECV_BUFFER_SIZE)


# ---------------------------------------------------------------------------
# State / errors
# ---------------------------------------------------------------------------


class TestDiscoveryState:
    def test_initial_state(self):
        assert DeviceDiscovery(MagicMock()).state == DiscoveryState.IDLE

    def test_errors_share_base(self):
        transport = _transport(TimeoutError())
        with pytest.raises(DeviceError) as exc_info:
            set_up_devices(transport)
        assert exc_info.value.reason == "could_not_receive_device_packet"

    def test_run_returns_copy(self):
        transport = _transport(_announcement(1), TimeoutError())
        disc = DeviceDiscovery(transport)
        devices = disc.run()
        devices.clear()
        assert len(disc.devices) == 1
