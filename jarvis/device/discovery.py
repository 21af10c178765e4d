"""One-shot broadcast discovery of devices on the LAN.

How it works
------------
1. The send side of the transport is connected to ``255.255.255.255`` on the
   device port (default 62344) and the 11-byte discovery command is sent.
2. Responses are read one datagram at a time into a 256-byte buffer and
   decoded with ``decode_device``.
3. Collection stops at the first receive or decode failure.  If that happens
   on the very first datagram the whole discovery fails; otherwise the devices
   collected so far are returned.

Receives block until a response arrives or the socket's own timeout fires.

States::

    IDLE -> BROADCASTING -> COLLECTING -> DONE
                 |              |
                 +----> FAILED <+
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from loguru import logger

from jarvis.communication.channel import Transport
from jarvis.device.errors import (
    CouldNotReceiveDataError,
    CouldNotReceiveDevicePacketError,
    CouldNotSendSetupCommandError,
    CouldNotSetupDevicesError,
    CouldNotUnserializeDevicePacketError,
    DataReceiveError,
)
from jarvis.device.packet import Device, build_discovery_command, decode_device

BROADCAST_HOST = "255.255.255.255"
DEVICE_PORT = 62344
RECV_BUFFER_SIZE = 256


class DiscoveryState(str, Enum):
    IDLE = "idle"
    BROADCASTING = "broadcasting"
    COLLECTING = "collecting"
    DONE = "done"
    FAILED = "failed"


class DeviceDiscovery:
    """Broadcast the discovery command and collect device announcements.

    Parameters
    ----------
    transport:
        Anything with ``connect`` / ``send`` / ``recv_from`` (see ``Transport``).
    broadcast_host:
        Destination address of the discovery broadcast.
    broadcast_port:
        UDP port devices listen on.
    buffer_size:
        Maximum datagram size read per receive.
    """

    def __init__(
        self,
        transport: Transport,
        broadcast_host: str = BROADCAST_HOST,
        broadcast_port: int = DEVICE_PORT,
        buffer_size: int = RECV_BUFFER_SIZE,
    ):
        self.transport = transport
        self.broadcast_host = broadcast_host
        self.broadcast_port = broadcast_port
        self.buffer_size = buffer_size
        self.state = DiscoveryState.IDLE
        self.devices: list[Device] = []

    def run(self) -> list[Device]:
        """Run one discovery round and return the devices found, in arrival order.

        Raises a ``DeviceError`` subclass if the broadcast cannot be sent or if
        the first response cannot be received or decoded.
        """
        self.devices = []
        try:
            self._broadcast()
            self._collect()
        except Exception:
            self.state = DiscoveryState.FAILED
            raise
        self.state = DiscoveryState.DONE
        logger.info("[Device/Discovery] done: {} device(s)", len(self.devices))
        return list(self.devices)

    # -- broadcast -----------------------------------------------------------

    def _broadcast(self) -> None:
        self.state = DiscoveryState.BROADCASTING
        target = (self.broadcast_host, self.broadcast_port)
        try:
            self.transport.connect(target)
        except OSError as exc:
            logger.warning(
                "[Device/Discovery] cannot connect to {}:{}: {}", *target, exc,
            )
            raise CouldNotSendSetupCommandError(str(exc)) from exc

        command = build_discovery_command()
        try:
            self.transport.send(command)
        except OSError as exc:
            logger.warning("[Device/Discovery] cannot send discovery command: {}", exc)
            raise CouldNotSetupDevicesError(str(exc)) from exc
        logger.debug(
            "[Device/Discovery] sent discovery command {} to {}:{}",
            command.hex(), *target,
        )

    # -- collect -------------------------------------------------------------

    def _receive(self) -> tuple[bytes, Any]:
        try:
            return self.transport.recv_from(self.buffer_size)
        except OSError as exc:
            raise CouldNotReceiveDataError(detail=str(exc)) from exc

    def _collect(self) -> None:
        self.state = DiscoveryState.COLLECTING
        first = True
        while True:
            try:
                data, addr = self._receive()
            except CouldNotReceiveDataError as exc:
                if first:
                    logger.warning("[Device/Discovery] no response received: {}", exc)
                    raise CouldNotReceiveDevicePacketError(str(exc)) from exc
                logger.debug("[Device/Discovery] receive ended collection: {}", exc)
                return

            try:
                device = decode_device(data)
            except DataReceiveError as exc:
                if first:
                    logger.warning(
                        "[Device/Discovery] first response from {} unusable: {}",
                        _host(addr), exc,
                    )
                    raise CouldNotUnserializeDevicePacketError(str(exc)) from exc
                logger.debug(
                    "[Device/Discovery] undecodable response from {} ended collection: {}",
                    _host(addr), exc,
                )
                return

            logger.info("[Device/Discovery] found {} @ {}", device, _host(addr))
            self.devices.append(device)
            first = False


def _host(addr: Any) -> str:
    if isinstance(addr, tuple) and addr:
        return str(addr[0])
    return str(addr)


def set_up_devices(transport: Transport, **kwargs: Any) -> list[Device]:
    """Run a single discovery round over *transport*."""
    return DeviceDiscovery(transport, **kwargs).run()
