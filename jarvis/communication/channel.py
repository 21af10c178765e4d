"""UDP channel shared by discovery and command execution.

A ``UDPChannel`` owns two sockets:

- a *write* socket bound to ``write_address`` with broadcast enabled, which is
  ``connect``-ed to a destination before ``send``
- a *read* socket bound to ``read_address`` from which device responses are
  received with ``recv_from``

The channel is shared by every dispatch thread, so each socket is guarded by
its own lock.  A blocking ``recv_from`` therefore never holds up a ``send``.
"""

from __future__ import annotations

import socket
import threading
from typing import Protocol

from loguru import logger


class Transport(Protocol):
    """What the device protocol needs from a transport."""

    def connect(self, address: tuple[str, int]) -> None:
        """Point the send side at *address*."""

    def send(self, data: bytes) -> int:
        """Send *data* to the connected address; return bytes written."""

    def recv_from(self, size: int) -> tuple[bytes, tuple[str, int]]:
        """Block until one datagram of at most *size* bytes arrives."""


def parse_address(address: str) -> tuple[str, int]:
    """Split ``"host:port"`` into ``(host, port)``."""
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid address {address!r}, expected host:port")
    port_num = int(port)
    if not 0 <= port_num <= 65535:
        raise ValueError(f"port out of range in {address!r}")
    return host or "0.0.0.0", port_num


class UDPChannel:
    """Pair of UDP sockets used to talk to devices on the LAN.

    Parameters
    ----------
    read_address:
        ``host:port`` the receive socket binds to (default ``0.0.0.0:62345``).
    write_address:
        ``host:port`` the send socket binds to (default ``0.0.0.0:61000``).
    recv_timeout:
        Seconds before ``recv_from`` gives up with ``TimeoutError``.
        ``None`` blocks indefinitely.
    """

    def __init__(
        self,
        read_address: str = "0.0.0.0:62345",
        write_address: str = "0.0.0.0:61000",
        recv_timeout: float | None = None,
    ):
        self.read_address = parse_address(read_address)
        self.write_address = parse_address(write_address)
        self.recv_timeout = recv_timeout
        self._read_sock: socket.socket | None = None
        self._write_sock: socket.socket | None = None
        self._read_lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._open_lock = threading.Lock()

    # -- lifecycle -----------------------------------------------------------

    def open(self) -> UDPChannel:
        """Create and bind both sockets (idempotent)."""
        with self._open_lock:
            if self._write_sock is None:
                sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
                sock.bind(self.write_address)
                self._write_sock = sock
            if self._read_sock is None:
                sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
                sock.bind(self.read_address)
                sock.settimeout(self.recv_timeout)
                self._read_sock = sock
        logger.debug(
            "[Communication/Channel] open: read={}:{} write={}:{}",
            *self.read_address, *self.write_address,
        )
        return self

    def close(self) -> None:
        with self._open_lock:
            for sock in (self._read_sock, self._write_sock):
                if sock is not None:
                    sock.close()
            self._read_sock = None
            self._write_sock = None
        logger.debug("[Communication/Channel] closed")

    def __enter__(self) -> UDPChannel:
        return self.open()

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._read_sock is not None and self._write_sock is not None

    @property
    def bound_read_address(self) -> tuple[str, int]:
        """Actual address of the receive socket (useful with port 0)."""
        return self._ensure_open()[0].getsockname()

    @property
    def bound_write_address(self) -> tuple[str, int]:
        """Actual address of the send socket (useful with port 0)."""
        return self._ensure_open()[1].getsockname()

    def _ensure_open(self) -> tuple[socket.socket, socket.socket]:
        if not self.is_open:
            self.open()
        return self._read_sock, self._write_sock  # type: ignore[return-value]

    # -- I/O -----------------------------------------------------------------

    def connect(self, address: tuple[str, int]) -> None:
        _, write_sock = self._ensure_open()
        with self._write_lock:
            write_sock.connect(address)
        logger.debug("[Communication/Channel] send side connected to {}:{}", *address)

    def send(self, data: bytes) -> int:
        _, write_sock = self._ensure_open()
        with self._write_lock:
            return write_sock.send(data)

    def recv_from(self, size: int) -> tuple[bytes, tuple[str, int]]:
        read_sock, _ = self._ensure_open()
        with self._read_lock:
            return read_sock.recvfrom(size)
