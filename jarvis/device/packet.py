"""Binary frame codec for the device protocol.

Frame layout
------------
Every frame starts with the header byte ``0xA5``.  The byte at offset 1
declares the frame length: the meaningful part of a frame is the first
``length + 2`` bytes, and its last four bytes are a big-endian CRC-32 of
everything before them.  Bytes past that span (zero padding in a fixed-size
receive buffer) are ignored.

Discovery command (hub → broadcast), 11 bytes::

    A5 09 00 00 HH MM SS c3 c2 c1 FF

Device announcement (device → hub)::

    A5 <len> <device_id> <payload...> <crc32 big-endian>

The discovery command's last checksum byte is ``(crc | 0xFF)`` truncated to a
byte, so it is always ``0xFF``.  Devices in the field may rely on that byte,
so it is kept as-is.
"""

from __future__ import annotations

import struct
import zlib
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from jarvis.device.errors import (
    ChecksumMismatchError,
    EmptyBufferError,
    MismatchChecksumError,
    PossibleCorruptedDataError,
    ProtocolError,
)

HEADER = 0xA5
DISCOVERY_COMMAND_KIND = 0x09
CHECKSUM_SIZE = 4
# Bytes preceding the declared length: header + length byte
FRAME_PREFIX_SIZE = 2
DISCOVERY_COMMAND_SIZE = 11


class DeviceStatus(str, Enum):
    """Power state reported for a device."""
    ON = "on"
    OFF = "off"


@dataclass(frozen=True)
class Device:
    """A device that answered the discovery broadcast."""

    device_id: int
    status: DeviceStatus = DeviceStatus.ON

    def __str__(self) -> str:
        return f"Device(id={self.device_id}, status={self.status.value})"


# ---------------------------------------------------------------------------
# Checksum
# ---------------------------------------------------------------------------

def checksum(data: bytes) -> int:
    """Return the CRC-32 (IEEE) of *data* as an unsigned 32-bit int."""
    return zlib.crc32(data) & 0xFFFFFFFF


def validate_checksum(buffer: bytes) -> None:
    """Verify the CRC trailer of the frame held in *buffer*.

    The checksum span is ``buffer[:buffer[1] + 2]``; anything after it is
    padding.  Raises ``ChecksumMismatchError`` if the buffer is too short, if
    the declared span does not fit in the buffer, or if the trailer differs
    from the computed CRC.
    """
    if len(buffer) <= CHECKSUM_SIZE:
        raise ChecksumMismatchError()

    span_len = buffer[1] + FRAME_PREFIX_SIZE
    if span_len > len(buffer) or span_len < CHECKSUM_SIZE:
        raise ChecksumMismatchError()

    span = bytes(buffer[:span_len])
    body, trailer = span[:-CHECKSUM_SIZE], span[-CHECKSUM_SIZE:]
    (expected,) = struct.unpack("!I", trailer)
    actual = checksum(body)
    if expected != actual:
        raise ChecksumMismatchError(expected=expected, actual=actual)


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------

def build_discovery_command(now: datetime | None = None) -> bytes:
    """Build the 11-byte discovery broadcast stamped with the time of day."""
    now = now or datetime.now()
    body = bytes([
        HEADER,
        DISCOVERY_COMMAND_KIND,
        0x00,
        0x00,
        now.hour,
        now.minute,
        now.second,
    ])
    crc = checksum(body)
    return body + bytes([
        (crc >> 24) & 0xFF,
        (crc >> 16) & 0xFF,
        (crc >> 8) & 0xFF,
        (crc | 0xFF) & 0xFF,
    ])


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

def decode_device(buffer: bytes) -> Device:
    """Parse a device announcement frame.

    Raises a ``DataReceiveError`` subclass describing the first check that
    failed: empty buffer, wrong header, bad checksum, or no room for a
    device id.
    """
    if not buffer:
        raise EmptyBufferError()
    if buffer[0] != HEADER:
        raise ProtocolError(buffer, detail=f"header=0x{buffer[0]:02x}")
    try:
        validate_checksum(buffer)
    except ChecksumMismatchError as exc:
        raise MismatchChecksumError(buffer, detail=str(exc)) from exc
    if len(buffer) <= 2:
        raise PossibleCorruptedDataError(buffer)
    return Device(device_id=buffer[2], status=DeviceStatus.ON)
