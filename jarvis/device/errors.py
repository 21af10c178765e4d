"""Exception hierarchy for the device protocol.

Three families mirror the three layers of the protocol:

- ``ChecksumError``    — the CRC trailer of a frame does not match
- ``DataReceiveError`` — a received buffer cannot be turned into a ``Device``
- ``DeviceError``      — the discovery exchange as a whole failed

Each family has a common base so callers can catch it in one place.
"""

from __future__ import annotations


# ---------------------------------------------------------------------------
# Checksum
# ---------------------------------------------------------------------------

class ChecksumError(Exception):
    """Base exception for checksum validation failures."""


class ChecksumMismatchError(ChecksumError):
    """The trailing CRC-32 disagrees with the frame contents.

    Attributes:
        expected: CRC read from the frame trailer (``None`` if the frame was
            too short to carry one)
        actual: CRC computed over the checksum span (``None`` likewise)
    """

    def __init__(self, expected: int | None = None, actual: int | None = None):
        self.expected = expected
        self.actual = actual
        if expected is None or actual is None:
            msg = "Checksum mismatch: frame too short for checksum span"
        else:
            msg = f"Checksum mismatch: trailer=0x{expected:08x} computed=0x{actual:08x}"
        super().__init__(msg)


# ---------------------------------------------------------------------------
# Data receive / decode
# ---------------------------------------------------------------------------

class DataReceiveError(Exception):
    """Base exception for errors turning received bytes into a device.

    Attributes:
        reason: Short machine-readable failure reason
        data_preview: First 16 bytes of the offending buffer
    """

    reason = "data_receive_error"

    def __init__(self, data: bytes = b"", detail: str = ""):
        self.data_preview = bytes(data[:16]) if data else b""
        msg = f"Device packet rejected: {self.reason}"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)


class ProtocolError(DataReceiveError):
    """First byte of the buffer is not the protocol header."""

    reason = "protocol_error"


class CouldNotReceiveDataError(DataReceiveError):
    """The transport could not deliver a datagram."""

    reason = "could_not_receive_data"


class PossibleCorruptedDataError(DataReceiveError):
    """Frame passed the checksum but is too short to hold a device id."""

    reason = "possible_corrupted_data"


class EmptyBufferError(DataReceiveError):
    """Buffer contains no bytes."""

    reason = "empty_buffer"


class MismatchChecksumError(DataReceiveError):
    """Frame checksum validation failed."""

    reason = "mismatch_checksum"


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------

class DeviceError(Exception):
    """Base exception for a failed discovery exchange."""

    reason = "device_error"

    def __init__(self, detail: str = ""):
        msg = f"Device setup failed: {self.reason}"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)


class CouldNotSetupDevicesError(DeviceError):
    """The discovery command could not be transmitted."""

    reason = "could_not_setup_devices"


class CouldNotSendSetupCommandError(DeviceError):
    """The send socket could not be connected to the broadcast address."""

    reason = "could_not_send_setup_command"


class CouldNotUnserializeDevicePacketError(DeviceError):
    """The first response datagram was not a valid device frame."""

    reason = "could_not_unserialize_device_packet"


class CouldNotReceiveDevicePacketError(DeviceError):
    """No response datagram could be received at all."""

    reason = "could_not_receive_device_packet"
