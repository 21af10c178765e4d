"""Device packet protocol and broadcast discovery."""

from jarvis.device.discovery import DeviceDiscovery, DiscoveryState, set_up_devices
from jarvis.device.packet import Device, DeviceStatus, build_discovery_command, decode_device

__all__ = [
    "Device",
    "DeviceDiscovery",
    "DeviceStatus",
    "DiscoveryState",
    "build_discovery_command",
    "decode_device",
    "set_up_devices",
]
