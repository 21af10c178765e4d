"""UDP transport shared by discovery and command execution."""

from jarvis.communication.channel import Transport, UDPChannel, parse_address

__all__ = ["Transport", "UDPChannel", "parse_address"]
