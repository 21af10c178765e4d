"""jarvis — LAN device discovery and command dispatch.

Devices on the local network answer a UDP broadcast with small checksummed
binary frames.  Once the devices are known, commands typed (or spoken) by the
user are funnelled through a single ordered channel and executed one at a time.
"""

__version__ = "0.1.0"
