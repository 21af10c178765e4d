"""Process entry point: discover devices, then dispatch commands forever."""

from __future__ import annotations

import argparse
from pathlib import Path

from loguru import logger

from jarvis.communication.channel import UDPChannel
from jarvis.config.loader import load_config
from jarvis.config.schema import InputConfig, JarvisConfig
from jarvis.device.discovery import DeviceDiscovery
from jarvis.device.errors import DeviceError
from jarvis.device.packet import Device
from jarvis.dispatch.commands import TextInput
from jarvis.dispatch.runtime import DispatchRuntime, ExecutionOrder, InputSource
from jarvis.events import MessageLevel, configure_logging, post_message


def build_sources(inputs: list[InputConfig]) -> list[InputSource]:
    """Turn configured inputs into runtime input sources."""
    sources: list[InputSource] = []
    for i, cfg in enumerate(inputs):
        if cfg.kind == "text":
            listener = TextInput(prompt=cfg.prompt)
        else:
            raise ValueError(f"unknown input kind {cfg.kind!r}")
        sources.append(InputSource(
            listener=listener,
            order=ExecutionOrder(cfg.order),
            name=cfg.name or f"{cfg.kind}-{i}",
        ))
    return sources


def discover(channel: UDPChannel, config: JarvisConfig) -> list[Device]:
    """Run startup discovery; failures are reported, never raised."""
    if not config.discovery.enabled:
        logger.info("[Jarvis] discovery disabled")
        return []
    post_message("Checking for devices")
    discovery = DeviceDiscovery(
        channel,
        broadcast_host=config.discovery.broadcast_host,
        broadcast_port=config.discovery.broadcast_port,
        buffer_size=config.discovery.buffer_size,
    )
    try:
        devices = discovery.run()
    except DeviceError as exc:
        post_message(f"JARVIS COULD NOT START: {exc}", MessageLevel.ERROR)
        return []
    listing = ", ".join(str(d) for d in devices) or "none"
    post_message(f"Set up devices: {listing}", MessageLevel.SUCCESS)
    return devices


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="jarvis", description=__doc__)
    parser.add_argument("--config", type=Path, default=None, help="path to config.json")
    args = parser.parse_args(argv)

    config = load_config(args.config)
    configure_logging(config.log_level)
    post_message("Starting JARVIS")

    channel = UDPChannel(
        read_address=config.channel.read_address,
        write_address=config.channel.write_address,
        recv_timeout=config.channel.recv_timeout,
    )
    with channel as ch:
        discover(ch, config)
        post_message("ENTER OR VOICE COMMAND")
        runtime = DispatchRuntime(ch, build_sources(config.inputs))
        runtime.run()
