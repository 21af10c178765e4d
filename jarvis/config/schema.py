"""Configuration schema using Pydantic."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings, SettingsConfigDict

from jarvis.communication.channel import parse_address


class Base(BaseModel):
    """Base model that accepts both camelCase and snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChannelConfig(Base):
    """UDP sockets shared by discovery and command execution."""

    read_address: str = "0.0.0.0:62345"   # Receive socket bind address
    write_address: str = "0.0.0.0:61000"  # Send socket bind address
    recv_timeout: float | None = 2.0       # Seconds; None = block until data arrives

    @field_validator("read_address", "write_address")
    @classmethod
    def _check_address(cls, v: str) -> str:
        parse_address(v)
        return v


class DiscoveryConfig(Base):
    """Startup broadcast discovery."""

    enabled: bool = True
    broadcast_host: str = "255.255.255.255"
    broadcast_port: int = Field(default=62344, ge=0, le=65535)
    buffer_size: int = Field(default=256, ge=1, le=65535)  # Bytes read per datagram


class InputConfig(Base):
    """One command input source."""

    kind: Literal["text"] = "text"
    order: Literal["async", "sync"] = "async"  # "sync" is reserved and not run
    name: str = ""
    prompt: str = ""


class JarvisConfig(BaseSettings):
    """Root configuration for jarvis."""

    channel: ChannelConfig = Field(default_factory=ChannelConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    inputs: list[InputConfig] = Field(default_factory=lambda: [InputConfig(name="console")])
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="JARVIS_", env_nested_delimiter="__")
