"""Producer/consumer runtime that feeds commands to a single executor."""

from jarvis.dispatch.commands import Command, CommandListener, CommandListenError, TextCommand, TextInput
from jarvis.dispatch.runtime import (
    ChannelClosedError,
    CommandChannel,
    DispatchRuntime,
    ExecutionOrder,
    InputSource,
)

__all__ = [
    "ChannelClosedError",
    "Command",
    "CommandChannel",
    "CommandListenError",
    "CommandListener",
    "DispatchRuntime",
    "ExecutionOrder",
    "InputSource",
    "TextCommand",
    "TextInput",
]
