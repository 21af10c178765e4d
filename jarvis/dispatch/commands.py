"""Command shapes flowing through the dispatch runtime.

A ``CommandListener`` blocks until its input source yields a ``Command``; the
runtime's executor later calls ``Command.execute`` with the shared context
(the transport).  ``TextInput`` / ``TextCommand`` are the line-oriented
console source and the command it produces.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Any, Protocol, TextIO

from loguru import logger


class CommandListenError(Exception):
    """An input source failed to produce a command."""


class Command(Protocol):
    def execute(self, context: Any) -> str | None:
        """Run the command; return a message for the user, or ``None``."""


class CommandListener(Protocol):
    def listen(self, context: Any) -> Command:
        """Block until the next command is available."""


@dataclass
class TextCommand:
    """A command typed on the console."""

    text: str

    def execute(self, context: Any) -> str | None:
        logger.debug("[Dispatch/Command] executing {!r}", self.text)
        return f"executed: {self.text}"


class TextInput:
    """Reads one command per line from a text stream (stdin by default)."""

    def __init__(self, stream: TextIO | None = None, prompt: str = ""):
        self._stream = stream
        self.prompt = prompt

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdin

    def listen(self, context: Any) -> TextCommand:
        if self.prompt:
            sys.stdout.write(self.prompt)
            sys.stdout.flush()
        line = self.stream.readline()
        if not line:
            raise CommandListenError("input stream closed")
        text = line.strip()
        if not text:
            raise CommandListenError("empty command")
        return TextCommand(text)
