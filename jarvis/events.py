"""User-facing status messages.

Components report outcomes (startup, discovery results, command results) as
``MessageEvent`` values; ``post_message`` hands them to the loguru sink at the
matching level.  Diagnostics below user level go straight to ``logger``.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum

from loguru import logger


class MessageLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"


@dataclass(frozen=True)
class MessageEvent:
    level: MessageLevel
    message: str


_EMITTERS = {
    MessageLevel.INFO: logger.info,
    MessageLevel.WARNING: logger.warning,
    MessageLevel.ERROR: logger.error,
    MessageLevel.SUCCESS: logger.success,
}


def post_message(message: str, level: MessageLevel = MessageLevel.INFO) -> MessageEvent:
    """Emit *message* at *level* and return the event that was posted."""
    event = MessageEvent(level=MessageLevel(level), message=message)
    _EMITTERS[event.level]("[Jarvis] {}", event.message)
    return event


def configure_logging(level: str = "INFO") -> None:
    """Replace loguru's default sink with a colourised stderr sink at *level*."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        colorize=True,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )
