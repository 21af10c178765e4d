"""Fan-in command dispatch: many producers, one ordered executor.

Architecture
------------
- Every ``InputSource`` marked ``ExecutionOrder.ASYNC`` gets its own producer
  thread that loops forever: ``listener.listen(context)`` then ``channel.push``.
- Exactly one executor thread pops commands from the shared ``CommandChannel``
  and runs ``command.execute(context)`` one at a time, in arrival order.
- ``context`` (the transport) is shared by all threads; it must be safe for
  concurrent use, which ``UDPChannel`` guarantees with per-socket locks.

Failures to listen or to push are reported and the producer carries on.  The
only way a thread ends is channel closure; there is no shutdown signal.

``ExecutionOrder.SYNC`` sources are accepted but reserved: they are not
spawned.
"""

from __future__ import annotations

import queue
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable

from loguru import logger

from jarvis.dispatch.commands import Command, CommandListener
from jarvis.events import MessageLevel, post_message


class ExecutionOrder(str, Enum):
    SYNC = "sync"     # reserved; not spawned
    ASYNC = "async"   # own producer thread


@dataclass
class InputSource:
    """A command source plus how it should be run."""

    listener: CommandListener
    order: ExecutionOrder = ExecutionOrder.ASYNC
    name: str = ""


class ChannelClosedError(Exception):
    """The command channel was closed."""


_CLOSED = object()


class CommandChannel:
    """Unbounded FIFO of commands shared by producers and the executor."""

    def __init__(self) -> None:
        self._queue: queue.Queue[Any] = queue.Queue()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def push(self, command: Command) -> None:
        with self._lock:
            if self._closed:
                raise ChannelClosedError("cannot push to a closed channel")
            self._queue.put(command)

    def pop(self, timeout: float | None = None) -> Command:
        """Block for the next command.

        Raises ``ChannelClosedError`` once the channel is closed and drained,
        or ``queue.Empty`` if *timeout* expires first.
        """
        item = self._queue.get(timeout=timeout)
        if item is _CLOSED:
            # Leave the marker for any later pop
            self._queue.put(_CLOSED)
            raise ChannelClosedError("channel closed")
        return item

    def close(self) -> None:
        """Close the channel; commands already pushed are still delivered."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put(_CLOSED)

    def qsize(self) -> int:
        return self._queue.qsize()


class DispatchRuntime:
    """Runs producer threads and the executor thread over one channel.

    Parameters
    ----------
    context:
        Shared handle passed to every ``listen`` and ``execute`` call.
    sources:
        Input sources to run.
    channel:
        Channel to use (a fresh ``CommandChannel`` by default).
    """

    def __init__(
        self,
        context: Any,
        sources: Iterable[InputSource],
        channel: CommandChannel | None = None,
    ):
        self.context = context
        self.sources = list(sources)
        self.channel = channel or CommandChannel()
        self.threads: list[threading.Thread] = []
        self.executor_thread: threading.Thread | None = None

    # -- lifecycle -----------------------------------------------------------

    def start(self) -> None:
        """Spawn one producer per async source and the executor."""
        if self.threads:
            return
        for index, source in enumerate(self.sources):
            name = source.name or f"listener-{index}"
            if source.order != ExecutionOrder.ASYNC:
                logger.debug("[Dispatch/Runtime] source {} is sync; not spawned", name)
                continue
            self.threads.append(
                _supervised_thread(self._produce, source, name=f"producer-{name}")
            )
        self.executor_thread = _supervised_thread(self._execute, name="executor")
        self.threads.append(self.executor_thread)
        logger.info(
            "[Dispatch/Runtime] started {} producer(s) and 1 executor",
            len(self.threads) - 1,
        )

    def join(self, timeout: float | None = None) -> None:
        """Wait for every thread; in normal operation this never returns."""
        for thread in self.threads:
            thread.join(timeout)

    def run(self) -> None:
        self.start()
        self.join()

    def close(self) -> None:
        """Close the channel, which ends the executor and every producer."""
        self.channel.close()

    # -- loops ---------------------------------------------------------------

    def _produce(self, source: InputSource) -> None:
        while not self.channel.closed:
            try:
                command = source.listener.listen(self.context)
            except Exception as exc:
                post_message(f"COULD NOT READ COMMAND: {exc}", MessageLevel.ERROR)
                continue
            try:
                self.channel.push(command)
            except ChannelClosedError as exc:
                post_message(f"COMMAND COULD NOT BE SENT: {exc}", MessageLevel.ERROR)
        logger.debug(
            "[Dispatch/Runtime] {} stopped: channel closed", threading.current_thread().name,
        )

    def _execute(self) -> None:
        while True:
            try:
                command = self.channel.pop()
            except ChannelClosedError as exc:
                post_message(f"COULD NOT RECEIVE COMMAND: {exc}", MessageLevel.ERROR)
                return
            try:
                result = command.execute(self.context)
            except Exception as exc:
                post_message(f"COMMAND FAILED: {exc}", MessageLevel.ERROR)
                continue
            if result is not None:
                post_message(result, MessageLevel.SUCCESS)


def _supervised_thread(
    target: Callable[..., Any],
    *args: Any,
    name: str,
) -> threading.Thread:
    """Start a daemon thread whose uncaught exceptions are logged."""

    def _run() -> None:
        try:
            target(*args)
        except Exception as exc:
            logger.error("[Dispatch/Runtime] thread {!r} failed: {!r}", name, exc)

    thread = threading.Thread(target=_run, name=name, daemon=True)
    thread.start()
    return thread
