# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_sandbox

import asyncio
import time
from collections import deque
from typing import AsyncIterator, Callable

from coreason_executor.models import CommandResult, LogEntry, LogStream
from coreason_executor.providers.base import WaitAccessor
from coreason_executor.utils.logger import logger

Subscriber = Callable[[LogEntry], None]


class ProcessRecord:
    """State of one launched command.

    The record moves from running to completed exactly once, when the
    provider reports exit. Output lines are appended to ``logs`` in emission
    order and pushed synchronously to every live subscriber.

    The record is created before the provider starts the command, so output
    reported before the pid is known still lands in the buffer.
    """

    def __init__(self, command: str, args: list[str] | None = None):
        self.process_id: str | None = None
        self.command = command
        self.args = list(args or [])
        self.logs: list[LogEntry] = []
        self.exit_code: int | None = None
        self.failure: BaseException | None = None
        self.started_at = time.time()
        self.wait: WaitAccessor | None = None
        self.result: CommandResult | None = None
        self.subscribers: set[Subscriber] = set()
        self._done_listeners: set[Callable[[], None]] = set()
        self._done = asyncio.Event()

    @property
    def completed(self) -> bool:
        return self._done.is_set()

    def append(self, data: str, stream: LogStream) -> LogEntry:
        """Append an output line and notify live subscribers."""
        entry = LogEntry(data=data, stream=stream, timestamp=time.time())
        self.logs.append(entry)
        for subscriber in list(self.subscribers):
            subscriber(entry)
        return entry

    def on_stdout(self, data: str) -> None:
        self.append(data, "stdout")

    def on_stderr(self, data: str) -> None:
        self.append(data, "stderr")

    def complete(self, exit_code: int | None = None, failure: BaseException | None = None) -> bool:
        """Mark the process as finished.

        Only the first call has any effect; the exit code never changes once
        set. Returns True if this call performed the transition.
        """
        if self.completed:
            return False
        self.exit_code = exit_code
        self.failure = failure
        self._done.set()
        # The pid is unset when the provider reports exit during start.
        name = self.process_id or repr(" ".join([self.command, *self.args]))
        logger.info(f"Process {name} exited with code {exit_code}")
        for listener in list(self._done_listeners):
            listener()
        return True

    def subscribe(self, subscriber: Subscriber) -> None:
        self.subscribers.add(subscriber)

    def unsubscribe(self, subscriber: Subscriber) -> None:
        self.subscribers.discard(subscriber)

    async def wait_done(self) -> None:
        await self._done.wait()

    def collect(self, stream: LogStream) -> str:
        """Join the payloads of one stream, in order, with newlines."""
        return "\n".join(entry.data for entry in self.logs if entry.stream == stream)

    async def stream(self) -> AsyncIterator[LogEntry]:
        """Yield all output so far, then tail new output until exit.

        The subscription is released when the generator finishes or is closed,
        so consumers that may stop early should wrap it in
        ``contextlib.aclosing``.
        """
        # Index-based so lines appended while the consumer is suspended are
        # still picked up before subscribing.
        index = 0
        while index < len(self.logs):
            yield self.logs[index]
            index += 1

        pending: deque[LogEntry] = deque()
        wake = asyncio.Event()
        finished = self.completed

        def on_log(entry: LogEntry) -> None:
            pending.append(entry)
            wake.set()

        def on_done() -> None:
            nonlocal finished
            finished = True
            wake.set()

        self.subscribe(on_log)
        self._done_listeners.add(on_done)
        try:
            while True:
                if pending:
                    yield pending.popleft()
                    continue
                if finished:
                    break
                wake.clear()
                await wake.wait()
        finally:
            self.unsubscribe(on_log)
            self._done_listeners.discard(on_done)
