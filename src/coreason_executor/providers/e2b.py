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
import os
from typing import Any

from e2b_code_interpreter import AsyncSandbox, CommandExitException

from coreason_executor.exceptions import ProviderUnavailable
from coreason_executor.models import ProcessOutput
from coreason_executor.providers.base import (
    ExitHandler,
    OutputHandler,
    ProviderProcess,
    ProviderSandbox,
    SandboxProvider,
)
from coreason_executor.utils.logger import logger


class _LineBuffer:
    """Reassembles the raw output chunks E2B delivers into whole lines."""

    def __init__(self, handler: OutputHandler):
        self.handler = handler
        self.partial = ""

    def feed(self, data: str) -> None:
        lines = (self.partial + data).split("\n")
        # The last piece has not seen its newline yet
        self.partial = lines.pop()
        for line in lines:
            self.handler(line.removesuffix("\r"))

    def flush(self) -> None:
        if self.partial:
            line, self.partial = self.partial, ""
            self.handler(line.removesuffix("\r"))


def _retrieve_failure(task: "asyncio.Task[ProcessOutput]") -> None:
    # The failure already went to on_exit; nobody may ever call wait().
    if not task.cancelled():
        task.exception()


class E2BSandbox(ProviderSandbox):
    """A connected E2B cloud sandbox."""

    def __init__(self, sandbox: AsyncSandbox, command_timeout: float | None = 60.0):
        self.sandbox = sandbox
        self.command_timeout = command_timeout

    @property
    def sandbox_id(self) -> str:
        return str(self.sandbox.sandbox_id)

    async def write_file(self, path: str, content: str) -> None:
        try:
            await self.sandbox.files.write(path, content)
        except Exception as e:
            logger.error(f"E2B write failed for {path}: {e}")
            raise ProviderUnavailable("write_file", {"sandbox_id": self.sandbox_id, "path": path}, e) from e

    async def read_file(self, path: str) -> str:
        try:
            content = await self.sandbox.files.read(path)
        except Exception as e:
            logger.error(f"E2B read failed for {path}: {e}")
            raise ProviderUnavailable("read_file", {"sandbox_id": self.sandbox_id, "path": path}, e) from e
        return str(content)

    async def start_process(
        self,
        command: str,
        *,
        on_stdout: OutputHandler,
        on_stderr: OutputHandler,
        on_exit: ExitHandler,
    ) -> ProviderProcess:
        """Start ``command`` in the background and watch it until exit.

        The SDK has no exit callback, so a watcher task awaits the command
        handle and reports the exit code through ``on_exit``. The native wait
        shares that task instead of consuming the handle a second time.
        """
        stdout = _LineBuffer(on_stdout)
        stderr = _LineBuffer(on_stderr)
        try:
            handle = await self.sandbox.commands.run(
                command,
                background=True,
                on_stdout=stdout.feed,
                on_stderr=stderr.feed,
                timeout=self.command_timeout,
            )
        except Exception as e:
            logger.error(f"E2B failed to start command: {e}")
            raise ProviderUnavailable("start_process", {"sandbox_id": self.sandbox_id, "command": command}, e) from e

        watcher = asyncio.create_task(self._watch(handle, on_exit, stdout, stderr))
        watcher.add_done_callback(_retrieve_failure)

        async def wait() -> ProcessOutput:
            return await asyncio.shield(watcher)

        return ProviderProcess(pid=str(handle.pid), wait=wait)

    async def _watch(
        self, handle: Any, on_exit: ExitHandler, stdout: _LineBuffer, stderr: _LineBuffer
    ) -> ProcessOutput:
        try:
            result = await handle.wait()
            exit_code = result.exit_code
        except CommandExitException as e:
            # Non-zero exit is a normal completion for our purposes.
            exit_code = e.exit_code
        except Exception as e:
            logger.error(f"E2B lost track of process {handle.pid}: {e}")
            stdout.flush()
            stderr.flush()
            on_exit(None, e)
            raise
        stdout.flush()
        stderr.flush()
        on_exit(exit_code, None)
        return ProcessOutput(exit_code=exit_code)

    def get_host(self, port: int) -> str | None:
        return f"https://{self.sandbox.get_host(port)}"

    async def close(self) -> None:
        logger.info(f"Terminating E2B sandbox: {self.sandbox_id}")
        try:
            await self.sandbox.kill()
        except Exception as e:
            logger.error(f"Error terminating E2B sandbox: {e}")
            raise ProviderUnavailable("close", {"sandbox_id": self.sandbox_id}, e) from e


class E2BProvider(SandboxProvider):
    """E2B Cloud implementation of the SandboxProvider.

    Uses E2B cloud-based microVMs through the async SDK so that output
    callbacks run on the executor's event loop.
    """

    def __init__(
        self,
        api_key: str | None = None,
        template: str = "base",
        command_timeout: float | None = 60.0,
        sandbox_timeout: int | None = None,
    ):
        """Initializes the E2BProvider.

        Args:
            api_key: E2B API Key. Defaults to E2B_API_KEY env var.
            template: E2B template ID to use (default: 'base').
            command_timeout: Limit on a command connection in seconds (0 for none).
            sandbox_timeout: Sandbox lifetime in seconds when create() gets none.
        """
        self.api_key = api_key or os.getenv("E2B_API_KEY")
        self.template = template
        self.command_timeout = command_timeout
        self.sandbox_timeout = sandbox_timeout

    async def create(self, timeout: int | None = None) -> E2BSandbox:
        logger.info(f"Starting E2B sandbox (template: {self.template})")
        if timeout is None:
            timeout = self.sandbox_timeout
        kwargs: dict[str, Any] = {"template": self.template, "api_key": self.api_key}
        if timeout is not None:
            kwargs["timeout"] = timeout
        try:
            sandbox = await AsyncSandbox.create(**kwargs)
        except Exception as e:
            logger.error(f"Failed to start E2B sandbox: {e}")
            raise ProviderUnavailable("create_sandbox", {"template": self.template, "timeout": timeout}, e) from e
        logger.info(f"E2B sandbox started: {sandbox.sandbox_id}")
        return E2BSandbox(sandbox, command_timeout=self.command_timeout)

    async def reconnect(self, sandbox_id: str) -> E2BSandbox:
        try:
            sandbox = await AsyncSandbox.connect(sandbox_id, api_key=self.api_key)
        except Exception as e:
            logger.error(f"Failed to reconnect to E2B sandbox {sandbox_id}: {e}")
            raise ProviderUnavailable("reconnect", {"sandbox_id": sandbox_id}, e) from e
        return E2BSandbox(sandbox, command_timeout=self.command_timeout)
