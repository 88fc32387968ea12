# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_sandbox

from contextlib import aclosing
from typing import AsyncIterator, Literal

from coreason_executor.exceptions import ProviderUnavailable
from coreason_executor.models import CommandInfo, CommandResult, FilePayload, LogEntry
from coreason_executor.process import ProcessRecord
from coreason_executor.registry import SandboxRegistry
from coreason_executor.utils.logger import logger


class CommandExecutor:
    """Runs sandbox operations directly against the provider.

    All sandbox and process state lives in the injected registry; the
    executor is the only component that mutates it.
    """

    def __init__(self, registry: SandboxRegistry):
        """Initializes the CommandExecutor.

        Args:
            registry: The registry owning sandbox handles and process records.
        """
        self.registry = registry

    async def create_sandbox(self, timeout: int | None = None) -> str:
        """Allocate a new sandbox.

        Args:
            timeout: Optional sandbox lifetime in seconds.

        Returns:
            str: The new sandbox identifier.

        Raises:
            ProviderUnavailable: If the provider cannot create the sandbox.
        """
        return await self.registry.create(timeout=timeout)

    async def write_file(self, sandbox_id: str, path: str, content: str) -> None:
        handle = await self.registry.get_or_create(sandbox_id)
        await handle.sandbox.write_file(path, content)
        logger.debug(f"Wrote {path} to sandbox {sandbox_id}")

    async def write_files(self, sandbox_id: str, files: list[FilePayload]) -> list[str]:
        """Write files one after another.

        Returns:
            list[str]: The written paths, in order.
        """
        for file in files:
            await self.write_file(sandbox_id, file.path, file.content)
        return [file.path for file in files]

    async def read_file(self, sandbox_id: str, path: str) -> str:
        handle = await self.registry.get_or_create(sandbox_id)
        return await handle.sandbox.read_file(path)

    async def run_command(self, sandbox_id: str, command: str, args: list[str] | None = None) -> str:
        """Start a command and return its process id without waiting.

        Args:
            sandbox_id: The sandbox to run in.
            command: The command to run.
            args: Extra arguments appended to the command line.

        Returns:
            str: The provider-assigned process identifier.

        Raises:
            ProviderUnavailable: If the sandbox cannot be reached or the command fails to start.
        """
        handle = await self.registry.get_or_create(sandbox_id)
        record = ProcessRecord(command, args)
        command_line = " ".join([command, *record.args])

        process = await handle.sandbox.start_process(
            command_line,
            on_stdout=record.on_stdout,
            on_stderr=record.on_stderr,
            on_exit=record.complete,
        )

        record.process_id = process.pid
        record.wait = process.wait
        handle.processes[process.pid] = record
        logger.info(f"Started process {process.pid} in sandbox {sandbox_id}: {command_line}")
        return process.pid

    async def wait_for_command(self, sandbox_id: str, process_id: str) -> CommandResult:
        """Block until the command finishes and return its aggregated result.

        An unknown process yields an empty result rather than an error.
        Repeated calls on a finished process return the same result.

        Raises:
            ProviderUnavailable: If the provider lost the process before it exited.
        """
        handle = await self.registry.get_or_create(sandbox_id)
        record = handle.processes.get(process_id)
        if record is None:
            logger.debug(f"Nothing to wait on: process {process_id} unknown in sandbox {sandbox_id}")
            return CommandResult(process_id=process_id, exit_code=None, stdout="", stderr="")

        if record.result is not None:
            return record.result

        arguments = {"sandbox_id": sandbox_id, "process_id": process_id}

        if not record.completed and record.wait is not None:
            try:
                output = await record.wait()
            except Exception as e:
                logger.error(f"Native wait failed for process {process_id}: {e}")
                raise ProviderUnavailable("wait_for_command", arguments, e) from e
            exit_code = output.exit_code if output.exit_code is not None else 0
            record.complete(exit_code)
            result = CommandResult(
                process_id=process_id,
                exit_code=exit_code,
                stdout=output.stdout if output.stdout is not None else record.collect("stdout"),
                stderr=output.stderr if output.stderr is not None else record.collect("stderr"),
            )
        else:
            await record.wait_done()
            if record.failure is not None:
                raise ProviderUnavailable("wait_for_command", arguments, record.failure)
            result = CommandResult(
                process_id=process_id,
                exit_code=record.exit_code if record.exit_code is not None else 0,
                stdout=record.collect("stdout"),
                stderr=record.collect("stderr"),
            )

        record.result = result
        return result

    async def stream_logs(self, sandbox_id: str, process_id: str) -> AsyncIterator[LogEntry]:
        """Yield the command's output so far, then follow it until exit.

        Streaming an unknown process yields nothing.
        """
        handle = await self.registry.get_or_create(sandbox_id)
        record = handle.processes.get(process_id)
        if record is None:
            logger.debug(f"No logs to stream: process {process_id} unknown in sandbox {sandbox_id}")
            return

        async with aclosing(record.stream()) as entries:
            async for entry in entries:
                yield entry

    async def get_command_logs(self, sandbox_id: str, process_id: str) -> list[LogEntry]:
        handle = await self.registry.get_or_create(sandbox_id)
        record = handle.processes.get(process_id)
        return list(record.logs) if record else []

    async def get_command(self, sandbox_id: str, process_id: str) -> CommandInfo | None:
        handle = await self.registry.get_or_create(sandbox_id)
        record = handle.processes.get(process_id)
        if record is None:
            return None
        return CommandInfo(
            sandbox_id=sandbox_id,
            process_id=process_id,
            command=record.command,
            args=record.args,
            started_at=record.started_at,
            exit_code=record.exit_code,
        )

    async def get_sandbox_status(self, sandbox_id: str) -> Literal["running", "stopped"]:
        """Report whether the sandbox can be reached."""
        try:
            await self.registry.get_or_create(sandbox_id)
        except ProviderUnavailable as e:
            logger.info(f"Sandbox {sandbox_id} considered stopped: {e}")
            return "stopped"
        return "running"

    async def get_sandbox_url(self, sandbox_id: str, port: int) -> str | None:
        handle = await self.registry.get_or_create(sandbox_id)
        return handle.sandbox.get_host(port)

    async def kill_sandbox(self, sandbox_id: str) -> None:
        await self.registry.kill(sandbox_id)
