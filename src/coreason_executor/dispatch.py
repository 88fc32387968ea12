# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_sandbox

"""Execution-mode dispatch.

Callers always go through a :class:`Dispatcher`. :class:`DirectExecutor`
calls the :class:`CommandExecutor` in process; :class:`DurableExecutor`
submits each operation as a durable job and awaits it.

The two differ in one documented way: a durable ``run_command`` runs the
command to completion inside the job and returns the full result, so a
durable ``wait_for_command`` has nothing left to wait for.
``Dispatcher.run_awaits_completion`` tells callers which behaviour applies.
"""

from abc import ABC, abstractmethod
from contextlib import aclosing
from typing import Any, AsyncIterator, Literal, TypeVar

from pydantic import BaseModel, ValidationError

from coreason_executor.exceptions import DispatchFailure
from coreason_executor.executor import CommandExecutor
from coreason_executor.jobs.definitions import (
    create_sandbox_job,
    read_file_job,
    run_command_job,
    write_files_job,
)
from coreason_executor.jobs.queue import JobQueue
from coreason_executor.models import CommandInfo, CommandResult, FilePayload, LogEntry
from coreason_executor.models.jobs import (
    CreateSandboxOutput,
    CreateSandboxPayload,
    ReadFileOutput,
    ReadFilePayload,
    RunCommandOutput,
    RunCommandPayload,
    WriteFilesOutput,
    WriteFilesPayload,
)
from coreason_executor.utils.logger import logger

OutputT = TypeVar("OutputT", bound=BaseModel)


class Dispatcher(ABC):
    """
    Common contract for both execution modes.

    Log streaming, command inspection and sandbox teardown always run against
    the local registry, whatever the mode.
    """

    mode: Literal["local", "durable"]
    run_awaits_completion: bool = False

    def __init__(self, executor: CommandExecutor):
        self.executor = executor

    @abstractmethod
    async def create_sandbox(self, timeout: int | None = None) -> str:
        """Create a sandbox and return its id."""
        pass  # pragma: no cover

    @abstractmethod
    async def run_command(self, sandbox_id: str, command: str, args: list[str] | None = None) -> CommandResult:
        """Run a command.

        Returns only ``process_id`` when ``run_awaits_completion`` is False;
        otherwise the finished result.
        """
        pass  # pragma: no cover

    @abstractmethod
    async def wait_for_command(self, sandbox_id: str, process_id: str) -> CommandResult:
        """Wait for a command started by ``run_command``."""
        pass  # pragma: no cover

    @abstractmethod
    async def write_files(self, sandbox_id: str, files: list[FilePayload]) -> list[str]:
        """Write a batch of files and return their paths."""
        pass  # pragma: no cover

    @abstractmethod
    async def read_file(self, sandbox_id: str, path: str) -> str:
        """Read a file's text content."""
        pass  # pragma: no cover

    async def write_file(self, sandbox_id: str, path: str, content: str) -> list[str]:
        return await self.write_files(sandbox_id, [FilePayload(path=path, content=content)])

    async def stream_logs(self, sandbox_id: str, process_id: str) -> AsyncIterator[LogEntry]:
        async with aclosing(self.executor.stream_logs(sandbox_id, process_id)) as entries:
            async for entry in entries:
                yield entry

    async def get_command(self, sandbox_id: str, process_id: str) -> CommandInfo | None:
        return await self.executor.get_command(sandbox_id, process_id)

    async def get_command_logs(self, sandbox_id: str, process_id: str) -> list[LogEntry]:
        return await self.executor.get_command_logs(sandbox_id, process_id)

    async def get_sandbox_status(self, sandbox_id: str) -> Literal["running", "stopped"]:
        return await self.executor.get_sandbox_status(sandbox_id)

    async def get_sandbox_url(self, sandbox_id: str, port: int) -> str | None:
        return await self.executor.get_sandbox_url(sandbox_id, port)

    async def kill_sandbox(self, sandbox_id: str) -> None:
        await self.executor.kill_sandbox(sandbox_id)

    async def aclose(self) -> None:
        return None


class DirectExecutor(Dispatcher):
    """Runs every operation in process against the live sandbox."""

    mode = "local"
    run_awaits_completion = False

    async def create_sandbox(self, timeout: int | None = None) -> str:
        return await self.executor.create_sandbox(timeout=timeout)

    async def run_command(self, sandbox_id: str, command: str, args: list[str] | None = None) -> CommandResult:
        process_id = await self.executor.run_command(sandbox_id, command, args)
        return CommandResult(process_id=process_id)

    async def wait_for_command(self, sandbox_id: str, process_id: str) -> CommandResult:
        return await self.executor.wait_for_command(sandbox_id, process_id)

    async def write_files(self, sandbox_id: str, files: list[FilePayload]) -> list[str]:
        return await self.executor.write_files(sandbox_id, files)

    async def read_file(self, sandbox_id: str, path: str) -> str:
        return await self.executor.read_file(sandbox_id, path)


class DurableExecutor(Dispatcher):
    """Submits every operation as a durable job and awaits its result."""

    mode = "durable"
    run_awaits_completion = True

    def __init__(self, executor: CommandExecutor, queue: JobQueue):
        """Initializes the DurableExecutor.

        Args:
            executor: Local executor used for streaming, inspection and teardown.
            queue: The job queue that runs the durable jobs.
        """
        super().__init__(executor)
        self.queue = queue

    async def _invoke(
        self,
        operation: str,
        job_id: str,
        payload: BaseModel,
        output_model: type[OutputT],
    ) -> OutputT:
        arguments: dict[str, Any] = payload.model_dump()
        run = await self.queue.invoke_and_wait(job_id, arguments)
        if not run.succeeded or run.output is None:
            logger.error(f"{operation} job {job_id} failed: {run.model_dump_json()}")
            raise DispatchFailure(operation, arguments, run)
        try:
            return output_model.model_validate(run.output)
        except ValidationError as e:
            logger.error(f"{operation} job {job_id} returned malformed output: {e}")
            raise DispatchFailure(operation, arguments, run) from e

    async def create_sandbox(self, timeout: int | None = None) -> str:
        output = await self._invoke(
            "create_sandbox",
            create_sandbox_job.id,
            CreateSandboxPayload(timeout=timeout),
            CreateSandboxOutput,
        )
        return output.sandbox_id

    async def run_command(self, sandbox_id: str, command: str, args: list[str] | None = None) -> CommandResult:
        output = await self._invoke(
            "run_command",
            run_command_job.id,
            RunCommandPayload(sandbox_id=sandbox_id, command=command, args=list(args or [])),
            RunCommandOutput,
        )
        return CommandResult(
            process_id=output.cmd_id,
            exit_code=output.exit_code,
            stdout=output.stdout,
            stderr=output.stderr,
        )

    async def wait_for_command(self, sandbox_id: str, process_id: str) -> CommandResult:
        """Return an empty result.

        A durable ``run_command`` already waited and returned the full
        result; this is not a failure and carries no exit code.
        """
        logger.debug(f"wait_for_command is a no-op in durable mode (process {process_id})")
        return CommandResult(process_id=process_id, exit_code=None, stdout="", stderr="")

    async def write_files(self, sandbox_id: str, files: list[FilePayload]) -> list[str]:
        output = await self._invoke(
            "write_files",
            write_files_job.id,
            WriteFilesPayload(sandbox_id=sandbox_id, files=files),
            WriteFilesOutput,
        )
        return output.paths

    async def read_file(self, sandbox_id: str, path: str) -> str:
        output = await self._invoke(
            "read_file",
            read_file_job.id,
            ReadFilePayload(sandbox_id=sandbox_id, path=path),
            ReadFileOutput,
        )
        return output.content

    async def aclose(self) -> None:
        await self.queue.aclose()
