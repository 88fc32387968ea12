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
from typing import Any, AsyncIterator

from coreason_executor.config import ExecutorConfig
from coreason_executor.dispatch import Dispatcher
from coreason_executor.factory import ExecutorFactory
from coreason_executor.models import FilePayload
from coreason_executor.utils.logger import logger


class SandboxExecutorMCP:
    """
    MCP-compliant server logic wrapper for the command executor.
    Exposes tools for the Agent and returns plain, JSON-friendly data.
    """

    def __init__(self, config: ExecutorConfig | None = None, dispatcher: Dispatcher | None = None):
        self.config = config or ExecutorConfig()
        self.dispatcher = dispatcher or ExecutorFactory.get_dispatcher(self.config)
        logger.info(f"Executor tools ready (mode: {self.dispatcher.mode})")

    async def create_sandbox(self, timeout: int | None = None) -> dict[str, str]:
        sandbox_id = await self.dispatcher.create_sandbox(timeout=timeout)
        return {"sandbox_id": sandbox_id}

    async def run_command(
        self, sandbox_id: str, command: str, args: list[str] | None = None, wait: bool = False
    ) -> dict[str, Any]:
        """
        Run a command in the sandbox.
        With ``wait`` the finished result is returned in both modes.
        """
        result = await self.dispatcher.run_command(sandbox_id, command, args)
        if wait and not self.dispatcher.run_awaits_completion and result.process_id:
            result = await self.dispatcher.wait_for_command(sandbox_id, result.process_id)
        data = result.model_dump(exclude_none=True)
        data["finished"] = result.exit_code is not None
        return data

    async def wait_for_command(self, sandbox_id: str, process_id: str) -> dict[str, Any]:
        result = await self.dispatcher.wait_for_command(sandbox_id, process_id)
        data = result.model_dump()
        if self.dispatcher.run_awaits_completion:
            data["note"] = "run_command already waited for this process and returned its result."
        return data

    async def write_files(self, sandbox_id: str, files: list[dict[str, str]]) -> dict[str, list[str]]:
        paths = await self.dispatcher.write_files(sandbox_id, [FilePayload.model_validate(f) for f in files])
        return {"paths": paths}

    async def read_file(self, sandbox_id: str, path: str) -> str:
        return await self.dispatcher.read_file(sandbox_id, path)

    async def get_command(self, sandbox_id: str, process_id: str) -> dict[str, Any] | None:
        info = await self.dispatcher.get_command(sandbox_id, process_id)
        return info.model_dump() if info else None

    async def get_command_logs(self, sandbox_id: str, process_id: str) -> list[dict[str, Any]]:
        logs = await self.dispatcher.get_command_logs(sandbox_id, process_id)
        return [entry.model_dump() for entry in logs]

    async def stream_logs_ndjson(self, sandbox_id: str, process_id: str) -> AsyncIterator[str]:
        """Follow a command's output as newline-delimited JSON lines."""
        async with aclosing(self.dispatcher.stream_logs(sandbox_id, process_id)) as entries:
            async for entry in entries:
                yield entry.model_dump_json() + "\n"

    async def get_sandbox_status(self, sandbox_id: str) -> dict[str, str]:
        return {"status": await self.dispatcher.get_sandbox_status(sandbox_id)}

    async def get_sandbox_url(self, sandbox_id: str, port: int) -> dict[str, str | None]:
        return {"url": await self.dispatcher.get_sandbox_url(sandbox_id, port)}

    async def kill_sandbox(self, sandbox_id: str) -> str:
        await self.dispatcher.kill_sandbox(sandbox_id)
        return f"Sandbox {sandbox_id} killed."

    async def shutdown(self) -> None:
        """
        Kill every registered sandbox and release the dispatcher.
        """
        registry = self.dispatcher.executor.registry
        logger.info(f"Shutting down. Killing {len(registry.sandboxes)} sandboxes.")

        for sandbox_id in list(registry.sandboxes):
            try:
                await self.dispatcher.kill_sandbox(sandbox_id)
            except Exception as e:
                logger.error(f"Error killing sandbox {sandbox_id} during shutdown: {e}")

        await self.dispatcher.aclose()
