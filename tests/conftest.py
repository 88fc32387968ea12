# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_sandbox

from typing import Any

import pytest
from coreason_executor.exceptions import ProviderUnavailable
from coreason_executor.executor import CommandExecutor
from coreason_executor.providers.base import (
    ExitHandler,
    OutputHandler,
    ProviderProcess,
    ProviderSandbox,
    SandboxProvider,
)
from coreason_executor.registry import SandboxRegistry


class FakeProcess:
    """A provider process driven step by step from the test."""

    def __init__(
        self,
        pid: str,
        command: str,
        on_stdout: OutputHandler,
        on_stderr: OutputHandler,
        on_exit: ExitHandler,
    ) -> None:
        self.pid = pid
        self.command = command
        self.on_stdout = on_stdout
        self.on_stderr = on_stderr
        self.on_exit = on_exit

    def stdout(self, *lines: str) -> None:
        for line in lines:
            self.on_stdout(line)

    def stderr(self, *lines: str) -> None:
        for line in lines:
            self.on_stderr(line)

    def exit(self, code: int | None = 0, error: BaseException | None = None) -> None:
        self.on_exit(code, error)


class FakeSandbox(ProviderSandbox):
    def __init__(self, sandbox_id: str, script: dict[str, tuple[list[str], list[str], int]] | None = None) -> None:
        self._sandbox_id = sandbox_id
        self.files: dict[str, str] = {}
        self.processes: list[FakeProcess] = []
        self.closed = False
        # command line -> (stdout lines, stderr lines, exit code), run to completion on start
        self.script = script if script is not None else {}
        self.native_wait: Any = None

    @property
    def sandbox_id(self) -> str:
        return self._sandbox_id

    async def write_file(self, path: str, content: str) -> None:
        self.files[path] = content

    async def read_file(self, path: str) -> str:
        if path not in self.files:
            raise ProviderUnavailable("read_file", {"path": path}, FileNotFoundError(path))
        return self.files[path]

    async def start_process(
        self,
        command: str,
        *,
        on_stdout: OutputHandler,
        on_stderr: OutputHandler,
        on_exit: ExitHandler,
    ) -> ProviderProcess:
        process = FakeProcess(f"proc-{len(self.processes) + 1}", command, on_stdout, on_stderr, on_exit)
        self.processes.append(process)
        if command in self.script:
            out, err, code = self.script[command]
            process.stdout(*out)
            process.stderr(*err)
            process.exit(code)
        return ProviderProcess(pid=process.pid, wait=self.native_wait)

    def get_host(self, port: int) -> str | None:
        return f"https://{port}-{self._sandbox_id}.example.test"

    async def close(self) -> None:
        self.closed = True


class FakeProvider(SandboxProvider):
    def __init__(self) -> None:
        self.sandboxes: dict[str, FakeSandbox] = {}
        self.reconnects: list[str] = []
        self.script: dict[str, tuple[list[str], list[str], int]] = {}

    async def create(self, timeout: int | None = None) -> FakeSandbox:
        sandbox = FakeSandbox(f"sbx-{len(self.sandboxes) + 1}", self.script)
        self.sandboxes[sandbox.sandbox_id] = sandbox
        return sandbox

    async def reconnect(self, sandbox_id: str) -> FakeSandbox:
        self.reconnects.append(sandbox_id)
        if sandbox_id not in self.sandboxes:
            raise ProviderUnavailable("reconnect", {"sandbox_id": sandbox_id}, detail="sandbox not found")
        return self.sandboxes[sandbox_id]


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def registry(provider: FakeProvider) -> SandboxRegistry:
    return SandboxRegistry(provider)


@pytest.fixture
def executor(registry: SandboxRegistry) -> CommandExecutor:
    return CommandExecutor(registry)

