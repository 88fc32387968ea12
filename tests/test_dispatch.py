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
from typing import Any
from unittest.mock import AsyncMock

import pytest
from coreason_executor.dispatch import DirectExecutor, DurableExecutor
from coreason_executor.exceptions import DispatchFailure
from coreason_executor.executor import CommandExecutor
from coreason_executor.jobs.definitions import JobRunner
from coreason_executor.jobs.queue import InProcessJobQueue
from coreason_executor.models import CommandResult, FilePayload, JobRun


@pytest.fixture
def direct(executor: CommandExecutor) -> DirectExecutor:
    return DirectExecutor(executor)


@pytest.fixture
def durable(executor: CommandExecutor) -> DurableExecutor:
    return DurableExecutor(executor, InProcessJobQueue(JobRunner(executor)))


def _durable_returning(executor: CommandExecutor, run: JobRun) -> DurableExecutor:
    queue = AsyncMock()
    queue.invoke_and_wait = AsyncMock(return_value=run)
    return DurableExecutor(executor, queue)


@pytest.mark.asyncio
async def test_direct_run_returns_only_process_id(direct: DirectExecutor, provider: Any) -> None:
    sandbox_id = await direct.create_sandbox()

    result = await direct.run_command(sandbox_id, "sleep", ["10"])

    assert result == CommandResult(process_id="proc-1")
    assert not direct.run_awaits_completion
    assert provider.sandboxes[sandbox_id].processes[0].command == "sleep 10"


@pytest.mark.asyncio
async def test_direct_run_then_wait(direct: DirectExecutor, provider: Any) -> None:
    sandbox_id = await direct.create_sandbox()
    started = await direct.run_command(sandbox_id, "echo", ["hi"])
    assert started.process_id is not None

    waiter = asyncio.create_task(direct.wait_for_command(sandbox_id, started.process_id))
    await asyncio.sleep(0)
    proc = provider.sandboxes[sandbox_id].processes[0]
    proc.stdout("hi")
    proc.exit(0)

    result = await asyncio.wait_for(waiter, timeout=1)
    assert (result.exit_code, result.stdout, result.stderr) == (0, "hi", "")


@pytest.mark.asyncio
async def test_modes_yield_the_same_final_result(
    direct: DirectExecutor, durable: DurableExecutor, provider: Any
) -> None:
    provider.script["build --fast"] = (["compiling", "done"], ["warning: x"], 2)

    sandbox_id = await direct.create_sandbox()
    started = await direct.run_command(sandbox_id, "build", ["--fast"])
    assert started.process_id is not None
    direct_result = await direct.wait_for_command(sandbox_id, started.process_id)

    durable_result = await durable.run_command(sandbox_id, "build", ["--fast"])

    assert durable.run_awaits_completion
    assert (direct_result.exit_code, direct_result.stdout, direct_result.stderr) == (
        durable_result.exit_code,
        durable_result.stdout,
        durable_result.stderr,
    )
    assert durable_result.process_id == "proc-2"


@pytest.mark.asyncio
async def test_durable_wait_is_empty(durable: DurableExecutor) -> None:
    result = await durable.wait_for_command("sbx-1", "proc-1")

    assert result.exit_code is None
    assert result.stdout == ""
    assert result.stderr == ""


@pytest.mark.asyncio
async def test_write_then_read_in_both_modes(direct: DirectExecutor, durable: DurableExecutor) -> None:
    for dispatcher in (direct, durable):
        sandbox_id = await dispatcher.create_sandbox()
        paths = await dispatcher.write_files(
            sandbox_id,
            [FilePayload(path="a.txt", content="x"), FilePayload(path="b.txt", content="y")],
        )
        assert paths == ["a.txt", "b.txt"]
        assert await dispatcher.read_file(sandbox_id, "b.txt") == "y"


@pytest.mark.asyncio
async def test_write_file_is_a_single_file_batch(durable: DurableExecutor, provider: Any) -> None:
    sandbox_id = await durable.create_sandbox()

    assert await durable.write_file(sandbox_id, "notes.md", "# hi") == ["notes.md"]
    assert provider.sandboxes[sandbox_id].files == {"notes.md": "# hi"}


@pytest.mark.asyncio
async def test_durable_failure_record_raises_dispatch_failure(executor: CommandExecutor) -> None:
    run = JobRun(id="run_1", job_id="create-sandbox-e2b", status="FAILURE", error={"message": "quota"})
    dispatcher = _durable_returning(executor, run)

    with pytest.raises(DispatchFailure, match="quota") as exc_info:
        await dispatcher.create_sandbox(timeout=30)

    assert exc_info.value.run is run
    assert exc_info.value.operation == "create_sandbox"
    assert exc_info.value.arguments == {"timeout": 30}


@pytest.mark.asyncio
async def test_durable_success_without_output_raises(executor: CommandExecutor) -> None:
    run = JobRun(id="run_2", job_id="read-file-e2b", status="SUCCESS", output=None)
    dispatcher = _durable_returning(executor, run)

    with pytest.raises(DispatchFailure, match="no output"):
        await dispatcher.read_file("sbx-1", "a.txt")


@pytest.mark.asyncio
async def test_durable_output_missing_field_raises(executor: CommandExecutor) -> None:
    run = JobRun(id="run_3", job_id="read-file-e2b", status="SUCCESS", output={"data": "y"})
    dispatcher = _durable_returning(executor, run)

    with pytest.raises(DispatchFailure):
        await dispatcher.read_file("sbx-1", "a.txt")


@pytest.mark.asyncio
async def test_durable_submits_matching_payloads(executor: CommandExecutor) -> None:
    run = JobRun(
        id="run_4",
        job_id="run-command-e2b",
        status="SUCCESS",
        output={"cmd_id": "proc-9", "exit_code": 1, "stdout": "", "stderr": "bad"},
    )
    dispatcher = _durable_returning(executor, run)

    result = await dispatcher.run_command("sbx-1", "make")

    dispatcher.queue.invoke_and_wait.assert_awaited_once_with(  # type: ignore[attr-defined]
        "run-command-e2b", {"sandbox_id": "sbx-1", "command": "make", "args": []}
    )
    assert result == CommandResult(process_id="proc-9", exit_code=1, stdout="", stderr="bad")


@pytest.mark.asyncio
async def test_streaming_and_teardown_are_local_in_durable_mode(durable: DurableExecutor, provider: Any) -> None:
    provider.script["echo hi"] = (["hi"], [], 0)
    sandbox_id = await durable.create_sandbox()
    result = await durable.run_command(sandbox_id, "echo", ["hi"])
    assert result.process_id is not None

    entries = [e.data async for e in durable.stream_logs(sandbox_id, result.process_id)]
    info = await durable.get_command(sandbox_id, result.process_id)
    await durable.kill_sandbox(sandbox_id)

    assert entries == ["hi"]
    assert info is not None and info.exit_code == 0
    assert provider.sandboxes[sandbox_id].closed
