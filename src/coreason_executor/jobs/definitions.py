# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_sandbox

"""Durable job bodies.

Each job validates its payload, runs the matching executor operation in
process and returns a plain dict for the job queue.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from pydantic import BaseModel

from coreason_executor.exceptions import UnknownJob
from coreason_executor.executor import CommandExecutor
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

JobHandler = Callable[[Any, CommandExecutor], Awaitable[dict[str, Any]]]


@dataclass(frozen=True)
class JobDefinition:
    id: str
    name: str
    version: str
    payload_model: type[BaseModel]
    handler: JobHandler

    async def run(self, payload: dict[str, Any], executor: CommandExecutor) -> dict[str, Any]:
        """Validate ``payload`` and run the job body.

        Raises:
            pydantic.ValidationError: If the payload does not match the schema.
        """
        parsed = self.payload_model.model_validate(payload)
        return await self.handler(parsed, executor)


JOBS: dict[str, JobDefinition] = {}


def define_job(
    id: str, name: str, payload: type[BaseModel], version: str = "1.0.0"
) -> Callable[[JobHandler], JobDefinition]:
    def register(handler: JobHandler) -> JobDefinition:
        job = JobDefinition(id=id, name=name, version=version, payload_model=payload, handler=handler)
        JOBS[id] = job
        return job

    return register


@define_job(id="create-sandbox-e2b", name="Create E2B Sandbox", payload=CreateSandboxPayload)
async def create_sandbox_job(payload: CreateSandboxPayload, executor: CommandExecutor) -> dict[str, Any]:
    sandbox_id = await executor.create_sandbox(timeout=payload.timeout)
    return CreateSandboxOutput(sandbox_id=sandbox_id).model_dump()


@define_job(id="run-command-e2b", name="Run command in E2B", payload=RunCommandPayload)
async def run_command_job(payload: RunCommandPayload, executor: CommandExecutor) -> dict[str, Any]:
    # Runs and waits: a durable run only reports once the process is finished.
    process_id = await executor.run_command(payload.sandbox_id, payload.command, payload.args)
    result = await executor.wait_for_command(payload.sandbox_id, process_id)
    return RunCommandOutput(
        cmd_id=process_id,
        exit_code=result.exit_code,
        stdout=result.stdout,
        stderr=result.stderr,
    ).model_dump()


@define_job(id="write-files-e2b", name="Write files to E2B", payload=WriteFilesPayload)
async def write_files_job(payload: WriteFilesPayload, executor: CommandExecutor) -> dict[str, Any]:
    paths = await executor.write_files(payload.sandbox_id, payload.files)
    return WriteFilesOutput(paths=paths).model_dump()


@define_job(id="read-file-e2b", name="Read file from E2B", payload=ReadFilePayload)
async def read_file_job(payload: ReadFilePayload, executor: CommandExecutor) -> dict[str, Any]:
    content = await executor.read_file(payload.sandbox_id, payload.path)
    return ReadFileOutput(content=content).model_dump()


class JobRunner:
    """Executes registered job bodies against a CommandExecutor."""

    def __init__(self, executor: CommandExecutor, jobs: dict[str, JobDefinition] | None = None):
        self.executor = executor
        self.jobs = jobs if jobs is not None else JOBS

    async def run(self, job_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        job = self.jobs.get(job_id)
        if job is None:
            raise UnknownJob(job_id)
        logger.info(f"Running job {job.id} (v{job.version})")
        return await job.run(payload, self.executor)
