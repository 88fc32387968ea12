# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_sandbox

"""Payloads, outputs and run records exchanged with the durable job queue."""

from typing import Any

from pydantic import BaseModel, Field

from coreason_executor.models.files import FilePayload

SUCCESS_STATUSES = frozenset({"SUCCESS"})
TERMINAL_STATUSES = frozenset({"SUCCESS", "FAILURE", "TIMED_OUT", "ABORTED", "CANCELED"})


class CreateSandboxPayload(BaseModel):
    timeout: int | None = None


class CreateSandboxOutput(BaseModel):
    sandbox_id: str


class RunCommandPayload(BaseModel):
    sandbox_id: str
    command: str
    args: list[str] = Field(default_factory=list)


class RunCommandOutput(BaseModel):
    cmd_id: str
    exit_code: int | None = None
    stdout: str | None = None
    stderr: str | None = None


class WriteFilesPayload(BaseModel):
    sandbox_id: str
    files: list[FilePayload]


class WriteFilesOutput(BaseModel):
    paths: list[str]


class ReadFilePayload(BaseModel):
    sandbox_id: str
    path: str


class ReadFileOutput(BaseModel):
    content: str


class JobRun(BaseModel):
    """Terminal record of a durable job run.

    Attributes:
        id: Run identifier assigned by the job queue.
        job_id: Identifier of the job definition that ran.
        status: Terminal status reported by the queue.
        output: Job output; absent when the run failed.
        error: Failure details reported by the queue, if any.
    """

    id: str
    job_id: str
    status: str
    output: dict[str, Any] | None = None
    error: Any = None

    @property
    def succeeded(self) -> bool:
        return self.status in SUCCESS_STATUSES and self.output is not None
