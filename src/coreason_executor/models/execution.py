# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_sandbox

"""Data models for command execution, logs and results."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

LogStream = Literal["stdout", "stderr"]


class LogEntry(BaseModel):
    """A single line of output emitted by a running command.

    Attributes:
        data: The payload text.
        stream: Which stream produced the line.
        timestamp: Emission time as a Unix timestamp in seconds.
    """

    model_config = ConfigDict(frozen=True)

    data: str
    stream: LogStream
    timestamp: float


class CommandResult(BaseModel):
    """Normalized result returned by both execution modes.

    A direct ``run_command`` only fills ``process_id``; a completed wait or a
    durable run fills the exit code and the aggregated output.
    """

    process_id: str | None = None
    exit_code: int | None = None
    stdout: str | None = None
    stderr: str | None = None


class ProcessOutput(BaseModel):
    """Result reported by a provider-native wait."""

    exit_code: int | None = None
    stdout: str | None = None
    stderr: str | None = None


class CommandInfo(BaseModel):
    """Metadata about a launched command."""

    sandbox_id: str
    process_id: str
    command: str
    args: list[str] = Field(default_factory=list)
    started_at: float
    exit_code: int | None = None
