# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_sandbox

"""Error types raised by the executor."""

from typing import Any

from coreason_executor.models.jobs import JobRun


class ExecutorError(Exception):
    """Base error for all executor failures.

    Carries the failed operation, its arguments and the underlying cause so a
    caller can decide whether to retry.
    """

    def __init__(
        self,
        operation: str,
        arguments: dict[str, Any] | None = None,
        cause: BaseException | None = None,
        detail: str = "",
    ) -> None:
        self.operation = operation
        self.arguments = arguments or {}
        self.cause = cause
        self.detail = detail or (str(cause) if cause is not None else "")
        super().__init__(f"{operation} failed" + (f": {self.detail}" if self.detail else ""))


class ProviderUnavailable(ExecutorError):
    """The sandbox provider failed (create, reconnect, filesystem, process or close)."""


class JobQueueError(ExecutorError):
    """The durable job queue could not be reached or did not finish in time."""


class UnknownJob(ExecutorError):
    """A payload was submitted for a job id with no registered definition."""

    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        super().__init__("run_job", {"job_id": job_id}, detail=f"Unknown job: {job_id}")


class DispatchFailure(ExecutorError):
    """A durable job finished without output or with a failure record."""

    def __init__(self, operation: str, arguments: dict[str, Any] | None, run: JobRun) -> None:
        self.run = run
        super().__init__(operation, arguments, detail=f"job run returned no output: {run.model_dump_json()}")
