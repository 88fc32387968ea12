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
import time
from abc import ABC, abstractmethod
from typing import Any
from uuid import uuid4

import httpx
from pydantic import ValidationError

from coreason_executor.exceptions import JobQueueError
from coreason_executor.jobs.definitions import JobRunner
from coreason_executor.models.jobs import TERMINAL_STATUSES, JobRun
from coreason_executor.utils.logger import logger


class JobQueue(ABC):
    """
    Durable job backend: submit a payload and await its terminal run record.
    """

    @abstractmethod
    async def invoke_and_wait(self, job_id: str, payload: dict[str, Any]) -> JobRun:
        """Submit a job and block until it reaches a terminal status.

        Args:
            job_id: The job definition to invoke.
            payload: The job payload.

        Returns:
            JobRun: The terminal run record; ``output`` is absent on failure.

        Raises:
            JobQueueError: If the backend cannot be reached or the run does not finish in time.
        """
        pass  # pragma: no cover

    async def aclose(self) -> None:
        """Release any held connections."""
        return None


class InProcessJobQueue(JobQueue):
    """Runs jobs immediately in the current process.

    A failing job body produces a ``FAILURE`` run carrying the error type and
    message, the same shape a remote queue reports.
    """

    def __init__(self, runner: JobRunner):
        self.runner = runner

    async def invoke_and_wait(self, job_id: str, payload: dict[str, Any]) -> JobRun:
        run_id = f"run_{uuid4().hex}"
        logger.info(f"Invoking job {job_id} in process (run {run_id})")
        try:
            output = await self.runner.run(job_id, payload)
        except Exception as e:
            logger.error(f"Job {job_id} failed (run {run_id}): {e}")
            return JobRun(
                id=run_id,
                job_id=job_id,
                status="FAILURE",
                error={"type": type(e).__name__, "message": str(e)},
            )
        return JobRun(id=run_id, job_id=job_id, status="SUCCESS", output=output)


class HttpJobQueue(JobQueue):
    """Job queue reached over HTTP.

    Jobs are invoked with ``POST {url}/api/v1/jobs/{job_id}/invoke`` and the
    run is polled at ``GET {url}/api/v1/runs/{run_id}`` until it reaches a
    terminal status.
    """

    def __init__(
        self,
        url: str,
        api_key: str | None = None,
        timeout: float = 600.0,
        poll_interval: float = 1.0,
        client: httpx.AsyncClient | None = None,
    ):
        """Initializes the HttpJobQueue.

        Args:
            url: Base URL of the job queue API.
            api_key: Bearer token for the API.
            timeout: Seconds to wait for a run to finish.
            poll_interval: Seconds between status polls.
            client: Optional httpx.AsyncClient for connection pooling.
        """
        self.url = url.rstrip("/")
        self.timeout = timeout
        self.poll_interval = poll_interval
        self._internal_client = client is None
        self._client = client or httpx.AsyncClient()
        self._headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}

    async def _request(self, method: str, path: str, arguments: dict[str, Any], **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._client.request(method, f"{self.url}{path}", headers=self._headers, **kwargs)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Job queue request {method} {path} failed: {e}")
            raise JobQueueError("invoke_and_wait", arguments, e) from e
        if not isinstance(data, dict):
            raise JobQueueError("invoke_and_wait", arguments, detail=f"Unexpected response from {path}: {data!r}")
        return data

    async def invoke_and_wait(self, job_id: str, payload: dict[str, Any]) -> JobRun:
        arguments = {"job_id": job_id, "payload": payload}
        invoked = await self._request("POST", f"/api/v1/jobs/{job_id}/invoke", arguments, json={"payload": payload})
        run_id = invoked.get("id")
        if not run_id:
            raise JobQueueError("invoke_and_wait", arguments, detail=f"Job queue returned no run id: {invoked!r}")
        logger.info(f"Invoked job {job_id} (run {run_id})")

        deadline = time.monotonic() + self.timeout
        while True:
            data = await self._request("GET", f"/api/v1/runs/{run_id}", arguments)
            status = str(data.get("status", "")).upper()
            if status in TERMINAL_STATUSES:
                try:
                    run = JobRun.model_validate({**data, "id": run_id, "job_id": job_id, "status": status})
                except ValidationError as e:
                    raise JobQueueError("invoke_and_wait", arguments, e) from e
                logger.info(f"Job {job_id} run {run_id} finished with status {status}")
                return run
            if time.monotonic() >= deadline:
                raise JobQueueError(
                    "invoke_and_wait",
                    arguments,
                    detail=f"Run {run_id} did not finish within {self.timeout} seconds",
                )
            await asyncio.sleep(self.poll_interval)

    async def aclose(self) -> None:
        if self._internal_client:
            await self._client.aclose()
