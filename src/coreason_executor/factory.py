# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_sandbox

from coreason_executor.config import ExecutorConfig
from coreason_executor.dispatch import DirectExecutor, Dispatcher, DurableExecutor
from coreason_executor.executor import CommandExecutor
from coreason_executor.jobs.definitions import JobRunner
from coreason_executor.jobs.queue import HttpJobQueue, InProcessJobQueue, JobQueue
from coreason_executor.providers.base import SandboxProvider
from coreason_executor.providers.e2b import E2BProvider
from coreason_executor.registry import SandboxRegistry
from coreason_executor.utils.logger import logger


class ExecutorFactory:
    """
    Factory to build the configured Dispatcher and its collaborators.
    """

    @staticmethod
    def get_provider(config: ExecutorConfig) -> SandboxProvider:
        return E2BProvider(
            api_key=config.e2b_api_key,
            template=config.e2b_template,
            command_timeout=config.command_timeout,
            sandbox_timeout=config.sandbox_timeout,
        )

    @staticmethod
    def get_executor(config: ExecutorConfig, provider: SandboxProvider | None = None) -> CommandExecutor:
        provider = provider or ExecutorFactory.get_provider(config)
        return CommandExecutor(SandboxRegistry(provider))

    @staticmethod
    def get_job_queue(config: ExecutorConfig, executor: CommandExecutor) -> JobQueue:
        if config.job_queue_url:
            return HttpJobQueue(
                url=config.job_queue_url,
                api_key=config.job_queue_api_key,
                timeout=config.job_timeout,
                poll_interval=config.job_poll_interval,
            )
        logger.warning("Durable mode without a job queue URL: running jobs in process")
        return InProcessJobQueue(JobRunner(executor))

    @staticmethod
    def get_dispatcher(config: ExecutorConfig, executor: CommandExecutor | None = None) -> Dispatcher:
        """
        Returns the Dispatcher for the configured execution mode.
        """
        executor = executor or ExecutorFactory.get_executor(config)

        if config.execution_mode == "local":
            return DirectExecutor(executor)
        elif config.execution_mode == "durable":
            return DurableExecutor(executor, ExecutorFactory.get_job_queue(config, executor))
        else:
            # Unreachable due to Pydantic validation
            raise ValueError(f"Unknown execution mode: {config.execution_mode}")  # pragma: no cover
