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

from coreason_executor.config import ExecutorConfig
from coreason_executor.dispatch import DirectExecutor, Dispatcher, DurableExecutor
from coreason_executor.executor import CommandExecutor
from coreason_executor.factory import ExecutorFactory
from coreason_executor.jobs.queue import HttpJobQueue, InProcessJobQueue
from coreason_executor.providers.e2b import E2BProvider


def test_factory_returns_e2b_provider() -> None:
    config = ExecutorConfig(e2b_api_key="key", e2b_template="python", command_timeout=0, sandbox_timeout=300)

    provider = ExecutorFactory.get_provider(config)

    assert isinstance(provider, E2BProvider)
    assert provider.api_key == "key"
    assert provider.template == "python"
    assert provider.command_timeout == 0
    assert provider.sandbox_timeout == 300


def test_factory_returns_direct_executor(executor: CommandExecutor) -> None:
    dispatcher = ExecutorFactory.get_dispatcher(ExecutorConfig(execution_mode="local"), executor)

    assert isinstance(dispatcher, DirectExecutor)
    assert isinstance(dispatcher, Dispatcher)
    assert dispatcher.mode == "local"
    assert dispatcher.executor is executor


def test_factory_builds_executor_when_missing() -> None:
    dispatcher = ExecutorFactory.get_dispatcher(ExecutorConfig(execution_mode="local", e2b_api_key="key"))

    assert isinstance(dispatcher.executor.registry.provider, E2BProvider)


def test_durable_with_queue_url(executor: CommandExecutor) -> None:
    config = ExecutorConfig(
        execution_mode="durable",
        job_queue_url="https://jobs.example.test",
        job_queue_api_key="secret",
        job_timeout=30,
        job_poll_interval=0.25,
    )

    dispatcher = ExecutorFactory.get_dispatcher(config, executor)

    assert isinstance(dispatcher, DurableExecutor)
    queue: Any = dispatcher.queue
    assert isinstance(queue, HttpJobQueue)
    assert queue.timeout == 30
    assert queue.poll_interval == 0.25


def test_durable_without_queue_url_runs_in_process(executor: CommandExecutor) -> None:
    dispatcher = ExecutorFactory.get_dispatcher(ExecutorConfig(execution_mode="durable"), executor)

    assert isinstance(dispatcher, DurableExecutor)
    assert isinstance(dispatcher.queue, InProcessJobQueue)
    assert dispatcher.queue.runner.executor is executor
