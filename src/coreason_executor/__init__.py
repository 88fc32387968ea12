# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_sandbox

"""
coreason-executor
"""

__version__ = "0.1.0"
__author__ = "Gowtham A Rao"
__email__ = "gowtham.rao@coreason.ai"

from .config import ExecutorConfig
from .dispatch import DirectExecutor, Dispatcher, DurableExecutor
from .exceptions import DispatchFailure, ExecutorError, JobQueueError, ProviderUnavailable
from .executor import CommandExecutor
from .factory import ExecutorFactory
from .models import CommandInfo, CommandResult, FilePayload, LogEntry
from .process import ProcessRecord
from .registry import SandboxHandle, SandboxRegistry

__all__ = [
    "CommandExecutor",
    "CommandInfo",
    "CommandResult",
    "DirectExecutor",
    "DispatchFailure",
    "Dispatcher",
    "DurableExecutor",
    "ExecutorConfig",
    "ExecutorError",
    "ExecutorFactory",
    "FilePayload",
    "JobQueueError",
    "LogEntry",
    "ProcessRecord",
    "ProviderUnavailable",
    "SandboxHandle",
    "SandboxRegistry",
]
