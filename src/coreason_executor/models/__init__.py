# src/coreason_executor/models/__init__.py

"""
Data models for the command executor.
"""

from .execution import CommandInfo, CommandResult, LogEntry, LogStream, ProcessOutput
from .files import FilePayload
from .jobs import JobRun

__all__ = [
    "CommandInfo",
    "CommandResult",
    "FilePayload",
    "JobRun",
    "LogEntry",
    "LogStream",
    "ProcessOutput",
]
