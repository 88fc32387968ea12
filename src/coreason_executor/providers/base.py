# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_sandbox

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Callable

from coreason_executor.models import ProcessOutput

OutputHandler = Callable[[str], None]
ExitHandler = Callable[[int | None, BaseException | None], None]
WaitAccessor = Callable[[], Awaitable[ProcessOutput]]


@dataclass
class ProviderProcess:
    """A command started by a provider.

    Attributes:
        pid: Opaque process identifier assigned by the provider.
        wait: Optional provider-native blocking wait.
    """

    pid: str
    wait: WaitAccessor | None = None


class ProviderSandbox(ABC):
    """
    A live connection to one sandbox.
    Implementations raise ProviderUnavailable for any provider-side failure.
    """

    @property
    @abstractmethod
    def sandbox_id(self) -> str:
        pass  # pragma: no cover

    @abstractmethod
    async def write_file(self, path: str, content: str) -> None:
        """Write text content to ``path`` inside the sandbox."""
        pass  # pragma: no cover

    @abstractmethod
    async def read_file(self, path: str) -> str:
        """Read the text content of ``path`` inside the sandbox."""
        pass  # pragma: no cover

    @abstractmethod
    async def start_process(
        self,
        command: str,
        *,
        on_stdout: OutputHandler,
        on_stderr: OutputHandler,
        on_exit: ExitHandler,
    ) -> ProviderProcess:
        """Start a command without waiting for it.

        Output handlers are called once per emitted line, in emission order.
        ``on_exit`` is called exactly once, after the last output line, with
        the exit code (``None`` when the provider reports none) and the error
        that ended the process abnormally, if any.

        Args:
            command: The shell command line to run.
            on_stdout: Called for each stdout line.
            on_stderr: Called for each stderr line.
            on_exit: Called when the process finishes.

        Returns:
            ProviderProcess: The provider pid and an optional native wait.
        """
        pass  # pragma: no cover

    def get_host(self, port: int) -> str | None:
        """Public URL for ``port``, or None if the provider exposes none."""
        return None

    @abstractmethod
    async def close(self) -> None:
        """Shut the sandbox down and release the connection."""
        pass  # pragma: no cover


class SandboxProvider(ABC):
    """
    Factory for sandbox connections (e.g., E2B).
    """

    @abstractmethod
    async def create(self, timeout: int | None = None) -> ProviderSandbox:
        """Allocate a brand new sandbox."""
        pass  # pragma: no cover

    @abstractmethod
    async def reconnect(self, sandbox_id: str) -> ProviderSandbox:
        """Connect to an existing sandbox by id."""
        pass  # pragma: no cover
