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
from dataclasses import dataclass, field

from coreason_executor.process import ProcessRecord
from coreason_executor.providers.base import ProviderSandbox, SandboxProvider
from coreason_executor.utils.logger import logger


@dataclass
class SandboxHandle:
    sandbox_id: str
    sandbox: ProviderSandbox
    created_at: float
    processes: dict[str, ProcessRecord] = field(default_factory=dict)


class SandboxRegistry:
    """In-memory table of connected sandboxes and their processes.

    Entries are added on create or first reconnect and removed only by
    ``kill``. Nothing is persisted; a restarted host starts empty and
    reconnects lazily.
    """

    def __init__(self, provider: SandboxProvider):
        """Initializes the SandboxRegistry.

        Args:
            provider: The sandbox provider used to create and reconnect sandboxes.
        """
        self.provider = provider
        self.sandboxes: dict[str, SandboxHandle] = {}
        self._reconnect_lock = asyncio.Lock()

    def get(self, sandbox_id: str) -> SandboxHandle | None:
        return self.sandboxes.get(sandbox_id)

    async def get_or_create(self, sandbox_id: str) -> SandboxHandle:
        """Return the cached handle, reconnecting to the provider if needed.

        Concurrent callers for the same unknown id share one reconnect, so a
        second handle can never replace one that already tracks processes.

        Args:
            sandbox_id: The sandbox identifier.

        Returns:
            SandboxHandle: The registered handle.

        Raises:
            ProviderUnavailable: If the provider cannot reconnect.
        """
        # Optimistic check
        if sandbox_id in self.sandboxes:
            return self.sandboxes[sandbox_id]

        async with self._reconnect_lock:
            # Double-check inside lock
            if sandbox_id in self.sandboxes:
                return self.sandboxes[sandbox_id]

            logger.info(f"Reconnecting to sandbox {sandbox_id}")
            sandbox = await self.provider.reconnect(sandbox_id)
            handle = SandboxHandle(sandbox_id=sandbox_id, sandbox=sandbox, created_at=time.time())
            self.sandboxes[sandbox_id] = handle
            return handle

    async def create(self, timeout: int | None = None) -> str:
        """Allocate a new sandbox and register it.

        Args:
            timeout: Optional sandbox lifetime in seconds.

        Returns:
            str: The new sandbox identifier.
        """
        sandbox = await self.provider.create(timeout=timeout)
        handle = SandboxHandle(sandbox_id=sandbox.sandbox_id, sandbox=sandbox, created_at=time.time())
        self.sandboxes[handle.sandbox_id] = handle
        logger.info(f"Registered sandbox {handle.sandbox_id}")
        return handle.sandbox_id

    async def kill(self, sandbox_id: str) -> None:
        """Close the sandbox and evict it. Unknown ids are ignored."""
        handle = self.sandboxes.pop(sandbox_id, None)
        if handle is None:
            logger.debug(f"Kill requested for unknown sandbox {sandbox_id}")
            return
        await handle.sandbox.close()
        logger.info(f"Sandbox {sandbox_id} killed")
