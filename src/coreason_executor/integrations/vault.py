# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_sandbox

import os

from coreason_executor.utils.logger import logger

ENV_PREFIX = "COREASON_EXECUTOR_"


class VaultIntegrator:
    """
    Secret lookup backed by environment variables.

    Keys are looked up verbatim first (``E2B_API_KEY``), then with the
    executor prefix (``COREASON_EXECUTOR_E2B_API_KEY``).
    """

    def __init__(self, prefix: str = ENV_PREFIX):
        self.prefix = prefix

    def get_secret(self, key: str) -> str | None:
        val = os.getenv(key)
        if not val:
            val = os.getenv(f"{self.prefix}{key}")

        if not val:
            logger.debug(f"Secret {key} not found in environment.")

        return val
