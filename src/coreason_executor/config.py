# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_sandbox

from typing import Any, Literal

from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from coreason_executor.integrations.vault import VaultIntegrator

ExecutionMode = Literal["local", "durable"]


class VaultSettingsSource(PydanticBaseSettingsSource):
    """
    Custom Pydantic Settings Source that reads secrets from Vault.
    """

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        # Required by the ABC; __call__ returns the full mapping instead.
        return None, field_name, False  # pragma: no cover

    def __call__(self) -> dict[str, Any]:
        vault = VaultIntegrator()
        secrets: dict[str, Any] = {}

        mapping = {
            "e2b_api_key": "E2B_API_KEY",
            "job_queue_api_key": "JOB_QUEUE_API_KEY",
        }

        for field, key in mapping.items():
            val = vault.get_secret(key)
            if val:
                secrets[field] = val

        return secrets


class ExecutorConfig(BaseSettings):
    """
    Configuration for the command executor.

    ``execution_mode`` is the process-wide switch between running operations
    directly against the sandbox provider (``local``) and submitting them as
    durable jobs (``durable``).
    """

    execution_mode: ExecutionMode = "local"

    # E2B Configuration
    e2b_api_key: str | None = None
    e2b_template: str = "base"
    sandbox_timeout: int | None = None  # seconds, default lifetime when create gets no timeout
    command_timeout: float = 60.0  # 0 disables the limit on the command connection

    # Durable job queue
    job_queue_url: str | None = None
    job_queue_api_key: str | None = None
    job_timeout: float = 600.0
    job_poll_interval: float = 1.0

    model_config = SettingsConfigDict(
        env_prefix="COREASON_EXECUTOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            VaultSettingsSource(settings_cls),
            file_secret_settings,
        )
