# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_sandbox

from unittest.mock import patch

import pytest
from coreason_executor.config import ExecutorConfig
from coreason_executor.integrations.vault import VaultIntegrator
from pydantic import ValidationError


def test_defaults() -> None:
    with patch.dict("os.environ", {}, clear=True):
        config = ExecutorConfig(_env_file=None)  # type: ignore[call-arg]

    assert config.execution_mode == "local"
    assert config.e2b_api_key is None
    assert config.e2b_template == "base"
    assert config.job_queue_url is None
    assert config.command_timeout == 60.0


def test_env_prefix() -> None:
    env = {
        "COREASON_EXECUTOR_EXECUTION_MODE": "durable",
        "COREASON_EXECUTOR_JOB_QUEUE_URL": "https://jobs.example.test",
        "COREASON_EXECUTOR_JOB_POLL_INTERVAL": "0.5",
    }
    with patch.dict("os.environ", env, clear=True):
        config = ExecutorConfig(_env_file=None)  # type: ignore[call-arg]

    assert config.execution_mode == "durable"
    assert config.job_queue_url == "https://jobs.example.test"
    assert config.job_poll_interval == 0.5


def test_invalid_mode_is_rejected() -> None:
    with patch.dict("os.environ", {"COREASON_EXECUTOR_EXECUTION_MODE": "remote"}, clear=True):
        with pytest.raises(ValidationError):
            ExecutorConfig(_env_file=None)  # type: ignore[call-arg]


def test_vault_settings_source_injects_secrets() -> None:
    """Secrets under their bare names hydrate the config."""
    with patch.dict("os.environ", {"E2B_API_KEY": "secret_key", "JOB_QUEUE_API_KEY": "tr_key"}, clear=True):
        config = ExecutorConfig(_env_file=None)  # type: ignore[call-arg]

    assert config.e2b_api_key == "secret_key"
    assert config.job_queue_api_key == "tr_key"


def test_prefixed_env_wins_over_vault() -> None:
    env = {"E2B_API_KEY": "vault_key", "COREASON_EXECUTOR_E2B_API_KEY": "env_key"}
    with patch.dict("os.environ", env, clear=True):
        config = ExecutorConfig(_env_file=None)  # type: ignore[call-arg]

    assert config.e2b_api_key == "env_key"


def test_init_values_win() -> None:
    with patch.dict("os.environ", {"E2B_API_KEY": "vault_key"}, clear=True):
        config = ExecutorConfig(e2b_api_key="explicit", _env_file=None)  # type: ignore[call-arg]

    assert config.e2b_api_key == "explicit"


def test_vault_lookup_order() -> None:
    vault = VaultIntegrator()

    with patch.dict("os.environ", {"TOKEN": "plain", "COREASON_EXECUTOR_TOKEN": "prefixed"}, clear=True):
        assert vault.get_secret("TOKEN") == "plain"
    with patch.dict("os.environ", {"COREASON_EXECUTOR_TOKEN": "prefixed"}, clear=True):
        assert vault.get_secret("TOKEN") == "prefixed"
    with patch.dict("os.environ", {}, clear=True):
        assert vault.get_secret("TOKEN") is None


def test_vault_custom_prefix() -> None:
    with patch.dict("os.environ", {"APP_TOKEN": "x"}, clear=True):
        assert VaultIntegrator(prefix="APP_").get_secret("TOKEN") == "x"
