"""Shared fixtures for orchestration tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from brewdream.config import PollingPolicy, Settings
from tests.helpers import PNG_BYTES, RecordingSleep


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_BYTES


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings isolated from the environment and .env files."""
    return Settings(
        _env_file=None,
        openai_api_key="sk-test",
        livepeer_studio_api_key="lp-test",
        daydream_api_key="dd-test",
        anthropic_api_key=None,
        prompt_model="gpt-4o-mini",
        config_dir=tmp_path,
        provider_order=["livepeer", "openai", "dalle"],
    )


@pytest.fixture
def fast_policy() -> PollingPolicy:
    return PollingPolicy(interval_ms=10, max_attempts=5)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()
