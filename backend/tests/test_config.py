"""Tests for settings and polling policy loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from brewdream.config import PollingPolicy, Settings, load_polling_policies
from brewdream.services.clients import ConfigurationError
from brewdream.services.pipeline import ProcessingStrategy, TextProviderType


class TestPollingPolicies:
    def test_defaults(self, settings: Settings) -> None:
        policies = load_polling_policies(settings)

        assert policies["image"] == PollingPolicy(interval_ms=1000, max_attempts=30)
        assert policies["clip"] == PollingPolicy(interval_ms=2000, max_attempts=30)
        assert policies["recording"] == PollingPolicy(interval_ms=2000, max_attempts=120)

    def test_yaml_overrides_single_field(self, settings: Settings, tmp_path: Path) -> None:
        (tmp_path / "polling.yaml").write_text(
            "policies:\n  clip:\n    max_attempts: 10\n", encoding="utf-8"
        )

        policies = load_polling_policies(settings)

        assert policies["clip"] == PollingPolicy(interval_ms=2000, max_attempts=10)
        assert policies["image"].max_attempts == 30

    def test_empty_yaml(self, settings: Settings, tmp_path: Path) -> None:
        (tmp_path / "polling.yaml").write_text("", encoding="utf-8")
        assert load_polling_policies(settings)["recording"].max_attempts == 120

    def test_budget(self) -> None:
        assert PollingPolicy(interval_ms=2000, max_attempts=30).budget_seconds == 58.0


class TestProcessingStrategy:
    def test_text_provider_by_prefix(self, settings: Settings) -> None:
        strategy = ProcessingStrategy(settings)
        assert strategy.get_text_provider_type("claude-haiku-4-5") == TextProviderType.CLAUDE
        assert strategy.get_text_provider_type("Claude-Sonnet") == TextProviderType.CLAUDE
        assert strategy.get_text_provider_type("gpt-4o-mini") == TextProviderType.OPENAI

    def test_resolve_order(self, settings: Settings) -> None:
        strategy = ProcessingStrategy(settings)
        assert strategy.resolve_order(None) == ["livepeer", "openai", "dalle"]
        assert strategy.resolve_order("dalle") == ["dalle", "livepeer", "openai"]

    def test_unconfigured_providers_skipped(self, settings: Settings) -> None:
        settings.livepeer_studio_api_key = None
        providers = ProcessingStrategy(settings).create_image_providers(["livepeer", "openai", "dalle"])
        assert [p.name for p in providers] == ["openai", "dalle"]

    def test_no_usable_provider(self, settings: Settings) -> None:
        settings.livepeer_studio_api_key = None
        settings.openai_api_key = None
        with pytest.raises(ConfigurationError):
            ProcessingStrategy(settings).create_image_providers(["livepeer", "openai"])
