"""Tests for PromptSource."""

from __future__ import annotations

import random
from unittest.mock import AsyncMock

import pytest

from brewdream.models.schemas import PromptMethod
from brewdream.services.clients.base import ConfigurationError, UpstreamError
from brewdream.services.prompt_source import (
    EFFECTS,
    ENVIRONMENTS,
    MAX_PROMPT_CHARS,
    STYLE_INSPIRATIONS,
    STYLES,
    SYSTEM_PROMPT,
    TEMPLATES,
    PromptSource,
    sanitize_prompt,
)


def _text_client(response: str | Exception) -> AsyncMock:
    client = AsyncMock()
    if isinstance(response, Exception):
        client.complete.side_effect = response
    else:
        client.complete.return_value = response
    return client


class TestVocabularies:
    def test_sizes(self) -> None:
        assert len(STYLES) == 18
        assert len(ENVIRONMENTS) == 18
        assert len(EFFECTS) == 15
        assert len(TEMPLATES) == 4


class TestTemplatedPrompt:
    @pytest.mark.asyncio
    async def test_fragments_always_come_from_vocabularies(self) -> None:
        source = PromptSource(rng=random.Random(1234))

        for _ in range(1000):
            prompt = await source.generate(use_generative_model=False)
            assert prompt.method == PromptMethod.TEMPLATED
            c = prompt.components
            assert c is not None
            assert c.style in STYLES
            assert c.environment in ENVIRONMENTS
            assert c.effect in EFFECTS
            assert any(prompt.text == t.format(**c.model_dump()) for t in TEMPLATES)

    def test_reproducible_with_seeded_rng(self) -> None:
        first = [PromptSource(rng=random.Random(7)).generate_from_template().text for _ in range(3)]
        second = [PromptSource(rng=random.Random(7)).generate_from_template().text for _ in range(3)]
        assert first == second

    @pytest.mark.asyncio
    async def test_style_hint_ignored(self) -> None:
        prompt = await PromptSource(rng=random.Random(3)).generate(False, style_hint="zzz-unique-hint")
        assert "zzz-unique-hint" not in prompt.text

    @pytest.mark.asyncio
    async def test_never_calls_text_client(self) -> None:
        client = _text_client("unused")
        await PromptSource(client).generate(use_generative_model=False)
        client.complete.assert_not_called()


class TestGeneratedPrompt:
    @pytest.mark.asyncio
    async def test_single_call_with_hint(self) -> None:
        client = _text_client("neon koi pond at dusk")
        prompt = await PromptSource(client).generate(True, style_hint="koi")

        assert prompt.text == "neon koi pond at dusk"
        assert prompt.method == PromptMethod.GENERATED
        assert prompt.components is None

        client.complete.assert_awaited_once()
        args, kwargs = client.complete.call_args
        assert args[0] == SYSTEM_PROMPT
        assert "Style inspiration: koi" in args[1]
        assert kwargs["temperature"] == 0.9
        assert kwargs["max_tokens"] == 32

    @pytest.mark.asyncio
    async def test_random_inspiration_without_hint(self) -> None:
        client = _text_client("prompt")
        await PromptSource(client, rng=random.Random(0)).generate(True)

        user_prompt = client.complete.call_args.args[1]
        assert any(f"Style inspiration: {hint}" in user_prompt for hint in STYLE_INSPIRATIONS)

    @pytest.mark.asyncio
    async def test_sanitizes_newlines_and_length(self) -> None:
        client = _text_client("line one\n\nline two\n" + "x" * 300)
        prompt = await PromptSource(client).generate(True, "hint")

        assert "\n" not in prompt.text
        assert prompt.text.startswith("line one line two")
        assert len(prompt.text) == MAX_PROMPT_CHARS

    @pytest.mark.asyncio
    async def test_empty_response_is_upstream_error(self) -> None:
        client = _text_client("  \n ")
        with pytest.raises(UpstreamError):
            await PromptSource(client).generate(True, "hint")

    @pytest.mark.asyncio
    async def test_upstream_error_not_swallowed(self) -> None:
        client = _text_client(UpstreamError("boom", status_code=500, provider="openai"))
        with pytest.raises(UpstreamError):
            await PromptSource(client).generate(True, "hint")
        client.complete.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_client_is_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError):
            await PromptSource(None).generate(True, "hint")


def test_sanitize_prompt() -> None:
    assert sanitize_prompt("a\r\nb\nc") == "a b c"
    assert len(sanitize_prompt("y" * 500)) == 120
