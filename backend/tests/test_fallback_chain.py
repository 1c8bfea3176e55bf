"""Tests for ProviderFallbackChain."""

from __future__ import annotations

import pytest

from brewdream.models.schemas import Prompt, PromptMethod, TransformOptions
from brewdream.services.clients.base import ConfigurationError, UpstreamError
from brewdream.services.fallback_chain import ProviderChainError, ProviderFallbackChain
from tests.helpers import PNG_BYTES, FakeProvider

OPTIONS = TransformOptions(seed=42, strength=0.6)


class TestProviderFallbackChain:
    @pytest.mark.asyncio
    async def test_first_success_wins(self) -> None:
        a = FakeProvider("a", reference="https://a.test/1.png")
        b = FakeProvider("b")
        chain = ProviderFallbackChain([a, b])

        artifact = await chain.transform(PNG_BYTES, "neon", OPTIONS)

        assert artifact.provider == "a"
        assert artifact.image_reference == "https://a.test/1.png"
        assert artifact.seed == 42
        assert len(a.calls) == 1
        assert len(b.calls) == 0

    @pytest.mark.asyncio
    async def test_falls_through_to_second(self) -> None:
        a = FakeProvider("a", error=UpstreamError("down", status_code=503))
        b = FakeProvider("b")
        c = FakeProvider("c")
        chain = ProviderFallbackChain([a, b, c])

        artifact = await chain.transform(PNG_BYTES, "neon", OPTIONS)

        assert artifact.provider == "b"
        assert (len(a.calls), len(b.calls), len(c.calls)) == (1, 1, 0)

    @pytest.mark.asyncio
    async def test_passes_prompt_text_and_options(self) -> None:
        a = FakeProvider("a")
        prompt = Prompt(text="crystal cave", method=PromptMethod.GENERATED)

        artifact = await ProviderFallbackChain([a]).transform(PNG_BYTES, prompt, OPTIONS)

        image, text, options = a.calls[0]
        assert image == PNG_BYTES
        assert text == "crystal cave"
        assert options == OPTIONS
        assert artifact.prompt == "crystal cave"

    @pytest.mark.asyncio
    async def test_all_fail_reports_last_provider(self) -> None:
        a = FakeProvider("a", error=UpstreamError("first", status_code=500, response_body="a-body"))
        b = FakeProvider("b", error=RuntimeError("second"))
        c = FakeProvider(
            "c", error=UpstreamError("third", status_code=400, response_body='{"error":"bad prompt"}')
        )
        chain = ProviderFallbackChain([a, b, c])

        with pytest.raises(ProviderChainError) as ei:
            await chain.transform(PNG_BYTES, "neon", OPTIONS)

        err = ei.value
        assert err.last_provider == "c"
        assert str(err.last_error).startswith("third")
        assert err.response_body == '{"error":"bad prompt"}'
        assert [attempt.provider for attempt in err.attempts] == ["a", "b", "c"]
        assert "c" in str(err)

    @pytest.mark.asyncio
    async def test_unconfigured_provider_falls_through(self) -> None:
        a = FakeProvider("a", error=ConfigurationError("no key", provider="a"))
        b = FakeProvider("b", reference="https://b.test/1.png")

        artifact = await ProviderFallbackChain([a, b]).transform(PNG_BYTES, "neon", OPTIONS)

        assert artifact.provider == "b"
        assert len(b.calls) == 1

    @pytest.mark.asyncio
    async def test_all_unconfigured_is_chain_error(self) -> None:
        a = FakeProvider("a", error=ConfigurationError("no key", provider="a"))

        with pytest.raises(ProviderChainError) as ei:
            await ProviderFallbackChain([a]).transform(PNG_BYTES, "neon", OPTIONS)
        assert isinstance(ei.value.last_error, ConfigurationError)

    def test_empty_chain_rejected(self) -> None:
        with pytest.raises(ValueError):
            ProviderFallbackChain([])
