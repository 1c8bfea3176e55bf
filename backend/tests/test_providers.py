"""Tests for image provider adapters."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from brewdream.models.schemas import TransformOptions
from brewdream.services.clients.base import UpstreamError
from brewdream.services.providers import (
    ImageProvider,
    LivepeerImageProvider,
    OpenAIImageEditProvider,
    OpenAIImageGenerationProvider,
)
from tests.helpers import PNG_BYTES

OPTIONS = TransformOptions(seed=11, strength=0.5)


def _images_client(**responses) -> MagicMock:
    client = MagicMock()
    client.edit_model = "gpt-image-1"
    client.edit_size = "768x768"
    client.generation_model = "dall-e-3"
    client.edit_image = AsyncMock(return_value=responses.get("edit"))
    client.generate_image = AsyncMock(return_value=responses.get("generate"))
    return client


class TestLivepeerImageProvider:
    @pytest.mark.asyncio
    async def test_sends_seeded_request(self) -> None:
        client = MagicMock()
        client.image_to_image = AsyncMock(return_value={"images": [{"url": "https://lp.test/o.png"}]})
        provider = LivepeerImageProvider(client, model_id="SG161222/RealVisXL_V4.0")

        output = await provider.attempt_transform(PNG_BYTES, "crystal cave", OPTIONS)

        assert output.image_reference == "https://lp.test/o.png"
        kwargs = client.image_to_image.call_args.kwargs
        assert kwargs["prompt"].startswith("crystal cave, highly detailed")
        assert kwargs["image"].startswith("data:image/png;base64,")
        assert kwargs["seed"] == 11
        assert kwargs["strength"] == 0.5

    @pytest.mark.asyncio
    async def test_top_level_url_shape(self) -> None:
        client = MagicMock()
        client.image_to_image = AsyncMock(return_value={"url": "https://lp.test/flat.png"})
        output = await LivepeerImageProvider(client, "m").attempt_transform(PNG_BYTES, "p", OPTIONS)
        assert output.image_reference == "https://lp.test/flat.png"

    @pytest.mark.asyncio
    async def test_no_image_is_upstream_error(self) -> None:
        client = MagicMock()
        client.image_to_image = AsyncMock(return_value={"images": []})
        with pytest.raises(UpstreamError):
            await LivepeerImageProvider(client, "m").attempt_transform(PNG_BYTES, "p", OPTIONS)


class TestOpenAIImageEditProvider:
    @pytest.mark.asyncio
    async def test_returns_inline_data_url(self) -> None:
        client = _images_client(edit={"data": [{"b64_json": "QUJD"}]})

        output = await OpenAIImageEditProvider(client).attempt_transform(PNG_BYTES, "p", OPTIONS)

        assert output.image_reference == "data:image/png;base64,QUJD"
        assert client.edit_image.call_args.kwargs["seed"] == 11

    @pytest.mark.asyncio
    async def test_empty_data_is_upstream_error(self) -> None:
        client = _images_client(edit={"data": []})
        with pytest.raises(UpstreamError):
            await OpenAIImageEditProvider(client).attempt_transform(PNG_BYTES, "p", OPTIONS)


class TestOpenAIImageGenerationProvider:
    @pytest.mark.asyncio
    async def test_seed_ignored_and_prompt_wrapped(self) -> None:
        client = _images_client(generate={"data": [{"url": "https://img.test/g.png"}]})

        output = await OpenAIImageGenerationProvider(client).attempt_transform(PNG_BYTES, "mars landscape", OPTIONS)

        assert output.image_reference == "https://img.test/g.png"
        assert output.metadata["seed_ignored"] is True
        sent_prompt = client.generate_image.call_args.args[0]
        assert "transformed into: mars landscape." in sent_prompt
        assert "clearly recognizable" in sent_prompt


def test_adapters_satisfy_protocol() -> None:
    client = MagicMock()
    assert isinstance(LivepeerImageProvider(client, "m"), ImageProvider)
    assert isinstance(OpenAIImageEditProvider(client), ImageProvider)
    assert isinstance(OpenAIImageGenerationProvider(client), ImageProvider)
    assert {p.name for p in (
        LivepeerImageProvider(client, "m"),
        OpenAIImageEditProvider(client),
        OpenAIImageGenerationProvider(client),
    )} == {"livepeer", "openai", "dalle"}
