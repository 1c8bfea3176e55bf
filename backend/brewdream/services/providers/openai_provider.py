"""
OpenAI image adapters: image edit and text-to-image generation.
"""

import logging

from brewdream.models.schemas import TransformOptions
from brewdream.services.clients.base import UpstreamError
from brewdream.services.clients.openai_client import OpenAIImagesClient
from brewdream.services.providers.base import ProviderOutput
from brewdream.utils.media_utils import sniff_content_type

logger = logging.getLogger(__name__)

GENERATION_PROMPT_TEMPLATE = (
    "A portrait photograph transformed into: {prompt}. "
    "The person should remain clearly recognizable and the composition should be "
    "similar to the original, but with the new artistic style applied. "
    "Highly detailed, vivid colors, professional quality."
)


def _first_image(data: dict, provider: str) -> dict:
    items = data.get("data")
    if not isinstance(items, list) or not items or not isinstance(items[0], dict):
        raise UpstreamError(
            "Image response contains no data",
            response_body=str(data)[:500],
            provider=provider,
        )
    return items[0]


class OpenAIImageEditProvider:
    """
    Image edit with the source photo as input.

    Returns an inline data URL. The seed is passed through but the
    service does not guarantee it is honoured.
    """

    name = "openai"

    def __init__(self, client: OpenAIImagesClient):
        self.client = client

    async def attempt_transform(
        self,
        image: bytes,
        prompt: str,
        options: TransformOptions,
    ) -> ProviderOutput:
        data = await self.client.edit_image(
            image,
            prompt,
            seed=options.seed,
            content_type=sniff_content_type(image),
        )
        item = _first_image(data, self.name)

        if item.get("b64_json"):
            reference = f"data:image/png;base64,{item['b64_json']}"
        elif item.get("url"):
            reference = item["url"]
        else:
            raise UpstreamError(
                "Image edit response has neither b64_json nor url",
                response_body=str(data)[:500],
                provider=self.name,
            )

        return ProviderOutput(
            image_reference=reference,
            metadata={"model": self.client.edit_model, "size": self.client.edit_size},
        )


class OpenAIImageGenerationProvider:
    """
    Text-to-image generation used as a style-transfer approximation.

    The source image is not sent and the seed is ignored: the endpoint
    accepts neither. The prompt asks for a recognizable portrait instead.
    """

    name = "dalle"

    def __init__(self, client: OpenAIImagesClient):
        self.client = client

    async def attempt_transform(
        self,
        image: bytes,
        prompt: str,
        options: TransformOptions,
    ) -> ProviderOutput:
        data = await self.client.generate_image(GENERATION_PROMPT_TEMPLATE.format(prompt=prompt))
        item = _first_image(data, self.name)

        url = item.get("url")
        if not url:
            raise UpstreamError(
                "Image generation response has no url",
                response_body=str(data)[:500],
                provider=self.name,
            )

        metadata = {"model": self.client.generation_model, "seed_ignored": options.seed is not None}
        if item.get("revised_prompt"):
            metadata["revised_prompt"] = item["revised_prompt"]

        logger.debug(f"Generation produced {url}")
        return ProviderOutput(image_reference=url, metadata=metadata)
