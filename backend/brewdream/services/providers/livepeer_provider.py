"""
Livepeer diffusion image-to-image adapter.
"""

import logging

from brewdream.models.schemas import TransformOptions
from brewdream.services.clients.base import UpstreamError
from brewdream.services.clients.livepeer_client import LivepeerStudioClient
from brewdream.services.providers.base import ProviderOutput
from brewdream.utils.media_utils import to_data_url

logger = logging.getLogger(__name__)

PROMPT_SUFFIX = "highly detailed, vivid colors, person remains recognizable, professional photography"


class LivepeerImageProvider:
    """
    Seeded diffusion transform through Livepeer's generate API.

    The source image is sent inline as a data URL.
    """

    name = "livepeer"

    def __init__(self, client: LivepeerStudioClient, model_id: str):
        self.client = client
        self.model_id = model_id

    async def attempt_transform(
        self,
        image: bytes,
        prompt: str,
        options: TransformOptions,
    ) -> ProviderOutput:
        data = await self.client.image_to_image(
            prompt=f"{prompt}, {PROMPT_SUFFIX}",
            image=to_data_url(image),
            model_id=self.model_id,
            strength=options.strength,
            seed=options.seed,
        )

        images = data.get("images") if isinstance(data.get("images"), list) else []
        first = images[0] if images and isinstance(images[0], dict) else {}
        url = first.get("url") or data.get("url")
        if not url:
            raise UpstreamError(
                "Livepeer image-to-image returned no image URL",
                response_body=str(data)[:500],
                provider=self.name,
            )

        logger.debug(f"Livepeer produced {url}")
        return ProviderOutput(
            image_reference=url,
            metadata={"model_id": self.model_id, "strength": options.strength},
        )
