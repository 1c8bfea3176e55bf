"""
Image provider adapters.

Each adapter wraps one image-generation service behind the
ImageProvider protocol:
- livepeer: diffusion image-to-image (seeded)
- openai: image edit (seed best-effort, inline result)
- dalle: text-to-image generation (seed ignored)
"""

from brewdream.services.providers.base import ImageProvider, ProviderOutput
from brewdream.services.providers.livepeer_provider import LivepeerImageProvider
from brewdream.services.providers.openai_provider import (
    OpenAIImageEditProvider,
    OpenAIImageGenerationProvider,
)

__all__ = [
    "ImageProvider",
    "ProviderOutput",
    "LivepeerImageProvider",
    "OpenAIImageEditProvider",
    "OpenAIImageGenerationProvider",
]
