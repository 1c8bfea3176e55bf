"""
Image provider protocol.

Every image-generation backend is wrapped in an adapter exposing the
same attempt_transform() call, so the fallback chain can iterate over
them without knowing which service is behind each one.
"""

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from brewdream.models.schemas import TransformOptions


@dataclass
class ProviderOutput:
    """
    Result of one provider attempt.

    Attributes:
        image_reference: Remote URL or data URL of the produced image
        metadata: Provider-specific details (model, size, ...)
    """

    image_reference: str
    metadata: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class ImageProvider(Protocol):
    """
    Image-to-image transformation capability.

    Adapters raise ConfigurationError when their credential is missing
    and UpstreamError (or any other exception) when the attempt fails.

    Example:
        async def run(provider: ImageProvider) -> str:
            output = await provider.attempt_transform(png, "neon alley", TransformOptions(seed=1))
            return output.image_reference
    """

    name: str

    async def attempt_transform(
        self,
        image: bytes,
        prompt: str,
        options: TransformOptions,
    ) -> ProviderOutput:
        ...
