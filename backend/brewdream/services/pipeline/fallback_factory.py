"""
Fallback object factory for pipeline stages.

Creates degraded results when a non-essential stage fails,
so the pipeline can still hand back the transformed image.
"""

import logging

from brewdream.models.schemas import InlineReference, TransformedArtifact
from brewdream.utils.media_utils import to_data_url

logger = logging.getLogger(__name__)


class FallbackFactory:
    """
    Factory for creating fallback objects when pipeline stages fail.

    Example:
        factory = FallbackFactory()
        reference = factory.create_inline_reference(artifact, error, data)
    """

    def create_inline_reference(
        self,
        artifact: TransformedArtifact,
        error: Exception,
        data: bytes | None = None,
    ) -> InlineReference:
        """
        Create fallback reference when publishing fails.

        The image is returned as a data URL whenever its bytes were
        obtained. Only when the provider output could not be read at all
        is the provider's own reference passed through.

        Args:
            artifact: Transformed artifact from the provider chain
            error: Publish failure
            data: Image bytes read before the failure (None if reading failed)

        Returns:
            InlineReference carrying the image
        """
        reason = f"{type(error).__name__}: {error}"

        if data:
            url = to_data_url(data)
        elif artifact.is_inline:
            url = artifact.image_reference
        else:
            # Provider URL may expire
            url = artifact.image_reference
            reason = f"{reason} (provider output not fetched, remote URL kept)"

        logger.warning(
            f"Publish failed, returning {artifact.provider} output inline: {reason}"
        )
        return InlineReference(url=url, reason=reason)
