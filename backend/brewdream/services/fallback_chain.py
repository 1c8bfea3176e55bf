"""
Ordered fallback across image providers.

Tries each provider in turn and returns the first success.
"""

import logging
from dataclasses import dataclass

from brewdream.models.schemas import Prompt, TransformedArtifact, TransformOptions
from brewdream.services.clients.base import ConfigurationError, UpstreamError
from brewdream.services.providers.base import ImageProvider

logger = logging.getLogger(__name__)


@dataclass
class ProviderAttempt:
    """One failed provider attempt, kept for diagnostics."""

    provider: str
    error: Exception

    @property
    def response_body(self) -> str | None:
        return getattr(self.error, "response_body", None)


class ProviderChainError(Exception):
    """
    Raised when every provider in the chain failed.

    Attributes:
        last_provider: Name of the last provider tried
        last_error: Its error
        response_body: Its raw response body, if any
        attempts: All failed attempts in order
    """

    def __init__(self, attempts: list[ProviderAttempt]):
        self.attempts = attempts
        last = attempts[-1]
        self.last_provider = last.provider
        self.last_error = last.error
        self.response_body = last.response_body
        super().__init__(f"All image providers failed (last: {last.provider}: {last.error})")

    def __str__(self) -> str:
        parts = [f"All image providers failed, last={self.last_provider}: {self.last_error}"]
        if self.response_body:
            parts.append(f"body={self.response_body[:200]}")
        return " | ".join(parts)


class ProviderFallbackChain:
    """
    First-success-wins iteration over image providers.

    An adapter without a usable credential counts as a failed attempt,
    like an outage, and the next provider is tried.

    Example:
        chain = ProviderFallbackChain([livepeer, openai_edit, dalle])
        artifact = await chain.transform(png, prompt, TransformOptions(seed=42))
    """

    def __init__(self, providers: list[ImageProvider]):
        if not providers:
            raise ValueError("ProviderFallbackChain needs at least one provider")
        self.providers = list(providers)

    @property
    def names(self) -> list[str]:
        return [p.name for p in self.providers]

    async def transform(
        self,
        image: bytes,
        prompt: Prompt | str,
        options: TransformOptions,
    ) -> TransformedArtifact:
        """
        Transform an image with the first provider that succeeds.

        Args:
            image: Source image bytes
            prompt: Prompt (or its text)
            options: Seed and strength

        Returns:
            Artifact from the first successful provider

        Raises:
            ProviderChainError: Every provider failed
        """
        prompt_text = prompt.text if isinstance(prompt, Prompt) else prompt
        attempts: list[ProviderAttempt] = []

        for index, provider in enumerate(self.providers, start=1):
            logger.info(f"Trying provider {provider.name} ({index}/{len(self.providers)})")
            try:
                output = await provider.attempt_transform(image, prompt_text, options)
            except ConfigurationError as e:
                attempts.append(ProviderAttempt(provider=provider.name, error=e))
                logger.warning(f"Provider {provider.name} unavailable: {e}")
                continue
            except Exception as e:
                attempts.append(ProviderAttempt(provider=provider.name, error=e))
                status = f" status={e.status_code}" if isinstance(e, UpstreamError) else ""
                logger.warning(f"Provider {provider.name} failed:{status} {e}")
                continue

            logger.info(f"Provider {provider.name} succeeded")
            return TransformedArtifact(
                image_reference=output.image_reference,
                prompt=prompt_text,
                provider=provider.name,
                seed=options.seed,
                metadata=output.metadata,
            )

        error = ProviderChainError(attempts)
        logger.error(str(error))
        raise error
