"""
Processing strategy for selecting service clients and image providers.

Determines which text client serves a prompt model and which image
providers are usable with the configured credentials.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from brewdream.config import Settings
from brewdream.services.clients import (
    ClaudeClient,
    ConfigurationError,
    DaydreamClient,
    LivepeerStudioClient,
    OpenAIChatClient,
    OpenAIImagesClient,
    TextClient,
)
from brewdream.services.providers import (
    ImageProvider,
    LivepeerImageProvider,
    OpenAIImageEditProvider,
    OpenAIImageGenerationProvider,
)

logger = logging.getLogger(__name__)


class TextProviderType(str, Enum):
    """Text model providers."""

    OPENAI = "openai"  # OpenAI-compatible chat completions
    CLAUDE = "claude"  # Anthropic API


@dataclass
class ProviderInfo:
    """
    Information about an image provider.

    Attributes:
        name: Provider name used in provider order
        credential: Environment variable the provider needs
        available: Whether the credential is configured
    """

    name: str
    credential: str
    available: bool = False


class ProcessingStrategy:
    """
    Builds clients and image providers from settings.

    Model naming convention:
    - Models starting with "claude" use the Anthropic API
    - All other models use OpenAI-compatible chat completions

    Example:
        strategy = ProcessingStrategy(settings)

        async with strategy.create_text_client() as client:
            text = await client.complete(system, user)

        providers = strategy.create_image_providers(["openai", "livepeer"])
    """

    CLAUDE_MODEL_PREFIXES = ("claude",)

    # Provider name -> credential setting it needs
    IMAGE_PROVIDER_CREDENTIALS = {
        "livepeer": "livepeer_studio_api_key",
        "openai": "openai_api_key",
        "dalle": "openai_api_key",
    }

    def __init__(self, settings: Settings):
        """
        Initialize processing strategy.

        Args:
            settings: Application settings
        """
        self.settings = settings
        self._livepeer_client: LivepeerStudioClient | None = None
        self._images_client: OpenAIImagesClient | None = None

    def get_text_provider_type(self, model: str) -> TextProviderType:
        """
        Determine provider type for a text model.

        Args:
            model: Model name (e.g., "claude-haiku-4-5", "gpt-4o-mini")
        """
        model_lower = model.lower()
        for prefix in self.CLAUDE_MODEL_PREFIXES:
            if model_lower.startswith(prefix):
                return TextProviderType.CLAUDE
        return TextProviderType.OPENAI

    def create_text_client(self, model: str | None = None) -> TextClient:
        """
        Create text client for the prompt model.

        Args:
            model: Model name (defaults to settings.prompt_model)

        Raises:
            ConfigurationError: If the provider's API key is not set
        """
        model = model or self.settings.prompt_model
        if self.get_text_provider_type(model) == TextProviderType.CLAUDE:
            return ClaudeClient.from_settings(self.settings)
        return OpenAIChatClient.from_settings(self.settings)

    def check_availability(self) -> dict[str, ProviderInfo]:
        """
        Report which image providers have credentials configured.

        Returns:
            Dict mapping provider name to availability info
        """
        results = {}
        for name, credential in self.IMAGE_PROVIDER_CREDENTIALS.items():
            results[name] = ProviderInfo(
                name=name,
                credential=credential.upper(),
                available=bool(getattr(self.settings, credential)),
            )
        return results

    def resolve_order(self, preferred: str | None = None) -> list[str]:
        """
        Provider order with the preferred provider moved to the front.

        Args:
            preferred: Provider to try first (may be None)

        Returns:
            Ordered provider names without duplicates
        """
        order = list(self.settings.provider_order)
        if preferred:
            order = [preferred] + [name for name in order if name != preferred]
        return order

    def create_image_providers(self, order: list[str]) -> list[ImageProvider]:
        """
        Build adapters for the given order, skipping unconfigured ones.

        Args:
            order: Provider names in preference order

        Returns:
            Non-empty list of adapters in the same order

        Raises:
            ConfigurationError: If no provider in the order is usable
        """
        availability = self.check_availability()
        providers: list[ImageProvider] = []

        for name in order:
            info = availability.get(name)
            if info is None:
                logger.warning(f"Unknown image provider '{name}', skipping")
                continue
            if not info.available:
                logger.info(f"Image provider '{name}' skipped: {info.credential} not set")
                continue
            providers.append(self._build_provider(name))

        if not providers:
            raise ConfigurationError(
                f"No image provider configured for order {order}",
                provider="pipeline",
            )

        logger.debug(f"Image providers: {[p.name for p in providers]}")
        return providers

    def _build_provider(self, name: str) -> ImageProvider:
        if name == "livepeer":
            return LivepeerImageProvider(
                self.create_asset_store(),
                model_id=self.settings.livepeer_image_model,
            )
        if self._images_client is None:
            self._images_client = OpenAIImagesClient.from_settings(self.settings)
        if name == "openai":
            return OpenAIImageEditProvider(self._images_client)
        return OpenAIImageGenerationProvider(self._images_client)

    def create_asset_store(self) -> LivepeerStudioClient:
        """
        Shared Livepeer client (asset store, clips, image-to-image).

        Raises:
            ConfigurationError: If LIVEPEER_STUDIO_API_KEY not set
        """
        if self._livepeer_client is None:
            self._livepeer_client = LivepeerStudioClient.from_settings(self.settings)
        return self._livepeer_client

    def create_session_provider(self) -> DaydreamClient:
        """
        Raises:
            ConfigurationError: If DAYDREAM_API_KEY not set
        """
        return DaydreamClient.from_settings(self.settings)

    async def close(self) -> None:
        """Close shared clients created by this strategy."""
        if self._livepeer_client is not None:
            await self._livepeer_client.close()
            self._livepeer_client = None
        if self._images_client is not None:
            await self._images_client.close()
            self._images_client = None
