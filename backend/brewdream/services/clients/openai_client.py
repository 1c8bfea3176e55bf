"""
OpenAI API clients: chat completions and images.

Provides async HTTP clients with transport retries. The chat client
implements the TextClient protocol used by the prompt source.
"""

import logging

import httpx

from brewdream.config import Settings
from brewdream.services.clients.base import (
    BaseHttpClient,
    ClientConfig,
    UpstreamError,
    parse_json,
    require_api_key,
    upstream_error_from_response,
)

logger = logging.getLogger(__name__)

DEFAULT_CHAT_MODEL = "gpt-4o-mini"


class OpenAIChatClient(BaseHttpClient):
    """
    Async client for OpenAI chat completions.

    Example:
        async with OpenAIChatClient.from_settings(settings) as client:
            text = await client.complete("You are...", "Generate a prompt")
    """

    provider = "openai"

    def __init__(
        self,
        config: ClientConfig,
        default_model: str = DEFAULT_CHAT_MODEL,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize OpenAI chat client.

        Args:
            config: Client configuration with API key
            default_model: Chat model to use
            http_client: Optional preconfigured httpx client

        Raises:
            ConfigurationError: If API key is not provided
        """
        require_api_key(config.api_key, "OPENAI_API_KEY", self.provider)
        super().__init__(config, http_client)
        self.default_model = default_model

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAIChatClient":
        """
        Create OpenAIChatClient from application settings.

        Raises:
            ConfigurationError: If OPENAI_API_KEY not set
        """
        config = ClientConfig(
            base_url=settings.openai_base_url,
            api_key=settings.openai_api_key,
            timeout=settings.request_timeout,
        )
        return cls(config=config, default_model=settings.prompt_model)

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 64,
    ) -> str:
        """
        Single-turn chat completion.

        Args:
            system_prompt: System instruction
            user_prompt: User message
            temperature: Sampling temperature
            max_tokens: Max tokens to generate

        Returns:
            Assistant message content (stripped)

        Raises:
            UpstreamError: On non-2xx status, malformed body or empty content
        """
        request_body = {
            "model": self.default_model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        logger.debug(f"Chat completion: model={self.default_model}, max_tokens={max_tokens}")

        response = await self._request(
            "POST",
            f"{self.config.base_url}/chat/completions",
            json=request_body,
            headers=self._auth_headers(),
        )

        if response.is_error:
            logger.error(f"OpenAI chat error: {response.status_code}")
            raise upstream_error_from_response(response, "OpenAI chat failed", self.provider)

        data = parse_json(response, self.provider)

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise UpstreamError(
                "OpenAI chat response missing message content",
                status_code=response.status_code,
                response_body=response.text[:500],
                provider=self.provider,
                original_error=e,
            ) from e

        content = (content or "").strip()
        if not content:
            raise UpstreamError(
                "LLM returned empty content",
                status_code=response.status_code,
                provider=self.provider,
            )

        usage = data.get("usage") or {}
        logger.info(
            f"OpenAI response: {len(content)} chars, "
            f"tokens: {usage.get('prompt_tokens', 0)} in / {usage.get('completion_tokens', 0)} out"
        )
        return content


class OpenAIImagesClient(BaseHttpClient):
    """
    Async client for the OpenAI images API (edits and generations).

    Example:
        async with OpenAIImagesClient.from_settings(settings) as client:
            data = await client.edit_image(png_bytes, "neon cityscape", seed=7)
            b64 = data["data"][0]["b64_json"]
    """

    provider = "openai"

    def __init__(
        self,
        config: ClientConfig,
        edit_model: str = "gpt-image-1",
        edit_size: str = "768x768",
        generation_model: str = "dall-e-3",
        generation_size: str = "1024x1024",
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize OpenAI images client.

        Raises:
            ConfigurationError: If API key is not provided
        """
        require_api_key(config.api_key, "OPENAI_API_KEY", self.provider)
        super().__init__(config, http_client)
        self.edit_model = edit_model
        self.edit_size = edit_size
        self.generation_model = generation_model
        self.generation_size = generation_size

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAIImagesClient":
        """
        Create OpenAIImagesClient from application settings.

        Raises:
            ConfigurationError: If OPENAI_API_KEY not set
        """
        config = ClientConfig(
            base_url=settings.openai_base_url,
            api_key=settings.openai_api_key,
            timeout=settings.request_timeout,
        )
        return cls(
            config=config,
            edit_model=settings.openai_image_model,
            edit_size=settings.openai_image_size,
            generation_model=settings.dalle_model,
            generation_size=settings.dalle_image_size,
        )

    async def edit_image(
        self,
        image: bytes,
        prompt: str,
        seed: int | None = None,
        content_type: str = "image/png",
    ) -> dict:
        """
        Edit an image according to a prompt (multipart upload).

        The seed is forwarded as a form field; the service may ignore it.

        Returns:
            Raw response body

        Raises:
            UpstreamError: On non-2xx status or malformed body
        """
        form = {
            "model": self.edit_model,
            "prompt": prompt,
            "size": self.edit_size,
        }
        if seed is not None:
            form["seed"] = str(seed)

        logger.debug(f"Image edit: model={self.edit_model}, size={self.edit_size}")

        response = await self._request(
            "POST",
            f"{self.config.base_url}/images/edits",
            data=form,
            files={"image": ("source.png", image, content_type)},
            headers=self._auth_headers(),
        )
        if response.is_error:
            logger.error(f"OpenAI image edit error: {response.status_code}")
            raise upstream_error_from_response(response, "OpenAI image edit failed", self.provider)

        return parse_json(response, self.provider)

    async def generate_image(self, prompt: str) -> dict:
        """
        Generate an image from text only.

        Returns:
            Raw response body

        Raises:
            UpstreamError: On non-2xx status or malformed body
        """
        request_body = {
            "model": self.generation_model,
            "prompt": prompt,
            "n": 1,
            "size": self.generation_size,
            "quality": "standard",
        }

        logger.debug(f"Image generation: model={self.generation_model}")

        response = await self._request(
            "POST",
            f"{self.config.base_url}/images/generations",
            json=request_body,
            headers=self._auth_headers(),
        )
        if response.is_error:
            logger.error(f"OpenAI image generation error: {response.status_code}")
            raise upstream_error_from_response(
                response, "OpenAI image generation failed", self.provider
            )

        return parse_json(response, self.provider)
