"""
Claude API client implementation.

Provides async client for Anthropic's Claude API.
Implements the TextClient protocol for prompt generation.
"""

import logging

from anthropic import APIConnectionError, APIStatusError, APITimeoutError, AsyncAnthropic

from brewdream.config import Settings
from brewdream.services.clients.base import (
    ClientConfig,
    UpstreamConnectionError,
    UpstreamError,
    require_api_key,
)

logger = logging.getLogger(__name__)

# Default Claude model (using alias for auto-updates)
DEFAULT_CLAUDE_MODEL = "claude-haiku-4-5"


class ClaudeClient:
    """
    Async client for Anthropic's Claude API.

    Retries on transient errors are handled by the SDK (max_retries).

    Example:
        async with ClaudeClient.from_settings(settings) as client:
            text = await client.complete("You are...", "Generate a prompt")
    """

    provider = "claude"

    def __init__(
        self,
        config: ClientConfig,
        default_model: str = DEFAULT_CLAUDE_MODEL,
        client: AsyncAnthropic | None = None,
    ):
        """
        Initialize Claude client.

        Args:
            config: Client configuration with API key
            default_model: Default Claude model to use
            client: Optional preconfigured SDK client

        Raises:
            ConfigurationError: If API key is not provided
        """
        require_api_key(config.api_key, "ANTHROPIC_API_KEY", self.provider)
        self.config = config
        self.default_model = default_model
        self.client = client or AsyncAnthropic(
            api_key=config.api_key,
            timeout=config.timeout,
            max_retries=config.max_retries,
        )

        logger.info(f"ClaudeClient initialized, model: {default_model}")

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClaudeClient":
        """
        Create ClaudeClient from application settings.

        Raises:
            ConfigurationError: If ANTHROPIC_API_KEY not set
        """
        config = ClientConfig(
            base_url="https://api.anthropic.com",
            api_key=settings.anthropic_api_key,
            timeout=settings.request_timeout,
        )
        return cls(config=config, default_model=settings.prompt_model)

    async def close(self) -> None:
        """Close the client and release resources."""
        await self.client.close()

    async def __aenter__(self) -> "ClaudeClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 64,
    ) -> str:
        """
        Single-turn completion using the Messages API.

        Args:
            system_prompt: System parameter
            user_prompt: Single user message
            temperature: Sampling temperature (clamped to Claude's 0-1 range)
            max_tokens: Max tokens to generate

        Returns:
            Response text (stripped)

        Raises:
            UpstreamError: If the call fails or returns no text
        """
        try:
            response = await self.client.messages.create(
                model=self.default_model,
                max_tokens=max_tokens,
                temperature=min(max(temperature, 0.0), 1.0),
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
            )

        except APITimeoutError as e:
            logger.error(f"Claude timeout: {e}")
            raise UpstreamConnectionError(
                "Claude request timeout",
                provider=self.provider,
                original_error=e,
            ) from e

        except APIConnectionError as e:
            logger.error(f"Claude connection error: {e}")
            raise UpstreamConnectionError(
                f"Cannot connect to Claude API: {e}",
                provider=self.provider,
                original_error=e,
            ) from e

        except APIStatusError as e:
            logger.error(f"Claude API error: {e.status_code} - {e.message}")
            raise UpstreamError(
                f"Claude API error: {e.message}",
                status_code=e.status_code,
                response_body=str(e.body) if e.body else None,
                provider=self.provider,
                original_error=e,
            ) from e

        text = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        ).strip()
        if not text:
            raise UpstreamError("LLM returned empty content", provider=self.provider)

        logger.info(
            f"Claude response: {len(text)} chars, "
            f"tokens: {response.usage.input_tokens} in / {response.usage.output_tokens} out"
        )
        return text
