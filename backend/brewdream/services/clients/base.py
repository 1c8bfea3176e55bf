"""
Base protocols and errors for external service clients.

Defines the capabilities the orchestration core consumes, so that
text models, asset stores and session providers can be swapped or
mocked independently.
"""

import logging
from abc import ABC
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from brewdream.models.schemas import (
    AssetStatus,
    ClipWindow,
    RemoteAssetHandle,
    RemoteSessionHandle,
    UploadTarget,
)

logger = logging.getLogger(__name__)

# Retry configuration for transient transport errors
RETRY_DECORATOR = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=30),
    retry=retry_if_exception_type((httpx.ConnectError, httpx.TimeoutException)),
    reraise=True,
)


@dataclass
class ClientConfig:
    """
    Configuration for client instances.

    Attributes:
        base_url: API endpoint URL
        api_key: API key for authenticated services
        timeout: Request timeout in seconds
        max_retries: Number of retry attempts for transient errors
    """

    base_url: str
    api_key: str | None = None
    timeout: float = 120.0
    max_retries: int = 3


class ClientError(Exception):
    """
    Base exception for external service errors.

    Attributes:
        message: Error description
        provider: Service name (openai, livepeer, daydream, ...)
        original_error: Underlying exception if available
    """

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.provider = provider
        self.original_error = original_error
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.provider:
            parts.append(f"provider={self.provider}")
        return " | ".join(parts)


class ConfigurationError(ClientError):
    """Raised when a required credential or setting is missing. Never retried."""

    pass


class UpstreamError(ClientError):
    """
    Raised when a service returns a non-2xx status or a malformed body.

    Attributes:
        status_code: HTTP status code if available
        response_body: Raw response body if available
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.status_code = status_code
        self.response_body = response_body

    def __str__(self) -> str:
        text = super().__str__()
        if self.status_code is not None:
            text += f" | status={self.status_code}"
        return text


class UpstreamConnectionError(UpstreamError):
    """Raised when a service cannot be reached or times out after transport retries."""

    pass


class SessionNotReadyError(UpstreamError):
    """Raised when a live session rejects configuration because it is still starting."""

    pass


def require_api_key(api_key: str | None, env_var: str, provider: str) -> str:
    """
    Return the API key or raise ConfigurationError.

    Args:
        api_key: Configured key (may be None/empty)
        env_var: Environment variable name for the message
        provider: Provider name for error context
    """
    if not api_key:
        raise ConfigurationError(f"{env_var} is not configured", provider=provider)
    return api_key


def upstream_error_from_response(
    response: httpx.Response,
    message: str,
    provider: str,
) -> UpstreamError:
    """Build an UpstreamError from a non-success httpx response."""
    return UpstreamError(
        f"{message}: HTTP {response.status_code}",
        status_code=response.status_code,
        response_body=response.text[:500],
        provider=provider,
    )


def parse_json(response: httpx.Response, provider: str) -> dict:
    """
    Decode a JSON object body.

    Raises:
        UpstreamError: If the body is not a JSON object
    """
    try:
        data = response.json()
    except ValueError as e:
        raise UpstreamError(
            "Malformed JSON response",
            status_code=response.status_code,
            response_body=response.text[:500],
            provider=provider,
            original_error=e,
        ) from e

    if not isinstance(data, dict):
        raise UpstreamError(
            "Unexpected response shape",
            status_code=response.status_code,
            response_body=response.text[:500],
            provider=provider,
        )
    return data


class BaseHttpClient(ABC):
    """
    Base class for httpx-backed service clients.

    Provides the shared HTTP client, transport retries and the async
    context manager protocol. Subclasses set `provider`.

    The httpx client can be injected (tests pass one built on
    httpx.MockTransport); otherwise one is created and owned here.
    """

    provider: str = "http"

    def __init__(
        self,
        config: ClientConfig,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize client with configuration.

        Args:
            config: Client configuration with URL, key, timeout
            http_client: Optional preconfigured httpx client
        """
        self.config = config
        self.http_client = http_client or httpx.AsyncClient(timeout=config.timeout)

    def _auth_headers(self) -> dict[str, str]:
        if not self.config.api_key:
            return {}
        return {"Authorization": f"Bearer {self.config.api_key}"}

    @RETRY_DECORATOR
    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        return await self.http_client.request(method, url, **kwargs)

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """
        Send a request, retrying transient transport errors.

        Non-2xx responses are returned as-is; callers decide how to map them.

        Raises:
            UpstreamConnectionError: If the service stays unreachable
        """
        try:
            return await self._send(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"{self.provider} timeout: {method} {url}")
            raise UpstreamConnectionError(
                f"Request timeout: {method} {url}",
                provider=self.provider,
                original_error=e,
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"{self.provider} connection error: {e}")
            raise UpstreamConnectionError(
                f"Cannot reach {url}: {e}",
                provider=self.provider,
                original_error=e,
            ) from e

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.http_client.aclose()

    async def __aenter__(self):
        """Context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        await self.close()


@runtime_checkable
class TextClient(Protocol):
    """
    Generative text capability.

    Example:
        async def make_prompt(client: TextClient) -> str:
            return await client.complete(system, user, temperature=0.9, max_tokens=32)
    """

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 64,
    ) -> str:
        """
        Single-turn completion.

        Raises:
            UpstreamError: If the call fails or returns no content
        """
        ...

    async def close(self) -> None:
        ...


@runtime_checkable
class AssetStatusSource(Protocol):
    """Anything that can report the current state of a remote asset."""

    async def get_asset_status(self, asset_id: str) -> AssetStatus:
        ...


@runtime_checkable
class AssetStore(AssetStatusSource, Protocol):
    """Durable asset store: upload slot, byte upload, status."""

    async def request_upload(self, name: str) -> UploadTarget:
        ...

    async def put_bytes(self, upload_url: str, data: bytes, content_type: str) -> None:
        ...


@runtime_checkable
class ClipProvider(Protocol):
    """Creates clip assets from a live session."""

    async def create_clip(
        self,
        playback_id: str,
        window: ClipWindow | None = None,
        session_id: str | None = None,
    ) -> RemoteAssetHandle:
        ...


@runtime_checkable
class SessionProvider(Protocol):
    """Live streaming session provider."""

    async def create_stream(
        self,
        pipeline_id: str,
        initial_params: dict | None = None,
    ) -> RemoteSessionHandle:
        ...

    async def update_params(self, stream_id: str, payload: dict) -> dict:
        """
        Push configuration to a session.

        Raises:
            SessionNotReadyError: If the session is not accepting configuration yet
            UpstreamError: For any other rejection
        """
        ...
