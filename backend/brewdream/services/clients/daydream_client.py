"""
Daydream live streaming API client.

Creates StreamDiffusion sessions and pushes configuration to them.
A freshly created stream rejects configuration until its worker is up;
that rejection is classified here and surfaced as SessionNotReadyError
so callers never inspect response text.
"""

import logging
from typing import Any

import httpx

from brewdream.config import Settings
from brewdream.models.schemas import RemoteSessionHandle
from brewdream.services.clients.base import (
    BaseHttpClient,
    ClientConfig,
    SessionNotReadyError,
    UpstreamError,
    parse_json,
    require_api_key,
    upstream_error_from_response,
)

logger = logging.getLogger(__name__)

# HTTP statuses that mean "session exists but is still starting"
NOT_READY_STATUSES = frozenset({409, 425})

# Structured error codes with the same meaning
NOT_READY_CODES = frozenset({"stream_not_ready", "stream_not_found", "not_ready"})

# Last-resort message signature for responses without a code
NOT_READY_MESSAGE = "stream not ready"


def is_not_ready_response(response: httpx.Response) -> bool:
    """
    Decide whether a rejected update means the session is still starting.

    Checks the status code, then a structured error code, then the
    error message.
    """
    if response.status_code in NOT_READY_STATUSES:
        return True

    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        error = body.get("error")
        code = body.get("code") or (error.get("code") if isinstance(error, dict) else None)
        if isinstance(code, str) and code.lower() in NOT_READY_CODES:
            return True

    return NOT_READY_MESSAGE in response.text.lower()


class DaydreamClient(BaseHttpClient):
    """
    Async client for the Daydream streams API.

    Example:
        async with DaydreamClient.from_settings(settings) as client:
            session = await client.create_stream("pip_qpUgXycjWF6YMeSL")
            await client.update_params(session.id, params.to_payload())
    """

    provider = "daydream"

    def __init__(
        self,
        config: ClientConfig,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize Daydream client.

        Raises:
            ConfigurationError: If API key is not provided
        """
        require_api_key(config.api_key, "DAYDREAM_API_KEY", self.provider)
        super().__init__(config, http_client)

    @classmethod
    def from_settings(cls, settings: Settings) -> "DaydreamClient":
        """
        Create DaydreamClient from application settings.

        Raises:
            ConfigurationError: If DAYDREAM_API_KEY not set
        """
        config = ClientConfig(
            base_url=settings.daydream_base_url,
            api_key=settings.daydream_api_key,
            timeout=settings.request_timeout,
        )
        return cls(config=config)

    async def create_stream(
        self,
        pipeline_id: str,
        initial_params: dict | None = None,
    ) -> RemoteSessionHandle:
        """
        Create a live session.

        Args:
            pipeline_id: Daydream pipeline id
            initial_params: Optional pipeline params sent with creation

        Returns:
            Handle with id, output playback id and WHIP ingest URL

        Raises:
            UpstreamError: If creation fails or no stream id is returned
        """
        body: dict[str, Any] = {"pipeline_id": pipeline_id}
        if initial_params:
            body["pipeline_params"] = initial_params

        response = await self._request(
            "POST",
            f"{self.config.base_url}/v1/streams",
            json=body,
            headers=self._auth_headers(),
        )
        if response.is_error:
            logger.error(f"Daydream create stream failed: {response.status_code}")
            raise upstream_error_from_response(response, "Daydream create stream failed", self.provider)

        data = parse_json(response, self.provider)
        stream_id = data.get("id")
        if not stream_id:
            raise UpstreamError(
                "Daydream stream response missing id",
                status_code=response.status_code,
                response_body=response.text[:500],
                provider=self.provider,
            )

        logger.info(f"Stream created: id={stream_id}, pipeline={pipeline_id}")
        return RemoteSessionHandle(
            id=stream_id,
            output_playback_id=data.get("output_playback_id"),
            whip_url=data.get("whip_url"),
        )

    async def update_params(self, stream_id: str, payload: dict) -> dict:
        """
        Push configuration to a live session.

        Args:
            stream_id: Session id
            payload: Update body (see StreamDiffusionParams.to_payload)

        Returns:
            Response body (empty dict if the service returns none)

        Raises:
            SessionNotReadyError: If the session is still starting
            UpstreamError: For any other rejection
        """
        response = await self._request(
            "PATCH",
            f"{self.config.base_url}/v1/streams/{stream_id}",
            json=payload,
            headers=self._auth_headers(),
        )

        if response.is_error:
            if is_not_ready_response(response):
                logger.debug(f"Stream {stream_id} not ready: {response.status_code}")
                raise SessionNotReadyError(
                    f"Stream {stream_id} is not ready for configuration",
                    status_code=response.status_code,
                    response_body=response.text[:500],
                    provider=self.provider,
                )
            logger.error(f"Daydream update failed: {response.status_code}")
            raise upstream_error_from_response(response, "Daydream update failed", self.provider)

        if not response.content:
            return {}
        return parse_json(response, self.provider)
