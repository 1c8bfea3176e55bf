"""
Livepeer Studio API client.

Covers the durable asset store (upload slot, byte upload, asset status),
clip creation from live sessions, and the diffusion image-to-image
endpoint. Response shapes vary between API versions, so every reader
below normalizes several field layouts.
"""

import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from brewdream.config import Settings
from brewdream.models.schemas import (
    AssetPhase,
    AssetStatus,
    ClipWindow,
    RemoteAssetHandle,
    UploadTarget,
)
from brewdream.services.clients.base import (
    BaseHttpClient,
    ClientConfig,
    UpstreamError,
    parse_json,
    require_api_key,
    upstream_error_from_response,
)

logger = logging.getLogger(__name__)

IMAGE_TO_IMAGE_URL = "https://livepeer.studio/api/beta/generate/image-to-image"


def _first(*values: Any) -> Any:
    """Return the first truthy value."""
    for value in values:
        if value:
            return value
    return None


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


class LivepeerStudioClient(BaseHttpClient):
    """
    Async client for Livepeer Studio.

    Example:
        async with LivepeerStudioClient.from_settings(settings) as client:
            target = await client.request_upload("snapshot.png")
            await client.put_bytes(target.upload_url, data, "image/png")
            status = await client.get_asset_status(target.asset_id)
    """

    provider = "livepeer"

    def __init__(
        self,
        config: ClientConfig,
        image_to_image_url: str = IMAGE_TO_IMAGE_URL,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize Livepeer Studio client.

        Raises:
            ConfigurationError: If API key is not provided
        """
        require_api_key(config.api_key, "LIVEPEER_STUDIO_API_KEY", self.provider)
        super().__init__(config, http_client)
        self.image_to_image_url = image_to_image_url

    @classmethod
    def from_settings(cls, settings: Settings) -> "LivepeerStudioClient":
        """
        Create LivepeerStudioClient from application settings.

        Raises:
            ConfigurationError: If LIVEPEER_STUDIO_API_KEY not set
        """
        config = ClientConfig(
            base_url=settings.livepeer_base_url,
            api_key=settings.livepeer_studio_api_key,
            timeout=settings.request_timeout,
        )
        return cls(config=config)

    async def _call(self, method: str, path_or_url: str, what: str, **kwargs) -> dict:
        url = path_or_url if path_or_url.startswith("http") else f"{self.config.base_url}{path_or_url}"
        response = await self._request(method, url, headers=self._auth_headers(), **kwargs)
        if response.is_error:
            logger.error(f"Livepeer {what} failed: {response.status_code}")
            raise upstream_error_from_response(response, f"Livepeer {what} failed", self.provider)
        return parse_json(response, self.provider)

    # ── Asset store ──────────────────────────────────────────────────────────

    async def request_upload(self, name: str) -> UploadTarget:
        """
        Request a direct upload slot.

        Raises:
            UpstreamError: If the request fails or the response lacks URL/asset id
        """
        data = await self._call("POST", "/asset/request-upload", "request-upload", json={"name": name})

        asset = _as_dict(data.get("asset"))
        upload_url = _first(data.get("url"), asset.get("url"))
        asset_id = _first(asset.get("id"), data.get("assetId"), data.get("id"))
        tus_endpoint = _as_dict(data.get("tus")).get("endpoint") or data.get("tusEndpoint")

        if not upload_url or not asset_id:
            raise UpstreamError(
                "Livepeer request-upload response missing url or asset id",
                response_body=str(data)[:500],
                provider=self.provider,
            )

        logger.debug(f"Upload slot for '{name}': asset_id={asset_id}")
        return UploadTarget(upload_url=upload_url, asset_id=asset_id, tus_endpoint=tus_endpoint)

    async def put_bytes(self, upload_url: str, data: bytes, content_type: str) -> None:
        """
        Upload raw bytes to a slot returned by request_upload.

        Raises:
            UpstreamError: On non-2xx status
        """
        response = await self._request(
            "PUT",
            upload_url,
            content=data,
            headers={"Content-Type": content_type},
        )
        if response.is_error:
            logger.error(f"Livepeer upload failed: {response.status_code}")
            raise upstream_error_from_response(response, "Livepeer upload failed", self.provider)

        logger.info(f"Uploaded {len(data)} bytes ({content_type})")

    async def get_asset_status(self, asset_id: str) -> AssetStatus:
        """
        Read the current state of an asset.

        Raises:
            UpstreamError: If the status query fails
        """
        data = await self._call("GET", f"/asset/{asset_id}", "asset status")
        return self.parse_asset_status(data)

    @staticmethod
    def parse_asset_status(data: dict) -> AssetStatus:
        """Normalize an asset record into an AssetStatus."""
        status = data.get("status")
        status_dict = _as_dict(status)
        raw_phase = _first(
            status_dict.get("phase"),
            status if isinstance(status, str) else None,
            data.get("phase"),
        )

        files = data.get("files") if isinstance(data.get("files"), list) else []
        first_file = _as_dict(files[0]) if files else {}
        download_url = _first(
            data.get("downloadUrl"),
            data.get("download_url"),
            first_file.get("downloadUrl"),
        )

        progress = status_dict.get("progress")
        error = _first(status_dict.get("errorMessage"), data.get("error"))

        return AssetStatus(
            phase=AssetPhase.from_remote(raw_phase),
            download_url=download_url,
            playback_id=data.get("playbackId"),
            progress=float(progress) if isinstance(progress, (int, float)) else None,
            error=str(error) if error else None,
        )

    # ── Clips ────────────────────────────────────────────────────────────────

    async def create_clip(
        self,
        playback_id: str,
        window: ClipWindow | None = None,
        session_id: str | None = None,
    ) -> RemoteAssetHandle:
        """
        Create a clip asset from a live session.

        With a window, the clip is cut by timestamps. Without one, the
        request identifies the segment by session id only.

        Args:
            playback_id: Live session playback id
            window: Timestamp window (epoch ms)
            session_id: Session id for identity-only clipping

        Returns:
            Handle in the processing phase

        Raises:
            UpstreamError: If the request fails or no asset id is returned
        """
        body: dict[str, Any] = {
            "playbackId": playback_id,
            "name": f"Brewdream Clip {datetime.now(timezone.utc).isoformat()}",
        }
        if window is not None:
            body["startTime"] = window.start_ms
            body["endTime"] = window.end_ms
        else:
            body["sessionId"] = session_id or playback_id

        data = await self._call("POST", "/clip", "clip", json=body)

        asset = _as_dict(data.get("asset"))
        asset_id = _first(asset.get("id"), data.get("assetId"), data.get("id"))
        if not asset_id:
            raise UpstreamError(
                "Livepeer clip response missing asset id",
                response_body=str(data)[:500],
                provider=self.provider,
            )

        logger.info(f"Clip requested: asset_id={asset_id}, playback_id={playback_id}")
        return RemoteAssetHandle(
            asset_id=asset_id,
            playback_id=_first(asset.get("playbackId"), data.get("playbackId")),
        )

    # ── Image-to-image ───────────────────────────────────────────────────────

    async def image_to_image(
        self,
        prompt: str,
        image: str,
        model_id: str,
        strength: float,
        seed: int | None = None,
        guidance_scale: float = 7.5,
        num_inference_steps: int = 30,
    ) -> dict:
        """
        Run diffusion image-to-image.

        Args:
            prompt: Full diffusion prompt
            image: Source image as URL or data URL
            model_id: Diffusion model
            strength: How far to move from the source image (0-1)
            seed: Optional seed

        Returns:
            Raw response body

        Raises:
            UpstreamError: On non-2xx status or malformed body
        """
        body: dict[str, Any] = {
            "prompt": prompt,
            "image": image,
            "model_id": model_id,
            "strength": strength,
            "guidance_scale": guidance_scale,
            "num_inference_steps": num_inference_steps,
        }
        if seed is not None:
            body["seed"] = seed

        logger.debug(f"Image-to-image: model={model_id}, strength={strength}, seed={seed}")
        return await self._call("POST", self.image_to_image_url, "image-to-image", json=body)
