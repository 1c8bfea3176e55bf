"""
Upload bytes to the durable asset store and wait until they are playable.
"""

import logging

from brewdream.config import PollingPolicy
from brewdream.models.schemas import RemoteAssetHandle
from brewdream.services.asset_poller import AssetReadinessPoller
from brewdream.services.clients.base import AssetStore

logger = logging.getLogger(__name__)


class AssetUploader:
    """
    request upload slot -> PUT bytes -> poll until ready.

    Used for transformed images (image policy) and session
    recordings (recording policy).

    Example:
        uploader = AssetUploader(livepeer_client, poller)
        handle = await uploader.upload(png, "image/png", "Transform.png", policies["image"])
    """

    def __init__(self, store: AssetStore, poller: AssetReadinessPoller):
        self.store = store
        self.poller = poller

    async def upload(
        self,
        data: bytes,
        content_type: str,
        name: str,
        policy: PollingPolicy,
    ) -> RemoteAssetHandle:
        """
        Upload bytes and await readiness.

        Args:
            data: Payload
            content_type: MIME type for the PUT
            name: Asset display name
            policy: Polling interval and budget

        Returns:
            Ready handle with download URL

        Raises:
            UpstreamError: Upload slot or PUT failed
            AssetFailedError, AssetTimeoutError: Asset never became ready
        """
        if not data:
            raise ValueError("Refusing to upload an empty payload")

        target = await self.store.request_upload(name)
        await self.store.put_bytes(target.upload_url, data, content_type)
        logger.info(f"Uploaded '{name}' as asset {target.asset_id}, awaiting readiness")

        handle = RemoteAssetHandle(asset_id=target.asset_id)
        return await self.poller.await_with_policy(handle, policy)
