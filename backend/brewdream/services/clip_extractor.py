"""
Clip extraction from a live session.

Cuts the most recent segment of a session into a standalone asset
and waits until it is playable.
"""

import logging
import time
from typing import Callable

from brewdream.config import PollingPolicy
from brewdream.models.schemas import ClipWindow, RemoteAssetHandle
from brewdream.services.asset_poller import AssetReadinessPoller
from brewdream.services.clients.base import ClipProvider, UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_MS = 2000


def _epoch_ms() -> int:
    return int(time.time() * 1000)


class ClipExtractionError(Exception):
    """
    Both clip strategies were rejected.

    Attributes:
        playback_id: Session playback id
        primary_error: Failure of the timestamp request
        secondary_error: Failure of the identity-only request
    """

    def __init__(
        self,
        playback_id: str,
        primary_error: Exception,
        secondary_error: Exception,
    ):
        self.playback_id = playback_id
        self.primary_error = primary_error
        self.secondary_error = secondary_error
        super().__init__(f"Clip extraction failed for {playback_id}: {primary_error}")

    @property
    def response_body(self) -> str | None:
        return getattr(self.primary_error, "response_body", None)


class ClipExtractor:
    """
    Requests a clip by timestamps, falls back to session identity,
    then polls the resulting asset.

    Example:
        extractor = ClipExtractor(livepeer_client, poller, policies["clip"])
        handle = await extractor.extract_clip("abcd1234", duration_ms=10_000)
    """

    def __init__(
        self,
        clip_provider: ClipProvider,
        poller: AssetReadinessPoller,
        policy: PollingPolicy,
        buffer_ms: int = DEFAULT_BUFFER_MS,
        now_ms: Callable[[], int] = _epoch_ms,
    ):
        self.clip_provider = clip_provider
        self.poller = poller
        self.policy = policy
        self.buffer_ms = buffer_ms
        self._now_ms = now_ms

    def clip_window(self, duration_ms: int) -> ClipWindow:
        """Window of duration_ms ending buffer_ms before now."""
        return ClipWindow.ending_before(self._now_ms(), duration_ms, self.buffer_ms)

    async def extract_clip(self, playback_id: str, duration_ms: int) -> RemoteAssetHandle:
        """
        Create a clip of the last duration_ms of a session.

        Args:
            playback_id: Live session playback id
            duration_ms: Clip length

        Returns:
            Ready clip handle with download URL

        Raises:
            ClipExtractionError: Both clip requests were rejected
            AssetFailedError, AssetTimeoutError: Clip never became ready
            UpstreamError: A status query failed while polling
        """
        if duration_ms <= 0:
            raise ValueError("duration_ms must be positive")

        window = self.clip_window(duration_ms)
        logger.info(
            f"Clipping {playback_id}: {window.start_ms}..{window.end_ms} ({duration_ms} ms)"
        )

        try:
            handle = await self.clip_provider.create_clip(playback_id, window=window)
        except UpstreamError as primary_error:
            logger.warning(f"Timestamp clip failed, retrying by session id: {primary_error}")
            try:
                handle = await self.clip_provider.create_clip(
                    playback_id, session_id=playback_id
                )
            except UpstreamError as secondary_error:
                logger.error(f"Session clip failed too: {secondary_error}")
                raise ClipExtractionError(
                    playback_id, primary_error, secondary_error
                ) from primary_error

        return await self.poller.await_with_policy(handle, self.policy)
