"""
Bounded polling for asynchronously processed remote assets.
"""

import asyncio
import logging
from typing import Awaitable, Callable

from brewdream.config import PollingPolicy
from brewdream.models.schemas import AssetPhase, AssetStatus, RemoteAssetHandle
from brewdream.services.clients.base import AssetStatusSource

logger = logging.getLogger(__name__)

# Signature: (attempt, status) -> None
PollCallback = Callable[[int, AssetStatus], Awaitable[None]]


class AssetPollError(Exception):
    """Base for polling outcomes that are not a usable asset."""

    def __init__(self, message: str, asset_id: str, attempts: int):
        self.asset_id = asset_id
        self.attempts = attempts
        super().__init__(message)


class AssetTimeoutError(AssetPollError):
    """Asset did not become ready within the attempt budget."""

    pass


class AssetFailedError(AssetPollError):
    """Asset store reported a terminal failure."""

    def __init__(self, message: str, asset_id: str, attempts: int, reason: str | None = None):
        super().__init__(message, asset_id, attempts)
        self.reason = reason


class AssetReadinessPoller:
    """
    Polls an asset store until an asset is ready, failed or out of attempts.

    Example:
        poller = AssetReadinessPoller(livepeer_client)
        handle = await poller.await_ready(handle, poll_interval_ms=2000, max_attempts=30)
        print(handle.download_url)
    """

    def __init__(
        self,
        status_source: AssetStatusSource,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            status_source: Anything with get_asset_status(asset_id)
            sleep: Awaitable sleep in seconds (replaceable in tests)
        """
        self.status_source = status_source
        self._sleep = sleep

    async def await_ready(
        self,
        handle: RemoteAssetHandle,
        poll_interval_ms: int,
        max_attempts: int,
        on_status: PollCallback | None = None,
    ) -> RemoteAssetHandle:
        """
        Wait for an asset to become ready.

        Makes at most max_attempts status queries and sleeps only between
        them. A "ready" report without a download URL counts as still
        processing.

        Args:
            handle: Asset to watch (updated in place)
            poll_interval_ms: Delay between queries
            max_attempts: Query budget (>= 1)
            on_status: Optional callback for every observation

        Returns:
            The same handle, now ready with a download URL

        Raises:
            AssetFailedError: Asset store reported failure
            AssetTimeoutError: Budget exhausted
            UpstreamError: A status query failed
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        for attempt in range(1, max_attempts + 1):
            status = await self.status_source.get_asset_status(handle.asset_id)
            handle.observe(status)

            if on_status is not None:
                try:
                    await on_status(attempt, status)
                except Exception as e:
                    logger.warning(f"Poll callback error: {e}")

            if handle.phase == AssetPhase.READY:
                logger.info(f"Asset {handle.asset_id} ready after {attempt} poll(s)")
                return handle

            if handle.phase == AssetPhase.FAILED:
                logger.error(f"Asset {handle.asset_id} failed: {handle.error or 'no reason given'}")
                raise AssetFailedError(
                    f"Asset {handle.asset_id} processing failed",
                    asset_id=handle.asset_id,
                    attempts=attempt,
                    reason=handle.error,
                )

            logger.debug(f"Asset {handle.asset_id} processing ({attempt}/{max_attempts})")
            if attempt < max_attempts:
                await self._sleep(poll_interval_ms / 1000)

        logger.warning(f"Asset {handle.asset_id} not ready after {max_attempts} polls")
        raise AssetTimeoutError(
            f"Asset {handle.asset_id} not ready after {max_attempts} attempts",
            asset_id=handle.asset_id,
            attempts=max_attempts,
        )

    async def await_with_policy(
        self,
        handle: RemoteAssetHandle,
        policy: PollingPolicy,
        on_status: PollCallback | None = None,
    ) -> RemoteAssetHandle:
        """Same as await_ready with interval and budget taken from a policy."""
        return await self.await_ready(
            handle,
            poll_interval_ms=policy.interval_ms,
            max_attempts=policy.max_attempts,
            on_status=on_status,
        )
