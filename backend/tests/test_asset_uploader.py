"""Tests for AssetUploader."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from brewdream.config import PollingPolicy
from brewdream.models.schemas import AssetPhase, UploadTarget
from brewdream.services.asset_poller import AssetFailedError, AssetReadinessPoller
from brewdream.services.asset_uploader import AssetUploader
from brewdream.services.clients.base import UpstreamError
from tests.helpers import RecordingSleep, failed, processing, ready

POLICY = PollingPolicy(interval_ms=2000, max_attempts=120)


def _store(statuses) -> AsyncMock:
    store = AsyncMock()
    store.request_upload.return_value = UploadTarget(upload_url="https://up.test/1", asset_id="rec-1")
    store.get_asset_status.side_effect = statuses
    return store


class TestAssetUploader:
    @pytest.mark.asyncio
    async def test_upload_then_poll(self, sleep: RecordingSleep) -> None:
        store = _store([processing(), ready("https://cdn.test/rec.mp4")])
        uploader = AssetUploader(store, AssetReadinessPoller(store, sleep=sleep))

        handle = await uploader.upload(b"webm", "video/webm", "Recording", POLICY)

        assert handle.phase == AssetPhase.READY
        assert handle.asset_id == "rec-1"
        store.request_upload.assert_awaited_once_with("Recording")
        store.put_bytes.assert_awaited_once_with("https://up.test/1", b"webm", "video/webm")
        assert store.get_asset_status.await_count == 2

    @pytest.mark.asyncio
    async def test_put_failure_skips_polling(self, sleep: RecordingSleep) -> None:
        store = _store([ready()])
        store.put_bytes.side_effect = UpstreamError("upload failed", status_code=500)
        uploader = AssetUploader(store, AssetReadinessPoller(store, sleep=sleep))

        with pytest.raises(UpstreamError):
            await uploader.upload(b"x", "image/png", "snap", POLICY)
        store.get_asset_status.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_asset(self, sleep: RecordingSleep) -> None:
        store = _store([failed()])
        uploader = AssetUploader(store, AssetReadinessPoller(store, sleep=sleep))

        with pytest.raises(AssetFailedError):
            await uploader.upload(b"x", "image/png", "snap", POLICY)

    @pytest.mark.asyncio
    async def test_empty_payload_rejected(self, sleep: RecordingSleep) -> None:
        store = _store([ready()])
        with pytest.raises(ValueError):
            await AssetUploader(store, AssetReadinessPoller(store, sleep=sleep)).upload(
                b"", "image/png", "snap", POLICY
            )
        store.request_upload.assert_not_called()
