"""Test doubles shared across test modules."""

from __future__ import annotations

from brewdream.models.schemas import AssetPhase, AssetStatus, TransformOptions
from brewdream.services.providers.base import ProviderOutput

# PNG signature followed by filler; enough for content sniffing
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class ScriptedStatusSource:
    """Asset store returning a fixed sequence of statuses (last one repeats)."""

    def __init__(self, statuses: list[AssetStatus | Exception]) -> None:
        self.statuses = statuses
        self.calls = 0

    async def get_asset_status(self, asset_id: str) -> AssetStatus:
        status = self.statuses[min(self.calls, len(self.statuses) - 1)]
        self.calls += 1
        if isinstance(status, Exception):
            raise status
        return status


class FakeProvider:
    """Image provider that succeeds with a fixed reference or raises."""

    def __init__(self, name: str, reference: str | None = None, error: Exception | None = None) -> None:
        self.name = name
        self.reference = reference
        self.error = error
        self.calls: list[tuple[bytes, str, TransformOptions]] = []

    async def attempt_transform(self, image: bytes, prompt: str, options: TransformOptions) -> ProviderOutput:
        self.calls.append((image, prompt, options))
        if self.error is not None:
            raise self.error
        return ProviderOutput(image_reference=self.reference or f"https://{self.name}.test/out.png")


def processing() -> AssetStatus:
    return AssetStatus(phase=AssetPhase.PROCESSING)


def ready(url: str = "https://cdn.test/asset.png") -> AssetStatus:
    return AssetStatus(phase=AssetPhase.READY, download_url=url, playback_id="pb-1")


def failed(reason: str = "transcode error") -> AssetStatus:
    return AssetStatus(phase=AssetPhase.FAILED, error=reason)
