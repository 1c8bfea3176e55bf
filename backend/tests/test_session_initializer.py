"""Tests for RemoteSessionInitializer and SessionLauncher."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from brewdream.models.schemas import RemoteSessionHandle, StreamDiffusionParams
from brewdream.services.clients.base import SessionNotReadyError, UpstreamError
from brewdream.services.session_initializer import RemoteSessionInitializer, SessionLauncher
from tests.helpers import RecordingSleep

PARAMS = StreamDiffusionParams(prompt="cyberpunk alley with glowing particles")


def _not_ready() -> SessionNotReadyError:
    return SessionNotReadyError("starting", status_code=409, provider="daydream")


def _provider(*outcomes) -> AsyncMock:
    provider = AsyncMock()
    provider.update_params.side_effect = list(outcomes)
    return provider


class TestPushConfiguration:
    @pytest.mark.asyncio
    async def test_retries_until_accepted(self, sleep: RecordingSleep) -> None:
        provider = _provider(_not_ready(), _not_ready(), {})
        session = RemoteSessionHandle(id="s1")
        initializer = RemoteSessionInitializer(provider, retry_delay_ms=2000, sleep=sleep)

        await initializer.push_configuration(session, PARAMS, max_attempts=10)

        assert provider.update_params.await_count == 3
        assert session.ready is True
        # first attempt is immediate
        assert sleep.calls == [2.0, 2.0]

    @pytest.mark.asyncio
    async def test_sends_streamdiffusion_payload(self, sleep: RecordingSleep) -> None:
        provider = _provider({})
        await RemoteSessionInitializer(provider, sleep=sleep).push_configuration(
            RemoteSessionHandle(id="s1"), PARAMS
        )

        stream_id, payload = provider.update_params.call_args.args
        assert stream_id == "s1"
        assert payload["model_id"] == "streamdiffusion"
        assert payload["pipeline"] == "live-video-to-video"
        assert payload["params"]["prompt"] == PARAMS.prompt
        assert payload["params"]["t_index_list"] == [6, 12, 18]
        assert len(payload["params"]["controlnets"]) == 5

    @pytest.mark.asyncio
    async def test_other_error_stops_without_raising(self, sleep: RecordingSleep) -> None:
        provider = _provider(_not_ready(), UpstreamError("bad params", status_code=422), {})
        session = RemoteSessionHandle(id="s1")

        await RemoteSessionInitializer(provider, sleep=sleep).push_configuration(session, PARAMS, 10)

        assert provider.update_params.await_count == 2
        assert session.ready is False

    @pytest.mark.asyncio
    async def test_unexpected_exception_does_not_escape(self, sleep: RecordingSleep) -> None:
        provider = _provider(RuntimeError("socket closed"))
        session = RemoteSessionHandle(id="s1")

        await RemoteSessionInitializer(provider, sleep=sleep).push_configuration(session, PARAMS, 3)

        assert session.ready is False

    @pytest.mark.asyncio
    async def test_exhaustion_is_not_an_error(self, sleep: RecordingSleep) -> None:
        provider = _provider(*[_not_ready() for _ in range(4)])
        session = RemoteSessionHandle(id="s1")

        await RemoteSessionInitializer(provider, sleep=sleep).push_configuration(session, PARAMS, 4)

        assert provider.update_params.await_count == 4
        assert len(sleep.calls) == 3
        assert session.ready is False


class TestSessionLauncher:
    @pytest.mark.asyncio
    async def test_returns_before_configuration_completes(self) -> None:
        gate = asyncio.Event()

        async def slow_update(stream_id: str, payload: dict) -> dict:
            await gate.wait()
            return {}

        provider = AsyncMock()
        provider.create_stream.return_value = RemoteSessionHandle(
            id="s1", output_playback_id="pb1", whip_url="https://whip.test/s1"
        )
        provider.update_params.side_effect = slow_update

        launcher = SessionLauncher(provider)
        session = await launcher.start_session("pip_test", PARAMS)

        assert session.id == "s1"
        assert session.whip_url == "https://whip.test/s1"
        assert session.ready is False
        assert len(launcher.pending_tasks) == 1

        gate.set()
        await launcher.wait_pending()

        assert session.ready is True
        assert launcher.pending_tasks == set()
        provider.create_stream.assert_awaited_once_with("pip_test")

    @pytest.mark.asyncio
    async def test_creation_failure_raises(self) -> None:
        provider = AsyncMock()
        provider.create_stream.side_effect = UpstreamError("quota", status_code=429)

        with pytest.raises(UpstreamError):
            await SessionLauncher(provider).start_session("pip_test", PARAMS)
        provider.update_params.assert_not_called()
