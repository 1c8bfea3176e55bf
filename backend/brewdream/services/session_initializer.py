"""
Live session start-up: create a stream and push its configuration.

A new session needs a while before it accepts configuration. The push
is retried in the background so that the caller gets the session
handle (and can start publishing video) right away.
"""

import asyncio
import logging
from typing import Awaitable, Callable

from brewdream.models.schemas import RemoteSessionHandle, StreamDiffusionParams
from brewdream.services.clients.base import SessionNotReadyError, SessionProvider

logger = logging.getLogger(__name__)

DEFAULT_RETRY_DELAY_MS = 2000
DEFAULT_MAX_ATTEMPTS = 10


class RemoteSessionInitializer:
    """
    Pushes configuration to a session until it is accepted.

    push_configuration() never raises: it runs detached, so every
    outcome is reported through logging and the handle's ready flag.
    """

    def __init__(
        self,
        provider: SessionProvider,
        retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.provider = provider
        self.retry_delay_ms = retry_delay_ms
        self._sleep = sleep

    async def push_configuration(
        self,
        session: RemoteSessionHandle,
        params: StreamDiffusionParams,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        """
        Retry the configuration push while the session is not ready.

        The first attempt is immediate, later ones wait retry_delay_ms.
        Any error other than SessionNotReadyError ends the loop.

        Args:
            session: Session to configure (ready set to True on success)
            params: StreamDiffusion configuration
            max_attempts: Upper bound on pushes
        """
        payload = params.to_payload()

        for attempt in range(max_attempts):
            if attempt > 0:
                await self._sleep(self.retry_delay_ms / 1000)

            try:
                await self.provider.update_params(session.id, payload)
            except SessionNotReadyError:
                logger.debug(
                    f"Session {session.id} not ready (attempt {attempt + 1}/{max_attempts})"
                )
                continue
            except Exception as e:
                logger.error(f"Session {session.id} configuration rejected: {e}")
                return

            session.ready = True
            logger.info(f"Session {session.id} configured on attempt {attempt + 1}")
            return

        logger.warning(
            f"Session {session.id} still not ready after {max_attempts} attempts, "
            f"configuration not applied"
        )


class SessionLauncher:
    """
    Creates sessions and starts their configuration push in the background.

    Example:
        launcher = SessionLauncher(daydream_client)
        session = await launcher.start_session("pip_qpUgXycjWF6YMeSL", params)
        # session.whip_url is usable now; session.ready flips later
    """

    def __init__(
        self,
        provider: SessionProvider,
        initializer: RemoteSessionInitializer | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ):
        self.provider = provider
        self.initializer = initializer or RemoteSessionInitializer(provider)
        self.max_attempts = max_attempts
        self._background_tasks: set[asyncio.Task] = set()

    @property
    def pending_tasks(self) -> set[asyncio.Task]:
        """Configuration pushes still running."""
        return set(self._background_tasks)

    async def start_session(
        self,
        pipeline_id: str,
        params: StreamDiffusionParams,
    ) -> RemoteSessionHandle:
        """
        Create a session and schedule its configuration.

        Returns as soon as the session exists; the push runs as a
        detached task.

        Raises:
            UpstreamError: Session creation failed
        """
        session = await self.provider.create_stream(pipeline_id)

        task = asyncio.create_task(
            self.initializer.push_configuration(session, params, self.max_attempts),
            name=f"configure-{session.id}",
        )
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

        logger.info(f"Session {session.id} started, configuration push scheduled")
        return session

    async def wait_pending(self) -> None:
        """Wait for scheduled configuration pushes (used on shutdown)."""
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks)
