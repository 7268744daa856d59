from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import aiohttp

from .models import HubAddress, RetryPolicy, SceneCommand

_LOGGER = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class NeocontrolApiError(Exception):
    """Base class for relay/transport errors."""


class TransportError(NeocontrolApiError):
    """Connection-level failure."""


class RequestTimeoutError(NeocontrolApiError):
    """A single attempt exceeded its deadline."""


class StatusError(NeocontrolApiError):
    def __init__(self, status: int, reason: str | None = None) -> None:
        super().__init__(f"HTTP {status}: {reason}" if reason else f"HTTP {status}")
        self.status = status


class RetryExhaustedError(NeocontrolApiError):
    def __init__(self, scene_id: int, attempts: int, last_error: Exception | None) -> None:
        reason = str(last_error) if last_error is not None else "unknown error"
        super().__init__(f"Failed to execute scene {scene_id} after {attempts} attempts: {reason}")
        self.scene_id = scene_id
        self.attempts = attempts
        self.last_error = last_error


@dataclass(frozen=True)
class RetryResult:
    attempts: int
    error: NeocontrolApiError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def async_retry(
    operation: Callable[[int], Awaitable[None]],
    policy: RetryPolicy,
    sleep: Sleep = asyncio.sleep,
) -> RetryResult:
    """
    Run `operation(attempt)` until it succeeds or `policy.max_attempts` is used up.

    Only NeocontrolApiError counts as a failed attempt; anything else propagates.
    Waits policy.delay_before(n) before attempt n, never after the last one.
    """
    last_error: NeocontrolApiError | None = None
    for attempt in range(1, policy.max_attempts + 1):
        delay = policy.delay_before(attempt)
        if delay > 0:
            await sleep(delay)
        try:
            await operation(attempt)
        except NeocontrolApiError as e:
            last_error = e
            continue
        return RetryResult(attempts=attempt)
    return RetryResult(attempts=policy.max_attempts, error=last_error)


class NeocontrolApi:
    """Fire-and-forget scene commands through the Neocontrol cloud relay."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        hub: HubAddress,
        policy: RetryPolicy | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._session = session
        self._hub = hub
        self._policy = policy or RetryPolicy()
        self._timeout = aiohttp.ClientTimeout(total=self._policy.timeout)
        self._sleep = sleep

    @property
    def hub(self) -> HubAddress:
        return self._hub

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def _get(self, url: str) -> None:
        try:
            async with self._session.get(
                url,
                headers={"Content-Type": "application/json"},
                timeout=self._timeout,
            ) as resp:
                if not 200 <= resp.status < 300:
                    raise StatusError(resp.status, resp.reason)
        except asyncio.TimeoutError as e:
            raise RequestTimeoutError(
                f"Request timeout after {int(self._policy.timeout * 1000)}ms"
            ) from e
        except aiohttp.ClientError as e:
            raise TransportError(str(e) or type(e).__name__) from e

    async def execute_scene(self, scene_id: int) -> None:
        """Execute a scene on the hub, retrying with exponential backoff.

        Raises RetryExhaustedError once every attempt has failed.
        """
        command = SceneCommand(scene_id)
        url = self._hub.command_url(command.scene_id)
        max_attempts = self._policy.max_attempts

        async def attempt_once(attempt: int) -> None:
            try:
                await self._get(url)
            except NeocontrolApiError as e:
                _LOGGER.warning(
                    "Scene %s execution failed (attempt %s/%s): %s",
                    command.scene_id,
                    attempt,
                    max_attempts,
                    e,
                )
                raise
            _LOGGER.debug("Scene %s executed successfully on attempt %s", command.scene_id, attempt)

        result = await async_retry(attempt_once, self._policy, self._sleep)
        if not result.ok:
            raise RetryExhaustedError(command.scene_id, result.attempts, result.error) from result.error
