from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

from .api import NeocontrolApiError
from .models import BlindConfig, BlindState, Position

_LOGGER = logging.getLogger(__name__)

StateListener = Callable[[Position, int], None]


class SceneExecutor(Protocol):
    def execute_scene(self, scene_id: int) -> Awaitable[None]: ...


class CommunicationFailure(Exception):
    """A command could not be confirmed; the blind position is now unknown."""


class BlindController:
    """
    Binary open/close state machine for one Somfy RTS blind.

    RTS motors report nothing back, so the position is only ever CLOSED, OPEN
    or UNKNOWN. It starts UNKNOWN and falls back to UNKNOWN whenever a command
    fails, because the motor may or may not have moved.

    Only one command runs at a time. Requests arriving while one is in flight
    are dropped, not queued.
    """

    def __init__(self, config: BlindConfig, api: SceneExecutor) -> None:
        self._config = config
        self._api = api
        self._state = BlindState()
        self._lock = asyncio.Lock()
        self._listeners: list[StateListener] = []

    @property
    def config(self) -> BlindConfig:
        return self._config

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def current_position(self) -> Position:
        return self._state.current

    @property
    def target_position(self) -> int:
        return self._state.target

    @property
    def is_executing(self) -> bool:
        return self._state.executing

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _publish(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._state.current, self._state.target)
            except Exception:
                _LOGGER.exception("%s: State listener failed", self.name)

    async def open(self) -> None:
        await self.request_position(Position.OPEN)

    async def close(self) -> None:
        await self.request_position(Position.CLOSED)

    async def request_position(self, target: int) -> None:
        position = Position.classify(target)
        if position is Position.UNKNOWN:
            _LOGGER.debug("%s: Ignoring target position 50 (unknown)", self.name)
            return

        # locked() and acquire() with no await in between: a second caller is dropped here
        if self._lock.locked():
            _LOGGER.debug("%s: Command already in progress, ignoring", self.name)
            return

        try:
            async with self._lock:
                self._state.executing = True
                self._state.target = target
                try:
                    await self._execute(position)
                except NeocontrolApiError as e:
                    self._state.current = Position.UNKNOWN
                    self._state.target = Position.UNKNOWN
                    _LOGGER.error("%s: Command failed, reverting to unknown: %s", self.name, e)
                    raise CommunicationFailure(f"{self.name}: communication failed: {e}") from e
                except BaseException:
                    self._state.current = Position.UNKNOWN
                    self._state.target = Position.UNKNOWN
                    raise
                else:
                    self._state.current = position
                    self._state.target = position
                    _LOGGER.debug("%s: Command succeeded, position now %s%%", self.name, int(position))
                finally:
                    self._state.executing = False
        finally:
            self._publish()

    async def _execute(self, position: Position) -> None:
        if position is Position.OPEN:
            _LOGGER.info("%s: Opening (scene %s)", self.name, self._config.open_scene)
            await self._api.execute_scene(self._config.open_scene)
        else:
            _LOGGER.info("%s: Closing (scene %s)", self.name, self._config.close_scene)
            await self._api.execute_scene(self._config.close_scene)
