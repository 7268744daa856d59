from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any

from .const import (
    COMMAND_PATH,
    CONF_CLOSE_SCENE,
    CONF_NAME,
    CONF_OPEN_SCENE,
    DEFAULT_BACKOFF_BASE_SEC,
    DEFAULT_REQUEST_TIMEOUT_MS,
    DEFAULT_RETRY_ATTEMPTS,
)


class Position(IntEnum):
    """The only three positions a feedback-free RTS blind can be in (0-100 scale)."""

    CLOSED = 0
    UNKNOWN = 50
    OPEN = 100

    @classmethod
    def classify(cls, value: float) -> Position:
        if value > cls.UNKNOWN:
            return cls.OPEN
        if value < cls.UNKNOWN:
            return cls.CLOSED
        return cls.UNKNOWN


def normalize_hub_id(hub_mac: str) -> str:
    """'44:D5:F2:C1:03:AC' -> '44D5F2C103AC'"""
    return hub_mac.strip().replace(":", "")


@dataclass(frozen=True)
class HubAddress:
    base_url: str
    hub_id: str

    @classmethod
    def create(cls, base_url: str, hub_mac: str) -> HubAddress:
        return cls(base_url=base_url.rstrip("/"), hub_id=normalize_hub_id(hub_mac))

    def command_url(self, scene_id: int) -> str:
        return self.base_url + COMMAND_PATH.format(hub_id=self.hub_id, scene_id=scene_id)


@dataclass(frozen=True)
class RetryPolicy:
    """Attempts, per-attempt timeout and backoff base. Times are in seconds."""

    max_attempts: int = DEFAULT_RETRY_ATTEMPTS
    timeout: float = DEFAULT_REQUEST_TIMEOUT_MS / 1000.0
    base_delay: float = DEFAULT_BACKOFF_BASE_SEC

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {self.timeout}")
        if self.base_delay < 0:
            raise ValueError(f"base_delay must be >= 0, got {self.base_delay}")

    @classmethod
    def from_config(
        cls,
        retry_attempts: int = DEFAULT_RETRY_ATTEMPTS,
        request_timeout_ms: int = DEFAULT_REQUEST_TIMEOUT_MS,
    ) -> RetryPolicy:
        return cls(max_attempts=int(retry_attempts), timeout=int(request_timeout_ms) / 1000.0)

    def delay_before(self, attempt: int) -> float:
        # attempt 1 is immediate; then base, 2*base, 4*base, ...
        if attempt <= 1:
            return 0.0
        return self.base_delay * 2 ** (attempt - 2)


@dataclass(frozen=True)
class SceneCommand:
    scene_id: int

    def __post_init__(self) -> None:
        if self.scene_id < 0:
            raise ValueError(f"scene id must be >= 0, got {self.scene_id}")


@dataclass(frozen=True)
class BlindConfig:
    """
    One configured blind.

    Scene numbers are zero-indexed by creation order in the Inteo app,
    not by the order the app displays them in.
    """

    name: str
    open_scene: int
    close_scene: int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BlindConfig:
        return cls(
            name=str(data[CONF_NAME]),
            open_scene=SceneCommand(int(data[CONF_OPEN_SCENE])).scene_id,
            close_scene=SceneCommand(int(data[CONF_CLOSE_SCENE])).scene_id,
        )


@dataclass
class BlindState:
    current: Position = Position.UNKNOWN
    target: int = Position.UNKNOWN
    executing: bool = False
