from __future__ import annotations

from typing import Any

from homeassistant.components.cover import ATTR_POSITION, CoverEntity, CoverEntityFeature
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.entity_platform import AddEntitiesCallback
from homeassistant.util import slugify

from .const import DOMAIN, MANUFACTURER, MODEL
from .controller import BlindController, CommunicationFailure
from .models import Position


def blind_unique_id(hub_id: str, name: str) -> str:
    return f"{hub_id}-{slugify(name)}"


async def async_setup_entry(
    hass: HomeAssistant, entry: ConfigEntry, async_add_entities: AddEntitiesCallback
) -> None:
    data = hass.data[DOMAIN][entry.entry_id]
    hub_id: str = data["api"].hub.hub_id
    controllers: list[BlindController] = data["controllers"]

    async_add_entities(InteoBlindCover(controller, hub_id) for controller in controllers)


class InteoBlindCover(CoverEntity):
    """
    A Somfy RTS blind driven through Neocontrol scenes.

    Position is binary and assumed: 0 = closed, 100 = open, 50 = unknown.
    The blind is never reported as moving.
    """

    _attr_has_entity_name = True
    _attr_name = None
    _attr_assumed_state = True
    _attr_should_poll = False
    _attr_supported_features = (
        CoverEntityFeature.OPEN | CoverEntityFeature.CLOSE | CoverEntityFeature.SET_POSITION
    )

    def __init__(self, controller: BlindController, hub_id: str) -> None:
        self._controller = controller
        config = controller.config

        self._attr_unique_id = blind_unique_id(hub_id, config.name)
        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, self._attr_unique_id)},
            name=config.name,
            manufacturer=MANUFACTURER,
            model=MODEL,
            serial_number=f"{config.open_scene}-{config.close_scene}",
        )

    async def async_added_to_hass(self) -> None:
        await super().async_added_to_hass()
        self.async_on_remove(self._controller.add_listener(self._handle_state_update))

    @callback
    def _handle_state_update(self, current: Position, target: int) -> None:
        self.async_write_ha_state()

    @property
    def current_cover_position(self) -> int | None:
        return int(self._controller.current_position)

    @property
    def is_closed(self) -> bool | None:
        current = self._controller.current_position
        if current is Position.UNKNOWN:
            return None
        return current is Position.CLOSED

    @property
    def is_opening(self) -> bool:
        return False

    @property
    def is_closing(self) -> bool:
        return False

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        config = self._controller.config
        return {
            "target_position": int(self._controller.target_position),
            "open_scene": config.open_scene,
            "close_scene": config.close_scene,
        }

    async def _request(self, position: int) -> None:
        try:
            await self._controller.request_position(position)
        except CommunicationFailure as e:
            raise HomeAssistantError(str(e)) from e

    async def async_open_cover(self, **kwargs: Any) -> None:
        await self._request(Position.OPEN)

    async def async_close_cover(self, **kwargs: Any) -> None:
        await self._request(Position.CLOSED)

    async def async_set_cover_position(self, **kwargs: Any) -> None:
        position = kwargs.get(ATTR_POSITION)
        if position is None:
            return
        try:
            position = int(position)
        except (TypeError, ValueError):
            return
        await self._request(max(0, min(100, position)))
