from __future__ import annotations

import logging
from typing import Any

import voluptuous as vol

from homeassistant.config_entries import SOURCE_IMPORT, ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers import entity_registry as er
from homeassistant.helpers.aiohttp_client import async_get_clientsession
from homeassistant.helpers.typing import ConfigType
from homeassistant.util import slugify

from .api import NeocontrolApi
from .const import (
    CONF_ADVANCED,
    CONF_BASE_URL,
    CONF_BLINDS,
    CONF_CLOSE_SCENE,
    CONF_HUB_MAC,
    CONF_NAME,
    CONF_OPEN_SCENE,
    CONF_REQUEST_TIMEOUT,
    CONF_RETRY_ATTEMPTS,
    DEFAULT_BASE_URL,
    DEFAULT_REQUEST_TIMEOUT_MS,
    DEFAULT_RETRY_ATTEMPTS,
    DOMAIN,
    PLATFORMS,
)
from .controller import BlindController
from .cover import blind_unique_id
from .models import BlindConfig, HubAddress, RetryPolicy

_LOGGER = logging.getLogger(__name__)

SCENE_ID = vol.All(vol.Coerce(int), vol.Range(min=0))

BLIND_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_NAME): cv.string,
        vol.Required(CONF_OPEN_SCENE): SCENE_ID,
        vol.Required(CONF_CLOSE_SCENE): SCENE_ID,
    }
)


def _unique_blind_names(blinds: list[dict[str, Any]]) -> list[dict[str, Any]]:
    # names end up slugified in the entity unique id
    seen: set[str] = set()
    for blind in blinds:
        slug = slugify(blind[CONF_NAME])
        if slug in seen:
            raise vol.Invalid(f"blind name \"{blind[CONF_NAME]}\" collides with another blind")
        seen.add(slug)
    return blinds


ADVANCED_SCHEMA = vol.Schema(
    {
        vol.Optional(CONF_RETRY_ATTEMPTS, default=DEFAULT_RETRY_ATTEMPTS): vol.All(
            vol.Coerce(int), vol.Range(min=1, max=10)
        ),
        vol.Optional(CONF_REQUEST_TIMEOUT, default=DEFAULT_REQUEST_TIMEOUT_MS): vol.All(
            vol.Coerce(int), vol.Range(min=1000, max=30000)
        ),
    }
)

CONFIG_SCHEMA = vol.Schema(
    {
        DOMAIN: vol.Schema(
            {
                vol.Required(CONF_HUB_MAC): cv.string,
                vol.Optional(CONF_BASE_URL, default=DEFAULT_BASE_URL): cv.string,
                vol.Required(CONF_BLINDS): vol.All(
                    cv.ensure_list, vol.Length(min=1), [BLIND_SCHEMA], _unique_blind_names
                ),
                vol.Optional(CONF_ADVANCED, default={}): ADVANCED_SCHEMA,
            }
        )
    },
    extra=vol.ALLOW_EXTRA,
)


async def async_setup(hass: HomeAssistant, config: ConfigType) -> bool:
    hass.data.setdefault(DOMAIN, {})

    if DOMAIN not in config:
        return True

    conf = dict(config[DOMAIN])
    advanced = conf.pop(CONF_ADVANCED, {})
    conf.update(advanced)

    hass.async_create_task(
        hass.config_entries.flow.async_init(DOMAIN, context={"source": SOURCE_IMPORT}, data=conf)
    )
    return True


def _blinds_from_entry(entry: ConfigEntry) -> list[BlindConfig]:
    return [BlindConfig.from_dict(b) for b in entry.data.get(CONF_BLINDS, [])]


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    data: dict[str, Any] = entry.data

    hub = HubAddress.create(data.get(CONF_BASE_URL, DEFAULT_BASE_URL), data[CONF_HUB_MAC])
    policy = RetryPolicy.from_config(
        data.get(CONF_RETRY_ATTEMPTS, DEFAULT_RETRY_ATTEMPTS),
        data.get(CONF_REQUEST_TIMEOUT, DEFAULT_REQUEST_TIMEOUT_MS),
    )
    # one client per hub, shared by every blind on it
    api = NeocontrolApi(async_get_clientsession(hass), hub, policy)

    blinds = _blinds_from_entry(entry)
    if not blinds:
        _LOGGER.warning("No blinds configured for hub %s", hub.hub_id)

    controllers = [BlindController(blind, api) for blind in blinds]

    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = {
        "api": api,
        "controllers": controllers,
    }

    _async_remove_stale_entities(hass, entry, hub.hub_id, blinds)

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    return True


def _async_remove_stale_entities(
    hass: HomeAssistant, entry: ConfigEntry, hub_id: str, blinds: list[BlindConfig]
) -> None:
    registry = er.async_get(hass)
    wanted = {blind_unique_id(hub_id, blind.name) for blind in blinds}
    for entity in er.async_entries_for_config_entry(registry, entry.entry_id):
        if entity.unique_id not in wanted:
            _LOGGER.info("Removing stale blind: %s", entity.entity_id)
            registry.async_remove(entity.entity_id)


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unload_ok:
        hass.data[DOMAIN].pop(entry.entry_id, None)
    return unload_ok
