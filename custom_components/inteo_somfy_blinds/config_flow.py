from __future__ import annotations

import re
from typing import Any

import voluptuous as vol

from homeassistant import config_entries
from homeassistant.data_entry_flow import FlowResult
from homeassistant.util import slugify

from .const import (
    CONF_ADD_ANOTHER,
    CONF_BASE_URL,
    CONF_BLINDS,
    CONF_CLOSE_SCENE,
    CONF_HUB_MAC,
    CONF_NAME,
    CONF_OPEN_SCENE,
    CONF_REQUEST_TIMEOUT,
    CONF_RETRY_ATTEMPTS,
    DEFAULT_BASE_URL,
    DEFAULT_NAME,
    DEFAULT_REQUEST_TIMEOUT_MS,
    DEFAULT_RETRY_ATTEMPTS,
    DOMAIN,
)
from .models import normalize_hub_id

_HUB_ID_RE = re.compile(r"^[0-9A-Fa-f]{12}$")


def is_valid_hub_mac(hub_mac: str) -> bool:
    return bool(_HUB_ID_RE.match(normalize_hub_id(hub_mac)))


class InteoSomfyBlindsConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    VERSION = 1

    def __init__(self) -> None:
        super().__init__()
        self._hub: dict[str, Any] = {}
        self._blinds: list[dict[str, Any]] = []

    async def async_step_user(self, user_input=None) -> FlowResult:
        errors = {}

        if user_input is not None:
            hub_mac = user_input[CONF_HUB_MAC]
            if not is_valid_hub_mac(hub_mac):
                errors[CONF_HUB_MAC] = "invalid_hub_mac"
            else:
                await self.async_set_unique_id(normalize_hub_id(hub_mac).upper())
                self._abort_if_unique_id_configured()

                self._hub = {
                    CONF_HUB_MAC: hub_mac,
                    CONF_BASE_URL: user_input.get(CONF_BASE_URL) or DEFAULT_BASE_URL,
                    CONF_RETRY_ATTEMPTS: user_input[CONF_RETRY_ATTEMPTS],
                    CONF_REQUEST_TIMEOUT: user_input[CONF_REQUEST_TIMEOUT],
                }
                return await self.async_step_blind()

        schema = vol.Schema(
            {
                vol.Required(CONF_HUB_MAC): str,
                vol.Optional(CONF_BASE_URL, default=DEFAULT_BASE_URL): str,
                vol.Optional(CONF_RETRY_ATTEMPTS, default=DEFAULT_RETRY_ATTEMPTS): vol.All(
                    vol.Coerce(int), vol.Range(min=1, max=10)
                ),
                vol.Optional(CONF_REQUEST_TIMEOUT, default=DEFAULT_REQUEST_TIMEOUT_MS): vol.All(
                    vol.Coerce(int), vol.Range(min=1000, max=30000)
                ),
            }
        )

        return self.async_show_form(step_id="user", data_schema=schema, errors=errors)

    async def async_step_blind(self, user_input=None) -> FlowResult:
        errors = {}

        if user_input is not None:
            name = user_input[CONF_NAME].strip()
            if not name:
                errors[CONF_NAME] = "name_required"
            elif any(slugify(b[CONF_NAME]) == slugify(name) for b in self._blinds):
                errors[CONF_NAME] = "duplicate_name"
            else:
                self._blinds.append(
                    {
                        CONF_NAME: name,
                        CONF_OPEN_SCENE: user_input[CONF_OPEN_SCENE],
                        CONF_CLOSE_SCENE: user_input[CONF_CLOSE_SCENE],
                    }
                )
                if not user_input.get(CONF_ADD_ANOTHER):
                    return self.async_create_entry(
                        title=DEFAULT_NAME,
                        data={**self._hub, CONF_BLINDS: self._blinds},
                    )

        scene = vol.All(vol.Coerce(int), vol.Range(min=0))
        schema = vol.Schema(
            {
                vol.Required(CONF_NAME): str,
                vol.Required(CONF_OPEN_SCENE): scene,
                vol.Required(CONF_CLOSE_SCENE): scene,
                vol.Optional(CONF_ADD_ANOTHER, default=False): bool,
            }
        )

        return self.async_show_form(
            step_id="blind",
            data_schema=schema,
            errors=errors,
            description_placeholders={"count": str(len(self._blinds))},
        )

    async def async_step_import(self, import_data: dict[str, Any]) -> FlowResult:
        hub_mac = import_data[CONF_HUB_MAC]
        if not is_valid_hub_mac(hub_mac):
            return self.async_abort(reason="invalid_hub_mac")

        await self.async_set_unique_id(normalize_hub_id(hub_mac).upper())
        self._abort_if_unique_id_configured(updates=dict(import_data))

        return self.async_create_entry(title=DEFAULT_NAME, data=dict(import_data))
