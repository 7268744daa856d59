from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from homeassistant import config_entries
from homeassistant.data_entry_flow import AbortFlow, FlowResultType

from custom_components.inteo_somfy_blinds.config_flow import InteoSomfyBlindsConfigFlow
from custom_components.inteo_somfy_blinds.const import DOMAIN

HUB_INPUT = {
    "hub_mac": "44:d5:f2:c1:03:ac",
    "base_url": "http://relay:9151",
    "retry_attempts": 3,
    "request_timeout": 5000,
}


def _blind(name, open_scene=1, close_scene=0, add_another=False):
    return {"name": name, "open_scene": open_scene, "close_scene": close_scene, "add_another": add_another}


@pytest.fixture
def hass():
    hass = MagicMock()
    hass.config_entries.flow.async_progress_by_handler.return_value = []
    hass.config_entries.async_entry_for_domain_unique_id.return_value = None
    return hass


def _make_flow(hass, source):
    flow = InteoSomfyBlindsConfigFlow()
    flow.hass = hass
    flow.handler = DOMAIN
    flow.flow_id = "flow-1"
    flow.context = {"source": source}
    return flow


@pytest.fixture
def flow(hass):
    return _make_flow(hass, config_entries.SOURCE_USER)


class TestUserStep:
    @pytest.mark.asyncio
    async def test_shows_form(self, flow):
        result = await flow.async_step_user()
        assert result["type"] == FlowResultType.FORM
        assert result["step_id"] == "user"
        assert result["errors"] == {}

    @pytest.mark.asyncio
    async def test_invalid_hub_mac(self, flow):
        result = await flow.async_step_user({**HUB_INPUT, "hub_mac": "44-D5-F2-C1-03-AC"})
        assert result["type"] == FlowResultType.FORM
        assert result["errors"] == {"hub_mac": "invalid_hub_mac"}

    @pytest.mark.asyncio
    async def test_valid_hub_moves_to_blind_step(self, flow):
        result = await flow.async_step_user(dict(HUB_INPUT))

        assert result["type"] == FlowResultType.FORM
        assert result["step_id"] == "blind"
        assert flow.unique_id == "44D5F2C103AC"

    @pytest.mark.asyncio
    async def test_same_hub_twice_aborts(self, flow, hass):
        hass.config_entries.async_entry_for_domain_unique_id.return_value = SimpleNamespace(
            data={"hub_mac": "44:D5:F2:C1:03:AC"}, source=config_entries.SOURCE_USER
        )

        with pytest.raises(AbortFlow) as exc:
            await flow.async_step_user(dict(HUB_INPUT))

        assert exc.value.reason == "already_configured"
        hass.config_entries.async_entry_for_domain_unique_id.assert_called_with(DOMAIN, "44D5F2C103AC")


class TestBlindStep:
    @pytest.mark.asyncio
    async def test_creates_entry_with_all_blinds(self, flow):
        await flow.async_step_user(dict(HUB_INPUT))

        result = await flow.async_step_blind(_blind("Living Room", 1, 0, add_another=True))
        assert result["type"] == FlowResultType.FORM
        assert result["step_id"] == "blind"
        assert result["description_placeholders"] == {"count": "1"}

        result = await flow.async_step_blind(_blind("Bedroom", 3, 2))

        assert result["type"] == FlowResultType.CREATE_ENTRY
        assert result["data"] == {
            **HUB_INPUT,
            "blinds": [
                {"name": "Living Room", "open_scene": 1, "close_scene": 0},
                {"name": "Bedroom", "open_scene": 3, "close_scene": 2},
            ],
        }

    @pytest.mark.asyncio
    async def test_blank_name(self, flow):
        await flow.async_step_user(dict(HUB_INPUT))
        result = await flow.async_step_blind(_blind("   "))
        assert result["errors"] == {"name": "name_required"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("second", ["Living Room", "living-room", "LIVING ROOM"])
    async def test_duplicate_name(self, flow, second):
        await flow.async_step_user(dict(HUB_INPUT))
        await flow.async_step_blind(_blind("Living Room", add_another=True))

        result = await flow.async_step_blind(_blind(second, 3, 2))

        assert result["type"] == FlowResultType.FORM
        assert result["errors"] == {"name": "duplicate_name"}
        assert result["description_placeholders"] == {"count": "1"}


class TestImportStep:
    IMPORT_DATA = {
        "hub_mac": "44:D5:F2:C1:03:AC",
        "base_url": "http://relay:9151",
        "blinds": [{"name": "Living Room", "open_scene": 1, "close_scene": 0}],
        "retry_attempts": 3,
        "request_timeout": 5000,
    }

    @pytest.mark.asyncio
    async def test_creates_entry(self, hass):
        flow = _make_flow(hass, config_entries.SOURCE_IMPORT)

        result = await flow.async_step_import(dict(self.IMPORT_DATA))

        assert result["type"] == FlowResultType.CREATE_ENTRY
        assert result["data"] == self.IMPORT_DATA
        assert flow.unique_id == "44D5F2C103AC"

    @pytest.mark.asyncio
    async def test_invalid_hub_mac_aborts(self, hass):
        flow = _make_flow(hass, config_entries.SOURCE_IMPORT)

        result = await flow.async_step_import({**self.IMPORT_DATA, "hub_mac": "nope"})

        assert result["type"] == FlowResultType.ABORT
        assert result["reason"] == "invalid_hub_mac"

    @pytest.mark.asyncio
    async def test_existing_entry_is_updated_from_yaml(self, hass):
        existing = MagicMock()
        existing.data = {"hub_mac": "44:D5:F2:C1:03:AC", "blinds": []}
        hass.config_entries.async_entry_for_domain_unique_id.return_value = existing
        flow = _make_flow(hass, config_entries.SOURCE_IMPORT)

        with pytest.raises(AbortFlow) as exc:
            await flow.async_step_import(dict(self.IMPORT_DATA))

        assert exc.value.reason == "already_configured"
        hass.config_entries.async_update_entry.assert_called_once_with(
            existing, data={**existing.data, **self.IMPORT_DATA}
        )
