"""Test the Timer 24H config flow."""
import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from homeassistant.config_entries import SOURCE_IMPORT

from custom_components.timer24h.config_flow import Timer24hConfigFlow, Timer24hOptionsFlow
from custom_components.timer24h.const import (
    CONF_ENTITIES,
    CONF_HOME_LOGIC,
    CONF_STORAGE_KEY,
    CONF_TITLE,
    LOGIC_AND,
)


def _flow():
    flow = Timer24hConfigFlow()
    flow.hass = MagicMock()
    flow.async_set_unique_id = AsyncMock()
    flow._abort_if_unique_id_configured = MagicMock()
    flow.async_create_entry = MagicMock(side_effect=lambda **kwargs: {"type": "create_entry", **kwargs})
    flow.async_show_form = MagicMock(side_effect=lambda **kwargs: {"type": "form", **kwargs})
    flow.async_abort = MagicMock(side_effect=lambda **kwargs: {"type": "abort", **kwargs})
    flow._async_current_entries = MagicMock(return_value=[])
    return flow


class TestTimer24hConfigFlow(unittest.IsolatedAsyncioTestCase):

    async def test_user_step_shows_form(self):
        flow = _flow()
        result = await flow.async_step_user()
        self.assertEqual(result["type"], "form")
        self.assertEqual(result["step_id"], "user")

    async def test_user_step_generates_storage_key(self):
        flow = _flow()
        with patch(
            "custom_components.timer24h.config_flow.generate_storage_key",
            return_value="timer_24h_card_1_001",
        ):
            result = await flow.async_step_user({
                CONF_TITLE: "Boiler",
                CONF_ENTITIES: ["switch.boiler"],
                CONF_HOME_LOGIC: LOGIC_AND,
            })

        self.assertEqual(result["type"], "create_entry")
        self.assertEqual(result["title"], "Boiler")
        self.assertEqual(result["data"][CONF_STORAGE_KEY], "timer_24h_card_1_001")
        self.assertEqual(result["data"][CONF_ENTITIES], ["switch.boiler"])
        flow.async_set_unique_id.assert_awaited_once_with("timer_24h_card_1_001")
        flow._abort_if_unique_id_configured.assert_called_once()

    async def test_user_step_requires_title(self):
        flow = _flow()
        result = await flow.async_step_user({CONF_TITLE: "  "})
        self.assertEqual(result["type"], "form")
        self.assertEqual(result["errors"], {CONF_TITLE: "title_required"})

    async def test_import_keeps_given_key_and_defaults_bad_fields(self):
        flow = _flow()
        result = await flow.async_step_import({
            CONF_STORAGE_KEY: "input_text.shared_schedule",
            CONF_HOME_LOGIC: "sometimes",
        })
        self.assertEqual(result["data"][CONF_STORAGE_KEY], "input_text.shared_schedule")
        self.assertEqual(result["data"][CONF_HOME_LOGIC], "OR")
        self.assertEqual(result["title"], "24 Hour Timer")

    async def test_same_yaml_imported_twice_keeps_one_entry(self):
        yaml_timer = {CONF_TITLE: "Boiler", CONF_ENTITIES: ["switch.boiler"]}

        first = await _flow().async_step_import(dict(yaml_timer))
        self.assertEqual(first["type"], "create_entry")
        existing = MagicMock(source=SOURCE_IMPORT, title=first["title"], data=first["data"])

        # Next boot: the entry from the first import exists, the YAML gained an actuator.
        flow = _flow()
        flow._async_current_entries.return_value = [existing]
        second = await flow.async_step_import({**yaml_timer, CONF_ENTITIES: ["switch.boiler", "light.hall"]})

        self.assertEqual(second["type"], "abort")
        flow.async_create_entry.assert_not_called()
        updated = flow.hass.config_entries.async_update_entry.call_args.kwargs["data"]
        self.assertEqual(updated[CONF_STORAGE_KEY], first["data"][CONF_STORAGE_KEY])
        self.assertEqual(updated[CONF_ENTITIES], ["switch.boiler", "light.hall"])

    async def test_import_ignores_entries_added_in_the_ui(self):
        flow = _flow()
        flow._async_current_entries.return_value = [
            MagicMock(source="user", title="Boiler", data={CONF_STORAGE_KEY: "timer_24h_card_1_001"})
        ]
        result = await flow.async_step_import({CONF_TITLE: "Boiler"})
        self.assertEqual(result["type"], "create_entry")
        self.assertNotEqual(result["data"][CONF_STORAGE_KEY], "timer_24h_card_1_001")


class TestTimer24hOptionsFlow(unittest.IsolatedAsyncioTestCase):

    async def test_saves_input(self):
        flow = Timer24hOptionsFlow()
        flow.async_create_entry = MagicMock(side_effect=lambda **kwargs: kwargs)
        result = await flow.async_step_init({CONF_ENTITIES: ["light.porch"]})
        self.assertEqual(result["data"], {CONF_ENTITIES: ["light.porch"]})


if __name__ == "__main__":
    unittest.main()
