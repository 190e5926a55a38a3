"""Config flow for Timer 24H integration."""
from __future__ import annotations

from typing import Any

import voluptuous as vol

from homeassistant import config_entries
from homeassistant.core import callback
from homeassistant.data_entry_flow import FlowResult
from homeassistant.helpers import selector

from .config import build_config, config_to_dict
from .const import (
    CONF_ALLOW_LOCAL_FALLBACK,
    CONF_AUTO_CREATE_HELPER,
    CONF_ENTITIES,
    CONF_HOME_LOGIC,
    CONF_HOME_SENSORS,
    CONF_SAVE_STATE,
    CONF_STORAGE_KEY,
    CONF_TITLE,
    DEFAULT_ALLOW_LOCAL_FALLBACK,
    DEFAULT_AUTO_CREATE_HELPER,
    DEFAULT_HOME_LOGIC,
    DEFAULT_SAVE_STATE,
    DOMAIN,
    LOGIC_AND,
    LOGIC_OR,
)
from .lifecycle import default_config, generate_storage_key

ACTUATOR_DOMAINS = ["switch", "input_boolean", "light", "climate", "script", "automation"]
SENSOR_DOMAINS = ["binary_sensor", "person", "device_tracker", "input_boolean"]


def _behaviour_schema(defaults: dict[str, Any]) -> dict:
    """Fields shared by the user step and the options flow."""
    return {
        vol.Optional(CONF_ENTITIES, default=defaults.get(CONF_ENTITIES, [])): selector.EntitySelector(
            selector.EntitySelectorConfig(domain=ACTUATOR_DOMAINS, multiple=True)
        ),
        vol.Optional(CONF_HOME_SENSORS, default=defaults.get(CONF_HOME_SENSORS, [])): selector.EntitySelector(
            selector.EntitySelectorConfig(domain=SENSOR_DOMAINS, multiple=True)
        ),
        vol.Required(CONF_HOME_LOGIC, default=defaults.get(CONF_HOME_LOGIC, DEFAULT_HOME_LOGIC)): selector.SelectSelector(
            selector.SelectSelectorConfig(
                options=[
                    {"value": LOGIC_OR, "label": "Any sensor (OR)"},
                    {"value": LOGIC_AND, "label": "All sensors (AND)"},
                ],
                mode=selector.SelectSelectorMode.DROPDOWN,
                translation_key="home_logic",
            )
        ),
        vol.Optional(CONF_SAVE_STATE, default=defaults.get(CONF_SAVE_STATE, DEFAULT_SAVE_STATE)): selector.BooleanSelector(),
        vol.Optional(
            CONF_ALLOW_LOCAL_FALLBACK,
            default=defaults.get(CONF_ALLOW_LOCAL_FALLBACK, DEFAULT_ALLOW_LOCAL_FALLBACK),
        ): selector.BooleanSelector(),
        vol.Optional(
            CONF_AUTO_CREATE_HELPER,
            default=defaults.get(CONF_AUTO_CREATE_HELPER, DEFAULT_AUTO_CREATE_HELPER),
        ): selector.BooleanSelector(),
    }


class Timer24hConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow for Timer 24H."""

    VERSION = 1

    async def _async_create_timer(self, raw: dict[str, Any]) -> FlowResult:
        """Validate, assign a storage key and create the entry."""
        if not raw.get(CONF_STORAGE_KEY):
            raw = {**raw, CONF_STORAGE_KEY: generate_storage_key()}
        config = build_config(raw)

        await self.async_set_unique_id(config.storage_key)
        self._abort_if_unique_id_configured()

        return self.async_create_entry(title=config.title, data=config_to_dict(config))

    async def async_step_user(self, user_input: dict[str, Any] | None = None) -> FlowResult:
        """Handle the initial step."""
        errors: dict[str, str] = {}

        if user_input is not None:
            if not str(user_input.get(CONF_TITLE, "")).strip():
                errors[CONF_TITLE] = "title_required"
            else:
                return await self._async_create_timer(user_input)

        # A new timer starts from the stub configuration; its key is not offered.
        defaults = config_to_dict(default_config())
        defaults.pop(CONF_STORAGE_KEY)
        defaults.update(user_input or {})

        data_schema = vol.Schema({
            vol.Required(CONF_TITLE, default=defaults[CONF_TITLE]): str,
            **_behaviour_schema(defaults),
            # Leave empty to let the integration generate one.
            vol.Optional(CONF_STORAGE_KEY): str,
        })

        return self.async_show_form(step_id="user", data_schema=data_schema, errors=errors)

    async def async_step_import(self, import_data: dict[str, Any]) -> FlowResult:
        """Create an entry from configuration.yaml."""
        raw = dict(import_data)
        if raw.get(CONF_STORAGE_KEY):
            return await self._async_create_timer(raw)

        # Without an explicit key the YAML timer is matched by title, so the
        # key generated on the first import is kept across restarts.
        title = build_config(raw).title
        for entry in self._async_current_entries(include_ignore=False):
            if entry.source != config_entries.SOURCE_IMPORT or entry.title != title:
                continue
            config = build_config({**raw, CONF_STORAGE_KEY: entry.data.get(CONF_STORAGE_KEY)})
            self.hass.config_entries.async_update_entry(entry, data=config_to_dict(config))
            return self.async_abort(reason="already_configured")

        return await self._async_create_timer(raw)

    @staticmethod
    @callback
    def async_get_options_flow(config_entry: config_entries.ConfigEntry) -> Timer24hOptionsFlow:
        return Timer24hOptionsFlow()


class Timer24hOptionsFlow(config_entries.OptionsFlow):
    """Handle options flow. The storage key is fixed once created."""

    async def async_step_init(self, user_input: dict[str, Any] | None = None) -> FlowResult:
        """Manage options."""
        if user_input is not None:
            return self.async_create_entry(title="", data=user_input)

        current = {**self.config_entry.data, **self.config_entry.options}
        return self.async_show_form(step_id="init", data_schema=vol.Schema(_behaviour_schema(current)))
