"""The Timer 24H integration."""
from __future__ import annotations

import logging

import voluptuous as vol

from homeassistant.config_entries import SOURCE_IMPORT, ConfigEntry, ConfigEntryState
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant, ServiceCall
from homeassistant.exceptions import ServiceValidationError
from homeassistant.helpers import config_validation as cv

from .config import build_config
from .const import (
    ATTR_ENTRY_ID,
    ATTR_HOUR,
    ATTR_MINUTE,
    ATTR_SLOTS,
    DOMAIN,
    SERVICE_SET_SLOTS,
    SERVICE_TOGGLE_SLOT,
)
from .coordinator import Timer24hCoordinator
from .engine import Timer24hEngine
from .grid import slots_from_labels
from .host import build_hass_host
from .lifecycle import LifecycleManager

_LOGGER = logging.getLogger(__name__)

PLATFORMS: list[Platform] = [Platform.BINARY_SENSOR, Platform.SENSOR, Platform.BUTTON]

# Optional YAML: a list of timers, each imported into a config entry.
CONFIG_SCHEMA = vol.Schema(
    {vol.Optional(DOMAIN): vol.All(cv.ensure_list, [dict])},
    extra=vol.ALLOW_EXTRA,
)

TOGGLE_SLOT_SCHEMA = vol.Schema({
    vol.Required(ATTR_HOUR): vol.All(vol.Coerce(int), vol.Range(min=0, max=23)),
    vol.Required(ATTR_MINUTE): vol.All(vol.Coerce(int), vol.In([0, 30])),
    vol.Optional(ATTR_ENTRY_ID): cv.string,
})

SET_SLOTS_SCHEMA = vol.Schema({
    vol.Required(ATTR_SLOTS): vol.All(cv.ensure_list, [cv.string]),
    vol.Optional(ATTR_ENTRY_ID): cv.string,
})

Timer24hConfigEntry = ConfigEntry


def _lifecycles(hass: HomeAssistant) -> dict[str, LifecycleManager]:
    """Lifecycle managers outlive entry reloads so a quick re-setup can re-attach."""
    return hass.data.setdefault(DOMAIN, {}).setdefault("lifecycles", {})


def _target_coordinators(hass: HomeAssistant, call: ServiceCall) -> list[Timer24hCoordinator]:
    entry_id = call.data.get(ATTR_ENTRY_ID)
    coordinators = [
        entry.runtime_data
        for entry in hass.config_entries.async_entries(DOMAIN)
        if entry.state is ConfigEntryState.LOADED
        and (entry_id is None or entry.entry_id == entry_id)
    ]
    if entry_id is not None and not coordinators:
        raise ServiceValidationError(f"No loaded Timer 24H with entry id {entry_id}")
    return coordinators


async def async_setup(hass: HomeAssistant, config: dict) -> bool:
    """Set up the Timer 24H component globally."""

    async def handle_toggle_slot(call: ServiceCall) -> None:
        for coordinator in _target_coordinators(hass, call):
            coordinator.toggle_slot(call.data[ATTR_HOUR], call.data[ATTR_MINUTE])

    async def handle_set_slots(call: ServiceCall) -> None:
        try:
            slots = slots_from_labels(call.data[ATTR_SLOTS])
        except ValueError as err:
            raise ServiceValidationError(str(err)) from err
        for coordinator in _target_coordinators(hass, call):
            coordinator.set_slots(slots)

    hass.services.async_register(DOMAIN, SERVICE_TOGGLE_SLOT, handle_toggle_slot, schema=TOGGLE_SLOT_SCHEMA)
    hass.services.async_register(DOMAIN, SERVICE_SET_SLOTS, handle_set_slots, schema=SET_SLOTS_SCHEMA)

    for timer_conf in config.get(DOMAIN, []):
        hass.async_create_task(
            hass.config_entries.flow.async_init(
                DOMAIN, context={"source": SOURCE_IMPORT}, data=timer_conf
            )
        )
    return True


async def async_setup_entry(hass: HomeAssistant, entry: Timer24hConfigEntry) -> bool:
    """Set up a timer from a config entry."""
    config = build_config({**entry.data, **entry.options})
    host = build_hass_host(hass)

    lifecycles = _lifecycles(hass)
    lifecycle = lifecycles.get(entry.entry_id)
    if lifecycle is None:
        lifecycle = LifecycleManager(config.storage_key, host.deletion)
        lifecycles[entry.entry_id] = lifecycle
    else:
        lifecycle.storage_key = config.storage_key
    lifecycle.attach()

    engine = Timer24hEngine(config, host)
    await engine.async_load()

    coordinator = Timer24hCoordinator(hass, entry, engine)
    await coordinator.async_config_entry_first_refresh()
    entry.runtime_data = coordinator

    engine.start()
    entry.async_on_unload(coordinator.async_shutdown_listener)
    entry.async_on_unload(engine.stop)

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    entry.async_on_unload(entry.add_update_listener(async_update_options))

    _LOGGER.info("Timer '%s' set up (storage key %s)", config.title, config.storage_key)
    return True


async def async_unload_entry(hass: HomeAssistant, entry: Timer24hConfigEntry) -> bool:
    """Unload a config entry."""
    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if not unload_ok:
        return False

    coordinator: Timer24hCoordinator = entry.runtime_data
    coordinator.engine.stop()
    await coordinator.engine.async_drain()

    # Shutdown and disabling keep the stored schedule; only a real removal
    # (no re-setup within the grace period) deletes it.
    lifecycle = _lifecycles(hass).get(entry.entry_id)
    if lifecycle is not None and not hass.is_stopping and entry.disabled_by is None:
        lifecycle.detach()
    return True


async def async_remove_entry(hass: HomeAssistant, entry: Timer24hConfigEntry) -> None:
    """Make sure a removed timer gets its deferred storage cleanup."""
    lifecycle = _lifecycles(hass).pop(entry.entry_id, None)
    if lifecycle is None:
        # Disabled entries are never set up, so nothing is tracking them yet.
        config = build_config({**entry.data, **entry.options})
        lifecycle = LifecycleManager(config.storage_key, build_hass_host(hass).deletion)
    if not lifecycle.attached and not lifecycle.cleanup_pending:
        lifecycle.detach()


async def async_update_options(hass: HomeAssistant, entry: Timer24hConfigEntry) -> None:
    """Apply changed options to the running timer. A new storage key needs a reload."""
    coordinator: Timer24hCoordinator = entry.runtime_data
    config = build_config({**entry.data, **entry.options})
    if config.storage_key != coordinator.engine.config.storage_key:
        await hass.config_entries.async_reload(entry.entry_id)
        return
    coordinator.engine.reconfigure(config)
    _LOGGER.debug("Timer '%s' reconfigured", config.title)
