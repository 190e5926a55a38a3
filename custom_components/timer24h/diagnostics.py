"""Diagnostics support for Timer 24H."""
from __future__ import annotations

from typing import Any

from homeassistant.components.diagnostics import async_redact_data
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from .config import config_to_dict
from .const import CONF_ENTITIES, CONF_HOME_SENSORS, CONF_STORAGE_KEY
from .coordinator import Timer24hCoordinator

TO_REDACT = {
    "unique_id", "entry_id",
    CONF_ENTITIES, CONF_HOME_SENSORS, CONF_STORAGE_KEY,
}


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant, entry: ConfigEntry
) -> dict[str, Any]:
    """Return diagnostics for a config entry."""
    coordinator: Timer24hCoordinator = entry.runtime_data
    engine = coordinator.engine
    evaluation = engine.last_evaluation

    return {
        "entry_data": async_redact_data(entry.data, TO_REDACT),
        "entry_options": async_redact_data(entry.options, TO_REDACT),
        "config": async_redact_data(config_to_dict(engine.config), TO_REDACT),
        "schedule": {
            "armed_slots": [slot.label for slot in engine.grid.armed_slots()],
            "revision": engine.grid.revision,
        },
        "persistence": {
            "sync_status": engine.sync_status,
            "last_tier": engine.chain.last_tier,
            "remote_available": engine.chain.remote_available(),
        },
        "state": {
            "running": engine.running,
            "active": evaluation.active if evaluation else None,
            "schedule_active": evaluation.schedule_active if evaluation else None,
            "sensors_active": evaluation.sensors_active if evaluation else None,
            "current_slot": evaluation.current_slot.label if evaluation else None,
        },
    }
