"""Binary Sensor platform for Timer 24H."""
from __future__ import annotations

from typing import Any

from homeassistant.components.binary_sensor import BinarySensorEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import DOMAIN, VERSION
from .coordinator import Timer24hCoordinator


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up binary sensors."""
    coordinator: Timer24hCoordinator = entry.runtime_data
    async_add_entities([Timer24hActiveBinarySensor(coordinator, entry)])


class Timer24hActiveBinarySensor(CoordinatorEntity[Timer24hCoordinator], BinarySensorEntity):
    """On while the current slot is armed and the sensor condition holds."""
    _attr_has_entity_name = True
    _attr_translation_key = "active"
    _attr_icon = "mdi:timer-outline"

    def __init__(self, coordinator: Timer24hCoordinator, entry: ConfigEntry) -> None:
        super().__init__(coordinator)
        self._entry = entry
        self._attr_device_info = {
            "identifiers": {(DOMAIN, entry.entry_id)},
            "name": entry.title,
            "manufacturer": "Timer 24H",
            "model": "24 Hour Timer",
            "sw_version": VERSION,
        }

    @property
    def unique_id(self) -> str:
        return f"{self._entry.entry_id}_active"

    @property
    def is_on(self) -> bool:
        return self.coordinator.data.active

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        data = self.coordinator.data
        return {
            "current_slot": data.current_slot,
            "schedule_active": data.schedule_active,
            "sensors_active": data.sensors_active,
            "controlled_entities": list(self.coordinator.engine.config.entities),
        }
