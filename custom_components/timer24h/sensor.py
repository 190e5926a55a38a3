"""Sensor platform for Timer 24H."""
from __future__ import annotations

from typing import Any

from homeassistant.components.sensor import SensorDeviceClass, SensorEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import DOMAIN, SLOT_MINUTES, SYNC_STATES, VERSION
from .coordinator import Timer24hCoordinator


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up sensors."""
    coordinator: Timer24hCoordinator = entry.runtime_data

    async_add_entities([
        Timer24hSyncStatusSensor(coordinator, entry),
        Timer24hArmedSlotsSensor(coordinator, entry),
    ])


class Timer24hBaseSensor(CoordinatorEntity[Timer24hCoordinator], SensorEntity):
    """Base sensor."""
    _attr_has_entity_name = True

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


class Timer24hSyncStatusSensor(Timer24hBaseSensor):
    """Where the schedule was last saved or loaded."""
    _attr_translation_key = "sync_status"
    _attr_device_class = SensorDeviceClass.ENUM
    _attr_options = list(SYNC_STATES)
    _attr_icon = "mdi:cloud-sync"

    @property
    def unique_id(self) -> str:
        return f"{self._entry.entry_id}_sync_status"

    @property
    def native_value(self) -> str:
        return self.coordinator.data.sync_status

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        engine = self.coordinator.engine
        return {
            "storage_key": self.coordinator.data.storage_key,
            "last_tier": engine.chain.last_tier,
            "save_state": engine.config.save_state,
            "allow_local_fallback": engine.config.allow_local_fallback,
        }


class Timer24hArmedSlotsSensor(Timer24hBaseSensor):
    """Number of armed half-hour slots."""
    _attr_translation_key = "armed_slots"
    _attr_icon = "mdi:calendar-clock"
    _attr_native_unit_of_measurement = "slots"

    @property
    def unique_id(self) -> str:
        return f"{self._entry.entry_id}_armed_slots"

    @property
    def native_value(self) -> int:
        return len(self.coordinator.data.armed_slots)

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        data = self.coordinator.data
        return {
            "armed": data.armed_slots,
            "armed_minutes": len(data.armed_slots) * SLOT_MINUTES,
            "time_slots": data.time_slots,
        }
