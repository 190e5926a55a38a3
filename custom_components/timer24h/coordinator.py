"""Coordinator bridging the Timer 24H engine to Home Assistant entities."""
from __future__ import annotations

from dataclasses import dataclass
import logging

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator

from .const import DOMAIN
from .engine import Timer24hEngine
from .types import Evaluation

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Timer24hData:
    """Class to hold coordinator data."""
    active: bool
    schedule_active: bool
    sensors_active: bool
    current_slot: str
    armed_slots: list[str]
    sync_status: str
    storage_key: str | None
    time_slots: list[dict]


class Timer24hCoordinator(DataUpdateCoordinator[Timer24hData]):
    """
    Push-mode coordinator. The engine runs its own evaluation and sync
    tasks and notifies us; there is no polling interval.
    """

    def __init__(self, hass: HomeAssistant, entry: ConfigEntry, engine: Timer24hEngine) -> None:
        super().__init__(
            hass,
            _LOGGER,
            name=f"{DOMAIN}_{entry.entry_id}",
            update_interval=None,
            config_entry=entry,
        )
        self.entry = entry
        self.engine = engine
        self.device_name = entry.title
        self._remove_listener = engine.add_listener(self._handle_engine_update)

    def _build_data(self, evaluation: Evaluation | None = None) -> Timer24hData:
        engine = self.engine
        if evaluation is None:
            evaluation = engine.last_evaluation or engine.evaluate()
        return Timer24hData(
            active=evaluation.active,
            schedule_active=evaluation.schedule_active,
            sensors_active=evaluation.sensors_active,
            current_slot=evaluation.current_slot.label,
            armed_slots=[slot.label for slot in engine.grid.armed_slots()],
            sync_status=engine.sync_status,
            storage_key=engine.config.storage_key,
            time_slots=[slot.as_dict() for slot in engine.grid.snapshot()],
        )

    async def _async_update_data(self) -> Timer24hData:
        """Only used for the first refresh."""
        return self._build_data(self.engine.evaluate())

    @callback
    def _handle_engine_update(self) -> None:
        self.async_set_updated_data(self._build_data())

    @callback
    def async_shutdown_listener(self) -> None:
        """Stop receiving engine updates."""
        self._remove_listener()

    # --- Actions used by buttons and services ---

    def toggle_slot(self, hour: int, minute: int) -> bool:
        return self.engine.toggle_slot(hour, minute)

    def set_slots(self, slots) -> bool:
        return self.engine.set_slots(slots)

    async def sync_now(self) -> None:
        """Pull the remote schedule immediately."""
        if not await self.engine.async_sync():
            # Sync status may have changed even without a merge.
            self.async_set_updated_data(self._build_data())

    async def apply_now(self) -> None:
        """Send the current verdict to every actuator."""
        self.engine.apply_now()
