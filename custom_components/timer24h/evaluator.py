"""Activation verdict: armed schedule slot AND combined sensor state."""
from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, time
import logging

from homeassistant.util import dt as dt_util

from .const import INVERTED_SENSORS, LOGIC_AND, PRESENCE_STATES, SLOT_MINUTES
from .grid import TimeSlotGrid, slot_index
from .types import Evaluation, Timer24hConfig, TimeSlot

_LOGGER = logging.getLogger(__name__)


def sensor_contribution(sensor_id: str, state: str | None) -> bool:
    """Normalize one sensor reading to a boolean."""
    if state is None:
        return False
    state = str(state).lower()
    if sensor_id in INVERTED_SENSORS:
        return state == "on"
    return state in PRESENCE_STATES


class ActivationEvaluator:
    """Combines the schedule with live sensor readings."""

    def __init__(self, grid: TimeSlotGrid, config: Timer24hConfig) -> None:
        self._grid = grid
        self.config = config

    def current_slot(self, clock_time: datetime | time | None = None) -> TimeSlot:
        """The slot whose half-open window contains the given wall-clock time."""
        if clock_time is None:
            clock_time = dt_util.now()
        bucket = (clock_time.minute // SLOT_MINUTES) * SLOT_MINUTES
        return self._grid.snapshot()[slot_index(clock_time.hour, bucket)]

    def schedule_verdict(self, now: datetime | time | None = None) -> bool:
        return self.current_slot(now).active

    def sensor_verdict(self, readings: Mapping[str, str]) -> bool:
        """
        Combine sensor contributions with the configured logic.
        No sensors configured means the schedule alone decides.
        """
        sensors = self.config.home_sensors
        if not sensors:
            return True

        contributions = [sensor_contribution(s, readings.get(s)) for s in sensors]
        if self.config.home_logic == LOGIC_AND:
            return all(contributions)
        return any(contributions)

    def evaluate(self, readings: Mapping[str, str], now: datetime | time | None = None) -> Evaluation:
        slot = self.current_slot(now)
        schedule_active = slot.active
        sensors_active = self.sensor_verdict(readings)
        active = schedule_active and sensors_active

        _LOGGER.debug(
            "Evaluated slot %s: schedule=%s sensors=%s -> %s",
            slot.label, schedule_active, sensors_active, active,
        )
        return Evaluation(
            active=active,
            schedule_active=schedule_active,
            sensors_active=sensors_active,
            current_slot=slot,
        )
