"""Type definitions for the Timer 24H engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TypedDict

from .const import (
    DEFAULT_ALLOW_LOCAL_FALLBACK,
    DEFAULT_AUTO_CREATE_HELPER,
    DEFAULT_HOME_LOGIC,
    DEFAULT_SAVE_STATE,
    DEFAULT_TITLE,
    SLOT_MINUTES,
)


class SlotDict(TypedDict):
    """One slot as it appears in the persisted document."""
    hour: int
    minute: int
    active: bool


class SnapshotDocument(TypedDict):
    """The persisted document. Version-less, single shape."""
    timeSlots: list[SlotDict]
    timestamp: int  # Epoch milliseconds


@dataclass(frozen=True)
class TimeSlot:
    """A half-hour window of the day and its armed flag."""
    hour: int
    minute: int
    active: bool = False

    @property
    def start_minute(self) -> int:
        """Minute of the day at which this slot starts."""
        return self.hour * 60 + self.minute

    @property
    def label(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"

    def contains(self, minute_of_day: int) -> bool:
        """Half-open window [start, start + 30)."""
        return self.start_minute <= minute_of_day < self.start_minute + SLOT_MINUTES

    def as_dict(self) -> SlotDict:
        return {"hour": self.hour, "minute": self.minute, "active": self.active}


@dataclass(frozen=True)
class PersistedSnapshot:
    """The whole schedule as one durable unit."""
    time_slots: tuple[TimeSlot, ...]
    timestamp: int

    def as_document(self) -> SnapshotDocument:
        return {
            "timeSlots": [slot.as_dict() for slot in self.time_slots],
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class Timer24hConfig:
    """Validated configuration. Replaced wholesale on reconfiguration."""
    title: str = DEFAULT_TITLE
    home_logic: str = DEFAULT_HOME_LOGIC
    entities: tuple[str, ...] = field(default_factory=tuple)
    home_sensors: tuple[str, ...] = field(default_factory=tuple)
    save_state: bool = DEFAULT_SAVE_STATE
    storage_key: str | None = None
    allow_local_fallback: bool = DEFAULT_ALLOW_LOCAL_FALLBACK
    auto_create_helper: bool = DEFAULT_AUTO_CREATE_HELPER


@dataclass(frozen=True)
class Evaluation:
    """Result of one activation evaluation."""
    active: bool
    schedule_active: bool
    sensors_active: bool
    current_slot: TimeSlot
