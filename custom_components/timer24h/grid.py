"""The 48 half-hour slots of a day and their armed flags."""
from __future__ import annotations

from collections.abc import Iterable, Mapping
import logging
from typing import Any

from .const import SLOT_MINUTES, SLOTS_PER_DAY
from .types import TimeSlot

_LOGGER = logging.getLogger(__name__)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def slot_index(hour: int, minute: int) -> int | None:
    """Position of (hour, minute) in canonical order, or None if no slot starts there."""
    if not _is_int(hour) or not _is_int(minute):
        return None
    if not 0 <= hour < 24 or minute not in (0, SLOT_MINUTES):
        return None
    return hour * 2 + minute // SLOT_MINUTES


def parse_slot(record: TimeSlot | Mapping[str, Any]) -> TimeSlot:
    """Turn a slot-like record into a TimeSlot. Raises ValueError."""
    if isinstance(record, TimeSlot):
        hour, minute, active = record.hour, record.minute, record.active
    elif isinstance(record, Mapping):
        hour, minute, active = record.get("hour"), record.get("minute"), record.get("active")
    else:
        raise ValueError(f"Not a slot: {record!r}")

    if slot_index(hour, minute) is None:
        raise ValueError(f"No slot starts at {hour!r}:{minute!r}")
    if not isinstance(active, bool):
        raise ValueError(f"Slot {hour}:{minute} has non-boolean active flag {active!r}")
    return TimeSlot(hour, minute, active)


def normalize_slots(records: Iterable[Any]) -> tuple[TimeSlot, ...]:
    """
    Validate a full schedule and return it in canonical order.
    Requires every (hour, minute) pair exactly once. Raises ValueError.
    """
    if isinstance(records, (str, bytes, Mapping)) or not isinstance(records, Iterable):
        raise ValueError("Schedule must be a sequence of slots")

    ordered: list[TimeSlot | None] = [None] * SLOTS_PER_DAY
    count = 0
    for record in records:
        slot = parse_slot(record)
        idx = slot_index(slot.hour, slot.minute)
        if ordered[idx] is not None:
            raise ValueError(f"Duplicate slot {slot.label}")
        ordered[idx] = slot
        count += 1

    if count != SLOTS_PER_DAY:
        raise ValueError(f"Expected {SLOTS_PER_DAY} slots, got {count}")
    return tuple(ordered)  # type: ignore[arg-type]


def slots_from_labels(labels: Iterable[str]) -> tuple[TimeSlot, ...]:
    """Full schedule with exactly the given "HH:MM" slots armed. Raises ValueError."""
    armed: set[int] = set()
    for label in labels:
        try:
            hour, minute = (int(part) for part in str(label).split(":"))
        except ValueError as err:
            raise ValueError(f"Not a slot label: {label!r}") from err
        idx = slot_index(hour, minute)
        if idx is None:
            raise ValueError(f"No slot starts at {label}")
        armed.add(idx)

    return tuple(
        TimeSlot(slot.hour, slot.minute, idx in armed)
        for idx, slot in enumerate(TimeSlotGrid.initialize())
    )


class TimeSlotGrid:
    """In-memory schedule. Pure data, no I/O."""

    def __init__(self) -> None:
        self._slots: tuple[TimeSlot, ...] = self.initialize()
        self._revision = 0

    @staticmethod
    def initialize() -> tuple[TimeSlot, ...]:
        """48 inactive slots in canonical order."""
        return tuple(
            TimeSlot(hour, minute, False)
            for hour in range(24)
            for minute in range(0, 60, SLOT_MINUTES)
        )

    @property
    def revision(self) -> int:
        """Bumped on every mutation. Lets async readers detect stale results."""
        return self._revision

    def snapshot(self) -> tuple[TimeSlot, ...]:
        return self._slots

    def slot_for(self, hour: int, minute: int) -> TimeSlot | None:
        idx = slot_index(hour, minute)
        return None if idx is None else self._slots[idx]

    def armed_slots(self) -> list[TimeSlot]:
        return [slot for slot in self._slots if slot.active]

    def matches(self, slots: Iterable[TimeSlot]) -> bool:
        """Structural equality with another slot sequence."""
        return tuple(slots) == self._slots

    def toggle(self, hour: int, minute: int) -> bool:
        """Flip one slot. Returns True if something changed."""
        idx = slot_index(hour, minute)
        if idx is None:
            _LOGGER.debug("Ignoring toggle for unknown slot %r:%r", hour, minute)
            return False

        slots = list(self._slots)
        old = slots[idx]
        slots[idx] = TimeSlot(old.hour, old.minute, not old.active)
        self._slots = tuple(slots)
        self._revision += 1
        return True

    def replace(self, slots: Iterable[Any]) -> bool:
        """Replace the whole schedule. Invalid input leaves the grid untouched."""
        try:
            new_slots = normalize_slots(slots)
        except ValueError as err:
            _LOGGER.warning("Rejected schedule replacement: %s", err)
            return False

        self._slots = new_slots
        self._revision += 1
        return True
