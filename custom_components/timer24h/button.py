"""Button platform for Timer 24H integration."""
from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from typing import TYPE_CHECKING

from homeassistant.components.button import ButtonEntity, ButtonEntityDescription
from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import DOMAIN, VERSION
from .coordinator import Timer24hCoordinator

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback
    from . import Timer24hConfigEntry


@dataclass(frozen=True, kw_only=True)
class Timer24hButtonDescription(ButtonEntityDescription):
    """Class to describe a Timer 24H button."""
    press_action: str


BUTTONS: tuple[Timer24hButtonDescription, ...] = (
    Timer24hButtonDescription(
        key="sync_now",
        translation_key="sync_now",
        icon="mdi:cloud-refresh",
        press_action="sync_now",
    ),
    Timer24hButtonDescription(
        key="apply_now",
        translation_key="apply_now",
        icon="mdi:play-circle-outline",
        press_action="apply_now",
    ),
)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: Timer24hConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the buttons."""
    coordinator = entry.runtime_data
    async_add_entities(
        Timer24hButton(coordinator, entry, description)
        for description in BUTTONS
    )


class Timer24hButton(CoordinatorEntity[Timer24hCoordinator], ButtonEntity):
    """Representation of a Timer 24H button."""

    _attr_has_entity_name = True
    entity_description: Timer24hButtonDescription

    def __init__(
        self,
        coordinator: Timer24hCoordinator,
        entry: Timer24hConfigEntry,
        description: Timer24hButtonDescription,
    ) -> None:
        """Initialize the button."""
        super().__init__(coordinator)
        self.entity_description = description
        self.entry_id = entry.entry_id
        self._attr_unique_id = f"{entry.entry_id}_{description.key}"

    @cached_property
    def device_info(self) -> DeviceInfo:
        """Return device information."""
        return DeviceInfo(
            identifiers={(DOMAIN, self.entry_id)},
            name=self.coordinator.device_name,
            manufacturer="Timer 24H",
            model="24 Hour Timer",
            sw_version=VERSION,
        )

    async def async_press(self) -> None:
        """Handle the button press."""
        if self.entity_description.press_action == "sync_now":
            await self.coordinator.sync_now()
        elif self.entity_description.press_action == "apply_now":
            await self.coordinator.apply_now()
