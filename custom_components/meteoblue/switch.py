"""
Platform for the Meteoblue moving forecast switch.
Turning the switch on engages the moving forecast: while the vessel is under
way, forecasts are fetched along the predicted track instead of at the
current position.
"""
from __future__ import annotations

import logging

from homeassistant import config_entries
from homeassistant.components.switch import SwitchDeviceClass, SwitchEntity
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity import DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .coordinator import MeteoblueCoordinator

_LOGGER = logging.getLogger(__name__)


class MeteoblueEngagementSwitch(CoordinatorEntity[MeteoblueCoordinator], SwitchEntity):
    """
    Representation of the moving forecast engagement flag.
    The state is read from the coordinator snapshot, so automatic engagement
    by the speed threshold shows up here as well.
    """

    def __init__(self, coordinator: MeteoblueCoordinator) -> None:
        super().__init__(coordinator)
        guid = coordinator.entry_data.get("guid") or coordinator.config.entry_name
        self._attr_unique_id = f"meteoblue_{guid}_moving_forecast"
        self._attr_name = f"{coordinator.config.entry_name} Moving Forecast"

    @property
    def device_info(self) -> DeviceInfo | None:
        """Return the device info."""
        return self.coordinator.get_device_info()

    @property
    def device_class(self) -> SwitchDeviceClass | str | None:
        return SwitchDeviceClass.SWITCH

    @property
    def icon(self) -> str | None:
        if self.is_on:
            return "mdi:sail-boat"
        return "mdi:anchor"

    @property
    def is_on(self) -> bool:
        """Return true if the moving forecast is engaged."""
        return self.coordinator.data.engaged

    @property
    def extra_state_attributes(self) -> dict:
        return {"mode": self.coordinator.data.mode.value}

    async def async_turn_on(self, **kwargs) -> None:
        """Engage the moving forecast."""
        self.coordinator.async_set_engagement(True)

    async def async_turn_off(self, **kwargs) -> None:
        """Disengage the moving forecast."""
        self.coordinator.async_set_engagement(False)


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add the engagement switch for passed config_entry in HA."""
    coordinator: MeteoblueCoordinator = config_entry.runtime_data
    _LOGGER.debug("Adding moving forecast switch for %s", coordinator.config.entry_name)
    async_add_entities([MeteoblueEngagementSwitch(coordinator)])
