"""
Platform for Meteoblue sensor integration.
This module sets up the status, mode, API usage and sea state sensors plus
one sensor per forecast parameter of the current hour, all fed from the
coordinator snapshot and the published forecast store.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Callable

from homeassistant import config_entries
from homeassistant.components.sensor import SensorDeviceClass, SensorEntity, SensorStateClass
from homeassistant.const import (
    DEGREE,
    PERCENTAGE,
    UnitOfLength,
    UnitOfPrecipitationDepth,
    UnitOfPressure,
    UnitOfSpeed,
    UnitOfTemperature,
    UnitOfTime,
)
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity import DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import ATTRIBUTION, HOURLY
from .coordinator import MeteoblueCoordinator
from .models import EngineMode
from .packages import (
    SEA_STATE_DESCRIPTION_FIELD,
    SEA_STATE_FIELD,
    SEA_STATE_VERBOSE_FIELD,
    package_fields,
    parameter_metadata,
)

_LOGGER = logging.getLogger(__name__)

STATUS_OK = "Last updated"
STATUS_ERROR = "Error"

# Parameter sensors enabled when the entity is first registered
DEFAULT_ENABLED_PARAMETERS = {
    "temperature",
    "windspeed",
    "gust",
    "winddirection",
    "sealevelpressure",
    "precipitation",
    "seasurfacetemperature",
    "significantwaveheight",
}

# Text fields are exposed through the sea state sensor, not as parameters
TEXT_PARAMETERS = {SEA_STATE_DESCRIPTION_FIELD, SEA_STATE_VERBOSE_FIELD}

# Published units → (HA unit, device class, value transform)
UNIT_PRESENTATION: dict[str, tuple[str | None, SensorDeviceClass | None, Callable[[float], float] | None]] = {
    "K": (UnitOfTemperature.KELVIN, SensorDeviceClass.TEMPERATURE, None),
    "m/s": (UnitOfSpeed.METERS_PER_SECOND, SensorDeviceClass.SPEED, None),
    "Pa": (UnitOfPressure.PA, SensorDeviceClass.PRESSURE, None),
    "m": (UnitOfLength.METERS, SensorDeviceClass.DISTANCE, None),
    "s": (UnitOfTime.SECONDS, SensorDeviceClass.DURATION, None),
    "h": (UnitOfTime.HOURS, SensorDeviceClass.DURATION, None),
    "rad": (DEGREE, None, math.degrees),
    "ratio": (PERCENTAGE, None, lambda value: value * 100),
}


def presentation_for(field: str) -> tuple[str | None, SensorDeviceClass | None, Callable[[float], float] | None]:
    """HA unit, device class and value transform for a published parameter."""
    units = parameter_metadata(field).get("units", "")
    if units == "m" and "precipitation" in field:
        return UnitOfPrecipitationDepth.MILLIMETERS, SensorDeviceClass.PRECIPITATION, lambda value: value * 1000
    if units == "m/s" and ("wind" in field or field == "gust"):
        return UnitOfSpeed.METERS_PER_SECOND, SensorDeviceClass.WIND_SPEED, None
    return UNIT_PRESENTATION.get(units, (units or None, None, None))


class MeteoblueSensor(CoordinatorEntity[MeteoblueCoordinator], SensorEntity):
    """Common base: unique id, name and device of one Meteoblue sensor."""

    _attr_attribution = ATTRIBUTION

    def __init__(self, coordinator: MeteoblueCoordinator, key: str, name: str) -> None:
        super().__init__(coordinator)
        guid = coordinator.entry_data.get("guid") or coordinator.config.entry_name
        self._attr_unique_id = f"meteoblue_{guid}_{key}"
        self._attr_name = f"{coordinator.config.entry_name} {name}"

    @property
    def device_info(self) -> DeviceInfo | None:
        """Return the device info."""
        return self.coordinator.get_device_info()


class MeteoblueStatusSensor(MeteoblueSensor):
    """
    Outcome of the last refresh cycle.
    State is "Last updated" after a successful cycle and "Error" after a
    failed one; details are in the attributes.
    """

    def __init__(self, coordinator: MeteoblueCoordinator) -> None:
        super().__init__(coordinator, "status", "Status")

    @property
    def icon(self) -> str | None:
        if self.native_value == STATUS_ERROR:
            return "mdi:cloud-alert"
        return "mdi:cloud-check"

    @property
    def native_value(self) -> str | None:
        result = self.coordinator.data.last_result
        if result is None:
            return None
        return STATUS_OK if result.success else STATUS_ERROR

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        data = self.coordinator.data
        attributes: dict[str, Any] = {
            "hourly_forecasts": data.hourly_count,
            "daily_forecasts": data.daily_count,
        }
        if data.last_forecast_update is not None:
            attributes["last_forecast_update"] = data.last_forecast_update.isoformat()
        if data.forecast_position is not None:
            attributes["forecast_latitude"] = data.forecast_position.latitude
            attributes["forecast_longitude"] = data.forecast_position.longitude
        result = data.last_result
        if result is not None:
            attributes["mode"] = str(result.mode)
            attributes["records_published"] = result.records_published
            attributes["fell_back_to_stationary"] = result.fell_back
            if result.error:
                attributes["error"] = result.error
        if data.metadata:
            for key in ("modelrun_utc", "modelrun_updatetime_utc", "timezone_abbrevation", "height"):
                if key in data.metadata:
                    attributes[key] = data.metadata[key]
        return attributes


class MeteoblueModeSensor(MeteoblueSensor):
    """Which fetch path the engine would take right now."""

    _attr_device_class = SensorDeviceClass.ENUM
    _attr_options = [mode.value for mode in EngineMode]

    def __init__(self, coordinator: MeteoblueCoordinator) -> None:
        super().__init__(coordinator, "mode", "Forecast Mode")

    @property
    def icon(self) -> str | None:
        mode = self.coordinator.data.mode
        if mode == EngineMode.MOVING:
            return "mdi:map-marker-path"
        if mode == EngineMode.STATIONARY:
            return "mdi:map-marker"
        return "mdi:map-marker-off"

    @property
    def native_value(self) -> str | None:
        return self.coordinator.data.mode.value


class MeteoblueApiUsageSensor(MeteoblueSensor):
    """Estimated share of the monthly API credits already spent."""

    _attr_native_unit_of_measurement = PERCENTAGE
    _attr_state_class = SensorStateClass.MEASUREMENT
    _attr_icon = "mdi:api"

    def __init__(self, coordinator: MeteoblueCoordinator) -> None:
        super().__init__(coordinator, "api_usage", "API Usage")

    @property
    def native_value(self) -> int | None:
        usage = self.coordinator.data.account_usage
        if usage is None:
            return None
        return usage.usage_percentage

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        usage = self.coordinator.data.account_usage
        if usage is None:
            return {}
        return {
            "total_requests": usage.total_requests,
            "used_requests": usage.used_requests,
            "remaining_requests": usage.remaining_requests,
            "period_start": usage.period_start,
            "period_end": usage.period_end,
            "status": usage.status,
            "last_checked": usage.last_checked.isoformat(),
            "usage_by_type": usage.usage_by_type,
        }


class MeteoblueSeaStateSensor(MeteoblueSensor):
    """Douglas sea state of the current forecast hour, as its short description."""

    _attr_icon = "mdi:waves"

    def __init__(self, coordinator: MeteoblueCoordinator) -> None:
        super().__init__(coordinator, "sea_state", "Sea State")

    @property
    def native_value(self) -> str | None:
        return self.coordinator.store.get(HOURLY, SEA_STATE_DESCRIPTION_FIELD, 0)

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        store = self.coordinator.store
        return {
            "douglas_scale": store.get(HOURLY, SEA_STATE_FIELD, 0),
            "description": store.get(HOURLY, SEA_STATE_VERBOSE_FIELD, 0),
        }


class MeteoblueParameterSensor(MeteoblueSensor):
    """
    One forecast parameter at the current hour (hourly index 0).
    Values are published in SI units; directions are shown in degrees and
    ratios in percent.
    """

    _attr_state_class = SensorStateClass.MEASUREMENT

    def __init__(self, coordinator: MeteoblueCoordinator, field: str) -> None:
        self._field = field
        self._metadata = parameter_metadata(field)
        super().__init__(coordinator, f"hourly_{field}", self._metadata["displayName"])
        unit, device_class, transform = presentation_for(field)
        self._attr_native_unit_of_measurement = unit
        self._attr_device_class = device_class
        self._transform = transform
        self._attr_entity_registry_enabled_default = field in DEFAULT_ENABLED_PARAMETERS

    @property
    def native_value(self) -> float | None:
        value = self.coordinator.store.get(HOURLY, self._field, 0)
        if value is None:
            return None
        if self._transform is not None:
            return round(self._transform(value), 2)
        return value

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        attributes: dict[str, Any] = {
            "parameter": self._field,
            "description": self._metadata["description"],
        }
        if self._metadata.get("units"):
            attributes["published_units"] = self._metadata["units"]
        timestamp = self.coordinator.store.get(HOURLY, "timestamp", 0)
        if timestamp is not None:
            attributes["forecast_time"] = timestamp
        position = self.coordinator.store.position(HOURLY, 0)
        if position is not None:
            attributes["latitude"] = position.latitude
            attributes["longitude"] = position.longitude
        return attributes


def parameter_fields(coordinator: MeteoblueCoordinator) -> list[str]:
    """Numeric hourly fields owned by the enabled hourly packages, without duplicates."""
    fields: list[str] = []
    for package in coordinator.config.packages.hourly:
        for field in package_fields(package, HOURLY):
            if field not in fields and field not in TEXT_PARAMETERS:
                fields.append(field)
    return fields


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add sensors for passed config_entry in HA."""
    coordinator: MeteoblueCoordinator = config_entry.runtime_data
    _LOGGER.debug("Starting sensor setup for %s", coordinator.config.entry_name)

    entities: list[SensorEntity] = [
        MeteoblueStatusSensor(coordinator),
        MeteoblueModeSensor(coordinator),
        MeteoblueApiUsageSensor(coordinator),
    ]
    if "sea" in coordinator.config.packages.hourly:
        entities.append(MeteoblueSeaStateSensor(coordinator))
    for field in parameter_fields(coordinator):
        entities.append(MeteoblueParameterSensor(coordinator, field))

    async_add_entities(entities)
