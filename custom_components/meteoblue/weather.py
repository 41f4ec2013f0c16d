"""
Platform for the Meteoblue weather entity.
Current conditions come from the first hourly forecast; hourly and daily
forecasts are read through the weather query adapter. Published values are
SI (Kelvin, metres, Pascal, radians, ratios). Temperature, pressure and
visibility are declared in those native units and converted by Home Assistant;
ratios, radians and precipitation depth have no SI weather unit and are
converted here.
"""
from __future__ import annotations

import logging
import math
from typing import Any

from homeassistant import config_entries
from homeassistant.components.weather import (
    ATTR_CONDITION_CLEAR_NIGHT,
    ATTR_CONDITION_CLOUDY,
    ATTR_CONDITION_FOG,
    ATTR_CONDITION_LIGHTNING,
    ATTR_CONDITION_LIGHTNING_RAINY,
    ATTR_CONDITION_PARTLYCLOUDY,
    ATTR_CONDITION_POURING,
    ATTR_CONDITION_RAINY,
    ATTR_CONDITION_SNOWY,
    ATTR_CONDITION_SNOWY_RAINY,
    ATTR_CONDITION_SUNNY,
    Forecast,
    WeatherEntity,
    WeatherEntityFeature,
)
from homeassistant.const import (
    UnitOfLength,
    UnitOfPrecipitationDepth,
    UnitOfPressure,
    UnitOfSpeed,
    UnitOfTemperature,
)
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.entity import DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity
from homeassistant.util import dt as dt_util

from .const import ATTRIBUTION, DAILY
from .coordinator import MeteoblueCoordinator
from .processing import parse_provider_time
from .weather_query import POINT

_LOGGER = logging.getLogger(__name__)

# Hourly pictocodes 1-35
HOURLY_CONDITIONS: dict[int, str] = {
    **{code: ATTR_CONDITION_SUNNY for code in range(1, 7)},
    **{code: ATTR_CONDITION_PARTLYCLOUDY for code in range(7, 10)},
    **{code: ATTR_CONDITION_LIGHTNING for code in range(10, 13)},
    **{code: ATTR_CONDITION_FOG for code in range(13, 19)},
    **{code: ATTR_CONDITION_CLOUDY for code in range(19, 23)},
    23: ATTR_CONDITION_RAINY,
    24: ATTR_CONDITION_SNOWY,
    25: ATTR_CONDITION_POURING,
    26: ATTR_CONDITION_SNOWY,
    27: ATTR_CONDITION_LIGHTNING_RAINY,
    28: ATTR_CONDITION_LIGHTNING_RAINY,
    29: ATTR_CONDITION_SNOWY,
    30: ATTR_CONDITION_LIGHTNING_RAINY,
    31: ATTR_CONDITION_RAINY,
    32: ATTR_CONDITION_SNOWY,
    33: ATTR_CONDITION_RAINY,
    34: ATTR_CONDITION_SNOWY,
    35: ATTR_CONDITION_SNOWY_RAINY,
}

# Daily pictocodes 1-17
DAILY_CONDITIONS: dict[int, str] = {
    1: ATTR_CONDITION_SUNNY,
    2: ATTR_CONDITION_SUNNY,
    3: ATTR_CONDITION_PARTLYCLOUDY,
    4: ATTR_CONDITION_CLOUDY,
    5: ATTR_CONDITION_FOG,
    6: ATTR_CONDITION_RAINY,
    7: ATTR_CONDITION_RAINY,
    8: ATTR_CONDITION_LIGHTNING_RAINY,
    9: ATTR_CONDITION_SNOWY,
    10: ATTR_CONDITION_SNOWY,
    11: ATTR_CONDITION_SNOWY_RAINY,
    12: ATTR_CONDITION_RAINY,
    13: ATTR_CONDITION_SNOWY,
    14: ATTR_CONDITION_RAINY,
    15: ATTR_CONDITION_SNOWY,
    16: ATTR_CONDITION_RAINY,
    17: ATTR_CONDITION_SNOWY,
}


def pictocode_condition(pictocode: int | None, daily: bool = False, is_daytime: bool | None = None) -> str | None:
    """HA weather condition for a Meteoblue pictocode; a clear night sky is clear-night."""
    if pictocode is None:
        return None
    condition = (DAILY_CONDITIONS if daily else HOURLY_CONDITIONS).get(int(pictocode))
    if condition == ATTR_CONDITION_SUNNY and is_daytime is False:
        return ATTR_CONDITION_CLEAR_NIGHT
    return condition


def _scaled(value: float | None, factor: float = 1, digits: int = 1) -> float | None:
    if value is None:
        return None
    return round(value * factor, digits)


def radians_to_degrees(value: float | None) -> float | None:
    if value is None:
        return None
    return round(math.degrees(value) % 360, 0)


def provider_time_to_iso(value: str | None) -> str | None:
    """Provider wall-clock time (or date) as an aware ISO timestamp in the HA time zone."""
    if not value:
        return None
    parsed = parse_provider_time(value).replace(tzinfo=dt_util.DEFAULT_TIME_ZONE)
    return dt_util.as_utc(parsed).isoformat()


def to_ha_forecast(data: dict[str, Any]) -> Forecast:
    """Convert one weather query entry into an HA Forecast dict."""
    daily = data.get("type") == DAILY
    outside = data.get("outside", {})
    wind = data.get("wind", {})
    sun = data.get("sun", {})
    is_daytime = sun.get("isDaylight")
    pictocode = data.get("pictocode")

    forecast: dict[str, Any] = {
        "datetime": provider_time_to_iso(data.get("date")),
        "condition": pictocode_condition(pictocode, daily, is_daytime),
        "native_temperature": outside.get("maxTemperature") if daily else outside.get("temperature"),
        "native_templow": outside.get("minTemperature") if daily else None,
        "native_apparent_temperature": outside.get("feelsLikeTemperature"),
        "native_dew_point": outside.get("dewPointTemperature"),
        "native_precipitation": _scaled(outside.get("precipitationVolume"), 1000),
        "precipitation_probability": _scaled(outside.get("precipitationProbability"), 100, digits=0),
        "native_pressure": outside.get("pressure"),
        "humidity": _scaled(outside.get("relativeHumidity"), 100, digits=0),
        "cloud_coverage": _scaled(outside.get("cloudCover"), 100, digits=0),
        "uv_index": outside.get("uvIndex"),
        "native_wind_speed": _scaled(wind.get("speedTrue")),
        "native_wind_gust_speed": _scaled(wind.get("gust")),
        "wind_bearing": radians_to_degrees(wind.get("directionTrue")),
    }
    if not daily and is_daytime is not None:
        forecast["is_daytime"] = is_daytime
    return {key: value for key, value in forecast.items() if value is not None}


class MeteoblueWeather(CoordinatorEntity[MeteoblueCoordinator], WeatherEntity):
    """Weather entity for the vessel's forecast position."""

    _attr_attribution = ATTRIBUTION
    _attr_native_temperature_unit = UnitOfTemperature.KELVIN
    _attr_native_pressure_unit = UnitOfPressure.PA
    _attr_native_wind_speed_unit = UnitOfSpeed.METERS_PER_SECOND
    _attr_native_precipitation_unit = UnitOfPrecipitationDepth.MILLIMETERS
    _attr_native_visibility_unit = UnitOfLength.METERS

    def __init__(self, coordinator: MeteoblueCoordinator) -> None:
        super().__init__(coordinator)
        guid = coordinator.entry_data.get("guid") or coordinator.config.entry_name
        self._attr_unique_id = f"meteoblue_{guid}_weather"
        self._attr_name = coordinator.config.entry_name

    @property
    def device_info(self) -> DeviceInfo | None:
        """Return the device info."""
        return self.coordinator.get_device_info()

    @property
    def supported_features(self) -> WeatherEntityFeature:
        features = WeatherEntityFeature(0)
        if self.coordinator.config.packages.hourly:
            features |= WeatherEntityFeature.FORECAST_HOURLY
        if self.coordinator.config.packages.daily:
            features |= WeatherEntityFeature.FORECAST_DAILY
        return features

    def _now(self) -> dict[str, Any]:
        forecasts = self.coordinator.query_forecasts(POINT, 1)
        return forecasts[0] if forecasts else {}

    @property
    def condition(self) -> str | None:
        now = self._now()
        return pictocode_condition(
            now.get("pictocode"),
            is_daytime=now.get("sun", {}).get("isDaylight"),
        )

    @property
    def native_temperature(self) -> float | None:
        return self._now().get("outside", {}).get("temperature")

    @property
    def native_apparent_temperature(self) -> float | None:
        return self._now().get("outside", {}).get("feelsLikeTemperature")

    @property
    def native_dew_point(self) -> float | None:
        return self._now().get("outside", {}).get("dewPointTemperature")

    @property
    def native_pressure(self) -> float | None:
        return self._now().get("outside", {}).get("pressure")

    @property
    def humidity(self) -> float | None:
        return _scaled(self._now().get("outside", {}).get("relativeHumidity"), 100, digits=0)

    @property
    def cloud_coverage(self) -> float | None:
        return _scaled(self._now().get("outside", {}).get("cloudCover"), 100, digits=0)

    @property
    def uv_index(self) -> float | None:
        return self._now().get("outside", {}).get("uvIndex")

    @property
    def native_visibility(self) -> float | None:
        return self._now().get("outside", {}).get("horizontalVisibility")

    @property
    def native_wind_speed(self) -> float | None:
        return _scaled(self._now().get("wind", {}).get("speedTrue"))

    @property
    def native_wind_gust_speed(self) -> float | None:
        return _scaled(self._now().get("wind", {}).get("gust"))

    @property
    def wind_bearing(self) -> float | None:
        return radians_to_degrees(self._now().get("wind", {}).get("directionTrue"))

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        now = self._now()
        attributes: dict[str, Any] = {}
        if now.get("longDescription"):
            attributes["description"] = now["longDescription"]
        water = now.get("water", {})
        if "temperature" in water:
            attributes["sea_surface_temperature"] = water["temperature"]
        if "waveSignificantHeight" in water:
            attributes["significant_wave_height"] = water["waveSignificantHeight"]
        if "seaState" in water:
            attributes["douglas_sea_state"] = water["seaState"]
        if "surfaceCurrentSpeed" in water:
            attributes["current_drift"] = round(water["surfaceCurrentSpeed"], 2)
            attributes["current_set"] = radians_to_degrees(water["surfaceCurrentDirection"])
        tendency = now.get("outside", {}).get("pressureTendency")
        if tendency:
            attributes["pressure_tendency"] = tendency
        return attributes

    async def async_forecast_hourly(self) -> list[Forecast] | None:
        """Return the hourly forecast."""
        forecasts = self.coordinator.query_forecasts(POINT, self.coordinator.config.max_forecast_hours)
        return [to_ha_forecast(forecast) for forecast in forecasts]

    async def async_forecast_daily(self) -> list[Forecast] | None:
        """Return the daily forecast."""
        forecasts = self.coordinator.query_forecasts(DAILY, self.coordinator.config.max_forecast_days)
        return [to_ha_forecast(forecast) for forecast in forecasts]

    @callback
    def _handle_coordinator_update(self) -> None:
        super()._handle_coordinator_update()
        # Forecast subscribers only refresh on request
        self.hass.async_create_task(self.async_update_listeners(None))


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add the weather entity for passed config_entry in HA."""
    coordinator: MeteoblueCoordinator = config_entry.runtime_data
    _LOGGER.debug("Adding weather entity for %s", coordinator.config.entry_name)
    async_add_entities([MeteoblueWeather(coordinator)])
