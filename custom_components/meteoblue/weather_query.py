"""
Read-only view over the published forecast store.

Re-shapes stored records into the weather data schema (outside, wind, water,
sun and current groupings). All values in the store are already converted,
so nothing here does unit math, and nothing touches the network.
"""
from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import Any

from .const import DAILY, HOURLY, QUERY_OVERSCAN
from .forecast_store import ForecastStore
from .models import PackageSelection
from .packages import package_fields

_LOGGER = logging.getLogger(__name__)

POINT = "point"

# Meteoblue pictocodes (hourly 1-35, daily 1-17).
PICTOCODE_DESCRIPTIONS = {
    1: "Clear", 2: "Clear", 3: "Clear",
    4: "Mostly Clear", 5: "Mostly Clear", 6: "Mostly Clear",
    7: "Partly Cloudy", 8: "Partly Cloudy", 9: "Partly Cloudy",
    10: "Partly Cloudy", 11: "Partly Cloudy", 12: "Partly Cloudy",
    13: "Hazy", 14: "Hazy", 15: "Hazy",
    16: "Foggy", 17: "Foggy", 18: "Foggy",
    19: "Mostly Cloudy", 20: "Mostly Cloudy", 21: "Mostly Cloudy",
    22: "Cloudy",
    23: "Rainy",
    24: "Snow",
    25: "Heavy Rain",
    26: "Heavy Snow",
    27: "Thunderstorms", 28: "Thunderstorms",
    29: "Snow Storm",
    30: "Thunderstorms",
    31: "Showers",
    32: "Snow Showers",
    33: "Light Rain",
    34: "Light Snow",
    35: "Wintry Mix",
}

PICTOCODE_LONG_DESCRIPTIONS = {
    1: "Clear, cloudless sky",
    2: "Clear, few cirrus",
    3: "Clear with cirrus",
    4: "Clear with few low clouds",
    5: "Clear with few low clouds and few cirrus",
    6: "Clear with few low clouds and cirrus",
    7: "Partly cloudy",
    8: "Partly cloudy and few cirrus",
    9: "Partly cloudy and cirrus",
    10: "Mixed with some thunderstorm clouds possible",
    11: "Mixed with few cirrus and some thunderstorm clouds possible",
    12: "Mixed with cirrus and some thunderstorm clouds possible",
    13: "Clear but hazy",
    14: "Clear but hazy with few cirrus",
    15: "Clear but hazy with cirrus",
    16: "Fog or low stratus clouds",
    17: "Fog or low stratus clouds with few cirrus",
    18: "Fog or low stratus clouds with cirrus",
    19: "Mostly cloudy",
    20: "Mostly cloudy and few cirrus",
    21: "Mostly cloudy and cirrus",
    22: "Overcast",
    23: "Overcast with rain",
    24: "Overcast with snow",
    25: "Overcast with heavy rain",
    26: "Overcast with heavy snow",
    27: "Rain, thunderstorms likely",
    28: "Light rain, thunderstorms likely",
    29: "Storm with heavy snow",
    30: "Heavy rain, thunderstorms likely",
    31: "Mixed with showers",
    32: "Mixed with snow showers",
    33: "Overcast with light rain",
    34: "Overcast with light snow",
    35: "Overcast with mixture of snow and rain",
}


def weather_description(pictocode: int | None, fallback: str = "Meteoblue weather") -> str:
    return PICTOCODE_DESCRIPTIONS.get(pictocode, fallback)


def weather_long_description(
    pictocode: int | None, fallback: str = "Meteoblue weather forecast"
) -> str:
    return PICTOCODE_LONG_DESCRIPTIONS.get(pictocode, fallback)


def weather_icon(pictocode: int | None, is_daylight: Any) -> str | None:
    """Icon file name such as "01_day.svg" or "09_night.svg"."""
    if pictocode is None:
        return None
    day_night = "day" if is_daylight is True or is_daylight == 1 else "night"
    return f"{int(pictocode):02d}_{day_night}.svg"


def pressure_tendency(record: dict) -> str | None:
    trend = record.get("pressure_trend") or record.get("sealevelpressure_trend")
    if not trend:
        return None
    return "increasing" if trend > 0 else "decreasing"


def _current(record: dict) -> tuple[float | None, float | None]:
    """Surface current (drift m/s, set rad) from its u/v components; None unless both exist."""
    u = record.get("currentvelocity_u")
    v = record.get("currentvelocity_v")
    if u is None or v is None:
        return None, None
    return math.sqrt(u ** 2 + v ** 2), math.atan2(v, u)


def _compact(group: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in group.items() if value is not None}


def to_weather_data(record: dict, granularity: str) -> dict[str, Any]:
    """Re-shape one merged record; granularity is "point" or "daily"."""
    pictocode = record.get("pictocode")
    drift, current_set = _current(record)

    if granularity == DAILY:
        outside = {
            "temperature": record.get("temperature_mean"),
            "maxTemperature": record.get("temperature_max"),
            "minTemperature": record.get("temperature_min"),
            "feelsLikeTemperature": record.get("felttemperature_mean"),
            "pressure": record.get("sealevelpressure_mean"),
            "relativeHumidity": record.get("relativehumidity_mean"),
            "uvIndex": record.get("uvindex"),
            "precipitationVolume": record.get("precipitation"),
            "dewPointTemperature": record.get("dewpoint_mean"),
            "horizontalVisibility": record.get("visibility_mean"),
            "precipitationProbability": record.get("precipitation_probability"),
            "cloudCover": record.get("cloudcover_mean"),
            "totalCloudCover": record.get("total_cloud_cover_mean"),
            "lowCloudCover": record.get("low_cloud_cover_mean"),
            "midCloudCover": record.get("mid_cloud_cover_mean"),
            "highCloudCover": record.get("high_cloud_cover_mean"),
            "solarRadiation": record.get("solarradiation_mean"),
            "directNormalIrradiance": record.get("irradiance_direct_normal_max"),
            "diffuseHorizontalIrradiance": record.get("irradiance_diffuse_horizontal_max"),
            "globalHorizontalIrradiance": record.get("irradiance_global_horizontal_max"),
        }
        wind = {
            "speedTrue": record.get("windspeed_max"),
            "directionTrue": record.get("winddirection"),
            "averageSpeed": record.get("windspeed_mean"),
        }
        water = {
            "temperature": record.get("seasurfacetemperature_mean"),
            "surfaceCurrentSpeed": drift,
            "surfaceCurrentDirection": current_set,
        }
        sun = {"sunshineDuration": record.get("sunshine_duration")}
        icon = weather_icon(pictocode, True)
        date = record.get("date") or record.get("timestamp")
    else:
        outside = {
            "temperature": record.get("temperature"),
            "pressure": record.get("sealevelpressure"),
            "relativeHumidity": record.get("relativehumidity"),
            "uvIndex": record.get("uvindex"),
            "cloudCover": record.get("cloudcover"),
            "precipitationVolume": record.get("precipitation"),
            "feelsLikeTemperature": record.get("felttemperature"),
            "horizontalVisibility": record.get("visibility"),
            "dewPointTemperature": record.get("dewpoint") or record.get("dewpointtemperature"),
            "precipitationProbability": record.get("precipitation_probability"),
            "pressureTendency": pressure_tendency(record),
            "solarRadiation": record.get("solarradiation"),
            "directNormalIrradiance": record.get("irradiance_direct_normal"),
            "diffuseHorizontalIrradiance": record.get("irradiance_diffuse_horizontal"),
            "globalHorizontalIrradiance": record.get("irradiance_global_horizontal"),
            "extraterrestrialSolarRadiation": record.get("extraterrestrial_solar_radiation"),
            "totalCloudCover": record.get("total_cloud_cover"),
            "lowCloudCover": record.get("low_cloud_cover"),
            "midCloudCover": record.get("mid_cloud_cover"),
            "highCloudCover": record.get("high_cloud_cover"),
            "cloudBaseHeight": record.get("cloud_base_height"),
            "cloudTopHeight": record.get("cloud_top_height"),
        }
        wind = {
            "speedTrue": record.get("windspeed"),
            "directionTrue": record.get("winddirection"),
            "gust": record.get("gust"),
            "averageSpeed": record.get("windspeed"),
            "gustDirectionTrue": record.get("gustdirection"),
        }
        water = {
            "temperature": record.get("seasurfacetemperature"),
            "waveSignificantHeight": record.get("significantwaveheight"),
            "wavePeriod": record.get("mean_waveperiod"),
            "waveDirection": record.get("mean_wavedirection"),
            "swellHeight": record.get("swell_significantheight"),
            "swellPeriod": record.get("swell_meanperiod"),
            "swellDirection": record.get("swell_meandirection"),
            "surfaceCurrentSpeed": drift,
            "surfaceCurrentDirection": current_set,
            "salinity": record.get("salinity"),
            "seaState": record.get("douglas_seastate"),
            "surfaceWaveHeight": record.get("surfwave_height"),
            "windWaveHeight": record.get("windwave_height"),
            "windWavePeriod": record.get("windwave_meanperiod"),
            "windWaveDirection": record.get("windwave_direction"),
            "swellPeakPeriod": record.get("swell_peakwaveperiod"),
            "windWavePeakPeriod": record.get("windwave_peakwaveperiod"),
            "waveSteepness": record.get("wavesteepness"),
        }
        is_daylight = record.get("isdaylight")
        sun = {
            "sunshineDuration": record.get("sunshine_duration"),
            "isDaylight": None if is_daylight is None else is_daylight == 1,
        }
        icon = weather_icon(pictocode, is_daylight)
        date = record.get("timestamp")

    data: dict[str, Any] = {
        "date": date,
        "type": granularity,
        "description": weather_description(pictocode),
        "longDescription": weather_long_description(pictocode),
    }
    if pictocode is not None:
        data["pictocode"] = pictocode
    if icon is not None:
        data["icon"] = icon
    data["outside"] = _compact(outside)
    data["wind"] = _compact(wind)
    data["water"] = _compact(water)
    data["sun"] = _compact(sun)
    data["current"] = _compact({"drift": drift, "set": current_set})
    return data


def forecast_count(store: ForecastStore, granularity: str, max_count: int) -> int:
    """
    Number of consecutive indices from 0 holding data, capped at max_count.

    The scan never looks further than max_count + QUERY_OVERSCAN indices.
    """
    found = 0
    for index in range(max_count + QUERY_OVERSCAN):
        if not store.has_index(granularity, index):
            break
        found = index + 1
    return min(found, max_count)


def query_forecasts(
    store: ForecastStore,
    selection: PackageSelection,
    granularity: str,
    max_count: int,
    now: datetime,
) -> list[dict[str, Any]]:
    """
    Up to max_count forecasts of the given granularity ("point" or "daily").

    Returns [] without reading the store when no package of that granularity
    is enabled.
    """
    store_granularity = DAILY if granularity == DAILY else HOURLY
    packages = selection.packages(store_granularity)
    if not packages:
        return []

    count = forecast_count(store, store_granularity, max_count)
    _LOGGER.debug("Found %s %s forecasts in store", count, store_granularity)

    fields: list[str] = []
    for package in packages:
        for field in package_fields(package, store_granularity):
            if field not in fields:
                fields.append(field)

    forecasts = []
    for index in range(count):
        merged = store.merged_record(store_granularity, index) or {}
        record = {
            key: value for key, value in merged.items()
            if key in fields or key in ("timestamp", "date")
        }
        if not record:
            continue
        if not record.get("timestamp") and not record.get("date"):
            if store_granularity == DAILY:
                record["date"] = (now + timedelta(days=index)).date().isoformat()
            else:
                record["timestamp"] = (now + timedelta(hours=index)).isoformat()
        forecasts.append(to_weather_data(record, DAILY if store_granularity == DAILY else POINT))
    return forecasts


def get_observations() -> list[dict[str, Any]]:
    """Meteoblue offers no observations."""
    return []


def get_warnings() -> list[dict[str, Any]]:
    """Meteoblue offers no weather warnings."""
    return []
