"""
Which provider fields belong to which Meteoblue package.

A single provider response carries the union of all requested packages, so
every package filters the raw frame down to the fields it owns. A field that
is not listed for a package is never published under that package, even if
the provider returned it (wave height never shows up under "basic").

Also holds the Douglas sea state lookup tables and per-parameter metadata
(units, display name) used by the entities.
"""
from __future__ import annotations

from .const import DAILY, HOURLY

HOURLY_PACKAGE_FIELDS: dict[str, list[str]] = {
    "basic": [
        "temperature",
        "windspeed",
        "winddirection",
        "precipitation",
        "pictocode",
        "relativehumidity",
        "sealevelpressure",
        "surfaceairpressure",
        "uvindex",
        "felttemperature",
        "precipitation_probability",
        "isdaylight",
        "rainspot",
        "convective_precipitation",
        "snowfraction",
        "visibility",
        "dewpoint",
        "dewpointtemperature",
    ],
    "wind": [
        "windspeed",
        "winddirection",
        "gust",
        "windspeed_80m",
        "winddirection_80m",
        "airdensity",
        "surfaceairpressure",
        "sealevelpressure",
    ],
    "sea": [
        "seasurfacetemperature",
        "significantwaveheight",
        "surfwave_height",
        "windwave_height",
        "swell_significantheight",
        "mean_waveperiod",
        "windwave_meanperiod",
        "swell_meanperiod",
        "windwave_peakwaveperiod",
        "swell_peakwaveperiod",
        "mean_wavedirection",
        "windwave_direction",
        "swell_meandirection",
        "douglas_seastate",
        "wavesteepness",
        "currentvelocity_u",
        "currentvelocity_v",
        "salinity",
    ],
    "solar": [
        "uvindex",
        "sunshine_duration",
        "isdaylight",
        "solarradiation",
        "extraterrestrial_solar_radiation",
        "irradiance_direct_normal",
        "irradiance_diffuse_horizontal",
        "irradiance_global_horizontal",
    ],
    "trend": [
        "temperature",
        "precipitation",
        "windspeed",
        "winddirection",
        "pressure_trend",
        "temperature_trend",
        "windspeed_trend",
        "sealevelpressure_trend",
    ],
    "clouds": [
        "cloudcover",
        "total_cloud_cover",
        "low_cloud_cover",
        "mid_cloud_cover",
        "high_cloud_cover",
        "cloud_base_height",
        "cloud_top_height",
    ],
}

DAILY_PACKAGE_FIELDS: dict[str, list[str]] = {
    "basic": [
        "temperature_max",
        "temperature_min",
        "temperature_mean",
        "windspeed_max",
        "windspeed_min",
        "windspeed_mean",
        "winddirection",
        "precipitation",
        "pictocode",
        "relativehumidity_max",
        "relativehumidity_min",
        "relativehumidity_mean",
        "sealevelpressure_max",
        "sealevelpressure_min",
        "sealevelpressure_mean",
        "uvindex",
        "felttemperature_max",
        "felttemperature_min",
        "felttemperature_mean",
        "precipitation_probability",
        "precipitation_hours",
        "snowfraction",
        "rainspot",
        "visibility_mean",
        "dewpoint_max",
        "dewpoint_min",
        "dewpoint_mean",
    ],
    "wind": [
        "windspeed_max",
        "windspeed_min",
        "windspeed_mean",
        "winddirection",
        "sealevelpressure_max",
        "sealevelpressure_min",
        "sealevelpressure_mean",
    ],
    # The provider has no daily wave fields; only the temperature extremes are daily "sea" data.
    "sea": [
        "temperature_max",
        "temperature_min",
    ],
    "solar": [
        "uvindex",
        "sunshine_duration",
        "solarradiation_max",
        "solarradiation_mean",
        "irradiance_direct_normal_max",
        "irradiance_diffuse_horizontal_max",
        "irradiance_global_horizontal_max",
    ],
    "trend": [
        "temperature_max",
        "temperature_min",
        "precipitation",
        "windspeed_max",
        "winddirection",
    ],
    "clouds": [
        "cloudcover_max",
        "cloudcover_min",
        "cloudcover_mean",
        "total_cloud_cover_max",
        "total_cloud_cover_min",
        "total_cloud_cover_mean",
        "low_cloud_cover_mean",
        "mid_cloud_cover_mean",
        "high_cloud_cover_mean",
    ],
}

SEA_STATE_FIELD = "douglas_seastate"
SEA_STATE_DESCRIPTION_FIELD = "douglas_seastate_description"
SEA_STATE_VERBOSE_FIELD = "douglas_seastate_verbose"

DOUGLAS_SEA_STATE_SIMPLE: dict[int, str] = {
    0: "Calm",
    1: "Calm",
    2: "Smooth",
    3: "Slight",
    4: "Moderate",
    5: "Rough",
    6: "Very rough",
    7: "High",
    8: "Very high",
    9: "Phenomenal",
}

DOUGLAS_SEA_STATE_VERBOSE: dict[int, str] = {
    0: "Calm (0m) - Sea like a mirror",
    1: "Calm (0-0.1m) - Ripples with appearance of scales, no foam crests",
    2: "Smooth (0.1-0.5m) - Small wavelets, crests of glassy appearance, not breaking",
    3: "Slight (0.5-1.25m) - Large wavelets, crests begin to break, scattered whitecaps",
    4: "Moderate (1.25-2.5m) - Small waves becoming longer, numerous whitecaps",
    5: "Rough (2.5-4m) - Moderate waves, many whitecaps, some spray",
    6: "Very rough (4-6m) - Large waves, whitecaps everywhere, more spray",
    7: "High (6-9m) - Sea heaps up, white foam streaks off breakers",
    8: "Very high (9-14m) - Moderately high waves, crests break into spindrift",
    9: "Phenomenal (>14m) - High waves, dense foam, sea completely white with driving spray",
}


def package_fields(package: str, granularity: str) -> list[str]:
    """Return the ordered raw field names owned by package; unknown packages own nothing."""
    mapping = HOURLY_PACKAGE_FIELDS if granularity == HOURLY else DAILY_PACKAGE_FIELDS
    return list(mapping.get(package, []))


def douglas_sea_state_simple(scale: float) -> str:
    return DOUGLAS_SEA_STATE_SIMPLE.get(_round_half_up(scale), "Unknown")


def douglas_sea_state_verbose(scale: float) -> str:
    return DOUGLAS_SEA_STATE_VERBOSE.get(_round_half_up(scale), f"Unknown ({scale})")


def _round_half_up(value: float) -> int:
    # Python's round() is banker's rounding; sea state 4.5 must map to 5.
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


# ---------------------------------------------------------------------------
# Parameter metadata
# ---------------------------------------------------------------------------

PARAMETER_METADATA: dict[str, dict[str, str]] = {
    "temperature": {"units": "K", "displayName": "Temperature", "description": "Air temperature forecast"},
    "felttemperature": {"units": "K", "displayName": "Felt Temperature", "description": "Apparent air temperature forecast"},
    "seasurfacetemperature": {"units": "K", "displayName": "Sea Surface Temperature", "description": "Sea surface temperature forecast"},
    "windspeed": {"units": "m/s", "displayName": "Wind Speed", "description": "Wind speed forecast"},
    "gust": {"units": "m/s", "displayName": "Wind Gust", "description": "Wind gust speed forecast"},
    "windspeed_80m": {"units": "m/s", "displayName": "Wind Speed 80m", "description": "Wind speed at 80m altitude forecast"},
    "winddirection": {"units": "rad", "displayName": "Wind Direction", "description": "Wind direction forecast"},
    "winddirection_80m": {"units": "rad", "displayName": "Wind Direction 80m", "description": "Wind direction at 80m altitude forecast"},
    "sealevelpressure": {"units": "Pa", "displayName": "Sea Level Pressure", "description": "Sea level atmospheric pressure forecast"},
    "surfaceairpressure": {"units": "Pa", "displayName": "Surface Air Pressure", "description": "Surface atmospheric pressure forecast"},
    "relativehumidity": {"units": "ratio", "displayName": "Relative Humidity", "description": "Relative humidity forecast (0-1)"},
    "precipitation": {"units": "m", "displayName": "Precipitation", "description": "Precipitation amount forecast"},
    "convective_precipitation": {"units": "m", "displayName": "Convective Precipitation", "description": "Convective precipitation amount forecast"},
    "precipitation_probability": {"units": "ratio", "displayName": "Precipitation Probability", "description": "Precipitation probability forecast (0-1)"},
    "significantwaveheight": {"units": "m", "displayName": "Significant Wave Height", "description": "Significant wave height forecast"},
    "windwave_height": {"units": "m", "displayName": "Wind Wave Height", "description": "Wind generated wave height forecast"},
    "swell_significantheight": {"units": "m", "displayName": "Swell Height", "description": "Swell wave height forecast"},
    "mean_waveperiod": {"units": "s", "displayName": "Wave Period", "description": "Mean wave period forecast"},
    "windwave_meanperiod": {"units": "s", "displayName": "Wind Wave Period", "description": "Wind wave period forecast"},
    "swell_meanperiod": {"units": "s", "displayName": "Swell Period", "description": "Swell wave period forecast"},
    "mean_wavedirection": {"units": "rad", "displayName": "Wave Direction", "description": "Mean wave direction forecast"},
    "windwave_direction": {"units": "rad", "displayName": "Wind Wave Direction", "description": "Wind wave direction forecast"},
    "swell_meandirection": {"units": "rad", "displayName": "Swell Direction", "description": "Swell wave direction forecast"},
    "currentvelocity_u": {"units": "m/s", "displayName": "Current Velocity U", "description": "Ocean current velocity U component forecast"},
    "currentvelocity_v": {"units": "m/s", "displayName": "Current Velocity V", "description": "Ocean current velocity V component forecast"},
    "airdensity": {"units": "kg/m³", "displayName": "Air Density", "description": "Air density forecast"},
    "salinity": {"units": "ratio", "displayName": "Salinity", "description": "Water salinity forecast"},
    "sunshine_duration": {"units": "s", "displayName": "Sunshine Duration", "description": "Sunshine duration forecast"},
    "visibility": {"units": "m", "displayName": "Visibility", "description": "Visibility distance forecast"},
    "uvindex": {"displayName": "UV Index", "description": "UV index forecast"},
    "pictocode": {"displayName": "Weather Code", "description": "Meteoblue weather pictogram code"},
    "douglas_seastate": {"displayName": "Douglas Sea State", "description": "Douglas sea state scale forecast"},
    "douglas_seastate_description": {"displayName": "Douglas Sea State Description", "description": "Douglas sea state scale description (simple)"},
    "douglas_seastate_verbose": {"displayName": "Douglas Sea State Verbose", "description": "Douglas sea state scale description with wave heights and conditions"},
    "isdaylight": {"displayName": "Is Daylight", "description": "Daylight indicator (0=night, 1=day)"},
    "snowfraction": {"displayName": "Snow Fraction", "description": "Snow fraction of precipitation (0-1)"},
    "rainspot": {"displayName": "Rain Spot", "description": "Local rain probability indicator"},
    "vesselMoving": {"displayName": "Vessel Moving", "description": "Indicates if vessel movement prediction is active"},
    "predictedLatitude": {"units": "deg", "displayName": "Predicted Latitude", "description": "Predicted vessel latitude for this forecast hour"},
    "predictedLongitude": {"units": "deg", "displayName": "Predicted Longitude", "description": "Predicted vessel longitude for this forecast hour"},
    "relativeHour": {"units": "h", "displayName": "Relative Hour", "description": "Hours from current time"},
    "dayOfWeek": {"displayName": "Day of Week", "description": "Day of the week name"},
}


def parameter_metadata(name: str) -> dict[str, str]:
    """
    Return units, display name and description for a published parameter.

    Unknown parameters get their units derived from the name, checked in the
    same spirit as the unit conversion (temperature first).
    """
    if name in PARAMETER_METADATA:
        return dict(PARAMETER_METADATA[name])

    if "temperature" in name:
        units, description = "K", "Temperature forecast"
    elif "windspeed" in name or "wind_speed" in name:
        units, description = "m/s", "Wind speed forecast"
    elif "pressure" in name:
        units, description = "Pa", "Pressure forecast"
    elif "humidity" in name:
        units, description = "ratio", "Humidity forecast (0-1)"
    elif name == "precipitation_hours":
        units, description = "h", "Hours with precipitation"
    elif "precipitation" in name and "probability" not in name and "hours" not in name:
        units, description = "m", "Precipitation forecast"
    elif "probability" in name:
        units, description = "ratio", "Probability forecast (0-1)"
    elif "direction" in name:
        units, description = "rad", "Direction forecast"
    elif "visibility" in name:
        units, description = "m", "Visibility forecast"
    else:
        units, description = "", f"{name} forecast parameter"

    return {"units": units, "displayName": name, "description": description}
