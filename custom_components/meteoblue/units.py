"""
Unit conversion from Meteoblue native units to the units the integration publishes.

Meteoblue returns °C, degrees, hPa, mm and percent; everything published is
SI-style: K, rad, Pa, m and ratio 0-1.
"""
from __future__ import annotations

import math
from typing import Any, Callable


def celsius_to_kelvin(celsius: float) -> float:
    return celsius + 273.15


def degrees_to_radians(degrees: float) -> float:
    return degrees * (math.pi / 180)


def hectopascal_to_pascal(hpa: float) -> float:
    return hpa * 100


def millimeters_to_meters(mm: float) -> float:
    return mm / 1000


def percent_to_ratio(percent: float) -> float:
    return percent / 100


# Evaluated top to bottom, first match wins. Several provider fields match more
# than one pattern (e.g. "temperature_trend", "sealevelpressure_trend"), so the
# order is part of the contract.
FIELD_CONVERSIONS: list[tuple[Callable[[str], bool], Callable[[float], float]]] = [
    (lambda field: "temperature" in field, celsius_to_kelvin),
    (lambda field: "direction" in field, degrees_to_radians),
    (lambda field: field in ("precipitation", "convective_precipitation"), millimeters_to_meters),
    (lambda field: "pressure" in field, hectopascal_to_pascal),
    (
        lambda field: "humidity" in field or "cloudcover" in field or field.endswith("probability"),
        percent_to_ratio,
    ),
]


def convert_field_value(field: str, value: Any) -> Any:
    """Convert a raw provider value according to its field name; unmatched fields pass through."""
    for matches, convert in FIELD_CONVERSIONS:
        if matches(field):
            return convert(value)
    return value
