"""
Great-circle helpers for predicting where the vessel will be.

Spherical earth (R = 6 371 km) is accurate enough for weather lookups;
the provider grid is several kilometres wide.
"""
from __future__ import annotations

import dataclasses
import math
from datetime import datetime, timedelta

from .const import EARTH_RADIUS, KNOTS_TO_MPS
from .units import degrees_to_radians


@dataclasses.dataclass(frozen=True)
class Position:
    """A latitude/longitude pair in decimal degrees, stamped with the time it applies to."""

    latitude: float
    longitude: float
    timestamp: datetime


def predict_position(
    origin: Position, heading_rad: float, speed_mps: float, hours_ahead: float
) -> Position:
    """
    Project origin along heading_rad at speed_mps for hours_ahead hours.

    Uses the great-circle destination formula; hours_ahead == 0 returns the
    origin itself.
    """
    if hours_ahead == 0:
        return origin

    angular_distance = speed_mps * hours_ahead * 3600 / EARTH_RADIUS
    lat1 = degrees_to_radians(origin.latitude)
    lon1 = degrees_to_radians(origin.longitude)

    lat2 = math.asin(
        math.sin(lat1) * math.cos(angular_distance)
        + math.cos(lat1) * math.sin(angular_distance) * math.cos(heading_rad)
    )
    lon2 = lon1 + math.atan2(
        math.sin(heading_rad) * math.sin(angular_distance) * math.cos(lat1),
        math.cos(angular_distance) - math.sin(lat1) * math.sin(lat2),
    )

    return Position(
        latitude=math.degrees(lat2),
        longitude=math.degrees(lon2),
        timestamp=origin.timestamp + timedelta(hours=hours_ahead),
    )


def is_moving(sog_mps: float, threshold_knots: float = 1.0) -> bool:
    """A vessel exactly at the threshold is not moving."""
    return sog_mps > threshold_knots * KNOTS_TO_MPS


def haversine_distance(p1: Position, p2: Position) -> float:
    """Great-circle distance between two positions, in metres."""
    lat1 = degrees_to_radians(p1.latitude)
    lat2 = degrees_to_radians(p2.latitude)
    d_lat = degrees_to_radians(p2.latitude - p1.latitude)
    d_lon = degrees_to_radians(p2.longitude - p1.longitude)

    a = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS * c
