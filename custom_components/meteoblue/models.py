"""
Domain models for the Meteoblue integration.

This module contains pure data classes: configuration, navigation state,
package selection, account usage and cycle results. No dependencies on HTTP,
API logic, or Home Assistant internals.
"""
from __future__ import annotations

import dataclasses
import enum
import logging
from datetime import datetime
from typing import Any

from .const import (
    CONF_ALTITUDE,
    CONF_API_KEY,
    CONF_ENABLE_AUTO_MOVING_FORECAST,
    CONF_ENABLE_POSITION_SUBSCRIPTION,
    CONF_ENTRY_NAME,
    CONF_FORECAST_INTERVAL,
    CONF_HEADING_ENTITY,
    CONF_MAX_FORECAST_DAYS,
    CONF_MAX_FORECAST_HOURS,
    CONF_MOVING_SPEED_THRESHOLD,
    CONF_POSITION_ENTITY,
    CONF_SOG_ENTITY,
    DAILY,
    DEFAULT_ALTITUDE,
    DEFAULT_FORECAST_INTERVAL,
    DEFAULT_MAX_FORECAST_DAYS,
    DEFAULT_MAX_FORECAST_HOURS,
    DEFAULT_MOVING_SPEED_THRESHOLD,
    GRANULARITY_SUFFIX,
    HOURLY,
    PACKAGE_DEFAULTS,
    PACKAGE_TOGGLES,
)
from .geodesy import Position

_LOGGER = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class PackageSelection:
    """The enabled (package, granularity) pairs, in provider URL order."""

    pairs: tuple[tuple[str, str], ...] = ()

    @classmethod
    def from_toggles(cls, toggles: dict[str, Any]) -> PackageSelection:
        pairs = tuple(
            pair
            for key, pair in PACKAGE_TOGGLES.items()
            if toggles.get(key, PACKAGE_DEFAULTS[key])
        )
        return cls(pairs)

    def packages(self, granularity: str) -> list[str]:
        return [package for package, gran in self.pairs if gran == granularity]

    @property
    def hourly(self) -> list[str]:
        return self.packages(HOURLY)

    @property
    def daily(self) -> list[str]:
        return self.packages(DAILY)

    def provider_names(self) -> list[str]:
        """Package names as the provider expects them: basic-1h, sea-day, …"""
        return [f"{package}-{GRANULARITY_SUFFIX[gran]}" for package, gran in self.pairs]

    def __bool__(self) -> bool:
        return bool(self.pairs)


@dataclasses.dataclass(frozen=True)
class MeteoblueConfig:
    """Typed view over config-entry data, with defaults applied."""

    api_key: str
    entry_name: str = "Meteoblue"
    position_entity: str | None = None
    heading_entity: str | None = None
    sog_entity: str | None = None
    forecast_interval: int = DEFAULT_FORECAST_INTERVAL
    altitude: float = DEFAULT_ALTITUDE
    enable_position_subscription: bool = True
    max_forecast_hours: int = DEFAULT_MAX_FORECAST_HOURS
    max_forecast_days: int = DEFAULT_MAX_FORECAST_DAYS
    enable_auto_moving_forecast: bool = True
    moving_speed_threshold: float = DEFAULT_MOVING_SPEED_THRESHOLD
    packages: PackageSelection = PackageSelection()

    @classmethod
    def from_entry_data(cls, data: dict[str, Any]) -> MeteoblueConfig:
        return cls(
            api_key=data.get(CONF_API_KEY, ""),
            entry_name=data.get(CONF_ENTRY_NAME, "Meteoblue"),
            position_entity=data.get(CONF_POSITION_ENTITY) or None,
            heading_entity=data.get(CONF_HEADING_ENTITY) or None,
            sog_entity=data.get(CONF_SOG_ENTITY) or None,
            forecast_interval=int(data.get(CONF_FORECAST_INTERVAL, DEFAULT_FORECAST_INTERVAL)),
            altitude=data.get(CONF_ALTITUDE, DEFAULT_ALTITUDE),
            enable_position_subscription=data.get(CONF_ENABLE_POSITION_SUBSCRIPTION, True),
            max_forecast_hours=int(data.get(CONF_MAX_FORECAST_HOURS, DEFAULT_MAX_FORECAST_HOURS)),
            max_forecast_days=int(data.get(CONF_MAX_FORECAST_DAYS, DEFAULT_MAX_FORECAST_DAYS)),
            enable_auto_moving_forecast=data.get(CONF_ENABLE_AUTO_MOVING_FORECAST, True),
            moving_speed_threshold=float(
                data.get(CONF_MOVING_SPEED_THRESHOLD, DEFAULT_MOVING_SPEED_THRESHOLD)
            ),
            packages=PackageSelection.from_toggles(data),
        )


@dataclasses.dataclass
class NavigationState:
    """
    Latest navigation data; every field is independently updatable and may be None.

    heading is true heading in radians, sog is speed over ground in m/s.
    """

    position: Position | None = None
    heading: float | None = None
    sog: float | None = None

    def snapshot(self) -> NavigationState:
        return dataclasses.replace(self)


class EngineMode(str, enum.Enum):
    IDLE = "idle"
    STATIONARY = "stationary"
    MOVING = "moving"


@dataclasses.dataclass(frozen=True)
class CycleResult:
    """Outcome of one refresh cycle, reported to the host."""

    mode: str
    success: bool
    completed_at: datetime
    records_published: int = 0
    fell_back: bool = False
    error: str | None = None
    metadata: dict | None = None


@dataclasses.dataclass(frozen=True)
class AccountUsage:
    """Processed Meteoblue account usage."""

    total_requests: int
    used_requests: int
    remaining_requests: int
    usage_percentage: int
    period_start: str
    period_end: str
    status: str
    last_checked: datetime
    usage_by_type: dict[str, dict[str, int]] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass(frozen=True)
class UsageNotification:
    """A threshold-crossing notification about API usage (state is alert, warn or normal)."""

    state: str
    message: str


@dataclasses.dataclass(frozen=True)
class PendingRecord:
    """A normalised record waiting to be published at (package, granularity, index)."""

    record: dict[str, Any]
    package: str
    granularity: str
    index: int
    position: Position | None = None


@dataclasses.dataclass
class ForecastBatch:
    """Everything one fetch path produced; published only once the path has finished."""

    records: list[PendingRecord] = dataclasses.field(default_factory=list)
    metadata: dict | None = None

    def count(self, granularity: str) -> int:
        return sum(1 for pending in self.records if pending.granularity == granularity)
