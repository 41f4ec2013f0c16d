"""
MovingForecastAssembler - hourly forecast along the vessel's predicted track.

For every forecast hour the vessel's position is projected along its current
heading and speed, the provider is queried at that position, and the row for
that exact hour is picked out of the response. The per-hour rows are stitched
into one hourly series per package.

Pure asyncio; the fetch capability is injected, so there are no HA or
network dependencies here.
"""
from __future__ import annotations

import asyncio
import logging
import math
from datetime import datetime
from typing import Awaitable, Callable

from .const import HOURLY, MPS_TO_KNOTS, REQUEST_DELAY
from .errors import DataShapeError
from .geodesy import Position, predict_position
from .models import ForecastBatch, PackageSelection, PendingRecord
from .processing import (
    build_hourly_record,
    find_row_for_hour,
    process_daily_block,
    target_hour,
)

_LOGGER = logging.getLogger(__name__)

# (lat, lon, provider package names) -> raw provider frame
FetchForecast = Callable[[float, float, list[str]], Awaitable[dict]]


class MovingForecastAssembler:
    """
    Builds a ForecastBatch for a moving vessel.

    Fetches are sequential with pacing_delay seconds between them. Any fetch
    error propagates out of assemble() so the caller can fall back to a
    stationary forecast; nothing is returned for a partial track.
    """

    def __init__(
        self,
        fetch_forecast: FetchForecast,
        max_forecast_hours: int,
        max_forecast_days: int,
        pacing_delay: float = REQUEST_DELAY,
    ) -> None:
        self._fetch_forecast = fetch_forecast
        self._max_forecast_hours = max_forecast_hours
        self._max_forecast_days = max_forecast_days
        self._pacing_delay = pacing_delay

    async def assemble(
        self,
        origin: Position,
        heading: float,
        sog: float,
        selection: PackageSelection,
        now: datetime,
    ) -> ForecastBatch:
        packages = selection.provider_names()
        hourly_packages = selection.hourly
        # package → records found so far; skipped hours leave no gap in the index
        series: dict[str, list[PendingRecord]] = {package: [] for package in hourly_packages}
        batch = ForecastBatch()
        daily_frame: dict | None = None

        _LOGGER.debug(
            "Vessel moving at %.1f knots, heading %.1f°; fetching position-specific forecasts for %s hours",
            sog * MPS_TO_KNOTS, math.degrees(heading), self._max_forecast_hours,
        )

        for hour in range(self._max_forecast_hours):
            predicted = predict_position(origin, heading, sog, hour)
            target = target_hour(now, hour)
            _LOGGER.debug(
                "Hour %s: fetching weather for %.6f, %.6f at %s",
                hour, predicted.latitude, predicted.longitude, target.isoformat(),
            )

            frame = await self._fetch_forecast(predicted.latitude, predicted.longitude, packages)
            if hour == 0:
                # Hour 0 is fetched at the current position; its daily block
                # serves the daily forecast.
                daily_frame = frame
                batch.metadata = frame.get("metadata")

            self._collect_hour(frame, target, predicted, hourly_packages, series, now)

            if hour < self._max_forecast_hours - 1:
                await asyncio.sleep(self._pacing_delay)

        for package in hourly_packages:
            batch.records.extend(series[package])
            _LOGGER.debug(
                "Assembled %s position-specific forecasts for %s package",
                len(series[package]), package,
            )

        if selection.daily:
            _LOGGER.debug("Processing daily forecasts for current position")
            batch.records.extend(
                process_daily_block(
                    daily_frame.get("data_day") if daily_frame else None,
                    selection,
                    self._max_forecast_days,
                    origin,
                )
            )

        return batch

    def _collect_hour(
        self,
        frame: dict,
        target: datetime,
        predicted: Position,
        hourly_packages: list[str],
        series: dict[str, list[PendingRecord]],
        now: datetime,
    ) -> None:
        """Append the row matching target, for every hourly package, to series."""
        data = frame.get("data_1h")
        try:
            row = find_row_for_hour(data, target)
        except DataShapeError as err:
            _LOGGER.debug("No hourly data at %.6f, %.6f: %s", predicted.latitude, predicted.longitude, err)
            return

        if row is None:
            _LOGGER.debug(
                "No forecast found for target time %s at %.6f, %.6f",
                target.isoformat(), predicted.latitude, predicted.longitude,
            )
            return

        for package in hourly_packages:
            record = build_hourly_record(data, row, package, now)
            record["predictedLatitude"] = predicted.latitude
            record["predictedLongitude"] = predicted.longitude
            record["vesselMoving"] = True
            records = series[package]
            records.append(PendingRecord(record, package, HOURLY, len(records), predicted))
