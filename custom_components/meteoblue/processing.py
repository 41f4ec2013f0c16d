"""
Turn raw Meteoblue frames into package-scoped, unit-normalised records.

Pure data module with no HA or network dependencies.

Hourly and daily provider data come as parallel arrays keyed by field name
plus a "time" array; one record is produced per row and package, holding only
the fields that package owns (see packages.py) converted by units.py.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any

from .const import DAILY, HOURLY
from .errors import DataShapeError
from .geodesy import Position
from .models import ForecastBatch, PackageSelection, PendingRecord
from .packages import (
    SEA_STATE_DESCRIPTION_FIELD,
    SEA_STATE_FIELD,
    SEA_STATE_VERBOSE_FIELD,
    douglas_sea_state_simple,
    douglas_sea_state_verbose,
    package_fields,
)
from .units import convert_field_value

_LOGGER = logging.getLogger(__name__)

DAYS_OF_WEEK = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def parse_provider_time(value: str) -> datetime:
    """
    Parse a provider timestamp ("2024-05-01 13:00" or "2024-05-01").

    Provider times are wall-clock times at the forecast location; any offset
    is dropped so they compare against the naive local clock. A value that
    is not a timestamp raises DataShapeError.
    """
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError) as err:
        raise DataShapeError(f"Invalid provider time {value!r}: {err}") from err
    if parsed.tzinfo is not None:
        parsed = parsed.replace(tzinfo=None)
    return parsed


def time_array(data: dict | None, granularity: str) -> list:
    """Return the time array of a data block or raise DataShapeError."""
    if not data or not isinstance(data.get("time"), list):
        raise DataShapeError(f"Invalid {granularity} forecast data: missing or invalid time array")
    return data["time"]


def normalize_row(data: dict, index: int, fields: list[str]) -> dict[str, Any]:
    """Extract and convert the given fields of one row; missing or null values are left out."""
    record: dict[str, Any] = {}
    for field in fields:
        column = data.get(field)
        if not isinstance(column, list) or index >= len(column):
            continue
        value = column[index]
        if value is None:
            continue
        if field == SEA_STATE_FIELD:
            record[field] = value
            record[SEA_STATE_DESCRIPTION_FIELD] = douglas_sea_state_simple(value)
            record[SEA_STATE_VERBOSE_FIELD] = douglas_sea_state_verbose(value)
        else:
            record[field] = convert_field_value(field, value)
    return record


def relative_hour(forecast_time: datetime, now: datetime) -> int:
    return round((forecast_time - now).total_seconds() / 3600)


def hourly_start_index(times: list, now: datetime) -> int:
    """
    Index of the first row at or after the current hour.

    Provider data starts at local midnight. If every row is before the current
    hour, fall back to the first row strictly after now (0 if there is none).
    """
    current_hour = truncate_to_hour(now)
    for index, value in enumerate(times):
        if parse_provider_time(value) >= current_hour:
            return index
    for index, value in enumerate(times):
        if parse_provider_time(value) > now:
            return index
    return 0


def find_row_for_hour(data: dict, target: datetime) -> int | None:
    """
    Locate the hourly row for target by calendar year/month/day/hour.

    Rows are matched by time, never by position: the provider series starts
    at local midnight, so the wanted row is not at the hour offset.
    """
    for index, value in enumerate(time_array(data, HOURLY)):
        row_time = parse_provider_time(value)
        if (
            row_time.year == target.year
            and row_time.month == target.month
            and row_time.day == target.day
            and row_time.hour == target.hour
        ):
            return index
    return None


def build_hourly_record(data: dict, index: int, package: str, now: datetime) -> dict[str, Any]:
    timestamp = data["time"][index]
    record: dict[str, Any] = {
        "timestamp": timestamp,
        "relativeHour": relative_hour(parse_provider_time(timestamp), now),
    }
    record.update(normalize_row(data, index, package_fields(package, HOURLY)))
    return record


def process_hourly_package(
    data: dict | None, max_hours: int, package: str, now: datetime
) -> list[dict[str, Any]]:
    """Records for up to max_hours rows starting at the current hour."""
    times = time_array(data, HOURLY)
    start = hourly_start_index(times, now)
    count = max(0, min(len(times) - start, max_hours))

    _LOGGER.debug(
        "Processing %s hourly forecasts for %s package starting from index %s",
        count, package, start,
    )
    return [build_hourly_record(data, start + offset, package, now) for offset in range(count)]


def process_daily_package(data: dict | None, max_days: int, package: str) -> list[dict[str, Any]]:
    """Records for the first max_days rows of the daily block."""
    times = time_array(data, DAILY)
    count = min(len(times), max_days)
    fields = package_fields(package, DAILY)

    _LOGGER.debug("Processing %s daily forecasts for %s package", count, package)

    records = []
    for index in range(count):
        record: dict[str, Any] = {
            "date": times[index],
            "dayOfWeek": DAYS_OF_WEEK[parse_provider_time(times[index]).weekday()],
        }
        record.update(normalize_row(data, index, fields))
        records.append(record)
    return records


def truncate_to_hour(moment: datetime) -> datetime:
    return moment.replace(minute=0, second=0, microsecond=0)


def target_hour(now: datetime, hours_ahead: int) -> datetime:
    return truncate_to_hour(now) + timedelta(hours=hours_ahead)


def process_daily_block(
    data: dict | None,
    selection: PackageSelection,
    max_days: int,
    position: Position | None = None,
) -> list[PendingRecord]:
    """Daily records for every enabled daily package; an unusable block yields nothing."""
    pending: list[PendingRecord] = []
    for package in selection.daily:
        try:
            records = process_daily_package(data, max_days, package)
        except DataShapeError as err:
            _LOGGER.warning("Skipping daily %s package: %s", package, err)
            continue
        pending.extend(
            PendingRecord(record, package, DAILY, index, position)
            for index, record in enumerate(records)
        )
    return pending


def process_frame(
    frame: dict,
    selection: PackageSelection,
    max_hours: int,
    max_days: int,
    now: datetime,
    position: Position | None = None,
) -> ForecastBatch:
    """
    Split one stationary provider frame into per-package records.

    A package/granularity whose block has no usable time array is skipped
    with a warning; the others are still processed.
    """
    _LOGGER.debug("Processing forecast frame with keys: %s", ", ".join(frame.keys()))
    batch = ForecastBatch(metadata=frame.get("metadata"))

    for package in selection.hourly:
        try:
            records = process_hourly_package(frame.get("data_1h"), max_hours, package, now)
        except DataShapeError as err:
            _LOGGER.warning("Skipping hourly %s package: %s", package, err)
            continue
        batch.records.extend(
            PendingRecord(record, package, HOURLY, index, position)
            for index, record in enumerate(records)
        )

    batch.records.extend(process_daily_block(frame.get("data_day"), selection, max_days, position))
    return batch
