"""
Tests for turning provider frames into package-scoped records.

Covers:
- provider time parsing
- hourly start window (current hour, fallback past the end of the data)
- hour matching by calendar hour rather than by row offset
- daily processing with day names
- whole-frame processing: unit conversion, package filtering, skipped blocks
"""

from __future__ import annotations

import unittest
from datetime import datetime

from custom_components.meteoblue.const import DAILY, HOURLY
from custom_components.meteoblue.errors import DataShapeError
from custom_components.meteoblue.models import PackageSelection
from custom_components.meteoblue.processing import (
    find_row_for_hour,
    hourly_start_index,
    normalize_row,
    parse_provider_time,
    process_daily_package,
    process_frame,
    process_hourly_package,
    target_hour,
    time_array,
)

from .test_common import (
    MIDNIGHT,
    NOW,
    make_basic_frame,
    make_daily_block,
    make_frame,
    make_hourly_block,
    make_position,
)


class TestTimeHelpers(unittest.TestCase):

    def test_parse_hourly_and_daily_times(self):
        self.assertEqual(parse_provider_time("2024-05-01 13:00"), datetime(2024, 5, 1, 13))
        self.assertEqual(parse_provider_time("2024-05-01"), datetime(2024, 5, 1))

    def test_parse_drops_offset(self):
        self.assertIsNone(parse_provider_time("2024-05-01T13:00+02:00").tzinfo)

    def test_parse_rejects_non_timestamps(self):
        for value in (None, "", "tomorrow", 1714568400):
            with self.assertRaises(DataShapeError):
                parse_provider_time(value)

    def test_time_array_missing_raises(self):
        with self.assertRaises(DataShapeError):
            time_array({"temperature": [1]}, HOURLY)
        with self.assertRaises(DataShapeError):
            time_array(None, DAILY)

    def test_target_hour_truncates_now(self):
        self.assertEqual(target_hour(NOW, 0), datetime(2024, 5, 1, 14))
        self.assertEqual(target_hour(NOW, 11), datetime(2024, 5, 2, 1))


class TestHourlyWindow(unittest.TestCase):

    def test_starts_at_current_hour(self):
        times = make_hourly_block(rows=30)["time"]
        self.assertEqual(hourly_start_index(times, NOW), 14)

    def test_exact_hour_is_included(self):
        times = make_hourly_block(rows=30)["time"]
        self.assertEqual(hourly_start_index(times, datetime(2024, 5, 1, 3, 0)), 3)

    def test_all_rows_in_the_past_falls_back_to_zero(self):
        times = make_hourly_block(rows=5)["time"]
        self.assertEqual(hourly_start_index(times, NOW), 0)

    def test_hourly_records_capped_and_relative(self):
        data = make_hourly_block(rows=30, temperature=10.0)

        records = process_hourly_package(data, 3, "basic", NOW)

        self.assertEqual(len(records), 3)
        self.assertEqual(records[0]["timestamp"], "2024-05-01 14:00")
        self.assertEqual([r["relativeHour"] for r in records], [0, 1, 2])

    def test_hourly_records_stop_at_end_of_data(self):
        data = make_hourly_block(rows=16, temperature=10.0)

        records = process_hourly_package(data, 48, "basic", NOW)

        self.assertEqual(len(records), 2)


class TestFindRowForHour(unittest.TestCase):

    def test_matches_calendar_hour_not_offset(self):
        """Data starts at midnight, so 14:00 is row 14 even though it is 'hour 0' for now."""
        data = make_hourly_block(start=MIDNIGHT, rows=30)

        row = find_row_for_hour(data, datetime(2024, 5, 1, 14))

        self.assertEqual(row, 14)
        self.assertTrue(data["time"][row].endswith("14:00"))

    def test_series_not_starting_at_midnight(self):
        data = make_hourly_block(start=datetime(2024, 5, 1, 6), rows=30)

        row = find_row_for_hour(data, datetime(2024, 5, 1, 14))

        self.assertEqual(row, 8)

    def test_next_day_hour(self):
        data = make_hourly_block(rows=30)
        self.assertEqual(find_row_for_hour(data, datetime(2024, 5, 2, 2)), 26)

    def test_no_match_returns_none(self):
        data = make_hourly_block(rows=10)
        self.assertIsNone(find_row_for_hour(data, datetime(2024, 5, 1, 14)))


class TestNormalizeRow(unittest.TestCase):

    def test_null_and_missing_values_are_left_out(self):
        data = make_hourly_block(rows=2, temperature=[None, 12.0], windspeed=[3.0])

        record = normalize_row(data, 1, ["temperature", "windspeed", "gust"])

        self.assertEqual(set(record), {"temperature"})
        self.assertAlmostEqual(record["temperature"], 285.15)

    def test_sea_state_adds_descriptions(self):
        data = make_hourly_block(rows=1, douglas_seastate=4)

        record = normalize_row(data, 0, ["douglas_seastate"])

        self.assertEqual(record["douglas_seastate"], 4)
        self.assertEqual(record["douglas_seastate_description"], "Moderate")
        self.assertTrue(record["douglas_seastate_verbose"].startswith("Moderate"))


class TestDailyProcessing(unittest.TestCase):

    def test_daily_records_with_day_names(self):
        data = make_daily_block(rows=7, temperature_max=20.0)

        records = process_daily_package(data, 3, "basic")

        self.assertEqual(len(records), 3)
        self.assertEqual(records[0]["date"], "2024-05-01")
        # 2024-05-01 was a Wednesday
        self.assertEqual(records[0]["dayOfWeek"], "Wednesday")
        self.assertAlmostEqual(records[0]["temperature_max"], 293.15)

    def test_daily_sea_keeps_only_temperature_extremes(self):
        data = make_daily_block(rows=2, temperature_max=20.0, temperature_mean=15.0, precipitation=3.0)

        records = process_daily_package(data, 2, "sea")

        self.assertEqual(set(records[0]), {"date", "dayOfWeek", "temperature_max"})


class TestProcessFrame(unittest.TestCase):

    def test_stationary_basic_frame(self):
        frame = make_frame(
            hourly=make_hourly_block(
                start=datetime(2024, 5, 1, 14), rows=3, temperature=10.0, significantwaveheight=1.0
            )
        )
        selection = PackageSelection((("basic", HOURLY),))

        batch = process_frame(frame, selection, 72, 10, NOW)

        self.assertEqual(batch.count(HOURLY), 3)
        record = batch.records[0].record
        self.assertAlmostEqual(record["temperature"], 283.15)
        self.assertNotIn("significantwaveheight", record)
        self.assertNotIn("windwave_height", record)

    def test_records_carry_package_index_and_position(self):
        position = make_position()
        selection = PackageSelection((("basic", HOURLY), ("sea", HOURLY), ("basic", DAILY)))

        batch = process_frame(make_basic_frame(), selection, 3, 2, NOW, position)

        hourly = [p for p in batch.records if p.granularity == HOURLY]
        self.assertEqual([(p.package, p.index) for p in hourly],
                         [("basic", 0), ("basic", 1), ("basic", 2), ("sea", 0), ("sea", 1), ("sea", 2)])
        self.assertEqual(batch.count(DAILY), 2)
        self.assertTrue(all(p.position == position for p in batch.records))
        self.assertEqual(batch.metadata["modelrun_utc"], "2024-05-01 00:00")

    def test_missing_block_skips_only_that_granularity(self):
        frame = make_frame(daily=make_daily_block(rows=3, temperature_max=20.0))
        selection = PackageSelection((("basic", HOURLY), ("basic", DAILY)))

        with self.assertLogs("custom_components.meteoblue.processing", level="WARNING"):
            batch = process_frame(frame, selection, 3, 3, NOW)

        self.assertEqual(batch.count(HOURLY), 0)
        self.assertEqual(batch.count(DAILY), 3)
