"""
Tests for package field ownership, the Douglas sea state tables and
parameter metadata.
"""

from __future__ import annotations

import unittest

from custom_components.meteoblue.const import DAILY, HOURLY
from custom_components.meteoblue.packages import (
    douglas_sea_state_simple,
    douglas_sea_state_verbose,
    package_fields,
    parameter_metadata,
)
from custom_components.meteoblue.processing import normalize_row

from .test_common import make_hourly_block


class TestPackageFields(unittest.TestCase):

    def test_waves_belong_to_sea_not_basic(self):
        self.assertNotIn("significantwaveheight", package_fields("basic", HOURLY))
        self.assertIn("significantwaveheight", package_fields("sea", HOURLY))

    def test_unknown_package_owns_nothing(self):
        self.assertEqual(package_fields("pollen", HOURLY), [])

    def test_daily_sea_has_no_wave_fields(self):
        self.assertEqual(package_fields("sea", DAILY), ["temperature_max", "temperature_min"])

    def test_returned_list_is_a_copy(self):
        fields = package_fields("basic", HOURLY)
        fields.append("bogus")
        self.assertNotIn("bogus", package_fields("basic", HOURLY))

    def test_frame_filtered_per_package(self):
        """A frame carrying both wave and temperature data splits cleanly by package."""
        data = make_hourly_block(rows=3, temperature=10.0, significantwaveheight=1.5)

        basic = normalize_row(data, 0, package_fields("basic", HOURLY))
        sea = normalize_row(data, 0, package_fields("sea", HOURLY))

        self.assertIn("temperature", basic)
        self.assertNotIn("significantwaveheight", basic)
        self.assertIn("significantwaveheight", sea)
        self.assertNotIn("temperature", sea)


class TestDouglasSeaState(unittest.TestCase):

    def test_simple_descriptions(self):
        self.assertEqual(douglas_sea_state_simple(0), "Calm")
        self.assertEqual(douglas_sea_state_simple(4), "Moderate")
        self.assertEqual(douglas_sea_state_simple(9), "Phenomenal")

    def test_out_of_range_is_unknown(self):
        self.assertEqual(douglas_sea_state_simple(11), "Unknown")
        self.assertEqual(douglas_sea_state_simple(-3), "Unknown")

    def test_fractional_scale_rounds_half_up(self):
        self.assertEqual(douglas_sea_state_simple(4.5), "Rough")
        self.assertEqual(douglas_sea_state_simple(3.4), "Slight")

    def test_verbose_descriptions(self):
        self.assertTrue(douglas_sea_state_verbose(4).startswith("Moderate (1.25-2.5m)"))
        self.assertEqual(douglas_sea_state_verbose(12), "Unknown (12)")


class TestParameterMetadata(unittest.TestCase):

    def test_known_parameter(self):
        meta = parameter_metadata("significantwaveheight")
        self.assertEqual(meta["units"], "m")
        self.assertEqual(meta["displayName"], "Significant Wave Height")

    def test_known_parameter_without_units(self):
        self.assertNotIn("units", parameter_metadata("pictocode"))

    def test_units_derived_from_name(self):
        cases = {
            "dewpoint_temperature_max": "K",
            "windspeed_max": "m/s",
            "sealevelpressure_mean": "Pa",
            "relativehumidity_min": "ratio",
            "precipitation_hours": "h",
            "snow_probability": "ratio",
            "gustdirection": "rad",
            "visibility_mean": "m",
            "cloud_base_height": "",
        }
        for name, units in cases.items():
            with self.subTest(name=name):
                self.assertEqual(parameter_metadata(name)["units"], units)

    def test_derived_display_name_is_the_raw_name(self):
        self.assertEqual(parameter_metadata("windspeed_max")["displayName"], "windspeed_max")

    def test_returns_a_copy(self):
        parameter_metadata("temperature")["units"] = "F"
        self.assertEqual(parameter_metadata("temperature")["units"], "K")
