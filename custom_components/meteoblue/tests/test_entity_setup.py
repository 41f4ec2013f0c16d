"""
Tests for the switch, sensor and weather platforms: which entities are
created for an entry and how they present the published SI values.
"""

from __future__ import annotations

import math
import unittest
from datetime import datetime
from unittest.mock import MagicMock

from homeassistant.components.sensor import SensorDeviceClass
from homeassistant.components.weather import WeatherEntityFeature
from homeassistant.const import UnitOfLength, UnitOfPressure, UnitOfTemperature

from custom_components.meteoblue.const import DAILY, HOURLY
from custom_components.meteoblue.coordinator_data import CoordinatorData
from custom_components.meteoblue.models import CycleResult, EngineMode
from custom_components.meteoblue import sensor as sensor_platform
from custom_components.meteoblue import switch as switch_platform
from custom_components.meteoblue import weather as weather_platform
from custom_components.meteoblue.sensor import (
    MeteoblueModeSensor,
    MeteoblueParameterSensor,
    MeteoblueSeaStateSensor,
    MeteoblueStatusSensor,
    STATUS_ERROR,
    STATUS_OK,
)
from custom_components.meteoblue.switch import MeteoblueEngagementSwitch
from custom_components.meteoblue.weather import (
    MeteoblueWeather,
    pictocode_condition,
    to_ha_forecast,
)

from .test_common import make_coordinator, make_position


def _make_config_entry(coordinator) -> MagicMock:
    entry = MagicMock()
    entry.runtime_data = coordinator
    return entry


async def _setup(platform, coordinator) -> list:
    added = []
    await platform.async_setup_entry(MagicMock(), _make_config_entry(coordinator), added.extend)
    return added


# ---------------------------------------------------------------------------
# Switch
# ---------------------------------------------------------------------------

class TestEngagementSwitch(unittest.IsolatedAsyncioTestCase):

    async def test_setup_adds_one_switch(self):
        entities = await _setup(switch_platform, make_coordinator())
        self.assertEqual(len(entities), 1)
        self.assertIsInstance(entities[0], MeteoblueEngagementSwitch)
        self.assertEqual(entities[0].unique_id, "meteoblue_test-guid_moving_forecast")

    async def test_state_follows_snapshot(self):
        coord = make_coordinator()
        switch = MeteoblueEngagementSwitch(coord)

        self.assertFalse(switch.is_on)
        self.assertEqual(switch.icon, "mdi:anchor")

        coord.data = CoordinatorData(engaged=True, mode=EngineMode.MOVING)
        self.assertTrue(switch.is_on)
        self.assertEqual(switch.icon, "mdi:sail-boat")
        self.assertEqual(switch.extra_state_attributes, {"mode": "moving"})

    async def test_turn_on_and_off_set_engagement(self):
        coord = make_coordinator()
        coord.async_set_engagement = MagicMock()
        switch = MeteoblueEngagementSwitch(coord)

        await switch.async_turn_on()
        await switch.async_turn_off()

        self.assertEqual(
            [call.args[0] for call in coord.async_set_engagement.call_args_list],
            [True, False],
        )


# ---------------------------------------------------------------------------
# Sensors
# ---------------------------------------------------------------------------

class TestSensorSetup(unittest.IsolatedAsyncioTestCase):

    async def test_sea_state_sensor_with_sea_package(self):
        entities = await _setup(sensor_platform, make_coordinator())
        types = [type(entity) for entity in entities]

        self.assertIn(MeteoblueStatusSensor, types)
        self.assertIn(MeteoblueModeSensor, types)
        self.assertIn(MeteoblueSeaStateSensor, types)

    async def test_no_sea_state_sensor_without_sea_package(self):
        entities = await _setup(sensor_platform, make_coordinator(enable_sea_1h=False))
        self.assertNotIn(MeteoblueSeaStateSensor, [type(entity) for entity in entities])

    async def test_one_parameter_sensor_per_field(self):
        entities = await _setup(sensor_platform, make_coordinator())
        fields = [entity._field for entity in entities if isinstance(entity, MeteoblueParameterSensor)]

        self.assertEqual(len(fields), len(set(fields)))
        self.assertIn("temperature", fields)
        self.assertIn("significantwaveheight", fields)
        self.assertNotIn("douglas_seastate_description", fields)


class TestParameterSensor(unittest.TestCase):

    def setUp(self):
        self.coord = make_coordinator()
        self.coord.store.publish(
            {
                "timestamp": "2024-05-01 14:00",
                "temperature": 283.15,
                "winddirection": math.pi,
                "relativehumidity": 0.8,
                "precipitation": 0.0005,
            },
            "basic",
            HOURLY,
            0,
            make_position(),
        )

    def test_kelvin_is_published_as_is(self):
        sensor = MeteoblueParameterSensor(self.coord, "temperature")
        self.assertAlmostEqual(sensor.native_value, 283.15)
        self.assertEqual(sensor.device_class, SensorDeviceClass.TEMPERATURE)

    def test_radians_shown_in_degrees(self):
        sensor = MeteoblueParameterSensor(self.coord, "winddirection")
        self.assertAlmostEqual(sensor.native_value, 180.0)

    def test_ratio_shown_in_percent(self):
        sensor = MeteoblueParameterSensor(self.coord, "relativehumidity")
        self.assertAlmostEqual(sensor.native_value, 80.0)

    def test_precipitation_shown_in_millimetres(self):
        sensor = MeteoblueParameterSensor(self.coord, "precipitation")
        self.assertAlmostEqual(sensor.native_value, 0.5)
        self.assertEqual(sensor.device_class, SensorDeviceClass.PRECIPITATION)

    def test_missing_value_is_none(self):
        sensor = MeteoblueParameterSensor(self.coord, "gust")
        self.assertIsNone(sensor.native_value)

    def test_attributes_carry_forecast_position(self):
        attributes = MeteoblueParameterSensor(self.coord, "temperature").extra_state_attributes
        self.assertEqual(attributes["forecast_time"], "2024-05-01 14:00")
        self.assertAlmostEqual(attributes["latitude"], 54.0)

    def test_only_key_fields_enabled_by_default(self):
        self.assertTrue(MeteoblueParameterSensor(self.coord, "temperature").entity_registry_enabled_default)
        self.assertFalse(MeteoblueParameterSensor(self.coord, "uvindex").entity_registry_enabled_default)


class TestStatusSensors(unittest.TestCase):

    def test_status_before_first_cycle(self):
        sensor = MeteoblueStatusSensor(make_coordinator())
        self.assertIsNone(sensor.native_value)

    def test_status_after_success_and_failure(self):
        coord = make_coordinator()
        sensor = MeteoblueStatusSensor(coord)
        completed = datetime(2024, 5, 1, 14, 20)

        coord.data = CoordinatorData(
            last_result=CycleResult(mode="stationary", success=True, completed_at=completed, records_published=5),
            last_forecast_update=completed,
        )
        self.assertEqual(sensor.native_value, STATUS_OK)
        self.assertEqual(sensor.extra_state_attributes["records_published"], 5)

        coord.data = CoordinatorData(
            last_result=CycleResult(mode="stationary", success=False, completed_at=completed, error="HTTP 500"),
        )
        self.assertEqual(sensor.native_value, STATUS_ERROR)
        self.assertEqual(sensor.extra_state_attributes["error"], "HTTP 500")

    def test_mode_sensor(self):
        coord = make_coordinator()
        sensor = MeteoblueModeSensor(coord)
        self.assertEqual(sensor.native_value, "idle")
        coord.data = CoordinatorData(mode=EngineMode.MOVING)
        self.assertEqual(sensor.native_value, "moving")
        self.assertEqual(sensor.icon, "mdi:map-marker-path")

    def test_sea_state_sensor(self):
        coord = make_coordinator()
        coord.store.publish(
            {"douglas_seastate": 4, "douglas_seastate_description": "Moderate"}, "sea", HOURLY, 0
        )
        sensor = MeteoblueSeaStateSensor(coord)
        self.assertEqual(sensor.native_value, "Moderate")
        self.assertEqual(sensor.extra_state_attributes["douglas_scale"], 4)


# ---------------------------------------------------------------------------
# Weather
# ---------------------------------------------------------------------------

class TestPictocodeCondition(unittest.TestCase):

    def test_hourly_codes(self):
        self.assertEqual(pictocode_condition(1), "sunny")
        self.assertEqual(pictocode_condition(23), "rainy")
        self.assertEqual(pictocode_condition(27), "lightning-rainy")

    def test_sunny_at_night_is_clear_night(self):
        self.assertEqual(pictocode_condition(1, is_daytime=False), "clear-night")
        self.assertEqual(pictocode_condition(22, is_daytime=False), "cloudy")

    def test_daily_codes(self):
        self.assertEqual(pictocode_condition(4, daily=True), "cloudy")
        self.assertEqual(pictocode_condition(8, daily=True), "lightning-rainy")

    def test_unknown_code(self):
        self.assertIsNone(pictocode_condition(None))
        self.assertIsNone(pictocode_condition(99))


class TestToHaForecast(unittest.TestCase):

    def test_point_forecast_conversion(self):
        forecast = to_ha_forecast({
            "date": "2024-05-01 14:00",
            "type": "point",
            "pictocode": 1,
            "outside": {"temperature": 283.15, "pressure": 101300, "relativeHumidity": 0.8, "precipitationVolume": 0.0005},
            "wind": {"speedTrue": 5.0, "directionTrue": math.pi / 2},
            "sun": {"isDaylight": False},
        })

        self.assertEqual(forecast["condition"], "clear-night")
        self.assertAlmostEqual(forecast["native_temperature"], 283.15)
        self.assertAlmostEqual(forecast["native_pressure"], 101300)
        self.assertEqual(forecast["humidity"], 80)
        self.assertAlmostEqual(forecast["native_precipitation"], 0.5)
        self.assertEqual(forecast["wind_bearing"], 90)
        self.assertFalse(forecast["is_daytime"])
        self.assertTrue(forecast["datetime"].startswith("2024-05-01"))

    def test_daily_forecast_uses_max_and_min(self):
        forecast = to_ha_forecast({
            "date": "2024-05-02",
            "type": DAILY,
            "pictocode": 4,
            "outside": {"maxTemperature": 288.15, "minTemperature": 278.15},
        })

        self.assertEqual(forecast["condition"], "cloudy")
        self.assertAlmostEqual(forecast["native_temperature"], 288.15)
        self.assertAlmostEqual(forecast["native_templow"], 278.15)
        self.assertNotIn("is_daytime", forecast)

    def test_missing_values_are_dropped(self):
        forecast = to_ha_forecast({"date": None, "type": "point"})
        self.assertEqual(forecast, {})


class TestWeatherEntity(unittest.IsolatedAsyncioTestCase):

    async def test_setup_adds_weather_entity(self):
        entities = await _setup(weather_platform, make_coordinator())
        self.assertEqual(len(entities), 1)
        self.assertIsInstance(entities[0], MeteoblueWeather)

    async def test_supported_features_follow_packages(self):
        weather = MeteoblueWeather(make_coordinator(enable_basic_day=False))
        self.assertEqual(weather.supported_features, WeatherEntityFeature.FORECAST_HOURLY)

    async def test_current_conditions_and_forecasts_after_cycle(self):
        coord = make_coordinator()
        coord.async_set_updated_data = MagicMock()
        coord.engine.seed_position(make_position())
        await coord._run_forecast_tier()
        weather = MeteoblueWeather(coord)

        self.assertAlmostEqual(weather.native_temperature, 283.15)
        self.assertEqual(weather.condition, "sunny")

        hourly = await weather.async_forecast_hourly()
        daily = await weather.async_forecast_daily()
        self.assertEqual(len(hourly), 3)
        self.assertEqual(len(daily), 2)
        self.assertAlmostEqual(daily[0]["native_temperature"], 288.15)
        self.assertAlmostEqual(daily[0]["native_templow"], 278.15)

    async def test_si_values_are_passed_through_in_native_units(self):
        coord = make_coordinator()
        coord.query_forecasts = MagicMock(return_value=[{
            "outside": {"temperature": 283.15, "pressure": 101300, "horizontalVisibility": 12000},
            "water": {"temperature": 285.0},
        }])
        weather = MeteoblueWeather(coord)

        self.assertEqual(weather.native_temperature_unit, UnitOfTemperature.KELVIN)
        self.assertEqual(weather.native_pressure_unit, UnitOfPressure.PA)
        self.assertEqual(weather.native_visibility_unit, UnitOfLength.METERS)
        self.assertAlmostEqual(weather.native_temperature, 283.15)
        self.assertEqual(weather.native_pressure, 101300)
        self.assertEqual(weather.native_visibility, 12000)
        self.assertAlmostEqual(weather.extra_state_attributes["sea_surface_temperature"], 285.0)
