"""
Tests for coordinator construction, tier scheduling on HA ticks, the first
refresh and shutdown.
"""

from __future__ import annotations

import asyncio
import time
import unittest
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

from custom_components.meteoblue.const import ACCOUNT_INTERVAL
from custom_components.meteoblue.coordinator_data import CoordinatorData
from custom_components.meteoblue.models import EngineMode

from .test_common import make_coordinator, make_position

TRACK_STATE = "custom_components.meteoblue.coordinator.async_track_state_change_event"


class TestCoordinatorInit(unittest.TestCase):

    def test_initial_data_is_disengaged(self):
        coord = make_coordinator()
        self.assertIsInstance(coord.data, CoordinatorData)
        self.assertFalse(coord.data.engaged)
        self.assertEqual(coord.data.mode, EngineMode.IDLE)

    def test_update_interval_is_forecast_interval(self):
        coord = make_coordinator(forecast_interval=45)
        self.assertEqual(coord.update_interval, timedelta(minutes=45))

    def test_account_tier_due_immediately(self):
        coord = make_coordinator()
        self.assertEqual(coord._last_account_fetch, 0.0)
        self.assertFalse(coord._initial_refresh_done)


class TestInitialRefresh(unittest.IsolatedAsyncioTestCase):

    async def test_first_call_runs_both_tiers_and_subscribes(self):
        coord = make_coordinator()
        coord.async_set_updated_data = MagicMock()

        with (
            patch.object(coord, "_run_account_tier", new_callable=AsyncMock) as account,
            patch.object(coord, "_run_forecast_tier", new_callable=AsyncMock) as forecast,
            patch(TRACK_STATE, return_value=MagicMock()) as track,
        ):
            result = await coord._async_update_data()

        account.assert_awaited_once()
        forecast.assert_awaited_once()
        track.assert_called_once()
        self.assertEqual(
            set(track.call_args.args[1]),
            {"device_tracker.vessel", "sensor.heading", "sensor.sog"},
        )
        self.assertTrue(coord._initial_refresh_done)
        self.assertIsInstance(result, CoordinatorData)

    async def test_subscription_disabled(self):
        coord = make_coordinator(enable_position_subscription=False)
        coord.async_set_updated_data = MagicMock()

        with (
            patch.object(coord, "_run_account_tier", new_callable=AsyncMock),
            patch.object(coord, "_run_forecast_tier", new_callable=AsyncMock),
            patch(TRACK_STATE) as track,
        ):
            await coord._async_update_data()

        track.assert_not_called()
        self.assertEqual(coord._unsub_navigation, [])


class TestTierScheduling(unittest.IsolatedAsyncioTestCase):

    async def test_later_ticks_schedule_forecast_tier(self):
        coord = make_coordinator()
        coord._initial_refresh_done = True
        coord._last_account_fetch = time.monotonic()

        with (
            patch.object(coord, "_run_forecast_tier", new_callable=AsyncMock) as forecast,
            patch.object(coord, "_run_account_tier", new_callable=AsyncMock) as account,
        ):
            await coord._async_update_data()
            await asyncio.sleep(0.05)

        forecast.assert_awaited_once()
        account.assert_not_awaited()

    async def test_account_tier_runs_when_overdue(self):
        coord = make_coordinator()
        coord._initial_refresh_done = True
        coord._last_account_fetch = time.monotonic() - ACCOUNT_INTERVAL - 1

        with (
            patch.object(coord, "_run_forecast_tier", new_callable=AsyncMock),
            patch.object(coord, "_run_account_tier", new_callable=AsyncMock) as account,
        ):
            await coord._async_update_data()
            await asyncio.sleep(0.05)

        account.assert_awaited_once()


class TestShutdown(unittest.IsolatedAsyncioTestCase):

    async def test_shutdown_unsubscribes_navigation(self):
        coord = make_coordinator()
        unsub = MagicMock()
        coord._unsub_navigation.append(unsub)

        await coord.async_shutdown()

        unsub.assert_called_once()
        self.assertEqual(coord._unsub_navigation, [])

    async def test_shutdown_cancels_position_tasks(self):
        coord = make_coordinator()

        async def long_running():
            await asyncio.sleep(100)

        task = asyncio.ensure_future(long_running())
        coord._position_tasks.add(task)

        await coord.async_shutdown()

        self.assertTrue(task.cancelled())
        self.assertEqual(len(coord._position_tasks), 0)

    async def test_no_cycles_after_shutdown(self):
        coord = make_coordinator()
        coord.engine.seed_position(make_position())
        coord.async_set_updated_data = MagicMock()

        await coord.async_shutdown()
        await coord._run_forecast_tier()

        coord.engine._fetch_forecast.assert_not_awaited()
