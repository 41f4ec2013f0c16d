"""
DataUpdateCoordinator for the Meteoblue integration.

Responsibilities:
- Own the ForecastEngine, ForecastStore and RequestQueue for the lifetime of
  a config entry.
- Feed navigation state changes (position, heading, SOG entities) into the engine.
- Drive two update tiers at different frequencies:
    Tier 1 - forecast cycle  every forecast_interval minutes (and on position triggers)
    Tier 2 - account usage   every ACCOUNT_INTERVAL seconds
- Raise or dismiss the API usage persistent notification.
- Push CoordinatorData snapshots to entities as soon as anything changes.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
import math
import time
from datetime import datetime, timedelta
from typing import Any, Callable

from homeassistant.components import persistent_notification
from homeassistant.const import (
    ATTR_LATITUDE,
    ATTR_LONGITUDE,
    ATTR_UNIT_OF_MEASUREMENT,
    STATE_UNAVAILABLE,
    STATE_UNKNOWN,
    UnitOfSpeed,
)
from homeassistant.core import Event, HomeAssistant, State, callback
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.device_registry import DeviceEntryType
from homeassistant.helpers.event import async_track_state_change_event
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator
from homeassistant.util import dt as dt_util
from homeassistant.util.unit_conversion import SpeedConverter

from .api.account import fetch_account_usage
from .api.forecast import fetch_forecast
from .const import (
    ACCOUNT_INTERVAL,
    DAILY,
    DOMAIN,
    HOURLY,
    USAGE_NOTIFICATION_ID,
    VERSION,
)
from .coordinator_data import CoordinatorData
from .coordinator_utils import api_usage_notification, parse_account_usage
from .engine import ForecastEngine
from .forecast_store import ForecastStore
from .geodesy import Position
from .models import CycleResult, MeteoblueConfig, UsageNotification
from .request_queue import RequestQueue

__all__ = ["CoordinatorData", "MeteoblueCoordinator"]

_LOGGER = logging.getLogger(__name__)

ACCOUNT_JOB = "account"


def local_now() -> datetime:
    """Naive local wall-clock time, comparable with provider timestamps."""
    return dt_util.now().replace(tzinfo=None)


def _usable(state: State | None) -> bool:
    return state is not None and state.state not in (STATE_UNAVAILABLE, STATE_UNKNOWN)


def position_from_state(state: State | None) -> Position | None:
    """Position from an entity carrying latitude/longitude attributes (device_tracker, zone…)."""
    if state is None:
        return None
    lat = state.attributes.get(ATTR_LATITUDE)
    lon = state.attributes.get(ATTR_LONGITUDE)
    if lat is None or lon is None:
        return None
    try:
        return Position(
            latitude=float(lat),
            longitude=float(lon),
            timestamp=dt_util.as_local(state.last_updated).replace(tzinfo=None),
        )
    except (TypeError, ValueError):
        _LOGGER.debug("Ignoring non-numeric position on %s: %s, %s", state.entity_id, lat, lon)
        return None


def heading_from_state(state: State | None) -> float | None:
    """True heading in radians from a sensor reporting degrees."""
    if not _usable(state):
        return None
    try:
        return math.radians(float(state.state))
    except ValueError:
        _LOGGER.debug("Ignoring non-numeric heading on %s: %s", state.entity_id, state.state)
        return None


def sog_from_state(state: State | None) -> float | None:
    """Speed over ground in m/s; a sensor without unit is taken to report knots."""
    if not _usable(state):
        return None
    unit = state.attributes.get(ATTR_UNIT_OF_MEASUREMENT) or UnitOfSpeed.KNOTS
    try:
        return SpeedConverter.convert(float(state.state), unit, UnitOfSpeed.METERS_PER_SECOND)
    except (ValueError, HomeAssistantError) as exc:
        _LOGGER.debug("Ignoring speed on %s (%s %s): %s", state.entity_id, state.state, unit, exc)
        return None


class MeteoblueCoordinator(DataUpdateCoordinator[CoordinatorData]):
    """
    Coordinator for the Meteoblue integration.

    The HA poll interval is the forecast interval; position-triggered cycles
    push their own snapshot, which also reschedules the next poll.
    """

    def __init__(self, hass: HomeAssistant, entry_data: dict) -> None:
        """Initialize the coordinator from config-entry data."""
        self.config = MeteoblueConfig.from_entry_data(entry_data)
        super().__init__(
            hass,
            _LOGGER,
            name=DOMAIN,
            update_interval=timedelta(minutes=self.config.forecast_interval),
        )

        self._entry_data = entry_data
        self.store = ForecastStore()
        self._queue = RequestQueue()
        self.engine = ForecastEngine(
            self.config,
            self._fetch_forecast,
            self.store,
            now=local_now,
            queue=self._queue,
        )

        # Tier timestamp - 0 so the account tier fires on first call
        self._last_account_fetch: float = 0.0

        self._initial_refresh_done: bool = False
        self._unsub_navigation: list[Callable[[], None]] = []
        self._position_tasks: set[asyncio.Task] = set()

        # Engagement starts cleared and is published as such
        self.data = CoordinatorData()

    # ------------------------------------------------------------------
    # Fetch capability handed to the engine
    # ------------------------------------------------------------------

    async def _fetch_forecast(self, lat: float, lon: float, packages: list[str]) -> dict:
        return await fetch_forecast(self.config.api_key, lat, lon, packages, self.config.altitude)

    # ------------------------------------------------------------------
    # HA entry point
    # ------------------------------------------------------------------

    async def _async_update_data(self) -> CoordinatorData:
        """
        Called by HA on every update_interval tick.

        First call: seeds navigation from the current entity states,
        subscribes to their changes and runs both tiers sequentially.

        Subsequent calls: fires the forecast tier (and the account tier when
        due) as background tasks and returns the current snapshot.
        """
        if not self._initial_refresh_done:
            self._seed_navigation()
            self._subscribe_navigation()
            await self._run_account_tier()
            await self._run_forecast_tier()
            self._initial_refresh_done = True
            return self.data

        if time.monotonic() - self._last_account_fetch >= ACCOUNT_INTERVAL:
            self.hass.async_create_task(self._run_account_tier())

        self.hass.async_create_task(self._run_forecast_tier())
        return self.data

    # ------------------------------------------------------------------
    # Tier 1 - forecast cycle
    # ------------------------------------------------------------------

    async def _run_forecast_tier(self) -> None:
        """Run a periodic engine cycle and push the new state."""
        try:
            result = await self.engine.run_periodic_cycle()
        except Exception as exc:  # noqa: BLE001
            _LOGGER.warning("Forecast cycle error: %s", exc)
            return
        if result is not None:
            self._push_engine_state()

    async def _run_position_cycle(self, position: Position) -> None:
        try:
            result: CycleResult | None = await self.engine.handle_position_update(position)
        except Exception as exc:  # noqa: BLE001
            _LOGGER.warning("Forecast cycle error after position update: %s", exc)
            return
        if result is not None:
            self._push_engine_state()

    def _push_engine_state(self) -> None:
        engine = self.engine
        self.async_set_updated_data(
            dataclasses.replace(
                self.data,
                engaged=engine.engaged,
                mode=engine.mode,
                last_result=engine.last_result,
                last_forecast_update=engine.last_forecast_update,
                forecast_position=engine.current_position,
                metadata=engine.metadata,
                hourly_count=self.store.count(HOURLY),
                daily_count=self.store.count(DAILY),
            )
        )

    # ------------------------------------------------------------------
    # Tier 2 - account usage
    # ------------------------------------------------------------------

    async def _run_account_tier(self) -> None:
        """Fetch account usage, raise threshold notifications and push a snapshot."""
        self._last_account_fetch = time.monotonic()
        fut = await self._queue.enqueue(
            ACCOUNT_JOB, lambda: fetch_account_usage(self.config.api_key)
        )
        try:
            raw = await fut
            if raw is None:
                return
            usage = parse_account_usage(raw, local_now())
        except Exception as exc:  # noqa: BLE001
            _LOGGER.warning("Failed to fetch account usage: %s", exc)
            return

        _LOGGER.debug("Account info updated. Usage: %s%%", usage.usage_percentage)
        notification = api_usage_notification(usage, self.data.account_usage)
        if notification is not None:
            self._notify_usage(notification)

        self.async_set_updated_data(dataclasses.replace(self.data, account_usage=usage))

    def _notify_usage(self, notification: UsageNotification) -> None:
        if notification.state == "normal":
            _LOGGER.info(notification.message)
            persistent_notification.async_dismiss(self.hass, USAGE_NOTIFICATION_ID)
            return
        _LOGGER.warning(notification.message)
        persistent_notification.async_create(
            self.hass,
            notification.message,
            title="Meteoblue API usage",
            notification_id=USAGE_NOTIFICATION_ID,
        )

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def _seed_navigation(self) -> None:
        """Load heading, SOG and position from the current entity states."""
        config = self.config
        if config.heading_entity:
            self.engine.handle_heading_update(
                heading_from_state(self.hass.states.get(config.heading_entity))
            )
        if config.sog_entity:
            self.engine.handle_sog_update(sog_from_state(self.hass.states.get(config.sog_entity)))

        position = None
        if config.position_entity:
            position = position_from_state(self.hass.states.get(config.position_entity))
        else:
            # No vessel position source: forecast for the Home Assistant home location
            position = Position(
                latitude=self.hass.config.latitude,
                longitude=self.hass.config.longitude,
                timestamp=local_now(),
            )
        if position is not None:
            self.engine.seed_position(position)
        self._push_engine_state()

    def _subscribe_navigation(self) -> None:
        if not self.config.enable_position_subscription:
            return
        entity_ids = [
            entity_id
            for entity_id in (
                self.config.position_entity,
                self.config.heading_entity,
                self.config.sog_entity,
            )
            if entity_id
        ]
        if not entity_ids:
            return
        _LOGGER.debug("Subscribing to navigation entities: %s", entity_ids)
        self._unsub_navigation.append(
            async_track_state_change_event(self.hass, entity_ids, self._handle_navigation_event)
        )

    @callback
    def _handle_navigation_event(self, event: Event) -> None:
        entity_id = event.data["entity_id"]
        new_state = event.data.get("new_state")

        if entity_id == self.config.heading_entity:
            self.engine.handle_heading_update(heading_from_state(new_state))
        elif entity_id == self.config.sog_entity:
            if self.engine.handle_sog_update(sog_from_state(new_state)):
                self._push_engine_state()
        elif entity_id == self.config.position_entity:
            position = position_from_state(new_state)
            if position is None:
                return
            task = self.hass.async_create_task(self._run_position_cycle(position))
            self._position_tasks.add(task)
            task.add_done_callback(self._position_tasks.discard)

    # ------------------------------------------------------------------
    # Write path - engagement (called from switch.py and the service)
    # ------------------------------------------------------------------

    def async_set_engagement(self, value: Any) -> None:
        """Set the engagement flag; raises InvalidCommand for non-boolean values."""
        self.engine.set_engagement(value)
        self._push_engine_state()

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    def query_forecasts(self, granularity: str, max_count: int) -> list[dict]:
        return self.engine.query_forecasts(granularity, max_count)

    # ------------------------------------------------------------------
    # Entity helper - device info dict
    # ------------------------------------------------------------------

    def get_device_info(self) -> dict:
        """Return the HA DeviceInfo dict for this entry's forecast service."""
        return {
            "identifiers": {(DOMAIN, self._entry_data.get("guid") or self.config.entry_name)},
            "name": self.config.entry_name,
            "manufacturer": "meteoblue",
            "model": "Forecast API",
            "sw_version": VERSION,
            "entry_type": DeviceEntryType.SERVICE,
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def async_shutdown(self) -> None:
        """Clean up all resources owned by this coordinator."""
        for unsub in self._unsub_navigation:
            unsub()
        self._unsub_navigation.clear()
        await self.engine.async_shutdown()
        await self._queue.shutdown()
        for task in list(self._position_tasks):
            task.cancel()
        if self._position_tasks:
            await asyncio.gather(*self._position_tasks, return_exceptions=True)
        self._position_tasks.clear()
        await super().async_shutdown()

    @property
    def entry_data(self):
        return self._entry_data
