"""
ForecastEngine - decides when and how to refresh the forecast.

Holds the session state (navigation, engagement, cycle bookkeeping), applies
the refresh trigger to navigation events and runs refresh cycles through a
RequestQueue so that at most one cycle is queued or running at any time.

Pure asyncio with injected fetch, store and clock; no HA imports.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable

from .const import DAILY, HOURLY, MPS_TO_KNOTS
from .coordinator_utils import should_refresh
from .errors import ConfigurationError, FetchFailure, InvalidCommand, MeteoblueError
from .forecast_store import ForecastStore
from .geodesy import Position, is_moving
from .models import (
    CycleResult,
    EngineMode,
    ForecastBatch,
    MeteoblueConfig,
    NavigationState,
)
from .moving_forecast import FetchForecast, MovingForecastAssembler
from .processing import process_frame
from .request_queue import RequestQueue
from .weather_query import query_forecasts

_LOGGER = logging.getLogger(__name__)

FORECAST_JOB = "forecast"


class ForecastEngine:
    """
    Single-writer forecast state machine.

    Navigation handlers run on the event loop and only touch in-memory state;
    everything that talks to the provider goes through the queue. A cycle
    works on a snapshot of the navigation state taken when it starts.
    """

    def __init__(
        self,
        config: MeteoblueConfig,
        fetch_forecast: FetchForecast,
        store: ForecastStore,
        now: Callable[[], datetime] = datetime.now,
        queue: RequestQueue | None = None,
    ) -> None:
        self._config = config
        self._fetch_forecast = fetch_forecast
        self._store = store
        self._now = now
        self._owns_queue = queue is None
        self._queue = queue if queue is not None else RequestQueue()
        self._assembler = MovingForecastAssembler(
            fetch_forecast,
            config.max_forecast_hours,
            config.max_forecast_days,
        )

        self._navigation = NavigationState()
        self._stopped = False

        # Engagement always starts cleared
        self.engaged: bool = False

        # Cycle bookkeeping, written only when a cycle completes
        self.last_forecast_update: datetime | None = None
        self.current_position: Position | None = None
        self.last_result: CycleResult | None = None
        self.metadata: dict | None = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def navigation(self) -> NavigationState:
        return self._navigation.snapshot()

    @property
    def mode(self) -> EngineMode:
        return self._mode_for(self._navigation)

    def _mode_for(self, navigation: NavigationState) -> EngineMode:
        if navigation.position is None:
            return EngineMode.IDLE
        if (
            self.engaged
            and navigation.heading is not None
            and navigation.sog is not None
            and is_moving(navigation.sog, self._config.moving_speed_threshold)
        ):
            return EngineMode.MOVING
        return EngineMode.STATIONARY

    # ------------------------------------------------------------------
    # Event ingestion
    # ------------------------------------------------------------------

    def handle_heading_update(self, heading: float | None) -> None:
        """True heading in radians; None when the heading source goes away."""
        self._navigation.heading = heading

    def handle_sog_update(self, sog: float | None) -> bool:
        """
        Speed over ground in m/s. Returns True when this update engaged
        the moving forecast automatically.
        """
        self._navigation.sog = sog
        if (
            sog is not None
            and self._config.enable_auto_moving_forecast
            and not self.engaged
            and is_moving(sog, self._config.moving_speed_threshold)
        ):
            self.engaged = True
            _LOGGER.info(
                "Auto-engaged moving forecast: vessel at %.1f knots exceeds threshold of %s knots",
                sog * MPS_TO_KNOTS, self._config.moving_speed_threshold,
            )
            return True
        return False

    def seed_position(self, position: Position) -> None:
        """Store a starting position without running a cycle."""
        self._navigation.position = position

    async def handle_position_update(self, position: Position) -> CycleResult | None:
        """
        Store position and run a cycle if a refresh is due.

        Returns the CycleResult, or None when no cycle ran (not due,
        coalesced with a pending cycle, or the engine is stopped).
        """
        self._navigation.position = position
        if self._stopped:
            return None
        if not should_refresh(
            self.current_position,
            self.last_forecast_update,
            position,
            self._config.forecast_interval,
            self._now(),
        ):
            return None
        return await self.request_cycle()

    def set_engagement(self, value: Any) -> bool:
        """Explicit engagement override. Returns True when the flag changed."""
        if not isinstance(value, bool):
            raise InvalidCommand(f"Engagement must be a boolean, got {value!r}")
        changed = value != self.engaged
        self.engaged = value
        _LOGGER.info("Moving forecast %s", "engaged" if value else "disengaged")
        return changed

    async def run_periodic_cycle(self) -> CycleResult | None:
        """Timer entry point; does nothing until a position is known."""
        if self._stopped:
            return None
        if self._navigation.position is None:
            _LOGGER.debug("No position available yet, skipping periodic forecast")
            return None
        return await self.request_cycle()

    async def request_cycle(self) -> CycleResult | None:
        fut = await self._queue.enqueue(FORECAST_JOB, self._run_cycle)
        return await fut

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    def query_forecasts(self, granularity: str, max_count: int) -> list[dict]:
        return query_forecasts(self._store, self._config.packages, granularity, max_count, self._now())

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------

    async def _run_cycle(self) -> CycleResult:
        navigation = self._navigation.snapshot()
        mode = self._mode_for(navigation)
        now = self._now()
        fell_back = False
        error: str | None = None
        batch: ForecastBatch | None = None

        try:
            if not self._config.packages:
                raise ConfigurationError("No Meteoblue packages enabled in configuration")
            if navigation.position is None:
                raise ConfigurationError("No vessel position available")

            if mode is EngineMode.MOVING:
                try:
                    batch = await self._assembler.assemble(
                        navigation.position,
                        navigation.heading,
                        navigation.sog,
                        self._config.packages,
                        now,
                    )
                except FetchFailure as err:
                    _LOGGER.error("Failed to fetch position-specific forecasts: %s", err)
                    _LOGGER.debug("Falling back to stationary forecast")
                    fell_back = True
                    batch = await self._fetch_stationary(navigation.position, now)
            else:
                batch = await self._fetch_stationary(navigation.position, now)

            self._publish(batch)
        except MeteoblueError as err:
            _LOGGER.error("Forecast cycle failed (%s): %s", mode.value, err)
            error = str(err)
            batch = None
        finally:
            # Advanced on failure too, so the next trigger is the only retry.
            self.last_forecast_update = self._now()
            if navigation.position is not None:
                self.current_position = navigation.position

        if batch is not None:
            if batch.metadata is not None:
                self.metadata = batch.metadata
            _LOGGER.debug(
                "Forecast cycle done (%s): %s hourly, %s daily records",
                mode.value, batch.count(HOURLY), batch.count(DAILY),
            )

        self.last_result = CycleResult(
            mode=mode.value,
            success=batch is not None,
            completed_at=self.last_forecast_update,
            records_published=len(batch.records) if batch is not None else 0,
            fell_back=fell_back,
            error=error,
            metadata=self.metadata,
        )
        return self.last_result

    async def _fetch_stationary(self, position: Position, now: datetime) -> ForecastBatch:
        frame = await self._fetch_forecast(
            position.latitude,
            position.longitude,
            self._config.packages.provider_names(),
        )
        return process_frame(
            frame,
            self._config.packages,
            self._config.max_forecast_hours,
            self._config.max_forecast_days,
            now,
            position,
        )

    def _publish(self, batch: ForecastBatch) -> None:
        for pending in batch.records:
            self._store.publish(
                pending.record,
                pending.package,
                pending.granularity,
                pending.index,
                pending.position,
            )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def async_shutdown(self) -> None:
        """Stop starting new cycles; a cycle already running is allowed to finish."""
        self._stopped = True
        if self._owns_queue:
            await self._queue.shutdown()
