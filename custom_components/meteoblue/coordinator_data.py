"""
CoordinatorData - immutable snapshot of the Meteoblue state shared with entities.

This is a pure data module with no HA or network dependencies.
"""
from __future__ import annotations

import dataclasses
from datetime import datetime

from .geodesy import Position
from .models import AccountUsage, CycleResult, EngineMode


@dataclasses.dataclass(frozen=True)
class CoordinatorData:
    """
    Typed, copy-on-write snapshot of the forecast engine state.

    Always replace via dataclasses.replace() - never mutate in place.
    Forecast records themselves live in the ForecastStore; this snapshot
    carries what entities need to know about them.
    """

    # Moving forecast engagement flag
    engaged: bool = False

    mode: EngineMode = EngineMode.IDLE

    # Outcome of the most recent refresh cycle (None until the first one)
    last_result: CycleResult | None = None

    last_forecast_update: datetime | None = None

    # Position the published forecast was computed for
    forecast_position: Position | None = None

    # Provider metadata of the last successful fetch
    metadata: dict | None = None

    # Number of published records per granularity
    hourly_count: int = 0
    daily_count: int = 0

    # None until the first successful account check
    account_usage: AccountUsage | None = None
