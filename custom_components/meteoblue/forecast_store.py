"""
ForecastStore - the published record store shared by the engine and its readers.

Pure data module with no HA or network dependencies. The engine writes one
record per (granularity, package, index) through publish(); the weather query
adapter and entities read it back.
"""
from __future__ import annotations

import logging
from typing import Any

from .geodesy import Position

_LOGGER = logging.getLogger(__name__)


class ForecastStore:
    """
    Last published normalised records, keyed by granularity, package and index.

    Publishing index 0 of a (granularity, package) series replaces the whole
    series, so a shorter forecast never leaves stale tail entries behind.
    Positions at indices no package still holds are dropped with it.
    """

    def __init__(self) -> None:
        # (granularity, package) → index → record
        self._series: dict[tuple[str, str], dict[int, dict[str, Any]]] = {}
        # (granularity, index) → position the record was computed for
        self._positions: dict[tuple[str, int], Position] = {}

    def publish(
        self,
        record: dict[str, Any],
        package: str,
        granularity: str,
        index: int,
        position: Position | None = None,
    ) -> None:
        key = (granularity, package)
        if index == 0 or key not in self._series:
            self._series[key] = {}
            self._prune_positions(granularity)
        self._series[key][index] = dict(record)
        if position is not None:
            self._positions[(granularity, index)] = position

    def get(self, granularity: str, field: str, index: int) -> Any:
        """Value of field at index, looked up across every package of granularity."""
        for (gran, _package), series in self._series.items():
            if gran != granularity:
                continue
            record = series.get(index)
            if record is not None and field in record:
                return record[field]
        return None

    def merged_record(self, granularity: str, index: int) -> dict[str, Any] | None:
        """All package records at index merged into one dict; None if nothing is stored there."""
        merged: dict[str, Any] = {}
        found = False
        for (gran, _package), series in self._series.items():
            if gran != granularity or index not in series:
                continue
            merged.update(series[index])
            found = True
        return merged if found else None

    def has_index(self, granularity: str, index: int) -> bool:
        return any(
            index in series
            for (gran, _package), series in self._series.items()
            if gran == granularity
        )

    def count(self, granularity: str, package: str | None = None) -> int:
        if package is not None:
            return len(self._series.get((granularity, package), {}))
        return max(
            (len(series) for (gran, _p), series in self._series.items() if gran == granularity),
            default=0,
        )

    def position(self, granularity: str, index: int) -> Position | None:
        return self._positions.get((granularity, index))

    def _prune_positions(self, granularity: str) -> None:
        stale = [
            key for key in self._positions
            if key[0] == granularity and not self.has_index(granularity, key[1])
        ]
        for key in stale:
            del self._positions[key]

    def clear(self) -> None:
        self._series.clear()
        self._positions.clear()
