"""
Low-level decision helpers for the Meteoblue coordinator.

Responsibilities:
- Decide whether a navigation update needs a forecast refresh.
- Turn the raw account usage response into AccountUsage.
- Decide which API usage notification, if any, to raise.

No HA imports - these functions are pure data primitives.
"""
from __future__ import annotations

import logging
from datetime import datetime

from .const import (
    ESTIMATED_MONTHLY_LIMIT,
    REFRESH_DISTANCE,
    USAGE_ALERT_PERCENT,
    USAGE_WARN_PERCENT,
)
from .errors import DataShapeError
from .geodesy import Position, haversine_distance
from .models import AccountUsage, UsageNotification

_LOGGER = logging.getLogger(__name__)


def should_refresh(
    last_position: Position | None,
    last_update_time: datetime | None,
    new_position: Position,
    interval_minutes: float,
    now: datetime,
) -> bool:
    """
    True when a forecast refresh is due for new_position.

    Either trigger is sufficient: the interval has elapsed since the last
    cycle, or the vessel moved more than REFRESH_DISTANCE from the position
    the last forecast was computed for.
    """
    if last_update_time is None:
        return True

    elapsed_minutes = (now - last_update_time).total_seconds() / 60
    if elapsed_minutes >= interval_minutes:
        _LOGGER.debug("Refresh due: %.1f min since last update", elapsed_minutes)
        return True

    if last_position is None:
        return False
    distance = haversine_distance(last_position, new_position)
    if distance > REFRESH_DISTANCE:
        _LOGGER.debug("Refresh due: moved %.0f m since last forecast", distance)
        return True

    return False


def parse_account_usage(
    raw: dict, now: datetime, monthly_limit: int = ESTIMATED_MONTHLY_LIMIT
) -> AccountUsage:
    """
    Sum the usage items of the account endpoint into an AccountUsage.

    The endpoint does not report the plan limit, so usage is measured against
    an estimated monthly credit limit.
    """
    if not isinstance(raw, dict):
        raise DataShapeError(f"Unexpected account usage response: {raw!r}")

    items = raw.get("items")
    if not isinstance(items, list):
        items = []

    credits_used = 0
    request_count = 0
    by_type: dict[str, dict[str, int]] = {}
    earliest = ""
    latest = ""

    for item in items:
        credits = item.get("request_credits") or 0
        count = item.get("request_count") or 0
        credits_used += credits
        request_count += count

        request_type = item.get("request_type")
        if request_type:
            bucket = by_type.setdefault(request_type, {"credits": 0, "count": 0})
            bucket["credits"] += credits
            bucket["count"] += count

        request_date = item.get("request_date")
        if request_date:
            if not earliest or request_date < earliest:
                earliest = request_date
            if not latest or request_date > latest:
                latest = request_date

    _LOGGER.debug("Account usage: %s credits over %s requests", credits_used, request_count)

    percentage = int(credits_used / monthly_limit * 100 + 0.5) if monthly_limit > 0 else 0
    return AccountUsage(
        total_requests=monthly_limit,
        used_requests=credits_used,
        remaining_requests=max(0, monthly_limit - credits_used),
        usage_percentage=percentage,
        period_start=earliest,
        period_end=latest,
        status="active" if credits_used < monthly_limit else "limit_exceeded",
        last_checked=now,
        usage_by_type=by_type,
    )


def api_usage_notification(
    usage: AccountUsage, previous: AccountUsage | None
) -> UsageNotification | None:
    """
    The notification to raise for usage, given the previously seen usage.

    ≥ alert threshold → "alert", ≥ warn threshold → "warn", and dropping
    below the warn threshold after being above it → "normal". Otherwise None.
    """
    percentage = usage.usage_percentage
    if percentage >= USAGE_ALERT_PERCENT:
        return UsageNotification(
            state="alert",
            message=(
                f"Meteoblue API usage critical: {percentage}% used "
                f"({usage.remaining_requests} requests remaining)"
            ),
        )
    if percentage >= USAGE_WARN_PERCENT:
        return UsageNotification(
            state="warn",
            message=(
                f"Meteoblue API usage high: {percentage}% used "
                f"({usage.remaining_requests} requests remaining)"
            ),
        )
    if previous is not None and previous.usage_percentage >= USAGE_WARN_PERCENT:
        return UsageNotification(
            state="normal",
            message=f"Meteoblue API usage normal: {percentage}% used",
        )
    return None
