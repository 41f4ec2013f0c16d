"""
Forecast package requests against the Meteoblue packages API.

Responsible for:
- Building the packages URL for the enabled package set
- Fetching one raw provider frame for a position
- Wrapping every transport failure into FetchFailure
"""
import asyncio
import logging

import aiohttp

from custom_components.meteoblue.const import PACKAGES_API_URL
from custom_components.meteoblue.errors import (
    AuthenticationError,
    ConfigurationError,
    FetchFailure,
)
from custom_components.meteoblue.requests import make_request, ApiResponseError

_LOGGER = logging.getLogger(__name__)


def build_forecast_url(packages: list[str]) -> str:
    """
    Packages URL for the given provider package names, joined in order.

    Corresponding CURL command:
    curl 'https://my.meteoblue.com/packages/basic-1h_basic-day?apikey=KEY&lat=LAT&lon=LON&asl=15&format=json'
    """
    if not packages:
        raise ConfigurationError("No Meteoblue packages enabled in configuration")
    return PACKAGES_API_URL + "_".join(packages)


def build_forecast_params(api_key: str, lat: float, lon: float, altitude: float) -> dict:
    # The API always answers from local midnight; start/end parameters are ignored.
    return {
        "apikey": api_key,
        "lat": lat,
        "lon": lon,
        "asl": altitude,
        "format": "json",
    }


async def fetch_forecast(
    api_key: str,
    lat: float,
    lon: float,
    packages: list[str],
    altitude: float,
) -> dict:
    """
    Fetch one raw forecast frame for (lat, lon).

    Returns the decoded JSON frame (metadata, units, data_1h, data_day).
    Raises ConfigurationError when no package is enabled or no key is set,
    AuthenticationError when the key is rejected and FetchFailure for any
    other network, HTTP or decoding problem.
    """
    if not api_key:
        raise ConfigurationError("Meteoblue API key not configured")
    url = build_forecast_url(packages)
    params = build_forecast_params(api_key, lat, lon, altitude)

    _LOGGER.debug("Fetching forecast for %.6f, %.6f from %s", lat, lon, url)
    try:
        frame = await make_request(url, params=params)
    except ApiResponseError as e:
        if e.status in (401, 403):
            raise AuthenticationError(f"Meteoblue rejected the API key: {e}") from e
        raise FetchFailure(f"Meteoblue forecast request failed: {e}") from e
    except (asyncio.TimeoutError, TimeoutError) as e:
        raise FetchFailure("Timeout while fetching Meteoblue forecast") from e
    except (aiohttp.ClientError, ValueError) as e:
        raise FetchFailure(f"Error while fetching Meteoblue forecast: {e}") from e

    if not isinstance(frame, dict):
        raise FetchFailure(f"Unexpected forecast response: {frame!r}")

    _LOGGER.debug(
        "Forecast response received. Keys: %s", ", ".join(frame.keys())
    )
    return frame
