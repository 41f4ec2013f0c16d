"""
Account usage requests against the Meteoblue account API.

The usage endpoint doubles as the cheapest way to validate an API key.
"""
import asyncio
import logging

import aiohttp

from custom_components.meteoblue.const import ACCOUNT_USAGE_API_URL
from custom_components.meteoblue.errors import AuthenticationError, FetchFailure
from custom_components.meteoblue.requests import make_request, ApiResponseError

_LOGGER = logging.getLogger(__name__)


async def fetch_account_usage(api_key: str) -> dict:
    """
    Fetch the raw account usage document.

    Corresponding CURL command:
    curl 'https://my.meteoblue.com/account/usage?apikey=KEY'
    """
    try:
        raw = await make_request(ACCOUNT_USAGE_API_URL, params={"apikey": api_key})
    except ApiResponseError as e:
        if e.status in (400, 401, 403):
            raise AuthenticationError(f"Meteoblue rejected the API key: {e}") from e
        raise FetchFailure(f"Meteoblue account request failed: {e}") from e
    except (asyncio.TimeoutError, TimeoutError) as e:
        raise FetchFailure("Timeout while fetching Meteoblue account usage") from e
    except (aiohttp.ClientError, ValueError) as e:
        raise FetchFailure(f"Error while fetching Meteoblue account usage: {e}") from e

    _LOGGER.debug("Account usage data received: %s", raw)
    return raw
