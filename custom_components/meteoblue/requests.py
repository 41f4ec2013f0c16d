"""
Low-level HTTP request library for Meteoblue API communication.
This module handles all HTTP requests with automatic retry logic and proper error handling.
"""
import asyncio
import logging
import aiohttp


_LOGGER = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10  # seconds, multiplied by attempt number for each retry
REQUEST_ATTEMPTS = 3  # maximum number of retry attempts


class ApiResponseError(Exception):
    """Exception raised when API returns an error response."""
    def __init__(self, error_json: dict, status: int | None = None):
        self.error_json = error_json
        self.status = status
        message = error_json.get("error_message") if isinstance(error_json, dict) else None
        super().__init__(f"API Error ({status}): {message or error_json}")


async def make_request(
    url: str,
    params: dict = None,
    headers: dict = None,
    timeout: int = REQUEST_TIMEOUT,
    max_attempts: int = REQUEST_ATTEMPTS,
):
    """
    Make a GET request with automatic retry on timeout.

    Args:
        url: Target URL for the request
        params: URL query parameters (optional)
        headers: HTTP headers dictionary (optional)
        timeout: Base timeout in seconds (multiplied by attempt number for each retry)
        max_attempts: Maximum number of retry attempts

    Returns:
        Parsed JSON response

    Raises:
        asyncio.TimeoutError: If all retry attempts timeout
        ApiResponseError: If the API answers with a JSON error body
        ValueError: If response has unexpected content type
        aiohttp.ClientError: For other HTTP or network errors
    """
    if headers is None:
        headers = {"accept": "application/json"}

    for attempt in range(max_attempts):
        timeout_config = aiohttp.ClientTimeout(total=timeout * (attempt + 1))
        try:
            async with aiohttp.ClientSession(timeout=timeout_config) as session:
                async with session.get(url, headers=headers, params=params) as response:
                    return await _process_response(response, url)

        except (asyncio.TimeoutError, TimeoutError):
            if attempt < max_attempts - 1:
                _LOGGER.debug("Timeout on request to %s, retrying (attempt %s)", url, attempt + 2)
                continue
            _LOGGER.warning("Timeout on request to %s after %s attempts", url, max_attempts)
            raise

    return None


async def _process_response(response, url: str):
    """
    Process HTTP response and extract JSON data.

    Meteoblue reports problems (bad key, exhausted credits, bad coordinates)
    as a JSON body with an "error" flag, sometimes even with status 200.

    Raises:
        ApiResponseError: For JSON error bodies
        ValueError: If response has unexpected content type
    """
    content_type = response.headers.get('Content-Type', '')

    if 'application/json' in content_type:
        body = await response.json()
        if isinstance(body, dict) and body.get("error"):
            raise ApiResponseError(body, response.status)
        if response.status == 200:
            return body
        raise ApiResponseError(body if isinstance(body, dict) else {"body": body}, response.status)

    # Non-JSON response (e.g., HTML error page)
    text = await response.text()
    _LOGGER.warning(
        "Received non-JSON response from %s: status %s, content-type: %s, body preview: %s",
        url, response.status, content_type, text[:200]
    )
    raise ValueError(
        f"HTTP {response.status} with {content_type} "
        f"(expected application/json) from {url}"
    )
