"""
Low-level HTTP request library for gateway communication.
This module handles the HTTP round-trip and response decoding; it knows nothing
about tokens, resources or the domain models.
"""
import asyncio
import logging

import aiohttp


_LOGGER = logging.getLogger(__name__)

SUPPORTED_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")


class ApiResponseError(Exception):
    """Exception raised when the gateway answers with a non-2xx status."""
    def __init__(self, status: int, message: str, body=None):
        self.status = status
        self.message = message
        self.body = body
        super().__init__(f"API Error {status}: {message}")


async def check_gateway_availability(base_url: str, timeout: int = 15) -> bool:
    """
    Check if the gateway is reachable by sending a HEAD request.

    Args:
        base_url: Gateway base URL
        timeout: Timeout in seconds for the HEAD request

    Returns:
        True if the gateway answered at all with a status below 500, False otherwise
    """
    try:
        timeout_config = aiohttp.ClientTimeout(total=timeout)
        async with aiohttp.ClientSession(timeout=timeout_config) as session:
            async with session.head(base_url) as response:
                if response.status >= 500:
                    _LOGGER.warning("Gateway is not healthy (status %s)", response.status)
                    return False
                return True
    except (asyncio.TimeoutError, TimeoutError):
        _LOGGER.warning("Timeout while checking gateway URL %s", base_url)
        return False
    except aiohttp.ClientError as e:
        _LOGGER.warning("Gateway %s is not reachable: %s", base_url, e)
        return False


async def make_request(
    method: str,
    url: str,
    headers: dict,
    payload: dict | list | None = None,
    params: dict | None = None,
    data: aiohttp.FormData | None = None,
    timeout: float | None = None,
    max_attempts: int = 1,
):
    """
    Make an HTTP request and return the decoded JSON body.

    Args:
        method: HTTP method (GET, POST, PUT, PATCH, DELETE)
        url: Target URL for the request
        headers: HTTP headers dictionary
        payload: JSON body (optional)
        params: URL query parameters (optional)
        data: multipart form body, mutually exclusive with payload (optional)
        timeout: Total timeout in seconds; None keeps the aiohttp default
        max_attempts: Attempts made when the request times out

    Returns:
        Parsed JSON response, or None for an empty body

    Raises:
        asyncio.TimeoutError: If every attempt timed out
        ApiResponseError: If the gateway answered with a non-2xx status
        ValueError: If a successful response is not JSON
        aiohttp.ClientError: For connection level failures
    """
    method = method.upper()
    if method not in SUPPORTED_METHODS:
        raise ValueError(f"Unsupported HTTP method: {method}")

    session_kwargs = {}
    if timeout is not None:
        session_kwargs["timeout"] = aiohttp.ClientTimeout(total=timeout)

    for attempt in range(max_attempts):
        try:
            async with aiohttp.ClientSession(**session_kwargs) as session:
                async with session.request(
                    method,
                    url,
                    headers=headers,
                    json=payload if data is None else None,
                    data=data,
                    params=params,
                ) as response:
                    return await _process_response(response, url)
        except (asyncio.TimeoutError, TimeoutError):
            if attempt < max_attempts - 1:
                continue
            _LOGGER.warning(
                "Timeout on %s request to %s after %s attempts",
                method, url, max_attempts
            )
            raise
    return None


async def _process_response(response, url: str):
    """
    Process HTTP response and extract JSON data.

    Args:
        response: aiohttp response object
        url: Request URL (for logging)

    Returns:
        Parsed JSON response, or None when the body is empty

    Raises:
        ValueError: If a successful response has unexpected content type
        ApiResponseError: For any non-2xx response
    """
    content_type = response.headers.get('Content-Type', '')

    if 200 <= response.status < 300:
        if response.status == 204:
            return None
        if 'application/json' in content_type:
            return await response.json()
        text = await response.text()
        if not text:
            return None
        _LOGGER.warning(
            "Unexpected content type in successful response: %s (status %s) from %s",
            content_type, response.status, url
        )
        raise ValueError(f"Expected JSON but got {content_type}: {text[:200]}")

    reason = response.reason or "Request failed"
    if 'application/json' in content_type:
        try:
            error_json = await response.json()
        except (aiohttp.ContentTypeError, ValueError) as e:
            _LOGGER.debug("Failed to parse error response from %s: %s", url, e)
            raise ApiResponseError(response.status, reason) from e
        message = reason
        if isinstance(error_json, dict):
            message = error_json.get("message") or error_json.get("error") or reason
            if isinstance(message, list):
                message = "; ".join(str(m) for m in message)
        raise ApiResponseError(response.status, str(message), error_json)

    text = await response.text()
    _LOGGER.debug(
        "Received non-JSON error response from %s: status %s, content-type: %s, body preview: %s",
        url, response.status, content_type, text[:200]
    )
    raise ApiResponseError(response.status, reason, text)
