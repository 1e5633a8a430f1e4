"""
Thin async wrapper around a requests.Session.

Blocking requests calls run on a worker thread so several quote requests
can be in flight at once while the batch logic stays on the event loop.
"""
import asyncio
import logging
from typing import Any

import requests

from rateshop.services.errors import NetworkError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


def new_http_session() -> requests.Session:
    session = requests.Session()
    session.headers.update({"Accept": "application/json"})
    return session


async def send(
    http: requests.Session,
    method: str,
    url: str,
    timeout: float = DEFAULT_TIMEOUT,
    **kwargs: Any,
) -> requests.Response:
    """Perform one HTTP call; connection-level failures become NetworkError."""
    try:
        return await asyncio.to_thread(http.request, method, url, timeout=timeout, **kwargs)
    except requests.Timeout as e:
        logger.error("Request to %s timed out after %.0fs", url, timeout)
        raise NetworkError(
            f"Request timed out after {timeout:.0f}s. The carrier network may be slow; please try again."
        ) from e
    except requests.ConnectionError as e:
        logger.error("Connection to %s failed: %s", url, e)
        raise NetworkError(
            "Network connection failed. Please check your internet connection and try again."
        ) from e


def response_json(response: requests.Response) -> Any:
    """Decode a JSON body, returning None for empty or malformed payloads."""
    if response.status_code == 204 or not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        logger.warning("Non-JSON payload from %s (status %s)", response.url, response.status_code)
        return None
