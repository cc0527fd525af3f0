"""
HTTP GET with retries and exponential backoff for the search provider.
"""
import logging
import time
from typing import Optional, Tuple

import requests

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 2
DEFAULT_INITIAL_BACKOFF = 0.5


def get_with_retries(
    url: str,
    params: Optional[dict] = None,
    headers: Optional[dict] = None,
    timeout: float = 10,
    max_retries: int = DEFAULT_MAX_RETRIES,
    initial_backoff: float = DEFAULT_INITIAL_BACKOFF,
    session: Optional[requests.Session] = None,
) -> Tuple[Optional[requests.Response], Optional[str]]:
    """
    GET with retries and exponential backoff on timeout/connection errors only.
    Any HTTP response (including non-2xx) is returned as-is for the caller to judge.
    Returns (response, None) on success, (None, error_message) on failure.
    """
    params = params or {}
    getter = session.get if session is not None else requests.get
    last_error: Optional[str] = None
    for attempt in range(max_retries):
        try:
            resp = getter(url, params=params, headers=headers, timeout=timeout)
            return (resp, None)
        except requests.Timeout as e:
            last_error = f"Read timed out: {e}"
        except requests.RequestException as e:
            last_error = f"{type(e).__name__}: {e}"
        logger.warning(
            "SEARCH_HTTP retry attempt=%s/%s url=%s error=%s",
            attempt + 1, max_retries, url[:60], last_error,
        )
        if attempt < max_retries - 1:
            delay = initial_backoff * (2 ** attempt)
            logger.info("SEARCH_HTTP backoff %.1fs before retry", delay)
            time.sleep(delay)
    return (None, last_error)
