"""Shared request helper for debrid REST APIs"""

import logging
from typing import Any, Dict, Optional, Type

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from animestream.api_tracker import ApiResponse, ApiTracker, TRANSPORT_ERRORS
from ..base import DebridAuthError, DebridProviderError, ProviderUnavailableError, RateLimitError

def should_retry_error(exception: Exception) -> bool:
    """Rate limits and temporary outages are retried; everything else is final"""
    return isinstance(exception, (RateLimitError, ProviderUnavailableError))

def raise_for_status(response: ApiResponse, api_error: Type[DebridProviderError] = DebridProviderError,
                     auth_error: Type[DebridProviderError] = DebridAuthError):
    if response.status < 400:
        return
    if response.status == 401:
        raise auth_error("Invalid API key")
    if response.status == 403:
        raise auth_error("Access denied")
    if response.status == 429:
        logging.warning(f"Rate limit exceeded for {response.url}")
        raise RateLimitError("Rate limit exceeded")
    if response.status in (502, 503, 504):
        raise ProviderUnavailableError(f"Service temporarily unavailable (HTTP {response.status})")
    raise api_error(f"HTTP {response.status}: {response.text[:200]}")

@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_exception_type((RateLimitError, ProviderUnavailableError)),
    reraise=True
)
async def make_request(
    api: ApiTracker,
    method: str,
    url: str,
    api_error: Type[DebridProviderError] = DebridProviderError,
    auth_error: Type[DebridProviderError] = DebridAuthError,
    headers: Optional[Dict[str, str]] = None,
    params: Optional[Dict[str, Any]] = None,
    data: Optional[Dict[str, Any]] = None,
    timeout: Optional[float] = None,
) -> Any:
    """
    Make a request to a debrid API and return its decoded JSON body.

    Raises:
        auth_error: If authentication fails
        RateLimitError: If rate limit is exceeded, after retries
        ProviderUnavailableError: If the service is unreachable, after retries
        api_error: For any other HTTP error or an unreadable body
    """
    try:
        response = await api.request(method, url, headers=headers, params=params, data=data, timeout=timeout)
    except TRANSPORT_ERRORS as e:
        raise ProviderUnavailableError(f"Request failed: {e!r}") from e

    raise_for_status(response, api_error, auth_error)

    if response.status == 204 or not response.text:
        return {}
    try:
        return response.json()
    except ValueError as e:
        raise api_error(f"Unreadable response from {response.url}: {e}") from e
