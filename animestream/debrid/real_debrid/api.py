"""Real-Debrid API client implementation"""

from typing import Any, Dict, Optional

from animestream.api_tracker import ApiTracker
from ..common.api import make_request as _make_request
from .exceptions import RealDebridAPIError, RealDebridAuthError

API_BASE_URL = "https://api.real-debrid.com/rest/1.0"

async def make_request(
    api: ApiTracker,
    method: str,
    endpoint: str,
    api_key: str,
    data: Optional[Dict] = None,
    params: Optional[Dict] = None,
) -> Any:
    """
    Make a request to the Real-Debrid API

    Args:
        api: Shared HTTP session
        method: HTTP method (GET, POST, etc)
        endpoint: API endpoint (e.g. /torrents/info)
        api_key: Real-Debrid API key
        data: Optional form data for POST requests
        params: Optional query parameters

    Returns:
        Decoded JSON body, or an empty dict for 204 responses
    """
    return await _make_request(
        api,
        method,
        f"{API_BASE_URL}{endpoint}",
        api_error=RealDebridAPIError,
        auth_error=RealDebridAuthError,
        headers={'Authorization': f'Bearer {api_key}'},
        params=params,
        data=data,
    )
