"""AllDebrid API client implementation"""

from typing import Any, Dict, Optional

from animestream.api_tracker import ApiTracker
from ..common.api import make_request as _make_request
from .exceptions import AllDebridAPIError, AllDebridAuthError

API_BASE_URL = "https://api.alldebrid.com"
AGENT = 'animestream'

# AllDebrid error code mapping
ALLDEBRID_ERROR_CODES = {
    'AUTH_MISSING_APIKEY': AllDebridAuthError,
    'AUTH_BAD_APIKEY': AllDebridAuthError,
    'AUTH_USER_BANNED': AllDebridAuthError,
    'MAGNET_INVALID_URI': AllDebridAPIError,
    'MAGNET_MUST_BE_PREMIUM': AllDebridAuthError,
    'MAGNET_TOO_MANY': AllDebridAPIError,
    'MAGNET_TOO_MANY_ACTIVE': AllDebridAPIError,
    'LINK_HOST_NOT_SUPPORTED': AllDebridAPIError,
    'LINK_DOWN': AllDebridAPIError,
    'LINK_PASS_PROTECTED': AllDebridAPIError,
    'LINK_ERROR': AllDebridAPIError,
}

# Magnet status codes: 0-3 in progress, 4 ready, 5 and above failed
MAGNET_STATUS_CODES = {
    0: 'In Queue',
    1: 'Downloading',
    2: 'Compressing',
    3: 'Uploading',
    4: 'Ready',
    5: 'Error',
    6: 'Virus',
    7: 'Dead',
    8: 'Error - No peer',
    9: 'Error - Internal',
    10: 'Error - Limit reached',
    11: 'Magnet conversion error',
    15: 'Unavailable - No peer',
}

async def make_request(
    api: ApiTracker,
    method: str,
    endpoint: str,
    api_key: str,
    params: Optional[Dict] = None,
    data: Optional[Dict] = None,
) -> Dict[str, Any]:
    """
    Make a request to the AllDebrid API and return its 'data' object.

    AllDebrid reports failures in the body ({"status": "error", "error": {...}})
    with HTTP 200, so the body is checked as well as the status code.
    """
    if not endpoint.startswith('/v4'):
        endpoint = f'/v4.1{endpoint}'
    query = {'agent': AGENT}
    if params:
        query.update(params)

    result = await _make_request(
        api,
        method,
        f"{API_BASE_URL}{endpoint}",
        api_error=AllDebridAPIError,
        auth_error=AllDebridAuthError,
        headers={'Authorization': f'Bearer {api_key}'},
        params=query,
        data=data,
    )
    if not isinstance(result, dict):
        raise AllDebridAPIError(f"Unexpected response from {endpoint}")
    if result.get('status') != 'success':
        error = result.get('error') or {}
        code = error.get('code', 'UNKNOWN')
        error_class = ALLDEBRID_ERROR_CODES.get(code, AllDebridAPIError)
        raise error_class(f"{code}: {error.get('message', 'unknown error')}")
    return result.get('data') or {}
