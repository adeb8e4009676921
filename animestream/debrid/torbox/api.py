"""TorBox API client implementation"""

from typing import Any, Dict, Optional

from animestream.api_tracker import ApiTracker
from ..common.api import make_request as _make_request
from .exceptions import TorBoxAPIError, TorBoxAuthError

API_BASE_URL = "https://api.torbox.app/v1/api"

async def make_request(
    api: ApiTracker,
    method: str,
    endpoint: str,
    api_key: str,
    params: Optional[Dict] = None,
    data: Optional[Dict] = None,
) -> Any:
    """
    Make a request to the TorBox API and return its 'data' member.

    TorBox wraps every response in {"success": bool, "detail": str, "data": ...}.
    """
    result = await _make_request(
        api,
        method,
        f"{API_BASE_URL}{endpoint}",
        api_error=TorBoxAPIError,
        auth_error=TorBoxAuthError,
        headers={'Authorization': f'Bearer {api_key}'},
        params=params,
        data=data,
    )
    if not isinstance(result, dict):
        raise TorBoxAPIError(f"Unexpected response from {endpoint}")
    if not result.get('success', False):
        raise TorBoxAPIError(result.get('detail') or result.get('error') or f"Request to {endpoint} failed")
    return result.get('data')
