import asyncio
import json
import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import aiohttp

api_logger = logging.getLogger('api_calls')

DEFAULT_HEADERS = {
    'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
                  '(KHTML, like Gecko) Chrome/124.0 Safari/537.36'
}

@dataclass
class ApiResponse:
    status: int
    text: str
    headers: Dict[str, str] = field(default_factory=dict)
    url: str = ''

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        return json.loads(self.text)

class APIRateLimiter:
    """Counts calls per domain; limits are reported, never enforced."""

    def __init__(self, hourly_limit: int = 2000, five_minute_limit: int = 1000, clock=time.monotonic):
        self.hourly_limit = hourly_limit
        self.five_minute_limit = five_minute_limit
        self.hourly_calls = defaultdict(list)
        self.five_minute_calls = defaultdict(list)
        self._clock = clock

    def check_limits(self, domain: str) -> bool:
        """Record a call and return False when a window is over its limit."""
        current_time = self._clock()

        self.hourly_calls[domain] = [t for t in self.hourly_calls[domain] if current_time - t < 3600]
        self.five_minute_calls[domain] = [t for t in self.five_minute_calls[domain] if current_time - t < 300]

        self.hourly_calls[domain].append(current_time)
        self.five_minute_calls[domain].append(current_time)

        hourly_exceeded = len(self.hourly_calls[domain]) > self.hourly_limit
        five_min_exceeded = len(self.five_minute_calls[domain]) > self.five_minute_limit
        if hourly_exceeded or five_min_exceeded:
            api_logger.warning(f"Call volume for {domain} is above its limit "
                               f"({len(self.five_minute_calls[domain])}/5min, {len(self.hourly_calls[domain])}/h)")
            return False
        return True

    def reset_limits(self):
        self.hourly_calls.clear()
        self.five_minute_calls.clear()

class ApiTracker:
    """Shared aiohttp session that logs every outbound call.

    Only the domain and path are logged; query strings may carry credentials.
    """

    def __init__(self, session: Optional[aiohttp.ClientSession] = None, timeout: float = 30):
        self._session = session
        self._owns_session = session is None
        self.timeout = timeout
        self.rate_limiter = APIRateLimiter()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(headers=DEFAULT_HEADERS)
            self._owns_session = True
        return self._session

    def log_call(self, method: str, url: str):
        parsed = urlparse(url)
        api_logger.info(f"{method.upper()} {parsed.netloc}{parsed.path}")
        self.rate_limiter.check_limits(parsed.netloc)

    async def request(self, method: str, url: str, timeout: Optional[float] = None, **kwargs) -> ApiResponse:
        """Perform one request and read the whole body.

        Raises aiohttp.ClientError or asyncio.TimeoutError on transport failure;
        HTTP error statuses are returned to the caller unchanged.
        """
        self.log_call(method, url)
        client_timeout = aiohttp.ClientTimeout(total=timeout or self.timeout)
        session = self._get_session()
        async with session.request(method.upper(), url, timeout=client_timeout, **kwargs) as response:
            text = await response.text(errors='replace')
            return ApiResponse(status=response.status, text=text,
                               headers=dict(response.headers), url=str(response.url))

    async def get(self, url: str, **kwargs) -> ApiResponse:
        return await self.request('GET', url, **kwargs)

    async def post(self, url: str, **kwargs) -> ApiResponse:
        return await self.request('POST', url, **kwargs)

    async def close(self):
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

TRANSPORT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError)
