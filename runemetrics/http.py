import asyncio
import logging
import sys
import time
from typing import Any, TypedDict
from urllib.parse import urlparse

import aiohttp

from runemetrics.decorators.retry_on_exception import retry_on_exception
from runemetrics.event_emitter import event_emitter

logger = logging.getLogger(__name__)

USER_AGENT = "runemetrics-tracker"

# Statuses worth another attempt; anything else is handed back to the caller.
RETRYABLE_STATUSES = {408, 429}

# Jagex hosts start refusing long lived connections, reconnect per request.
SESSION_RESET_HOSTS = frozenset({"apps.runescape.com", "secure.runescape.com"})


class HttpResponse(TypedDict):
    status: int
    body: Any


class HttpException(Exception):
    def __init__(
        self,
        message="Unexpected response from target.",
    ):
        self.message = message
        super().__init__(self.message)


def _check_status(url: str, status: int) -> None:
    if status >= 500:
        logger.warning(f"Server error {status} from {urlparse(url).netloc}")
        raise HttpException(f"A remote server error occurred: {status}")

    if status in RETRYABLE_STATUSES:
        logger.warning(f"Throttled with {status} by {urlparse(url).netloc}")
        raise HttpException(f"Rate limited or timed out response: {status}")


async def _read_body(response: aiohttp.ClientResponse) -> Any:
    content_type = response.content_type.lower()

    if "json" in content_type:
        return await response.json()
    if "text" in content_type or "html" in content_type:
        return await response.text()
    return await response.read()


class AsyncHttpClient:
    """Shared aiohttp session with a per host request spacing."""

    def __init__(self, min_request_delay: float = 1.0, timeout: float = 30.0):
        self.session = None
        self._session_lock = asyncio.Lock()
        self._last_request_time: dict[str, float] = {}
        self._min_request_delay = min_request_delay
        self._timeout = timeout
        self._session_reset_hosts = SESSION_RESET_HOSTS

        event_emitter.on("shutdown", self.cleanup, priority=20)

    async def _initialize_session(self):
        async with self._session_lock:
            if self.session is None or self.session.closed:
                logger.debug("Opening http session")
                self.session = aiohttp.ClientSession(
                    headers={"User-Agent": USER_AGENT},
                    timeout=aiohttp.ClientTimeout(total=self._timeout),
                )

    async def _wait_for_host(self, host: str):
        elapsed = time.time() - self._last_request_time.get(host, 0)
        if elapsed < self._min_request_delay:
            await asyncio.sleep(self._min_request_delay - elapsed)

        self._last_request_time[host] = time.time()

    def _should_reset_session(self, url: str) -> bool:
        return urlparse(url).netloc in self._session_reset_hosts

    @retry_on_exception(retries=5, exceptions=(HttpException,))
    async def get(self, url, params=None, headers=None) -> HttpResponse:
        """GET ``url``; the body is decoded by content type.

        5xx, 408 and 429 responses as well as transport failures raise
        ``HttpException`` and are retried. Other statuses are returned.
        """
        await self._initialize_session()
        assert self.session

        await self._wait_for_host(urlparse(url).netloc)

        try:
            async with self.session.get(
                url, params=params, headers=headers
            ) as response:
                _check_status(url, response.status)

                try:
                    body = await _read_body(response)
                except (aiohttp.ClientError, ValueError) as e:
                    raise HttpException(f"Failed to read response data: {e}")

                status = response.status
        except asyncio.TimeoutError as e:
            logger.error(f"GET timed out for {url}")
            raise HttpException(f"GET request timed out: {e}")
        except aiohttp.ClientError as e:
            logger.error(f"GET failed for {url}: {e}")
            raise HttpException(f"GET request failed: {e}")

        if self._should_reset_session(url):
            await self.cleanup()

        return HttpResponse(status=status, body=body)

    async def cleanup(self):
        if self.session and not self.session.closed:
            logger.debug("Closing http session")
            await self.session.close()


try:
    HTTP = AsyncHttpClient()
except Exception as e:
    logger.critical(e)
    sys.exit(1)
