import asyncio
import aiohttp
from importlib.metadata import PackageNotFoundError, version
from typing import Optional, Dict, Any
from multidict import CIMultiDict, CIMultiDictProxy
from cacheprobe.exceptions import TransportFailure
from cacheprobe.utils.logger import logger

try:
    VERSION = version("cacheprobe")
except PackageNotFoundError:
    # Running from a source checkout that was never installed
    VERSION = "0+unknown"
AGENT = f"CacheProbe/{VERSION}"
DEFAULT_HEADERS = {
    "Accept": "application/json",
    "Agent": AGENT,
}

class HttpClient:
    def __init__(self, timeout: Optional[float] = None, proxy: Optional[str] = None, headers: Optional[Dict[str, str]] = None):
        # No total timeout unless asked for: a stalled origin stalls the sampling loop.
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.proxy = proxy
        self.headers = {**DEFAULT_HEADERS, **(headers or {})}
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        self.session = aiohttp.ClientSession(timeout=self.timeout)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.session:
            await self.session.close()

    async def request(self, url: str, method: str = "GET", **kwargs) -> Dict[str, Any]:
        """
        Fetch `url` and return its status and a read-only, case-insensitive
        copy of its headers. Non-2xx answers raise TransportFailure.
        """
        if not self.session:
            raise RuntimeError("Session not initialized. Use 'async with' context manager.")

        logger.debug(f"{method} {url}")
        try:
            async with self.session.request(method, str(url), headers=self.headers, proxy=self.proxy, **kwargs) as response:
                # Read body immediately to release connection
                await response.read()
                if not 200 <= response.status < 300:
                    raise TransportFailure(
                        f"HTTP error! status: {response.status}; {response.reason}",
                        status=response.status,
                        reason=response.reason,
                        url=str(response.url),
                    )
                return {
                    "status": response.status,
                    "reason": response.reason,
                    "headers": CIMultiDictProxy(CIMultiDict(response.headers)),
                    "url": str(response.url)
                }
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.debug(f"Request failed for {url}: {str(e)}")
            raise TransportFailure(f"Request failed for {url}: {e}", url=str(url)) from e
