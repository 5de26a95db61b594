# src/webapp2worker/services/resource_fetch_service.py
import asyncio
import logging
import time
from typing import Dict, Optional

import aiohttp

from webapp2worker.errors import ResourceFetchError
from webapp2worker.utils.url_utils import UrlUtils

logger = logging.getLogger(__name__)


class ResourceFetchService:
    """
    Retrieves the text of the root document and of external stylesheets/scripts.
    file:// URLs are read from disk, http(s):// URLs through a shared aiohttp session.
    Any failure is raised as ResourceFetchError; there are no retries.
    """

    def __init__(self, config: Optional[Dict] = None):
        self.config = config or {}

        session_config = self.config.get('session', {})
        self.max_concurrency = int(session_config.get('concurrency', 16))
        self.timeout = int(session_config.get('time_out', 30))
        self.read_timeout = float(session_config.get('client_read_timeout', 15.0))
        self.user_agent = session_config.get('user_agent', 'webapp2worker')

        self.semaphore = asyncio.Semaphore(self.max_concurrency)
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def initialize(self):
        if not self.session or self.session.closed:
            timeout_obj = aiohttp.ClientTimeout(total=self.timeout)
            default_headers = {
                'Accept-Encoding': 'gzip, deflate',
                'User-Agent': self.user_agent
            }
            self.session = aiohttp.ClientSession(
                timeout=timeout_obj, headers=default_headers
            )
            logger.debug("ResourceFetchService: Session initialized.")

    async def close(self):
        if self.session and not self.session.closed:
            await self.session.close()
            logger.debug("ResourceFetchService: Session closed.")

    async def read_text(self, url: str) -> str:
        """Reads the root document. Same transport rules as external resources."""
        return await self.fetch_text(url)

    async def fetch_text(self, url: str) -> str:
        """
        Main entry point. Routes on the URL scheme and wraps the transfer
        in the global semaphore.
        """
        start_time = time.perf_counter()

        async with self.semaphore:
            if UrlUtils.is_file_url(url):
                content = await self._read_file(url)
            elif url.startswith(("http://", "https://")):
                content = await self._execute_get(url)
            else:
                raise ResourceFetchError(url, "unsupported URL scheme")

        logger.debug(
            "Fetched %s (%d chars) in %.2f ms",
            url, len(content), (time.perf_counter() - start_time) * 1000
        )
        return content

    # =========================================================================
    #  FILE LOGIC
    # =========================================================================
    async def _read_file(self, url: str) -> str:
        path = UrlUtils.file_url_to_path(url)
        try:
            return await asyncio.to_thread(path.read_text, encoding="utf-8", errors="replace")
        except OSError as e:
            raise ResourceFetchError(url, e.strerror or str(e)) from e

    # =========================================================================
    #  HTTP LOGIC
    # =========================================================================
    async def _execute_get(self, url: str) -> str:
        if not self.session or self.session.closed:
            await self.initialize()

        try:
            async with self.session.get(url) as response:
                if not 200 <= response.status < 300:
                    raise ResourceFetchError(url, f"HTTP status {response.status}")
                return await self._read_content(response, url)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ResourceFetchError(url, str(e) or type(e).__name__) from e

    async def _read_content(self, response, url: str) -> str:
        """Helper to read response body text safely."""
        try:
            return await asyncio.wait_for(response.text(), timeout=self.read_timeout)
        except asyncio.TimeoutError as e:
            raise ResourceFetchError(url, "timeout reading response body") from e
        except UnicodeDecodeError:
            # Fallback decoding
            content_bytes = await response.read()
            return content_bytes.decode('utf-8', errors='replace')
