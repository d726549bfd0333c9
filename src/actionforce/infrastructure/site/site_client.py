"""
Site Client

aiohttp client for the remote site plugin. Two endpoints are used:
- ``/wp-json/openkbs/v1/filesystem/write`` to persist generated files
- ``/wp-json/openkbs/v1/callback`` to tell the site a job finished

Every request carries the ``WP-API-KEY`` header.
"""

from typing import Any, Optional

import aiohttp
import structlog

from actionforce.infrastructure.http_utils import raise_for_status

FILESYSTEM_WRITE_PATH = "/wp-json/openkbs/v1/filesystem/write"
CALLBACK_PATH = "/wp-json/openkbs/v1/callback"
API_KEY_HEADER = "WP-API-KEY"


class SiteClient:
    """Implements SiteClientProtocol over HTTP."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout_seconds: float = 30.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session = session
        self.logger = structlog.get_logger().bind(component="site_client")

    @property
    def headers(self) -> dict[str, str]:
        return {API_KEY_HEADER: self.api_key}

    async def _post(self, path: str, payload: dict[str, Any]) -> int:
        url = f"{self.base_url}{path}"
        session = self._session or aiohttp.ClientSession(timeout=self.timeout)
        try:
            async with session.post(url, json=payload, headers=self.headers) as response:
                if response.status >= 400:
                    self.logger.warning("site.request_failed", url=url, status=response.status)
                await raise_for_status(response, url)
                return response.status
        finally:
            if self._session is None:
                await session.close()

    async def write_file(self, path: str, content: str) -> int:
        self.logger.info("site.write_file", path=path, size=len(content))
        return await self._post(FILESYSTEM_WRITE_PATH, {"path": path, "content": content})

    async def notify_job_finished(self, post_id: Any, message: str) -> int:
        self.logger.info("site.job_callback", post_id=post_id)
        return await self._post(
            CALLBACK_PATH, {"post_id": post_id, "message": message, "type": "reload"}
        )
