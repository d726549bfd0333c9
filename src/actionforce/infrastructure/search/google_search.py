"""
Google Custom Search client.

Used when a search API key is configured; otherwise googleSearch commands
go through the host platform.
"""

from typing import Any, Optional

import aiohttp
import structlog

from actionforce.infrastructure.http_utils import raise_for_status

CUSTOM_SEARCH_URL = "https://www.googleapis.com/customsearch/v1"


class GoogleSearchClient:
    """Implements SearchClientProtocol against the Custom Search JSON API."""

    def __init__(
        self,
        api_key: str,
        engine_id: str,
        timeout_seconds: float = 30.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.api_key = api_key
        self.engine_id = engine_id
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session = session
        self.logger = structlog.get_logger().bind(component="google_search")

    async def search(self, query: str) -> Optional[list[dict[str, Any]]]:
        """
        Run a search.

        Returns:
            The raw ``items`` list, or None when the API returned no items
        """
        params = {"q": query, "key": self.api_key, "cx": self.engine_id}
        session = self._session or aiohttp.ClientSession(timeout=self.timeout)
        try:
            async with session.get(CUSTOM_SEARCH_URL, params=params) as response:
                await raise_for_status(response, CUSTOM_SEARCH_URL)
                data = await response.json(content_type=None)
        finally:
            if self._session is None:
                await session.close()

        items = (data or {}).get("items")
        self.logger.info("search.completed", query=query[:100], count=len(items or []))
        return items
