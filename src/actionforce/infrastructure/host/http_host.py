"""
Host platform client.

The chat host exposes its capabilities (encryption, chat metadata,
search, page extraction) as JSON actions under one base URL:

    POST {host_api_url}/{action}   Authorization: Bearer <token>
"""

from typing import Any, Optional

import aiohttp
import structlog

from actionforce.infrastructure.http_utils import raise_for_status


class HttpHostCapabilities:
    """Implements HostCapabilitiesProtocol by calling the host API."""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout_seconds: float = 30.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session = session
        self.logger = structlog.get_logger().bind(component="host_api")

    @property
    def headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    async def _call(self, action: str, payload: dict[str, Any]) -> Any:
        url = f"{self.base_url}/{action}"
        session = self._session or aiohttp.ClientSession(timeout=self.timeout)
        try:
            async with session.post(url, json=payload, headers=self.headers) as response:
                await raise_for_status(response, url)
                return await response.json(content_type=None)
        finally:
            if self._session is None:
                await session.close()

    async def encrypt(self, text: str) -> str:
        data = await self._call("encrypt", {"text": text})
        return data.get("ciphertext", "") if isinstance(data, dict) else data

    async def update_chat(self, title: str, chat_icon: str, chat_id: Optional[str]) -> Any:
        self.logger.info("host.update_chat", chat_id=chat_id, icon=chat_icon)
        return await self._call(
            "chats",
            {"action": "updateChat", "title": title, "chatIcon": chat_icon, "chatId": chat_id},
        )

    async def google_search(
        self, query: str, params: dict[str, Any]
    ) -> Optional[list[dict[str, Any]]]:
        data = await self._call("googleSearch", {"query": query, "params": params})
        if isinstance(data, dict):
            return data.get("items")
        return data

    async def webpage_to_text(self, url: str) -> Optional[dict[str, Any]]:
        return await self._call("webpageToText", {"url": url})
