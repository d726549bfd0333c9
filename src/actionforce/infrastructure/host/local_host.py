"""
Standalone host capabilities.

Used by the CLI when no host API is configured:
- encryption with a Fernet key
- chat metadata updates kept in memory
- DuckDuckGo instant-answer search (no API key required)
- page fetch with basic HTML text extraction
"""

import re
from typing import Any, Optional

import aiohttp
import structlog
from cryptography.fernet import Fernet

from actionforce.infrastructure.http_utils import raise_for_status

DUCKDUCKGO_URL = "https://api.duckduckgo.com/"


def html_to_text(html: str) -> str:
    """Strip scripts, styles and tags, collapsing whitespace."""
    text = re.sub(r"<script[^>]*>.*?</script>", "", html, flags=re.DOTALL | re.IGNORECASE)
    text = re.sub(r"<style[^>]*>.*?</style>", "", text, flags=re.DOTALL | re.IGNORECASE)
    text = re.sub(r"<[^>]+>", " ", text)
    return " ".join(text.split())


class LocalHostCapabilities:
    """Implements HostCapabilitiesProtocol without a host platform."""

    def __init__(
        self,
        encryption_key: Optional[str] = None,
        timeout_seconds: float = 15.0,
        max_results: int = 5,
    ):
        key = encryption_key.encode("ascii") if encryption_key else Fernet.generate_key()
        self._fernet = Fernet(key)
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.max_results = max_results
        self.chat_updates: list[dict[str, Any]] = []
        self.logger = structlog.get_logger().bind(component="local_host")

    async def encrypt(self, text: str) -> str:
        return self._fernet.encrypt(text.encode("utf-8")).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        return self._fernet.decrypt(ciphertext.encode("ascii")).decode("utf-8")

    async def update_chat(self, title: str, chat_icon: str, chat_id: Optional[str]) -> Any:
        update = {"action": "updateChat", "title": title, "chatIcon": chat_icon, "chatId": chat_id}
        self.chat_updates.append(update)
        self.logger.info("local_host.update_chat", chat_id=chat_id, icon=chat_icon)
        return update

    async def google_search(
        self, query: str, params: dict[str, Any]
    ) -> Optional[list[dict[str, Any]]]:
        """Search DuckDuckGo and shape hits like Custom Search items."""
        request_params = {"q": query, "format": "json", "no_html": "1", "skip_disambig": "1"}
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            async with session.get(DUCKDUCKGO_URL, params=request_params) as response:
                await raise_for_status(response, DUCKDUCKGO_URL)
                # DuckDuckGo answers with a javascript content type
                data = await response.json(content_type=None)

        items = []
        if data.get("Abstract"):
            items.append(
                {
                    "title": data.get("Heading", ""),
                    "link": data.get("AbstractURL", ""),
                    "snippet": data["Abstract"],
                    "image": data.get("Image") or None,
                }
            )
        for topic in data.get("RelatedTopics", []):
            if isinstance(topic, dict) and "Text" in topic:
                items.append(
                    {
                        "title": topic["Text"].split(" - ")[0][:50],
                        "link": topic.get("FirstURL", ""),
                        "snippet": topic["Text"],
                    }
                )
        self.logger.info("local_host.search", query=query[:100], count=len(items))
        return items[: self.max_results]

    async def webpage_to_text(self, url: str) -> Optional[dict[str, Any]]:
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            async with session.get(url) as response:
                await raise_for_status(response, url)
                body = await response.text()
                content_type = response.headers.get("Content-Type", "")

        content = html_to_text(body) if "text/html" in content_type else body
        return {"url": str(url), "content": content, "content_type": content_type}
