"""
Backend Protocols

The executor only talks to these protocols. Infrastructure adapters
(aiohttp clients, the Node.js sandbox, the local host) implement them,
and tests substitute AsyncMock objects.
"""

from typing import Any, Optional, Protocol


class SiteClientProtocol(Protocol):
    """Remote site that receives written files and job notifications."""

    async def write_file(self, path: str, content: str) -> int:
        """
        Persist content at path on the site.

        Returns:
            HTTP status of the write request

        Raises:
            BackendError: If the site answered with an error status
        """
        ...

    async def notify_job_finished(self, post_id: Any, message: str) -> int:
        """Tell the site that the job behind post_id finished."""
        ...


class HostCapabilitiesProtocol(Protocol):
    """Capabilities offered by the chat host platform."""

    async def encrypt(self, text: str) -> str:
        ...

    async def update_chat(
        self, title: str, chat_icon: str, chat_id: Optional[str]
    ) -> Any:
        ...

    async def google_search(
        self, query: str, params: dict[str, Any]
    ) -> Optional[list[dict[str, Any]]]:
        """Search through the host; items follow the Custom Search item shape."""
        ...

    async def webpage_to_text(self, url: str) -> Optional[dict[str, Any]]:
        """Fetch a page and extract its text as ``{"url", "content", ...}``."""
        ...


class SearchClientProtocol(Protocol):
    """Direct search API access, used when a search key is configured."""

    async def search(self, query: str) -> Optional[list[dict[str, Any]]]:
        ...


class ScriptRunnerProtocol(Protocol):
    """Sandbox that executes a javascript module and awaits its handler."""

    async def run(self, source: str) -> Any:
        """
        Execute source and return the value produced by ``handler()``.

        Raises:
            ScriptExecutionError: If the script fails to compile or throws
        """
        ...
