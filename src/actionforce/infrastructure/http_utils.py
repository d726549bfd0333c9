"""Shared aiohttp helpers for the HTTP adapters."""

import json
from typing import Any

import aiohttp

from actionforce.core.domain.errors import BackendError


async def read_body(response: aiohttp.ClientResponse) -> Any:
    """Decode a response body as JSON, falling back to text."""
    text = await response.text()
    try:
        return json.loads(text)
    except ValueError:
        return text


async def raise_for_status(response: aiohttp.ClientResponse, url: str) -> None:
    """Raise BackendError carrying the decoded body for 4xx/5xx responses."""
    if response.status >= 400:
        body = await read_body(response)
        raise BackendError(
            f"Request to {url} failed with status code {response.status}",
            status=response.status,
            payload=body,
        )
