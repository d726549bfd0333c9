"""Host capability adapters."""

from actionforce.infrastructure.host.http_host import HttpHostCapabilities
from actionforce.infrastructure.host.local_host import LocalHostCapabilities

__all__ = ["HttpHostCapabilities", "LocalHostCapabilities"]
