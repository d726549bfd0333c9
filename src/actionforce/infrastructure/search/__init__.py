"""Search adapters."""

from actionforce.infrastructure.search.google_search import GoogleSearchClient

__all__ = ["GoogleSearchClient"]
