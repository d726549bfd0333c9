"""Infrastructure adapters for site, search, host and script backends."""
