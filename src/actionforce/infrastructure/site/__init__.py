"""Remote site adapter."""

from actionforce.infrastructure.site.site_client import SiteClient

__all__ = ["SiteClient"]
