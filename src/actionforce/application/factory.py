"""
Application Layer - Dispatcher Factory

Builds an ActionDispatcher with its infrastructure adapters, based on a
configuration profile (``configs/<profile>.yaml``) and environment
variables.

Adapter selection:
- Search: Google Custom Search when a search key is configured, the host
  search capability otherwise
- Host: the host platform API when ``host_api_url`` is set, the local
  standalone capabilities otherwise
"""

from pathlib import Path
from typing import Optional

import structlog

from actionforce.application.dispatcher import ActionDispatcher
from actionforce.config.settings import DispatchSettings
from actionforce.core.executor import CommandExecutor
from actionforce.core.interfaces.backends import HostCapabilitiesProtocol, SearchClientProtocol
from actionforce.infrastructure.host import HttpHostCapabilities, LocalHostCapabilities
from actionforce.infrastructure.scripts import NodeScriptRunner
from actionforce.infrastructure.search import GoogleSearchClient
from actionforce.infrastructure.site import SiteClient


class DispatcherFactory:
    """Factory wiring settings into a ready-to-use dispatcher."""

    def __init__(self, config_dir: str = "configs"):
        """
        Args:
            config_dir: Directory holding the profile YAML files
        """
        self.config_dir = Path(config_dir)
        self.logger = structlog.get_logger().bind(component="dispatcher_factory")

    def load_settings(self, profile: str = "dev") -> DispatchSettings:
        config_path = self.config_dir / f"{profile}.yaml"
        if not config_path.exists():
            self.logger.warning("profile.not_found", profile=profile, path=str(config_path))
        return DispatchSettings.load_from_file(config_path)

    def create_dispatcher(
        self, profile: str = "dev", settings: Optional[DispatchSettings] = None
    ) -> ActionDispatcher:
        """
        Create a dispatcher for the given profile.

        Args:
            profile: Profile name, resolved to ``<config_dir>/<profile>.yaml``
            settings: Pre-built settings; skips profile loading when given

        Returns:
            ActionDispatcher with all backends injected
        """
        settings = settings or self.load_settings(profile)

        executor = CommandExecutor(
            site=SiteClient(
                base_url=settings.site_url,
                api_key=settings.site_api_key,
                timeout_seconds=settings.http_timeout_seconds,
            ),
            host=self._create_host(settings),
            script_runner=NodeScriptRunner(
                node_binary=settings.node_binary,
                allowed_modules=settings.allowed_script_modules,
            ),
            search_client=self._create_search_client(settings),
            secrets=settings.secret_values(),
            webpage_max_chars=settings.webpage_max_chars,
        )

        self.logger.info(
            "dispatcher.created",
            profile=profile,
            site_configured=settings.site_configured,
            search="google" if settings.search_configured else "host",
            host="http" if settings.host_api_url else "local",
        )
        return ActionDispatcher(
            executor=executor,
            max_self_invoke_messages=settings.max_self_invoke_messages,
        )

    def _create_host(self, settings: DispatchSettings) -> HostCapabilitiesProtocol:
        if settings.host_api_url:
            return HttpHostCapabilities(
                base_url=settings.host_api_url,
                token=settings.host_api_token,
                timeout_seconds=settings.http_timeout_seconds,
            )
        return LocalHostCapabilities(encryption_key=settings.encryption_key)

    def _create_search_client(self, settings: DispatchSettings) -> Optional[SearchClientProtocol]:
        if not settings.search_configured:
            return None
        return GoogleSearchClient(
            api_key=settings.search_api_key,
            engine_id=settings.search_engine_id,
            timeout_seconds=settings.http_timeout_seconds,
        )
