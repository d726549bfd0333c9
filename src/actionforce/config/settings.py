"""
Configuration management for the dispatcher.

Values come from (lowest to highest priority) field defaults, a YAML
profile and ``ACTIONFORCE_*`` environment variables. Secret fields default
to their ``{{secrets.*}}`` placeholders; a placeholder the host never
expanded counts as "not configured".
"""

from pathlib import Path
from typing import Any, List, Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings

SECRET_PLACEHOLDER_PREFIX = "{{secrets."

SITE_URL_PLACEHOLDER = "{{secrets.wpUrl}}"
SITE_API_KEY_PLACEHOLDER = "{{secrets.wpapiKey}}"
SEARCH_API_KEY_PLACEHOLDER = "{{secrets.googlesearch_api_key}}"
SEARCH_ENGINE_ID_PLACEHOLDER = "{{secrets.googlesearch_engine_id}}"


def is_resolved(value: Optional[str]) -> bool:
    """True when value holds a real setting rather than an unexpanded placeholder."""
    return bool(value) and SECRET_PLACEHOLDER_PREFIX not in value


class DispatchSettings(BaseSettings):
    """Dispatcher settings with environment variable support."""

    # Remote site receiving files and job callbacks
    site_url: str = Field(default=SITE_URL_PLACEHOLDER, description="Base URL of the site")
    site_api_key: str = Field(
        default=SITE_API_KEY_PLACEHOLDER, description="Value of the WP-API-KEY header"
    )

    # Google Custom Search
    search_api_key: str = Field(
        default=SEARCH_API_KEY_PLACEHOLDER, description="Custom Search API key"
    )
    search_engine_id: str = Field(
        default=SEARCH_ENGINE_ID_PLACEHOLDER, description="Custom Search engine id (cx)"
    )

    # Host platform
    host_api_url: Optional[str] = Field(
        default=None, description="Host platform API; local capabilities are used when unset"
    )
    host_api_token: Optional[str] = Field(default=None, description="Bearer token for the host API")
    encryption_key: Optional[str] = Field(
        default=None, description="Fernet key for the local host (generated when unset)"
    )

    # Dispatch policy
    max_self_invoke_messages: int = Field(
        default=50, description="Conversation length after which self-invocation stops"
    )
    webpage_max_chars: int = Field(default=5000, description="Truncation limit for page text")

    # Script sandbox
    node_binary: str = Field(default="node", description="Node.js executable")
    allowed_script_modules: List[str] = Field(
        default_factory=lambda: ["crypto", "url", "util", "querystring", "buffer"],
        description="Modules scripts may require()",
    )

    http_timeout_seconds: float = Field(default=30.0, description="Timeout for outbound HTTP")

    model_config = {
        "env_file": ".env",
        "env_prefix": "ACTIONFORCE_",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # Environment wins over values passed in from a YAML profile
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    @classmethod
    def load_from_file(cls, config_path: Path, **overrides: Any) -> "DispatchSettings":
        """
        Load settings from a YAML profile.

        Environment variables still take precedence over file values.
        """
        config_data: dict[str, Any] = {}
        if config_path.exists():
            with open(config_path, "r") as f:
                config_data = yaml.safe_load(f) or {}

        config_data.update(overrides)
        return cls(**config_data)

    @property
    def site_configured(self) -> bool:
        return is_resolved(self.site_url)

    @property
    def search_configured(self) -> bool:
        return is_resolved(self.search_api_key)

    def secret_values(self) -> dict[str, str]:
        """Placeholder -> value for every secret that has been configured."""
        secrets = {
            SITE_URL_PLACEHOLDER: self.site_url,
            SITE_API_KEY_PLACEHOLDER: self.site_api_key,
        }
        return {k: v for k, v in secrets.items() if is_resolved(v)}
