"""Configuration."""

from actionforce.config.settings import DispatchSettings, is_resolved

__all__ = ["DispatchSettings", "is_resolved"]
